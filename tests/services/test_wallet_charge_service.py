"""
Tests for WalletChargeService: top-ups by bank transfer.
"""

import threading
from datetime import datetime, timedelta
from decimal import Decimal

import pytest
from sqlalchemy import func, select

from vpn_sales.exceptions import InvalidState, NotFound, ValidationError
from vpn_sales.models.enums import ChargeStatus, EntryKind
from vpn_sales.models.ledger_entry import LedgerEntry
from vpn_sales.schemas.charge import ChargeCreate
from vpn_sales.services.ledger_service import LedgerService
from vpn_sales.services.wallet_charge_service import WalletChargeService


CHAT_ID = 4242
T0 = datetime(2026, 3, 1, 10, 0, 0)


@pytest.fixture
def charges(db_session, settings):
    return WalletChargeService(db_session, settings=settings)


def open_charge(charges, amount="50000", now=T0):
    return charges.create_charge(
        ChargeCreate(account_id=CHAT_ID, amount=Decimal(amount)), now=now
    )


def credit_entries(db_session):
    return db_session.execute(
        select(func.count(LedgerEntry.id)).where(
            LedgerEntry.kind == EntryKind.CHARGE_CREDIT
        )
    ).scalar()


class TestCreateCharge:

    def test_charge_starts_waiting(self, db_session, charges):
        charge = open_charge(charges)
        db_session.commit()

        assert charge.status == ChargeStatus.WAITING_PAYMENT
        assert charge.amount == Decimal("50000")
        assert charge.expires_at == T0 + timedelta(minutes=15)

    def test_creating_charge_opens_account(self, db_session, charges):
        open_charge(charges)
        db_session.commit()

        assert LedgerService(db_session).balance_of(CHAT_ID) == Decimal("0")

    def test_amount_below_minimum(self, charges):
        with pytest.raises(ValidationError):
            open_charge(charges, amount="999")

    def test_amount_above_maximum(self, charges):
        with pytest.raises(ValidationError):
            open_charge(charges, amount="5000001")


class TestApproveCharge:

    def test_approve_credits_wallet(self, db_session, charges):
        charge = open_charge(charges)
        charges.submit_evidence(charge.id, "transfer-ref-77", now=T0 + timedelta(minutes=2))
        approved = charges.approve(charge.id, now=T0 + timedelta(minutes=10))
        db_session.commit()

        assert approved.status == ChargeStatus.COMPLETED
        assert approved.completed_at == T0 + timedelta(minutes=10)
        assert LedgerService(db_session).balance_of(CHAT_ID) == Decimal("50000")
        assert credit_entries(db_session) == 1

        entry = LedgerService(db_session).get_entries(CHAT_ID)[0]
        assert entry.amount == Decimal("50000")
        assert entry.reference == f"charge:{charge.id}"

    def test_double_approve_credits_once(self, db_session, charges):
        charge = open_charge(charges)
        charges.submit_evidence(charge.id, "transfer-ref-77", now=T0)
        charges.approve(charge.id, now=T0)
        db_session.commit()

        replay = charges.approve(charge.id, now=T0)
        db_session.commit()

        assert replay.status == ChargeStatus.COMPLETED
        assert LedgerService(db_session).balance_of(CHAT_ID) == Decimal("50000")
        assert credit_entries(db_session) == 1

    def test_approve_without_evidence_fails(self, db_session, charges):
        charge = open_charge(charges)
        db_session.commit()

        with pytest.raises(InvalidState):
            charges.approve(charge.id, now=T0)
        assert credit_entries(db_session) == 0

    def test_failed_credit_keeps_charge_pending(self, db_session, charges, monkeypatch):
        charge = open_charge(charges)
        charges.submit_evidence(charge.id, "transfer-ref-77", now=T0)
        db_session.commit()

        def ledger_down(*args, **kwargs):
            raise ValidationError("ledger unavailable")

        monkeypatch.setattr(charges.ledger_service, "credit", ledger_down)
        with pytest.raises(ValidationError):
            charges.approve(charge.id, now=T0)

        # read back in the same unit of work, before any commit
        assert charges.get_charge(charge.id).status == ChargeStatus.PAYMENT_SUBMITTED
        assert credit_entries(db_session) == 0

        monkeypatch.undo()
        assert charges.approve(charge.id, now=T0).status == ChargeStatus.COMPLETED

    def test_unknown_charge(self, charges):
        with pytest.raises(NotFound):
            charges.approve(777)


class TestRejectAndExpireCharge:

    def test_reject_pending_charge(self, db_session, charges):
        charge = open_charge(charges)
        charges.submit_evidence(charge.id, "transfer-ref", now=T0)
        rejected = charges.reject(charge.id, "no such transfer")
        db_session.commit()

        assert rejected.status == ChargeStatus.REJECTED
        assert rejected.rejection_reason == "no such transfer"
        assert LedgerService(db_session).balance_of(CHAT_ID) == Decimal("0")
        assert charges.reject(charge.id).status == ChargeStatus.REJECTED

    def test_reject_completed_charge_fails(self, db_session, charges):
        charge = open_charge(charges)
        charges.submit_evidence(charge.id, "transfer-ref", now=T0)
        charges.approve(charge.id, now=T0)
        db_session.commit()

        with pytest.raises(InvalidState):
            charges.reject(charge.id)

    def test_stale_charge_expires(self, db_session, charges):
        charge = open_charge(charges)
        db_session.commit()

        expired = charges.expire_stale(now=T0 + timedelta(minutes=16))
        db_session.commit()

        assert [c.id for c in expired] == [charge.id]
        assert charges.expire_stale(now=T0 + timedelta(minutes=16)) == []
        with pytest.raises(InvalidState):
            charges.submit_evidence(charge.id, "late", now=T0 + timedelta(minutes=17))

    def test_pending_charges_listed(self, db_session, charges):
        waiting = open_charge(charges)
        submitted = open_charge(charges, amount="20000")
        charges.submit_evidence(submitted.id, "ref", now=T0)
        db_session.commit()

        pending = [c.id for c in charges.list_pending_charges()]
        assert pending == [submitted.id]
        assert waiting.id not in pending


class TestConcurrentApproval:

    def test_racing_approvals_credit_once(self, db_session, session_factory, settings):
        charges = WalletChargeService(db_session, settings=settings)
        charge = open_charge(charges)
        charges.submit_evidence(charge.id, "transfer-ref-77", now=T0)
        charge_id = charge.id
        db_session.commit()
        db_session.close()

        statuses = []
        errors = []

        def approve():
            session = session_factory()
            try:
                approved = WalletChargeService(session, settings=settings).approve(charge_id)
                statuses.append(approved.status)
                session.commit()
            except Exception as exc:
                errors.append(exc)
            finally:
                session.close()

        threads = [threading.Thread(target=approve) for _ in range(6)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []
        assert statuses == [ChargeStatus.COMPLETED] * 6
        assert credit_entries(db_session) == 1
        assert LedgerService(db_session).balance_of(CHAT_ID) == Decimal("50000")
        assert LedgerService(db_session).reconcile(CHAT_ID) == Decimal("50000")
