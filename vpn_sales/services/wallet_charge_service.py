"""
Wallet charge service — topping up a wallet by bank transfer.

Same payment workflow as orders:

    waiting_payment --submit_evidence--> payment_submitted
    payment_submitted --approve--> completed (ledger credited)
    waiting_payment | payment_submitted --reject--> rejected
    waiting_payment | payment_submitted --sweep--> expired

The status flip to completed and the ledger credit share one
savepoint, and the flip is guarded, so approving twice never
credits twice.
"""

import logging
from contextlib import contextmanager
from datetime import datetime, timedelta
from decimal import Decimal

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from vpn_sales.config import get_settings
from vpn_sales.exceptions import (
    EngineError,
    InvalidState,
    NotFound,
    ValidationError,
)
from vpn_sales.models.enums import ChargeStatus, EntryKind
from vpn_sales.models.wallet_charge import WalletCharge, PENDING_CHARGE_STATUSES
from vpn_sales.schemas.charge import ChargeCreate, ChargeStatusUpdate
from vpn_sales.services.account_service import AccountService
from vpn_sales.services.ledger_service import LedgerService, to_amount

logger = logging.getLogger(__name__)


def charge_reference(charge_id: int) -> str:
    return f"charge:{charge_id}"


class WalletChargeService:

    def __init__(self, db: Session, settings=None):
        self.db = db
        self.settings = settings or get_settings()
        self.ledger_service = LedgerService(db)

    def create_charge(
        self, request: ChargeCreate, now: datetime | None = None
    ) -> WalletCharge:
        """Open a top-up request for the given amount."""
        now = now or datetime.utcnow()
        amount = to_amount(request.amount)
        minimum = Decimal(self.settings.MIN_CHARGE_AMOUNT)
        maximum = Decimal(self.settings.MAX_CHARGE_AMOUNT)
        if amount < minimum or amount > maximum:
            raise ValidationError(
                f"Charge amount must be between {minimum} and {maximum}, got {amount}"
            )

        AccountService(self.db).get_or_create(request.account_id, now)
        charge = WalletCharge(
            account_id=request.account_id,
            amount=amount,
            status=ChargeStatus.WAITING_PAYMENT,
            created_at=now,
            expires_at=now + timedelta(minutes=self.settings.CHARGE_WINDOW_MINUTES),
        )
        self.db.add(charge)
        self.db.flush()
        logger.info(
            "charge %s created for account %s: %s",
            charge.id, charge.account_id, amount,
        )
        return charge

    def _transition(
        self,
        charge_id: int,
        allowed,
        changes: ChargeStatusUpdate,
        *conditions,
    ) -> tuple[WalletCharge, bool]:
        charge = self.get_charge(charge_id)
        result = self.db.execute(
            update(WalletCharge)
            .where(
                WalletCharge.id == charge_id,
                WalletCharge.status.in_(list(allowed)),
                *conditions,
            )
            .values(**changes.column_values())
            .execution_options(synchronize_session=False)
        )
        self.db.refresh(charge)
        return charge, result.rowcount == 1

    @contextmanager
    def _savepoint(self, charge_id: int):
        """Savepoint that expires the cached charge when it rolls back."""
        try:
            with self.db.begin_nested():
                yield
        except EngineError:
            charge = self.db.get(WalletCharge, charge_id)
            if charge is not None:
                self.db.expire(charge)
            raise

    def submit_evidence(
        self, charge_id: int, evidence: str, now: datetime | None = None
    ) -> WalletCharge:
        now = now or datetime.utcnow()
        charge, claimed = self._transition(
            charge_id,
            {ChargeStatus.WAITING_PAYMENT},
            ChargeStatusUpdate(
                status=ChargeStatus.PAYMENT_SUBMITTED,
                evidence=evidence,
                expires_at=now + timedelta(hours=self.settings.REVIEW_WINDOW_HOURS),
            ),
            WalletCharge.expires_at > now,
        )
        if not claimed:
            raise InvalidState(
                "WalletCharge", charge_id, charge.status, "submit evidence for"
            )
        logger.info("charge %s payment evidence submitted", charge_id)
        return charge

    def approve(self, charge_id: int, now: datetime | None = None) -> WalletCharge:
        """
        Confirm the transfer and credit the wallet.

        A replay on a completed charge returns it as is.
        """
        now = now or datetime.utcnow()
        with self._savepoint(charge_id):
            charge, claimed = self._transition(
                charge_id,
                {ChargeStatus.PAYMENT_SUBMITTED},
                ChargeStatusUpdate(status=ChargeStatus.COMPLETED, completed_at=now),
            )
            if claimed:
                self.ledger_service.credit(
                    charge.account_id,
                    charge.amount,
                    "wallet top-up",
                    kind=EntryKind.CHARGE_CREDIT,
                    reference=charge_reference(charge.id),
                )
                logger.info(
                    "charge %s completed, credited %s to account %s",
                    charge_id, charge.amount, charge.account_id,
                )
                return charge

        if charge.status == ChargeStatus.COMPLETED:
            logger.info("charge %s already completed, replay ignored", charge_id)
            return charge
        raise InvalidState("WalletCharge", charge_id, charge.status, "approve")

    def reject(
        self, charge_id: int, reason: str = "Payment not confirmed"
    ) -> WalletCharge:
        charge, claimed = self._transition(
            charge_id,
            PENDING_CHARGE_STATUSES,
            ChargeStatusUpdate(status=ChargeStatus.REJECTED, rejection_reason=reason),
        )
        if claimed:
            logger.info("charge %s rejected: %s", charge_id, reason)
            return charge
        if charge.status == ChargeStatus.REJECTED:
            logger.info("charge %s already rejected, replay ignored", charge_id)
            return charge
        raise InvalidState("WalletCharge", charge_id, charge.status, "reject")

    def expire_stale(self, now: datetime | None = None) -> list[WalletCharge]:
        """Expire pending charges past their window. Re-entrant."""
        now = now or datetime.utcnow()
        candidates = self.db.execute(
            select(WalletCharge.id).where(
                WalletCharge.status.in_(list(PENDING_CHARGE_STATUSES)),
                WalletCharge.expires_at < now,
            )
        ).scalars().all()

        expired = []
        for charge_id in candidates:
            charge, claimed = self._transition(
                charge_id,
                PENDING_CHARGE_STATUSES,
                ChargeStatusUpdate(status=ChargeStatus.EXPIRED),
                WalletCharge.expires_at < now,
            )
            if claimed:
                expired.append(charge)

        if expired:
            logger.info("expired %s stale charge(s)", len(expired))
        return expired

    def get_charge(self, charge_id: int) -> WalletCharge:
        charge = self.db.get(WalletCharge, charge_id)
        if not charge:
            raise NotFound("WalletCharge", charge_id)
        return charge

    def list_pending_charges(self) -> list[WalletCharge]:
        """Charges waiting for an admin decision, newest first."""
        return list(self.db.execute(
            select(WalletCharge)
            .where(WalletCharge.status == ChargeStatus.PAYMENT_SUBMITTED)
            .order_by(WalletCharge.created_at.desc(), WalletCharge.id.desc())
        ).scalars().all())
