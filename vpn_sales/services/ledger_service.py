"""
Ledger service — the only writer of wallet money.

This service enforces the fundamental rules:
1. Every balance change is recorded as exactly one entry
2. Entries are immutable (append-only)
3. The cached account balance always equals the sum of entries
4. An engine-issued debit never takes a balance below zero

The balance check and the balance update are a single guarded
UPDATE statement, so two concurrent debits can never both pass
the check against the same stale balance.
"""

import logging
from decimal import Decimal, InvalidOperation

from sqlalchemy import select, func, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from vpn_sales.exceptions import InsufficientFunds, NotFound, ValidationError
from vpn_sales.models.account import Account
from vpn_sales.models.ledger_entry import LedgerEntry
from vpn_sales.models.enums import EntryKind

logger = logging.getLogger(__name__)


def to_amount(value) -> Decimal:
    """Coerce user input to a positive Decimal amount."""
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"Invalid amount: {value!r}")
    if not amount.is_finite() or amount <= 0:
        raise ValidationError(f"Amount must be positive, got {value}")
    return amount


class LedgerService:
    """
    All wallet balance changes pass through this service.

    Every posting updates the cached balance and appends an
    entry in one savepoint. Committing is left to the caller.
    """

    def __init__(self, db: Session):
        self.db = db

    def ensure_account(self, account_id: int) -> Account:
        """Return the account, creating it on first use."""
        account = self.db.get(Account, account_id)
        if account:
            return account

        try:
            with self.db.begin_nested():
                account = Account(id=account_id, balance=Decimal("0"))
                self.db.add(account)
                self.db.flush()
        except IntegrityError:
            # Created concurrently by another request
            account = self.db.get(Account, account_id)
        else:
            logger.info("created account %s", account_id)
        return account

    def credit(
        self,
        account_id: int,
        amount,
        description: str,
        kind: EntryKind = EntryKind.CHARGE_CREDIT,
        reference: str | None = None,
    ) -> LedgerEntry:
        """Add money to an account, creating the account if needed."""
        amount = to_amount(amount)
        self.ensure_account(account_id)
        return self._post(account_id, amount, kind, description, reference)

    def debit(
        self,
        account_id: int,
        amount,
        description: str,
        kind: EntryKind = EntryKind.PURCHASE_DEBIT,
        reference: str | None = None,
    ) -> LedgerEntry:
        """
        Take money from an account.

        Raises InsufficientFunds if the amount exceeds the
        current balance; nothing is written in that case.
        """
        amount = to_amount(amount)
        return self._post(account_id, -amount, kind, description, reference)

    def debit_for_purchase(
        self,
        account_id: int,
        amount,
        description: str,
        reference: str | None = None,
    ) -> LedgerEntry:
        return self.debit(
            account_id, amount, description,
            kind=EntryKind.PURCHASE_DEBIT, reference=reference,
        )

    def credit_wallet(
        self,
        account_id: int,
        amount,
        description: str = "Manual wallet credit",
        reference: str | None = None,
    ) -> LedgerEntry:
        return self.credit(
            account_id, amount, description,
            kind=EntryKind.CHARGE_CREDIT, reference=reference,
        )

    def adjust(self, account_id: int, amount, description: str) -> LedgerEntry:
        """
        Post an admin correction. Negative amounts are guarded
        like any other debit.
        """
        try:
            delta = Decimal(str(amount))
        except (InvalidOperation, ValueError):
            raise ValidationError(f"Invalid amount: {amount!r}")
        if not delta.is_finite() or delta == 0:
            raise ValidationError("Adjustment amount must be non-zero")
        if delta > 0:
            self.ensure_account(account_id)
        return self._post(
            account_id, delta, EntryKind.ADJUSTMENT, description, None
        )

    def _post(
        self,
        account_id: int,
        delta: Decimal,
        kind: EntryKind,
        description: str,
        reference: str | None,
    ) -> LedgerEntry:
        """Apply delta to the cached balance and append the matching entry."""
        stmt = (
            update(Account)
            .where(Account.id == account_id)
            .values(balance=Account.balance + delta)
            .execution_options(synchronize_session=False)
        )
        if delta < 0:
            stmt = stmt.where(Account.balance >= -delta)

        with self.db.begin_nested():
            result = self.db.execute(stmt)
            if result.rowcount == 0:
                available = self.db.execute(
                    select(Account.balance).where(Account.id == account_id)
                ).scalar_one_or_none()
                if available is None:
                    raise NotFound("Account", account_id)
                raise InsufficientFunds(account_id, -delta, available)

            entry = LedgerEntry(
                account_id=account_id,
                amount=delta,
                kind=kind,
                description=description,
                reference=reference,
            )
            self.db.add(entry)
            self.db.flush()

        self._refresh_cached(account_id)
        logger.info(
            "posted %s %s on account %s (ref=%s)",
            kind.value, delta, account_id, reference,
        )
        return entry

    def _refresh_cached(self, account_id: int) -> None:
        account = self.db.get(Account, account_id)
        if account is not None:
            self.db.refresh(account, ["balance"])

    def balance_of(self, account_id: int) -> Decimal:
        """Return the cached balance of an account."""
        balance = self.db.execute(
            select(Account.balance).where(Account.id == account_id)
        ).scalar_one_or_none()
        if balance is None:
            raise NotFound("Account", account_id)
        return Decimal(str(balance))

    def entries_total(self, account_id: int) -> Decimal:
        """Sum of all entries for an account."""
        total = self.db.execute(
            select(func.coalesce(func.sum(LedgerEntry.amount), 0)).where(
                LedgerEntry.account_id == account_id
            )
        ).scalar()
        return Decimal(str(total))

    def reconcile(self, account_id: int) -> Decimal:
        """
        Recompute the balance from the full entry history.

        If the cached balance drifted, it is corrected and the
        drift is logged. Returns the reconciled balance.
        """
        cached = self.balance_of(account_id)
        total = self.entries_total(account_id)
        if cached != total:
            logger.warning(
                "balance drift on account %s: cached=%s entries=%s",
                account_id, cached, total,
            )
            self.db.execute(
                update(Account)
                .where(Account.id == account_id)
                .values(balance=total)
                .execution_options(synchronize_session=False)
            )
            self._refresh_cached(account_id)
        return total

    def get_entries(
        self, account_id: int, limit: int | None = None
    ) -> list[LedgerEntry]:
        """Return entries for an account, newest first."""
        stmt = (
            select(LedgerEntry)
            .where(LedgerEntry.account_id == account_id)
            .order_by(LedgerEntry.created_at.desc(), LedgerEntry.id.desc())
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        return list(self.db.execute(stmt).scalars().all())
