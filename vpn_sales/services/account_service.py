"""
Account service — customer accounts keyed by chat identifier.

Accounts are created lazily the first time a customer does
anything. Balance queries delegate to the ledger.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy.orm import Session

from vpn_sales.exceptions import NotFound
from vpn_sales.models.account import Account
from vpn_sales.services.ledger_service import LedgerService


class AccountService:

    def __init__(self, db: Session):
        self.db = db
        self.ledger_service = LedgerService(db)

    def get_or_create(self, chat_id: int, now: datetime | None = None) -> Account:
        """Return the customer's account and record their activity."""
        account = self.ledger_service.ensure_account(chat_id)
        account.last_activity_at = now or datetime.utcnow()
        self.db.flush()
        return account

    def get_account(self, chat_id: int) -> Account:
        account = self.db.get(Account, chat_id)
        if not account:
            raise NotFound("Account", chat_id)
        return account

    def get_balance(self, chat_id: int) -> Decimal:
        """The account's wallet balance as tracked by the ledger."""
        return self.ledger_service.balance_of(chat_id)
