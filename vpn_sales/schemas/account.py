"""
Pydantic schemas for accounts and wallet operations.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from vpn_sales.models.enums import EntryKind


class WalletCredit(BaseModel):
    """Manual credit issued by an admin."""
    amount: Decimal = Field(gt=0, decimal_places=4)
    description: str = Field(default="Manual wallet credit", max_length=255)


class WalletDebit(BaseModel):
    """Debit for a purchase paid from the wallet."""
    amount: Decimal = Field(gt=0, decimal_places=4)
    description: str = Field(default="Purchase", max_length=255)
    reference: str | None = Field(default=None, max_length=64)


class AccountResponse(BaseModel):
    id: int
    balance: Decimal
    created_at: datetime
    last_activity_at: datetime

    model_config = {"from_attributes": True}


class BalanceResponse(BaseModel):
    account_id: int
    balance: Decimal


class LedgerEntryResponse(BaseModel):
    id: int
    account_id: int
    amount: Decimal
    kind: EntryKind
    description: str
    reference: str | None
    created_at: datetime

    model_config = {"from_attributes": True}
