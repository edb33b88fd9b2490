"""
Ledger entry model.

Each entry is one signed movement of wallet money: positive
for credits (top-ups, refunds), negative for debits
(purchases). Posted entries are never
modified or deleted.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    String, DateTime, Numeric, ForeignKey,
    Enum as SAEnum,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from vpn_sales.models.base import Base
from vpn_sales.models.enums import EntryKind


class LedgerEntry(Base):
    """
    An immutable credit or debit against an account's wallet.

    The account balance is the sum of its entries' amounts.
    This invariant is enforced by the LedgerService, not by
    the model.
    """

    __tablename__ = "ledger_entries"

    id: Mapped[int] = mapped_column(primary_key=True)
    account_id: Mapped[int] = mapped_column(
        ForeignKey("accounts.id"), nullable=False, index=True
    )
    amount: Mapped[Decimal] = mapped_column(
        Numeric(19, 4), nullable=False
    )
    kind: Mapped[EntryKind] = mapped_column(
        SAEnum(EntryKind, name="entry_kind_enum"),
        nullable=False,
    )
    description: Mapped[str] = mapped_column(
        String(255), nullable=False
    )
    # Business reference such as "order:12" or "charge:7"
    reference: Mapped[str | None] = mapped_column(
        String(64), nullable=True, index=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )

    account: Mapped["Account"] = relationship(back_populates="entries")

    def __repr__(self) -> str:
        return f"<LedgerEntry {self.kind.value} {self.amount}>"
