"""
Wallet charge model.

A charge is a customer's request to top up their wallet by
bank transfer. It follows the same payment workflow as an
order, but completion credits the ledger instead of
provisioning a service.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    String, DateTime, Numeric, ForeignKey, Text,
    Enum as SAEnum,
)
from sqlalchemy.orm import Mapped, mapped_column

from vpn_sales.models.base import Base
from vpn_sales.models.enums import ChargeStatus


PENDING_CHARGE_STATUSES = frozenset({
    ChargeStatus.WAITING_PAYMENT,
    ChargeStatus.PAYMENT_SUBMITTED,
})


class WalletCharge(Base):
    __tablename__ = "wallet_charges"

    id: Mapped[int] = mapped_column(primary_key=True)
    account_id: Mapped[int] = mapped_column(
        ForeignKey("accounts.id"), nullable=False, index=True
    )
    amount: Mapped[Decimal] = mapped_column(
        Numeric(19, 4), nullable=False
    )
    status: Mapped[ChargeStatus] = mapped_column(
        SAEnum(ChargeStatus, name="charge_status_enum", create_constraint=True),
        nullable=False,
        default=ChargeStatus.WAITING_PAYMENT,
        index=True,
    )
    evidence: Mapped[str | None] = mapped_column(Text, nullable=True)
    rejection_reason: Mapped[str | None] = mapped_column(
        String(255), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )
    expires_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, index=True
    )
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime, nullable=True
    )

    def __repr__(self) -> str:
        return f"<WalletCharge {self.id} {self.amount} ({self.status.value})>"
