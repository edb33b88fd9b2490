"""
Order model.

An order turns a plan selection plus payment evidence into a
provisioned service. The plan terms are snapshotted at creation
time so later catalog edits cannot change a pending order.

Status changes go through OrderService, which only moves an
order forward along PENDING_ORDER_STATUSES -> terminal.
"""

from datetime import datetime

from sqlalchemy import (
    String, DateTime, ForeignKey, Integer, JSON, Text,
    Enum as SAEnum,
)
from sqlalchemy.orm import Mapped, mapped_column

from vpn_sales.models.base import Base
from vpn_sales.models.enums import (
    OrderKind,
    OrderStatus,
    PaymentMethod,
)
from vpn_sales.schemas.plan import PlanTerms


PENDING_ORDER_STATUSES = frozenset({
    OrderStatus.WAITING_PAYMENT,
    OrderStatus.PAYMENT_SUBMITTED,
})

TERMINAL_ORDER_STATUSES = frozenset({
    OrderStatus.COMPLETED,
    OrderStatus.REJECTED,
    OrderStatus.EXPIRED,
    OrderStatus.CANCELLED,
})


class Order(Base):
    __tablename__ = "orders"

    id: Mapped[int] = mapped_column(primary_key=True)
    account_id: Mapped[int] = mapped_column(
        ForeignKey("accounts.id"), nullable=False, index=True
    )
    plan_data: Mapped[dict] = mapped_column(JSON, nullable=False)
    server_ref: Mapped[str] = mapped_column(String(64), nullable=False)
    status: Mapped[OrderStatus] = mapped_column(
        SAEnum(OrderStatus, name="order_status_enum", create_constraint=True),
        nullable=False,
        default=OrderStatus.WAITING_PAYMENT,
        index=True,
    )
    payment_method: Mapped[PaymentMethod | None] = mapped_column(
        SAEnum(PaymentMethod, name="payment_method_enum"),
        nullable=True,
    )
    kind: Mapped[OrderKind] = mapped_column(
        SAEnum(OrderKind, name="order_kind_enum"),
        nullable=False,
        default=OrderKind.NEW,
    )
    # Plain columns: services.order_id already points back at orders
    renews_service_id: Mapped[int | None] = mapped_column(
        Integer, nullable=True
    )
    evidence: Mapped[str | None] = mapped_column(Text, nullable=True)
    rejection_reason: Mapped[str | None] = mapped_column(
        String(255), nullable=True
    )
    service_id: Mapped[int | None] = mapped_column(
        Integer, nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime, nullable=True
    )
    expires_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, index=True
    )

    @property
    def plan(self) -> PlanTerms:
        return PlanTerms.from_snapshot(self.plan_data)

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_ORDER_STATUSES

    def __repr__(self) -> str:
        return f"<Order {self.id} {self.kind.value} ({self.status.value})>"
