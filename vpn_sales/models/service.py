"""
Provisioned service model.

A service is the access grant delivered to a customer when an
order completes. Its expiry is fixed at creation. The sweep is
the only writer of its status and only ever moves it from
ACTIVE to EXPIRED.
"""

from datetime import datetime

from sqlalchemy import (
    String, DateTime, ForeignKey, Integer, Text,
    Enum as SAEnum,
)
from sqlalchemy.orm import Mapped, mapped_column

from vpn_sales.models.base import Base
from vpn_sales.models.enums import ServiceStatus


class Service(Base):
    __tablename__ = "services"

    id: Mapped[int] = mapped_column(primary_key=True)
    account_id: Mapped[int] = mapped_column(
        ForeignKey("accounts.id"), nullable=False, index=True
    )
    username: Mapped[str] = mapped_column(
        String(64), unique=True, nullable=False
    )
    plan_name: Mapped[str] = mapped_column(String(100), nullable=False)
    # 0 means unlimited
    data_limit_gb: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0
    )
    expires_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, index=True
    )
    access_config: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[ServiceStatus] = mapped_column(
        SAEnum(
            ServiceStatus,
            name="service_status_enum",
            create_constraint=True,
        ),
        nullable=False,
        default=ServiceStatus.ACTIVE,
        index=True,
    )
    # unique: one order never yields two services
    order_id: Mapped[int] = mapped_column(
        ForeignKey("orders.id"), unique=True, nullable=False
    )
    server_ref: Mapped[str] = mapped_column(String(64), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )
    expired_at: Mapped[datetime | None] = mapped_column(
        DateTime, nullable=True
    )

    def __repr__(self) -> str:
        return f"<Service {self.username} ({self.status.value})>"
