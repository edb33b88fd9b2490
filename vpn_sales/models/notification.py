"""
Notification record model.

A row exists once an alert of a given kind went out for a
service. The unique constraint on (service_id, kind) is what
makes the dedup guard hold across sweep runs.
"""

from datetime import datetime

from sqlalchemy import (
    DateTime, ForeignKey, UniqueConstraint,
    Enum as SAEnum,
)
from sqlalchemy.orm import Mapped, mapped_column

from vpn_sales.models.base import Base
from vpn_sales.models.enums import NotificationKind


class NotificationRecord(Base):
    __tablename__ = "notifications"
    __table_args__ = (
        UniqueConstraint("service_id", "kind", name="uq_notification_service_kind"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    service_id: Mapped[int] = mapped_column(
        ForeignKey("services.id"), nullable=False, index=True
    )
    kind: Mapped[NotificationKind] = mapped_column(
        SAEnum(NotificationKind, name="notification_kind_enum"),
        nullable=False,
    )
    sent_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )
