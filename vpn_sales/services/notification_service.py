"""
Notification dedup.

try_notify() is the single authority on whether an alert for a
service has already gone out. Sweeps keep no memory between
runs; the unique (service_id, kind) row is the memory.
"""

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from vpn_sales.models.enums import NotificationKind
from vpn_sales.models.notification import NotificationRecord


class NotificationService:

    def __init__(self, db: Session):
        self.db = db

    def try_notify(self, service_id: int, kind: NotificationKind) -> bool:
        """
        Claim the right to send `kind` for a service.

        Returns True exactly once per (service_id, kind); the
        caller should send only then.
        """
        try:
            with self.db.begin_nested():
                self.db.add(NotificationRecord(service_id=service_id, kind=kind))
                self.db.flush()
        except IntegrityError:
            return False
        return True

    def was_sent(self, service_id: int, kind: NotificationKind) -> bool:
        return self.db.execute(
            select(NotificationRecord.id).where(
                NotificationRecord.service_id == service_id,
                NotificationRecord.kind == kind,
            )
        ).first() is not None
