"""
Service lifecycle — provisioned access grants from creation to expiry.

Services are created only by OrderService.approve(). After that
the sweep is the only thing that touches their status, and it
only moves them from ACTIVE to EXPIRED.
"""

import logging
import secrets
from datetime import datetime, timedelta

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from vpn_sales.config import get_settings
from vpn_sales.exceptions import NotFound
from vpn_sales.models.enums import ServiceStatus
from vpn_sales.models.order import Order
from vpn_sales.models.service import Service

logger = logging.getLogger(__name__)

USERNAME_ATTEMPTS = 10


class ServiceLifecycle:

    def __init__(self, db: Session, settings=None):
        self.db = db
        self.settings = settings or get_settings()

    def username_taken(self, username: str) -> bool:
        return self.db.execute(
            select(Service.id).where(Service.username == username)
        ).first() is not None

    def generate_username(self) -> str:
        """
        Pick a username nobody has yet, e.g. VPN-482913.

        Falls back to a longer suffix when the short space looks
        crowded. The unique index still has the final word.
        """
        prefix = self.settings.USERNAME_PREFIX
        for attempt in range(USERNAME_ATTEMPTS):
            digits = 6 if attempt < USERNAME_ATTEMPTS // 2 else 9
            suffix = secrets.randbelow(9 * 10 ** (digits - 1)) + 10 ** (digits - 1)
            username = f"{prefix}-{suffix}"
            if not self.username_taken(username):
                return username
        return f"{prefix}-{secrets.token_hex(6)}"

    def create(
        self,
        order: Order,
        username: str,
        expires_at: datetime,
        access_config: str,
    ) -> Service:
        """Create the service for a completed order. Status starts ACTIVE."""
        plan = order.plan
        service = Service(
            account_id=order.account_id,
            username=username,
            plan_name=plan.name,
            data_limit_gb=plan.data_limit_gb,
            expires_at=expires_at,
            access_config=access_config,
            status=ServiceStatus.ACTIVE,
            order_id=order.id,
            server_ref=order.server_ref,
        )
        self.db.add(service)
        self.db.flush()
        logger.info(
            "created service %s (%s) for order %s, expires %s",
            service.id, username, order.id, expires_at.isoformat(),
        )
        return service

    def expire_overdue(self, now: datetime | None = None) -> list[Service]:
        """
        Move every active service past its expiry to EXPIRED.

        Each row is flipped with a guarded UPDATE, so a service
        is returned only by the run that actually expired it.
        Running this twice in a row changes nothing the second time.
        """
        now = now or datetime.utcnow()
        candidates = self.db.execute(
            select(Service.id).where(
                Service.status == ServiceStatus.ACTIVE,
                Service.expires_at < now,
            )
        ).scalars().all()

        expired = []
        for service_id in candidates:
            result = self.db.execute(
                update(Service)
                .where(
                    Service.id == service_id,
                    Service.status == ServiceStatus.ACTIVE,
                )
                .values(status=ServiceStatus.EXPIRED, expired_at=now)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount:
                service = self.db.get(Service, service_id)
                self.db.refresh(service)
                expired.append(service)

        if expired:
            logger.info("expired %s service(s)", len(expired))
        return expired

    def list_expiring_within(
        self, window: timedelta, now: datetime | None = None
    ) -> list[Service]:
        """Active services whose expiry falls in [now, now + window]."""
        now = now or datetime.utcnow()
        return list(self.db.execute(
            select(Service)
            .where(
                Service.status == ServiceStatus.ACTIVE,
                Service.expires_at >= now,
                Service.expires_at <= now + window,
            )
            .order_by(Service.expires_at)
        ).scalars().all())

    def get_service(self, service_id: int) -> Service:
        service = self.db.get(Service, service_id)
        if not service:
            raise NotFound("Service", service_id)
        return service

    def list_user_services(
        self, account_id: int, limit: int = 100, offset: int = 0
    ) -> list[Service]:
        """A customer's services, newest first."""
        return list(self.db.execute(
            select(Service)
            .where(Service.account_id == account_id)
            .order_by(Service.created_at.desc(), Service.id.desc())
            .limit(limit)
            .offset(offset)
        ).scalars().all())
