"""
Sweep coordinator — the periodic pass over orders, charges and services.

One run:
1. Expire stale orders and wallet charges
2. Expire overdue services
3. Warn about services expiring inside the warning window
4. Notify about the services expired in step 2

Each step commits on its own. If a step fails it is rolled back,
logged and recorded in the report, and the next step still runs.
The coordinator does not know how often it is called.
"""

import logging
from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from vpn_sales.config import get_settings
from vpn_sales.models.enums import NotificationKind
from vpn_sales.notifier import LoggingNotifier, Notifier
from vpn_sales.schemas.sweep import SweepReport
from vpn_sales.services.notification_service import NotificationService
from vpn_sales.services.order_service import OrderService
from vpn_sales.services.service_lifecycle import ServiceLifecycle
from vpn_sales.services.wallet_charge_service import WalletChargeService

logger = logging.getLogger(__name__)


class SweepCoordinator:

    def __init__(
        self,
        db: Session,
        notifier: Notifier | None = None,
        settings=None,
    ):
        self.db = db
        self.notifier = notifier or LoggingNotifier()
        self.settings = settings or get_settings()
        self.orders = OrderService(db, settings=self.settings)
        self.charges = WalletChargeService(db, settings=self.settings)
        self.services = ServiceLifecycle(db, self.settings)
        self.notifications = NotificationService(db)

    def run(self, now: datetime | None = None) -> SweepReport:
        now = now or datetime.utcnow()
        report = SweepReport()

        expired_orders = self._step(
            report, "expire orders", lambda: self.orders.expire_stale(now)
        )
        report.expired_orders = [o.id for o in expired_orders or []]

        expired_charges = self._step(
            report, "expire charges", lambda: self.charges.expire_stale(now)
        )
        report.expired_charges = [c.id for c in expired_charges or []]

        expired_services = self._step(
            report, "expire services", lambda: self.services.expire_overdue(now)
        )
        report.expired_services = [s.id for s in expired_services or []]

        window = timedelta(hours=self.settings.EXPIRY_WARNING_HOURS)
        expiring = self._step(
            report,
            "find expiring services",
            lambda: self.services.list_expiring_within(window, now),
        )
        for service in expiring or []:
            if self._notify(report, service, NotificationKind.EXPIRING_SOON):
                report.warnings_sent.append(service.id)

        for service in expired_services or []:
            if self._notify(report, service, NotificationKind.EXPIRED):
                report.expiry_notices_sent.append(service.id)

        logger.info(
            "sweep done: %s order(s), %s charge(s), %s service(s) expired; "
            "%s warning(s), %s expiry notice(s); %s error(s)",
            len(report.expired_orders), len(report.expired_charges),
            len(report.expired_services), len(report.warnings_sent),
            len(report.expiry_notices_sent), len(report.errors),
        )
        return report

    def _step(self, report: SweepReport, name: str, action):
        """Run one step in its own transaction."""
        try:
            result = action()
            self.db.commit()
            return result
        except Exception as exc:
            self.db.rollback()
            logger.exception("sweep step '%s' failed", name)
            report.errors.append(f"{name}: {exc}")
            return None

    def _notify(
        self, report: SweepReport, service, kind: NotificationKind
    ) -> bool:
        """
        Claim and deliver one notification.

        The claim is committed before delivery, so a delivery
        failure is logged and the alert is not retried.
        """
        service_id = service.id
        try:
            claimed = self.notifications.try_notify(service_id, kind)
            self.db.commit()
        except Exception as exc:
            self.db.rollback()
            logger.exception("could not record %s for service %s", kind.value, service_id)
            report.errors.append(f"record {kind.value} {service_id}: {exc}")
            return False

        if not claimed:
            return False

        try:
            if kind == NotificationKind.EXPIRING_SOON:
                self.notifier.expiring_soon(service)
            else:
                self.notifier.expired(service)
        except Exception as exc:
            logger.exception("could not deliver %s for service %s", kind.value, service_id)
            report.errors.append(f"deliver {kind.value} {service_id}: {exc}")
            return False
        return True
