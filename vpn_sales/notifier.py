"""
Outbound notifications raised by the sweep.

The chat layer implements Notifier to turn these events into
messages. LoggingNotifier is the default when nothing else is
wired in.
"""

import logging

from vpn_sales.models.service import Service

logger = logging.getLogger(__name__)


class Notifier:
    """Receives sweep events. Implementations may raise on delivery failure."""

    def expiring_soon(self, service: Service) -> None:
        raise NotImplementedError

    def expired(self, service: Service) -> None:
        raise NotImplementedError


class LoggingNotifier(Notifier):

    def expiring_soon(self, service):
        logger.info(
            "service %s (%s) for account %s expires at %s",
            service.id, service.username, service.account_id,
            service.expires_at.isoformat(),
        )

    def expired(self, service):
        logger.info(
            "service %s (%s) for account %s has expired",
            service.id, service.username, service.account_id,
        )
