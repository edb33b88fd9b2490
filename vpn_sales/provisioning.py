"""
Access provisioning.

The provisioner is the external system that creates the VPN
user and returns an access config (a subscription link or a
client URI). The engine treats that string as opaque.

provision_with_retry() is the only place the engine talks to
it: calls are retried a bounded number of times before the
failure is reported as ProvisioningFailed.
"""

import logging
import time
from datetime import datetime

from vpn_sales.exceptions import ProvisioningFailed
from vpn_sales.schemas.plan import PlanTerms

logger = logging.getLogger(__name__)


class ProvisionerError(RuntimeError):
    """Raised by a provisioner when it could not create the user."""


class Provisioner:
    """Interface for creating access on a VPN server."""

    def provision(
        self,
        username: str,
        plan: PlanTerms,
        server_ref: str,
        expires_at: datetime,
    ) -> str:
        raise NotImplementedError


class SubscriptionLinkProvisioner(Provisioner):
    """
    Hands out subscription links on a panel that creates users
    on first fetch of the link.
    """

    def __init__(self, base_url: str):
        self.base_url = base_url.rstrip("/")

    def provision(self, username, plan, server_ref, expires_at):
        if not self.base_url:
            raise ProvisionerError("no subscription base URL configured")
        return f"{self.base_url}/{server_ref}/{username}"


def provision_with_retry(
    provisioner: Provisioner,
    *,
    order_id: int,
    username: str,
    plan: PlanTerms,
    server_ref: str,
    expires_at: datetime,
    max_attempts: int = 3,
    retry_delay: float = 1.0,
    sleep=time.sleep,
) -> str:
    """
    Call the provisioner until it returns a usable access config.

    Any exception or an empty result counts as a failed attempt.
    The delay grows linearly with the attempt number.
    """
    attempts = max(1, max_attempts)
    last_error = "no attempt made"

    for attempt in range(1, attempts + 1):
        try:
            config = provisioner.provision(username, plan, server_ref, expires_at)
        except Exception as exc:
            last_error = str(exc) or exc.__class__.__name__
        else:
            if config and config.strip():
                return config
            last_error = "provisioner returned an empty access config"

        logger.warning(
            "provisioning attempt %s/%s for order %s failed: %s",
            attempt, attempts, order_id, last_error,
        )
        if attempt < attempts and retry_delay > 0:
            sleep(retry_delay * attempt)

    raise ProvisioningFailed(order_id, attempts, last_error)
