"""
Shared FastAPI dependencies for collaborators outside the engine.
"""

from vpn_sales.config import get_settings
from vpn_sales.notifier import LoggingNotifier, Notifier
from vpn_sales.provisioning import Provisioner, SubscriptionLinkProvisioner


def get_provisioner() -> Provisioner:
    return SubscriptionLinkProvisioner(get_settings().SUBSCRIPTION_BASE_URL)


def get_notifier() -> Notifier:
    return LoggingNotifier()
