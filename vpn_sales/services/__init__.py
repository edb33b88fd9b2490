"""Business logic services."""

from vpn_sales.services.ledger_service import LedgerService
from vpn_sales.services.account_service import AccountService
from vpn_sales.services.service_lifecycle import ServiceLifecycle
from vpn_sales.services.order_service import OrderService
from vpn_sales.services.wallet_charge_service import WalletChargeService
from vpn_sales.services.notification_service import NotificationService
from vpn_sales.services.sweep_coordinator import SweepCoordinator
from vpn_sales.services.ticket_service import TicketService

__all__ = [
    "LedgerService",
    "AccountService",
    "ServiceLifecycle",
    "OrderService",
    "WalletChargeService",
    "NotificationService",
    "SweepCoordinator",
    "TicketService",
]
