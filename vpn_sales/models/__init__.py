"""
Database models package.

All models must be imported here so that Alembic can discover
them through Base.metadata when generating migrations.
"""

from vpn_sales.models.base import Base
from vpn_sales.models.enums import (
    EntryKind,
    OrderStatus,
    ChargeStatus,
    PaymentMethod,
    OrderKind,
    ServiceStatus,
    NotificationKind,
    TicketStatus,
    TicketCategory,
    MessageAuthor,
)
from vpn_sales.models.account import Account
from vpn_sales.models.ledger_entry import LedgerEntry
from vpn_sales.models.order import Order
from vpn_sales.models.service import Service
from vpn_sales.models.wallet_charge import WalletCharge
from vpn_sales.models.notification import NotificationRecord
from vpn_sales.models.ticket import Ticket, TicketMessage

__all__ = [
    "Base",
    "EntryKind",
    "OrderStatus",
    "ChargeStatus",
    "PaymentMethod",
    "OrderKind",
    "ServiceStatus",
    "NotificationKind",
    "TicketStatus",
    "TicketCategory",
    "MessageAuthor",
    "Account",
    "LedgerEntry",
    "Order",
    "Service",
    "WalletCharge",
    "NotificationRecord",
    "Ticket",
    "TicketMessage",
]
