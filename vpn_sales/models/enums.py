"""
Shared enumerations for database models.

Using Python enums mapped to database enums ensures that
only valid values can be stored.
"""

import enum


class EntryKind(str, enum.Enum):
    """Why a ledger entry was posted."""
    PURCHASE_DEBIT = "purchase-debit"
    CHARGE_CREDIT = "charge-credit"
    REFUND_CREDIT = "refund-credit"
    ADJUSTMENT = "adjustment"


class OrderStatus(str, enum.Enum):
    WAITING_PAYMENT = "waiting_payment"
    PAYMENT_SUBMITTED = "payment_submitted"
    COMPLETED = "completed"
    REJECTED = "rejected"
    EXPIRED = "expired"
    CANCELLED = "cancelled"


class ChargeStatus(str, enum.Enum):
    WAITING_PAYMENT = "waiting_payment"
    PAYMENT_SUBMITTED = "payment_submitted"
    COMPLETED = "completed"
    REJECTED = "rejected"
    EXPIRED = "expired"


class PaymentMethod(str, enum.Enum):
    CARD_TRANSFER = "card_transfer"
    WALLET = "wallet"


class OrderKind(str, enum.Enum):
    NEW = "new"
    RENEWAL = "renewal"


class ServiceStatus(str, enum.Enum):
    """Services only ever move from ACTIVE to EXPIRED."""
    ACTIVE = "active"
    EXPIRED = "expired"


class NotificationKind(str, enum.Enum):
    EXPIRING_SOON = "expiring_soon"
    EXPIRED = "expired"


class TicketStatus(str, enum.Enum):
    OPEN = "open"
    CLOSED = "closed"


class TicketCategory(str, enum.Enum):
    TECHNICAL = "technical"
    BILLING = "billing"
    SALES = "sales"
    OTHER = "other"


class MessageAuthor(str, enum.Enum):
    USER = "user"
    ADMIN = "admin"
