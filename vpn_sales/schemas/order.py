"""
Pydantic schemas for orders and services.
"""

from datetime import datetime

from pydantic import BaseModel, Field, model_validator

from vpn_sales.models.enums import (
    OrderKind,
    OrderStatus,
    PaymentMethod,
    ServiceStatus,
)
from vpn_sales.schemas.plan import PlanTerms


class OrderCreate(BaseModel):
    account_id: int
    plan: PlanTerms
    server_ref: str = Field(min_length=1, max_length=64)
    kind: OrderKind = OrderKind.NEW
    renews_service_id: int | None = None

    @model_validator(mode="after")
    def renewal_needs_service(self) -> "OrderCreate":
        if self.kind == OrderKind.RENEWAL and self.renews_service_id is None:
            raise ValueError("renewal orders must name the service they renew")
        if self.kind == OrderKind.NEW and self.renews_service_id is not None:
            raise ValueError("only renewal orders may reference a service")
        return self


class PaymentEvidence(BaseModel):
    """Reference to the customer's receipt (file id, transfer code...)."""
    evidence: str = Field(min_length=1, max_length=1000)


class Rejection(BaseModel):
    reason: str = Field(default="Payment not confirmed", max_length=255)


class OrderStatusUpdate(BaseModel):
    """
    The only fields a status transition may write on an order.

    Unknown fields are rejected so a transition can never touch
    the plan snapshot or ownership columns.
    """
    status: OrderStatus
    completed_at: datetime | None = None
    service_id: int | None = None
    payment_method: PaymentMethod | None = None
    evidence: str | None = None
    rejection_reason: str | None = None
    expires_at: datetime | None = None

    model_config = {"extra": "forbid"}

    def column_values(self) -> dict:
        return self.model_dump(exclude_unset=True)


class OrderResponse(BaseModel):
    id: int
    account_id: int
    plan: PlanTerms
    server_ref: str
    status: OrderStatus
    payment_method: PaymentMethod | None
    kind: OrderKind
    renews_service_id: int | None
    rejection_reason: str | None
    service_id: int | None
    created_at: datetime
    completed_at: datetime | None
    expires_at: datetime
    is_terminal: bool

    model_config = {"from_attributes": True}


class ServiceResponse(BaseModel):
    id: int
    account_id: int
    username: str
    plan_name: str
    data_limit_gb: int
    expires_at: datetime
    access_config: str
    status: ServiceStatus
    order_id: int
    server_ref: str
    created_at: datetime

    model_config = {"from_attributes": True}
