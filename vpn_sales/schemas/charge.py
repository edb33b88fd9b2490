"""
Pydantic schemas for wallet charges.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from vpn_sales.models.enums import ChargeStatus


class ChargeCreate(BaseModel):
    account_id: int
    amount: Decimal = Field(gt=0, decimal_places=4)


class ChargeStatusUpdate(BaseModel):
    """The only fields a status transition may write on a charge."""
    status: ChargeStatus
    completed_at: datetime | None = None
    evidence: str | None = None
    rejection_reason: str | None = None
    expires_at: datetime | None = None

    model_config = {"extra": "forbid"}

    def column_values(self) -> dict:
        return self.model_dump(exclude_unset=True)


class ChargeResponse(BaseModel):
    id: int
    account_id: int
    amount: Decimal
    status: ChargeStatus
    rejection_reason: str | None
    created_at: datetime
    expires_at: datetime
    completed_at: datetime | None

    model_config = {"from_attributes": True}
