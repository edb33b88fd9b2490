"""
Pydantic schemas for sweep results.
"""

from pydantic import BaseModel, Field


class SweepReport(BaseModel):
    """What a single sweep run changed and which steps failed."""
    expired_orders: list[int] = Field(default_factory=list)
    expired_charges: list[int] = Field(default_factory=list)
    expired_services: list[int] = Field(default_factory=list)
    warnings_sent: list[int] = Field(default_factory=list)
    expiry_notices_sent: list[int] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors
