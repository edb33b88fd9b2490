"""
Plan terms value object.

Orders store a snapshot of the plan they were created for.
The snapshot is written as JSON with a schema version so that
older rows can still be read after the shape changes.
"""

from decimal import Decimal

from pydantic import BaseModel, Field

PLAN_SCHEMA_VERSION = 1


class PlanTerms(BaseModel):
    """Immutable copy of a plan's commercial terms."""
    plan_id: str = Field(min_length=1, max_length=64)
    name: str = Field(min_length=1, max_length=100)
    price: Decimal = Field(ge=0, decimal_places=4)
    duration_days: int = Field(gt=0, le=3650)
    # 0 means unlimited traffic
    data_limit_gb: int = Field(default=0, ge=0)

    model_config = {"frozen": True, "extra": "forbid"}

    def to_snapshot(self) -> dict:
        data = self.model_dump(mode="json")
        data["schema_version"] = PLAN_SCHEMA_VERSION
        return data

    @classmethod
    def from_snapshot(cls, data: dict) -> "PlanTerms":
        payload = dict(data)
        version = payload.pop("schema_version", PLAN_SCHEMA_VERSION)
        if version > PLAN_SCHEMA_VERSION:
            raise ValueError(f"Unsupported plan snapshot version {version}")
        return cls.model_validate(payload)
