"""Application DTOs for rider dispatch."""

from pydantic import BaseModel, Field

from market_core.domain.entities import RiderLoad


class RiderLoadDTO(BaseModel):
    rider_id: str
    name: str
    active_orders: int = Field(..., ge=0)
    available: bool = Field(..., description="Below the concurrent-load ceiling")

    model_config = {"frozen": True}

    @classmethod
    def from_entity(cls, rider: RiderLoad, max_active_orders: int) -> "RiderLoadDTO":
        return cls(
            rider_id=rider.rider_id,
            name=rider.name,
            active_orders=rider.active_orders,
            available=rider.active_orders < max_active_orders,
        )
