from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel

from src.domain.enums.listing_availability import ListingAvailability
from src.domain.enums.order_status import TradeType


class ListingAvailabilityResponse(BaseModel):
    id: UUID
    seller_id: int
    title: str
    price: Decimal
    availability: ListingAvailability
    trade_type: TradeType
    trade_location: str | None = None
    updated_at: datetime

    model_config = {"from_attributes": True}
