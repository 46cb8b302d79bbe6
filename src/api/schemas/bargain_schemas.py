from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field

from src.domain.enums.bargain_status import BargainStatus


class ProposeBargainRequest(BaseModel):
    listing_id: UUID
    original_price: Decimal = Field(gt=0)
    proposed_price: Decimal = Field(gt=0)
    message: str | None = Field(default=None, max_length=500)


class BargainResponse(BaseModel):
    id: UUID
    listing_id: UUID
    bargainer_id: int
    target_user_id: int
    original_price: Decimal
    proposed_price: Decimal
    message: str | None = None
    status: BargainStatus
    order_id: UUID | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class PaginatedBargainsResponse(BaseModel):
    bargains: list[BargainResponse]
    total: int
    page: int
    page_size: int
