from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field

from src.domain.enums.order_status import (
    DisputeResolution,
    DisputeStatus,
    OrderStatus,
    RefundStatus,
    TradeType,
)


class OpenOrderRequest(BaseModel):
    listing_id: UUID
    trade_type: TradeType | None = None
    trade_location: str | None = Field(default=None, max_length=256)
    remark: str | None = None
    bargain_id: UUID | None = None


class ReasonRequest(BaseModel):
    reason: str | None = None


class DisputeRequest(BaseModel):
    reason: str = Field(min_length=1)
    evidence: str | None = None


class ResolveDisputeRequest(BaseModel):
    resolution: DisputeResolution
    note: str | None = None


class OrderResponse(BaseModel):
    id: UUID
    order_no: str
    listing_id: UUID
    listing_title: str | None = None
    buyer_id: int
    buyer_name: str | None = None
    seller_id: int
    seller_name: str | None = None
    price: Decimal
    bargain_id: UUID | None = None
    status: OrderStatus
    trade_type: TradeType
    trade_location: str | None = None
    remark: str | None = None
    refund_status: RefundStatus
    refund_reason: str | None = None
    refund_time: datetime | None = None
    dispute_status: DisputeStatus
    dispute_reason: str | None = None
    dispute_evidence: str | None = None
    dispute_resolution: DisputeResolution | None = None
    dispute_result: str | None = None
    dispute_time: datetime | None = None
    resolve_time: datetime | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class PaginatedOrdersResponse(BaseModel):
    orders: list[OrderResponse]
    total: int
    page: int
    page_size: int
    total_pages: int


class OrderStatisticsResponse(BaseModel):
    total_count: int
    pending_count: int
    paid_count: int
    shipped_count: int
    completed_count: int
    cancelled_count: int
    refunding_count: int
    disputing_count: int
    buyer_count: int
    seller_count: int
    total_amount: Decimal

    model_config = {"from_attributes": True}


class OrderHistoryEntryResponse(BaseModel):
    id: UUID
    from_status: OrderStatus | None
    to_status: OrderStatus
    transitioned_at: datetime
    triggered_by: str
    actor_id: int | None = None
    metadata: dict  # type: ignore[type-arg]


class OrderHistoryResponse(BaseModel):
    order_id: UUID
    history: list[OrderHistoryEntryResponse]


class SweepResponse(BaseModel):
    examined: int
    cancelled: int
    skipped: int
    cancelled_order_ids: list[UUID]
