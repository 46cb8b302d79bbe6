from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from uuid import UUID, uuid4

from src.domain.enums.bargain_status import BargainStatus
from src.domain.enums.listing_availability import ListingAvailability
from src.domain.enums.order_status import DisputeStatus, OrderStatus, RefundStatus


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class DomainEvent:
    """Base class for all domain events."""

    event_id: UUID = field(default_factory=uuid4)
    occurred_at: datetime = field(default_factory=_utcnow)


@dataclass(frozen=True)
class ListingAvailabilityChangedEvent(DomainEvent):
    """Published when a listing is reserved or released."""

    listing_id: UUID = field(default_factory=uuid4)
    from_availability: ListingAvailability = ListingAvailability.ON_SALE
    to_availability: ListingAvailability = ListingAvailability.SOLD


@dataclass(frozen=True)
class OrderOpenedEvent(DomainEvent):
    """Published when a buyer commits to a listing."""

    order_id: UUID = field(default_factory=uuid4)
    order_no: str = ""
    listing_id: UUID = field(default_factory=uuid4)
    buyer_id: int = 0
    seller_id: int = 0
    price: Decimal = Decimal("0")
    bargain_id: UUID | None = None


@dataclass(frozen=True)
class OrderStatusChangedEvent(DomainEvent):
    """Published whenever an order's primary status changes."""

    order_id: UUID = field(default_factory=uuid4)
    from_status: OrderStatus | None = None
    to_status: OrderStatus = OrderStatus.PENDING
    triggered_by: str = ""
    actor_id: int | None = None


@dataclass(frozen=True)
class RefundStatusChangedEvent(DomainEvent):
    order_id: UUID = field(default_factory=uuid4)
    from_status: RefundStatus = RefundStatus.NONE
    to_status: RefundStatus = RefundStatus.APPLYING
    actor_id: int | None = None


@dataclass(frozen=True)
class DisputeStatusChangedEvent(DomainEvent):
    order_id: UUID = field(default_factory=uuid4)
    from_status: DisputeStatus = DisputeStatus.NONE
    to_status: DisputeStatus = DisputeStatus.APPLYING
    actor_id: int | None = None
    resolution: str | None = None


@dataclass(frozen=True)
class BargainStatusChangedEvent(DomainEvent):
    """Published when a bargain is proposed or resolved."""

    bargain_id: UUID = field(default_factory=uuid4)
    listing_id: UUID = field(default_factory=uuid4)
    from_status: BargainStatus | None = None
    to_status: BargainStatus = BargainStatus.PENDING
    actor_id: int = 0
