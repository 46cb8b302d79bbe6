from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from uuid import UUID, uuid4

from src.domain.enums.listing_availability import ListingAvailability
from src.domain.enums.order_status import TradeType
from src.domain.errors import ListingUnavailableError, SelfTransactionError
from src.domain.events.domain_events import DomainEvent, ListingAvailabilityChangedEvent


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Listing:
    """
    A posted item as seen by the transaction core.

    Only ``availability`` is written here; title, price and trade details are
    owned by listing management and read at reservation time.
    """

    id: UUID = field(default_factory=uuid4)
    seller_id: int = 0
    title: str = ""
    price: Decimal = Decimal("0")
    availability: ListingAvailability = ListingAvailability.ON_SALE
    trade_type: TradeType = TradeType.OFFLINE
    trade_location: str | None = None

    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    _events: list[DomainEvent] = field(default_factory=list, repr=False, compare=False)

    def is_owned_by(self, user_id: int) -> bool:
        return self.seller_id == user_id

    def ensure_reservable_by(self, buyer_id: int) -> None:
        """Raise unless ``buyer_id`` may open an order on this listing right now."""
        if self.is_owned_by(buyer_id):
            raise SelfTransactionError(self.id)
        if not self.availability.is_reservable:
            raise ListingUnavailableError(
                self.id, f"Listing is {self.availability.value}, not on sale."
            )

    def apply_availability(self, new_availability: ListingAvailability) -> None:
        """Mirror a persisted availability change and record the event."""
        old = self.availability
        self.availability = new_availability
        self.updated_at = _utcnow()
        self._events.append(
            ListingAvailabilityChangedEvent(
                listing_id=self.id,
                from_availability=old,
                to_availability=new_availability,
            )
        )

    def collect_events(self) -> list[DomainEvent]:
        events = list(self._events)
        self._events.clear()
        return events
