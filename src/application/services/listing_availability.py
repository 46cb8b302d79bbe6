from uuid import UUID

import structlog

from src.application.interfaces.listing_repository import ListingRepository
from src.domain.entities.listing import Listing
from src.domain.enums.listing_availability import ListingAvailability
from src.domain.errors import ListingNotFoundError, ListingUnavailableError
from src.domain.events.domain_events import DomainEvent, ListingAvailabilityChangedEvent

logger = structlog.get_logger(__name__)


class ListingAvailabilityService:
    """
    Owns a listing's sale status while an order is attached to it.

    ``reserve`` and ``release`` are single compare-and-set writes, so two
    buyers racing for one listing cannot both win. Both run inside the
    caller's unit of work and roll back with it.
    """

    def __init__(self, listing_repo: ListingRepository) -> None:
        self._listing_repo = listing_repo
        self._events: list[DomainEvent] = []

    async def reserve(self, listing_id: UUID, buyer_id: int) -> Listing:
        listing = await self._listing_repo.get_by_id(listing_id)
        if listing is None:
            raise ListingNotFoundError(listing_id)

        # Raises SelfTransactionError / ListingUnavailableError
        listing.ensure_reservable_by(buyer_id)

        won = await self._listing_repo.compare_and_set_availability(
            listing_id,
            expected=ListingAvailability.ON_SALE,
            new=ListingAvailability.SOLD,
        )
        if not won:
            logger.info("listing_reservation_lost", listing_id=str(listing_id), buyer_id=buyer_id)
            raise ListingUnavailableError(listing_id, "Listing was just reserved by another buyer.")

        listing.apply_availability(ListingAvailability.SOLD)
        self._events.extend(listing.collect_events())
        logger.info("listing_reserved", listing_id=str(listing_id), buyer_id=buyer_id)
        return listing

    async def release(self, listing_id: UUID) -> bool:
        """Put a SOLD listing back on sale. Any other state is left alone."""
        released = await self._listing_repo.compare_and_set_availability(
            listing_id,
            expected=ListingAvailability.SOLD,
            new=ListingAvailability.ON_SALE,
        )
        if released:
            self._events.append(
                ListingAvailabilityChangedEvent(
                    listing_id=listing_id,
                    from_availability=ListingAvailability.SOLD,
                    to_availability=ListingAvailability.ON_SALE,
                )
            )
            logger.info("listing_released", listing_id=str(listing_id))
        else:
            logger.debug("listing_release_noop", listing_id=str(listing_id))
        return released

    def collect_events(self) -> list[DomainEvent]:
        events = list(self._events)
        self._events.clear()
        return events
