from abc import ABC, abstractmethod
from uuid import UUID

from src.domain.entities.listing import Listing
from src.domain.enums.listing_availability import ListingAvailability


class ListingRepository(ABC):
    """Port for reading listings and switching their availability."""

    @abstractmethod
    async def get_by_id(self, listing_id: UUID) -> Listing | None:
        ...

    @abstractmethod
    async def compare_and_set_availability(
        self,
        listing_id: UUID,
        *,
        expected: ListingAvailability,
        new: ListingAvailability,
    ) -> bool:
        """
        Atomically set ``availability = new`` where it currently equals
        ``expected``. Return True if this call made the change.
        """
        ...
