from enum import Enum


class ListingAvailability(str, Enum):
    """Sale status of a listing."""

    DRAFT = "DRAFT"
    ON_SALE = "ON_SALE"
    SOLD = "SOLD"
    OFF_SHELF = "OFF_SHELF"
    DELETED = "DELETED"

    @property
    def is_reservable(self) -> bool:
        """Only listings on sale can be reserved by a buyer."""
        return self is ListingAvailability.ON_SALE
