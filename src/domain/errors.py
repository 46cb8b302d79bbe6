"""Typed failures raised by the marketplace core.

The request layer maps each family to a user-facing response; the expiry
sweep is the only caller that catches and skips them.
"""
from uuid import UUID


class MarketplaceError(Exception):
    """Base class for all lifecycle failures."""

    kind = "marketplace_error"


class NotFoundError(MarketplaceError):
    kind = "not_found"


class ListingNotFoundError(NotFoundError):
    def __init__(self, listing_id: UUID) -> None:
        self.listing_id = listing_id
        super().__init__(f"Listing {listing_id} not found.")


class OrderNotFoundError(NotFoundError):
    def __init__(self, order_id: UUID) -> None:
        self.order_id = order_id
        super().__init__(f"Order {order_id} not found.")


class BargainNotFoundError(NotFoundError):
    def __init__(self, bargain_id: UUID) -> None:
        self.bargain_id = bargain_id
        super().__init__(f"Bargain {bargain_id} not found.")


class ForbiddenError(MarketplaceError):
    """The actor lacks the role required for the action."""

    kind = "forbidden"


class InvalidStateError(MarketplaceError):
    """The action is not valid from the current status or sub-state."""

    kind = "invalid_state"


class StaleStateError(InvalidStateError):
    """Another writer changed the record between read and write."""

    def __init__(self, entity: str, entity_id: UUID) -> None:
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} was modified concurrently; reload and retry.")


class ListingUnavailableError(MarketplaceError):
    """The listing is not on sale, or another buyer reserved it first."""

    kind = "listing_unavailable"

    def __init__(self, listing_id: UUID, reason: str = "Listing is not on sale.") -> None:
        self.listing_id = listing_id
        super().__init__(reason)


class SelfTransactionError(MarketplaceError):
    kind = "self_transaction"

    def __init__(self, listing_id: UUID) -> None:
        self.listing_id = listing_id
        super().__init__("You cannot transact on your own listing.")
