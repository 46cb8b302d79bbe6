from src.domain.enums.order_status import OrderStatus
from src.domain.errors import InvalidStateError

# Mapping of valid transitions: from_status -> set of allowed to_statuses.
# CANCELLED is reachable from PAID/SHIPPED only through an approved refund,
# and from COMPLETED only through a dispute resolved as REVERSE_SALE.
VALID_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.PAID, OrderStatus.CANCELLED}),
    OrderStatus.PAID: frozenset({OrderStatus.SHIPPED, OrderStatus.CANCELLED}),
    OrderStatus.SHIPPED: frozenset({OrderStatus.COMPLETED, OrderStatus.CANCELLED}),
    OrderStatus.COMPLETED: frozenset({OrderStatus.CANCELLED}),
    OrderStatus.CANCELLED: frozenset(),
}


class InvalidOrderTransitionError(InvalidStateError):
    """Raised when an invalid order status transition is attempted."""

    def __init__(self, from_status: OrderStatus, to_status: OrderStatus) -> None:
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(
            f"Invalid transition from {from_status.value} to {to_status.value}. "
            f"Allowed transitions: {sorted(s.value for s in VALID_TRANSITIONS.get(from_status, frozenset()))}"
        )


class OrderStateMachine:
    """
    Validates primary status transitions for orders.

    Stateless: call validate_transition() with explicit statuses. Role and
    refund/dispute sub-state guards live on the Order entity.
    """

    def can_transition(self, from_status: OrderStatus, to_status: OrderStatus) -> bool:
        """Return True if transitioning from_status → to_status is permitted."""
        return to_status in VALID_TRANSITIONS.get(from_status, frozenset())

    def validate_transition(self, from_status: OrderStatus, to_status: OrderStatus) -> None:
        """Raise InvalidOrderTransitionError if the transition is not permitted."""
        if not self.can_transition(from_status, to_status):
            raise InvalidOrderTransitionError(from_status, to_status)

