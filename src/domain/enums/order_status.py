from enum import Enum


class OrderStatus(str, Enum):
    """Primary states of an order."""

    PENDING = "PENDING"
    PAID = "PAID"
    SHIPPED = "SHIPPED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"

    @property
    def is_terminal(self) -> bool:
        return self in (OrderStatus.COMPLETED, OrderStatus.CANCELLED)


class RefundStatus(str, Enum):
    NONE = "NONE"
    APPLYING = "APPLYING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class DisputeStatus(str, Enum):
    NONE = "NONE"
    APPLYING = "APPLYING"
    PROCESSING = "PROCESSING"
    RESOLVED = "RESOLVED"

    @property
    def is_open(self) -> bool:
        """A dispute is open until a moderator resolves it."""
        return self in (DisputeStatus.APPLYING, DisputeStatus.PROCESSING)


class DisputeResolution(str, Enum):
    """Outcome chosen by the moderator when closing a dispute."""

    REVERSE_SALE = "REVERSE_SALE"
    UPHOLD_SALE = "UPHOLD_SALE"


class TradeType(str, Enum):
    ONLINE = "ONLINE"
    OFFLINE = "OFFLINE"
