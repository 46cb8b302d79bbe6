from enum import Enum


class BargainStatus(str, Enum):
    """All possible states of a price negotiation."""

    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"

    @property
    def is_terminal(self) -> bool:
        return self is not BargainStatus.PENDING


class BargainAction(str, Enum):
    """Responses to a pending bargain."""

    ACCEPT = "ACCEPT"
    REJECT = "REJECT"
    CANCEL = "CANCEL"
