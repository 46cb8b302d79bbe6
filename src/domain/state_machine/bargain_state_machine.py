from src.domain.enums.bargain_status import BargainStatus
from src.domain.errors import InvalidStateError

VALID_TRANSITIONS: dict[BargainStatus, frozenset[BargainStatus]] = {
    BargainStatus.PENDING: frozenset(
        {BargainStatus.ACCEPTED, BargainStatus.REJECTED, BargainStatus.CANCELLED}
    ),
    # Terminal states: no outgoing transitions
    BargainStatus.ACCEPTED: frozenset(),
    BargainStatus.REJECTED: frozenset(),
    BargainStatus.CANCELLED: frozenset(),
}


class InvalidBargainTransitionError(InvalidStateError):
    def __init__(self, from_status: BargainStatus, to_status: BargainStatus) -> None:
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(
            f"Bargain is already {from_status.value}; cannot move to {to_status.value}."
        )


class BargainStateMachine:
    """Validates negotiation status transitions."""

    def can_transition(self, from_status: BargainStatus, to_status: BargainStatus) -> bool:
        if from_status.is_terminal:
            return False
        return to_status in VALID_TRANSITIONS.get(from_status, frozenset())

    def validate_transition(self, from_status: BargainStatus, to_status: BargainStatus) -> None:
        if not self.can_transition(from_status, to_status):
            raise InvalidBargainTransitionError(from_status, to_status)
