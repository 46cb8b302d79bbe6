"""Unit tests for the order and bargain state machines."""
import pytest

from src.domain.enums.bargain_status import BargainStatus
from src.domain.enums.order_status import OrderStatus
from src.domain.errors import InvalidStateError
from src.domain.state_machine.bargain_state_machine import (
    BargainStateMachine,
    InvalidBargainTransitionError,
)
from src.domain.state_machine.order_state_machine import (
    VALID_TRANSITIONS,
    InvalidOrderTransitionError,
    OrderStateMachine,
)


@pytest.fixture()
def sm() -> OrderStateMachine:
    return OrderStateMachine()


class TestValidTransitions:
    def test_pending_to_paid(self, sm: OrderStateMachine) -> None:
        assert sm.can_transition(OrderStatus.PENDING, OrderStatus.PAID) is True

    def test_pending_to_cancelled(self, sm: OrderStateMachine) -> None:
        assert sm.can_transition(OrderStatus.PENDING, OrderStatus.CANCELLED) is True

    def test_paid_to_shipped(self, sm: OrderStateMachine) -> None:
        assert sm.can_transition(OrderStatus.PAID, OrderStatus.SHIPPED) is True

    def test_paid_to_cancelled_via_refund(self, sm: OrderStateMachine) -> None:
        assert sm.can_transition(OrderStatus.PAID, OrderStatus.CANCELLED) is True

    def test_shipped_to_completed(self, sm: OrderStateMachine) -> None:
        assert sm.can_transition(OrderStatus.SHIPPED, OrderStatus.COMPLETED) is True

    def test_completed_to_cancelled_via_reversal(self, sm: OrderStateMachine) -> None:
        assert sm.can_transition(OrderStatus.COMPLETED, OrderStatus.CANCELLED) is True


class TestInvalidTransitions:
    def test_pending_cannot_skip_to_shipped(self, sm: OrderStateMachine) -> None:
        assert sm.can_transition(OrderStatus.PENDING, OrderStatus.SHIPPED) is False

    def test_paid_cannot_go_back_to_pending(self, sm: OrderStateMachine) -> None:
        assert sm.can_transition(OrderStatus.PAID, OrderStatus.PENDING) is False

    def test_completed_cannot_reopen(self, sm: OrderStateMachine) -> None:
        assert sm.can_transition(OrderStatus.COMPLETED, OrderStatus.SHIPPED) is False

    @pytest.mark.parametrize("target", list(OrderStatus))
    def test_cancelled_is_terminal(self, sm: OrderStateMachine, target: OrderStatus) -> None:
        assert sm.can_transition(OrderStatus.CANCELLED, target) is False

    def test_validate_raises_invalid_state(self, sm: OrderStateMachine) -> None:
        with pytest.raises(InvalidOrderTransitionError) as exc_info:
            sm.validate_transition(OrderStatus.CANCELLED, OrderStatus.PAID)
        assert isinstance(exc_info.value, InvalidStateError)
        assert exc_info.value.from_status is OrderStatus.CANCELLED

    def test_error_lists_allowed_targets(self, sm: OrderStateMachine) -> None:
        with pytest.raises(InvalidOrderTransitionError, match="PAID"):
            sm.validate_transition(OrderStatus.PENDING, OrderStatus.COMPLETED)


class TestAllowedTransitions:
    def test_pending_allowed(self, sm: OrderStateMachine) -> None:
        assert VALID_TRANSITIONS[OrderStatus.PENDING] == {
            OrderStatus.PAID,
            OrderStatus.CANCELLED,
        }

    def test_cancelled_has_none(self, sm: OrderStateMachine) -> None:
        assert VALID_TRANSITIONS[OrderStatus.CANCELLED] == frozenset()


class TestBargainStateMachine:
    @pytest.mark.parametrize(
        "target", [BargainStatus.ACCEPTED, BargainStatus.REJECTED, BargainStatus.CANCELLED]
    )
    def test_pending_resolves_to_any_terminal(self, target: BargainStatus) -> None:
        assert BargainStateMachine().can_transition(BargainStatus.PENDING, target) is True

    def test_accepted_cannot_be_cancelled(self) -> None:
        with pytest.raises(InvalidBargainTransitionError):
            BargainStateMachine().validate_transition(
                BargainStatus.ACCEPTED, BargainStatus.CANCELLED
            )
