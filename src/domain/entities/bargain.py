from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from uuid import UUID, uuid4

from src.domain.entities.listing import Listing
from src.domain.enums.bargain_status import BargainStatus
from src.domain.errors import ForbiddenError, InvalidStateError
from src.domain.events.domain_events import BargainStatusChangedEvent, DomainEvent
from src.domain.state_machine.bargain_state_machine import BargainStateMachine

_state_machine = BargainStateMachine()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Bargain:
    """
    A price proposal from a prospective buyer to a listing's owner.

    Purely advisory: accepting it changes nothing on the listing. The buyer
    may later quote an accepted bargain when opening an order.
    """

    id: UUID = field(default_factory=uuid4)
    listing_id: UUID = field(default_factory=uuid4)
    bargainer_id: int = 0
    target_user_id: int = 0
    original_price: Decimal = Decimal("0")
    proposed_price: Decimal = Decimal("0")
    message: str | None = None
    status: BargainStatus = BargainStatus.PENDING
    order_id: UUID | None = None

    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    version: int = 0

    _events: list[DomainEvent] = field(default_factory=list, repr=False, compare=False)

    @classmethod
    def propose(
        cls,
        *,
        listing: Listing,
        bargainer_id: int,
        original_price: Decimal,
        proposed_price: Decimal,
        message: str | None = None,
    ) -> "Bargain":
        if listing.is_owned_by(bargainer_id):
            raise ForbiddenError("You cannot bargain on your own listing.")
        if original_price <= 0 or proposed_price <= 0:
            raise ValueError("Prices must be greater than zero.")

        bargain = cls(
            listing_id=listing.id,
            bargainer_id=bargainer_id,
            target_user_id=listing.seller_id,
            original_price=original_price,
            proposed_price=proposed_price,
            message=message,
        )
        bargain._events.append(
            BargainStatusChangedEvent(
                bargain_id=bargain.id,
                listing_id=bargain.listing_id,
                from_status=None,
                to_status=BargainStatus.PENDING,
                actor_id=bargainer_id,
            )
        )
        return bargain

    def accept(self, actor_id: int) -> None:
        if actor_id != self.target_user_id:
            raise ForbiddenError("Only the seller can accept a bargain.")
        self._transition_to(BargainStatus.ACCEPTED, actor_id)

    def reject(self, actor_id: int) -> None:
        if actor_id != self.target_user_id:
            raise ForbiddenError("Only the seller can reject a bargain.")
        self._transition_to(BargainStatus.REJECTED, actor_id)

    def cancel(self, actor_id: int) -> None:
        if actor_id != self.bargainer_id:
            raise ForbiddenError("Only the proposer can cancel a bargain.")
        self._transition_to(BargainStatus.CANCELLED, actor_id)

    def ensure_usable_for_order(self, listing_id: UUID, buyer_id: int) -> None:
        """Raise unless this bargain can fix the price of a new order."""
        if buyer_id != self.bargainer_id:
            raise ForbiddenError("Only the proposer can order at a bargained price.")
        if listing_id != self.listing_id:
            raise InvalidStateError("Bargain belongs to a different listing.")
        if self.status is not BargainStatus.ACCEPTED:
            raise InvalidStateError(f"Bargain is {self.status.value}, not ACCEPTED.")
        if self.order_id is not None:
            raise InvalidStateError("Bargain has already been used for an order.")

    def link_order(self, order_id: UUID) -> None:
        self.order_id = order_id
        self.updated_at = _utcnow()

    def _transition_to(self, new_status: BargainStatus, actor_id: int) -> None:
        _state_machine.validate_transition(self.status, new_status)
        old = self.status
        self.status = new_status
        self.updated_at = _utcnow()
        self._events.append(
            BargainStatusChangedEvent(
                bargain_id=self.id,
                listing_id=self.listing_id,
                from_status=old,
                to_status=new_status,
                actor_id=actor_id,
            )
        )

    def collect_events(self) -> list[DomainEvent]:
        events = list(self._events)
        self._events.clear()
        return events
