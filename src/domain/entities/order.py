import secrets
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from uuid import UUID, uuid4

from src.domain.entities.listing import Listing
from src.domain.enums.order_status import (
    DisputeResolution,
    DisputeStatus,
    OrderStatus,
    RefundStatus,
    TradeType,
)
from src.domain.errors import ForbiddenError, InvalidStateError, SelfTransactionError
from src.domain.events.domain_events import (
    DisputeStatusChangedEvent,
    DomainEvent,
    OrderOpenedEvent,
    OrderStatusChangedEvent,
    RefundStatusChangedEvent,
)
from src.domain.state_machine.order_state_machine import OrderStateMachine

_state_machine = OrderStateMachine()

SYSTEM_TRIGGER = "expire"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def generate_order_no() -> str:
    """External order code: ``ORD`` + epoch millis + 8 random hex chars."""
    return f"ORD{int(time.time() * 1000)}{secrets.token_hex(4).upper()}"


@dataclass
class Order:
    """
    A buyer/seller transaction on a single listing.

    Every mutator checks the actor's role first, then the primary status, then
    the refund/dispute sub-states, and records domain events. Persisting the
    change atomically is the repository's job (see ``version``).
    """

    # Identity
    id: UUID = field(default_factory=uuid4)
    order_no: str = field(default_factory=generate_order_no)

    # Parties and terms (frozen at creation)
    listing_id: UUID = field(default_factory=uuid4)
    buyer_id: int = 0
    seller_id: int = 0
    price: Decimal = Decimal("0")
    bargain_id: UUID | None = None

    status: OrderStatus = OrderStatus.PENDING

    trade_type: TradeType = TradeType.OFFLINE
    trade_location: str | None = None
    remark: str | None = None

    # Refund sub-state
    refund_status: RefundStatus = RefundStatus.NONE
    refund_reason: str | None = None
    refund_time: datetime | None = None

    # Dispute sub-state
    dispute_status: DisputeStatus = DisputeStatus.NONE
    dispute_reason: str | None = None
    dispute_evidence: str | None = None
    dispute_resolution: DisputeResolution | None = None
    dispute_result: str | None = None
    dispute_time: datetime | None = None
    resolve_time: datetime | None = None

    # Timestamps
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    # Optimistic concurrency token, bumped by the repository on every save
    version: int = 0

    _events: list[DomainEvent] = field(default_factory=list, repr=False, compare=False)

    # -------------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------------

    @classmethod
    def open(
        cls,
        *,
        listing: Listing,
        buyer_id: int,
        trade_type: TradeType | None = None,
        trade_location: str | None = None,
        remark: str | None = None,
        agreed_price: Decimal | None = None,
        bargain_id: UUID | None = None,
    ) -> "Order":
        """
        Create a PENDING order from a listing that has already been reserved.

        The price is copied now and never re-read, so later edits to the
        listing cannot change what the buyer committed to.
        """
        if listing.is_owned_by(buyer_id):
            raise SelfTransactionError(listing.id)

        order = cls(
            listing_id=listing.id,
            buyer_id=buyer_id,
            seller_id=listing.seller_id,
            price=agreed_price if agreed_price is not None else listing.price,
            bargain_id=bargain_id,
            trade_type=trade_type or listing.trade_type,
            trade_location=trade_location if trade_location is not None else listing.trade_location,
            remark=remark,
        )
        order._events.append(
            OrderOpenedEvent(
                order_id=order.id,
                order_no=order.order_no,
                listing_id=order.listing_id,
                buyer_id=order.buyer_id,
                seller_id=order.seller_id,
                price=order.price,
                bargain_id=bargain_id,
            )
        )
        return order

    # -------------------------------------------------------------------------
    # Roles
    # -------------------------------------------------------------------------

    def is_party(self, user_id: int) -> bool:
        return user_id in (self.buyer_id, self.seller_id)

    def counterpart_of(self, user_id: int) -> int:
        return self.seller_id if user_id == self.buyer_id else self.buyer_id

    def _require_buyer(self, actor_id: int) -> None:
        if actor_id != self.buyer_id:
            raise ForbiddenError("Only the buyer can perform this action.")

    def _require_seller(self, actor_id: int) -> None:
        if actor_id != self.seller_id:
            raise ForbiddenError("Only the seller can perform this action.")

    def _require_party(self, actor_id: int) -> None:
        if not self.is_party(actor_id):
            raise ForbiddenError("You are not a party to this order.")

    def _require_status(self, *allowed: OrderStatus, action: str) -> None:
        if self.status not in allowed:
            raise InvalidStateError(
                f"Cannot {action} an order in status {self.status.value}; "
                f"requires {' or '.join(s.value for s in allowed)}."
            )

    # -------------------------------------------------------------------------
    # Primary status transitions
    # -------------------------------------------------------------------------

    def cancel(self, actor_id: int) -> None:
        self._require_party(actor_id)
        self._require_status(OrderStatus.PENDING, action="cancel")
        self._transition_to(OrderStatus.CANCELLED, triggered_by="cancel", actor_id=actor_id)

    def expire(self) -> None:
        """Cancel an abandoned unpaid order on behalf of the system."""
        self._require_status(OrderStatus.PENDING, action="expire")
        self._transition_to(OrderStatus.CANCELLED, triggered_by=SYSTEM_TRIGGER, actor_id=None)

    def pay(self, actor_id: int) -> None:
        self._require_buyer(actor_id)
        self._require_status(OrderStatus.PENDING, action="pay")
        self._transition_to(OrderStatus.PAID, triggered_by="pay", actor_id=actor_id)

    def ship(self, actor_id: int) -> None:
        self._require_seller(actor_id)
        self._require_status(OrderStatus.PAID, action="ship")
        self._transition_to(OrderStatus.SHIPPED, triggered_by="ship", actor_id=actor_id)

    def confirm_receipt(self, actor_id: int) -> None:
        self._require_buyer(actor_id)
        self._require_status(OrderStatus.SHIPPED, action="confirm receipt of")
        self._transition_to(OrderStatus.COMPLETED, triggered_by="confirm_receipt", actor_id=actor_id)

    # -------------------------------------------------------------------------
    # Refund sub-flow
    # -------------------------------------------------------------------------

    def apply_refund(self, actor_id: int, reason: str | None) -> None:
        self._require_buyer(actor_id)
        self._require_status(OrderStatus.PAID, OrderStatus.SHIPPED, action="request a refund for")
        if self.refund_status is RefundStatus.APPLYING:
            raise InvalidStateError("A refund request is already pending for this order.")
        if self.dispute_status.is_open:
            raise InvalidStateError("This order has a dispute in progress.")
        self.refund_reason = reason
        self._set_refund_status(RefundStatus.APPLYING, actor_id)

    def approve_refund(self, actor_id: int) -> None:
        self._require_seller(actor_id)
        self._require_refund_pending()
        self.refund_time = _utcnow()
        self._set_refund_status(RefundStatus.APPROVED, actor_id)
        self._transition_to(OrderStatus.CANCELLED, triggered_by="approve_refund", actor_id=actor_id)

    def reject_refund(self, actor_id: int) -> None:
        self._require_seller(actor_id)
        self._require_refund_pending()
        self._set_refund_status(RefundStatus.REJECTED, actor_id)

    def _require_refund_pending(self) -> None:
        if self.refund_status is not RefundStatus.APPLYING:
            raise InvalidStateError("This order has no pending refund request.")

    def _set_refund_status(self, new_status: RefundStatus, actor_id: int | None) -> None:
        old = self.refund_status
        self.refund_status = new_status
        self.updated_at = _utcnow()
        self._events.append(
            RefundStatusChangedEvent(
                order_id=self.id, from_status=old, to_status=new_status, actor_id=actor_id
            )
        )

    # -------------------------------------------------------------------------
    # Dispute sub-flow
    # -------------------------------------------------------------------------

    def apply_dispute(self, actor_id: int, reason: str | None, evidence: str | None) -> None:
        self._require_party(actor_id)
        self._require_status(
            OrderStatus.PAID, OrderStatus.SHIPPED, OrderStatus.COMPLETED, action="dispute"
        )
        if self.dispute_status.is_open:
            raise InvalidStateError("This order already has a dispute in progress.")
        self.dispute_reason = reason
        self.dispute_evidence = evidence
        self.dispute_resolution = None
        self.dispute_result = None
        self.resolve_time = None
        self.dispute_time = _utcnow()
        self._set_dispute_status(DisputeStatus.APPLYING, actor_id)

    def start_dispute_review(self, actor_id: int, *, is_moderator: bool) -> None:
        if not is_moderator:
            raise ForbiddenError("Only a moderator can review disputes.")
        if self.dispute_status is not DisputeStatus.APPLYING:
            raise InvalidStateError("This order has no dispute awaiting review.")
        self._set_dispute_status(DisputeStatus.PROCESSING, actor_id)

    def resolve_dispute(
        self,
        actor_id: int | None,
        *,
        is_moderator: bool,
        resolution: DisputeResolution,
        note: str | None = None,
    ) -> None:
        """
        Close an open dispute.

        REVERSE_SALE cancels the order (the caller releases the listing);
        UPHOLD_SALE leaves the primary status untouched. ``note`` is stored
        for audit only and never inspected.
        """
        if not is_moderator:
            raise ForbiddenError("Only a moderator can resolve disputes.")
        if not self.dispute_status.is_open:
            raise InvalidStateError("This order has no dispute to resolve.")

        self.dispute_resolution = resolution
        self.dispute_result = note
        self.resolve_time = _utcnow()
        self._set_dispute_status(DisputeStatus.RESOLVED, actor_id, resolution=resolution)

        if resolution is DisputeResolution.REVERSE_SALE:
            if self.refund_status is RefundStatus.APPLYING:
                self.refund_time = self.resolve_time
                self._set_refund_status(RefundStatus.APPROVED, actor_id)
            if self.status is not OrderStatus.CANCELLED:
                self._transition_to(
                    OrderStatus.CANCELLED, triggered_by="resolve_dispute", actor_id=actor_id
                )

    def _set_dispute_status(
        self,
        new_status: DisputeStatus,
        actor_id: int | None,
        resolution: DisputeResolution | None = None,
    ) -> None:
        old = self.dispute_status
        self.dispute_status = new_status
        self.updated_at = _utcnow()
        self._events.append(
            DisputeStatusChangedEvent(
                order_id=self.id,
                from_status=old,
                to_status=new_status,
                actor_id=actor_id,
                resolution=resolution.value if resolution else None,
            )
        )

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _transition_to(self, new_status: OrderStatus, triggered_by: str, actor_id: int | None) -> None:
        _state_machine.validate_transition(self.status, new_status)

        old_status = self.status
        self.status = new_status
        self.updated_at = _utcnow()

        self._events.append(
            OrderStatusChangedEvent(
                order_id=self.id,
                from_status=old_status,
                to_status=new_status,
                triggered_by=triggered_by,
                actor_id=actor_id,
            )
        )

    def collect_events(self) -> list[DomainEvent]:
        """Return pending events and clear the internal buffer."""
        events = list(self._events)
        self._events.clear()
        return events
