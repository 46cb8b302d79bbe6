from collections.abc import Callable
from dataclasses import dataclass
from uuid import UUID

import structlog

from src.application.interfaces.collaborators import Notifier
from src.application.interfaces.event_publisher import EventPublisher
from src.application.interfaces.order_history_repository import OrderHistoryRepository
from src.application.interfaces.order_repository import OrderRepository
from src.application.services.listing_availability import ListingAvailabilityService
from src.domain.entities.order import Order
from src.domain.enums.order_action import OrderAction
from src.domain.enums.order_status import DisputeResolution, OrderStatus
from src.domain.errors import InvalidStateError, OrderNotFoundError

logger = structlog.get_logger(__name__)


@dataclass
class TransitionOrderInput:
    order_id: UUID
    action: OrderAction
    actor_id: int | None = None
    is_moderator: bool = False
    reason: str | None = None
    evidence: str | None = None
    resolution: DisputeResolution | None = None
    note: str | None = None


@dataclass
class TransitionOrderOutput:
    order: Order
    from_status: OrderStatus
    to_status: OrderStatus
    listing_released: bool


def _resolve(order: Order, data: TransitionOrderInput) -> None:
    if data.resolution is None:
        raise InvalidStateError("A dispute resolution (REVERSE_SALE or UPHOLD_SALE) is required.")
    order.resolve_dispute(
        data.actor_id,
        is_moderator=data.is_moderator,
        resolution=data.resolution,
        note=data.note,
    )


_HANDLERS: dict[OrderAction, Callable[[Order, TransitionOrderInput], None]] = {
    OrderAction.CANCEL: lambda o, d: o.cancel(d.actor_id),
    OrderAction.EXPIRE: lambda o, d: o.expire(),
    OrderAction.PAY: lambda o, d: o.pay(d.actor_id),
    OrderAction.SHIP: lambda o, d: o.ship(d.actor_id),
    OrderAction.CONFIRM_RECEIPT: lambda o, d: o.confirm_receipt(d.actor_id),
    OrderAction.APPLY_REFUND: lambda o, d: o.apply_refund(d.actor_id, d.reason),
    OrderAction.APPROVE_REFUND: lambda o, d: o.approve_refund(d.actor_id),
    OrderAction.REJECT_REFUND: lambda o, d: o.reject_refund(d.actor_id),
    OrderAction.APPLY_DISPUTE: lambda o, d: o.apply_dispute(d.actor_id, d.reason, d.evidence),
    OrderAction.REVIEW_DISPUTE: lambda o, d: o.start_dispute_review(
        d.actor_id, is_moderator=d.is_moderator
    ),
    OrderAction.RESOLVE_DISPUTE: _resolve,
}

# (title, body template) sent to the counterpart, or to both parties when the
# actor is a moderator or the system.
_NOTIFICATIONS: dict[OrderAction, tuple[str, str]] = {
    OrderAction.CANCEL: ("Order cancelled", "Order {order_no} was cancelled."),
    OrderAction.EXPIRE: ("Order expired", "Order {order_no} was cancelled because it was not paid in time."),
    OrderAction.PAY: ("Order paid", "Order {order_no} has been paid. Please ship the item."),
    OrderAction.SHIP: ("Order shipped", "Order {order_no} has been shipped."),
    OrderAction.CONFIRM_RECEIPT: ("Order completed", "The buyer confirmed receipt of order {order_no}."),
    OrderAction.APPLY_REFUND: ("Refund requested", "The buyer requested a refund for order {order_no}."),
    OrderAction.APPROVE_REFUND: ("Refund approved", "Your refund for order {order_no} was approved."),
    OrderAction.REJECT_REFUND: ("Refund rejected", "Your refund for order {order_no} was rejected."),
    OrderAction.APPLY_DISPUTE: ("Dispute opened", "A dispute was opened on order {order_no}."),
    OrderAction.REVIEW_DISPUTE: ("Dispute under review", "A moderator is reviewing the dispute on order {order_no}."),
    OrderAction.RESOLVE_DISPUTE: ("Dispute resolved", "The dispute on order {order_no} was resolved: {resolution}."),
}


class TransitionOrder:
    """
    Use case: apply one lifecycle action to an existing order.

    The entity enforces role and state guards; the repository's version check
    makes read-check-write atomic. If the order ends up CANCELLED the listing
    is released in the same unit of work, then history, events and
    notifications follow.
    """

    def __init__(
        self,
        order_repo: OrderRepository,
        listing_availability: ListingAvailabilityService,
        history_repo: OrderHistoryRepository,
        event_publisher: EventPublisher,
        notifier: Notifier,
    ) -> None:
        self._order_repo = order_repo
        self._availability = listing_availability
        self._history_repo = history_repo
        self._event_publisher = event_publisher
        self._notifier = notifier

    async def execute(self, input_data: TransitionOrderInput) -> TransitionOrderOutput:
        order = await self._order_repo.get_by_id(input_data.order_id)
        if order is None:
            raise OrderNotFoundError(input_data.order_id)

        from_status = order.status

        # Raises ForbiddenError or InvalidStateError
        _HANDLERS[input_data.action](order, input_data)

        # Raises StaleStateError if a concurrent writer got there first
        await self._order_repo.save(order)

        listing_released = False
        if order.status is OrderStatus.CANCELLED and from_status is not OrderStatus.CANCELLED:
            listing_released = await self._availability.release(order.listing_id)

        metadata: dict = {  # type: ignore[type-arg]
            "refund_status": order.refund_status.value,
            "dispute_status": order.dispute_status.value,
        }
        if input_data.reason:
            metadata["reason"] = input_data.reason
        if input_data.resolution:
            metadata["resolution"] = input_data.resolution.value
        if input_data.note:
            metadata["note"] = input_data.note

        await self._history_repo.save(
            order_id=order.id,
            from_status=from_status,
            to_status=order.status,
            triggered_by=input_data.action.value.lower(),
            actor_id=input_data.actor_id,
            metadata=metadata,
        )

        events = order.collect_events() + self._availability.collect_events()
        await self._event_publisher.publish_many(events)

        await self._notify(order, input_data)

        logger.info(
            "order_transitioned",
            order_id=str(order.id),
            action=input_data.action.value,
            actor_id=input_data.actor_id,
            from_status=from_status.value,
            to_status=order.status.value,
            refund_status=order.refund_status.value,
            dispute_status=order.dispute_status.value,
            listing_released=listing_released,
        )

        return TransitionOrderOutput(
            order=order,
            from_status=from_status,
            to_status=order.status,
            listing_released=listing_released,
        )

    async def _notify(self, order: Order, input_data: TransitionOrderInput) -> None:
        title, template = _NOTIFICATIONS[input_data.action]
        body = template.format(
            order_no=order.order_no,
            resolution=input_data.resolution.value if input_data.resolution else "",
        )
        if input_data.actor_id is not None and order.is_party(input_data.actor_id):
            recipients = [order.counterpart_of(input_data.actor_id)]
        else:
            recipients = [order.buyer_id, order.seller_id]

        for user_id in recipients:
            await self._notifier.notify(user_id, title, body, "ORDER", order.id)
