from dataclasses import dataclass
from uuid import UUID

import structlog

from src.application.interfaces.bargain_repository import BargainRepository
from src.application.interfaces.collaborators import Notifier
from src.application.interfaces.event_publisher import EventPublisher
from src.application.interfaces.order_history_repository import OrderHistoryRepository
from src.application.interfaces.order_repository import OrderRepository
from src.application.services.listing_availability import ListingAvailabilityService
from src.domain.entities.order import Order
from src.domain.enums.order_status import OrderStatus, TradeType
from src.domain.errors import BargainNotFoundError

logger = structlog.get_logger(__name__)


@dataclass
class OpenOrderInput:
    listing_id: UUID
    buyer_id: int
    trade_type: TradeType | None = None
    trade_location: str | None = None
    remark: str | None = None
    bargain_id: UUID | None = None


class OpenOrder:
    """
    Use case: a buyer commits to a listing.

    Reserves the listing (ON_SALE → SOLD) and creates a PENDING order in the
    same unit of work. When an accepted bargain is quoted, its proposed price
    becomes the order price and the bargain is linked to the order.
    """

    def __init__(
        self,
        listing_availability: ListingAvailabilityService,
        order_repo: OrderRepository,
        bargain_repo: BargainRepository,
        history_repo: OrderHistoryRepository,
        event_publisher: EventPublisher,
        notifier: Notifier,
    ) -> None:
        self._availability = listing_availability
        self._order_repo = order_repo
        self._bargain_repo = bargain_repo
        self._history_repo = history_repo
        self._event_publisher = event_publisher
        self._notifier = notifier

    async def execute(self, input_data: OpenOrderInput) -> Order:
        bargain = None
        if input_data.bargain_id is not None:
            bargain = await self._bargain_repo.get_by_id(input_data.bargain_id)
            if bargain is None:
                raise BargainNotFoundError(input_data.bargain_id)
            bargain.ensure_usable_for_order(input_data.listing_id, input_data.buyer_id)

        # May raise ListingNotFoundError / SelfTransactionError / ListingUnavailableError
        listing = await self._availability.reserve(input_data.listing_id, input_data.buyer_id)

        order = Order.open(
            listing=listing,
            buyer_id=input_data.buyer_id,
            trade_type=input_data.trade_type,
            trade_location=input_data.trade_location,
            remark=input_data.remark,
            agreed_price=bargain.proposed_price if bargain else None,
            bargain_id=bargain.id if bargain else None,
        )
        await self._order_repo.add(order)

        if bargain is not None:
            bargain.link_order(order.id)
            await self._bargain_repo.save(bargain)

        metadata: dict = {"order_no": order.order_no, "price": str(order.price)}  # type: ignore[type-arg]
        if bargain is not None:
            metadata["bargain_id"] = str(bargain.id)

        await self._history_repo.save(
            order_id=order.id,
            from_status=None,
            to_status=OrderStatus.PENDING,
            triggered_by="open",
            actor_id=input_data.buyer_id,
            metadata=metadata,
        )

        events = self._availability.collect_events() + order.collect_events()
        await self._event_publisher.publish_many(events)

        await self._notifier.notify(
            order.seller_id,
            "New order",
            f"Order {order.order_no} was placed on \"{listing.title}\" for {order.price}.",
            "ORDER",
            order.id,
        )

        logger.info(
            "order_opened",
            order_id=str(order.id),
            order_no=order.order_no,
            listing_id=str(order.listing_id),
            buyer_id=order.buyer_id,
            seller_id=order.seller_id,
            price=str(order.price),
        )
        return order
