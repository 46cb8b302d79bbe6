import math
from dataclasses import dataclass
from uuid import UUID

import structlog

from src.application.interfaces.collaborators import UserDirectory
from src.application.interfaces.listing_repository import ListingRepository
from src.application.interfaces.order_repository import (
    OrderRepository,
    OrderRole,
    OrderStatistics,
)
from src.domain.entities.order import Order
from src.domain.enums.order_status import OrderStatus
from src.domain.errors import ForbiddenError, OrderNotFoundError

logger = structlog.get_logger(__name__)


@dataclass
class OrderView:
    """An order enriched with display data. Enrichment is best-effort."""

    order: Order
    listing_title: str | None = None
    buyer_name: str | None = None
    seller_name: str | None = None


@dataclass
class OrderPage:
    items: list[OrderView]
    page: int
    page_size: int
    total: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.page_size) if self.page_size else 0


class OrderViewBuilder:
    """Decorates orders with listing titles and party display names."""

    def __init__(self, listing_repo: ListingRepository, user_directory: UserDirectory) -> None:
        self._listing_repo = listing_repo
        self._user_directory = user_directory

    async def build(self, order: Order) -> OrderView:
        listing = await self._listing_repo.get_by_id(order.listing_id)
        buyer = await self._user_directory.get_user(order.buyer_id)
        seller = await self._user_directory.get_user(order.seller_id)
        return OrderView(
            order=order,
            listing_title=listing.title if listing else None,
            buyer_name=buyer.display_name if buyer else None,
            seller_name=seller.display_name if seller else None,
        )


class GetOrder:
    """Use case: order detail, visible to its parties and to moderators."""

    def __init__(self, order_repo: OrderRepository, view_builder: OrderViewBuilder) -> None:
        self._order_repo = order_repo
        self._view_builder = view_builder

    async def execute(self, order_id: UUID, actor_id: int, *, is_moderator: bool = False) -> OrderView:
        order = await self._order_repo.get_by_id(order_id)
        if order is None:
            raise OrderNotFoundError(order_id)
        if not (is_moderator or order.is_party(actor_id)):
            raise ForbiddenError("You are not allowed to view this order.")
        return await self._view_builder.build(order)


class ListOrders:
    """Use case: paginated orders of a user, as buyer, seller or either."""

    def __init__(self, order_repo: OrderRepository, view_builder: OrderViewBuilder) -> None:
        self._order_repo = order_repo
        self._view_builder = view_builder

    async def execute(
        self,
        user_id: int,
        *,
        role: OrderRole = OrderRole.ANY,
        status: OrderStatus | None = None,
        page: int = 1,
        page_size: int = 10,
    ) -> OrderPage:
        orders, total = await self._order_repo.list_for_user(
            user_id,
            role=role,
            status=status,
            limit=page_size,
            offset=(page - 1) * page_size,
        )
        items = [await self._view_builder.build(order) for order in orders]
        return OrderPage(items=items, page=page, page_size=page_size, total=total)


class GetOrderStatistics:
    def __init__(self, order_repo: OrderRepository) -> None:
        self._order_repo = order_repo

    async def execute(self, user_id: int) -> OrderStatistics:
        return await self._order_repo.statistics_for_user(user_id)
