"""Tests for the read side: order detail, listing, history and statistics."""
from decimal import Decimal
from uuid import uuid4

import pytest

from src.application.interfaces.order_repository import OrderRole
from src.application.use_cases.get_order_history import GetOrderHistory, GetOrderHistoryInput
from src.application.use_cases.list_bargains import ListBargains
from src.application.use_cases.order_queries import (
    GetOrder,
    GetOrderStatistics,
    ListOrders,
    OrderPage,
    OrderViewBuilder,
)
from src.domain.entities.bargain import Bargain
from src.domain.entities.listing import Listing
from src.domain.entities.order import Order
from src.domain.enums.order_status import OrderStatus
from src.domain.errors import ForbiddenError, OrderNotFoundError
from tests.fakes import (
    InMemoryBargainRepository,
    InMemoryListingRepository,
    InMemoryOrderHistoryRepository,
    InMemoryOrderRepository,
    StaticUserDirectory,
)

SELLER = 1
BUYER = 2
STRANGER = 3


@pytest.fixture
def listing_repo() -> InMemoryListingRepository:
    return InMemoryListingRepository()


@pytest.fixture
def order_repo() -> InMemoryOrderRepository:
    return InMemoryOrderRepository()


@pytest.fixture
def view_builder(listing_repo: InMemoryListingRepository) -> OrderViewBuilder:
    return OrderViewBuilder(listing_repo, StaticUserDirectory({SELLER: "sam", BUYER: "bea"}))


async def _seed(
    listing_repo: InMemoryListingRepository,
    order_repo: InMemoryOrderRepository,
    *,
    price: str = "20",
    status: OrderStatus = OrderStatus.PENDING,
    buyer_id: int = BUYER,
) -> Order:
    listing = Listing(seller_id=SELLER, title="Desk lamp", price=Decimal(price))
    await listing_repo.add(listing)
    order = Order.open(listing=listing, buyer_id=buyer_id)
    order.status = status
    await order_repo.add(order)
    return order


class TestGetOrder:
    @pytest.mark.asyncio
    async def test_party_sees_enriched_view(self, listing_repo, order_repo, view_builder) -> None:
        order = await _seed(listing_repo, order_repo)

        view = await GetOrder(order_repo, view_builder).execute(order.id, BUYER)

        assert view.order.id == order.id
        assert view.listing_title == "Desk lamp"
        assert (view.buyer_name, view.seller_name) == ("bea", "sam")

    @pytest.mark.asyncio
    async def test_unknown_user_leaves_name_empty(self, listing_repo, order_repo) -> None:
        order = await _seed(listing_repo, order_repo)
        builder = OrderViewBuilder(listing_repo, StaticUserDirectory({}))

        view = await GetOrder(order_repo, builder).execute(order.id, SELLER)

        assert view.buyer_name is None
        assert view.listing_title == "Desk lamp"

    @pytest.mark.asyncio
    async def test_stranger_is_forbidden(self, listing_repo, order_repo, view_builder) -> None:
        order = await _seed(listing_repo, order_repo)
        with pytest.raises(ForbiddenError):
            await GetOrder(order_repo, view_builder).execute(order.id, STRANGER)

    @pytest.mark.asyncio
    async def test_moderator_may_view(self, listing_repo, order_repo, view_builder) -> None:
        order = await _seed(listing_repo, order_repo)
        view = await GetOrder(order_repo, view_builder).execute(order.id, 99, is_moderator=True)
        assert view.order.id == order.id

    @pytest.mark.asyncio
    async def test_missing_order(self, order_repo, view_builder) -> None:
        with pytest.raises(OrderNotFoundError):
            await GetOrder(order_repo, view_builder).execute(uuid4(), BUYER)


class TestListOrders:
    @pytest.mark.asyncio
    async def test_filters_by_role_and_status(self, listing_repo, order_repo, view_builder) -> None:
        await _seed(listing_repo, order_repo, status=OrderStatus.PAID)
        await _seed(listing_repo, order_repo)
        await _seed(listing_repo, order_repo, buyer_id=STRANGER)

        use_case = ListOrders(order_repo, view_builder)

        as_buyer = await use_case.execute(BUYER, role=OrderRole.BUYER)
        assert as_buyer.total == 2

        paid = await use_case.execute(BUYER, status=OrderStatus.PAID)
        assert paid.total == 1
        assert paid.items[0].order.status is OrderStatus.PAID

        as_seller = await use_case.execute(SELLER, role=OrderRole.SELLER)
        assert as_seller.total == 3

    @pytest.mark.asyncio
    async def test_pagination(self, listing_repo, order_repo, view_builder) -> None:
        for _ in range(5):
            await _seed(listing_repo, order_repo)

        page = await ListOrders(order_repo, view_builder).execute(BUYER, page=3, page_size=2)

        assert page.total == 5
        assert len(page.items) == 1
        assert page.total_pages == 3

    def test_total_pages_of_empty_page(self) -> None:
        assert OrderPage(items=[], page=1, page_size=10, total=0).total_pages == 0


class TestStatistics:
    @pytest.mark.asyncio
    async def test_counts_and_completed_turnover(self, listing_repo, order_repo) -> None:
        await _seed(listing_repo, order_repo, price="20", status=OrderStatus.COMPLETED)
        await _seed(listing_repo, order_repo, price="35", status=OrderStatus.COMPLETED)
        await _seed(listing_repo, order_repo, price="99", status=OrderStatus.CANCELLED)
        await _seed(listing_repo, order_repo, buyer_id=STRANGER)

        stats = await GetOrderStatistics(order_repo).execute(BUYER)

        assert stats.total_count == 3
        assert stats.completed_count == 2
        assert stats.cancelled_count == 1
        assert stats.buyer_count == 3
        assert stats.seller_count == 0
        assert stats.total_amount == Decimal("55")


class TestOrderHistory:
    @pytest.mark.asyncio
    async def test_returns_records_for_parties_only(self, listing_repo, order_repo) -> None:
        order = await _seed(listing_repo, order_repo)
        history_repo = InMemoryOrderHistoryRepository()
        await history_repo.save(
            order_id=order.id,
            from_status=None,
            to_status=OrderStatus.PENDING,
            triggered_by="open",
            actor_id=BUYER,
        )
        use_case = GetOrderHistory(order_repo, history_repo)

        result = await use_case.execute(GetOrderHistoryInput(order_id=order.id, actor_id=SELLER))
        assert [r.triggered_by for r in result.history] == ["open"]

        with pytest.raises(ForbiddenError):
            await use_case.execute(GetOrderHistoryInput(order_id=order.id, actor_id=STRANGER))

    @pytest.mark.asyncio
    async def test_missing_order(self, order_repo) -> None:
        use_case = GetOrderHistory(order_repo, InMemoryOrderHistoryRepository())
        with pytest.raises(OrderNotFoundError):
            await use_case.execute(GetOrderHistoryInput(order_id=uuid4(), actor_id=BUYER))


@pytest.mark.asyncio
async def test_list_bargains_by_listing_and_user() -> None:
    listing = Listing(seller_id=SELLER, title="Kettle", price=Decimal("15"))
    repo = InMemoryBargainRepository()
    for price in ("10", "12"):
        await repo.add(
            Bargain.propose(
                listing=listing,
                bargainer_id=BUYER,
                original_price=Decimal("15"),
                proposed_price=Decimal(price),
            )
        )
    use_case = ListBargains(repo)

    assert len(await use_case.for_listing(listing.id)) == 2
    page = await use_case.for_user(SELLER, page=2, page_size=1)
    assert page.total == 2
    assert len(page.items) == 1
    assert (await use_case.for_user(STRANGER)).total == 0
