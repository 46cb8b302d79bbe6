"""
FastAPI dependency injection wiring.

Each dependency function returns a fully-constructed object with its
collaborators injected, keeping the route handlers thin. All repositories
of one request share the request's session, which is its unit of work.
"""
from collections.abc import AsyncGenerator
from dataclasses import dataclass

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from src.application.interfaces.bargain_repository import BargainRepository
from src.application.interfaces.collaborators import Notifier, UserDirectory
from src.application.interfaces.event_publisher import EventPublisher
from src.application.interfaces.listing_repository import ListingRepository
from src.application.interfaces.order_history_repository import OrderHistoryRepository
from src.application.interfaces.order_repository import OrderRepository
from src.application.services.listing_availability import ListingAvailabilityService
from src.application.use_cases.get_order_history import GetOrderHistory
from src.application.use_cases.list_bargains import ListBargains
from src.application.use_cases.negotiate_price import ProposeBargain, RespondToBargain
from src.application.use_cases.open_order import OpenOrder
from src.application.use_cases.order_queries import (
    GetOrder,
    GetOrderStatistics,
    ListOrders,
    OrderViewBuilder,
)
from src.application.use_cases.transition_order import TransitionOrder
from src.config import settings
from src.infrastructure.database.connection import get_db_session
from src.infrastructure.database.repositories.bargain_repository import (
    SqlAlchemyBargainRepository,
)
from src.infrastructure.database.repositories.listing_repository import (
    SqlAlchemyListingRepository,
)
from src.infrastructure.database.repositories.order_history_repository import (
    SqlAlchemyOrderHistoryRepository,
)
from src.infrastructure.database.repositories.order_repository import SqlAlchemyOrderRepository
from src.infrastructure.external_services.identity_client import IdentityClient
from src.infrastructure.messaging.rabbitmq_publisher import RabbitMQPublisher
from src.infrastructure.notifications.connection_registry import connection_registry
from src.infrastructure.notifications.notifiers import RabbitMQNotifier, RealtimeNotifier


# ---- Caller identity -------------------------------------------------------

@dataclass(frozen=True)
class Actor:
    user_id: int
    is_moderator: bool = False


def get_actor(
    x_user_id: int = Header(..., alias="X-User-Id"),
    x_user_role: str | None = Header(default=None, alias="X-User-Role"),
) -> Actor:
    return Actor(user_id=x_user_id, is_moderator=x_user_role == settings.moderator_role)


# ---- Low-level dependencies ------------------------------------------------

async def get_session() -> AsyncGenerator[AsyncSession, None]:
    async for session in get_db_session():
        yield session


def get_listing_repo(session: AsyncSession = Depends(get_session)) -> ListingRepository:
    return SqlAlchemyListingRepository(session)


def get_order_repo(session: AsyncSession = Depends(get_session)) -> OrderRepository:
    return SqlAlchemyOrderRepository(session)


def get_bargain_repo(session: AsyncSession = Depends(get_session)) -> BargainRepository:
    return SqlAlchemyBargainRepository(session)


def get_history_repo(session: AsyncSession = Depends(get_session)) -> OrderHistoryRepository:
    return SqlAlchemyOrderHistoryRepository(session)


def get_event_publisher() -> EventPublisher:
    return RabbitMQPublisher()


def get_notifier() -> Notifier:
    return RealtimeNotifier(connection_registry, durable=RabbitMQNotifier())


def get_user_directory() -> UserDirectory:
    return IdentityClient()


def get_listing_availability(
    listing_repo: ListingRepository = Depends(get_listing_repo),
) -> ListingAvailabilityService:
    return ListingAvailabilityService(listing_repo)


# ---- Use-case dependencies -------------------------------------------------

def get_open_order_use_case(
    availability: ListingAvailabilityService = Depends(get_listing_availability),
    order_repo: OrderRepository = Depends(get_order_repo),
    bargain_repo: BargainRepository = Depends(get_bargain_repo),
    history_repo: OrderHistoryRepository = Depends(get_history_repo),
    event_publisher: EventPublisher = Depends(get_event_publisher),
    notifier: Notifier = Depends(get_notifier),
) -> OpenOrder:
    return OpenOrder(availability, order_repo, bargain_repo, history_repo, event_publisher, notifier)


def get_transition_order_use_case(
    order_repo: OrderRepository = Depends(get_order_repo),
    availability: ListingAvailabilityService = Depends(get_listing_availability),
    history_repo: OrderHistoryRepository = Depends(get_history_repo),
    event_publisher: EventPublisher = Depends(get_event_publisher),
    notifier: Notifier = Depends(get_notifier),
) -> TransitionOrder:
    return TransitionOrder(order_repo, availability, history_repo, event_publisher, notifier)


def get_order_view_builder(
    listing_repo: ListingRepository = Depends(get_listing_repo),
    user_directory: UserDirectory = Depends(get_user_directory),
) -> OrderViewBuilder:
    return OrderViewBuilder(listing_repo, user_directory)


def get_order_use_case(
    order_repo: OrderRepository = Depends(get_order_repo),
    view_builder: OrderViewBuilder = Depends(get_order_view_builder),
) -> GetOrder:
    return GetOrder(order_repo, view_builder)


def get_list_orders_use_case(
    order_repo: OrderRepository = Depends(get_order_repo),
    view_builder: OrderViewBuilder = Depends(get_order_view_builder),
) -> ListOrders:
    return ListOrders(order_repo, view_builder)


def get_order_statistics_use_case(
    order_repo: OrderRepository = Depends(get_order_repo),
) -> GetOrderStatistics:
    return GetOrderStatistics(order_repo)


def get_order_history_use_case(
    order_repo: OrderRepository = Depends(get_order_repo),
    history_repo: OrderHistoryRepository = Depends(get_history_repo),
) -> GetOrderHistory:
    return GetOrderHistory(order_repo, history_repo)


def get_propose_bargain_use_case(
    listing_repo: ListingRepository = Depends(get_listing_repo),
    bargain_repo: BargainRepository = Depends(get_bargain_repo),
    event_publisher: EventPublisher = Depends(get_event_publisher),
    notifier: Notifier = Depends(get_notifier),
) -> ProposeBargain:
    return ProposeBargain(listing_repo, bargain_repo, event_publisher, notifier)


def get_respond_to_bargain_use_case(
    bargain_repo: BargainRepository = Depends(get_bargain_repo),
    event_publisher: EventPublisher = Depends(get_event_publisher),
    notifier: Notifier = Depends(get_notifier),
) -> RespondToBargain:
    return RespondToBargain(bargain_repo, event_publisher, notifier)


def get_list_bargains_use_case(
    bargain_repo: BargainRepository = Depends(get_bargain_repo),
) -> ListBargains:
    return ListBargains(bargain_repo)
