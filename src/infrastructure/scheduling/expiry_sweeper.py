"""
Expiry sweep: cancels PENDING orders whose payment window has lapsed.

``run_expiry_sweep`` performs one pass and is shared by the in-process
``ExpirySweeper`` loop, the admin endpoint and the hourly timer function.
Every order is expired in its own session, so the batch never holds one
long transaction and a failure on one order leaves the others intact.
"""
import asyncio
from datetime import datetime, timedelta, timezone
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.application.interfaces.collaborators import Notifier
from src.application.interfaces.event_publisher import EventPublisher
from src.application.services.listing_availability import ListingAvailabilityService
from src.application.use_cases.sweep_expired_orders import (
    ExpiredOrderFinder,
    OrderTransitionRunner,
    SweepExpiredOrders,
    SweepExpiredOrdersInput,
    SweepExpiredOrdersOutput,
)
from src.application.use_cases.transition_order import (
    TransitionOrder,
    TransitionOrderInput,
    TransitionOrderOutput,
)
from src.config import settings
from src.infrastructure.database.connection import AsyncSessionLocal, session_scope
from src.infrastructure.database.repositories.listing_repository import (
    SqlAlchemyListingRepository,
)
from src.infrastructure.database.repositories.order_history_repository import (
    SqlAlchemyOrderHistoryRepository,
)
from src.infrastructure.database.repositories.order_repository import SqlAlchemyOrderRepository

logger = structlog.get_logger(__name__)


def build_transition_order(
    session: AsyncSession, event_publisher: EventPublisher, notifier: Notifier
) -> TransitionOrder:
    return TransitionOrder(
        SqlAlchemyOrderRepository(session),
        ListingAvailabilityService(SqlAlchemyListingRepository(session)),
        SqlAlchemyOrderHistoryRepository(session),
        event_publisher,
        notifier,
    )


def make_expired_order_finder(
    session_factory: async_sessionmaker[AsyncSession] = AsyncSessionLocal,
) -> ExpiredOrderFinder:
    """Finder whose read-only session is closed before the batch starts."""

    async def find(cutoff: datetime) -> list[UUID]:
        async with session_factory() as session:
            return await SqlAlchemyOrderRepository(session).find_expired_pending(cutoff)

    return find


def make_transition_runner(
    event_publisher: EventPublisher,
    notifier: Notifier,
    session_factory: async_sessionmaker[AsyncSession] = AsyncSessionLocal,
) -> OrderTransitionRunner:
    """Runner that executes each transition in a fresh, committed session."""

    async def run(input_data: TransitionOrderInput) -> TransitionOrderOutput:
        async with session_scope(session_factory) as session:
            return await build_transition_order(session, event_publisher, notifier).execute(
                input_data
            )

    return run


async def run_expiry_sweep(
    event_publisher: EventPublisher,
    notifier: Notifier,
    *,
    now: datetime | None = None,
    timeout: timedelta | None = None,
    session_factory: async_sessionmaker[AsyncSession] = AsyncSessionLocal,
) -> SweepExpiredOrdersOutput:
    input_data = SweepExpiredOrdersInput(
        now=now or datetime.now(timezone.utc),
        timeout=timeout or timedelta(hours=settings.order_payment_timeout_hours),
    )
    use_case = SweepExpiredOrders(
        make_expired_order_finder(session_factory),
        make_transition_runner(event_publisher, notifier, session_factory),
    )
    return await use_case.execute(input_data)


class ExpirySweeper:
    """Runs ``run_expiry_sweep`` every ``interval_seconds`` until stopped."""

    def __init__(
        self,
        event_publisher: EventPublisher,
        notifier: Notifier,
        interval_seconds: int = settings.expiry_sweep_interval_seconds,
    ) -> None:
        self._event_publisher = event_publisher
        self._notifier = notifier
        self._interval = interval_seconds
        self._task: asyncio.Task | None = None  # type: ignore[type-arg]

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._loop())
        logger.info("expiry_sweeper_started", interval_seconds=self._interval)

    async def stop(self) -> None:
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("expiry_sweeper_stopped")

    async def _loop(self) -> None:
        while True:
            try:
                await run_expiry_sweep(self._event_publisher, self._notifier)
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("expiry_sweep_failed")
            await asyncio.sleep(self._interval)
