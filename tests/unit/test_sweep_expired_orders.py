"""Tests for the unpaid-order sweep: cutoff arithmetic and per-order isolation."""
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest

from src.application.use_cases.sweep_expired_orders import (
    SweepExpiredOrders,
    SweepExpiredOrdersInput,
)
from src.domain.enums.order_action import OrderAction
from src.domain.errors import StaleStateError

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def _make_order_repo(ids: list) -> MagicMock:  # type: ignore[type-arg]
    repo = MagicMock()
    repo.find_expired_pending = AsyncMock(return_value=ids)
    return repo


@pytest.mark.asyncio
async def test_cutoff_is_now_minus_timeout() -> None:
    repo = _make_order_repo([])
    use_case = SweepExpiredOrders(repo.find_expired_pending, AsyncMock())

    result = await use_case.execute(SweepExpiredOrdersInput(now=NOW, timeout=timedelta(hours=24)))

    repo.find_expired_pending.assert_awaited_once_with(NOW - timedelta(hours=24))
    assert result.examined_count == 0
    assert result.cancelled_order_ids == []


@pytest.mark.asyncio
async def test_each_order_is_expired_by_the_system() -> None:
    ids = [uuid4(), uuid4()]
    runner = AsyncMock()
    repo = _make_order_repo(ids)
    use_case = SweepExpiredOrders(repo.find_expired_pending, runner)

    result = await use_case.execute(SweepExpiredOrdersInput(now=NOW, timeout=timedelta(hours=1)))

    assert result.cancelled_order_ids == ids
    sent = [call.args[0] for call in runner.await_args_list]
    assert [s.order_id for s in sent] == ids
    assert all(s.action is OrderAction.EXPIRE and s.actor_id is None for s in sent)


@pytest.mark.asyncio
async def test_one_failure_does_not_abort_the_batch() -> None:
    first, racing, last = uuid4(), uuid4(), uuid4()

    async def runner(input_data):  # type: ignore[no-untyped-def]
        if input_data.order_id == racing:
            raise StaleStateError("order", racing)
        return MagicMock()

    repo = _make_order_repo([first, racing, last])
    use_case = SweepExpiredOrders(repo.find_expired_pending, runner)

    result = await use_case.execute(SweepExpiredOrdersInput(now=NOW, timeout=timedelta(hours=1)))

    assert result.examined_count == 3
    assert result.cancelled_order_ids == [first, last]
    assert result.skipped_count == 1


@pytest.mark.asyncio
async def test_unexpected_errors_are_also_skipped() -> None:
    order_id = uuid4()
    runner = AsyncMock(side_effect=RuntimeError("connection reset"))
    repo = _make_order_repo([order_id])
    use_case = SweepExpiredOrders(repo.find_expired_pending, runner)

    result = await use_case.execute(SweepExpiredOrdersInput(now=NOW, timeout=timedelta(hours=1)))

    assert result.cancelled_order_ids == []
    assert result.skipped_count == 1


@pytest.mark.asyncio
async def test_background_sweeper_runs_until_stopped() -> None:
    import asyncio

    from src.infrastructure.scheduling.expiry_sweeper import ExpirySweeper

    sweep = AsyncMock(side_effect=[RuntimeError("db down"), MagicMock()])
    with patch("src.infrastructure.scheduling.expiry_sweeper.run_expiry_sweep", new=sweep):
        sweeper = ExpirySweeper(AsyncMock(), AsyncMock(), interval_seconds=0)
        await sweeper.start()
        assert sweeper.running
        for _ in range(5):
            await asyncio.sleep(0)
        await sweeper.stop()

    assert not sweeper.running
    assert sweep.await_count >= 2


class _RecordingSession:
    def __init__(self, timeline: list[str]) -> None:
        self._timeline = timeline
        self.commit = AsyncMock()
        self.rollback = AsyncMock()

    async def __aenter__(self) -> "_RecordingSession":
        self._timeline.append("open")
        return self

    async def __aexit__(self, *exc_info) -> None:  # type: ignore[no-untyped-def]
        self._timeline.append("close")


@pytest.mark.asyncio
async def test_scan_session_is_closed_before_orders_are_expired() -> None:
    from src.infrastructure.scheduling.expiry_sweeper import run_expiry_sweep

    timeline: list[str] = []
    order_id = uuid4()

    async def scan(cutoff):  # type: ignore[no-untyped-def]
        timeline.append("scan")
        return [order_id]

    async def expire(input_data):  # type: ignore[no-untyped-def]
        timeline.append("expire")
        return MagicMock()

    repo_class = MagicMock()
    repo_class.return_value.find_expired_pending = scan
    transition = MagicMock()
    transition.return_value.execute = expire

    with patch(
        "src.infrastructure.scheduling.expiry_sweeper.SqlAlchemyOrderRepository", new=repo_class
    ), patch("src.infrastructure.scheduling.expiry_sweeper.build_transition_order", new=transition):
        result = await run_expiry_sweep(
            AsyncMock(),
            AsyncMock(),
            now=NOW,
            session_factory=lambda: _RecordingSession(timeline),  # type: ignore[arg-type]
        )

    assert result.cancelled_order_ids == [order_id]
    assert timeline == ["open", "scan", "close", "open", "expire", "close"]
