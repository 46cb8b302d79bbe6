from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from uuid import UUID

import structlog

from src.application.use_cases.transition_order import (
    TransitionOrderInput,
    TransitionOrderOutput,
)
from src.domain.enums.order_action import OrderAction

logger = structlog.get_logger(__name__)

# Returns ids of PENDING orders created before the cutoff, in its own short unit of work.
ExpiredOrderFinder = Callable[[datetime], Awaitable[list[UUID]]]

# Runs one TransitionOrder inside its own unit of work and commits it.
OrderTransitionRunner = Callable[[TransitionOrderInput], Awaitable[TransitionOrderOutput]]


@dataclass
class SweepExpiredOrdersInput:
    now: datetime
    timeout: timedelta


@dataclass
class SweepExpiredOrdersOutput:
    examined_count: int
    cancelled_order_ids: list[UUID] = field(default_factory=list)
    skipped_count: int = 0


class SweepExpiredOrders:
    """
    Use case: cancel PENDING orders that were never paid within ``timeout``.

    Each order goes through the same transition path as a user cancel, in its
    own unit of work, so one failure (including losing a race with the buyer
    paying) is logged and skipped without aborting the batch.
    """

    def __init__(
        self,
        find_expired: ExpiredOrderFinder,
        run_transition: OrderTransitionRunner,
    ) -> None:
        self._find_expired = find_expired
        self._run_transition = run_transition

    async def execute(self, input_data: SweepExpiredOrdersInput) -> SweepExpiredOrdersOutput:
        cutoff = input_data.now - input_data.timeout
        expired_ids = await self._find_expired(cutoff)

        output = SweepExpiredOrdersOutput(examined_count=len(expired_ids))

        for order_id in expired_ids:
            try:
                await self._run_transition(
                    TransitionOrderInput(order_id=order_id, action=OrderAction.EXPIRE)
                )
                output.cancelled_order_ids.append(order_id)
            except Exception:
                logger.exception("failed_to_expire_order", order_id=str(order_id))
                output.skipped_count += 1

        logger.info(
            "expired_orders_swept",
            cutoff=cutoff.isoformat(),
            examined=output.examined_count,
            cancelled=len(output.cancelled_order_ids),
            skipped=output.skipped_count,
        )
        return output
