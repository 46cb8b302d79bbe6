from dataclasses import dataclass
from uuid import UUID

from src.application.interfaces.order_history_repository import (
    OrderHistoryRecord,
    OrderHistoryRepository,
)
from src.application.interfaces.order_repository import OrderRepository
from src.domain.errors import ForbiddenError, OrderNotFoundError


@dataclass
class GetOrderHistoryInput:
    order_id: UUID
    actor_id: int
    is_moderator: bool = False


@dataclass
class GetOrderHistoryOutput:
    order_id: UUID
    history: list[OrderHistoryRecord]


class GetOrderHistory:
    """Use case: retrieve the full transition history of an order."""

    def __init__(
        self,
        order_repo: OrderRepository,
        history_repo: OrderHistoryRepository,
    ) -> None:
        self._order_repo = order_repo
        self._history_repo = history_repo

    async def execute(self, input_data: GetOrderHistoryInput) -> GetOrderHistoryOutput:
        order = await self._order_repo.get_by_id(input_data.order_id)
        if order is None:
            raise OrderNotFoundError(input_data.order_id)
        if not (input_data.is_moderator or order.is_party(input_data.actor_id)):
            raise ForbiddenError("You are not allowed to view this order.")

        history = await self._history_repo.get_history_for_order(input_data.order_id)

        return GetOrderHistoryOutput(order_id=input_data.order_id, history=history)
