from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from src.domain.enums.order_status import OrderStatus


@dataclass
class OrderHistoryRecord:
    id: UUID
    order_id: UUID
    from_status: OrderStatus | None
    to_status: OrderStatus
    transitioned_at: datetime
    triggered_by: str
    actor_id: int | None
    metadata: dict  # type: ignore[type-arg]


class OrderHistoryRepository(ABC):
    """Port for the order audit trail."""

    @abstractmethod
    async def save(
        self,
        *,
        order_id: UUID,
        from_status: OrderStatus | None,
        to_status: OrderStatus,
        triggered_by: str,
        actor_id: int | None = None,
        metadata: dict | None = None,  # type: ignore[type-arg]
    ) -> OrderHistoryRecord:
        ...

    @abstractmethod
    async def get_history_for_order(self, order_id: UUID) -> list[OrderHistoryRecord]:
        ...
