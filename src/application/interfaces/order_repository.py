from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from src.domain.entities.order import Order
from src.domain.enums.order_status import OrderStatus


class OrderRole(str, Enum):
    """Which side of the order the querying user is on."""

    ANY = "ANY"
    BUYER = "BUYER"
    SELLER = "SELLER"


@dataclass
class OrderStatistics:
    total_count: int = 0
    pending_count: int = 0
    paid_count: int = 0
    shipped_count: int = 0
    completed_count: int = 0
    cancelled_count: int = 0
    refunding_count: int = 0
    disputing_count: int = 0
    buyer_count: int = 0
    seller_count: int = 0
    total_amount: Decimal = Decimal("0")


class OrderRepository(ABC):
    """Port for persisting and querying Order aggregates."""

    @abstractmethod
    async def add(self, order: Order) -> None:
        ...

    @abstractmethod
    async def get_by_id(self, order_id: UUID) -> Order | None:
        ...

    @abstractmethod
    async def save(self, order: Order) -> None:
        """
        Persist a mutated order if nobody else saved it since it was read.

        Compares ``order.version`` with the stored row, bumps it on success
        and raises ``StaleStateError`` otherwise.
        """
        ...

    @abstractmethod
    async def list_for_user(
        self,
        user_id: int,
        *,
        role: OrderRole = OrderRole.ANY,
        status: OrderStatus | None = None,
        limit: int = 10,
        offset: int = 0,
    ) -> tuple[list[Order], int]:
        """Return (orders, total_count), newest first."""
        ...

    @abstractmethod
    async def find_expired_pending(self, cutoff: datetime) -> list[UUID]:
        """Ids of PENDING orders created strictly before ``cutoff``."""
        ...

    @abstractmethod
    async def statistics_for_user(self, user_id: int) -> OrderStatistics:
        ...
