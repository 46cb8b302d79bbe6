from abc import ABC, abstractmethod
from uuid import UUID

from src.domain.entities.bargain import Bargain


class BargainRepository(ABC):
    """Port for persisting and querying negotiations."""

    @abstractmethod
    async def add(self, bargain: Bargain) -> None:
        ...

    @abstractmethod
    async def save(self, bargain: Bargain) -> None:
        """Version-checked update; raises ``StaleStateError`` on a lost race."""
        ...

    @abstractmethod
    async def get_by_id(self, bargain_id: UUID) -> Bargain | None:
        ...

    @abstractmethod
    async def list_for_listing(self, listing_id: UUID) -> list[Bargain]:
        ...

    @abstractmethod
    async def list_for_user(
        self, user_id: int, *, limit: int = 10, offset: int = 0
    ) -> tuple[list[Bargain], int]:
        """Bargains the user proposed or received: (bargains, total_count)."""
        ...
