from dataclasses import dataclass
from uuid import UUID

from src.application.interfaces.bargain_repository import BargainRepository
from src.domain.entities.bargain import Bargain


@dataclass
class BargainPage:
    items: list[Bargain]
    page: int
    page_size: int
    total: int


class ListBargains:
    """Read side of negotiations: per listing, or per participating user."""

    def __init__(self, bargain_repo: BargainRepository) -> None:
        self._bargain_repo = bargain_repo

    async def for_listing(self, listing_id: UUID) -> list[Bargain]:
        return await self._bargain_repo.list_for_listing(listing_id)

    async def for_user(self, user_id: int, *, page: int = 1, page_size: int = 10) -> BargainPage:
        bargains, total = await self._bargain_repo.list_for_user(
            user_id, limit=page_size, offset=(page - 1) * page_size
        )
        return BargainPage(items=bargains, page=page, page_size=page_size, total=total)
