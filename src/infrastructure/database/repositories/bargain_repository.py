from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.application.interfaces.bargain_repository import BargainRepository
from src.domain.entities.bargain import Bargain
from src.domain.enums.bargain_status import BargainStatus
from src.domain.errors import StaleStateError
from src.infrastructure.database.models import BargainModel


def _to_domain(model: BargainModel) -> Bargain:
    return Bargain(
        id=model.id,
        listing_id=model.listing_id,
        bargainer_id=model.bargainer_id,
        target_user_id=model.target_user_id,
        original_price=Decimal(str(model.original_price)),
        proposed_price=Decimal(str(model.proposed_price)),
        message=model.message,
        status=BargainStatus(model.status),
        order_id=model.order_id,
        created_at=model.created_at,
        updated_at=model.updated_at,
        version=model.version,
    )


class SqlAlchemyBargainRepository(BargainRepository):
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(self, bargain: Bargain) -> None:
        self._session.add(
            BargainModel(
                id=bargain.id,
                listing_id=bargain.listing_id,
                bargainer_id=bargain.bargainer_id,
                target_user_id=bargain.target_user_id,
                original_price=bargain.original_price,
                proposed_price=bargain.proposed_price,
                message=bargain.message,
                status=bargain.status.value,
                order_id=bargain.order_id,
                created_at=bargain.created_at,
                updated_at=bargain.updated_at,
                version=bargain.version,
            )
        )
        await self._session.flush()

    async def save(self, bargain: Bargain) -> None:
        result = await self._session.execute(
            update(BargainModel)
            .where(BargainModel.id == bargain.id, BargainModel.version == bargain.version)
            .values(
                status=bargain.status.value,
                order_id=bargain.order_id,
                updated_at=bargain.updated_at,
                version=bargain.version + 1,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise StaleStateError("bargain", bargain.id)
        bargain.version += 1

    async def get_by_id(self, bargain_id: UUID) -> Bargain | None:
        result = await self._session.execute(
            select(BargainModel)
            .where(BargainModel.id == bargain_id)
            .execution_options(populate_existing=True)
        )
        model = result.scalar_one_or_none()
        return _to_domain(model) if model is not None else None

    async def list_for_listing(self, listing_id: UUID) -> list[Bargain]:
        result = await self._session.execute(
            select(BargainModel)
            .where(BargainModel.listing_id == listing_id)
            .order_by(BargainModel.created_at.desc())
        )
        return [_to_domain(m) for m in result.scalars().all()]

    async def list_for_user(
        self, user_id: int, *, limit: int = 10, offset: int = 0
    ) -> tuple[list[Bargain], int]:
        involved = or_(BargainModel.bargainer_id == user_id, BargainModel.target_user_id == user_id)

        result = await self._session.execute(
            select(BargainModel)
            .where(involved)
            .order_by(BargainModel.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        models = result.scalars().all()

        count_result = await self._session.execute(
            select(func.count()).select_from(BargainModel).where(involved)
        )
        total = count_result.scalar_one()

        return [_to_domain(m) for m in models], total
