from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.application.interfaces.listing_repository import ListingRepository
from src.domain.entities.listing import Listing
from src.domain.enums.listing_availability import ListingAvailability
from src.domain.enums.order_status import TradeType
from src.infrastructure.database.models import ListingModel


def _to_domain(model: ListingModel) -> Listing:
    return Listing(
        id=model.id,
        seller_id=model.seller_id,
        title=model.title,
        price=Decimal(str(model.price)),
        availability=ListingAvailability(model.availability),
        trade_type=TradeType(model.trade_type),
        trade_location=model.trade_location,
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


class SqlAlchemyListingRepository(ListingRepository):
    """SQLAlchemy implementation for listing reads and availability switches."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, listing_id: UUID) -> Listing | None:
        result = await self._session.execute(
            select(ListingModel)
            .where(ListingModel.id == listing_id)
            .execution_options(populate_existing=True)
        )
        model = result.scalar_one_or_none()
        return _to_domain(model) if model is not None else None

    async def compare_and_set_availability(
        self,
        listing_id: UUID,
        *,
        expected: ListingAvailability,
        new: ListingAvailability,
    ) -> bool:
        # The row lock taken by this UPDATE serialises racing reservations;
        # the loser re-evaluates the WHERE clause and matches zero rows.
        result = await self._session.execute(
            update(ListingModel)
            .where(
                ListingModel.id == listing_id,
                ListingModel.availability == expected.value,
            )
            .values(availability=new.value, updated_at=func.now())
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1
