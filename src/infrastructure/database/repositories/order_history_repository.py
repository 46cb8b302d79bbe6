import uuid
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.application.interfaces.order_history_repository import (
    OrderHistoryRecord,
    OrderHistoryRepository,
)
from src.domain.enums.order_status import OrderStatus
from src.infrastructure.database.models import OrderStatusHistoryModel


class SqlAlchemyOrderHistoryRepository(OrderHistoryRepository):
    """SQLAlchemy-backed implementation of OrderHistoryRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

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
        record_id = uuid.uuid4()
        model = OrderStatusHistoryModel(
            id=record_id,
            order_id=order_id,
            from_status=from_status.value if from_status else None,
            to_status=to_status.value,
            transitioned_at=datetime.now(timezone.utc),
            triggered_by=triggered_by,
            actor_id=actor_id,
            metadata_=metadata or {},
        )
        self._session.add(model)
        await self._session.flush()

        return OrderHistoryRecord(
            id=record_id,
            order_id=order_id,
            from_status=from_status,
            to_status=to_status,
            transitioned_at=model.transitioned_at,
            triggered_by=triggered_by,
            actor_id=actor_id,
            metadata=metadata or {},
        )

    async def get_history_for_order(self, order_id: UUID) -> list[OrderHistoryRecord]:
        result = await self._session.execute(
            select(OrderStatusHistoryModel)
            .where(OrderStatusHistoryModel.order_id == order_id)
            .order_by(OrderStatusHistoryModel.transitioned_at.asc())
        )
        models = result.scalars().all()

        return [
            OrderHistoryRecord(
                id=m.id,
                order_id=m.order_id,
                from_status=OrderStatus(m.from_status) if m.from_status else None,
                to_status=OrderStatus(m.to_status),
                transitioned_at=m.transitioned_at,
                triggered_by=m.triggered_by,
                actor_id=m.actor_id,
                metadata=m.metadata_,
            )
            for m in models
        ]
