from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import case, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.application.interfaces.order_repository import (
    OrderRepository,
    OrderRole,
    OrderStatistics,
)
from src.domain.entities.order import Order
from src.domain.enums.order_status import (
    DisputeResolution,
    DisputeStatus,
    OrderStatus,
    RefundStatus,
    TradeType,
)
from src.domain.errors import StaleStateError
from src.infrastructure.database.models import OrderModel


def _to_domain(model: OrderModel) -> Order:
    return Order(
        id=model.id,
        order_no=model.order_no,
        listing_id=model.listing_id,
        buyer_id=model.buyer_id,
        seller_id=model.seller_id,
        price=Decimal(str(model.price)),
        bargain_id=model.bargain_id,
        status=OrderStatus(model.status),
        trade_type=TradeType(model.trade_type),
        trade_location=model.trade_location,
        remark=model.remark,
        refund_status=RefundStatus(model.refund_status),
        refund_reason=model.refund_reason,
        refund_time=model.refund_time,
        dispute_status=DisputeStatus(model.dispute_status),
        dispute_reason=model.dispute_reason,
        dispute_evidence=model.dispute_evidence,
        dispute_resolution=(
            DisputeResolution(model.dispute_resolution) if model.dispute_resolution else None
        ),
        dispute_result=model.dispute_result,
        dispute_time=model.dispute_time,
        resolve_time=model.resolve_time,
        created_at=model.created_at,
        updated_at=model.updated_at,
        version=model.version,
    )


def _mutable_columns(order: Order) -> dict:  # type: ignore[type-arg]
    """Columns an order lifecycle transition may change."""
    return {
        "status": order.status.value,
        "refund_status": order.refund_status.value,
        "refund_reason": order.refund_reason,
        "refund_time": order.refund_time,
        "dispute_status": order.dispute_status.value,
        "dispute_reason": order.dispute_reason,
        "dispute_evidence": order.dispute_evidence,
        "dispute_resolution": (
            order.dispute_resolution.value if order.dispute_resolution else None
        ),
        "dispute_result": order.dispute_result,
        "dispute_time": order.dispute_time,
        "resolve_time": order.resolve_time,
        "updated_at": order.updated_at,
    }


def _to_model(order: Order) -> OrderModel:
    return OrderModel(
        id=order.id,
        order_no=order.order_no,
        listing_id=order.listing_id,
        buyer_id=order.buyer_id,
        seller_id=order.seller_id,
        price=order.price,
        bargain_id=order.bargain_id,
        trade_type=order.trade_type.value,
        trade_location=order.trade_location,
        remark=order.remark,
        created_at=order.created_at,
        version=order.version,
        **_mutable_columns(order),
    )


def _party_filter(user_id: int, role: OrderRole):  # type: ignore[no-untyped-def]
    if role is OrderRole.BUYER:
        return OrderModel.buyer_id == user_id
    if role is OrderRole.SELLER:
        return OrderModel.seller_id == user_id
    return or_(OrderModel.buyer_id == user_id, OrderModel.seller_id == user_id)


class SqlAlchemyOrderRepository(OrderRepository):
    """SQLAlchemy implementation for order persistence with optimistic locking."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(self, order: Order) -> None:
        self._session.add(_to_model(order))
        await self._session.flush()

    async def get_by_id(self, order_id: UUID) -> Order | None:
        result = await self._session.execute(
            select(OrderModel)
            .where(OrderModel.id == order_id)
            .execution_options(populate_existing=True)
        )
        model = result.scalar_one_or_none()
        return _to_domain(model) if model is not None else None

    async def save(self, order: Order) -> None:
        result = await self._session.execute(
            update(OrderModel)
            .where(OrderModel.id == order.id, OrderModel.version == order.version)
            .values(**_mutable_columns(order), version=order.version + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise StaleStateError("order", order.id)
        order.version += 1

    async def list_for_user(
        self,
        user_id: int,
        *,
        role: OrderRole = OrderRole.ANY,
        status: OrderStatus | None = None,
        limit: int = 10,
        offset: int = 0,
    ) -> tuple[list[Order], int]:
        criteria = [_party_filter(user_id, role)]
        if status is not None:
            criteria.append(OrderModel.status == status.value)

        query = (
            select(OrderModel)
            .where(*criteria)
            .order_by(OrderModel.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        count_query = select(func.count()).select_from(OrderModel).where(*criteria)

        result = await self._session.execute(query)
        models = result.scalars().all()

        count_result = await self._session.execute(count_query)
        total = count_result.scalar_one()

        return [_to_domain(m) for m in models], total

    async def find_expired_pending(self, cutoff: datetime) -> list[UUID]:
        result = await self._session.execute(
            select(OrderModel.id)
            .where(
                OrderModel.status == OrderStatus.PENDING.value,
                OrderModel.created_at < cutoff,
            )
            .order_by(OrderModel.created_at.asc())
        )
        return list(result.scalars().all())

    async def statistics_for_user(self, user_id: int) -> OrderStatistics:
        def _count_where(condition):  # type: ignore[no-untyped-def]
            return func.coalesce(func.sum(case((condition, 1), else_=0)), 0)

        query = select(
            func.count(),
            _count_where(OrderModel.status == OrderStatus.PENDING.value),
            _count_where(OrderModel.status == OrderStatus.PAID.value),
            _count_where(OrderModel.status == OrderStatus.SHIPPED.value),
            _count_where(OrderModel.status == OrderStatus.COMPLETED.value),
            _count_where(OrderModel.status == OrderStatus.CANCELLED.value),
            _count_where(OrderModel.refund_status == RefundStatus.APPLYING.value),
            _count_where(
                OrderModel.dispute_status.in_(
                    [DisputeStatus.APPLYING.value, DisputeStatus.PROCESSING.value]
                )
            ),
            _count_where(OrderModel.buyer_id == user_id),
            _count_where(OrderModel.seller_id == user_id),
            func.coalesce(
                func.sum(
                    case((OrderModel.status == OrderStatus.COMPLETED.value, OrderModel.price), else_=0)
                ),
                0,
            ),
        ).where(_party_filter(user_id, OrderRole.ANY))

        row = (await self._session.execute(query)).one()

        return OrderStatistics(
            total_count=row[0],
            pending_count=row[1],
            paid_count=row[2],
            shipped_count=row[3],
            completed_count=row[4],
            cancelled_count=row[5],
            refunding_count=row[6],
            disputing_count=row[7],
            buyer_count=row[8],
            seller_count=row[9],
            total_amount=Decimal(str(row[10])),
        )
