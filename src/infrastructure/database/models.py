"""
SQLAlchemy ORM models.

These are purely infrastructure concerns. Domain entities are mapped to and
from these models inside the repository implementations.
"""
import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    BigInteger,
    DateTime,
    Enum as SAEnum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    func,
)
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.domain.enums.bargain_status import BargainStatus
from src.domain.enums.listing_availability import ListingAvailability
from src.domain.enums.order_status import (
    DisputeResolution,
    DisputeStatus,
    OrderStatus,
    RefundStatus,
    TradeType,
)
from src.infrastructure.database.connection import Base


def _pg_enum(enum_cls: type, name: str) -> SAEnum:
    return SAEnum(enum_cls, name=name, values_callable=lambda obj: [e.value for e in obj])


_listing_availability_enum = _pg_enum(ListingAvailability, "listing_availability")
_order_status_enum = _pg_enum(OrderStatus, "order_status")
_refund_status_enum = _pg_enum(RefundStatus, "refund_status")
_dispute_status_enum = _pg_enum(DisputeStatus, "dispute_status")
_dispute_resolution_enum = _pg_enum(DisputeResolution, "dispute_resolution")
_trade_type_enum = _pg_enum(TradeType, "trade_type")
_bargain_status_enum = _pg_enum(BargainStatus, "bargain_status")


class ListingModel(Base):
    __tablename__ = "listings"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    seller_id: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(512), nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    availability: Mapped[str] = mapped_column(_listing_availability_enum, nullable=False, index=True)
    trade_type: Mapped[str] = mapped_column(_trade_type_enum, nullable=False)
    trade_location: Mapped[str | None] = mapped_column(String(256), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )


class OrderModel(Base):
    __tablename__ = "orders"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    order_no: Mapped[str] = mapped_column(String(32), nullable=False, unique=True)

    listing_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("listings.id"), nullable=False, index=True
    )
    buyer_id: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    seller_id: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    bargain_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True)

    status: Mapped[str] = mapped_column(_order_status_enum, nullable=False)
    trade_type: Mapped[str] = mapped_column(_trade_type_enum, nullable=False)
    trade_location: Mapped[str | None] = mapped_column(String(256), nullable=True)
    remark: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Refund sub-state
    refund_status: Mapped[str] = mapped_column(_refund_status_enum, nullable=False)
    refund_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    refund_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # Dispute sub-state
    dispute_status: Mapped[str] = mapped_column(_dispute_status_enum, nullable=False)
    dispute_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    dispute_evidence: Mapped[str | None] = mapped_column(Text, nullable=True)
    dispute_resolution: Mapped[str | None] = mapped_column(_dispute_resolution_enum, nullable=True)
    dispute_result: Mapped[str | None] = mapped_column(Text, nullable=True)
    dispute_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    resolve_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    status_history: Mapped[list["OrderStatusHistoryModel"]] = relationship(
        "OrderStatusHistoryModel",
        back_populates="order",
        cascade="all, delete-orphan",
        lazy="select",
    )

    __table_args__ = (
        Index("ix_orders_status_created_at", "status", "created_at"),
    )


class OrderStatusHistoryModel(Base):
    __tablename__ = "order_status_history"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    order_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    from_status: Mapped[str | None] = mapped_column(_order_status_enum, nullable=True)
    to_status: Mapped[str] = mapped_column(_order_status_enum, nullable=False)
    transitioned_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    triggered_by: Mapped[str] = mapped_column(String(64), nullable=False)
    actor_id: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    metadata_: Mapped[dict] = mapped_column(  # type: ignore[type-arg]
        "metadata", JSONB, nullable=False, default=dict
    )

    order: Mapped[OrderModel] = relationship("OrderModel", back_populates="status_history")


class BargainModel(Base):
    __tablename__ = "bargains"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    listing_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("listings.id"), nullable=False, index=True
    )
    bargainer_id: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    target_user_id: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    original_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    proposed_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    message: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(_bargain_status_enum, nullable=False, index=True)
    order_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("orders.id"), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
