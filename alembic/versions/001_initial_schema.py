"""initial schema

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19 00:00:00.000000
"""
from typing import Sequence, Union

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import ENUM, JSONB, UUID

from alembic import op

revision: str = "001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

_ENUMS: dict[str, tuple[str, ...]] = {
    "listing_availability": ("DRAFT", "ON_SALE", "SOLD", "OFF_SHELF", "DELETED"),
    "trade_type": ("ONLINE", "OFFLINE"),
    "order_status": ("PENDING", "PAID", "SHIPPED", "COMPLETED", "CANCELLED"),
    "refund_status": ("NONE", "APPLYING", "APPROVED", "REJECTED"),
    "dispute_status": ("NONE", "APPLYING", "PROCESSING", "RESOLVED"),
    "dispute_resolution": ("REVERSE_SALE", "UPHOLD_SALE"),
    "bargain_status": ("PENDING", "ACCEPTED", "REJECTED", "CANCELLED"),
}


def _enum(name: str) -> ENUM:
    # Types are created up front; columns only reference them
    return ENUM(*_ENUMS[name], name=name, create_type=False)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
    ]


def upgrade() -> None:
    bind = op.get_bind()
    for name, values in _ENUMS.items():
        ENUM(*values, name=name).create(bind, checkfirst=True)

    # Listings: owned by listing management, availability switched here
    op.create_table(
        "listings",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("seller_id", sa.BigInteger(), nullable=False),
        sa.Column("title", sa.String(512), nullable=False),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("availability", _enum("listing_availability"), nullable=False),
        sa.Column("trade_type", _enum("trade_type"), nullable=False),
        sa.Column("trade_location", sa.String(256), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_listings_seller_id", "listings", ["seller_id"])
    op.create_index("ix_listings_availability", "listings", ["availability"])

    op.create_table(
        "orders",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("order_no", sa.String(32), nullable=False, unique=True),
        sa.Column("listing_id", UUID(as_uuid=True), sa.ForeignKey("listings.id"), nullable=False),
        sa.Column("buyer_id", sa.BigInteger(), nullable=False),
        sa.Column("seller_id", sa.BigInteger(), nullable=False),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("bargain_id", UUID(as_uuid=True), nullable=True),
        sa.Column("status", _enum("order_status"), nullable=False),
        sa.Column("trade_type", _enum("trade_type"), nullable=False),
        sa.Column("trade_location", sa.String(256), nullable=True),
        sa.Column("remark", sa.Text(), nullable=True),
        # Refund sub-state
        sa.Column("refund_status", _enum("refund_status"), nullable=False, server_default="NONE"),
        sa.Column("refund_reason", sa.Text(), nullable=True),
        sa.Column("refund_time", sa.DateTime(timezone=True), nullable=True),
        # Dispute sub-state
        sa.Column("dispute_status", _enum("dispute_status"), nullable=False, server_default="NONE"),
        sa.Column("dispute_reason", sa.Text(), nullable=True),
        sa.Column("dispute_evidence", sa.Text(), nullable=True),
        sa.Column("dispute_resolution", _enum("dispute_resolution"), nullable=True),
        sa.Column("dispute_result", sa.Text(), nullable=True),
        sa.Column("dispute_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("resolve_time", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        # Optimistic concurrency token
        sa.Column("version", sa.Integer(), nullable=False, server_default="0"),
    )
    op.create_index("ix_orders_listing_id", "orders", ["listing_id"])
    op.create_index("ix_orders_buyer_id", "orders", ["buyer_id"])
    op.create_index("ix_orders_seller_id", "orders", ["seller_id"])
    # Expiry sweep scan: status = 'PENDING' AND created_at < cutoff
    op.create_index("ix_orders_status_created_at", "orders", ["status", "created_at"])

    op.create_table(
        "order_status_history",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "order_id",
            UUID(as_uuid=True),
            sa.ForeignKey("orders.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("from_status", _enum("order_status"), nullable=True),
        sa.Column("to_status", _enum("order_status"), nullable=False),
        sa.Column(
            "transitioned_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("now()"),
        ),
        sa.Column("triggered_by", sa.String(64), nullable=False),
        sa.Column("actor_id", sa.BigInteger(), nullable=True),
        sa.Column("metadata", JSONB, nullable=False, server_default=sa.text("'{}'")),
    )
    op.create_index("ix_order_status_history_order_id", "order_status_history", ["order_id"])

    op.create_table(
        "bargains",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("listing_id", UUID(as_uuid=True), sa.ForeignKey("listings.id"), nullable=False),
        sa.Column("bargainer_id", sa.BigInteger(), nullable=False),
        sa.Column("target_user_id", sa.BigInteger(), nullable=False),
        sa.Column("original_price", sa.Numeric(10, 2), nullable=False),
        sa.Column("proposed_price", sa.Numeric(10, 2), nullable=False),
        sa.Column("message", sa.Text(), nullable=True),
        sa.Column("status", _enum("bargain_status"), nullable=False),
        sa.Column("order_id", UUID(as_uuid=True), sa.ForeignKey("orders.id"), nullable=True),
        *_timestamps(),
        sa.Column("version", sa.Integer(), nullable=False, server_default="0"),
    )
    op.create_index("ix_bargains_listing_id", "bargains", ["listing_id"])
    op.create_index("ix_bargains_bargainer_id", "bargains", ["bargainer_id"])
    op.create_index("ix_bargains_target_user_id", "bargains", ["target_user_id"])
    op.create_index("ix_bargains_status", "bargains", ["status"])


def downgrade() -> None:
    op.drop_table("bargains")
    op.drop_table("order_status_history")
    op.drop_table("orders")
    op.drop_table("listings")
    bind = op.get_bind()
    for name in reversed(list(_ENUMS)):
        ENUM(name=name).drop(bind, checkfirst=True)
