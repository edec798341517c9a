"""Create stores, products and pricing tiers.

Revision ID: 0001
Revises:
Create Date: 2026-10-19
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

pricing_mode = sa.Enum("HOUR", "DAY", "WEEK", name="pricingmode")
product_status = sa.Enum("DRAFT", "ACTIVE", "ARCHIVED", name="productstatus")


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    op.create_table(
        "stores",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("slug", sa.String(255), nullable=False, unique=True),
        sa.Column("currency", sa.String(3), nullable=False, server_default="EUR"),
        *_timestamps(),
    )

    op.create_table(
        "products",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column(
            "store_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("stores.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("deposit", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("base_period_minutes", sa.Integer(), nullable=True),
        sa.Column("pricing_mode", pricing_mode, nullable=False),
        sa.Column(
            "enforce_strict_tiers",
            sa.Boolean(),
            nullable=False,
            server_default=sa.false(),
        ),
        sa.Column("status", product_status, nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_products_store_id", "products", ["store_id"])

    op.create_table(
        "product_pricing_tiers",
        sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True),
        sa.Column(
            "product_id",
            sa.Uuid(as_uuid=True),
            sa.ForeignKey("products.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("min_duration", sa.Integer(), nullable=True),
        sa.Column("discount_percent", sa.Numeric(10, 6), nullable=True),
        sa.Column("period", sa.Integer(), nullable=True),
        sa.Column("price", sa.Numeric(10, 2), nullable=True),
        sa.Column("display_order", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(),
        sa.UniqueConstraint(
            "product_id", "min_duration", name="product_pricing_tiers_unique"
        ),
        sa.UniqueConstraint(
            "product_id", "period", name="product_pricing_tiers_unique_period"
        ),
    )
    op.create_index(
        "ix_product_pricing_tiers_product_id", "product_pricing_tiers", ["product_id"]
    )


def downgrade() -> None:
    op.drop_index("ix_product_pricing_tiers_product_id", "product_pricing_tiers")
    op.drop_table("product_pricing_tiers")
    op.drop_index("ix_products_store_id", "products")
    op.drop_table("products")
    op.drop_table("stores")
    bind = op.get_bind()
    product_status.drop(bind, checkfirst=True)
    pricing_mode.drop(bind, checkfirst=True)
