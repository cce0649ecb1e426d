"""
Initial schema - marketplace documents read/written by SmartMatch

Revision ID: 001
Revises: None
Create Date: 2026-10-19
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # 1. Businesses
    op.create_table(
        "businesses",
        sa.Column("business_id", sa.String(64), primary_key=True),
        sa.Column("slug", sa.String(255)),
        sa.Column("name", sa.String(255), nullable=False, server_default=""),
        sa.Column("state", sa.String(100)),
        sa.Column("city", sa.String(100)),
        sa.Column("whatsapp", sa.String(50)),
        sa.Column("verification_tier", sa.Integer, nullable=False, server_default="0"),
        sa.Column("apex_badge_active", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("continue_in_chat_enabled", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column("subscription", sa.JSON),
        sa.Column("review_summary", sa.JSON),
        sa.Column("smart_match", sa.JSON),
        sa.Column("created_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("verification_tier >= 0 AND verification_tier <= 3", name="ck_business_verification_tier"),
    )

    # 2. Orders
    op.create_table(
        "orders",
        sa.Column("order_id", sa.String(64), primary_key=True),
        sa.Column("business_id", sa.String(64), sa.ForeignKey("businesses.business_id"), nullable=False),
        sa.Column("buyer_id", sa.String(64)),
        sa.Column("order_status", sa.String(50)),
        sa.Column("ops_status", sa.String(50)),
        sa.Column("payment_status", sa.String(50)),
        sa.Column("payment_type", sa.String(50)),
        sa.Column("escrow_status", sa.String(50)),
        sa.Column("category_keys", sa.JSON),
        sa.Column("created_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
        sa.Column("created_at_ms", sa.BigInteger),
        sa.Column("updated_at_ms", sa.BigInteger),
        sa.Column("delivered_at_ms", sa.BigInteger),
        sa.Column("delivery_duration_hours", sa.Float),
    )
    op.create_index("ix_orders_business_created", "orders", ["business_id", "created_at"])
    op.create_index("ix_orders_buyer", "orders", ["buyer_id"])

    # 3. Disputes
    op.create_table(
        "disputes",
        sa.Column("dispute_id", sa.String(64), primary_key=True),
        sa.Column("order_id", sa.String(64), nullable=False),
        sa.Column("business_id", sa.String(64)),
        sa.Column("status", sa.String(50), nullable=False, server_default="open"),
        sa.Column("created_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_disputes_business", "disputes", ["business_id"])
    op.create_index("ix_disputes_order", "disputes", ["order_id"])

    # 4. Products
    op.create_table(
        "products",
        sa.Column("product_id", sa.String(64), primary_key=True),
        sa.Column("business_id", sa.String(64), sa.ForeignKey("businesses.business_id"), nullable=False),
        sa.Column("name", sa.String(255), nullable=False, server_default=""),
        sa.Column("listing_type", sa.String(20), nullable=False, server_default="product"),
        sa.Column("stock", sa.Integer),
        sa.Column("price", sa.Float),
        sa.Column("category_keys", sa.JSON),
        sa.Column("created_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_products_business", "products", ["business_id"])

    # 5. Platform config
    op.create_table(
        "platform_config",
        sa.Column("config_key", sa.String(128), primary_key=True),
        sa.Column("document", sa.JSON, nullable=False),
        sa.Column("updated_at", sa.DateTime, nullable=False, server_default=sa.func.now()),
    )


def downgrade() -> None:
    tables = [
        "platform_config",
        "products",
        "disputes",
        "orders",
        "businesses",
    ]
    for table in tables:
        op.drop_table(table)
