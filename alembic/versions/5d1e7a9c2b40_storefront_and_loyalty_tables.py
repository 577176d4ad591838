"""storefront and loyalty tables

Revision ID: 5d1e7a9c2b40
Revises:
Create Date: 2026-10-19 10:12:41.118204

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '5d1e7a9c2b40'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    bind = op.get_bind()
    inspector = sa.inspect(bind)

    if not inspector.has_table("products"):
        op.create_table(
            "products",
            sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
            sa.Column("name", sa.String(length=200), nullable=False),
            sa.Column("description", sa.String(length=1000), nullable=True),
            sa.Column("price", sa.Numeric(10, 2), nullable=False),
            sa.Column("image_url", sa.String(length=500), nullable=True),
            sa.Column("category", sa.String(length=100), nullable=True),
            sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column("created_at", sa.TIMESTAMP(), server_default=sa.text("now()"), nullable=True),
            sa.Column("updated_at", sa.TIMESTAMP(), server_default=sa.text("now()"), nullable=True),
        )

    if not inspector.has_table("cart_items"):
        op.create_table(
            "cart_items",
            sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
            sa.Column("session_id", sa.String(length=100), nullable=False),
            sa.Column("product_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("products.id"), nullable=False),
            sa.Column("quantity", sa.Integer(), nullable=False, server_default="1"),
            sa.Column("created_at", sa.TIMESTAMP(), server_default=sa.text("now()"), nullable=True),
        )
        op.create_index("ix_cart_items_session_id", "cart_items", ["session_id"])

    if not inspector.has_table("orders"):
        op.create_table(
            "orders",
            sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
            sa.Column("session_id", sa.String(length=100), nullable=True),
            sa.Column("customer_name", sa.String(length=200), nullable=False),
            sa.Column("customer_phone", sa.String(length=30), nullable=False),
            sa.Column("delivery_option", sa.String(length=20), nullable=False, server_default="pickup"),
            sa.Column("delivery_address", sa.String(length=300), nullable=True),
            sa.Column("delivery_cep", sa.String(length=20), nullable=True),
            sa.Column("delivery_neighborhood", sa.String(length=100), nullable=True),
            sa.Column("subtotal", sa.Numeric(10, 2), nullable=False, server_default="0"),
            sa.Column("delivery_fee", sa.Numeric(10, 2), nullable=False, server_default="0"),
            sa.Column("total", sa.Numeric(10, 2), nullable=False, server_default="0"),
            sa.Column("order_notes", sa.String(length=1000), nullable=True),
            sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
            sa.Column("whatsapp_sent", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("loyalty_recorded", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("loyalty_error", sa.String(), nullable=True),
            sa.Column("created_at", sa.TIMESTAMP(), server_default=sa.text("now()"), nullable=True),
            sa.Column("updated_at", sa.TIMESTAMP(), server_default=sa.text("now()"), nullable=True),
        )
        op.create_index("ix_orders_status_created_at", "orders", ["status", "created_at"])

    if not inspector.has_table("order_items"):
        op.create_table(
            "order_items",
            sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
            sa.Column(
                "order_id",
                postgresql.UUID(as_uuid=True),
                sa.ForeignKey("orders.id", ondelete="CASCADE"),
                nullable=False,
            ),
            sa.Column(
                "product_id",
                postgresql.UUID(as_uuid=True),
                sa.ForeignKey("products.id", ondelete="SET NULL"),
                nullable=True,
            ),
            sa.Column("product_name", sa.String(length=200), nullable=False),
            sa.Column("quantity", sa.Integer(), nullable=True),
            sa.Column("unit_price", sa.Numeric(10, 2), nullable=False),
            sa.Column("total_price", sa.Numeric(10, 2), nullable=False),
        )

    if not inspector.has_table("loyalty_accounts"):
        op.create_table(
            "loyalty_accounts",
            sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
            sa.Column("phone_number", sa.String(length=20), nullable=False),
            sa.Column("customer_name", sa.String(length=200), nullable=True),
            sa.Column("points_accumulated", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("cycle_started_at", sa.TIMESTAMP(), nullable=False),
            sa.Column("last_purchase_at", sa.TIMESTAMP(), nullable=False),
            sa.CheckConstraint("points_accumulated >= 0", name="ck_loyalty_accounts_points_non_negative"),
        )
        op.create_index("ix_loyalty_accounts_phone_number", "loyalty_accounts", ["phone_number"], unique=True)

    if not inspector.has_table("loyalty_account_closures"):
        op.create_table(
            "loyalty_account_closures",
            sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
            sa.Column("phone_number", sa.String(length=20), nullable=False),
            sa.Column("customer_name", sa.String(length=200), nullable=True),
            sa.Column("reason", sa.String(length=20), nullable=False),
            sa.Column("points_at_close", sa.Integer(), nullable=False),
            sa.Column("cycle_started_at", sa.TIMESTAMP(), nullable=False),
            sa.Column("closed_at", sa.TIMESTAMP(), nullable=False),
            sa.Column("closed_by", sa.String(length=100), nullable=True),
        )
        op.create_index(
            "ix_loyalty_account_closures_phone_number",
            "loyalty_account_closures",
            ["phone_number"],
        )


def downgrade() -> None:
    """Downgrade schema."""
    bind = op.get_bind()
    inspector = sa.inspect(bind)

    for table in (
        "loyalty_account_closures",
        "loyalty_accounts",
        "order_items",
        "orders",
        "cart_items",
        "products",
    ):
        if inspector.has_table(table):
            op.drop_table(table)
