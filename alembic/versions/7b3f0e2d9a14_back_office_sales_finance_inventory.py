"""back-office sales, finance and inventory tables

Revision ID: 7b3f0e2d9a14
Revises: 5d1e7a9c2b40
Create Date: 2026-10-19 16:40:05.402771

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision: str = '7b3f0e2d9a14'
down_revision: Union[str, Sequence[str], None] = '5d1e7a9c2b40'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    bind = op.get_bind()
    inspector = sa.inspect(bind)

    if not inspector.has_table("sales"):
        op.create_table(
            "sales",
            sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
            sa.Column("product_id", postgresql.UUID(as_uuid=True), sa.ForeignKey("products.id"), nullable=False),
            sa.Column("quantity", sa.Integer(), nullable=False),
            sa.Column("unit_price", sa.Numeric(10, 2), nullable=False),
            sa.Column("total_amount", sa.Numeric(10, 2), nullable=False),
            sa.Column("date", sa.Date(), nullable=False),
            sa.Column("notes", sa.String(length=1000), nullable=True),
            sa.Column("created_by", sa.String(length=100), nullable=True),
            sa.Column("created_at", sa.TIMESTAMP(), server_default=sa.text("now()"), nullable=True),
            sa.CheckConstraint("quantity > 0", name="ck_sales_quantity_positive"),
        )
        op.create_index("ix_sales_product_id", "sales", ["product_id"])
        op.create_index("ix_sales_date", "sales", ["date"])

    if not inspector.has_table("transactions"):
        op.create_table(
            "transactions",
            sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
            sa.Column("type", sa.String(length=10), nullable=False),
            sa.Column("description", sa.String(length=500), nullable=False),
            sa.Column("amount", sa.Numeric(12, 2), nullable=False),
            sa.Column("category", sa.String(length=100), nullable=False),
            sa.Column("date", sa.Date(), nullable=False),
            sa.Column("created_by", sa.String(length=100), nullable=True),
            sa.Column("created_at", sa.TIMESTAMP(), server_default=sa.text("now()"), nullable=True),
            sa.CheckConstraint("type IN ('income', 'expense')", name="ck_transactions_type"),
            sa.CheckConstraint("amount >= 0", name="ck_transactions_amount_non_negative"),
        )
        op.create_index("ix_transactions_date", "transactions", ["date"])

    if not inspector.has_table("product_inventory"):
        op.create_table(
            "product_inventory",
            sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, nullable=False),
            sa.Column(
                "product_id",
                postgresql.UUID(as_uuid=True),
                sa.ForeignKey("products.id"),
                nullable=False,
                unique=True,
            ),
            sa.Column("quantity_available", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("quantity_sold", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("reorder_level", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("last_restocked", sa.TIMESTAMP(), nullable=True),
            sa.Column("created_at", sa.TIMESTAMP(), server_default=sa.text("now()"), nullable=True),
            sa.Column("updated_at", sa.TIMESTAMP(), server_default=sa.text("now()"), nullable=True),
        )


def downgrade() -> None:
    """Downgrade schema."""
    bind = op.get_bind()
    inspector = sa.inspect(bind)

    for table in ("product_inventory", "transactions", "sales"):
        if inspector.has_table(table):
            op.drop_table(table)
