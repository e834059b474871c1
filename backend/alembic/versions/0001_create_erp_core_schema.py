"""create inventory ledger, orders, BOMs and order sequences

Revision ID: 0001
Revises:
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID, NUMERIC

revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

TENANT_TABLES = (
    "inventory_items",
    "inventory_transactions",
    "orders",
    "bills_of_material",
    "order_sequences",
)


def upgrade() -> None:
    # inventory_items (no quantity column: stock is derived from the ledger)
    op.create_table(
        "inventory_items",
        sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("company_id", UUID(as_uuid=True), nullable=False),
        sa.Column("sku", sa.String(100), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("kind", sa.String(50), nullable=False, server_default="raw_material"),
        sa.Column("cost_price", NUMERIC(18, 4), nullable=False, server_default="0"),
        sa.Column("sales_price", NUMERIC(18, 4), nullable=False, server_default="0"),
        sa.Column("reorder_level", NUMERIC(18, 4), nullable=False, server_default="0"),
        sa.Column("minimum_stock_level", NUMERIC(18, 4), nullable=False, server_default="0"),
        sa.Column("lead_time_days", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.CheckConstraint("kind IN ('raw_material', 'manufactured_good')", name="ck_inventory_items_kind"),
    )
    op.create_index("ix_inventory_items_company_id", "inventory_items", ["company_id"], unique=False)
    op.create_unique_constraint("uq_inventory_items_company_sku", "inventory_items", ["company_id", "sku"])

    # inventory_transactions (append-only, no updated_at)
    op.create_table(
        "inventory_transactions",
        sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("company_id", UUID(as_uuid=True), nullable=False),
        sa.Column("item_id", UUID(as_uuid=True), sa.ForeignKey("inventory_items.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("quantity", NUMERIC(18, 4), nullable=False),
        sa.Column("kind", sa.String(20), nullable=False),
        sa.Column("reference", sa.String(255), nullable=True),
        sa.Column("note", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.CheckConstraint("quantity > 0", name="ck_inventory_transactions_quantity_positive"),
        sa.CheckConstraint("kind IN ('purchase', 'sale', 'adjustment')", name="ck_inventory_transactions_kind"),
    )
    op.create_index(
        "ix_inventory_transactions_company_item", "inventory_transactions", ["company_id", "item_id"], unique=False
    )
    op.create_index("ix_inventory_transactions_created_at", "inventory_transactions", ["created_at"], unique=False)

    # orders + order_items
    op.create_table(
        "orders",
        sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("company_id", UUID(as_uuid=True), nullable=False),
        sa.Column("order_number", sa.String(50), nullable=False),
        sa.Column("customer_id", UUID(as_uuid=True), nullable=False),
        sa.Column("status", sa.String(50), nullable=False, server_default="draft"),
        sa.Column("total_amount", NUMERIC(18, 4), nullable=False, server_default="0"),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    )
    op.create_index("ix_orders_company_id", "orders", ["company_id"], unique=False)
    op.create_index("ix_orders_customer_id", "orders", ["customer_id"], unique=False)
    op.create_unique_constraint("uq_orders_company_order_number", "orders", ["company_id", "order_number"])

    op.create_table(
        "order_items",
        sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("order_id", UUID(as_uuid=True), sa.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False),
        sa.Column("item_id", UUID(as_uuid=True), sa.ForeignKey("inventory_items.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("quantity", NUMERIC(18, 4), nullable=False),
        sa.Column("unit_price", NUMERIC(18, 4), nullable=False, server_default="0"),
        sa.Column("discount_amount", NUMERIC(18, 4), nullable=True),
        sa.Column("discount_percentage", NUMERIC(7, 4), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.CheckConstraint("quantity > 0", name="ck_order_items_quantity_positive"),
        sa.CheckConstraint("unit_price >= 0", name="ck_order_items_unit_price_non_negative"),
    )
    op.create_index("ix_order_items_order_id", "order_items", ["order_id"], unique=False)

    # bills_of_material + bom_items
    op.create_table(
        "bills_of_material",
        sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("company_id", UUID(as_uuid=True), nullable=False),
        sa.Column("item_id", UUID(as_uuid=True), sa.ForeignKey("inventory_items.id", ondelete="CASCADE"), nullable=False),
        sa.Column("manual_labor_cost", NUMERIC(18, 4), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    )
    op.create_index("ix_bills_of_material_company_id", "bills_of_material", ["company_id"], unique=False)
    op.create_unique_constraint("uq_bills_of_material_company_item", "bills_of_material", ["company_id", "item_id"])

    op.create_table(
        "bom_items",
        sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("bom_id", UUID(as_uuid=True), sa.ForeignKey("bills_of_material.id", ondelete="CASCADE"), nullable=False),
        sa.Column(
            "component_item_id", UUID(as_uuid=True), sa.ForeignKey("inventory_items.id", ondelete="RESTRICT"), nullable=False
        ),
        sa.Column("quantity", NUMERIC(18, 4), nullable=False),
        sa.CheckConstraint("quantity > 0", name="ck_bom_items_quantity_positive"),
    )
    op.create_index("ix_bom_items_bom_id", "bom_items", ["bom_id"], unique=False)

    # order_sequences (one locked counter row per company and 2-digit year)
    op.create_table(
        "order_sequences",
        sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("company_id", UUID(as_uuid=True), nullable=False),
        sa.Column("year", sa.String(2), nullable=False),
        sa.Column("last_value", sa.BigInteger(), nullable=False, server_default="0"),
    )
    op.create_unique_constraint("uq_order_sequences_company_year", "order_sequences", ["company_id", "year"])

    # REVOKE UPDATE, DELETE on inventory_transactions from erp_app (INSERT-only)
    op.execute("REVOKE UPDATE ON inventory_transactions FROM erp_app")
    op.execute("REVOKE DELETE ON inventory_transactions FROM erp_app")
    op.execute("GRANT INSERT, SELECT ON inventory_transactions TO erp_app")

    # RLS on every company-scoped table
    for table in TENANT_TABLES:
        op.execute(f"ALTER TABLE {table} ENABLE ROW LEVEL SECURITY")
        op.execute(
            f"CREATE POLICY {table}_company_policy ON {table} "
            "USING (company_id = nullif(trim(current_setting('app.company_id', true)), '')::uuid)"
        )


def downgrade() -> None:
    for table in reversed(TENANT_TABLES):
        op.execute(f"DROP POLICY IF EXISTS {table}_company_policy ON {table}")
        op.execute(f"ALTER TABLE {table} DISABLE ROW LEVEL SECURITY")

    op.drop_constraint("uq_order_sequences_company_year", "order_sequences", type_="unique")
    op.drop_table("order_sequences")

    op.drop_index("ix_bom_items_bom_id", table_name="bom_items")
    op.drop_table("bom_items")
    op.drop_constraint("uq_bills_of_material_company_item", "bills_of_material", type_="unique")
    op.drop_index("ix_bills_of_material_company_id", table_name="bills_of_material")
    op.drop_table("bills_of_material")

    op.drop_index("ix_order_items_order_id", table_name="order_items")
    op.drop_table("order_items")
    op.drop_constraint("uq_orders_company_order_number", "orders", type_="unique")
    op.drop_index("ix_orders_customer_id", table_name="orders")
    op.drop_index("ix_orders_company_id", table_name="orders")
    op.drop_table("orders")

    op.drop_index("ix_inventory_transactions_created_at", table_name="inventory_transactions")
    op.drop_index("ix_inventory_transactions_company_item", table_name="inventory_transactions")
    op.drop_table("inventory_transactions")

    op.drop_constraint("uq_inventory_items_company_sku", "inventory_items", type_="unique")
    op.drop_index("ix_inventory_items_company_id", table_name="inventory_items")
    op.drop_table("inventory_items")
