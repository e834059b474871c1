"""ERP Core — InventoryItem model (catalog entry; stock is derived from the ledger)."""
import uuid
from datetime import datetime
from decimal import Decimal
from enum import Enum

from sqlalchemy import DateTime, Integer, Numeric, String, UniqueConstraint, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from erp_core.db.base import Base, utcnow


class ItemKind(str, Enum):
    RAW_MATERIAL = "raw_material"
    MANUFACTURED_GOOD = "manufactured_good"


class InventoryItem(Base):
    """Catalog item. Deliberately has no quantity column: on-hand stock is the ledger sum."""

    __tablename__ = "inventory_items"
    __table_args__ = (UniqueConstraint("company_id", "sku", name="uq_inventory_items_company_sku"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    company_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    sku: Mapped[str] = mapped_column(String(100), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    kind: Mapped[str] = mapped_column(String(50), nullable=False, default=ItemKind.RAW_MATERIAL.value)
    cost_price: Mapped[Decimal] = mapped_column(Numeric(18, 4), nullable=False, default=0)
    sales_price: Mapped[Decimal] = mapped_column(Numeric(18, 4), nullable=False, default=0)
    reorder_level: Mapped[Decimal] = mapped_column(Numeric(18, 4), nullable=False, default=0)
    minimum_stock_level: Mapped[Decimal] = mapped_column(Numeric(18, 4), nullable=False, default=0)
    lead_time_days: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now())
