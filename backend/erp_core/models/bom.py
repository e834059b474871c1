"""ERP Core — BillOfMaterial and BOMItem models."""
import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, ForeignKey, Numeric, UniqueConstraint, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from erp_core.db.base import Base, utcnow
from erp_core.models.item import InventoryItem


class BillOfMaterial(Base):
    """Bill of Materials — the component recipe for one unit of a manufactured item."""

    __tablename__ = "bills_of_material"
    __table_args__ = (UniqueConstraint("company_id", "item_id", name="uq_bills_of_material_company_item"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    company_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    item_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("inventory_items.id", ondelete="CASCADE"), nullable=False)
    manual_labor_cost: Mapped[Decimal] = mapped_column(Numeric(18, 4), nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now())

    items: Mapped[list["BOMItem"]] = relationship(
        "BOMItem", back_populates="bom", cascade="all, delete-orphan", lazy="selectin"
    )


class BOMItem(Base):
    """A single component line within a BOM."""

    __tablename__ = "bom_items"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    bom_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("bills_of_material.id", ondelete="CASCADE"), nullable=False)
    component_item_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("inventory_items.id", ondelete="RESTRICT"), nullable=False)
    quantity: Mapped[Decimal] = mapped_column(Numeric(18, 4), nullable=False)

    bom: Mapped["BillOfMaterial"] = relationship("BillOfMaterial", back_populates="items")
    component: Mapped["InventoryItem"] = relationship("InventoryItem", lazy="selectin")
