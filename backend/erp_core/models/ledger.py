"""ERP Core — InventoryTransaction model (append-only stock ledger)."""
import uuid
from datetime import datetime
from decimal import Decimal
from enum import Enum

from sqlalchemy import DateTime, ForeignKey, Index, Numeric, String, Text, Uuid, event, func
from sqlalchemy.orm import Mapped, mapped_column

from erp_core.db.base import Base, utcnow


class TransactionKind(str, Enum):
    PURCHASE = "purchase"
    SALE = "sale"
    ADJUSTMENT = "adjustment"


class InventoryTransaction(Base):
    """
    Append-only stock ledger. No UPDATE or DELETE.

    ``quantity`` is always positive; ``kind`` decides the sign of its effect
    (sale subtracts, everything else adds).
    """

    __tablename__ = "inventory_transactions"
    __table_args__ = (
        Index("ix_inventory_transactions_company_item", "company_id", "item_id"),
        Index("ix_inventory_transactions_created_at", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    company_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    item_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("inventory_items.id", ondelete="RESTRICT"), nullable=False)
    quantity: Mapped[Decimal] = mapped_column(Numeric(18, 4), nullable=False)
    kind: Mapped[str] = mapped_column(String(20), nullable=False)
    reference: Mapped[str | None] = mapped_column(String(255), nullable=True)
    note: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, server_default=func.now())


@event.listens_for(InventoryTransaction, "before_update")
def _reject_update(mapper, connection, target):
    raise RuntimeError("inventory_transactions is append-only: UPDATE is not allowed")


@event.listens_for(InventoryTransaction, "before_delete")
def _reject_delete(mapper, connection, target):
    raise RuntimeError("inventory_transactions is append-only: DELETE is not allowed")
