"""ERP Core — SQLAlchemy models."""
from erp_core.models.bom import BillOfMaterial, BOMItem
from erp_core.models.item import InventoryItem, ItemKind
from erp_core.models.ledger import InventoryTransaction, TransactionKind
from erp_core.models.order import ALLOWED_TRANSITIONS, Order, OrderItem, OrderStatus
from erp_core.models.sequence import OrderSequence

__all__ = [
    "InventoryItem", "ItemKind",
    "InventoryTransaction", "TransactionKind",
    "Order", "OrderItem", "OrderStatus", "ALLOWED_TRANSITIONS",
    "BillOfMaterial", "BOMItem",
    "OrderSequence",
]
