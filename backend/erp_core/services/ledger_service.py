"""ERP Core — LedgerService: record_transaction, quantity_on_hand, adjust_stock, transaction_history."""
import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation
from uuid import UUID

from erp_core.core.clock import SystemClock
from erp_core.core.exceptions import NotFoundError, ValidationError
from erp_core.models.item import InventoryItem
from erp_core.models.ledger import InventoryTransaction, TransactionKind
from erp_core.repositories.item_repository import ItemRepository
from erp_core.repositories.ledger_repository import LedgerRepository

logger = logging.getLogger(__name__)

MANUAL_ADJUSTMENT_REFERENCE = "Manual Adjustment"


def to_decimal(value, field: str) -> Decimal:
    try:
        return value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise ValidationError(f"{field} must be a number, got {value!r}", field=field)


def signed_quantity(tx: InventoryTransaction) -> Decimal:
    return -tx.quantity if tx.kind == TransactionKind.SALE.value else tx.quantity


@dataclass(frozen=True)
class LowStockItem:
    item_id: UUID
    sku: str
    name: str
    quantity_on_hand: Decimal
    minimum_stock_level: Decimal
    reorder_level: Decimal


class LedgerService:
    """
    Immutable inventory ledger.

    Quantity on hand is never stored: it is always the sum of the item's
    transactions (sales subtract, purchases and adjustments add), computed on
    the caller's session so it sees the same snapshot as any write that follows.
    """

    def __init__(self, items: ItemRepository, ledger: LedgerRepository, clock=None):
        self._items = items
        self._ledger = ledger
        self._clock = clock or SystemClock()

    @classmethod
    def from_uow(cls, uow, clock=None) -> "LedgerService":
        return cls(uow.items, uow.ledger, clock)

    async def _require_item(self, item_id: UUID) -> InventoryItem:
        item = await self._items.get(item_id)
        if item is None:
            raise NotFoundError("InventoryItem", item_id)
        return item

    async def record_transaction(
        self,
        item_id: UUID,
        quantity: Decimal,
        kind: TransactionKind | str,
        *,
        reference: str | None = None,
        note: str | None = None,
    ) -> InventoryTransaction:
        """Append one transaction. ``quantity`` must be positive; ``kind`` gives the sign."""
        try:
            kind = TransactionKind(kind)
        except ValueError:
            raise ValidationError(f"Unknown transaction kind: {kind!r}", field="kind")
        quantity = to_decimal(quantity, "quantity")
        if quantity <= 0:
            raise ValidationError("Quantity must be greater than zero", field="quantity")

        await self._require_item(item_id)

        tx = await self._ledger.append(
            InventoryTransaction(
                item_id=item_id,
                quantity=quantity,
                kind=kind.value,
                reference=reference,
                note=note,
                created_at=self._clock.now(),
            )
        )
        logger.info("Ledger %s %s x%s (ref=%s)", kind.value, item_id, quantity, reference)
        return tx

    async def quantity_on_hand(self, item_id: UUID, as_of: datetime | None = None) -> Decimal:
        """
        Ledger sum for one item. Without ``as_of`` every row visible to the
        session counts, whatever its timestamp; ``as_of`` is only for explicit
        point-in-time reads.
        """
        await self._require_item(item_id)
        return await self._ledger.sum_for_item(item_id, as_of)

    async def quantities_on_hand(self, item_ids, as_of: datetime | None = None) -> dict[UUID, Decimal]:
        return await self._ledger.sums_for_items(item_ids, as_of)

    async def adjust_stock(self, item_id: UUID, change: Decimal, note: str | None = None) -> InventoryTransaction:
        """Manual correction: positive change books a purchase, negative change a sale."""
        change = to_decimal(change, "change")
        if change == 0:
            raise ValidationError("Quantity change cannot be zero.", field="change")
        if change > 0:
            kind, default_note = TransactionKind.PURCHASE, "Stock-in"
        else:
            kind, default_note = TransactionKind.SALE, "Stock-out"
        return await self.record_transaction(
            item_id,
            abs(change),
            kind,
            reference=MANUAL_ADJUSTMENT_REFERENCE,
            note=note or default_note,
        )

    async def transaction_history(
        self, item_id: UUID, limit: int = 50
    ) -> list[tuple[InventoryTransaction, Decimal]]:
        """Newest-first rows, each paired with the on-hand quantity right after it."""
        await self._require_item(item_id)
        rows = await self._ledger.list_for_item(item_id)
        balance = Decimal("0")
        out: list[tuple[InventoryTransaction, Decimal]] = []
        for tx in rows:
            balance += signed_quantity(tx)
            out.append((tx, balance))
        out.reverse()
        return out[:limit]

    async def low_stock_items(self) -> list[LowStockItem]:
        """Items whose on-hand quantity is at or below their minimum stock level."""
        items = await self._items.list()
        on_hand = await self.quantities_on_hand(item.id for item in items)
        return [
            LowStockItem(
                item_id=item.id,
                sku=item.sku,
                name=item.name,
                quantity_on_hand=on_hand[item.id],
                minimum_stock_level=item.minimum_stock_level,
                reorder_level=item.reorder_level,
            )
            for item in items
            if on_hand[item.id] <= item.minimum_stock_level
        ]
