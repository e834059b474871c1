"""ERP Core — AvailabilityService: read-only stock check against the ledger."""
from dataclasses import dataclass, field
from decimal import Decimal
from uuid import UUID

from erp_core.core.exceptions import NotFoundError, ValidationError
from erp_core.repositories.item_repository import ItemRepository
from erp_core.services.ledger_service import LedgerService, to_decimal


@dataclass(frozen=True)
class StockLine:
    item_id: UUID
    quantity: Decimal


@dataclass(frozen=True)
class Shortfall:
    item_id: UUID
    name: str
    requested: Decimal
    available: Decimal


@dataclass(frozen=True)
class AvailabilityResult:
    sufficient: bool
    shortfalls: list[Shortfall] = field(default_factory=list)


class AvailabilityService:
    """Compares requested quantities with ledger-derived stock. Never writes."""

    def __init__(self, items: ItemRepository, ledger: LedgerService):
        self._items = items
        self._ledger = ledger

    @classmethod
    def from_uow(cls, uow, clock=None) -> "AvailabilityService":
        return cls(uow.items, LedgerService.from_uow(uow, clock))

    async def check_availability(self, lines: list[StockLine]) -> AvailabilityResult:
        # Several lines for one item compete for the same stock, so they are summed.
        requested: dict[UUID, Decimal] = {}
        for line in lines:
            quantity = to_decimal(line.quantity, "quantity")
            if quantity <= 0:
                raise ValidationError("Quantity must be greater than zero", field="quantity")
            requested[line.item_id] = requested.get(line.item_id, Decimal("0")) + quantity

        items = await self._items.get_many(requested)
        for item_id in requested:
            if item_id not in items:
                raise NotFoundError("InventoryItem", item_id)

        on_hand = await self._ledger.quantities_on_hand(requested)
        shortfalls = [
            Shortfall(item_id=item_id, name=items[item_id].name, requested=qty, available=on_hand[item_id])
            for item_id, qty in requested.items()
            if on_hand[item_id] < qty
        ]
        return AvailabilityResult(sufficient=not shortfalls, shortfalls=shortfalls)
