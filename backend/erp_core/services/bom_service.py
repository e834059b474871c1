"""ERP Core — BOMCostEngine and BOMService: unit cost roll-up and BOM maintenance."""
import logging
from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from erp_core.config import get_settings
from erp_core.core.exceptions import NotFoundError, ValidationError
from erp_core.models.bom import BillOfMaterial, BOMItem
from erp_core.models.item import InventoryItem, ItemKind
from erp_core.repositories.bom_repository import BOMRepository
from erp_core.repositories.item_repository import ItemRepository
from erp_core.services.ledger_service import to_decimal

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BOMLineInput:
    component_item_id: UUID
    quantity: Decimal


@dataclass(frozen=True)
class CostLine:
    component_item_id: UUID
    name: str
    quantity: Decimal
    unit_cost: Decimal
    line_total: Decimal


@dataclass(frozen=True)
class CostBreakdown:
    item_id: UUID
    kind: str
    manual_labor_cost: Decimal
    unit_cost: Decimal
    lines: list[CostLine]


class BOMCostEngine:
    """
    Unit cost of an item.

    Raw materials (and manufactured goods without a BOM) cost their own
    ``cost_price``. A manufactured good with a BOM costs its labor plus
    ``quantity * component cost`` per line. By default components are priced at
    their own ``cost_price`` (single level); ``recursive=True`` rolls nested BOMs
    up instead, refusing cycles and trees deeper than ``BOM_MAX_DEPTH``.
    """

    def __init__(self, items: ItemRepository, boms: BOMRepository, max_depth: int | None = None):
        self._items = items
        self._boms = boms
        self._max_depth = max_depth if max_depth is not None else get_settings().BOM_MAX_DEPTH

    @classmethod
    def from_uow(cls, uow) -> "BOMCostEngine":
        return cls(uow.items, uow.boms)

    async def unit_cost(self, item_id: UUID, *, recursive: bool = False) -> Decimal:
        item = await self._items.get(item_id)
        if item is None:
            raise NotFoundError("InventoryItem", item_id)
        return await self._cost_of(item, recursive, frozenset(), 0)

    async def _cost_of(
        self, item: InventoryItem, recursive: bool, path: frozenset[UUID], depth: int
    ) -> Decimal:
        if item.kind != ItemKind.MANUFACTURED_GOOD.value:
            return item.cost_price
        bom = await self._boms.get_for_item(item.id)
        if bom is None:
            return item.cost_price
        if item.id in path:
            raise ValidationError(f"BOM cycle detected at item {item.sku}", field="bom")
        if depth > self._max_depth:
            raise ValidationError(f"BOM nesting deeper than {self._max_depth} levels", field="bom")

        total = bom.manual_labor_cost
        for line in bom.items:
            if recursive:
                component_cost = await self._cost_of(line.component, True, path | {item.id}, depth + 1)
            else:
                component_cost = line.component.cost_price
            total += line.quantity * component_cost
        return total

    async def cost_breakdown(self, item_id: UUID, *, recursive: bool = False) -> CostBreakdown:
        """Per-line view of the same computation ``unit_cost`` performs."""
        item = await self._items.get(item_id)
        if item is None:
            raise NotFoundError("InventoryItem", item_id)
        bom = None
        if item.kind == ItemKind.MANUFACTURED_GOOD.value:
            bom = await self._boms.get_for_item(item.id)
        if bom is None:
            return CostBreakdown(
                item_id=item.id,
                kind=item.kind,
                manual_labor_cost=Decimal("0"),
                unit_cost=item.cost_price,
                lines=[],
            )

        lines = []
        for line in bom.items:
            if recursive:
                component_cost = await self._cost_of(line.component, True, frozenset({item.id}), 1)
            else:
                component_cost = line.component.cost_price
            lines.append(
                CostLine(
                    component_item_id=line.component_item_id,
                    name=line.component.name,
                    quantity=line.quantity,
                    unit_cost=component_cost,
                    line_total=line.quantity * component_cost,
                )
            )
        return CostBreakdown(
            item_id=item.id,
            kind=item.kind,
            manual_labor_cost=bom.manual_labor_cost,
            unit_cost=bom.manual_labor_cost + sum((cl.line_total for cl in lines), Decimal("0")),
            lines=lines,
        )


class BOMService:
    """Create, replace, read and delete the BOM of a manufactured good."""

    def __init__(self, items: ItemRepository, boms: BOMRepository):
        self._items = items
        self._boms = boms

    @classmethod
    def from_uow(cls, uow) -> "BOMService":
        return cls(uow.items, uow.boms)

    async def get_bom(self, item_id: UUID) -> BillOfMaterial:
        bom = await self._boms.get_for_item(item_id)
        if bom is None:
            raise NotFoundError("BillOfMaterial", item_id)
        return bom

    async def upsert_bom(
        self,
        item_id: UUID,
        lines: list[BOMLineInput],
        manual_labor_cost: Decimal = Decimal("0"),
    ) -> BillOfMaterial:
        """Create the item's BOM, or replace its labor cost and every line."""
        item = await self._items.get(item_id)
        if item is None:
            raise NotFoundError("InventoryItem", item_id)
        if item.kind != ItemKind.MANUFACTURED_GOOD.value:
            raise ValidationError("Only manufactured goods can have a bill of materials", field="item_id")

        labor = to_decimal(manual_labor_cost, "manual_labor_cost")
        if labor < 0:
            raise ValidationError("Manual labor cost cannot be negative", field="manual_labor_cost")

        seen: set[UUID] = set()
        for line in lines:
            if line.component_item_id == item_id:
                raise ValidationError("A BOM cannot contain the item it builds", field="component_item_id")
            if line.component_item_id in seen:
                raise ValidationError(
                    f"Component {line.component_item_id} listed more than once", field="component_item_id"
                )
            seen.add(line.component_item_id)
            if to_decimal(line.quantity, "quantity") <= 0:
                raise ValidationError("Component quantity must be greater than zero", field="quantity")

        components = await self._items.get_many(seen)
        for component_id in seen:
            if component_id not in components:
                raise NotFoundError("InventoryItem", component_id)

        new_items = [
            BOMItem(
                component_item_id=line.component_item_id,
                component=components[line.component_item_id],
                quantity=to_decimal(line.quantity, "quantity"),
            )
            for line in lines
        ]

        bom = await self._boms.get_for_item(item_id)
        if bom is None:
            bom = await self._boms.add(
                BillOfMaterial(item_id=item_id, manual_labor_cost=labor, items=new_items)
            )
            logger.info("BOM created for %s with %d lines", item.sku, len(new_items))
            return bom

        bom.manual_labor_cost = labor
        bom.items.clear()
        await self._boms.flush()
        bom.items.extend(new_items)
        await self._boms.flush()
        logger.info("BOM replaced for %s with %d lines", item.sku, len(new_items))
        return bom

    async def delete_bom(self, item_id: UUID) -> None:
        bom = await self.get_bom(item_id)
        await self._boms.delete(bom)
        logger.info("BOM deleted for item %s", item_id)
