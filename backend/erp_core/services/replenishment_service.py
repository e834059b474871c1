"""ERP Core — ReplenishmentService: rank raw materials at or below their reorder level."""
from dataclasses import asdict, dataclass
from decimal import Decimal
from uuid import UUID

from erp_core.models.item import ItemKind
from erp_core.repositories.item_repository import ItemRepository
from erp_core.services.ledger_service import LedgerService


@dataclass(frozen=True)
class AlertItem:
    item_id: UUID
    sku: str
    name: str
    current_stock: Decimal
    reorder_level: Decimal
    lead_time_days: int
    urgency_score: int

    def to_dict(self) -> dict:
        data = asdict(self)
        data["item_id"] = str(self.item_id)
        data["current_stock"] = str(self.current_stock)
        data["reorder_level"] = str(self.reorder_level)
        return data


def urgency_score(current_stock: Decimal, reorder_level: Decimal, lead_time_days: int) -> int:
    """
    0-100 priority. Exactly zero stock scores 100, a quarter of the reorder
    level or less (negative stock included) 90, half or less 70, otherwise 50
    (also when no reorder level is set). Long lead times add up to 20 more,
    capped at 100.
    """
    if reorder_level > 0:
        ratio = current_stock / reorder_level
        if ratio == 0:
            base = 100
        elif ratio <= Decimal("0.25"):
            base = 90
        elif ratio <= Decimal("0.5"):
            base = 70
        else:
            base = 50
    else:
        base = 50

    if lead_time_days and lead_time_days > 0:
        base += min(lead_time_days * 2, 20)
    return min(base, 100)


class ReplenishmentService:
    def __init__(self, items: ItemRepository, ledger: LedgerService):
        self._items = items
        self._ledger = ledger

    @classmethod
    def from_uow(cls, uow, clock=None) -> "ReplenishmentService":
        return cls(uow.items, LedgerService.from_uow(uow, clock))

    async def replenishment_alerts(self) -> list[AlertItem]:
        """Raw materials with stock at or below reorder level, most urgent first."""
        materials = await self._items.list(kind=ItemKind.RAW_MATERIAL)
        on_hand = await self._ledger.quantities_on_hand(m.id for m in materials)
        alerts = [
            AlertItem(
                item_id=m.id,
                sku=m.sku,
                name=m.name,
                current_stock=on_hand[m.id],
                reorder_level=m.reorder_level,
                lead_time_days=m.lead_time_days,
                urgency_score=urgency_score(on_hand[m.id], m.reorder_level, m.lead_time_days),
            )
            for m in materials
            if on_hand[m.id] <= m.reorder_level
        ]
        # list.sort is stable, so equal scores keep name order
        alerts.sort(key=lambda a: a.urgency_score, reverse=True)
        return alerts
