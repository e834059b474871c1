"""Replenishment scorer: urgency rule, filtering and ordering."""
from decimal import Decimal

import pytest

from erp_core.models.item import ItemKind
from erp_core.services.replenishment_service import ReplenishmentService, urgency_score


@pytest.mark.parametrize(
    "stock,reorder,lead,expected",
    [
        ("0", "10", 5, 100),
        ("0", "10", 0, 100),
        ("2", "10", 0, 90),
        ("2.5", "10", 0, 90),
        ("5", "10", 0, 70),
        ("8", "10", 0, 50),
        ("8", "10", 5, 60),
        ("8", "10", 15, 70),
        ("0", "0", 0, 50),
        ("0", "0", 3, 56),
        ("-2", "10", 0, 90),
    ],
)
def test_urgency_score(stock, reorder, lead, expected):
    assert urgency_score(Decimal(stock), Decimal(reorder), lead) == expected


async def test_alerts_include_only_raw_materials_at_or_below_reorder_level(seed, uow_factory, clock):
    empty = await seed.item("RM-EMPTY", name="Copper", reorder_level="10", lead_time_days=5)
    at_level = await seed.item("RM-AT", name="Brass", reorder_level="4")
    above = await seed.item("RM-ABOVE", name="Zinc", reorder_level="4")
    finished = await seed.item("FG", name="Assembly", kind=ItemKind.MANUFACTURED_GOOD, reorder_level="10")
    await seed.stock(at_level.id, 4)
    await seed.stock(above.id, 5)

    async with uow_factory() as uow:
        alerts = await ReplenishmentService.from_uow(uow, clock).replenishment_alerts()

    assert [a.item_id for a in alerts] == [empty.id, at_level.id]
    assert alerts[0].urgency_score == 100
    assert alerts[0].current_stock == 0
    assert alerts[1].urgency_score == 50
    assert finished.id not in {a.item_id for a in alerts}


async def test_equal_scores_keep_name_order(seed, uow_factory, clock):
    await seed.item("RM-2", name="Beta", reorder_level="10")
    await seed.item("RM-1", name="Alpha", reorder_level="10")
    nearly_stocked = await seed.item("RM-3", name="Aardvark", reorder_level="10")
    await seed.stock(nearly_stocked.id, 8)

    async with uow_factory() as uow:
        alerts = await ReplenishmentService.from_uow(uow, clock).replenishment_alerts()

    assert [(a.name, a.urgency_score) for a in alerts] == [("Alpha", 100), ("Beta", 100), ("Aardvark", 50)]
    assert alerts[0].to_dict()["current_stock"] == "0"
