"""Stock availability checker: shortfalls, summed lines, read-only behaviour."""
from decimal import Decimal
from uuid import uuid4

import pytest

from erp_core.core.exceptions import NotFoundError
from erp_core.services.availability_service import AvailabilityService, StockLine


async def test_sufficient_when_every_line_is_covered(seed, uow_factory, clock):
    bolts = await seed.item("BOLT")
    nuts = await seed.item("NUT")
    await seed.stock(bolts.id, 10)
    await seed.stock(nuts.id, 4)

    async with uow_factory() as uow:
        result = await AvailabilityService.from_uow(uow, clock).check_availability(
            [StockLine(bolts.id, Decimal("10")), StockLine(nuts.id, Decimal("1"))]
        )

    assert result.sufficient
    assert result.shortfalls == []


async def test_shortfall_reports_requested_and_available(seed, uow_factory, clock):
    bolts = await seed.item("BOLT", name="Bolt M6")
    await seed.stock(bolts.id, 3)

    async with uow_factory() as uow:
        result = await AvailabilityService.from_uow(uow, clock).check_availability([StockLine(bolts.id, Decimal("5"))])

    assert not result.sufficient
    (shortfall,) = result.shortfalls
    assert shortfall.item_id == bolts.id
    assert shortfall.name == "Bolt M6"
    assert shortfall.requested == Decimal("5")
    assert shortfall.available == Decimal("3")


async def test_lines_for_the_same_item_are_summed(seed, uow_factory, clock):
    bolts = await seed.item("BOLT")
    await seed.stock(bolts.id, 5)

    async with uow_factory() as uow:
        result = await AvailabilityService.from_uow(uow, clock).check_availability(
            [StockLine(bolts.id, Decimal("3")), StockLine(bolts.id, Decimal("3"))]
        )

    assert not result.sufficient
    assert result.shortfalls[0].requested == Decimal("6")


async def test_unknown_item_is_not_found(uow_factory, clock):
    with pytest.raises(NotFoundError):
        async with uow_factory() as uow:
            await AvailabilityService.from_uow(uow, clock).check_availability([StockLine(uuid4(), Decimal("1"))])


async def test_check_writes_nothing(seed, uow_factory, clock):
    bolts = await seed.item("BOLT")
    await seed.stock(bolts.id, 2)

    async with uow_factory() as uow:
        await AvailabilityService.from_uow(uow, clock).check_availability([StockLine(bolts.id, Decimal("1"))])

    async with uow_factory() as uow:
        assert len(await uow.ledger.list_for_item(bolts.id)) == 1
    assert await seed.on_hand(bolts.id) == Decimal("2")
