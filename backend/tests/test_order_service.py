"""Order lifecycle: numbering, draft-only editing, atomic confirmation."""
from datetime import timedelta
from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy.exc import OperationalError

from erp_core.core.clock import FixedClock
from erp_core.core.exceptions import (
    InsufficientStockError,
    InvalidOperationError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from erp_core.models.order import OrderStatus
from erp_core.repositories.order_repository import OrderRepository
from erp_core.services.order_service import OrderLineInput, OrderService


@pytest.fixture
async def widget(seed):
    return await seed.item("WIDGET", name="Widget", cost_price="12", sales_price="20")


async def _create(uow_factory, clock, lines=None, customer_id=None):
    async with uow_factory() as uow:
        return await OrderService.from_uow(uow, clock).create_order(customer_id or uuid4(), lines or [])


async def test_order_numbers_are_sequential_per_year(uow_factory, clock):
    first = await _create(uow_factory, clock)
    second = await _create(uow_factory, clock)
    clock.advance(days=365)
    next_year = await _create(uow_factory, clock)

    assert first.order_number == "ORD-26-00001"
    assert second.order_number == "ORD-26-00002"
    assert next_year.order_number == "ORD-27-00001"


async def test_order_numbers_are_per_company(uow_factory, clock):
    await _create(uow_factory, clock)
    other = await _create(lambda _=None: uow_factory(uuid4()), clock)
    assert other.order_number == "ORD-26-00001"


async def test_rolled_back_creation_does_not_consume_a_number(uow_factory, clock, widget):
    with pytest.raises(NotFoundError):
        await _create(uow_factory, clock, [OrderLineInput(item_id=uuid4(), quantity=Decimal("1"))])
    order = await _create(uow_factory, clock)
    assert order.order_number == "ORD-26-00001"


async def test_create_order_prices_lines_and_totals(uow_factory, clock, widget):
    order = await _create(
        uow_factory,
        clock,
        [
            OrderLineInput(item_id=widget.id, quantity=Decimal("2")),
            OrderLineInput(item_id=widget.id, quantity=Decimal("1"), unit_price=Decimal("25")),
        ],
    )

    assert order.status == OrderStatus.DRAFT.value
    assert [line.unit_price for line in order.items] == [Decimal("20"), Decimal("25")]
    assert order.total_amount == Decimal("65")


async def test_create_order_validates_lines(uow_factory, clock, widget):
    with pytest.raises(ValidationError):
        await _create(uow_factory, clock, [OrderLineInput(item_id=widget.id, quantity=Decimal("0"))])
    with pytest.raises(ValidationError):
        await _create(
            uow_factory, clock, [OrderLineInput(item_id=widget.id, quantity=Decimal("1"), unit_price=Decimal("-1"))]
        )


async def test_draft_items_can_be_added_updated_and_removed(uow_factory, clock, widget):
    order = await _create(uow_factory, clock)

    async with uow_factory() as uow:
        order = await OrderService.from_uow(uow, clock).add_item(
            order.id, OrderLineInput(item_id=widget.id, quantity=Decimal("3"))
        )
    assert order.total_amount == Decimal("60")
    line_id = order.items[0].id

    async with uow_factory() as uow:
        order = await OrderService.from_uow(uow, clock).update_item(
            order.id, line_id, quantity=Decimal("5"), discount_percentage=Decimal("10")
        )
    assert order.total_amount == Decimal("100")
    assert order.items[0].discount_percentage == Decimal("10")

    async with uow_factory() as uow:
        order = await OrderService.from_uow(uow, clock).remove_item(order.id, line_id)
    assert order.items == []
    assert order.total_amount == Decimal("0")

    async with uow_factory() as uow:
        reloaded = await OrderService.from_uow(uow, clock).get_order(order.id)
    assert reloaded.items == []


async def test_unknown_line_is_not_found(uow_factory, clock):
    order = await _create(uow_factory, clock)
    with pytest.raises(NotFoundError):
        async with uow_factory() as uow:
            await OrderService.from_uow(uow, clock).remove_item(order.id, uuid4())


@pytest.mark.parametrize("status", [s for s in OrderStatus if s is not OrderStatus.DRAFT], ids=lambda s: s.value)
async def test_items_are_frozen_outside_draft(uow_factory, clock, widget, status):
    order = await _create(uow_factory, clock, [OrderLineInput(item_id=widget.id, quantity=Decimal("1"))])
    async with uow_factory() as uow:
        locked = await uow.orders.get(order.id)
        locked.status = status.value
        await uow.orders.flush()

    async with uow_factory() as uow:
        service = OrderService.from_uow(uow, clock)
        with pytest.raises(InvalidOperationError):
            await service.add_item(order.id, OrderLineInput(item_id=widget.id, quantity=Decimal("1")))
        with pytest.raises(InvalidOperationError):
            await service.update_item(order.id, order.items[0].id, quantity=Decimal("9"))
        with pytest.raises(InvalidOperationError):
            await service.remove_item(order.id, order.items[0].id)


async def test_confirm_deducts_stock_with_order_number_reference(seed, uow_factory, clock, widget):
    await seed.stock(widget.id, 10)
    order = await _create(uow_factory, clock, [OrderLineInput(item_id=widget.id, quantity=Decimal("4"))])

    async with uow_factory() as uow:
        confirmed = await OrderService.from_uow(uow, clock).transition(order.id, OrderStatus.CONFIRMED)

    assert confirmed.status == OrderStatus.CONFIRMED.value
    assert await seed.on_hand(widget.id) == Decimal("6")
    async with uow_factory() as uow:
        (sale,) = await uow.ledger.list_by_reference(order.order_number)
    assert (sale.kind, sale.quantity, sale.item_id) == ("sale", Decimal("4"), widget.id)


async def test_confirm_with_shortfall_writes_nothing(seed, uow_factory, clock, widget):
    other = await seed.item("GADGET", name="Gadget")
    await seed.stock(widget.id, 10)
    await seed.stock(other.id, 1)
    order = await _create(
        uow_factory,
        clock,
        [
            OrderLineInput(item_id=widget.id, quantity=Decimal("2")),
            OrderLineInput(item_id=other.id, quantity=Decimal("5")),
        ],
    )

    with pytest.raises(InsufficientStockError) as exc_info:
        async with uow_factory() as uow:
            await OrderService.from_uow(uow, clock).transition(order.id, OrderStatus.CONFIRMED)

    (shortfall,) = exc_info.value.shortfalls
    assert (shortfall.name, shortfall.requested, shortfall.available) == ("Gadget", Decimal("5"), Decimal("1"))
    assert "Gadget" in exc_info.value.message
    async with uow_factory() as uow:
        assert (await uow.orders.get(order.id)).status == OrderStatus.DRAFT.value
        assert await uow.ledger.list_by_reference(order.order_number) == []
    assert await seed.on_hand(widget.id) == Decimal("10")


async def test_confirm_counts_sales_stamped_by_another_process_clock(seed, uow_factory, clock, widget):
    await seed.stock(widget.id, 10)
    line = [OrderLineInput(item_id=widget.id, quantity=Decimal("8"))]
    first = await _create(uow_factory, clock, line)
    second = await _create(uow_factory, clock, line)

    async with uow_factory() as uow:
        await OrderService.from_uow(uow, FixedClock(clock.now() + timedelta(seconds=2))).transition(
            first.id, OrderStatus.CONFIRMED
        )
    with pytest.raises(InsufficientStockError) as exc_info:
        async with uow_factory() as uow:
            await OrderService.from_uow(uow, FixedClock(clock.now() + timedelta(seconds=1))).transition(
                second.id, OrderStatus.CONFIRMED
            )

    assert exc_info.value.shortfalls[0].available == Decimal("2")
    assert await seed.on_hand(widget.id) == Decimal("2")
    async with uow_factory() as uow:
        assert (await uow.orders.get(second.id)).status == OrderStatus.DRAFT.value


async def test_storage_failure_after_allocation_rolls_back_status_and_sales(
    seed, uow_factory, clock, widget, monkeypatch
):
    await seed.stock(widget.id, 10)
    order = await _create(uow_factory, clock, [OrderLineInput(item_id=widget.id, quantity=Decimal("4"))])

    async def failing_flush(self):
        raise OperationalError("UPDATE orders", {}, Exception("disk I/O error"))

    monkeypatch.setattr(OrderRepository, "flush", failing_flush)
    with pytest.raises(OperationalError):
        async with uow_factory() as uow:
            await OrderService.from_uow(uow, clock).transition(order.id, OrderStatus.CONFIRMED)
    monkeypatch.undo()

    async with uow_factory() as uow:
        assert (await uow.orders.get(order.id)).status == OrderStatus.DRAFT.value
        assert await uow.ledger.list_by_reference(order.order_number) == []
    assert await seed.on_hand(widget.id) == Decimal("10")


async def test_confirm_from_accepted_quote(seed, uow_factory, clock, widget):
    await seed.stock(widget.id, 1)
    order = await _create(uow_factory, clock, [OrderLineInput(item_id=widget.id, quantity=Decimal("1"))])
    for status in (OrderStatus.QUOTE_SENT, OrderStatus.QUOTE_ACCEPTED, OrderStatus.CONFIRMED):
        async with uow_factory() as uow:
            await OrderService.from_uow(uow, clock).transition(order.id, status)
    assert await seed.on_hand(widget.id) == Decimal("0")


async def test_later_transitions_do_not_touch_stock(seed, uow_factory, clock, widget):
    await seed.stock(widget.id, 5)
    order = await _create(uow_factory, clock, [OrderLineInput(item_id=widget.id, quantity=Decimal("2"))])
    for status in (OrderStatus.CONFIRMED, OrderStatus.SHIPPED, OrderStatus.CANCELLED):
        async with uow_factory() as uow:
            await OrderService.from_uow(uow, clock).transition(order.id, status)
    assert await seed.on_hand(widget.id) == Decimal("3")


async def test_terminal_order_rejects_confirm(uow_factory, clock):
    order = await _create(uow_factory, clock)
    async with uow_factory() as uow:
        await OrderService.from_uow(uow, clock).transition(order.id, OrderStatus.CANCELLED)
    with pytest.raises(InvalidTransitionError):
        async with uow_factory() as uow:
            await OrderService.from_uow(uow, clock).transition(order.id, OrderStatus.CONFIRMED)


async def test_unknown_order_is_not_found(uow_factory, clock):
    with pytest.raises(NotFoundError):
        async with uow_factory() as uow:
            await OrderService.from_uow(uow, clock).transition(uuid4(), OrderStatus.CONFIRMED)


async def test_list_orders_filters_by_status_and_customer(uow_factory, clock):
    customer = uuid4()
    draft = await _create(uow_factory, clock, customer_id=customer)
    clock.advance(minutes=1)
    cancelled = await _create(uow_factory, clock, customer_id=customer)
    clock.advance(minutes=1)
    await _create(uow_factory, clock)
    async with uow_factory() as uow:
        await OrderService.from_uow(uow, clock).transition(cancelled.id, OrderStatus.CANCELLED)

    async with uow_factory() as uow:
        service = OrderService.from_uow(uow, clock)
        by_customer = await service.list_orders(customer_id=customer)
        drafts = await service.list_orders(status="draft", customer_id=customer)

    assert [o.id for o in by_customer] == [cancelled.id, draft.id]
    assert [o.id for o in drafts] == [draft.id]
