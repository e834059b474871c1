"""The order status transition table, checked for every (from, to) pair."""
import itertools
from uuid import uuid4

import pytest

from erp_core.core.exceptions import InvalidTransitionError, ValidationError
from erp_core.models.order import ALLOWED_TRANSITIONS, OrderStatus, allowed_targets
from erp_core.services.order_service import OrderService

TERMINAL = {OrderStatus.INVOICED, OrderStatus.CANCELLED, OrderStatus.QUOTE_REJECTED}


def test_every_status_has_an_entry():
    assert set(ALLOWED_TRANSITIONS) == set(OrderStatus)


def test_no_status_transitions_to_itself():
    for status, targets in ALLOWED_TRANSITIONS.items():
        assert status not in targets


def test_terminal_statuses():
    assert {s for s in OrderStatus if not allowed_targets(s)} == TERMINAL


def test_allowed_targets_accepts_plain_strings():
    assert allowed_targets("draft") == {OrderStatus.CONFIRMED, OrderStatus.CANCELLED, OrderStatus.QUOTE_SENT}


async def _order_in(uow_factory, clock, status: OrderStatus):
    async with uow_factory() as uow:
        order = await OrderService.from_uow(uow, clock).create_order(uuid4())
        order.status = status.value
        await uow.orders.flush()
    return order


@pytest.mark.parametrize(
    "current,target",
    list(itertools.product(OrderStatus, OrderStatus)),
    ids=lambda s: s.value,
)
async def test_transition_follows_table(uow_factory, clock, current, target):
    # Orders without lines confirm without touching stock.
    order = await _order_in(uow_factory, clock, current)

    if target in ALLOWED_TRANSITIONS[current]:
        async with uow_factory() as uow:
            updated = await OrderService.from_uow(uow, clock).transition(order.id, target)
        assert updated.status == target.value
    else:
        with pytest.raises(InvalidTransitionError) as exc_info:
            async with uow_factory() as uow:
                await OrderService.from_uow(uow, clock).transition(order.id, target)
        assert exc_info.value.current == current.value
        assert exc_info.value.requested == target.value
        async with uow_factory() as uow:
            assert (await uow.orders.get(order.id)).status == current.value


async def test_unknown_target_status_is_a_validation_error(uow_factory, clock):
    order = await _order_in(uow_factory, clock, OrderStatus.DRAFT)
    with pytest.raises(ValidationError):
        async with uow_factory() as uow:
            await OrderService.from_uow(uow, clock).transition(order.id, "archived")


async def test_allowed_transitions_lists_next_statuses(uow_factory, clock):
    order = await _order_in(uow_factory, clock, OrderStatus.SHIPPED)
    async with uow_factory() as uow:
        allowed = await OrderService.from_uow(uow, clock).allowed_transitions(order.id)
    assert allowed == [OrderStatus.CANCELLED, OrderStatus.DELIVERED, OrderStatus.INVOICED]
