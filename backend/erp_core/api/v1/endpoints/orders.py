"""ERP Core — Orders API endpoints."""
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from erp_core.api.deps import Cache, Clock, CurrentUser, Uow, require_auth
from erp_core.models.order import OrderStatus
from erp_core.schemas.common import ApiResponse, Meta
from erp_core.schemas.order import (
    OrderCreate,
    OrderLineCreate,
    OrderLineUpdate,
    OrderResponse,
    OrderStatusUpdate,
    OrderTransitionsResponse,
)
from erp_core.services.order_service import OrderLineInput, OrderService

router = APIRouter()


def _line_input(line: OrderLineCreate) -> OrderLineInput:
    return OrderLineInput(
        item_id=line.item_id,
        quantity=line.quantity,
        unit_price=line.unit_price,
        discount_amount=line.discount_amount,
        discount_percentage=line.discount_percentage,
    )


@router.get("", response_model=ApiResponse[list[OrderResponse]])
async def list_orders(
    uow: Uow,
    clock: Clock,
    status_filter: OrderStatus | None = Query(default=None, alias="status"),
    customer_id: UUID | None = None,
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
) -> Any:
    """List orders for the current company, newest first."""
    async with uow:
        orders = await OrderService.from_uow(uow, clock).list_orders(
            status=status_filter, customer_id=customer_id, limit=limit, offset=offset
        )
        data = [OrderResponse.model_validate(o) for o in orders]
    return ApiResponse(data=data, meta=Meta(limit=limit, offset=offset, count=len(data)))


@router.post("", response_model=ApiResponse[OrderResponse], status_code=status.HTTP_201_CREATED)
async def create_order(body: OrderCreate, uow: Uow, clock: Clock) -> Any:
    """Create a new order in draft."""
    async with uow:
        order = await OrderService.from_uow(uow, clock).create_order(
            body.customer_id, [_line_input(line) for line in body.items], notes=body.notes
        )
        data = OrderResponse.model_validate(order)
    return ApiResponse(data=data)


@router.get("/{order_id}", response_model=ApiResponse[OrderResponse])
async def get_order(order_id: UUID, uow: Uow, clock: Clock) -> Any:
    """Get order details including items."""
    async with uow:
        order = await OrderService.from_uow(uow, clock).get_order(order_id)
        data = OrderResponse.model_validate(order)
    return ApiResponse(data=data)


@router.get("/{order_id}/transitions", response_model=ApiResponse[OrderTransitionsResponse])
async def get_allowed_transitions(order_id: UUID, uow: Uow, clock: Clock) -> Any:
    """Statuses the order can move to next."""
    async with uow:
        service = OrderService.from_uow(uow, clock)
        order = await service.get_order(order_id)
        allowed = await service.allowed_transitions(order_id)
        data = OrderTransitionsResponse(order_id=order.id, status=order.status, allowed=allowed)
    return ApiResponse(data=data)


@router.post("/{order_id}/status", response_model=ApiResponse[OrderResponse])
async def transition_order(
    order_id: UUID,
    body: OrderStatusUpdate,
    uow: Uow,
    cache: Cache,
    clock: Clock,
    current_user: CurrentUser = Depends(require_auth),
) -> Any:
    """Move the order to a new status. Confirming allocates stock or fails with the shortfalls."""
    async with uow:
        order = await OrderService.from_uow(uow, clock).transition(order_id, body.status)
        if body.status == OrderStatus.CONFIRMED:
            uow.on_commit(lambda: cache.invalidate(current_user.company_id))
        data = OrderResponse.model_validate(order)
    return ApiResponse(data=data)


@router.post("/{order_id}/items", response_model=ApiResponse[OrderResponse], status_code=status.HTTP_201_CREATED)
async def add_order_item(order_id: UUID, body: OrderLineCreate, uow: Uow, clock: Clock) -> Any:
    """Add a line to a draft order."""
    async with uow:
        order = await OrderService.from_uow(uow, clock).add_item(order_id, _line_input(body))
        data = OrderResponse.model_validate(order)
    return ApiResponse(data=data)


@router.patch("/{order_id}/items/{line_id}", response_model=ApiResponse[OrderResponse])
async def update_order_item(order_id: UUID, line_id: UUID, body: OrderLineUpdate, uow: Uow, clock: Clock) -> Any:
    """Change quantity, price or discounts of a line on a draft order."""
    async with uow:
        order = await OrderService.from_uow(uow, clock).update_item(
            order_id, line_id, **body.model_dump(exclude_unset=True)
        )
        data = OrderResponse.model_validate(order)
    return ApiResponse(data=data)


@router.delete("/{order_id}/items/{line_id}", response_model=ApiResponse[OrderResponse])
async def remove_order_item(order_id: UUID, line_id: UUID, uow: Uow, clock: Clock) -> Any:
    """Remove a line from a draft order."""
    async with uow:
        order = await OrderService.from_uow(uow, clock).remove_item(order_id, line_id)
        data = OrderResponse.model_validate(order)
    return ApiResponse(data=data)
