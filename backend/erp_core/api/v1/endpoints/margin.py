"""ERP Core — Margin API endpoints."""
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Query

from erp_core.api.deps import Clock, Uow
from erp_core.schemas.common import ApiResponse
from erp_core.schemas.margin import CustomerMarginResponse, MarginRequest, MarginResponse
from erp_core.services.margin_service import (
    MarginLine,
    MarginService,
    compare_to_customer_average,
    margin_status,
)

router = APIRouter()


@router.post("", response_model=ApiResponse[MarginResponse])
async def calculate_margin(body: MarginRequest, uow: Uow, clock: Clock) -> Any:
    """Revenue, BOM-based cost and margin for a set of prospective order lines."""
    async with uow:
        result = await MarginService.from_uow(uow, clock).calculate_margin(
            [
                MarginLine(
                    item_id=line.item_id,
                    quantity=line.quantity,
                    unit_price=line.unit_price,
                    discount_amount=line.discount_amount,
                    discount_percentage=line.discount_percentage,
                )
                for line in body.lines
            ]
        )
    comparison = None
    if body.customer_average_percentage is not None:
        comparison = compare_to_customer_average(result.margin_percentage, body.customer_average_percentage)
    return ApiResponse(data=MarginResponse.build(result, comparison))


@router.get("/orders/{order_id}", response_model=ApiResponse[MarginResponse])
async def get_order_margin(order_id: UUID, uow: Uow, clock: Clock) -> Any:
    """Margin of an existing order's lines."""
    async with uow:
        result = await MarginService.from_uow(uow, clock).order_margin(order_id)
    return ApiResponse(data=MarginResponse.build(result))


@router.get("/customers/{customer_id}", response_model=ApiResponse[CustomerMarginResponse])
async def get_customer_margin(
    customer_id: UUID,
    uow: Uow,
    clock: Clock,
    months: int | None = Query(default=None, ge=1, le=120),
) -> Any:
    """Margin over the customer's invoiced orders in the trailing window."""
    async with uow:
        result = await MarginService.from_uow(uow, clock).customer_margin(customer_id, months)
    data = CustomerMarginResponse.model_validate(result)
    data.status = margin_status(result.margin_percentage)
    return ApiResponse(data=data)
