"""ERP Core — Bill of Materials API endpoints."""
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Query, status

from erp_core.api.deps import Uow
from erp_core.schemas.bom import BOMResponse, BOMUpsert, CostBreakdownResponse
from erp_core.schemas.common import ApiResponse
from erp_core.services.bom_service import BOMCostEngine, BOMLineInput, BOMService

router = APIRouter()


@router.get("/{item_id}", response_model=ApiResponse[BOMResponse])
async def get_bom(item_id: UUID, uow: Uow) -> Any:
    """Get the BOM of a manufactured item."""
    async with uow:
        bom = await BOMService.from_uow(uow).get_bom(item_id)
        data = BOMResponse.model_validate(bom)
    return ApiResponse(data=data)


@router.put("/{item_id}", response_model=ApiResponse[BOMResponse])
async def upsert_bom(item_id: UUID, body: BOMUpsert, uow: Uow) -> Any:
    """Create the item's BOM or replace it entirely."""
    async with uow:
        bom = await BOMService.from_uow(uow).upsert_bom(
            item_id,
            [BOMLineInput(component_item_id=line.component_item_id, quantity=line.quantity) for line in body.lines],
            manual_labor_cost=body.manual_labor_cost,
        )
        data = BOMResponse.model_validate(bom)
    return ApiResponse(data=data)


@router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_bom(item_id: UUID, uow: Uow) -> None:
    """Remove the item's BOM; its unit cost falls back to its cost price."""
    async with uow:
        await BOMService.from_uow(uow).delete_bom(item_id)


@router.get("/{item_id}/cost", response_model=ApiResponse[CostBreakdownResponse])
async def get_unit_cost(
    item_id: UUID,
    uow: Uow,
    recursive: bool = Query(default=False, description="Roll up nested BOMs instead of using component cost prices"),
) -> Any:
    """Unit cost with a per-component breakdown."""
    async with uow:
        breakdown = await BOMCostEngine.from_uow(uow).cost_breakdown(item_id, recursive=recursive)
    return ApiResponse(data=CostBreakdownResponse.model_validate(breakdown))
