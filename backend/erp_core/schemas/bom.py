"""ERP Core — Bill of Materials and cost schemas."""
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class BOMLineIn(BaseModel):
    component_item_id: UUID
    quantity: Decimal = Field(..., gt=0)


class BOMUpsert(BaseModel):
    manual_labor_cost: Decimal = Field(default=Decimal("0"), ge=0)
    lines: list[BOMLineIn] = []


class BOMItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    component_item_id: UUID
    quantity: Decimal


class BOMResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    item_id: UUID
    manual_labor_cost: Decimal
    items: list[BOMItemResponse] = []


class CostLineResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    component_item_id: UUID
    name: str
    quantity: Decimal
    unit_cost: Decimal
    line_total: Decimal


class CostBreakdownResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    item_id: UUID
    kind: str
    manual_labor_cost: Decimal
    unit_cost: Decimal
    lines: list[CostLineResponse] = []
