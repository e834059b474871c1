"""ERP Core — Margin schemas."""
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from erp_core.services.margin_service import MarginStatus, margin_status


class MarginLineIn(BaseModel):
    item_id: UUID
    quantity: Decimal = Field(..., gt=0)
    unit_price: Decimal = Field(..., ge=0)
    discount_amount: Decimal | None = Field(default=None, ge=0)
    discount_percentage: Decimal | None = Field(default=None, ge=0, le=100)


class MarginRequest(BaseModel):
    lines: list[MarginLineIn] = Field(..., min_length=1)
    # Optional customer average to compare the result against
    customer_average_percentage: Decimal | None = None


class MarginComparisonResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    difference: Decimal
    is_above_average: bool
    description: str


class MarginResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total_revenue: Decimal
    total_cost: Decimal
    total_margin: Decimal
    margin_percentage: Decimal
    item_count: int
    status: MarginStatus | None = None
    comparison: MarginComparisonResponse | None = None

    @classmethod
    def build(cls, result, comparison=None) -> "MarginResponse":
        return cls(
            total_revenue=result.total_revenue,
            total_cost=result.total_cost,
            total_margin=result.total_margin,
            margin_percentage=result.margin_percentage,
            item_count=result.item_count,
            status=margin_status(result.margin_percentage),
            comparison=MarginComparisonResponse.model_validate(comparison) if comparison else None,
        )


class CustomerMarginResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    customer_id: UUID
    period: str
    order_count: int
    total_revenue: Decimal
    total_cost: Decimal
    total_margin: Decimal
    margin_percentage: Decimal
    status: MarginStatus | None = None
