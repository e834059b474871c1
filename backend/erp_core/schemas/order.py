"""ERP Core — Order schemas."""
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from erp_core.models.order import OrderStatus

# --- Lines ---


class OrderLineCreate(BaseModel):
    item_id: UUID
    quantity: Decimal = Field(..., gt=0)
    unit_price: Decimal | None = Field(default=None, ge=0)
    discount_amount: Decimal | None = Field(default=None, ge=0)
    discount_percentage: Decimal | None = Field(default=None, ge=0, le=100)


class OrderLineUpdate(BaseModel):
    quantity: Decimal | None = Field(default=None, gt=0)
    unit_price: Decimal | None = Field(default=None, ge=0)
    discount_amount: Decimal | None = Field(default=None, ge=0)
    discount_percentage: Decimal | None = Field(default=None, ge=0, le=100)


class OrderItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    item_id: UUID
    quantity: Decimal
    unit_price: Decimal
    discount_amount: Decimal | None
    discount_percentage: Decimal | None


# --- Orders ---


class OrderCreate(BaseModel):
    customer_id: UUID
    notes: str | None = None
    items: list[OrderLineCreate] = []


class OrderStatusUpdate(BaseModel):
    status: OrderStatus


class OrderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    order_number: str
    customer_id: UUID
    status: OrderStatus
    total_amount: Decimal
    notes: str | None
    created_at: datetime
    updated_at: datetime
    items: list[OrderItemResponse] = []


class OrderTransitionsResponse(BaseModel):
    order_id: UUID
    status: OrderStatus
    allowed: list[OrderStatus]
