"""ERP Core — Inventory ledger, availability and replenishment schemas."""
from datetime import datetime
from decimal import Decimal
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class TransactionCreate(BaseModel):
    item_id: UUID
    quantity: Decimal = Field(..., gt=0)
    kind: Literal["purchase", "sale", "adjustment"]
    reference: str | None = Field(default=None, max_length=255)
    note: str | None = None


class TransactionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    item_id: UUID
    quantity: Decimal
    kind: str
    reference: str | None
    note: str | None
    created_at: datetime


class TransactionHistoryEntry(TransactionResponse):
    running_balance: Decimal


class StockAdjustRequest(BaseModel):
    change: Decimal
    note: str | None = None


class StockLevelResponse(BaseModel):
    item_id: UUID
    quantity_on_hand: Decimal
    as_of: datetime | None = None


class AvailabilityLine(BaseModel):
    item_id: UUID
    quantity: Decimal = Field(..., gt=0)


class AvailabilityRequest(BaseModel):
    lines: list[AvailabilityLine] = Field(..., min_length=1)


class ShortfallResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    item_id: UUID
    name: str
    requested: Decimal
    available: Decimal


class AvailabilityResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    sufficient: bool
    shortfalls: list[ShortfallResponse] = []


class LowStockItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    item_id: UUID
    sku: str
    name: str
    quantity_on_hand: Decimal
    minimum_stock_level: Decimal
    reorder_level: Decimal


class AlertItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    item_id: UUID
    sku: str
    name: str
    current_stock: Decimal
    reorder_level: Decimal
    lead_time_days: int
    urgency_score: int = Field(..., ge=0, le=100)
