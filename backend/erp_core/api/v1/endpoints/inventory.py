"""ERP Core — Inventory ledger API endpoints."""
from datetime import datetime
from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from erp_core.api.deps import Cache, Clock, CurrentUser, Uow, require_auth
from erp_core.schemas.common import ApiResponse, Meta
from erp_core.schemas.inventory import (
    AvailabilityRequest,
    AvailabilityResponse,
    LowStockItemResponse,
    StockAdjustRequest,
    StockLevelResponse,
    TransactionCreate,
    TransactionHistoryEntry,
    TransactionResponse,
)
from erp_core.services.availability_service import AvailabilityService, StockLine
from erp_core.services.ledger_service import LedgerService

router = APIRouter()


@router.post("/transactions", response_model=ApiResponse[TransactionResponse], status_code=status.HTTP_201_CREATED)
async def record_transaction(
    body: TransactionCreate,
    uow: Uow,
    cache: Cache,
    clock: Clock,
    current_user: CurrentUser = Depends(require_auth),
) -> Any:
    """Append a purchase, sale or adjustment to the ledger."""
    async with uow:
        tx = await LedgerService.from_uow(uow, clock).record_transaction(
            body.item_id, body.quantity, body.kind, reference=body.reference, note=body.note
        )
        uow.on_commit(lambda: cache.invalidate(current_user.company_id))
        data = TransactionResponse.model_validate(tx)
    return ApiResponse(data=data)


@router.get("/items/{item_id}/stock", response_model=ApiResponse[StockLevelResponse])
async def get_stock_level(
    item_id: UUID,
    uow: Uow,
    clock: Clock,
    as_of: datetime | None = Query(default=None),
) -> Any:
    """Quantity on hand derived from the ledger, optionally as of a point in time."""
    async with uow:
        qty = await LedgerService.from_uow(uow, clock).quantity_on_hand(item_id, as_of)
    return ApiResponse(data=StockLevelResponse(item_id=item_id, quantity_on_hand=qty, as_of=as_of))


@router.get("/items/{item_id}/transactions", response_model=ApiResponse[list[TransactionHistoryEntry]])
async def get_transaction_history(
    item_id: UUID,
    uow: Uow,
    clock: Clock,
    limit: int = Query(default=50, ge=1, le=500),
) -> Any:
    """Newest-first ledger rows with the running balance after each."""
    async with uow:
        rows = await LedgerService.from_uow(uow, clock).transaction_history(item_id, limit=limit)
        data = [
            TransactionHistoryEntry(
                **TransactionResponse.model_validate(tx).model_dump(),
                running_balance=balance,
            )
            for tx, balance in rows
        ]
    return ApiResponse(data=data, meta=Meta(limit=limit, count=len(data)))


@router.post("/items/{item_id}/adjust", response_model=ApiResponse[TransactionResponse], status_code=status.HTTP_201_CREATED)
async def adjust_stock(
    item_id: UUID,
    body: StockAdjustRequest,
    uow: Uow,
    cache: Cache,
    clock: Clock,
    current_user: CurrentUser = Depends(require_auth),
) -> Any:
    """Manual stock correction: positive change books stock in, negative books it out."""
    async with uow:
        tx = await LedgerService.from_uow(uow, clock).adjust_stock(item_id, body.change, note=body.note)
        uow.on_commit(lambda: cache.invalidate(current_user.company_id))
        data = TransactionResponse.model_validate(tx)
    return ApiResponse(data=data)


@router.post("/availability", response_model=ApiResponse[AvailabilityResponse])
async def check_availability(body: AvailabilityRequest, uow: Uow, clock: Clock) -> Any:
    """Read-only stock check for a set of (item, quantity) lines."""
    async with uow:
        result = await AvailabilityService.from_uow(uow, clock).check_availability(
            [StockLine(item_id=line.item_id, quantity=line.quantity) for line in body.lines]
        )
    return ApiResponse(data=AvailabilityResponse.model_validate(result))


@router.get("/low-stock", response_model=ApiResponse[list[LowStockItemResponse]])
async def list_low_stock(uow: Uow, clock: Clock) -> Any:
    """Items at or below their minimum stock level."""
    async with uow:
        items = await LedgerService.from_uow(uow, clock).low_stock_items()
    data = [LowStockItemResponse.model_validate(i) for i in items]
    return ApiResponse(data=data, meta=Meta(count=len(data)))
