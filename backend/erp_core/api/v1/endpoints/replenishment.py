"""ERP Core — Replenishment alert API endpoint (Redis cache-aside)."""
import logging
from typing import Any

from fastapi import APIRouter, Depends

from erp_core.api.deps import Cache, Clock, CurrentUser, Uow, require_auth
from erp_core.schemas.common import ApiResponse, Meta
from erp_core.schemas.inventory import AlertItemResponse
from erp_core.services.replenishment_service import ReplenishmentService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/alerts", response_model=ApiResponse[list[AlertItemResponse]])
async def list_replenishment_alerts(
    uow: Uow,
    cache: Cache,
    clock: Clock,
    current_user: CurrentUser = Depends(require_auth),
) -> Any:
    """Raw materials at or below reorder level, most urgent first."""
    cached = await cache.get(current_user.company_id)
    if cached is not None:
        return ApiResponse(data=cached, meta=Meta(count=len(cached), cached=True))

    version = await cache.version(current_user.company_id)
    async with uow:
        alerts = await ReplenishmentService.from_uow(uow, clock).replenishment_alerts()
    await cache.set(current_user.company_id, [a.to_dict() for a in alerts], version=version)
    data = [AlertItemResponse.model_validate(a) for a in alerts]
    return ApiResponse(data=data, meta=Meta(count=len(data), cached=False))
