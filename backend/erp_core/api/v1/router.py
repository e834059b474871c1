"""ERP Core — API v1 router aggregation."""
from fastapi import APIRouter

from erp_core.api.v1.endpoints import boms, inventory, margin, orders, replenishment

api_router = APIRouter()

api_router.include_router(inventory.router, prefix="/inventory", tags=["inventory"])
api_router.include_router(replenishment.router, prefix="/replenishment", tags=["replenishment"])
api_router.include_router(boms.router, prefix="/boms", tags=["boms"])
api_router.include_router(margin.router, prefix="/margin", tags=["margin"])
api_router.include_router(orders.router, prefix="/orders", tags=["orders"])
