"""
ERP Core — FastAPI ASGI Entry Point
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from erp_core.api.v1.router import api_router
from erp_core.config import get_settings
from erp_core.core.auth_middleware import JWTAuthMiddleware
from erp_core.core.logging import configure_logging
from erp_core.core.responses import register_exception_handlers

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: logging on startup, pooled connections closed on shutdown."""
    configure_logging()
    yield
    from erp_core.core import redis as redis_cache
    from erp_core.db.session import engine

    if redis_cache._redis is not None:
        await redis_cache._redis.aclose()
        redis_cache._redis = None
    await engine.dispose()


app = FastAPI(
    title="ERP Core",
    description="Inventory ledger, order lifecycle, BOM costing and margin analysis",
    version="0.1.0",
    docs_url="/api/v1/docs",
    redoc_url="/api/v1/redoc",
    openapi_url="/api/v1/openapi.json",
    lifespan=lifespan,
)
app.add_middleware(JWTAuthMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
register_exception_handlers(app)

app.include_router(api_router, prefix="/api/v1")


@app.get("/health")
async def health():
    """Health check for load balancers and Docker."""
    return {"status": "ok", "service": "erp-core"}
