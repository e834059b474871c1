"""ERP Core — Celery tasks for the replenishment alert cache.

- refresh_replenishment_cache:  Celery Beat runs every 60s, recomputes alerts for every company.
"""
from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from erp_core.core.redis import AlertCache
from erp_core.db.unit_of_work import UnitOfWork
from erp_core.models.item import InventoryItem
from erp_core.services.replenishment_service import ReplenishmentService
from erp_core.worker import celery_app

logger = logging.getLogger(__name__)


async def company_ids(session_maker: async_sessionmaker[AsyncSession]) -> list[UUID]:
    """Every company with at least one inventory item. Needs a role exempt from RLS (erp_admin)."""
    async with session_maker() as session:
        result = await session.execute(select(InventoryItem.company_id).distinct())
        return list(result.scalars().all())


async def refresh_company_alerts(
    session_maker: async_sessionmaker[AsyncSession], cache: AlertCache, company_id: UUID
) -> int:
    version = await cache.version(company_id)
    async with UnitOfWork(session_maker, company_id) as uow:
        alerts = await ReplenishmentService.from_uow(uow).replenishment_alerts()
    await cache.set(company_id, [a.to_dict() for a in alerts], version=version)
    return len(alerts)


async def refresh_all(session_maker: async_sessionmaker[AsyncSession], cache: AlertCache) -> dict[str, int]:
    """Refresh every company; one company failing does not stop the others."""
    refreshed: dict[str, int] = {}
    for company_id in await company_ids(session_maker):
        try:
            refreshed[str(company_id)] = await refresh_company_alerts(session_maker, cache, company_id)
        except Exception as exc:
            logger.warning("Replenishment refresh failed for company %s: %s", company_id, exc)
    return refreshed


async def _refresh_async() -> dict[str, int]:
    import redis.asyncio as redis

    from erp_core.config import get_settings
    from erp_core.db.session import create_engine_from_url, create_session_maker

    settings = get_settings()
    # A fresh engine per run: asyncio.run gives every task its own event loop.
    engine = create_engine_from_url(settings.DATABASE_URL)
    client = redis.from_url(settings.REDIS_URL, decode_responses=True)
    try:
        return await refresh_all(create_session_maker(engine), AlertCache(client))
    finally:
        await client.aclose()
        await engine.dispose()


@celery_app.task(bind=True, max_retries=2)
def refresh_replenishment_cache(self):
    """
    Refresh replenishment alerts for all companies. Run by Celery Beat every 60s.
    Retries with backoff when the database cannot be reached at all.
    """
    import asyncio

    try:
        refreshed = asyncio.run(_refresh_async())
    except (DBAPIError, OSError) as exc:
        # 10s, then 20s
        delay = (2 ** self.request.retries) * 10
        logger.warning("Replenishment refresh failed, retrying in %ss: %s", delay, exc)
        raise self.retry(exc=exc, countdown=delay)
    logger.info("Replenishment cache refreshed for %d companies", len(refreshed))
    return refreshed
