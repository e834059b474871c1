"""ERP Core — Redis client and the replenishment alert read-model cache."""
import json
import logging
from typing import Optional

import redis.asyncio as redis

from erp_core.config import get_settings

logger = logging.getLogger(__name__)

_settings = get_settings()
_redis: Optional[redis.Redis] = None


async def get_redis() -> redis.Redis:
    """Get Redis connection (application cache DB 1)."""
    global _redis
    if _redis is None:
        _redis = redis.from_url(_settings.REDIS_URL, decode_responses=True)
    return _redis


def alerts_cache_key(company_id: str) -> str:
    """Cache key for replenishment alerts: replenishment:{company_id}"""
    return f"replenishment:{company_id}"


def alerts_version_key(company_id: str) -> str:
    """Bumped on every invalidation: replenishment:{company_id}:version"""
    return f"replenishment:{company_id}:version"


class AlertCache:
    """
    Cache-aside store for serialized replenishment alerts.

    Redis errors are logged and treated as a miss: the ledger is the source of
    truth and the cache is never read by a write path.

    A reader takes ``version()`` before computing alerts and hands it back to
    ``set()``. If an invalidation happened in between, the write is skipped so
    alerts computed before a ledger commit never outlive it.
    """

    def __init__(self, client: redis.Redis | None, ttl: int | None = None):
        self._client = client
        self._ttl = _settings.REPLENISHMENT_CACHE_TTL if ttl is None else ttl

    @property
    def enabled(self) -> bool:
        return self._client is not None and self._ttl > 0

    async def version(self, company_id) -> str | None:
        if not self.enabled:
            return None
        try:
            return await self._client.get(alerts_version_key(str(company_id)))
        except redis.RedisError as exc:
            logger.warning("Replenishment cache version read failed for %s: %s", company_id, exc)
            return None

    async def get(self, company_id) -> list[dict] | None:
        if not self.enabled:
            return None
        try:
            raw = await self._client.get(alerts_cache_key(str(company_id)))
        except redis.RedisError as exc:
            logger.warning("Replenishment cache read failed for %s: %s", company_id, exc)
            return None
        return json.loads(raw) if raw else None

    async def set(self, company_id, alerts: list[dict], version: str | None = None) -> None:
        if not self.enabled:
            return
        try:
            if await self._client.get(alerts_version_key(str(company_id))) != version:
                logger.debug("Skipping stale replenishment cache write for %s", company_id)
                return
            await self._client.set(alerts_cache_key(str(company_id)), json.dumps(alerts), ex=self._ttl)
        except redis.RedisError as exc:
            logger.warning("Replenishment cache write failed for %s: %s", company_id, exc)

    async def invalidate(self, company_id) -> None:
        if self._client is None:
            return
        try:
            await self._client.incr(alerts_version_key(str(company_id)))
            await self._client.delete(alerts_cache_key(str(company_id)))
        except redis.RedisError as exc:
            logger.warning("Replenishment cache invalidation failed for %s: %s", company_id, exc)
