"""Alert cache-aside behaviour and the periodic refresh."""
from uuid import uuid4

import pytest
import redis.asyncio as redis

from erp_core.core.redis import AlertCache, alerts_cache_key
from erp_core.tasks.replenishment_tasks import refresh_all


class FakeRedis:
    """Dict-backed stand-in for the commands the cache uses."""

    def __init__(self, fail: bool = False):
        self.store: dict[str, str] = {}
        self.ttls: dict[str, int] = {}
        self.fail = fail

    def _check(self):
        if self.fail:
            raise redis.ConnectionError("redis down")

    async def get(self, key):
        self._check()
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        self._check()
        self.store[key] = value
        self.ttls[key] = ex

    async def delete(self, key):
        self._check()
        self.store.pop(key, None)

    async def incr(self, key):
        self._check()
        value = int(self.store.get(key, 0)) + 1
        self.store[key] = str(value)
        return value


async def test_cache_roundtrip_uses_ttl():
    client = FakeRedis()
    cache = AlertCache(client, ttl=60)
    company = uuid4()

    assert await cache.get(company) is None
    await cache.set(company, [{"sku": "RM-1", "urgency_score": 90}])

    assert await cache.get(company) == [{"sku": "RM-1", "urgency_score": 90}]
    assert client.ttls[alerts_cache_key(str(company))] == 60

    await cache.invalidate(company)
    assert await cache.get(company) is None


async def test_zero_ttl_disables_reads_and_writes():
    client = FakeRedis()
    cache = AlertCache(client, ttl=0)
    company = uuid4()

    await cache.set(company, [])
    assert client.store == {}
    assert await cache.get(company) is None


async def test_redis_errors_are_treated_as_a_miss():
    cache = AlertCache(FakeRedis(fail=True), ttl=60)
    company = uuid4()

    assert await cache.get(company) is None
    await cache.set(company, [])
    await cache.invalidate(company)


async def test_refresh_all_caches_alerts_per_company(session_maker, seed, company_id):
    other = uuid4()
    await seed.item("RM-1", name="Copper", reorder_level="10")
    await seed.item("RM-2", name="Tin", reorder_level="10", company_id=other)
    await seed.item("RM-3", name="Zinc", reorder_level="0", company_id=other)

    client = FakeRedis()
    cache = AlertCache(client, ttl=60)
    refreshed = await refresh_all(session_maker, cache)

    assert refreshed == {str(company_id): 1, str(other): 2}
    assert [a["name"] for a in await cache.get(company_id)] == ["Copper"]
    assert {a["name"] for a in await cache.get(other)} == {"Tin", "Zinc"}


async def test_ledger_write_invalidates_cached_alerts(session_maker, seed, company_id, clock):
    from httpx import ASGITransport, AsyncClient

    from erp_core.api.deps import get_alert_cache, get_clock, get_session_maker
    from erp_core.core.security import create_access_token
    from erp_core.main import app

    item = await seed.item("RM-1", reorder_level="10")
    cache = AlertCache(FakeRedis(), ttl=60)
    app.dependency_overrides[get_session_maker] = lambda: session_maker
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_alert_cache] = lambda: cache
    headers = {"Authorization": f"Bearer {create_access_token(uuid4(), company_id)}"}
    try:
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test", headers=headers) as c:
            first = await c.get("/api/v1/replenishment/alerts")
            second = await c.get("/api/v1/replenishment/alerts")
            assert first.json()["meta"]["cached"] is False
            assert second.json()["meta"]["cached"] is True

            await c.post(
                "/api/v1/inventory/transactions",
                json={"item_id": str(item.id), "quantity": "50", "kind": "purchase"},
            )
            third = await c.get("/api/v1/replenishment/alerts")
    finally:
        app.dependency_overrides.clear()

    assert third.json()["meta"]["cached"] is False
    assert third.json()["data"] == []


async def test_alerts_computed_before_an_invalidation_are_not_cached():
    cache = AlertCache(FakeRedis(), ttl=60)
    company = uuid4()

    version = await cache.version(company)
    # a ledger write commits while the alerts are being computed
    await cache.invalidate(company)
    await cache.set(company, [{"sku": "STALE"}], version=version)
    assert await cache.get(company) is None

    await cache.set(company, [{"sku": "FRESH"}], version=await cache.version(company))
    assert await cache.get(company) == [{"sku": "FRESH"}]


def test_refresh_task_retries_when_the_database_is_unreachable(monkeypatch):
    from celery.exceptions import Retry
    from sqlalchemy.exc import OperationalError

    from erp_core.tasks import replenishment_tasks

    async def unreachable():
        raise OperationalError("SELECT 1", {}, ConnectionRefusedError("connection refused"))

    retries = []

    def fake_retry(exc=None, countdown=None, **kwargs):
        retries.append((exc, countdown))
        return Retry()

    monkeypatch.setattr(replenishment_tasks, "_refresh_async", unreachable)
    monkeypatch.setattr(replenishment_tasks.refresh_replenishment_cache, "retry", fake_retry)

    with pytest.raises(Retry):
        replenishment_tasks.refresh_replenishment_cache()

    ((exc, countdown),) = retries
    assert isinstance(exc, OperationalError)
    assert countdown == 10
