import pytest

from conftest import FakeRedis
from core.settings import SecurePaySettings, TokenCacheSettings
from infrastructure.external.cache import InMemoryCache, RedisClient
from infrastructure.external.payments import get_token_store


@pytest.mark.asyncio
async def test_keys_are_namespaced_and_strings_stored_verbatim():
    backend = FakeRedis()
    cache = RedisClient(client=backend, namespace="securepay-gateway")

    assert await cache.set("securepay_sandbox_token", "tok-1", ttl=540)
    assert backend.data == {"securepay-gateway:securepay_sandbox_token": "tok-1"}
    assert backend.expiry["securepay-gateway:securepay_sandbox_token"] == 540
    assert await cache.get("securepay_sandbox_token") == "tok-1"
    assert await cache.exists("securepay_sandbox_token") == 1
    assert await cache.delete("securepay_sandbox_token") == 1
    assert await cache.get("securepay_sandbox_token") is None
    assert cache.metrics.hits == 1 and cache.metrics.misses == 1


@pytest.mark.asyncio
async def test_redis_failures_degrade_to_miss():
    cache = RedisClient(client=FakeRedis(fail=True))

    assert await cache.get("k", default="fallback") == "fallback"
    assert await cache.set("k", "v", ttl=60) is False
    assert await cache.delete("k") == 0
    assert await cache.health_check() is False
    assert cache.metrics.errors == 1


@pytest.mark.asyncio
async def test_memory_store_selected_without_redis():
    cfg = SecurePaySettings(cache=TokenCacheSettings(store="memory"))

    first = await get_token_store(cfg)
    second = await get_token_store(cfg)

    assert isinstance(first, InMemoryCache)
    assert first is second
