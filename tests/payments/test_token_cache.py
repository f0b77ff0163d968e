from datetime import datetime, timezone

import pytest

from conftest import FakeRedis
from infrastructure.external.cache import InMemoryCache, RedisClient
from infrastructure.external.payments.token_cache import (
    DEFAULT_TTL,
    MIN_TTL,
    TokenCache,
    compute_ttl,
    parse_expiry,
)

NOW = 1_700_000_000.0


def _iso(ts: float) -> str:
    return datetime.fromtimestamp(ts, tz=timezone.utc).isoformat()


def test_ttl_defaults_without_expiry():
    assert compute_ttl(None, 60, now=NOW) == DEFAULT_TTL
    assert compute_ttl("", 60, now=NOW) == DEFAULT_TTL


def test_ttl_subtracts_buffer_from_remaining_lifetime():
    assert compute_ttl(_iso(NOW + 7200), 60, now=NOW) == 7140


def test_ttl_has_floor_when_buffer_eats_lifetime():
    assert compute_ttl(_iso(NOW + 30), 60, now=NOW) == MIN_TTL
    assert compute_ttl(_iso(NOW - 500), 60, now=NOW) == MIN_TTL


def test_unparseable_expiry_falls_back_to_default():
    assert compute_ttl("next tuesday", 60, now=NOW) == DEFAULT_TTL


def test_parse_expiry_formats():
    expected = NOW + 3600
    assert parse_expiry(expected) == expected
    assert parse_expiry(str(int(expected))) == expected
    assert parse_expiry(_iso(expected)) == expected
    assert parse_expiry(_iso(expected).replace("+00:00", "Z")) == expected
    naive = datetime.fromtimestamp(expected, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S")
    assert parse_expiry(naive) == expected


@pytest.mark.parametrize("value", [float("inf"), float("-inf"), float("nan"), "inf", "NaN", "1e400", 10**400])
def test_non_finite_expiry_is_unparseable(value):
    assert parse_expiry(value) is None
    assert compute_ttl(value, 60, now=NOW) == DEFAULT_TTL


@pytest.mark.asyncio
async def test_token_cache_key_and_roundtrip():
    store = InMemoryCache()
    tokens = TokenCache(store, prefix="shop_", ttl_buffer=60, clock=lambda: NOW)
    assert tokens.key == "shop_auth_token"
    assert await tokens.get() is None

    ttl = await tokens.put("abc", _iso(NOW + 600))
    assert ttl == 540
    assert await store.get("shop_auth_token") == "abc"
    assert await tokens.get() == "abc"

    await tokens.forget()
    assert await tokens.get() is None
    # forgetting an absent token is a no-op
    await tokens.forget()


@pytest.mark.asyncio
async def test_memory_store_expires_entries():
    now = [0.0]
    store = InMemoryCache(clock=lambda: now[0])
    await store.set("k", "v", ttl=10)
    assert await store.exists("k") == 1
    now[0] = 10.5
    assert await store.get("k") is None
    assert await store.delete("k") == 0


@pytest.mark.asyncio
@pytest.mark.parametrize("token", ["abc", "12e4", "true", "null", "[1]"])
async def test_redis_backed_token_is_returned_verbatim(token):
    backend = FakeRedis()
    tokens = TokenCache(RedisClient(client=backend), prefix="securepay_", clock=lambda: NOW)

    await tokens.put(token)

    assert backend.data["securepay_auth_token"] == token
    assert await tokens.get() == token
