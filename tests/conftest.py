"""Pytest bootstrap configuration.

Pin settings that modules read at import time, and provide a fake
SecurePay gateway built on httpx.MockTransport.
"""
import os

# Token cache must never reach a real Redis during tests
os.environ.setdefault("SECUREPAY__CACHE__STORE", "memory")
os.environ.setdefault("DEBUG", "true")

from typing import Any, Optional

import httpx
import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from infrastructure.external.cache import InMemoryCache
from infrastructure.external.payments.credentials import ResolvedCredentials
from infrastructure.external.payments.securepay_client import SecurePayClient
from infrastructure.external.payments.token_cache import TokenCache


NOW = 1_700_000_000.0
BASE_URL = "https://sandbox.securepay.test/api"
CLIENT_SECRET = "test-client-secret"


class RecordingStore(InMemoryCache):
    """InMemoryCache that remembers every TTL it was asked to apply."""

    def __init__(self) -> None:
        super().__init__()
        self.ttls: list[Optional[int]] = []

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        self.ttls.append(ttl)
        return await super().set(key, value, ttl=ttl)


class FakeGateway:
    """Route table of canned responses keyed by (method, path).

    Each route holds a queue; the last entry repeats once the queue is
    drained. Exception entries are raised instead of answered.
    """

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], list] = {}
        self.requests: list[httpx.Request] = []

    def add(self, method: str, path: str, *responses: "httpx.Response | Exception") -> "FakeGateway":
        self.routes.setdefault((method, "/api" + path), []).extend(responses)
        return self

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == "/api" + path]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        queue = self.routes.get((request.method, request.url.path))
        if not queue:
            return httpx.Response(404, json={"message": "no route"})
        outcome = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class FakeRedis:
    """Minimal stand-in for redis.asyncio.Redis (decode_responses=True)."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.data: dict[str, str] = {}
        self.expiry: dict[str, int] = {}

    def _check(self):
        if self.fail:
            raise RedisConnectionError("connection refused")

    async def get(self, key):
        self._check()
        return self.data.get(key)

    async def set(self, key, value, ex=None):
        self._check()
        self.data[key] = value
        if ex:
            self.expiry[key] = ex
        return True

    async def delete(self, *keys):
        self._check()
        return sum(1 for k in keys if self.data.pop(k, None) is not None)

    async def exists(self, *keys):
        self._check()
        return sum(1 for k in keys if k in self.data)

    async def expire(self, key, ttl):
        self._check()
        self.expiry[key] = ttl
        return key in self.data

    async def ping(self):
        self._check()
        return True


def auth_ok(token: str = "tok-1", **extra) -> httpx.Response:
    return httpx.Response(200, json={"auth_token": token, **extra})


@pytest.fixture
def credentials() -> ResolvedCredentials:
    return ResolvedCredentials(
        environment="sandbox",
        base_url=BASE_URL,
        client_id="test-client-id",
        client_secret=CLIENT_SECRET,
    )


@pytest.fixture
def store() -> RecordingStore:
    return RecordingStore()


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def make_client(credentials, store, gateway):
    def _make(creds: Optional[ResolvedCredentials] = None, **kwargs) -> SecurePayClient:
        tokens = TokenCache(store, prefix="securepay_", ttl_buffer=60, clock=lambda: NOW)
        return SecurePayClient(
            creds or credentials,
            tokens,
            transport=httpx.MockTransport(gateway),
            **kwargs,
        )
    return _make
