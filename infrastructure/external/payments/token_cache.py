"""
Bearer token storage on top of a CacheInterface.

The store owns expiry: a hit is treated as valid, nothing is re-checked
locally.
"""
from __future__ import annotations

import math
import time
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from infrastructure.external.cache import CacheInterface

DEFAULT_TTL = 3600
MIN_TTL = 60
TOKEN_KEY_SUFFIX = "auth_token"


def _finite(value: Any) -> Optional[float]:
    try:
        number = float(value)
    except OverflowError:
        return None
    return number if math.isfinite(number) else None


def parse_expiry(value: Any) -> Optional[float]:
    """Parse the gateway's ``expired_at`` into a unix timestamp.

    Accepts numeric epochs, ISO-8601 strings (``Z`` suffix included) and
    ``YYYY-MM-DD HH:MM:SS``. Naive values are read as UTC. Returns None
    when the value cannot be understood or is not finite (inf, nan).
    """
    if value is None or value == "" or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return _finite(value)
    text = str(value).strip()
    try:
        return _finite(float(text))
    except ValueError:
        pass
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.timestamp()


def compute_ttl(expired_at: Any, buffer: int, now: Optional[float] = None) -> int:
    expires = parse_expiry(expired_at)
    if expires is None:
        return DEFAULT_TTL
    current = time.time() if now is None else now
    return max(MIN_TTL, int(expires - current - buffer))


class TokenCache:
    def __init__(
        self,
        store: CacheInterface,
        *,
        prefix: str = "securepay_",
        ttl_buffer: int = 60,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store = store
        self._prefix = prefix
        self._ttl_buffer = ttl_buffer
        self._clock = clock

    @property
    def key(self) -> str:
        return f"{self._prefix}{TOKEN_KEY_SUFFIX}"

    async def get(self) -> Optional[str]:
        value = await self._store.get(self.key, as_json=False)
        if not value:
            return None
        return str(value)

    async def put(self, token: str, expired_at: Any = None) -> int:
        ttl = compute_ttl(expired_at, self._ttl_buffer, now=self._clock())
        await self._store.set(self.key, token, ttl=ttl)
        return ttl

    async def forget(self) -> None:
        await self._store.delete(self.key)
