"""
进程内缓存实现，按键TTL过期。

用于开发环境与测试；多进程部署应使用 RedisClient。
"""
from __future__ import annotations

import time
from typing import Any, Callable, Optional

from .redis_client import CacheInterface


class InMemoryCache(CacheInterface):
    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._data: dict[str, tuple[Any, Optional[float]]] = {}

    def _alive(self, key: str) -> bool:
        entry = self._data.get(key)
        if entry is None:
            return False
        _, expires_at = entry
        if expires_at is not None and expires_at <= self._clock():
            del self._data[key]
            return False
        return True

    async def get(self, key: str, default: Any = None, as_json: bool = True) -> Any:
        # values are held as Python objects; as_json has nothing to decode
        if not self._alive(key):
            return default
        return self._data[key][0]

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        expires_at = self._clock() + ttl if ttl and ttl > 0 else None
        self._data[key] = (value, expires_at)
        return True

    async def delete(self, *keys: str) -> int:
        removed = 0
        for key in keys:
            if self._alive(key):
                del self._data[key]
                removed += 1
        return removed

    async def exists(self, *keys: str) -> int:
        return sum(1 for key in keys if self._alive(key))

    async def expire(self, key: str, ttl: int) -> bool:
        if not self._alive(key):
            return False
        value, _ = self._data[key]
        self._data[key] = (value, self._clock() + ttl)
        return True

    def clear(self) -> None:
        self._data.clear()
