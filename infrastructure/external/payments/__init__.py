"""
Factory for the SecurePay gateway client and its token store.
"""
from __future__ import annotations

from typing import Optional

from core.config import settings
from core.settings import SecurePaySettings, securepay_settings
from infrastructure.external.cache import CacheInterface, InMemoryCache, get_redis_client
from .securepay_client import SecurePayClient

_memory_store: Optional[InMemoryCache] = None


async def get_token_store(cfg: Optional[SecurePaySettings] = None) -> CacheInterface:
    """Pick the cache store for bearer tokens (``SECUREPAY__CACHE__STORE``)."""
    global _memory_store
    cfg = cfg or securepay_settings
    store = cfg.cache.store or ("redis" if settings.redis.url else "memory")
    if store == "redis":
        return await get_redis_client()
    if _memory_store is None:
        _memory_store = InMemoryCache()
    return _memory_store


async def create_securepay_client(
    cfg: Optional[SecurePaySettings] = None,
    store: Optional[CacheInterface] = None,
    **kwargs,
) -> SecurePayClient:
    cfg = cfg or securepay_settings
    if store is None:
        store = await get_token_store(cfg)
    return SecurePayClient.from_settings(cfg, store, **kwargs)


__all__ = ["SecurePayClient", "create_securepay_client", "get_token_store"]
