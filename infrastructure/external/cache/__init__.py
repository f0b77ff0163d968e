"""缓存层对外暴露的接口"""
from .redis_client import (
    RedisClient,
    CacheInterface,
    CacheStatus,
    CacheMetrics,
    init_redis_client,
    get_redis_client,
    shutdown_redis_client,
)
from .memory import InMemoryCache


__all__ = [
    "RedisClient",
    "CacheInterface",
    "CacheStatus",
    "CacheMetrics",
    "InMemoryCache",
    "init_redis_client",
    "get_redis_client",
    "shutdown_redis_client",
]
