"""
Redis客户端实现 - 令牌缓存所需的键值操作与生命周期管理
"""
from __future__ import annotations

import asyncio
import json
import socket
import time
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Callable, Optional

from redis import asyncio as aioredis
from redis.exceptions import RedisError

from core.config import settings
from core.logging_config import get_logger

logger = get_logger(__name__)


class CacheStatus(Enum):
    """缓存状态枚举"""
    HIT = "hit"
    MISS = "miss"
    ERROR = "error"


class CacheMetrics:
    """缓存指标统计"""

    def __init__(self):
        self.hits = 0
        self.misses = 0
        self.errors = 0
        self.total_set = 0
        self.total_delete = 0
        self.operation_times: list[float] = []

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total > 0 else 0.0

    def record_get(self, status: CacheStatus):
        if status == CacheStatus.HIT:
            self.hits += 1
        elif status == CacheStatus.MISS:
            self.misses += 1
        else:
            self.errors += 1

    def record_operation_time(self, duration: float):
        self.operation_times.append(duration)
        # 只保留最近1000次操作的时间
        if len(self.operation_times) > 1000:
            self.operation_times.pop(0)


# ============= 缓存接口 =============

class CacheInterface(ABC):
    """缓存抽象接口（键值 + 按键TTL）"""

    @abstractmethod
    async def get(self, key: str, default: Any = None, as_json: bool = True) -> Any:
        """获取缓存值；as_json=False 时原样返回字符串"""

    @abstractmethod
    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        """设置缓存值"""

    @abstractmethod
    async def delete(self, *keys: str) -> int:
        """删除一个或多个键，返回删除的数量"""

    @abstractmethod
    async def exists(self, *keys: str) -> int:
        """判断一个或多个键是否存在，返回存在的数量"""

    @abstractmethod
    async def expire(self, key: str, ttl: int) -> bool:
        """设置过期时间"""


# ============= Redis 实现 =============

class RedisClient(CacheInterface):
    """
    基于 redis.asyncio 的缓存客户端

    特性:
    - 命名空间隔离
    - 自动序列化/反序列化
    - 读写失败降级为未命中（记录日志，不抛出）
    """

    def __init__(
        self,
        client: aioredis.Redis,
        namespace: str = "",
        enable_metrics: bool = True,
        serializer: Optional[Callable] = None,
        deserializer: Optional[Callable] = None
    ):
        self._client = client
        self._namespace = namespace.strip(":")
        self._metrics = CacheMetrics() if enable_metrics else None
        self._serializer = serializer or self._default_serializer
        self._deserializer = deserializer or self._default_deserializer

    def _format_key(self, key: str) -> str:
        """格式化键名，添加命名空间前缀"""
        if not self._namespace:
            return key
        return f"{self._namespace}:{key}"

    def _default_serializer(self, value: Any) -> str:
        if isinstance(value, str):
            return value
        return json.dumps(value, default=str, ensure_ascii=False)

    def _default_deserializer(self, value: Optional[str]) -> Any:
        if value is None:
            return None
        try:
            return json.loads(value)
        except (TypeError, ValueError):
            return value

    async def _timed(self, operation: Callable, *args, **kwargs) -> Any:
        if self._metrics is None:
            return await operation(*args, **kwargs)
        start_time = time.perf_counter()
        try:
            return await operation(*args, **kwargs)
        finally:
            self._metrics.record_operation_time(time.perf_counter() - start_time)

    async def get(self, key: str, default: Any = None, as_json: bool = True) -> Any:
        formatted_key = self._format_key(key)
        try:
            value = await self._timed(self._client.get, formatted_key)
        except RedisError as e:
            if self._metrics:
                self._metrics.record_get(CacheStatus.ERROR)
            logger.error("cache_get_failed", key=formatted_key, error=str(e))
            return default
        if self._metrics:
            self._metrics.record_get(CacheStatus.HIT if value is not None else CacheStatus.MISS)
        if value is None:
            return default
        return self._deserializer(value) if as_json else value

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        formatted_key = self._format_key(key)
        expire = ttl if ttl is not None else settings.redis.default_ttl
        try:
            result = await self._timed(
                self._client.set,
                formatted_key,
                self._serializer(value),
                ex=expire if expire and expire > 0 else None,
            )
        except RedisError as e:
            logger.error("cache_set_failed", key=formatted_key, error=str(e))
            return False
        if self._metrics:
            self._metrics.total_set += 1
        logger.debug("cache_set", key=formatted_key, ttl=expire)
        return bool(result)

    async def delete(self, *keys: str) -> int:
        if not keys:
            return 0
        formatted_keys = [self._format_key(k) for k in keys]
        try:
            deleted = await self._timed(self._client.delete, *formatted_keys)
        except RedisError as e:
            logger.error("cache_delete_failed", keys=formatted_keys, error=str(e))
            return 0
        if self._metrics:
            self._metrics.total_delete += deleted
        return int(deleted)

    async def exists(self, *keys: str) -> int:
        if not keys:
            return 0
        try:
            return int(await self._client.exists(*[self._format_key(k) for k in keys]))
        except RedisError as e:
            logger.error("cache_exists_failed", error=str(e))
            return 0

    async def expire(self, key: str, ttl: int) -> bool:
        try:
            return bool(await self._client.expire(self._format_key(key), ttl))
        except RedisError as e:
            logger.error("cache_expire_failed", key=key, error=str(e))
            return False

    async def health_check(self) -> bool:
        try:
            return bool(await self._client.ping())
        except RedisError:
            return False

    @property
    def metrics(self) -> Optional[CacheMetrics]:
        return self._metrics


# ============= 全局实例管理 =============

_redis_client: Optional[aioredis.Redis] = None
_cache_instance: Optional[RedisClient] = None
_lock = asyncio.Lock()


async def init_redis_client(namespace: Optional[str] = None, **kwargs) -> RedisClient:
    """
    初始化Redis客户端

    Args:
        namespace: 命名空间，默认使用 settings.redis.namespace
        **kwargs: 其他Redis连接参数
    """
    global _redis_client, _cache_instance

    if _cache_instance is not None:
        return _cache_instance

    async with _lock:
        if _cache_instance is not None:
            return _cache_instance

        if not settings.redis.url:
            raise RuntimeError("REDIS__URL 未配置，无法初始化Redis客户端")

        keepalive_opts = {}
        if hasattr(socket, "TCP_KEEPIDLE") and hasattr(socket, "TCP_KEEPINTVL") and hasattr(socket, "TCP_KEEPCNT"):
            keepalive_opts = {
                socket.TCP_KEEPIDLE: 1,
                socket.TCP_KEEPINTVL: 1,
                socket.TCP_KEEPCNT: 3,
            }

        client = aioredis.from_url(
            settings.redis.url,
            encoding="utf-8",
            decode_responses=True,
            max_connections=settings.redis.max_connections,
            socket_keepalive=True,
            socket_keepalive_options=keepalive_opts,
            **kwargs
        )
        await client.ping()

        _redis_client = client
        _cache_instance = RedisClient(client=client, namespace=namespace or settings.redis.namespace)
        logger.info("redis_client_initialized", namespace=namespace or settings.redis.namespace)
        return _cache_instance


async def get_redis_client() -> RedisClient:
    """获取全局Redis客户端实例"""
    if _cache_instance is None:
        return await init_redis_client()
    return _cache_instance


async def shutdown_redis_client() -> None:
    """关闭Redis连接"""
    global _redis_client, _cache_instance

    if _redis_client is not None:
        try:
            await _redis_client.aclose()
            logger.info("redis_client_closed")
        except RedisError as e:
            logger.error("redis_client_close_failed", error=str(e))
        finally:
            _redis_client = None
            _cache_instance = None
