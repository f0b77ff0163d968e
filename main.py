"""
FastAPI应用主入口
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.middleware import RequestIDMiddleware
from api.routes import securepay as securepay_routes
from application.services.payment_service import EventDispatcher
from core.config import settings
from core.exceptions import register_exception_handlers
from core.logging_config import get_logger, configure_logging
from core.response import success_response
from core.settings import securepay_settings
from infrastructure.external.cache import get_redis_client, init_redis_client, shutdown_redis_client
from infrastructure.external.payments import create_securepay_client


# 初始化日志：在入口处显式配置，避免模块导入时的副作用
configure_logging()
logger = get_logger(__name__)


def _redis_token_store() -> bool:
    return bool(settings.redis.url) and securepay_settings.cache.store != "memory"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期管理"""
    # 配置了 REDIS__URL 时令牌缓存依赖 Redis，连接失败直接中止启动
    if _redis_token_store():
        await init_redis_client()
        logger.info("redis_cache_initialized")

    client = await create_securepay_client()
    app.state.securepay_client = client
    if not hasattr(app.state, "payment_events"):
        app.state.payment_events = EventDispatcher()
    logger.info(
        "securepay_client_ready",
        environment=client.environment,
        base_url=client.base_url,
    )

    yield

    await client.aclose()
    if _redis_token_store():
        await shutdown_redis_client()
        logger.info("redis_cache_shutdown")
    logger.info("application_shutdown")


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    debug=settings.DEBUG,
    lifespan=lifespan,
    description="SecurePay 支付网关客户端",
)

app.add_middleware(RequestIDMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(securepay_routes.router, prefix="/api/v1")


@app.get("/", tags=["Root"])
async def root():
    """API根路径"""
    return success_response(
        data={
            "name": settings.PROJECT_NAME,
            "version": settings.VERSION,
            "securepay_environment": securepay_settings.environment,
        },
        message="Welcome",
    )


@app.get("/health", tags=["Health"])
async def health_check():
    """健康检查端点"""
    data = {"status": "healthy", "token_store": "memory"}
    if _redis_token_store():
        redis = await get_redis_client()
        data["token_store"] = "redis" if await redis.health_check() else "unavailable"
    return success_response(data=data, message="OK")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level="debug" if settings.DEBUG else "info"
    )
