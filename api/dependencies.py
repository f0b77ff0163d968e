"""
API依赖项 - 网关客户端与应用服务
"""
from fastapi import Depends, Request

from application.services.payment_service import EventDispatcher, PaymentService
from core.settings import SecurePaySettings, securepay_settings
from infrastructure.external.payments import SecurePayClient, create_securepay_client


def get_securepay_settings() -> SecurePaySettings:
    return securepay_settings


async def get_securepay_client(request: Request) -> SecurePayClient:
    """返回应用启动时构建的客户端；未经 lifespan 启动时按需构建一次。"""
    client = getattr(request.app.state, "securepay_client", None)
    if client is None:
        client = await create_securepay_client()
        request.app.state.securepay_client = client
    return client


def get_event_dispatcher(request: Request) -> EventDispatcher:
    dispatcher = getattr(request.app.state, "payment_events", None)
    if dispatcher is None:
        dispatcher = EventDispatcher()
        request.app.state.payment_events = dispatcher
    return dispatcher


async def get_payment_service(
    client: SecurePayClient = Depends(get_securepay_client),
    dispatcher: EventDispatcher = Depends(get_event_dispatcher),
) -> PaymentService:
    return PaymentService(gateway=client, dispatcher=dispatcher)
