"""
Application service orchestrating payment use-cases.

This class depends only on the application PaymentGateway port and DTOs.
The gateway is built at the composition root (API lifespan) and injected,
keeping dependencies one-way.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional, Protocol, Union

from application.dtos.payments import CreatePaymentRequest, ParsedCallback, PaymentIntent
from application.ports.payment_gateway import PaymentGateway
from core.logging_config import get_logger
from domain.payment.events import PaymentEvent, PaymentFailed, PaymentSuccessful


logger = get_logger(__name__)


class PaymentEventHandler(Protocol):
    async def __call__(self, event: PaymentEvent) -> None: ...


class EventDispatcher:
    """Fan a classified payment event out to registered handlers in order."""

    def __init__(self, handlers: Optional[Iterable[PaymentEventHandler]] = None) -> None:
        self._handlers: list[PaymentEventHandler] = list(handlers or [])

    def register(self, handler: PaymentEventHandler) -> None:
        self._handlers.append(handler)

    async def dispatch(self, event: PaymentEvent) -> None:
        for handler in self._handlers:
            await handler(event)


@dataclass(frozen=True)
class CallbackOutcome:
    verified: bool
    payment: Optional[ParsedCallback] = None
    event: Optional[PaymentEvent] = None

    @property
    def is_successful(self) -> bool:
        return isinstance(self.event, PaymentSuccessful)


class PaymentService:
    def __init__(self, gateway: PaymentGateway, dispatcher: Optional[EventDispatcher] = None) -> None:
        self.gateway = gateway
        self.dispatcher = dispatcher or EventDispatcher()

    async def create_payment(self, params: Union[Mapping[str, Any], CreatePaymentRequest]) -> PaymentIntent:
        order_number = params.order_number if isinstance(params, CreatePaymentRequest) else params.get("order_number")
        logger.info("payment_create_request", order_number=order_number, provider=self.gateway.provider)
        intent = await self.gateway.create_payment(params)
        logger.info(
            "payment_create_response",
            order_number=order_number,
            intent_uuid=intent.uuid,
            status=intent.status,
        )
        return intent

    async def get_payment_status(self, intent_uuid: str) -> dict[str, Any]:
        logger.info("payment_status_request", intent_uuid=intent_uuid, provider=self.gateway.provider)
        return await self.gateway.get_payment_status(intent_uuid)

    async def get_banks(self, gateway: str = "fpx", bank_type: str = "b2c") -> Any:
        return await self.gateway.get_banks(gateway, bank_type)

    async def handle_callback(self, payload: Mapping[str, Any]) -> CallbackOutcome:
        """Verify, classify and dispatch a server-to-server callback.

        An unverified payload yields ``CallbackOutcome(verified=False)`` and
        dispatches nothing.
        """
        if not self.gateway.verify_callback(payload):
            logger.warning(
                "payment_callback_invalid_signature",
                provider=self.gateway.provider,
                fields=sorted(payload.keys()),
            )
            return CallbackOutcome(verified=False)

        payment = self.gateway.parse_callback(payload)
        event_cls = PaymentSuccessful if payment.is_successful else PaymentFailed
        event = event_cls(
            provider=self.gateway.provider,
            status=payment.status,
            order_number=payment.order_number,
            intent_uuid=payment.intent_uuid,
            reference_number=payment.reference_number,
            raw_payload=dict(payload),
        )
        logger.info(
            "payment_callback_classified",
            provider=self.gateway.provider,
            order_number=payment.order_number,
            intent_uuid=payment.intent_uuid,
            status=payment.status,
            event_type=event_cls.__name__,
        )
        await self.dispatcher.dispatch(event)
        return CallbackOutcome(verified=True, payment=payment, event=event)

    def handle_redirect(self, payload: Mapping[str, Any], *, verify: bool = False) -> ParsedCallback:
        """Classify a browser redirect.

        With ``verify`` set, a payload failing checksum verification is
        reported with status ``unverified`` so it lands on the failure page.
        """
        if verify and not self.gateway.verify_callback(payload):
            logger.warning("payment_redirect_unverified", provider=self.gateway.provider)
            return self.gateway.parse_callback(payload).model_copy(update={"status": "unverified"})
        return self.gateway.parse_callback(payload)

    async def aclose(self) -> None:
        close = getattr(self.gateway, "aclose", None)
        if callable(close):
            await close()
