"""
Payment gateway port (application/ports) exposing a replaceable protocol.

Application depends on this Protocol; infrastructure implements adapters.
"""
from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol, Union, runtime_checkable

from application.dtos.payments import CreatePaymentRequest, ParsedCallback, PaymentIntent


@runtime_checkable
class PaymentGateway(Protocol):
    """Gateway protocol for the hosted payment gateway.

    Network operations are async; callback verification and parsing are
    pure functions of the payload.
    """

    provider: str

    async def create_payment(self, params: Union[Mapping[str, Any], CreatePaymentRequest]) -> PaymentIntent: ...

    async def get_payment_status(self, intent_uuid: str) -> dict[str, Any]: ...

    async def get_banks(self, gateway: str = "fpx", bank_type: str = "b2c") -> Any: ...

    def verify_callback(self, payload: Mapping[str, Any], signature: Optional[str] = None) -> bool: ...

    def parse_callback(self, payload: Mapping[str, Any]) -> ParsedCallback: ...
