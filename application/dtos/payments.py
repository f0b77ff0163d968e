"""
Payment DTOs (Pydantic v2) used at application boundaries.
"""
from __future__ import annotations

from typing import Any, Mapping, Optional, Union
from pydantic import BaseModel, ConfigDict, Field

from shared.codes.payment_codes import STATUS_PENDING, STATUS_SUCCESSFUL, STATUS_UNKNOWN


def to_minor_units(value: Any) -> int:
    """Coerce a gateway amount ("1500", 1500, "15.00") to int minor units."""
    if value is None or isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    try:
        return int(value)
    except (TypeError, ValueError):
        pass
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return 0


def _as_str(value: Any) -> str:
    return "" if value is None else str(value)


def first_not_none(*values: Any) -> Any:
    """First value that is not None; empty strings and zeros count as present."""
    for value in values:
        if value is not None:
            return value
    return None


def is_blank(value: Any) -> bool:
    """True for None, False, "", "0", numeric zero and empty containers."""
    if value is None or value is False:
        return True
    if isinstance(value, str):
        return value in ("", "0")
    if isinstance(value, (int, float)):
        return value == 0
    if isinstance(value, (Mapping, list, tuple)):
        return len(value) == 0
    return False


class CreatePaymentRequest(BaseModel):
    """Input for creating a SecurePay payment intent.

    Every field is optional at the model level; presence of the required
    ones is checked by the client so the first missing field can be named.
    ``amount`` is in minor units (1500 = RM15.00).
    """

    order_number: Optional[str] = None
    buyer_name: Optional[str] = None
    buyer_email: Optional[str] = None
    buyer_phone: Optional[str] = None
    amount: Optional[Union[int, str]] = None
    description: Optional[str] = None
    callback_url: Optional[str] = None
    redirect_url: Optional[str] = None


class PaymentIntent(BaseModel):
    """Result of a create-payment call."""

    model_config = ConfigDict(frozen=True)

    uuid: str = ""
    checkout_url: str = ""
    status: str = STATUS_PENDING
    order_number: str = ""
    amount: int = 0
    raw: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_response(cls, data: Mapping[str, Any]) -> "PaymentIntent":
        return cls(
            uuid=_as_str(first_not_none(data.get("intent_uuid"), data.get("uuid"))),
            checkout_url=_as_str(data.get("checkout_url")),
            status=_as_str(first_not_none(data.get("status"), STATUS_PENDING)),
            order_number=_as_str(data.get("order_number")),
            amount=to_minor_units(data.get("amount")),
            raw=dict(data),
        )

    @property
    def is_successful(self) -> bool:
        # An intent without a checkout URL is a failed creation
        return bool(self.checkout_url)

    def to_dict(self) -> dict[str, Any]:
        return dict(self.raw)


class ParsedCallback(BaseModel):
    """Normalized view of a callback or redirect payload."""

    model_config = ConfigDict(frozen=True)

    status: str = STATUS_UNKNOWN
    reference_number: str = ""
    intent_uuid: str = ""
    order_number: str = ""

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "ParsedCallback":
        payment = payload.get("payment")
        if not isinstance(payment, Mapping):
            payment = payload
        return cls(
            status=_as_str(first_not_none(payment.get("status"), STATUS_UNKNOWN)),
            reference_number=_as_str(payment.get("reference_number")),
            intent_uuid=_as_str(payment.get("intent_uuid")),
            order_number=_as_str(first_not_none(payment.get("order_number"), payload.get("order_number"))),
        )

    @property
    def is_successful(self) -> bool:
        return self.status == STATUS_SUCCESSFUL
