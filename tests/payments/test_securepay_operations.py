import json

import httpx
import pytest

from application.dtos.payments import CreatePaymentRequest, PaymentIntent
from conftest import auth_ok
from infrastructure.external.payments.exceptions import ApiError, ValidationError


def _params(**overrides):
    params = {
        "order_number": "ORD1",
        "buyer_name": "Ali",
        "buyer_email": "ali@example.com",
        "buyer_phone": "0123456789",
        "amount": 1500,
    }
    params.update(overrides)
    return params


@pytest.mark.asyncio
@pytest.mark.parametrize("field", ["order_number", "buyer_name", "buyer_email", "buyer_phone", "amount"])
@pytest.mark.parametrize("blank", [None, "", "0"])
async def test_create_payment_requires_fields(make_client, gateway, field, blank):
    client = make_client()
    params = _params(**{field: blank})
    if blank is None:
        params.pop(field)

    with pytest.raises(ValidationError) as exc_info:
        await client.create_payment(params)
    assert exc_info.value.field == field
    assert field in exc_info.value.message
    assert gateway.requests == []


@pytest.mark.asyncio
async def test_first_missing_field_is_reported(make_client):
    client = make_client()
    with pytest.raises(ValidationError) as exc_info:
        await client.create_payment({"amount": 100})
    assert exc_info.value.field == "order_number"


@pytest.mark.asyncio
async def test_create_payment_builds_payload_with_defaults(make_client, gateway):
    gateway.add("POST", "/v1/auth", auth_ok())
    gateway.add(
        "POST",
        "/v1/payment/intents",
        httpx.Response(
            200,
            json={
                "intent_uuid": "abc-1",
                "checkout_url": "https://pay/x",
                "status": "pending",
                "order_number": "ORD1",
                "amount": "1500",
            },
        ),
    )
    client = make_client(callback_url="https://shop.test/cb", redirect_url="https://shop.test/back")

    intent = await client.create_payment(CreatePaymentRequest(**_params(amount="1500")))

    assert isinstance(intent, PaymentIntent)
    assert intent.uuid == "abc-1"
    assert intent.checkout_url == "https://pay/x"
    assert intent.is_successful
    assert intent.amount == 1500
    assert intent.to_dict()["amount"] == "1500"

    (call,) = gateway.calls("POST", "/v1/payment/intents")
    body = json.loads(call.content)
    assert body["amount"] == 1500
    assert body["description"] == "Payment for ORD1"
    assert body["callback_url"] == "https://shop.test/cb"
    assert body["redirect_url"] == "https://shop.test/back"


@pytest.mark.asyncio
async def test_per_call_urls_override_configuration(make_client, gateway):
    gateway.add("POST", "/v1/auth", auth_ok())
    gateway.add("POST", "/v1/payment/intents", httpx.Response(200, json={"uuid": "u-2"}))
    client = make_client(callback_url="https://shop.test/cb")

    intent = await client.create_payment(
        _params(description="Two shirts", callback_url="https://other.test/cb")
    )

    body = json.loads(gateway.calls("POST", "/v1/payment/intents")[0].content)
    assert body["description"] == "Two shirts"
    assert body["callback_url"] == "https://other.test/cb"
    assert body["redirect_url"] == ""
    assert intent.uuid == "u-2"
    assert not intent.is_successful
    assert intent.status == "pending"


@pytest.mark.asyncio
async def test_get_payment_status_returns_raw_body(make_client, gateway):
    gateway.add("POST", "/v1/auth", auth_ok())
    gateway.add("GET", "/v1/payment/intents/abc-1", httpx.Response(200, json={"status": "successful", "x": [1]}))
    client = make_client()

    assert await client.get_payment_status("abc-1") == {"status": "successful", "x": [1]}


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body, expected",
    [
        ({"banks": {"retail": [{"code": "MBB"}], "corporate": []}}, [{"code": "MBB"}]),
        ({"banks": [{"code": "CIMB"}]}, [{"code": "CIMB"}]),
        ({"other": "value"}, {"other": "value"}),
    ],
)
async def test_get_banks_resolution_order(make_client, gateway, body, expected):
    gateway.add("POST", "/v1/auth", auth_ok())
    gateway.add("GET", "/v1/paynet/fpx/banks/b2c", httpx.Response(200, json=body))
    client = make_client()

    assert await client.get_banks() == expected


@pytest.mark.asyncio
async def test_get_banks_uses_gateway_and_type_in_path(make_client, gateway):
    gateway.add("POST", "/v1/auth", auth_ok())
    gateway.add("GET", "/v1/paynet/duitnow/banks/retail", httpx.Response(200, json={"banks": []}))
    client = make_client()

    assert await client.get_banks("duitnow", "retail") == []


@pytest.mark.asyncio
async def test_zero_amount_counts_as_missing(make_client, gateway):
    with pytest.raises(ValidationError) as exc_info:
        await make_client().create_payment(_params(amount=0))
    assert exc_info.value.field == "amount"
    assert gateway.requests == []


@pytest.mark.asyncio
async def test_explicit_empty_optional_fields_are_kept(make_client, gateway):
    gateway.add("POST", "/v1/auth", auth_ok())
    gateway.add("POST", "/v1/payment/intents", httpx.Response(200, json={}))
    client = make_client(callback_url="https://shop.test/cb")

    await client.create_payment(_params(description="", callback_url=""))

    body = json.loads(gateway.calls("POST", "/v1/payment/intents")[0].content)
    assert body["description"] == ""
    assert body["callback_url"] == ""


def test_intent_fields_fall_back_only_when_absent():
    intent = PaymentIntent.from_response({"intent_uuid": "", "uuid": "u-9", "status": ""})
    assert intent.uuid == ""
    assert intent.status == ""

    intent = PaymentIntent.from_response({"intent_uuid": None, "uuid": "u-9"})
    assert intent.uuid == "u-9"
    assert intent.status == "pending"


@pytest.mark.asyncio
@pytest.mark.parametrize("gateway_name", ["../../v1/auth", "..", "fpx/../../admin"])
async def test_bank_path_segments_are_encoded(make_client, gateway, gateway_name):
    gateway.add("POST", "/v1/auth", auth_ok())
    client = make_client()

    with pytest.raises(ApiError):
        await client.get_banks(gateway_name, "b2c")

    bank_call = gateway.requests[-1]
    assert bank_call.method == "GET"
    assert bank_call.url.raw_path.startswith(b"/api/v1/paynet/")
    assert bank_call.url.raw_path.endswith(b"/banks/b2c")
    assert b"/../" not in bank_call.url.raw_path
    assert bank_call.url.raw_path.count(b"/") == 6
