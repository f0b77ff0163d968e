"""
SecurePay API routes.

Callback (server-to-server) and redirect (customer browser) endpoints,
plus thin endpoints to create intents, query status and list banks via
the application service. No gateway details live here.
"""
from __future__ import annotations

import re
from typing import Any, Iterable
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import RedirectResponse

from api.dependencies import get_payment_service, get_securepay_settings
from application.dtos.payments import CreatePaymentRequest
from application.services.payment_service import PaymentService
from core.logging_config import get_logger
from core.response import success_response
from core.settings import SecurePaySettings
from domain.common.exceptions import BusinessException
from shared.codes.payment_codes import PaymentCode


router = APIRouter(prefix="/securepay", tags=["SecurePay"])
logger = get_logger(__name__)

_BRACKET_KEY = re.compile(r"^([^\[\]]+)((?:\[[^\[\]]*\])+)$")
_BRACKET_PART = re.compile(r"\[([^\[\]]*)\]")


def _nest_form_fields(items: Iterable[tuple[str, Any]]) -> dict[str, Any]:
    """Expand PHP-style bracket keys (``payment[status]``) into nested dicts.

    ``[]`` appends under the next numeric key. Plain keys are kept as-is.
    """
    result: dict[str, Any] = {}
    for key, value in items:
        match = _BRACKET_KEY.match(key)
        if match is None:
            result[key] = value
            continue
        path = [match.group(1), *_BRACKET_PART.findall(match.group(2))]
        node = result
        for part in path[:-1]:
            part = part or str(len(node))
            child = node.get(part)
            if not isinstance(child, dict):
                child = node[part] = {}
            node = child
        node[path[-1] or str(len(node))] = value
    return result


async def _read_payload(request: Request) -> dict[str, Any]:
    ct = (request.headers.get("content-type") or "").lower()
    if "application/json" in ct:
        try:
            body = await request.json()
        except ValueError:
            raise HTTPException(status_code=400, detail="Malformed JSON body")
        if not isinstance(body, dict):
            raise HTTPException(status_code=400, detail="Callback body must be a JSON object")
        return body
    form = await request.form()
    return _nest_form_fields((k, v) for k, v in form.multi_items() if isinstance(v, str))


@router.post("/callback", summary="SecurePay payment callback")
async def securepay_callback(request: Request, service: PaymentService = Depends(get_payment_service)):
    payload = await _read_payload(request)
    outcome = await service.handle_callback(payload)
    if not outcome.verified:
        raise BusinessException(
            code=PaymentCode.SIGNATURE_ERROR,
            message="Invalid signature",
            error_type="SignatureError",
        )
    return success_response(data={"ok": True}, message="Callback received")


@router.get("/redirect", summary="Customer redirect after checkout")
async def securepay_redirect(
    request: Request,
    service: PaymentService = Depends(get_payment_service),
    cfg: SecurePaySettings = Depends(get_securepay_settings),
):
    payload = _nest_form_fields(request.query_params.multi_items())
    payment = service.handle_redirect(payload, verify=cfg.verify_redirect)
    destination = cfg.success_url if payment.is_successful else cfg.failed_url
    separator = "&" if "?" in destination else "?"
    return RedirectResponse(
        url=f"{destination}{separator}{urlencode(payment.model_dump())}",
        status_code=302,
    )


@router.post("/intents", summary="Create payment intent")
async def create_intent(payload: CreatePaymentRequest, service: PaymentService = Depends(get_payment_service)):
    intent = await service.create_payment(payload)
    return success_response(
        data={**intent.model_dump(exclude={"raw"}), "is_successful": intent.is_successful},
        message="Payment intent created",
    )


@router.get("/intents/{intent_uuid}", summary="Query payment status")
async def payment_status(intent_uuid: str, service: PaymentService = Depends(get_payment_service)):
    data = await service.get_payment_status(intent_uuid)
    return success_response(data=data, message="Payment status")


@router.get("/banks", summary="List banks")
async def list_banks(
    gateway: str = Query(default="fpx"),
    bank_type: str = Query(default="b2c", alias="type"),
    service: PaymentService = Depends(get_payment_service),
):
    banks = await service.get_banks(gateway, bank_type)
    return success_response(data=banks, message="Bank list")
