"""
SecurePay API client.

Handles client-credential authentication with a cached bearer token,
re-authenticates once when the gateway answers 401, and exposes the
payment-intent, payment-status and bank-list endpoints plus callback
checksum verification.
"""
from __future__ import annotations

from typing import Any, Mapping, Optional, Union
from urllib.parse import quote

import httpx
from pydantic import BaseModel
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt

from application.dtos.payments import (
    CreatePaymentRequest,
    ParsedCallback,
    PaymentIntent,
    first_not_none,
    is_blank,
    to_minor_units,
)
from core.logging_config import get_logger
from core.settings import SecurePaySettings
from infrastructure.external.cache import CacheInterface
from infrastructure.external.payments.base import BasePaymentClient
from infrastructure.external.payments.credentials import ResolvedCredentials, resolve_credentials
from infrastructure.external.payments.exceptions import (
    ApiError,
    AuthenticationError,
    UnsupportedMethodError,
    ValidationError,
)
from infrastructure.external.payments.signature import verify_checksum
from infrastructure.external.payments.token_cache import TokenCache


logger = get_logger(__name__)

SUPPORTED_METHODS = frozenset({"GET", "POST", "PUT", "DELETE"})
REQUIRED_PAYMENT_FIELDS = ("order_number", "buyer_name", "buyer_email", "buyer_phone", "amount")


def _segment(value: Any) -> str:
    """Encode one URL path segment; dot-only values would otherwise be collapsed."""
    encoded = quote(str(value), safe="")
    if encoded in (".", ".."):
        return encoded.replace(".", "%2E")
    return encoded


class _TokenRejected(Exception):
    """The gateway answered 401 to a request carrying a cached token."""


class SecurePayClient(BasePaymentClient):
    provider = "securepay"

    def __init__(
        self,
        credentials: ResolvedCredentials,
        tokens: TokenCache,
        *,
        callback_url: Optional[str] = None,
        redirect_url: Optional[str] = None,
        auth_timeout: float = 15.0,
        request_timeout: float = 30.0,
        sort_checksum_keys: bool = False,
        http_client: Optional[httpx.AsyncClient] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        super().__init__(timeout=request_timeout, http_client=http_client, transport=transport)
        self._credentials = credentials
        self._tokens = tokens
        self._callback_url = callback_url
        self._redirect_url = redirect_url
        self._auth_timeout = auth_timeout
        self._request_timeout = request_timeout
        self._sort_checksum_keys = sort_checksum_keys

    @classmethod
    def from_settings(cls, cfg: SecurePaySettings, store: CacheInterface, **kwargs) -> "SecurePayClient":
        return cls(
            resolve_credentials(cfg),
            TokenCache(store, prefix=cfg.cache.prefix, ttl_buffer=cfg.cache.ttl_buffer),
            callback_url=cfg.callback_url,
            redirect_url=cfg.redirect_url,
            auth_timeout=cfg.timeouts.auth,
            request_timeout=cfg.timeouts.request,
            sort_checksum_keys=cfg.checksum.sort_keys,
            **kwargs,
        )

    @property
    def base_url(self) -> str:
        return self._credentials.base_url

    @property
    def environment(self) -> str:
        return self._credentials.environment

    def _url(self, path: str) -> str:
        return f"{self._credentials.base_url}/{path.lstrip('/')}"

    # ─── Authentication ───────────────────────────────────────────────

    async def get_auth_token(self) -> str:
        """Return the cached bearer token, or authenticate and cache a new one.

        Raises:
            AuthenticationError: credentials missing, auth endpoint failed,
                or the response carried no ``auth_token``.
        """
        cached = await self._tokens.get()
        if cached:
            logger.debug("securepay_token_cache_hit", key=self._tokens.key)
            return cached

        if not self._credentials.is_complete:
            raise AuthenticationError("SecurePay client_id or client_secret not configured.")

        try:
            async with self.client() as http:
                response = await http.post(
                    self._url("/v1/auth"),
                    auth=(self._credentials.client_id, self._credentials.client_secret),
                    headers={"Accept": "application/json"},
                    timeout=self._auth_timeout,
                )
        except httpx.TransportError as exc:
            logger.error("securepay_auth_transport_error", error=str(exc))
            raise AuthenticationError(f"SecurePay authentication request failed: {exc}") from exc

        if not response.is_success:
            raise AuthenticationError(
                f"SecurePay authentication failed: HTTP {response.status_code} - {response.text}",
                status_code=response.status_code,
                body=response.text,
            )

        data = self._decode(response)
        token = data.get("auth_token") if isinstance(data, dict) else None
        if not token:
            raise AuthenticationError("SecurePay auth response missing auth_token.")

        ttl = await self._tokens.put(str(token), data.get("expired_at"))
        self._log("securepay_auth_succeeded", environment=self.environment, ttl=ttl)
        return str(token)

    async def clear_auth_token(self) -> None:
        await self._tokens.forget()

    # ─── HTTP ─────────────────────────────────────────────────────────

    async def authenticated_request(
        self,
        method: str,
        path: str,
        data: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        """Issue a bearer-authenticated request and return the decoded body.

        A 401 on the first attempt clears the cached token and the request
        is sent once more with a fresh one. Any non-2xx after that raises
        ApiError.
        """
        verb = method.upper()
        if verb not in SUPPORTED_METHODS:
            raise UnsupportedMethodError(method)

        retrying = AsyncRetrying(
            stop=stop_after_attempt(2),
            retry=retry_if_exception_type(_TokenRejected),
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                return await self._issue(
                    verb,
                    path,
                    data,
                    refresh_on_401=attempt.retry_state.attempt_number == 1,
                )

    async def _issue(
        self,
        verb: str,
        path: str,
        data: Optional[Mapping[str, Any]],
        *,
        refresh_on_401: bool,
    ) -> Any:
        token = await self.get_auth_token()
        request_kwargs: dict[str, Any] = {}
        if data is not None:
            if verb == "GET":
                request_kwargs["params"] = dict(data)
            else:
                request_kwargs["json"] = dict(data)

        try:
            async with self.client() as http:
                response = await http.request(
                    verb,
                    self._url(path),
                    headers={"Accept": "application/json", "Authorization": f"Bearer {token}"},
                    timeout=self._request_timeout,
                    **request_kwargs,
                )
        except httpx.TransportError as exc:
            logger.error("securepay_request_transport_error", method=verb, path=path, error=str(exc))
            raise ApiError(
                f"SecurePay API request failed on {verb} {path}: {exc}",
                method=verb,
                path=path,
            ) from exc

        if response.status_code == 401 and refresh_on_401:
            logger.warning("securepay_token_rejected", method=verb, path=path)
            await self.clear_auth_token()
            raise _TokenRejected()

        if not response.is_success:
            logger.warning("securepay_request_failed", method=verb, path=path, status_code=response.status_code)
            raise ApiError(
                f"SecurePay API error: HTTP {response.status_code} on {verb} {path} - {response.text}",
                method=verb,
                path=path,
                status_code=response.status_code,
                body=response.text,
            )

        return self._decode(response)

    # ─── Payments ─────────────────────────────────────────────────────

    async def create_payment(self, params: Union[Mapping[str, Any], CreatePaymentRequest]) -> PaymentIntent:
        fields = params.model_dump() if isinstance(params, BaseModel) else dict(params)
        for name in REQUIRED_PAYMENT_FIELDS:
            if is_blank(fields.get(name)):
                raise ValidationError(name)

        order_number = fields["order_number"]
        payload = {
            "order_number": order_number,
            "buyer_name": fields["buyer_name"],
            "buyer_email": fields["buyer_email"],
            "buyer_phone": fields["buyer_phone"],
            "amount": to_minor_units(fields["amount"]),
            "description": first_not_none(fields.get("description"), f"Payment for {order_number}"),
            "callback_url": first_not_none(fields.get("callback_url"), self._callback_url, ""),
            "redirect_url": first_not_none(fields.get("redirect_url"), self._redirect_url, ""),
        }

        response = await self.authenticated_request("POST", "/v1/payment/intents", payload)
        intent = PaymentIntent.from_response(response if isinstance(response, Mapping) else {})
        self._log(
            "securepay_intent_created",
            order_number=order_number,
            intent_uuid=intent.uuid,
            status=intent.status,
            successful=intent.is_successful,
        )
        return intent

    async def get_payment_status(self, intent_uuid: str) -> dict[str, Any]:
        return await self.authenticated_request("GET", f"/v1/payment/intents/{_segment(intent_uuid)}")

    # ─── Banks ────────────────────────────────────────────────────────

    async def get_banks(self, gateway: str = "fpx", bank_type: str = "b2c") -> Any:
        """Bank list for a gateway (fpx|direct_debit|duitnow) and type (b2c|b2b1|retail|corporate).

        Response shapes differ per gateway: ``banks.retail`` wins, then
        ``banks``, then the whole body.
        """
        path = f"/v1/paynet/{_segment(gateway)}/banks/{_segment(bank_type)}"
        data = await self.authenticated_request("GET", path)
        banks = data.get("banks") if isinstance(data, Mapping) else None
        if isinstance(banks, Mapping) and banks.get("retail") is not None:
            return banks["retail"]
        if banks is not None:
            return banks
        return data

    # ─── Callback Verification ────────────────────────────────────────

    def verify_callback(self, payload: Mapping[str, Any], signature: Optional[str] = None) -> bool:
        return verify_checksum(
            payload,
            self._credentials.client_secret,
            signature,
            sort_keys=self._sort_checksum_keys,
        )

    def parse_callback(self, payload: Mapping[str, Any]) -> ParsedCallback:
        return ParsedCallback.from_payload(payload)
