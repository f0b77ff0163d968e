"""
Base payment client implementing shared concerns: http client lifecycle,
timeouts, response decoding and logging.

Concrete providers subclass and implement provider-specific logic.
"""
from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

import httpx

from core.logging_config import get_logger


logger = get_logger(__name__)


class BasePaymentClient:
    provider: str = "base"

    def __init__(
        self,
        *,
        timeout: float = 30.0,
        http_client: Optional[httpx.AsyncClient] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = http_client
        self._owns_client = http_client is None

    @asynccontextmanager
    async def client(self) -> AsyncIterator[httpx.AsyncClient]:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(self._timeout), transport=self._transport)
        # Kept open for reuse; aclose() releases it.
        yield self._client

    async def aclose(self) -> None:
        """Close underlying HTTP client if this instance created it."""
        if self._client is not None and self._owns_client:
            try:
                await self._client.aclose()
            finally:
                self._client = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        """Parsed JSON body, or an empty dict for empty/non-JSON bodies."""
        if not response.content:
            return {}
        try:
            data = response.json()
        except ValueError:
            return {}
        return {} if data is None else data

    def _log(self, event: str, **kwargs) -> None:
        logger.info(
            event,
            provider=self.provider,
            **kwargs,
        )
