"""
SecurePay gateway settings using pydantic-settings v2 with nested env keys.

Kept apart from core.config.Settings: everything the gateway client needs
(environment, credentials, URLs, token cache) lives under the
``SECUREPAY__`` prefix, e.g. ``SECUREPAY__SANDBOX__CLIENT_ID``.
"""
from __future__ import annotations

from typing import Literal, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import BaseModel, ConfigDict, Field


class SecurePayCredentials(BaseModel):
    model_config = ConfigDict(frozen=True)

    client_id: Optional[str] = None
    client_secret: Optional[str] = None


class SecurePayUrls(BaseModel):
    model_config = ConfigDict(frozen=True)

    production: str = "https://console.securepay.my/api"
    sandbox: str = "https://sandbox.securepay.dev/api"


class TokenCacheSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    store: Optional[Literal["redis", "memory"]] = None  # None = redis if REDIS__URL is set
    prefix: str = "securepay_"
    ttl_buffer: int = 60  # seconds before expiry to refresh


class SecurePayTimeouts(BaseModel):
    model_config = ConfigDict(frozen=True)

    auth: float = 15.0
    request: float = 30.0


class ChecksumSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    # Payload key order is kept as received unless the gateway signs sorted keys
    sort_keys: bool = False


class SecurePaySettings(BaseSettings):
    # sandbox | production; any other value resolves to the sandbox URL with no credentials
    environment: str = "sandbox"
    production: SecurePayCredentials = Field(default_factory=SecurePayCredentials)
    sandbox: SecurePayCredentials = Field(default_factory=SecurePayCredentials)
    urls: SecurePayUrls = Field(default_factory=SecurePayUrls)

    # callback_url: SecurePay POSTs payment status here (server-to-server)
    # redirect_url: customer is sent here after checkout
    callback_url: Optional[str] = None
    redirect_url: Optional[str] = None

    # Where the redirect endpoint forwards the customer after classification
    success_url: str = "/payment/success"
    failed_url: str = "/payment/failed"
    verify_redirect: bool = False

    cache: TokenCacheSettings = Field(default_factory=TokenCacheSettings)
    timeouts: SecurePayTimeouts = Field(default_factory=SecurePayTimeouts)
    checksum: ChecksumSettings = Field(default_factory=ChecksumSettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="SECUREPAY__",
        case_sensitive=False,
        extra="ignore",
        env_nested_delimiter="__",
        frozen=True,
    )


securepay_settings = SecurePaySettings()
