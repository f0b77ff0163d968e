"""
Resolve the active SecurePay environment into concrete connection values.
"""
from __future__ import annotations

from dataclasses import dataclass

from core.settings import SecurePayCredentials, SecurePaySettings

SANDBOX = "sandbox"
PRODUCTION = "production"


@dataclass(frozen=True)
class ResolvedCredentials:
    environment: str
    base_url: str
    client_id: str
    client_secret: str = ""

    @property
    def is_complete(self) -> bool:
        return bool(self.client_id) and bool(self.client_secret)

    def __repr__(self) -> str:
        # client_secret stays out of reprs and tracebacks
        return (
            f"ResolvedCredentials(environment={self.environment!r}, "
            f"base_url={self.base_url!r}, client_id={self.client_id!r})"
        )


def resolve_credentials(cfg: SecurePaySettings) -> ResolvedCredentials:
    env = cfg.environment or SANDBOX
    if env == PRODUCTION:
        base_url, creds = cfg.urls.production, cfg.production
    elif env == SANDBOX:
        base_url, creds = cfg.urls.sandbox, cfg.sandbox
    else:
        base_url, creds = cfg.urls.sandbox, SecurePayCredentials()
    return ResolvedCredentials(
        environment=env,
        base_url=base_url.rstrip("/"),
        client_id=creds.client_id or "",
        client_secret=creds.client_secret or "",
    )
