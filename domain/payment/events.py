"""
Payment domain events.

Raised by the application service once a callback has been verified and
classified; host code subscribes through a PaymentEventHandler. Events
carry plain fields so the domain stays free of application imports.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any
import uuid


@dataclass(frozen=True)
class PaymentEvent:
    provider: str
    status: str
    order_number: str = ""
    intent_uuid: str = ""
    reference_number: str = ""
    raw_payload: dict[str, Any] = field(default_factory=dict)
    event_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass(frozen=True)
class PaymentSuccessful(PaymentEvent):
    pass


@dataclass(frozen=True)
class PaymentFailed(PaymentEvent):
    pass
