"""
Payment specific codes and SecurePay status vocabulary.
"""
from __future__ import annotations

from enum import IntEnum


class PaymentCode(IntEnum):
    # Generic success
    SUCCESS = 0

    # Gateway/Network errors (6xxxx)
    AUTHENTICATION_FAILED = 60000
    API_ERROR = 60001
    SIGNATURE_ERROR = 60002
    VALIDATION_ERROR = 60003
    UNSUPPORTED_METHOD = 60004


# Callback status reported by SecurePay for a completed payment.
# Anything else (failed, pending, unknown, ...) is classified as a failure.
STATUS_SUCCESSFUL = "successful"
STATUS_UNKNOWN = "unknown"
STATUS_PENDING = "pending"
