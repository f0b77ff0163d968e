"""
SecurePay client errors mapped to unified BusinessException variants.

AuthenticationError, ApiError and ValidationError are distinguishable so
callers can choose between retrying, alerting and rejecting.
"""
from __future__ import annotations

from typing import Any, Optional

from domain.common.exceptions import BusinessException
from shared.codes.payment_codes import PaymentCode


class SecurePayError(BusinessException):
    """Base class for every error raised by the SecurePay client."""


class AuthenticationError(SecurePayError):
    def __init__(self, message: str, *, status_code: Optional[int] = None, body: Optional[str] = None):
        self.status_code = status_code
        self.body = body
        details: dict[str, Any] = {"provider": "securepay"}
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(
            code=PaymentCode.AUTHENTICATION_FAILED,
            message=message,
            error_type="AuthenticationError",
            details=details,
        )


class ApiError(SecurePayError):
    def __init__(
        self,
        message: str,
        *,
        method: str,
        path: str,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
    ):
        self.method = method
        self.path = path
        self.status_code = status_code
        self.body = body
        super().__init__(
            code=PaymentCode.API_ERROR,
            message=message,
            error_type="ApiError",
            details={
                "provider": "securepay",
                "method": method,
                "path": path,
                "status_code": status_code,
            },
        )


class ValidationError(SecurePayError):
    def __init__(self, field: str):
        super().__init__(
            code=PaymentCode.VALIDATION_ERROR,
            message=f"Missing required field: {field}",
            error_type="ValidationError",
            details={"provider": "securepay"},
            field=field,
        )


class UnsupportedMethodError(SecurePayError):
    def __init__(self, method: str):
        self.method = method
        super().__init__(
            code=PaymentCode.UNSUPPORTED_METHOD,
            message=f"Unsupported HTTP method: {method}",
            error_type="UnsupportedMethodError",
            details={"provider": "securepay", "method": method},
        )
