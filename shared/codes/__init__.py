"""
Business codes shared by the domain, core and API layers.

Generic codes live here; gateway-specific ones in ``shared.codes.payment_codes``.
"""
from enum import IntEnum


class BusinessCode(IntEnum):
    SUCCESS = 0

    # Request errors (1xxxx)
    PARAM_ERROR = 10000
    PARAM_VALIDATION_ERROR = 10003

    # Resource errors (2xxxx)
    NOT_FOUND = 20006

    # Authorization errors (3xxxx)
    UNAUTHORIZED = 30001
    FORBIDDEN = 30002

    # System errors (4xxxx)
    SYSTEM_ERROR = 40000
    SERVICE_UNAVAILABLE = 40003

    # Rate limiting (5xxxx)
    TOO_MANY_REQUESTS = 50001


__all__ = ["BusinessCode"]
