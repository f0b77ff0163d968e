"""领域层业务异常基类。

携带业务码与出错字段，由 core.exceptions 统一映射为 HTTP 响应；
支付网关客户端的错误（payments.exceptions）均派生自此类。
"""
from __future__ import annotations

from typing import Optional


class BusinessException(Exception):
    def __init__(
        self,
        code: int,
        message: str,
        error_type: str = "BusinessError",
        details: Optional[dict] = None,
        field: Optional[str] = None,
    ) -> None:
        self.code = code
        self.message = message
        self.error_type = error_type
        self.details = details
        self.field = field
        super().__init__(message)

    def __str__(self) -> str:
        return f"[{int(self.code)}] {self.message}"
