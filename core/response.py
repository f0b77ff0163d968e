"""
统一响应信封：{code, message, data, error}
"""
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, Field, field_serializer

from shared.codes import BusinessCode


class ErrorDetail(BaseModel):
    """错误详情；网关错误的 details 中携带 provider/method/path/status_code"""
    type: str
    details: Optional[dict] = None
    field: Optional[str] = None
    request_id: Optional[str] = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_serializer("timestamp")
    def _utc_iso(self, ts: datetime) -> str:
        ts = ts.replace(tzinfo=timezone.utc) if ts.tzinfo is None else ts.astimezone(timezone.utc)
        return ts.isoformat().replace("+00:00", "Z")


class Response(BaseModel):
    code: int
    message: str
    data: Any = None
    error: Optional[ErrorDetail] = None


def success_response(data: Any = None, message: str = "Success", code: int = BusinessCode.SUCCESS) -> Response:
    return Response(code=code, message=message, data=data)


def error_response(
    code: int,
    message: str,
    error_type: str = "BusinessError",
    details: Optional[dict] = None,
    field: Optional[str] = None,
    request_id: Optional[str] = None,
) -> Response:
    """
    创建错误响应

    Args:
        code: 业务状态码（BusinessCode 或 PaymentCode）
        message: 错误消息
        error_type: 错误类型，如 AuthenticationError / ApiError
        details: 错误详情
        field: 出错字段（缺失的必填参数）
        request_id: 请求ID
    """
    return Response(
        code=code,
        message=message,
        error=ErrorDetail(type=error_type, details=details, field=field, request_id=request_id),
    )
