"""Unified API response envelope.

Every endpoint answers with:
{
    "code": 0,              // 0 = success, otherwise an AppError code
    "message": "success",
    "data": { ... },        // payload on success, error details (or null) on error
    "timestamp": "...",
    "request_id": "..."     // same value as the X-Request-ID response header
}
"""

import uuid
from typing import Any

from pydantic import BaseModel, Field
from starlette.requests import Request

from src.om_common.datetime_utils import utc_now


def new_request_id() -> str:
    return f"req_{uuid.uuid4().hex[:12]}"


class ApiResponse(BaseModel):
    code: int = 0
    message: str = "success"
    data: Any = None
    timestamp: str = Field(default_factory=lambda: utc_now().isoformat())
    request_id: str = Field(default_factory=new_request_id)


def _stamp(resp: ApiResponse, request: Request | None) -> ApiResponse:
    if request is not None:
        resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


def success_response(
    data: Any = None, message: str = "success", request: Request | None = None
) -> ApiResponse:
    return _stamp(ApiResponse(code=0, message=message, data=data), request)


def error_response(
    code: int,
    message: str,
    details: dict[str, Any] | None = None,
    request: Request | None = None,
) -> ApiResponse:
    return _stamp(ApiResponse(code=code, message=message, data=details), request)
