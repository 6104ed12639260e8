"""Unified API response envelope.

Every endpoint, success or failure, answers with:
{
    "code": 0,             // 0=success, otherwise an AppError code
    "message": "success",
    "data": { ... },       // null on error
    "timestamp": "...",
    "request_id": "..."    // matches the request log line
}
"""

import uuid
from typing import Any

from pydantic import BaseModel, Field
from starlette.requests import Request

from src.ws_common.datetime_utils import utc_now


def new_request_id() -> str:
    return f"req_{uuid.uuid4().hex[:12]}"


class ApiResponse(BaseModel):
    code: int = 0
    message: str = "success"
    data: Any = None
    timestamp: str = Field(default_factory=lambda: utc_now().isoformat())
    request_id: str = Field(default_factory=new_request_id)


def request_id_of(request: Request) -> str:
    """Request ID injected by RequestLogMiddleware, or a fresh one."""
    return getattr(request.state, "request_id", None) or new_request_id()


def success_response(data: Any = None, request_id: str | None = None) -> ApiResponse:
    resp = ApiResponse(code=0, message="success", data=data)
    if request_id:
        resp.request_id = request_id
    return resp


def error_response(code: int, message: str, request_id: str | None = None) -> ApiResponse:
    resp = ApiResponse(code=code, message=message, data=None)
    if request_id:
        resp.request_id = request_id
    return resp
