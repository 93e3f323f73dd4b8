from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from pydantic import BaseModel, Field


class ErrorBody(BaseModel):
    code: str
    message: str
    details: dict[str, Any] | None = None


class ResponseEnvelope(BaseModel):
    data: Any | None = None
    meta: dict[str, Any] = Field(default_factory=dict)
    error: ErrorBody | None = None


def build_meta(request: Request | None = None, count: int | None = None) -> dict[str, Any]:
    meta: dict[str, Any] = {
        "server_time": datetime.now(timezone.utc).isoformat(),
    }
    if request is not None:
        request_id = getattr(request.state, "request_id", None)
        if request_id:
            meta["request_id"] = request_id
    if count is not None:
        meta["count"] = count
    return meta


def _dump(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True)
    if isinstance(value, list):
        return [_dump(item) for item in value]
    return jsonable_encoder(value)


def success_response(data: Any, request: Request | None = None) -> dict[str, Any]:
    dumped = _dump(data)
    count = len(dumped) if isinstance(dumped, list) else None
    return ResponseEnvelope(data=dumped, meta=build_meta(request, count), error=None).model_dump()


def error_response(
    code: str,
    message: str,
    details: dict[str, Any] | None = None,
    request: Request | None = None,
) -> dict[str, Any]:
    return ResponseEnvelope(
        data=None,
        meta=build_meta(request),
        error=ErrorBody(code=code, message=message, details=details),
    ).model_dump()
