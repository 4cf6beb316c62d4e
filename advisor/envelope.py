"""Response envelopes: the only shapes rendered to HTTP clients."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Generic, TypeVar, Union

from fastapi.responses import JSONResponse
from pydantic import BaseModel

from advisor.errors import AppError, status_code_for

T = TypeVar("T", bound=BaseModel)

REQUEST_ID_HEADER = "X-Request-ID"
TIMESTAMP_HEADER = "X-Response-Timestamp"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def new_request_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True)
class SuccessEnvelope(Generic[T]):
    data: T
    timestamp: str


@dataclass(frozen=True)
class FailureEnvelope:
    error: AppError
    timestamp: str
    request_id: str

    def body(self) -> dict[str, Any]:
        return {
            "success": False,
            "error": self.error.model_dump(mode="json", by_alias=True, exclude_none=True),
            "timestamp": self.timestamp,
            "requestId": self.request_id,
        }


Envelope = Union[SuccessEnvelope[T], FailureEnvelope]


def ok(data: T) -> SuccessEnvelope[T]:
    return SuccessEnvelope(data=data, timestamp=_now())


def fail(error: AppError, request_id: str | None = None) -> FailureEnvelope:
    return FailureEnvelope(error=error, timestamp=_now(), request_id=request_id or new_request_id())


def render(envelope: Envelope[Any]) -> JSONResponse:
    """Serialize an envelope for the transport layer."""

    if isinstance(envelope, FailureEnvelope):
        return JSONResponse(
            status_code=status_code_for(envelope.error),
            content=envelope.body(),
            headers={REQUEST_ID_HEADER: envelope.request_id, TIMESTAMP_HEADER: envelope.timestamp},
        )

    return JSONResponse(
        status_code=200,
        content=envelope.data.model_dump(mode="json", by_alias=True, exclude_none=True),
        headers={TIMESTAMP_HEADER: envelope.timestamp},
    )
