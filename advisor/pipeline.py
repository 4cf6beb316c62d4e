"""Validator -> Handler -> Error Mapper -> Envelope, for a single request."""

from __future__ import annotations

import logging
import time
from typing import Any, Generic, TypeVar

from pydantic import BaseModel

from advisor.envelope import Envelope, fail, ok
from advisor.errors import AppError, to_app_error
from advisor.handlers import Handler
from advisor.result import Err
from advisor.telemetry import TelemetrySink, emit
from advisor.validation import RequestSchema, validate

logger = logging.getLogger(__name__)

RequestT = TypeVar("RequestT", bound=BaseModel)
PayloadT = TypeVar("PayloadT", bound=BaseModel)


class RequestPipeline(Generic[RequestT, PayloadT]):
    """Run one request through validation, handling and envelope construction.

    A pipeline holds only its collaborators, never per-request state, and
    is built fresh for every request by the dependency providers.
    """

    def __init__(
        self,
        name: str,
        schema: RequestSchema[RequestT],
        handler: Handler[RequestT, PayloadT],
        telemetry: TelemetrySink | None = None,
    ) -> None:
        self._name = name
        self._schema = schema
        self._handler = handler
        self._telemetry = telemetry

    async def run(self, raw: Any) -> Envelope[PayloadT]:
        started = time.perf_counter()

        validated = validate(raw, self._schema)
        if isinstance(validated, Err):
            return self._failed(validated.error, started)

        try:
            outcome = await self._handler.handle(validated.value)
        except Exception as exc:
            error = to_app_error(exc)
            envelope = fail(error)
            logger.exception(
                "Unhandled handler failure",
                extra={
                    "operation": self._name,
                    "request_id": envelope.request_id,
                    "error_code": error.code,
                },
            )
            self._record(envelope.error, started, envelope.request_id)
            return envelope

        if isinstance(outcome, Err):
            return self._failed(outcome.error, started)

        emit(
            self._telemetry,
            f"{self._name}.succeeded",
            duration_ms=_elapsed_ms(started),
        )
        return ok(outcome.value)

    def _failed(self, error: AppError, started: float) -> Envelope[PayloadT]:
        envelope = fail(error)
        logger.info(
            "Request failed",
            extra={
                "operation": self._name,
                "request_id": envelope.request_id,
                "error_code": error.code,
                "error_category": error.category.value,
                "details": error.details,
            },
        )
        self._record(error, started, envelope.request_id)
        return envelope

    def _record(self, error: AppError, started: float, request_id: str) -> None:
        emit(
            self._telemetry,
            f"{self._name}.failed",
            duration_ms=_elapsed_ms(started),
            request_id=request_id,
            category=error.category.value,
            severity=error.severity.value,
        )


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)
