"""User-facing error taxonomy and the mapper from raw failures to it.

Every failure that reaches a caller is an :class:`AppError` drawn from one of
a closed set of categories. Each category owns a single default template;
callers may reword the title, message, suggestions and details, but the
severity, retryability and dismissability always come from the category.
"""

from __future__ import annotations

import asyncio
from enum import Enum
from typing import Any, Mapping, Sequence

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from advisor.exceptions import ServiceError

RATE_LIMIT_RETRY_AFTER_SECONDS = 30


class ErrorCategory(str, Enum):
    VALIDATION = "validation"
    NOT_FOUND = "not-found"
    RATE_LIMIT = "rate-limit"
    NETWORK = "network"
    TIMEOUT = "timeout"
    SERVICE_DOWN = "service-down"
    INTERNAL = "internal"
    UPSTREAM_AI_ERROR = "upstream-ai-error"
    UPSTREAM_DATA_ERROR = "upstream-data-error"


class Severity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AppError(BaseModel):
    """Error shape returned to API clients."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    code: str
    category: ErrorCategory
    severity: Severity
    title: str
    message: str
    details: dict[str, Any] | None = None
    suggestions: tuple[str, ...] = Field(min_length=1)
    retryable: bool
    dismissable: bool
    auto_retry_after: int | None = Field(default=None, serialization_alias="autoRetryAfter")


class _Template(BaseModel):
    model_config = ConfigDict(frozen=True)

    code: str
    severity: Severity
    status_code: int
    title: str
    message: str
    suggestions: tuple[str, ...]
    retryable: bool
    auto_retry_after: int | None = None


_TEMPLATES: Mapping[ErrorCategory, _Template] = {
    ErrorCategory.VALIDATION: _Template(
        code="VALIDATION_ERROR",
        severity=Severity.WARNING,
        status_code=400,
        title="Check your request",
        message="Some of the information sent was not valid.",
        suggestions=("Review the highlighted field and try again.",),
        retryable=False,
    ),
    ErrorCategory.NOT_FOUND: _Template(
        code="NOT_FOUND",
        severity=Severity.WARNING,
        status_code=404,
        title="Not found",
        message="We couldn't find what you were looking for.",
        suggestions=(
            "Check the spelling and search again.",
            "Browse apps manually from the catalog.",
        ),
        retryable=False,
    ),
    ErrorCategory.RATE_LIMIT: _Template(
        code="RATE_LIMITED",
        severity=Severity.INFO,
        status_code=429,
        title="Slow down a little",
        message="Too many requests were made in a short time.",
        suggestions=("We'll try again automatically in a moment.",),
        retryable=True,
        auto_retry_after=RATE_LIMIT_RETRY_AFTER_SECONDS,
    ),
    ErrorCategory.NETWORK: _Template(
        code="NETWORK_ERROR",
        severity=Severity.ERROR,
        status_code=503,
        title="Connection problem",
        message="A service we depend on could not be reached.",
        suggestions=(
            "Check your internet connection.",
            "Try again in a moment.",
        ),
        retryable=True,
    ),
    ErrorCategory.TIMEOUT: _Template(
        code="TIMEOUT",
        severity=Severity.WARNING,
        status_code=504,
        title="This is taking too long",
        message="The request did not finish in time.",
        suggestions=(
            "Try again in a moment.",
            "Try a shorter or simpler request.",
        ),
        retryable=True,
    ),
    ErrorCategory.SERVICE_DOWN: _Template(
        code="SERVICE_UNAVAILABLE",
        severity=Severity.ERROR,
        status_code=503,
        title="Service unavailable",
        message="A service we depend on is temporarily unavailable.",
        suggestions=(
            "Try again in a few minutes.",
            "Browse apps manually in the meantime.",
        ),
        retryable=True,
    ),
    ErrorCategory.INTERNAL: _Template(
        code="INTERNAL_ERROR",
        severity=Severity.CRITICAL,
        status_code=500,
        title="Something went wrong",
        message="An unexpected error occurred while processing your request.",
        suggestions=("Reload the page to start over.",),
        retryable=False,
    ),
    ErrorCategory.UPSTREAM_AI_ERROR: _Template(
        code="AI_SERVICE_ERROR",
        severity=Severity.ERROR,
        status_code=503,
        title="The assistant is unavailable",
        message="The AI assistant could not answer right now.",
        suggestions=(
            "Try again in a moment.",
            "Browse apps manually from the catalog.",
        ),
        retryable=True,
    ),
    ErrorCategory.UPSTREAM_DATA_ERROR: _Template(
        code="ESRI_API_ERROR",
        severity=Severity.ERROR,
        status_code=503,
        title="Dataset search is unavailable",
        message="The Living Atlas catalog could not be searched right now.",
        suggestions=(
            "Try again in a moment.",
            "Try a different search term.",
        ),
        retryable=True,
    ),
}


def build_error(
    category: ErrorCategory,
    *,
    title: str | None = None,
    message: str | None = None,
    suggestions: Sequence[str] | None = None,
    details: Mapping[str, Any] | None = None,
    severity: Severity | None = None,
) -> AppError:
    """Create an ``AppError`` from the category template.

    ``severity`` may only be lowered to ``INFO`` for a degraded response that
    is still served; any other value must match the template.
    """

    template = _TEMPLATES[category]
    resolved_severity = template.severity
    if severity is not None and severity is not template.severity:
        if severity is not Severity.INFO:
            raise ValueError(
                f"Severity for {category.value} is fixed at {template.severity.value}"
            )
        resolved_severity = severity

    cleaned = tuple(s for s in (suggestions or ()) if s and s.strip())
    return AppError(
        code=template.code,
        category=category,
        severity=resolved_severity,
        title=title or template.title,
        message=message or template.message,
        details=dict(details) if details is not None else None,
        suggestions=cleaned or template.suggestions,
        retryable=template.retryable,
        dismissable=resolved_severity is not Severity.CRITICAL,
        auto_retry_after=template.auto_retry_after,
    )


def status_code_for(error: AppError) -> int:
    """HTTP status used when rendering ``error``."""

    return _TEMPLATES[error.category].status_code


def _upstream_category(failure: Any) -> ErrorCategory:
    origin = getattr(failure, "origin", "internal")
    if origin == "data":
        return ErrorCategory.UPSTREAM_DATA_ERROR
    return ErrorCategory.UPSTREAM_AI_ERROR


def _upstream_status(failure: Any) -> int | None:
    if isinstance(failure, ServiceError):
        return failure.status_code
    if isinstance(failure, httpx.HTTPStatusError):
        return failure.response.status_code
    return None


def to_app_error(failure: object) -> AppError:
    """Map any failure into exactly one ``AppError`` category."""

    if isinstance(failure, AppError):
        return failure

    if isinstance(failure, ValidationError):
        errors = failure.errors()
        field = ".".join(str(part) for part in errors[0]["loc"]) if errors else "request"
        return build_error(
            ErrorCategory.VALIDATION,
            message=f"{field}: {errors[0]['msg']}" if errors else None,
            details={"field": field},
        )

    if isinstance(failure, (asyncio.TimeoutError, TimeoutError, httpx.TimeoutException)) or (
        isinstance(failure, ServiceError) and failure.timed_out
    ):
        return build_error(ErrorCategory.TIMEOUT)

    if isinstance(failure, (httpx.TransportError, ConnectionError)) or (
        isinstance(failure, ServiceError) and failure.unreachable
    ):
        return build_error(ErrorCategory.NETWORK)

    status = _upstream_status(failure)
    if status is not None:
        if status >= 500:
            return build_error(ErrorCategory.SERVICE_DOWN)
        if status == 429:
            return build_error(ErrorCategory.RATE_LIMIT)
        if status == 404:
            return build_error(ErrorCategory.NOT_FOUND)

    if isinstance(failure, (ServiceError, httpx.HTTPStatusError)):
        return build_error(_upstream_category(failure))

    return build_error(ErrorCategory.INTERNAL)
