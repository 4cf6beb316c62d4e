"""Declarative request schemas and the validator that enforces them.

``validate`` never raises for bad input: every rule violation comes back as an
``Err`` carrying a VALIDATION ``AppError`` that names the offending field.
Only a broken schema is reported as INTERNAL.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Generic, Literal, Mapping, TypeVar
from uuid import UUID

from pydantic import BaseModel, ValidationError

from advisor.config import Settings
from advisor.errors import AppError, ErrorCategory, build_error, to_app_error
from advisor.models import (
    AppCategory,
    AppListRequest,
    ChatRequest,
    EmptyRequest,
    LookupRequest,
    SearchRequest,
)
from advisor.result import Err, Ok, Result

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

RuleKind = Literal["string", "integer", "uuid", "string_list", "object"]
_KINDS = frozenset({"string", "integer", "uuid", "string_list", "object"})


@dataclass(frozen=True)
class FieldRule:
    """Constraint on a single request field.

    ``name`` is the wire name; ``target`` is the model field it populates and
    defaults to ``name``.
    """

    name: str
    kind: RuleKind = "string"
    required: bool = False
    target: str | None = None
    min_length: int | None = None
    max_length: int | None = None
    minimum: int | None = None
    maximum: int | None = None
    choices: tuple[str, ...] | None = None
    default: Any = None
    fields: tuple["FieldRule", ...] = ()


@dataclass(frozen=True)
class RequestSchema(Generic[ModelT]):
    name: str
    fields: tuple[FieldRule, ...]
    model: type[ModelT]


class _RuleViolation(Exception):
    def __init__(self, error: AppError) -> None:
        super().__init__(error.message)
        self.error = error


class SchemaDefinitionError(Exception):
    """Raised internally when a schema rule is self-contradictory."""


def _violation(message: str, **details: Any) -> _RuleViolation:
    return _RuleViolation(
        build_error(ErrorCategory.VALIDATION, message=message, details=details)
    )


def _check_rule(rule: FieldRule) -> None:
    if rule.kind not in _KINDS:
        raise SchemaDefinitionError(f"Unknown rule kind {rule.kind!r} for {rule.name}")
    for low, high in ((rule.min_length, rule.max_length), (rule.minimum, rule.maximum)):
        if low is not None and high is not None and low > high:
            raise SchemaDefinitionError(f"Empty range for {rule.name}: {low} > {high}")
    if rule.kind == "object" and not rule.fields:
        raise SchemaDefinitionError(f"Object rule {rule.name} declares no fields")


def _check_length(path: str, value: str, rule: FieldRule) -> None:
    length = len(value)
    low, high = rule.min_length, rule.max_length
    if low is not None and high is not None:
        if not low <= length <= high:
            raise _violation(
                f"{path} must be {low}-{high} characters, got {length}",
                field=path,
                length=length,
            )
    elif low is not None and length < low:
        raise _violation(
            f"{path} must be at least {low} characters, got {length}",
            field=path,
            minLength=low,
        )
    elif high is not None and length > high:
        raise _violation(
            f"{path} must be at most {high} characters, got {length}",
            field=path,
            maxLength=high,
        )


def _coerce_string(path: str, value: Any, rule: FieldRule) -> str:
    if not isinstance(value, str):
        raise _violation(f"{path} must be a string", field=path, expected="string")
    text = value.strip()
    _check_length(path, text, rule)
    if rule.choices is not None and text not in rule.choices:
        raise _violation(
            f"{path} must be one of {', '.join(rule.choices)}, got {text!r}",
            field=path,
            choices=list(rule.choices),
        )
    return text


def _coerce_integer(path: str, value: Any, rule: FieldRule) -> int:
    if isinstance(value, bool):
        raise _violation(f"{path} must be an integer", field=path, expected="integer")
    if isinstance(value, str):
        try:
            value = int(value.strip())
        except ValueError:
            raise _violation(
                f"{path} must be an integer, got {value!r}", field=path, expected="integer"
            ) from None
    if not isinstance(value, int):
        raise _violation(f"{path} must be an integer", field=path, expected="integer")

    if (rule.minimum is not None and value < rule.minimum) or (
        rule.maximum is not None and value > rule.maximum
    ):
        bounds: dict[str, Any] = {"field": path, "value": value}
        if rule.minimum is not None:
            bounds["minimum"] = rule.minimum
        if rule.maximum is not None:
            bounds["maximum"] = rule.maximum
        if rule.minimum is not None and rule.maximum is not None:
            expected = f"between {rule.minimum} and {rule.maximum}"
        elif rule.minimum is not None:
            expected = f"at least {rule.minimum}"
        else:
            expected = f"at most {rule.maximum}"
        raise _violation(f"{path} must be {expected}, got {value}", **bounds)
    return value


def _coerce_uuid(path: str, value: Any) -> UUID:
    if isinstance(value, str):
        try:
            return UUID(value.strip())
        except ValueError:
            pass
    raise _violation(f"{path} must be a well-formed UUID", field=path, expected="uuid")


def _coerce_string_list(path: str, value: Any, rule: FieldRule) -> tuple[str, ...]:
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise _violation(f"{path} must be a list of strings", field=path, expected="string[]")
    items = tuple(item.strip() for item in value)
    for index, item in enumerate(items):
        _check_length(f"{path}[{index}]", item, rule)
    return items


def _apply(
    rules: tuple[FieldRule, ...], data: Mapping[str, Any], prefix: str = ""
) -> dict[str, Any]:
    cleaned: dict[str, Any] = {}
    for rule in rules:
        _check_rule(rule)
        path = f"{prefix}{rule.name}"
        target = rule.target or rule.name
        value = data.get(rule.name)
        blank = isinstance(value, str) and not value.strip()
        # A blank required string still goes through the length check so the
        # caller learns the observed length.
        if value is None or (blank and (rule.kind != "string" or not rule.required)):
            if rule.required:
                raise _violation(f"{path} is required", field=path, required=True)
            if rule.default is not None:
                cleaned[target] = rule.default
            continue

        if rule.kind == "string":
            cleaned[target] = _coerce_string(path, value, rule)
        elif rule.kind == "integer":
            cleaned[target] = _coerce_integer(path, value, rule)
        elif rule.kind == "uuid":
            cleaned[target] = _coerce_uuid(path, value)
        elif rule.kind == "string_list":
            cleaned[target] = _coerce_string_list(path, value, rule)
        else:
            if not isinstance(value, Mapping):
                raise _violation(f"{path} must be an object", field=path, expected="object")
            cleaned[target] = _apply(rule.fields, value, prefix=f"{path}.")
    return cleaned


def validate(request: Any, schema: RequestSchema[ModelT]) -> Result[ModelT]:
    """Check ``request`` against ``schema`` and build the validated model."""

    if not isinstance(request, Mapping):
        return Err(
            build_error(
                ErrorCategory.VALIDATION,
                message="Request body must be a JSON object",
                details={"field": "body"},
            )
        )

    try:
        cleaned = _apply(schema.fields, request)
    except _RuleViolation as violation:
        return Err(violation.error)
    except SchemaDefinitionError as exc:
        logger.error("Invalid request schema", extra={"schema": schema.name, "reason": str(exc)})
        return Err(build_error(ErrorCategory.INTERNAL))

    try:
        return Ok(schema.model.model_validate(cleaned))
    except ValidationError as exc:
        return Err(to_app_error(exc))


def chat_schema(settings: Settings) -> RequestSchema[ChatRequest]:
    return RequestSchema(
        name="chat",
        model=ChatRequest,
        fields=(
            FieldRule(
                "message",
                required=True,
                min_length=1,
                max_length=settings.max_message_length,
            ),
            FieldRule("sessionId", kind="uuid", target="session_id"),
            FieldRule(
                "context",
                kind="object",
                fields=(
                    FieldRule(
                        "selectedDatasets",
                        kind="string_list",
                        target="selected_datasets",
                        min_length=1,
                    ),
                    FieldRule(
                        "previousRecommendations",
                        kind="string_list",
                        target="previous_recommendations",
                        min_length=1,
                    ),
                    FieldRule("currentMapId", target="current_map_id", min_length=1),
                ),
            ),
        ),
    )


def search_schema(settings: Settings) -> RequestSchema[SearchRequest]:
    return RequestSchema(
        name="search",
        model=SearchRequest,
        fields=(
            FieldRule("q", required=True, min_length=settings.min_query_length),
            FieldRule("category", min_length=1),
            FieldRule(
                "limit",
                kind="integer",
                minimum=1,
                maximum=settings.max_search_limit,
                default=settings.default_search_limit,
            ),
            FieldRule("offset", kind="integer", minimum=0, default=0),
            FieldRule(
                "sortBy",
                target="sort_by",
                choices=("relevance", "title", "modified"),
                default="relevance",
            ),
        ),
    )


def lookup_schema(name: str) -> RequestSchema[LookupRequest]:
    return RequestSchema(
        name=name,
        model=LookupRequest,
        fields=(FieldRule("id", required=True, min_length=1, max_length=200),),
    )


APP_LIST_SCHEMA: RequestSchema[AppListRequest] = RequestSchema(
    name="apps",
    model=AppListRequest,
    fields=(
        FieldRule("category", choices=tuple(category.value for category in AppCategory)),
    ),
)

EMPTY_SCHEMA: RequestSchema[EmptyRequest] = RequestSchema(
    name="empty", model=EmptyRequest, fields=()
)
