from uuid import UUID

import pytest

from advisor.config import Settings
from advisor.errors import ErrorCategory, Severity
from advisor.models import ChatRequest, SearchRequest
from advisor.result import Err, Ok
from advisor.validation import (
    APP_LIST_SCHEMA,
    FieldRule,
    RequestSchema,
    chat_schema,
    search_schema,
    validate,
)

SESSION = "7d5c5f2e-4b8a-4c4e-9b1a-2f0e8c3d6a11"


def test_valid_chat_request(settings: Settings) -> None:
    result = validate(
        {
            "message": "  I want to tell a story about my city  ",
            "sessionId": SESSION,
            "context": {"selectedDatasets": ["world-imagery"]},
        },
        chat_schema(settings),
    )

    assert isinstance(result, Ok)
    request = result.value
    assert isinstance(request, ChatRequest)
    assert request.message == "I want to tell a story about my city"
    assert request.session_id == UUID(SESSION)
    assert request.context.selected_datasets == ("world-imagery",)


def test_empty_message_reports_length(settings: Settings) -> None:
    result = validate({"message": ""}, chat_schema(settings))

    assert isinstance(result, Err)
    error = result.error
    assert error.category is ErrorCategory.VALIDATION
    assert error.severity is Severity.WARNING
    assert error.code == "VALIDATION_ERROR"
    assert error.details == {"field": "message", "length": 0}
    assert error.message == "message must be 1-500 characters, got 0"


def test_oversized_message(settings: Settings) -> None:
    result = validate({"message": "a" * 501}, chat_schema(settings))

    assert isinstance(result, Err)
    assert result.error.details == {"field": "message", "length": 501}


def test_message_at_upper_bound_is_accepted(settings: Settings) -> None:
    assert isinstance(validate({"message": "a" * 500}, chat_schema(settings)), Ok)


def test_missing_message_is_required(settings: Settings) -> None:
    result = validate({}, chat_schema(settings))

    assert isinstance(result, Err)
    assert result.error.details == {"field": "message", "required": True}


def test_malformed_session_id(settings: Settings) -> None:
    result = validate({"message": "hi", "sessionId": "not-a-uuid"}, chat_schema(settings))

    assert isinstance(result, Err)
    assert result.error.details["field"] == "sessionId"


def test_nested_context_type_errors_name_the_path(settings: Settings) -> None:
    result = validate(
        {"message": "hi", "context": {"selectedDatasets": "world-imagery"}},
        chat_schema(settings),
    )

    assert isinstance(result, Err)
    assert result.error.details["field"] == "context.selectedDatasets"


@pytest.mark.parametrize("body", [None, "hello", ["message"], 42])
def test_non_object_body(body, settings: Settings) -> None:
    result = validate(body, chat_schema(settings))

    assert isinstance(result, Err)
    assert result.error.details == {"field": "body"}


def test_short_query(settings: Settings) -> None:
    result = validate({"q": "po"}, search_schema(settings))

    assert isinstance(result, Err)
    assert result.error.category is ErrorCategory.VALIDATION
    assert result.error.details == {"field": "q", "minLength": 3}


def test_search_defaults(settings: Settings) -> None:
    result = validate({"q": "census"}, search_schema(settings))

    assert isinstance(result, Ok)
    request = result.value
    assert isinstance(request, SearchRequest)
    assert request.limit == 20
    assert request.offset == 0
    assert request.sort_by == "relevance"
    assert request.category is None


def test_query_string_integers_are_coerced(settings: Settings) -> None:
    result = validate(
        {"q": "census", "limit": "5", "offset": "10", "sortBy": "title", "category": ""},
        search_schema(settings),
    )

    assert isinstance(result, Ok)
    assert (result.value.limit, result.value.offset, result.value.sort_by) == (5, 10, "title")
    assert result.value.category is None


@pytest.mark.parametrize(
    ("params", "expected"),
    [
        ({"limit": "0"}, {"field": "limit", "value": 0, "minimum": 1, "maximum": 100}),
        ({"limit": "101"}, {"field": "limit", "value": 101, "minimum": 1, "maximum": 100}),
        ({"limit": "ten"}, {"field": "limit", "expected": "integer"}),
        ({"offset": "-1"}, {"field": "offset", "value": -1, "minimum": 0}),
    ],
)
def test_pagination_bounds(params, expected, settings: Settings) -> None:
    result = validate({"q": "census", **params}, search_schema(settings))

    assert isinstance(result, Err)
    assert result.error.details == expected


def test_unknown_sort_order(settings: Settings) -> None:
    result = validate({"q": "census", "sortBy": "popularity"}, search_schema(settings))

    assert isinstance(result, Err)
    assert result.error.details["field"] == "sortBy"


def test_app_category_choices() -> None:
    assert isinstance(validate({"category": "dashboards"}, APP_LIST_SCHEMA), Ok)
    assert isinstance(validate({"category": "spreadsheets"}, APP_LIST_SCHEMA), Err)


def test_broken_schema_is_internal() -> None:
    schema = RequestSchema(
        name="broken",
        model=SearchRequest,
        fields=(FieldRule("q", min_length=10, max_length=3),),
    )

    result = validate({"q": "census"}, schema)

    assert isinstance(result, Err)
    assert result.error.category is ErrorCategory.INTERNAL


def test_validate_is_pure(settings: Settings) -> None:
    body = {"message": "  share a map  "}
    schema = chat_schema(settings)

    first = validate(body, schema)
    second = validate(body, schema)

    assert body == {"message": "  share a map  "}
    assert first == second
