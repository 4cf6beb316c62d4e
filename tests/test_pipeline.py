import asyncio

import pytest

from advisor.catalog import APP_TEMPLATES, DATASETS
from advisor.config import Settings
from advisor.envelope import FailureEnvelope, SuccessEnvelope
from advisor.errors import ErrorCategory, build_error
from advisor.handlers import ChatHandler, SearchHandler
from advisor.pipeline import RequestPipeline
from advisor.result import Err, Ok
from advisor.services.completion import StaticCompletionProvider
from advisor.services.datasets import StaticDatasetProvider
from advisor.validation import chat_schema, search_schema


class CountingHandler:
    def __init__(self, outcome=None, exc: BaseException | None = None) -> None:
        self.calls = 0
        self._outcome = outcome
        self._exc = exc

    async def handle(self, request):
        self.calls += 1
        if self._exc is not None:
            raise self._exc
        return self._outcome


class BrokenTelemetry:
    def record(self, event, properties) -> None:
        raise RuntimeError("sink offline")


@pytest.mark.asyncio
async def test_short_query_never_reaches_handler(settings: Settings, telemetry) -> None:
    handler = CountingHandler()
    pipeline = RequestPipeline("search", search_schema(settings), handler, telemetry)

    envelope = await pipeline.run({"q": "po"})

    assert isinstance(envelope, FailureEnvelope)
    assert envelope.error.category is ErrorCategory.VALIDATION
    assert envelope.error.details == {"field": "q", "minLength": 3}
    assert handler.calls == 0
    assert telemetry.events[0][0] == "search.failed"
    assert telemetry.events[0][1]["category"] == "validation"


@pytest.mark.asyncio
async def test_success_envelope(settings: Settings, telemetry) -> None:
    pipeline = RequestPipeline(
        "search",
        search_schema(settings),
        SearchHandler(StaticDatasetProvider(DATASETS), settings),
        telemetry,
    )

    envelope = await pipeline.run({"q": "census"})

    assert isinstance(envelope, SuccessEnvelope)
    assert envelope.data.total >= 1
    assert envelope.timestamp.endswith("+00:00")
    assert [name for name, _ in telemetry.events] == ["search.succeeded"]


@pytest.mark.asyncio
async def test_handler_err_becomes_failure_envelope(settings: Settings) -> None:
    handler = CountingHandler(outcome=Err(build_error(ErrorCategory.SERVICE_DOWN)))
    pipeline = RequestPipeline("search", search_schema(settings), handler)

    envelope = await pipeline.run({"q": "census"})

    assert isinstance(envelope, FailureEnvelope)
    assert envelope.error.category is ErrorCategory.SERVICE_DOWN
    assert handler.calls == 1


@pytest.mark.asyncio
async def test_unexpected_exception_is_internal(settings: Settings) -> None:
    handler = CountingHandler(exc=ZeroDivisionError("boom"))
    pipeline = RequestPipeline("chat", chat_schema(settings), handler)

    envelope = await pipeline.run({"message": "hello"})

    assert isinstance(envelope, FailureEnvelope)
    assert envelope.error.category is ErrorCategory.INTERNAL
    assert envelope.error.dismissable is False
    assert envelope.request_id


@pytest.mark.asyncio
async def test_cancellation_propagates(settings: Settings) -> None:
    handler = CountingHandler(exc=asyncio.CancelledError())
    pipeline = RequestPipeline("chat", chat_schema(settings), handler)

    with pytest.raises(asyncio.CancelledError):
        await pipeline.run({"message": "hello"})


@pytest.mark.asyncio
async def test_failures_get_unique_request_ids(settings: Settings) -> None:
    pipeline = RequestPipeline("chat", chat_schema(settings), CountingHandler())

    first = await pipeline.run({"message": ""})
    second = await pipeline.run({"message": ""})

    assert first.request_id != second.request_id
    assert len(first.error.suggestions) >= 1


@pytest.mark.asyncio
async def test_telemetry_failure_does_not_reach_caller(settings: Settings) -> None:
    pipeline = RequestPipeline(
        "chat",
        chat_schema(settings),
        ChatHandler(StaticCompletionProvider(), APP_TEMPLATES, settings),
        BrokenTelemetry(),
    )

    envelope = await pipeline.run({"message": "build a dashboard"})

    assert isinstance(envelope, SuccessEnvelope)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "message",
    ["a", "map", "build a dashboard to monitor crews", "x" * 500, "tell a story with imagery"],
)
async def test_valid_chat_requests_yield_ranked_success(settings: Settings, message: str) -> None:
    pipeline = RequestPipeline(
        "chat",
        chat_schema(settings),
        ChatHandler(StaticCompletionProvider(), APP_TEMPLATES, settings),
    )

    envelope = await pipeline.run({"message": message})

    assert isinstance(envelope, SuccessEnvelope)
    assert envelope.data.content
    scores = [rec.score for rec in envelope.data.recommendations]
    assert all(0.0 <= s <= 1.0 for s in scores)
    assert scores == sorted(scores, reverse=True)


class CapturingHandler:
    def __init__(self) -> None:
        self.seen = []

    async def handle(self, request):
        self.seen.append(request)
        return Ok(request)


@pytest.mark.asyncio
async def test_pipeline_passes_validated_model(settings: Settings) -> None:
    handler = CapturingHandler()
    pipeline = RequestPipeline("search", search_schema(settings), handler)

    envelope = await pipeline.run({"q": " census ", "limit": "3"})

    assert isinstance(envelope, SuccessEnvelope)
    assert handler.seen[0].q == "census"
    assert handler.seen[0].limit == 3
