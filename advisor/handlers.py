"""Business operations behind each endpoint.

Handlers receive an already validated request and return a ``Result``. Known
downstream failures are converted to ``Err`` here; anything else propagates
to the pipeline boundary.
"""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from datetime import datetime, timezone
from typing import Awaitable, Protocol, Sequence, TypeVar

from advisor.config import Settings
from advisor.errors import ErrorCategory, Severity, build_error, to_app_error
from advisor.exceptions import ServiceError
from advisor.models import (
    AppListing,
    AppListRequest,
    AppTemplate,
    CategoryCount,
    CategoryEntry,
    CategoryListing,
    ChatMetadata,
    ChatReply,
    ChatRequest,
    Dataset,
    EmptyRequest,
    LookupRequest,
    Recommendation,
    SearchMetadata,
    SearchRequest,
    SearchResults,
    SuggestedAction,
)
from advisor.result import Err, Ok, Result
from advisor.scoring import rank_apps, tokenize
from advisor.services.completion import (
    CompletionContext,
    CompletionProvider,
    build_user_prompt,
)
from advisor.services.datasets import (
    DatasetFilters,
    DatasetPage,
    DatasetProvider,
    category_counts,
)

logger = logging.getLogger(__name__)

RequestT = TypeVar("RequestT", contravariant=True)
PayloadT = TypeVar("PayloadT", covariant=True)
T = TypeVar("T")

# Failures a downstream call is expected to produce; anything else is a bug.
DOWNSTREAM_FAILURES = (asyncio.TimeoutError, ServiceError)


class Handler(Protocol[RequestT, PayloadT]):
    async def handle(self, request: RequestT) -> Result[PayloadT]:
        ...


async def bounded(awaitable: Awaitable[T], timeout: float) -> T:
    """Await a downstream call, abandoning it after ``timeout`` seconds."""

    return await asyncio.wait_for(awaitable, timeout=timeout)


class ChatHandler:
    """Rank the app catalog for a message and ask the assistant to explain it."""

    def __init__(
        self,
        completion: CompletionProvider,
        catalog: Sequence[AppTemplate],
        settings: Settings,
    ) -> None:
        self._completion = completion
        self._catalog = catalog
        self._settings = settings

    async def handle(self, request: ChatRequest) -> Result[ChatReply]:
        started = time.perf_counter()
        recommendations = rank_apps(
            request.message, self._catalog, limit=self._settings.max_recommendations
        )
        context = CompletionContext(
            message=request.message,
            recommendations=tuple(recommendations),
            selected_datasets=request.context.selected_datasets,
            previous_recommendations=request.context.previous_recommendations,
        )

        try:
            completion = await bounded(
                self._completion.complete(build_user_prompt(context), context),
                self._settings.upstream_timeout,
            )
        except DOWNSTREAM_FAILURES as exc:
            logger.warning(
                "Completion failed",
                extra={"session_id": str(request.session_id), "failure": type(exc).__name__},
            )
            return Err(to_app_error(exc))

        latency_ms = int((time.perf_counter() - started) * 1000)
        return Ok(
            ChatReply(
                message_id=f"msg_{uuid.uuid4().hex}",
                content=completion.text,
                timestamp=datetime.now(timezone.utc),
                recommendations=tuple(recommendations),
                suggested_actions=suggest_actions(request, recommendations),
                metadata=ChatMetadata(
                    tokens_used=completion.tokens_used,
                    latency=latency_ms,
                    model=completion.model,
                ),
            )
        )


def suggest_actions(
    request: ChatRequest, recommendations: Sequence[Recommendation]
) -> tuple[SuggestedAction, ...] | None:
    actions: list[SuggestedAction] = []
    if recommendations:
        top = recommendations[0].app
        actions.append(
            SuggestedAction(
                type="configure-app",
                label=f"Configure {top.name}",
                description=f"Preview {top.name} with your data",
                params={"appId": top.id, "templateId": top.template_id},
            )
        )

    if not request.context.selected_datasets:
        query = " ".join(tokenize(request.message)[:3])
        if len(query) >= 3:
            actions.append(
                SuggestedAction(
                    type="search-datasets",
                    label="Find datasets",
                    description="Search Living Atlas for data to put on your map",
                    query=query,
                )
            )
    elif recommendations:
        actions.append(
            SuggestedAction(
                type="create-map",
                label="Create web map",
                description="Set up a web map with your selected datasets",
                params={"datasets": list(request.context.selected_datasets)},
            )
        )
    return tuple(actions) or None


class SearchHandler:
    """Filter, sort and paginate Living Atlas datasets."""

    def __init__(
        self,
        datasets: DatasetProvider,
        settings: Settings,
        fallback: DatasetProvider | None = None,
    ) -> None:
        self._datasets = datasets
        self._settings = settings
        self._fallback = fallback

    async def handle(self, request: SearchRequest) -> Result[SearchResults]:
        metadata: SearchMetadata | None = None
        try:
            page = await self._search(self._datasets, request)
        except DOWNSTREAM_FAILURES as exc:
            error = to_app_error(exc)
            if self._fallback is None or not error.retryable:
                return Err(error)
            logger.warning(
                "Serving search from fallback catalog",
                extra={"query": request.q, "category": error.category.value},
            )
            try:
                page = await self._search(self._fallback, request)
            except DOWNSTREAM_FAILURES as fallback_exc:
                logger.warning(
                    "Fallback catalog failed",
                    extra={"query": request.q, "failure": type(fallback_exc).__name__},
                )
                return Err(error)
            metadata = SearchMetadata(
                degraded=True,
                warning=build_error(
                    error.category,
                    severity=Severity.INFO,
                    title="Showing saved results",
                    message=(
                        "The live Living Atlas catalog is unavailable, so these "
                        "results come from a saved copy and may be out of date."
                    ),
                ),
            )

        return Ok(
            SearchResults(
                query=request.q,
                total=page.total,
                count=len(page.results),
                offset=request.offset,
                results=page.results,
                categories=tuple(
                    CategoryCount(category=name, count=count) for name, count in page.categories
                ),
                metadata=metadata,
            )
        )

    async def _search(self, provider: DatasetProvider, request: SearchRequest) -> DatasetPage:
        return await bounded(
            provider.search(
                request.q,
                DatasetFilters(category=request.category),
                offset=request.offset,
                limit=request.limit,
                sort_by=request.sort_by,
            ),
            self._settings.upstream_timeout,
        )


class DatasetLookupHandler:
    def __init__(self, datasets: DatasetProvider, settings: Settings) -> None:
        self._datasets = datasets
        self._settings = settings

    async def handle(self, request: LookupRequest) -> Result[Dataset]:
        try:
            dataset = await bounded(
                self._datasets.get(request.id), self._settings.upstream_timeout
            )
        except DOWNSTREAM_FAILURES as exc:
            return Err(to_app_error(exc))

        if dataset is None:
            return Err(
                build_error(
                    ErrorCategory.NOT_FOUND,
                    message=f"No dataset with id {request.id!r} was found.",
                    details={"field": "id", "value": request.id},
                    suggestions=("Search Living Atlas for datasets by keyword.",),
                )
            )
        return Ok(dataset)


class CategoriesHandler:
    def __init__(self, datasets: DatasetProvider, settings: Settings) -> None:
        self._datasets = datasets
        self._settings = settings

    async def handle(self, request: EmptyRequest) -> Result[CategoryListing]:
        try:
            datasets = await bounded(self._datasets.all(), self._settings.upstream_timeout)
        except DOWNSTREAM_FAILURES as exc:
            return Err(to_app_error(exc))

        return Ok(
            CategoryListing(
                categories=tuple(
                    CategoryEntry(id=name.lower().replace(" ", "-"), name=name, count=count)
                    for name, count in category_counts(datasets)
                )
            )
        )


class AppCatalogHandler:
    def __init__(self, catalog: Sequence[AppTemplate]) -> None:
        self._catalog = catalog

    async def handle(self, request: AppListRequest) -> Result[AppListing]:
        apps = tuple(
            app
            for app in self._catalog
            if request.category is None or app.category is request.category
        )
        return Ok(AppListing(total=len(apps), apps=apps))


class AppLookupHandler:
    def __init__(self, catalog: Sequence[AppTemplate]) -> None:
        self._by_id = {app.id: app for app in catalog}

    async def handle(self, request: LookupRequest) -> Result[AppTemplate]:
        app = self._by_id.get(request.id)
        if app is None:
            return Err(
                build_error(
                    ErrorCategory.NOT_FOUND,
                    message=f"No app template with id {request.id!r} was found.",
                    details={"field": "id", "value": request.id},
                    suggestions=("Browse the full app catalog.",),
                )
            )
        return Ok(app)
