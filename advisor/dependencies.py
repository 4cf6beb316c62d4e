"""Dependency providers for the FastAPI application."""

from fastapi import Depends
from starlette.requests import HTTPConnection

from advisor.catalog import APP_TEMPLATES
from advisor.config import Settings, get_settings
from advisor.handlers import (
    AppCatalogHandler,
    AppLookupHandler,
    CategoriesHandler,
    ChatHandler,
    DatasetLookupHandler,
    SearchHandler,
)
from advisor.models import (
    AppListing,
    AppListRequest,
    AppTemplate,
    CategoryListing,
    ChatReply,
    ChatRequest,
    Dataset,
    EmptyRequest,
    LookupRequest,
    SearchRequest,
    SearchResults,
)
from advisor.pipeline import RequestPipeline
from advisor.services import Providers
from advisor.services.completion import CompletionProvider
from advisor.services.datasets import DatasetProvider
from advisor.telemetry import TelemetrySink
from advisor.validation import (
    APP_LIST_SCHEMA,
    EMPTY_SCHEMA,
    chat_schema,
    lookup_schema,
    search_schema,
)


async def get_providers(connection: HTTPConnection) -> Providers:
    """Retrieve the providers chosen at startup from application state."""

    return connection.app.state.providers  # type: ignore[no-any-return]


async def get_telemetry(connection: HTTPConnection) -> TelemetrySink:
    return connection.app.state.telemetry  # type: ignore[no-any-return]


async def get_completion_provider(
    providers: Providers = Depends(get_providers),
) -> CompletionProvider:
    return providers.completion


async def get_dataset_provider(
    providers: Providers = Depends(get_providers),
) -> DatasetProvider:
    return providers.datasets


async def get_fallback_dataset_provider(
    providers: Providers = Depends(get_providers),
) -> DatasetProvider | None:
    return providers.fallback_datasets


async def get_chat_pipeline(
    completion: CompletionProvider = Depends(get_completion_provider),
    telemetry: TelemetrySink = Depends(get_telemetry),
    settings: Settings = Depends(get_settings),
) -> RequestPipeline[ChatRequest, ChatReply]:
    """Dependency provider for the chat pipeline."""

    return RequestPipeline(
        "chat",
        chat_schema(settings),
        ChatHandler(completion, APP_TEMPLATES, settings),
        telemetry,
    )


async def get_search_pipeline(
    datasets: DatasetProvider = Depends(get_dataset_provider),
    fallback: DatasetProvider | None = Depends(get_fallback_dataset_provider),
    telemetry: TelemetrySink = Depends(get_telemetry),
    settings: Settings = Depends(get_settings),
) -> RequestPipeline[SearchRequest, SearchResults]:
    """Dependency provider for the dataset search pipeline."""

    return RequestPipeline(
        "search",
        search_schema(settings),
        SearchHandler(datasets, settings, fallback=fallback),
        telemetry,
    )


async def get_dataset_pipeline(
    datasets: DatasetProvider = Depends(get_dataset_provider),
    telemetry: TelemetrySink = Depends(get_telemetry),
    settings: Settings = Depends(get_settings),
) -> RequestPipeline[LookupRequest, Dataset]:
    return RequestPipeline(
        "dataset",
        lookup_schema("dataset"),
        DatasetLookupHandler(datasets, settings),
        telemetry,
    )


async def get_categories_pipeline(
    datasets: DatasetProvider = Depends(get_dataset_provider),
    telemetry: TelemetrySink = Depends(get_telemetry),
    settings: Settings = Depends(get_settings),
) -> RequestPipeline[EmptyRequest, CategoryListing]:
    return RequestPipeline(
        "categories", EMPTY_SCHEMA, CategoriesHandler(datasets, settings), telemetry
    )


async def get_apps_pipeline(
    telemetry: TelemetrySink = Depends(get_telemetry),
) -> RequestPipeline[AppListRequest, AppListing]:
    return RequestPipeline("apps", APP_LIST_SCHEMA, AppCatalogHandler(APP_TEMPLATES), telemetry)


async def get_app_pipeline(
    telemetry: TelemetrySink = Depends(get_telemetry),
) -> RequestPipeline[LookupRequest, AppTemplate]:
    return RequestPipeline(
        "app", lookup_schema("app"), AppLookupHandler(APP_TEMPLATES), telemetry
    )
