"""Downstream providers and their startup-time selection."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

from advisor.catalog import DATASETS
from advisor.config import Settings
from advisor.services.completion import (
    CompletionProvider,
    OpenAICompletionProvider,
    StaticCompletionProvider,
)
from advisor.services.datasets import (
    ArcGISDatasetProvider,
    DatasetProvider,
    StaticDatasetProvider,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Providers:
    completion: CompletionProvider
    datasets: DatasetProvider
    fallback_datasets: DatasetProvider | None = None


def build_providers(settings: Settings, client: httpx.AsyncClient) -> Providers:
    """Pick static or live providers once, at application startup."""

    if settings.provider_mode == "static":
        logger.info("Using static providers")
        return Providers(
            completion=StaticCompletionProvider(),
            datasets=StaticDatasetProvider(DATASETS),
        )

    if not settings.openai_api_key:
        raise ValueError("OPENAI_API_KEY is required when PROVIDER_MODE=live")

    logger.info(
        "Using live providers",
        extra={"chat_model": settings.chat_model, "fallback": settings.search_fallback_enabled},
    )
    return Providers(
        completion=OpenAICompletionProvider(client, settings),
        datasets=ArcGISDatasetProvider(client, settings),
        fallback_datasets=(
            StaticDatasetProvider(DATASETS) if settings.search_fallback_enabled else None
        ),
    )
