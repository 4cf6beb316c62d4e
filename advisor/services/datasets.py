"""Dataset catalog providers: static fixtures and the ArcGIS portal REST API."""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Mapping, Protocol, Sequence

import httpx
from pydantic import ValidationError

from advisor.config import Settings
from advisor.exceptions import CatalogServiceError
from advisor.models import Dataset, DatasetExtent, DatasetType, SortOrder

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DatasetFilters:
    category: str | None = None


@dataclass(frozen=True)
class DatasetPage:
    """One window of search results plus the size of the full match set."""

    results: tuple[Dataset, ...]
    total: int
    categories: tuple[tuple[str, int], ...] = ()


class DatasetProvider(Protocol):
    async def search(
        self,
        query: str,
        filters: DatasetFilters,
        *,
        offset: int,
        limit: int,
        sort_by: SortOrder = "relevance",
    ) -> DatasetPage:
        """Return the ``[offset, offset + limit)`` window of matches, ordered by ``sort_by``."""
        ...

    async def get(self, dataset_id: str) -> Dataset | None:
        """Return one record, or ``None`` when it does not exist."""
        ...

    async def all(self) -> list[Dataset]:
        """Return the records used for category facets."""
        ...


def matches_query(dataset: Dataset, query: str) -> bool:
    """Case-insensitive substring match over title, description and tags."""

    needle = query.lower()
    return (
        needle in dataset.title.lower()
        or needle in dataset.description.lower()
        or any(needle in tag.lower() for tag in dataset.tags)
    )


def matches_category(dataset: Dataset, category: str | None) -> bool:
    if category is None:
        return True
    wanted = category.lower()
    return any(c.lower() == wanted for c in dataset.categories)


def _relevance_rank(dataset: Dataset, query: str) -> int:
    needle = query.lower()
    if needle in dataset.title.lower():
        return 0
    if any(needle in tag.lower() for tag in dataset.tags):
        return 1
    return 2


def sort_datasets(datasets: Sequence[Dataset], query: str, sort_by: str) -> list[Dataset]:
    if sort_by == "title":
        return sorted(datasets, key=lambda d: d.title.lower())
    if sort_by == "modified":
        return sorted(datasets, key=lambda d: d.modified, reverse=True)
    return sorted(datasets, key=lambda d: _relevance_rank(d, query))


def category_counts(datasets: Sequence[Dataset]) -> list[tuple[str, int]]:
    counts = Counter(category for dataset in datasets for category in dataset.categories)
    return sorted(counts.items(), key=lambda item: (-item[1], item[0]))


class StaticDatasetProvider:
    """Search an in-memory, read-only tuple of datasets."""

    def __init__(self, datasets: Sequence[Dataset]) -> None:
        self._datasets = tuple(datasets)
        self._by_id = {dataset.id: dataset for dataset in self._datasets}

    async def search(
        self,
        query: str,
        filters: DatasetFilters,
        *,
        offset: int,
        limit: int,
        sort_by: SortOrder = "relevance",
    ) -> DatasetPage:
        matches = [
            dataset
            for dataset in self._datasets
            if matches_query(dataset, query) and matches_category(dataset, filters.category)
        ]
        ordered = sort_datasets(matches, query, sort_by)
        return DatasetPage(
            results=tuple(ordered[offset : offset + limit]),
            total=len(ordered),
            categories=tuple(category_counts(ordered)),
        )

    async def get(self, dataset_id: str) -> Dataset | None:
        return self._by_id.get(dataset_id)

    async def all(self) -> list[Dataset]:
        return list(self._datasets)


# ArcGIS item types mapped onto the dataset layer kinds we expose.
_ITEM_TYPES: Mapping[str, DatasetType] = {
    "Feature Service": "feature-layer",
    "Image Service": "image-layer",
    "Map Service": "tile-layer",
    "Vector Tile Service": "vector-tile-layer",
}
# Facet names that sit below a parent in the Living Atlas category tree.
_CATEGORY_PARENTS: Mapping[str, str] = {
    "demographics": "People",
    "natural hazards": "Environment",
    "land cover": "Environment",
}
# Portal sort parameters; relevance is the portal's default order.
_SORT_PARAMS: Mapping[str, Mapping[str, str]] = {
    "title": {"sortField": "title", "sortOrder": "asc"},
    "modified": {"sortField": "modified", "sortOrder": "desc"},
}
_LIVING_ATLAS_FILTER = 'owner:esri OR owner:esri_livingatlas OR owner:esri_demographics'
_SEARCH_PAGE_SIZE = 100


def category_path(category: str) -> str:
    """Full portal category path for a facet name, e.g. ``/Categories/People/Demographics``."""

    name = category.strip().title()
    parent = _CATEGORY_PARENTS.get(name.lower())
    if parent is None:
        return f"/Categories/{name}"
    return f"/Categories/{parent}/{name}"


class ArcGISDatasetProvider:
    """Query the ArcGIS Online portal for Living Atlas items."""

    def __init__(self, client: httpx.AsyncClient, settings: Settings) -> None:
        self._client = client
        self._settings = settings

    async def search(
        self,
        query: str,
        filters: DatasetFilters,
        *,
        offset: int,
        limit: int,
        sort_by: SortOrder = "relevance",
    ) -> DatasetPage:
        # The portal pages with a 1-based ``start`` and caps ``num`` at 100.
        params: dict[str, Any] = {
            "q": f"{query} AND ({_LIVING_ATLAS_FILTER})",
            "start": offset + 1,
            "num": min(limit, _SEARCH_PAGE_SIZE),
            "f": "json",
            **_SORT_PARAMS.get(sort_by, {}),
        }
        if filters.category:
            params["categories"] = category_path(filters.category)
        data = await self._request(self._settings.arcgis_search_url, params)
        datasets = self._to_datasets(data.get("results"))

        total = data.get("total")
        if isinstance(total, bool) or not isinstance(total, int):
            total = offset + len(datasets)
        return DatasetPage(
            results=tuple(datasets),
            total=total,
            categories=tuple(category_counts(datasets)),
        )

    async def get(self, dataset_id: str) -> Dataset | None:
        url = f"{self._settings.arcgis_item_url.rstrip('/')}/{dataset_id}"
        try:
            data = await self._request(url, {"f": "json"})
        except CatalogServiceError as exc:
            if exc.status_code in (400, 404):
                return None
            raise
        return self._to_dataset(data)

    async def all(self) -> list[Dataset]:
        data = await self._request(
            self._settings.arcgis_search_url,
            {"q": _LIVING_ATLAS_FILTER, "num": _SEARCH_PAGE_SIZE, "f": "json"},
        )
        return self._to_datasets(data.get("results"))

    async def _request(self, url: str, params: Mapping[str, Any]) -> dict[str, Any]:
        try:
            response = await self._client.get(
                url, params=dict(params), timeout=self._settings.upstream_timeout
            )
            response.raise_for_status()
        except httpx.TimeoutException as exc:
            logger.warning("Living Atlas request timed out", exc_info=exc)
            raise CatalogServiceError("Living Atlas timed out", timed_out=True) from exc
        except httpx.HTTPStatusError as exc:
            logger.error(
                "Living Atlas request failed",
                extra={
                    "status_code": exc.response.status_code,
                    "response_text": exc.response.text,
                },
            )
            raise CatalogServiceError(
                "Living Atlas returned an error",
                status_code=exc.response.status_code,
            ) from exc
        except httpx.TransportError as exc:
            logger.warning("Living Atlas unreachable", exc_info=exc)
            raise CatalogServiceError("Living Atlas unreachable", unreachable=True) from exc
        except httpx.HTTPError as exc:
            logger.exception("Unexpected Living Atlas HTTP error")
            raise CatalogServiceError("Living Atlas request failed") from exc

        try:
            data = response.json()
        except ValueError as exc:
            logger.error("Living Atlas response is not JSON", extra={"response_text": response.text})
            raise CatalogServiceError("Invalid Living Atlas payload") from exc

        if not isinstance(data, dict):
            raise CatalogServiceError("Invalid Living Atlas payload")

        # The portal reports many failures as HTTP 200 with an error body.
        error = data.get("error")
        if isinstance(error, dict):
            logger.error("Living Atlas reported an error", extra={"portal_error": error})
            code = error.get("code")
            raise CatalogServiceError(
                error.get("message") or "Living Atlas returned an error",
                status_code=code if isinstance(code, int) else None,
            )
        return data


    def _to_datasets(self, items: Any) -> list[Dataset]:
        if items is None:
            return []
        if not isinstance(items, list):
            logger.error("Living Atlas results are not a list", extra={"raw_response": items})
            raise CatalogServiceError("Invalid Living Atlas payload")
        return [d for d in (self._to_dataset(item) for item in items) if d is not None]

    def _to_dataset(self, item: Any) -> Dataset | None:
        if not isinstance(item, Mapping):
            logger.warning("Skipping non-object Living Atlas item")
            return None

        try:
            layer_type = _ITEM_TYPES.get(item.get("type", ""))
            if layer_type is None:
                return None
            extent = item.get("extent") or [[-180, -90], [180, 90]]
            (xmin, ymin), (xmax, ymax) = extent
            return Dataset(
                id=item["id"],
                title=item.get("title") or item["id"],
                description=item.get("snippet") or item.get("description") or "",
                url=item.get("url") or "",
                type=layer_type,
                thumbnail_url=self._thumbnail_url(item["id"], item.get("thumbnail")),
                categories=tuple(
                    c.rsplit("/", 1)[-1] for c in (item.get("categories") or [])
                ),
                tags=tuple(item.get("tags") or ()),
                extent=DatasetExtent(xmin=xmin, ymin=ymin, xmax=xmax, ymax=ymax),
                owner=item.get("owner") or "",
                created=_from_epoch_ms(item.get("created")),
                modified=_from_epoch_ms(item.get("modified")),
            )
        except (AttributeError, KeyError, TypeError, ValueError, ValidationError):
            logger.warning(
                "Skipping malformed Living Atlas item", extra={"item_id": repr(item.get("id"))}
            )
            return None

    def _thumbnail_url(self, item_id: str, thumbnail: Any) -> str:
        """Resolve the portal's relative ``thumbnail/x.png`` to the item info URL."""

        if not isinstance(thumbnail, str) or not thumbnail:
            return ""
        if thumbnail.startswith(("http://", "https://")):
            return thumbnail
        return f"{self._settings.arcgis_item_url.rstrip('/')}/{item_id}/info/{thumbnail}"


def _from_epoch_ms(value: Any) -> datetime:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return datetime.fromtimestamp(0, tz=timezone.utc)
    return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
