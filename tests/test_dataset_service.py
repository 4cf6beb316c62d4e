import httpx
import pytest

from advisor.catalog import DATASETS
from advisor.config import Settings
from advisor.errors import ErrorCategory, to_app_error
from advisor.exceptions import CatalogServiceError
from advisor.handlers import SearchHandler
from advisor.models import SearchRequest
from advisor.result import Ok
from advisor.services.datasets import (
    ArcGISDatasetProvider,
    DatasetFilters,
    StaticDatasetProvider,
    category_path,
)

CENSUS_ITEM = {
    "id": "8d2647eb6e334ef4b4f74010dc2c18c0",
    "title": "USA Census Tract Boundaries",
    "snippet": "Census tract boundaries for the United States.",
    "type": "Feature Service",
    "url": "https://services.arcgis.com/example/FeatureServer/0",
    "thumbnail": "thumbnail/census.png",
    "categories": ["/Categories/People/Demographics"],
    "tags": ["census", "demographics"],
    "extent": [[-179.1, 18.9], [-66.9, 71.3]],
    "owner": "esri_demographics",
    "created": 1623283200000,
    "modified": 1728950400000,
}


@pytest.fixture
def live_settings() -> Settings:
    return Settings(PROVIDER_MODE="live", OPENAI_API_KEY="test-key")


@pytest.mark.asyncio
async def test_arcgis_search_parses_items(live_settings: Settings) -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["f"] == "json"
        assert request.url.params["q"].startswith("census AND")
        return httpx.Response(
            200,
            json={
                "total": 2,
                "results": [CENSUS_ITEM, {"id": "doc", "type": "PDF", "title": "Report"}],
            },
        )

    transport = httpx.MockTransport(handler)

    async with httpx.AsyncClient(transport=transport) as client:
        provider = ArcGISDatasetProvider(client, live_settings)
        page = await provider.search("census", DatasetFilters(), offset=0, limit=20)

    assert page.total == 2
    assert len(page.results) == 1
    dataset = page.results[0]
    assert dataset.title == "USA Census Tract Boundaries"
    assert dataset.type == "feature-layer"
    assert dataset.categories == ("Demographics",)
    assert dataset.extent.xmin == pytest.approx(-179.1)
    assert dataset.created.year == 2021
    assert dataset.thumbnail_url == (
        "https://www.arcgis.com/sharing/rest/content/items/"
        f"{CENSUS_ITEM['id']}/info/thumbnail/census.png"
    )


@pytest.mark.asyncio
async def test_arcgis_error_body_is_surfaced(live_settings: Settings) -> None:
    async def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"error": {"code": 500, "message": "Portal down"}})

    transport = httpx.MockTransport(handler)

    async with httpx.AsyncClient(transport=transport) as client:
        provider = ArcGISDatasetProvider(client, live_settings)
        with pytest.raises(CatalogServiceError) as exc:
            await provider.search("census", DatasetFilters(), offset=0, limit=20)

    assert exc.value.status_code == 500
    assert to_app_error(exc.value).category is ErrorCategory.SERVICE_DOWN


@pytest.mark.asyncio
async def test_arcgis_non_json_is_upstream_data_error(live_settings: Settings) -> None:
    async def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>maintenance</html>")

    transport = httpx.MockTransport(handler)

    async with httpx.AsyncClient(transport=transport) as client:
        provider = ArcGISDatasetProvider(client, live_settings)
        with pytest.raises(CatalogServiceError) as exc:
            await provider.search("census", DatasetFilters(), offset=0, limit=20)

    error = to_app_error(exc.value)
    assert error.category is ErrorCategory.UPSTREAM_DATA_ERROR
    assert error.code == "ESRI_API_ERROR"


@pytest.mark.asyncio
async def test_arcgis_timeout(live_settings: Settings) -> None:
    async def handler(_: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow")

    transport = httpx.MockTransport(handler)

    async with httpx.AsyncClient(transport=transport) as client:
        provider = ArcGISDatasetProvider(client, live_settings)
        with pytest.raises(CatalogServiceError) as exc:
            await provider.search("census", DatasetFilters(), offset=0, limit=20)

    assert exc.value.timed_out is True


@pytest.mark.asyncio
async def test_arcgis_get_missing_item_returns_none(live_settings: Settings) -> None:
    async def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"error": {"code": 400, "message": "Item does not exist"}})

    transport = httpx.MockTransport(handler)

    async with httpx.AsyncClient(transport=transport) as client:
        provider = ArcGISDatasetProvider(client, live_settings)
        assert await provider.get("missing") is None


@pytest.mark.asyncio
async def test_arcgis_get_item(live_settings: Settings) -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path.endswith(f"/content/items/{CENSUS_ITEM['id']}")
        return httpx.Response(200, json=CENSUS_ITEM)

    transport = httpx.MockTransport(handler)

    async with httpx.AsyncClient(transport=transport) as client:
        provider = ArcGISDatasetProvider(client, live_settings)
        dataset = await provider.get(CENSUS_ITEM["id"])

    assert dataset is not None
    assert dataset.owner == "esri_demographics"


@pytest.mark.asyncio
async def test_static_provider_filters_by_category() -> None:
    provider = StaticDatasetProvider(DATASETS)

    everything = await provider.search("world", DatasetFilters(), offset=0, limit=20)
    basemaps = await provider.search(
        "world", DatasetFilters(category="Basemaps"), offset=0, limit=20
    )

    assert everything.total > basemaps.total
    assert {d.id for d in basemaps.results} == {"world-imagery", "world-street-map"}


def portal_item(number: int) -> dict:
    return {**CENSUS_ITEM, "id": f"item-{number:03d}", "title": f"Census layer {number}"}


@pytest.mark.asyncio
async def test_arcgis_search_pages_on_the_portal(live_settings: Settings) -> None:
    requests = []

    async def portal(request: httpx.Request) -> httpx.Response:
        requests.append(dict(request.url.params))
        start = int(request.url.params["start"])
        num = int(request.url.params["num"])
        numbers = range(start, min(start + num, 251))
        return httpx.Response(
            200, json={"total": 250, "results": [portal_item(n) for n in numbers]}
        )

    transport = httpx.MockTransport(portal)

    async with httpx.AsyncClient(transport=transport) as client:
        handler = SearchHandler(ArcGISDatasetProvider(client, live_settings), live_settings)
        result = await handler.handle(SearchRequest(q="census", limit=20, offset=120))

    assert isinstance(result, Ok)
    assert result.value.total == 250
    assert result.value.count == 20
    assert result.value.offset == 120
    assert result.value.results[0].id == "item-121"
    assert len(requests) == 1
    assert requests[0]["start"] == "121"
    assert requests[0]["num"] == "20"


@pytest.mark.asyncio
async def test_arcgis_search_sends_category_path_and_sort(live_settings: Settings) -> None:
    seen = {}

    async def handler(request: httpx.Request) -> httpx.Response:
        seen.update(request.url.params)
        return httpx.Response(200, json={"total": 0, "results": []})

    transport = httpx.MockTransport(handler)

    async with httpx.AsyncClient(transport=transport) as client:
        provider = ArcGISDatasetProvider(client, live_settings)
        page = await provider.search(
            "census",
            DatasetFilters(category="demographics"),
            offset=0,
            limit=10,
            sort_by="modified",
        )

    assert page.results == ()
    assert page.total == 0
    assert seen["categories"] == "/Categories/People/Demographics"
    assert seen["sortField"] == "modified"
    assert seen["sortOrder"] == "desc"


def test_category_path() -> None:
    assert category_path("Basemaps") == "/Categories/Basemaps"
    assert category_path("natural hazards") == "/Categories/Environment/Natural Hazards"


@pytest.mark.asyncio
async def test_arcgis_skips_items_that_are_not_objects(live_settings: Settings) -> None:
    async def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            json={
                "total": 3,
                "results": ["oops", {**CENSUS_ITEM, "type": ["Feature Service"]}, CENSUS_ITEM],
            },
        )

    transport = httpx.MockTransport(handler)

    async with httpx.AsyncClient(transport=transport) as client:
        provider = ArcGISDatasetProvider(client, live_settings)
        page = await provider.search("census", DatasetFilters(), offset=0, limit=20)

    assert [d.id for d in page.results] == [CENSUS_ITEM["id"]]


@pytest.mark.asyncio
async def test_arcgis_results_not_a_list_is_upstream_data_error(live_settings: Settings) -> None:
    async def handler(_: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"total": 1, "results": 42})

    transport = httpx.MockTransport(handler)

    async with httpx.AsyncClient(transport=transport) as client:
        provider = ArcGISDatasetProvider(client, live_settings)
        with pytest.raises(CatalogServiceError) as exc:
            await provider.search("census", DatasetFilters(), offset=0, limit=20)

    assert to_app_error(exc.value).category is ErrorCategory.UPSTREAM_DATA_ERROR
