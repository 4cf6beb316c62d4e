"""Pydantic models shared across application layers."""

from datetime import datetime
from enum import Enum
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from advisor.errors import AppError


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)


class AppCategory(str, Enum):
    INSTANT_APPS = "instant-apps"
    WEB_APPBUILDER = "web-appbuilder"
    EXPERIENCE_BUILDER = "experience-builder"
    DASHBOARDS = "dashboards"
    STORYMAPS = "storymaps"
    SURVEY123 = "survey123"
    COLLECTOR = "collector"
    EXPLORER = "explorer"
    NAVIGATOR = "navigator"
    QUICKCAPTURE = "quickcapture"
    FIELD_MAPS = "field-maps"
    WORKFORCE = "workforce"


DatasetType = Literal["feature-layer", "image-layer", "tile-layer", "vector-tile-layer"]
SortOrder = Literal["relevance", "title", "modified"]
Confidence = Literal["high", "medium", "low"]


# Requests


class ChatContext(_Frozen):
    selected_datasets: tuple[str, ...] = Field(default=(), alias="selectedDatasets")
    previous_recommendations: tuple[str, ...] = Field(
        default=(), alias="previousRecommendations"
    )
    current_map_id: str | None = Field(default=None, alias="currentMapId")


class ChatRequest(_Frozen):
    """Validated body of ``POST /api/chat``."""

    message: str
    session_id: UUID | None = Field(default=None, alias="sessionId")
    context: ChatContext = Field(default_factory=ChatContext)


class SearchRequest(_Frozen):
    """Validated query of ``GET /api/living-atlas/search``."""

    q: str
    category: str | None = None
    limit: int
    offset: int = 0
    sort_by: SortOrder = Field(default="relevance", alias="sortBy")


class LookupRequest(_Frozen):
    id: str


class AppListRequest(_Frozen):
    category: AppCategory | None = None


class EmptyRequest(_Frozen):
    pass


# Catalog records


class AppTemplate(_Frozen):
    id: str
    name: str
    description: str
    category: AppCategory
    capabilities: tuple[str, ...]
    use_cases: tuple[str, ...] = Field(serialization_alias="useCases")
    keywords: tuple[str, ...] = Field(exclude=True)
    complexity: Literal["beginner", "intermediate", "advanced"]
    thumbnail_url: str = Field(serialization_alias="thumbnailUrl")
    documentation_url: str = Field(serialization_alias="documentationUrl")
    template_id: str | None = Field(default=None, serialization_alias="templateId")


class SpatialReference(_Frozen):
    wkid: int = 4326


class DatasetExtent(_Frozen):
    xmin: float
    ymin: float
    xmax: float
    ymax: float
    spatial_reference: SpatialReference = Field(
        default_factory=SpatialReference, serialization_alias="spatialReference"
    )


class Dataset(_Frozen):
    id: str
    title: str
    description: str
    url: str
    type: DatasetType
    thumbnail_url: str = Field(serialization_alias="thumbnailUrl")
    categories: tuple[str, ...]
    tags: tuple[str, ...]
    extent: DatasetExtent
    owner: str
    created: datetime
    modified: datetime


# Responses


class Recommendation(_Frozen):
    app: AppTemplate
    score: float = Field(ge=0.0, le=1.0)
    reasoning: str
    confidence: Confidence
    matched_features: tuple[str, ...] = Field(serialization_alias="matchedFeatures")


class SuggestedAction(_Frozen):
    type: Literal["create-map", "search-datasets", "configure-app"]
    label: str
    description: str
    query: str | None = None
    params: dict[str, Any] | None = None


class ChatMetadata(_Frozen):
    tokens_used: int = Field(serialization_alias="tokensUsed")
    latency: int = Field(description="Milliseconds spent producing the reply.")
    model: str


class ChatReply(_Frozen):
    message_id: str = Field(serialization_alias="messageId")
    role: Literal["assistant"] = "assistant"
    content: str = Field(min_length=1)
    timestamp: datetime
    recommendations: tuple[Recommendation, ...]
    suggested_actions: tuple[SuggestedAction, ...] | None = Field(
        default=None, serialization_alias="suggestedActions"
    )
    metadata: ChatMetadata


class CategoryCount(_Frozen):
    category: str
    count: int


class SearchMetadata(_Frozen):
    """Present only when results were served from a fallback source."""

    degraded: bool
    warning: AppError


class SearchResults(_Frozen):
    query: str
    total: int
    count: int
    offset: int
    results: tuple[Dataset, ...]
    categories: tuple[CategoryCount, ...]
    metadata: SearchMetadata | None = None


class CategoryEntry(_Frozen):
    id: str
    name: str
    count: int


class CategoryListing(_Frozen):
    categories: tuple[CategoryEntry, ...]


class AppListing(_Frozen):
    total: int
    apps: tuple[AppTemplate, ...]
