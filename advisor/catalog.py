"""Static catalog of ESRI app templates and Living Atlas dataset fixtures.

Both collections are built once at import and never mutated, so they are
safe to share between concurrent requests.
"""

from datetime import datetime, timezone

from advisor.models import AppCategory, AppTemplate, Dataset, DatasetExtent

_PLACEHOLDER = "https://placehold.co/256x256/{color}/white?text={label}"


def _thumb(color: str, label: str) -> str:
    return _PLACEHOLDER.format(color=color, label=label.replace(" ", "+"))


def _date(value: str) -> datetime:
    return datetime.fromisoformat(value).replace(tzinfo=timezone.utc)


WORLD_EXTENT = DatasetExtent(xmin=-180, ymin=-90, xmax=180, ymax=90)
USA_EXTENT = DatasetExtent(xmin=-179.14734, ymin=18.91619, xmax=-66.96466, ymax=71.35776)

APP_TEMPLATES: tuple[AppTemplate, ...] = (
    AppTemplate(
        id="instant-apps-map-viewer",
        name="Instant Apps - Map Viewer",
        description=(
            "Create interactive web maps with a simple, configurable interface. "
            "Perfect for sharing geographic data with stakeholders."
        ),
        category=AppCategory.INSTANT_APPS,
        capabilities=("Interactive map viewing", "Pop-ups", "Legend", "Search", "Print"),
        use_cases=("Data exploration", "Public information sharing", "Simple dashboards"),
        keywords=("map", "viewer", "visualize", "share", "interactive", "population", "explore"),
        complexity="beginner",
        thumbnail_url=_thumb("0079c1", "Map Viewer"),
        documentation_url="https://doc.arcgis.com/en/instant-apps/",
        template_id="instant-apps-basic-viewer",
    ),
    AppTemplate(
        id="web-appbuilder",
        name="Web AppBuilder",
        description=(
            "Build custom web apps from a library of widgets and themes without "
            "writing code."
        ),
        category=AppCategory.WEB_APPBUILDER,
        capabilities=("Widgets", "Themes", "Editing", "Attribute table", "Measurement"),
        use_cases=("Custom GIS apps", "Data editing portals", "Legacy app maintenance"),
        keywords=("widget", "custom", "edit", "measure", "attribute", "table", "theme"),
        complexity="intermediate",
        thumbnail_url=_thumb("005e95", "Web AppBuilder"),
        documentation_url="https://doc.arcgis.com/en/web-appbuilder/",
        template_id="web-appbuilder-default",
    ),
    AppTemplate(
        id="experience-builder",
        name="ArcGIS Experience Builder",
        description=(
            "Design multi-page web experiences that combine 2D and 3D maps, "
            "charts and content in flexible layouts."
        ),
        category=AppCategory.EXPERIENCE_BUILDER,
        capabilities=("Multi-page layouts", "3D scenes", "Charts", "Responsive design"),
        use_cases=("Branded web portals", "Multi-page sites", "3D visualization"),
        keywords=("website", "portal", "3d", "scene", "layout", "brand", "pages", "responsive"),
        complexity="advanced",
        thumbnail_url=_thumb("35ac46", "Experience Builder"),
        documentation_url="https://doc.arcgis.com/en/experience-builder/",
        template_id="experience-builder-blank",
    ),
    AppTemplate(
        id="dashboards",
        name="ArcGIS Dashboards",
        description=(
            "Monitor events, track assets and report key indicators with charts, "
            "gauges and maps on a single screen."
        ),
        category=AppCategory.DASHBOARDS,
        capabilities=("Charts", "Gauges", "Indicators", "Real-time updates", "Filtering"),
        use_cases=("Operations monitoring", "KPI reporting", "Emergency response"),
        keywords=("dashboard", "monitor", "chart", "kpi", "indicator", "real-time", "track", "statistics"),
        complexity="intermediate",
        thumbnail_url=_thumb("e8912e", "Dashboards"),
        documentation_url="https://doc.arcgis.com/en/dashboards/",
        template_id="dashboards-operations",
    ),
    AppTemplate(
        id="story-maps",
        name="ArcGIS StoryMaps",
        description=(
            "Combine authoritative maps with narrative text, images, and multimedia "
            "content to tell compelling stories."
        ),
        category=AppCategory.STORYMAPS,
        capabilities=("Rich multimedia", "Immersive layouts", "Map tours", "Swipe comparison"),
        use_cases=("Educational content", "Project presentations", "Community engagement"),
        keywords=("story", "narrative", "tell", "presentation", "education", "multimedia", "tour"),
        complexity="intermediate",
        thumbnail_url=_thumb("6e1e78", "StoryMaps"),
        documentation_url="https://doc.arcgis.com/en/arcgis-storymaps/",
        template_id="storymaps-blank",
    ),
    AppTemplate(
        id="survey123",
        name="ArcGIS Survey123",
        description=(
            "Create smart forms to collect location-aware survey data in the "
            "browser or on mobile devices."
        ),
        category=AppCategory.SURVEY123,
        capabilities=("Smart forms", "Offline collection", "Photo attachments", "Reports"),
        use_cases=("Inspections", "Public feedback", "Field surveys"),
        keywords=("survey", "form", "questionnaire", "feedback", "inspection", "collect"),
        complexity="beginner",
        thumbnail_url=_thumb("349d6b", "Survey123"),
        documentation_url="https://doc.arcgis.com/en/survey123/",
        template_id="survey123-form",
    ),
    AppTemplate(
        id="collector",
        name="Collector for ArcGIS",
        description=(
            "Capture and edit points, lines and polygons in the field using "
            "maps designed in ArcGIS Online."
        ),
        category=AppCategory.COLLECTOR,
        capabilities=("Feature editing", "GPS capture", "Offline maps", "Attachments"),
        use_cases=("Asset inventory", "Field data collection", "Damage assessment"),
        keywords=("collect", "gps", "capture", "asset", "inventory", "offline"),
        complexity="intermediate",
        thumbnail_url=_thumb("4c9141", "Collector"),
        documentation_url="https://doc.arcgis.com/en/collector/",
        template_id="collector-default",
    ),
    AppTemplate(
        id="explorer",
        name="ArcGIS Explorer",
        description=(
            "View, explore and present maps on desktop and mobile with simple "
            "markup and measurement tools."
        ),
        category=AppCategory.EXPLORER,
        capabilities=("Map browsing", "Markup", "Measurement", "Presentations"),
        use_cases=("Map review", "Field reference", "Offline viewing"),
        keywords=("browse", "markup", "review", "reference", "explore", "present"),
        complexity="beginner",
        thumbnail_url=_thumb("7570b3", "Explorer"),
        documentation_url="https://doc.arcgis.com/en/explorer/",
        template_id=None,
    ),
    AppTemplate(
        id="navigator",
        name="ArcGIS Navigator",
        description=(
            "Provide turn-by-turn directions for field workers using "
            "organization-specific routes and data."
        ),
        category=AppCategory.NAVIGATOR,
        capabilities=("Turn-by-turn directions", "Offline routing", "Custom stops"),
        use_cases=("Fleet routing", "Field service navigation", "Delivery routes"),
        keywords=("navigate", "directions", "route", "routing", "fleet", "delivery", "drive"),
        complexity="intermediate",
        thumbnail_url=_thumb("d95f02", "Navigator"),
        documentation_url="https://doc.arcgis.com/en/navigator/",
        template_id=None,
    ),
    AppTemplate(
        id="quickcapture",
        name="ArcGIS QuickCapture",
        description=(
            "Record observations rapidly with large, single-tap buttons while "
            "moving through the field."
        ),
        category=AppCategory.QUICKCAPTURE,
        capabilities=("One-tap capture", "Continuous tracking", "Photo capture"),
        use_cases=("Windshield surveys", "Wildlife sightings", "Road condition reporting"),
        keywords=("quick", "rapid", "observation", "sighting", "tap", "fast", "record"),
        complexity="beginner",
        thumbnail_url=_thumb("1b9e77", "QuickCapture"),
        documentation_url="https://doc.arcgis.com/en/quickcapture/",
        template_id="quickcapture-project",
    ),
    AppTemplate(
        id="field-maps",
        name="ArcGIS Field Maps",
        description=(
            "Use one app to view maps, collect data, track locations and complete "
            "forms in the field."
        ),
        category=AppCategory.FIELD_MAPS,
        capabilities=("Data collection", "Location tracking", "Smart forms", "Offline maps"),
        use_cases=("Mobile workforce", "Field inspections", "Utility mapping"),
        keywords=("field", "mobile", "collect", "tracking", "location", "offline", "inspection"),
        complexity="intermediate",
        thumbnail_url=_thumb("66a61e", "Field Maps"),
        documentation_url="https://doc.arcgis.com/en/field-maps/",
        template_id="field-maps-default",
    ),
    AppTemplate(
        id="workforce",
        name="ArcGIS Workforce",
        description=(
            "Coordinate field work by creating, assigning and tracking work "
            "assignments from the office."
        ),
        category=AppCategory.WORKFORCE,
        capabilities=("Assignment dispatch", "Status tracking", "Worker locations"),
        use_cases=("Crew coordination", "Work order management", "Dispatching"),
        keywords=("assign", "dispatch", "crew", "team", "work", "order", "coordinate"),
        complexity="intermediate",
        thumbnail_url=_thumb("a6761d", "Workforce"),
        documentation_url="https://doc.arcgis.com/en/workforce/",
        template_id="workforce-project",
    ),
)

DATASETS: tuple[Dataset, ...] = (
    Dataset(
        id="world-imagery",
        title="World Imagery",
        description=(
            "High-resolution satellite and aerial imagery from around the world. "
            "Provides context for mapping applications."
        ),
        url="https://services.arcgisonline.com/ArcGIS/rest/services/World_Imagery/MapServer",
        type="tile-layer",
        thumbnail_url=_thumb("4c9141", "World Imagery"),
        categories=("Imagery", "Basemaps"),
        tags=("imagery", "basemap", "satellite", "aerial"),
        extent=WORLD_EXTENT,
        owner="Esri",
        created=_date("2020-01-15"),
        modified=_date("2024-11-01"),
    ),
    Dataset(
        id="usa-census-tract-boundaries",
        title="USA Census Tract Boundaries",
        description=(
            "Census tract boundaries for the United States. Includes demographic "
            "data and statistical information."
        ),
        url="https://services.arcgis.com/P3ePLMYs2RVChkJx/arcgis/rest/services/USA_Census_Tracts/FeatureServer/0",
        type="feature-layer",
        thumbnail_url=_thumb("d95f02", "Census Tracts"),
        categories=("Demographics", "Boundaries"),
        tags=("census", "demographics", "boundaries", "usa"),
        extent=USA_EXTENT,
        owner="Esri Demographics",
        created=_date("2021-06-10"),
        modified=_date("2024-10-15"),
    ),
    Dataset(
        id="world-countries",
        title="World Countries",
        description="Generalized boundaries of world countries with population and economic data.",
        url="https://services.arcgis.com/P3ePLMYs2RVChkJx/arcgis/rest/services/World_Countries/FeatureServer/0",
        type="feature-layer",
        thumbnail_url=_thumb("7570b3", "World Countries"),
        categories=("Boundaries", "Demographics"),
        tags=("countries", "world", "boundaries", "reference"),
        extent=WORLD_EXTENT,
        owner="Esri",
        created=_date("2019-03-20"),
        modified=_date("2024-09-12"),
    ),
    Dataset(
        id="usa-population-density",
        title="USA Population Density",
        description="Population per square mile for US counties and tracts from the latest census.",
        url="https://services.arcgis.com/P3ePLMYs2RVChkJx/arcgis/rest/services/USA_Population_Density/FeatureServer/0",
        type="feature-layer",
        thumbnail_url=_thumb("e7298a", "Population Density"),
        categories=("Demographics",),
        tags=("population", "density", "demographics", "usa"),
        extent=USA_EXTENT,
        owner="Esri Demographics",
        created=_date("2022-02-01"),
        modified=_date("2024-08-20"),
    ),
    Dataset(
        id="usa-flood-hazard-areas",
        title="USA Flood Hazard Areas",
        description="Flood zones from the National Flood Hazard Layer for risk assessment and planning.",
        url="https://services.arcgis.com/P3ePLMYs2RVChkJx/arcgis/rest/services/USA_Flood_Hazard_Reduced_Set/FeatureServer/0",
        type="feature-layer",
        thumbnail_url=_thumb("1f78b4", "Flood Hazard"),
        categories=("Environment", "Natural Hazards"),
        tags=("flood", "hazard", "fema", "risk"),
        extent=USA_EXTENT,
        owner="Esri",
        created=_date("2018-05-04"),
        modified=_date("2024-07-30"),
    ),
    Dataset(
        id="world-land-cover",
        title="World Land Cover",
        description="Global land use and land cover classification derived from Sentinel-2 imagery.",
        url="https://ic.imagery1.arcgis.com/arcgis/rest/services/Sentinel2_10m_LandCover/ImageServer",
        type="image-layer",
        thumbnail_url=_thumb("33a02c", "Land Cover"),
        categories=("Environment", "Imagery"),
        tags=("landcover", "land use", "sentinel", "environment"),
        extent=WORLD_EXTENT,
        owner="Esri",
        created=_date("2021-07-14"),
        modified=_date("2024-06-01"),
    ),
    Dataset(
        id="usa-major-highways",
        title="USA Major Highways",
        description="Interstates, US highways and state routes for transportation mapping.",
        url="https://services.arcgis.com/P3ePLMYs2RVChkJx/arcgis/rest/services/USA_Freeway_System/FeatureServer/0",
        type="feature-layer",
        thumbnail_url=_thumb("6a3d9a", "Highways"),
        categories=("Transportation",),
        tags=("roads", "highways", "transportation", "usa"),
        extent=USA_EXTENT,
        owner="Esri",
        created=_date("2019-11-02"),
        modified=_date("2024-05-18"),
    ),
    Dataset(
        id="world-street-map",
        title="World Street Map",
        description="Vector street basemap with roads, places and points of interest worldwide.",
        url="https://basemaps.arcgis.com/arcgis/rest/services/World_Basemap_v2/VectorTileServer",
        type="vector-tile-layer",
        thumbnail_url=_thumb("b15928", "Street Map"),
        categories=("Basemaps", "Transportation"),
        tags=("basemap", "streets", "roads", "reference"),
        extent=WORLD_EXTENT,
        owner="Esri",
        created=_date("2018-01-10"),
        modified=_date("2024-10-01"),
    ),
)
