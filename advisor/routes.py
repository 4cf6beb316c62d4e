"""HTTP routes for the advisor API."""

from __future__ import annotations

import logging
from typing import Annotated, Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from advisor.dependencies import (
    get_app_pipeline,
    get_apps_pipeline,
    get_categories_pipeline,
    get_chat_pipeline,
    get_dataset_pipeline,
    get_search_pipeline,
)
from advisor.envelope import render
from advisor.pipeline import RequestPipeline

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")

Pipeline = RequestPipeline[Any, Any]


async def _json_body(request: Request) -> Any:
    """Decode the request body; ``None`` marks a body that is not JSON."""

    try:
        return await request.json()
    except ValueError:
        logger.info("Rejected non-JSON request body", extra={"path": request.url.path})
        return None


@router.post("/chat")
async def chat(
    request: Request,
    pipeline: Annotated[Pipeline, Depends(get_chat_pipeline)],
) -> JSONResponse:
    """Recommend app templates for a free-text message."""

    return render(await pipeline.run(await _json_body(request)))


@router.get("/living-atlas/search")
async def search_datasets(
    request: Request,
    pipeline: Annotated[Pipeline, Depends(get_search_pipeline)],
) -> JSONResponse:
    """Search Living Atlas datasets by keyword."""

    return render(await pipeline.run(dict(request.query_params)))


@router.get("/living-atlas/categories")
async def list_categories(
    pipeline: Annotated[Pipeline, Depends(get_categories_pipeline)],
) -> JSONResponse:
    return render(await pipeline.run({}))


@router.get("/living-atlas/datasets/{dataset_id}")
async def get_dataset(
    dataset_id: str,
    pipeline: Annotated[Pipeline, Depends(get_dataset_pipeline)],
) -> JSONResponse:
    return render(await pipeline.run({"id": dataset_id}))


@router.get("/apps")
async def list_apps(
    request: Request,
    pipeline: Annotated[Pipeline, Depends(get_apps_pipeline)],
) -> JSONResponse:
    return render(await pipeline.run(dict(request.query_params)))


@router.get("/apps/{app_id}")
async def get_app(
    app_id: str,
    pipeline: Annotated[Pipeline, Depends(get_app_pipeline)],
) -> JSONResponse:
    return render(await pipeline.run({"id": app_id}))
