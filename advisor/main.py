"""FastAPI application entrypoint."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

import httpx
from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse

from advisor import __version__
from advisor.config import Settings, get_settings
from advisor.envelope import fail, render
from advisor.errors import ErrorCategory, build_error
from advisor.logging import configure_logging
from advisor.routes import router
from advisor.services import build_providers
from advisor.telemetry import LoggingTelemetrySink

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Create application resources during startup and clean up on shutdown."""

    settings = get_settings()
    async with httpx.AsyncClient() as client:
        app.state.http_client = client
        app.state.providers = build_providers(settings, client)
        app.state.telemetry = LoggingTelemetrySink()
        yield
        del app.state.providers
        del app.state.http_client


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    envelope = fail(build_error(ErrorCategory.INTERNAL))
    logger.exception(
        "Unhandled error",
        exc_info=exc,
        extra={"path": request.url.path, "request_id": envelope.request_id},
    )
    return render(envelope)


def create_app() -> FastAPI:
    """Application factory."""

    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Map App Advisor API",
        version=__version__,
        lifespan=lifespan,
    )
    app.add_exception_handler(Exception, unhandled_exception_handler)

    @app.get("/healthz")
    async def healthz() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/version")
    async def version(settings: Settings = Depends(get_settings)) -> dict[str, str]:
        return {"version": __version__, "environment": settings.environment}

    app.include_router(router)

    return app


app = create_app()
