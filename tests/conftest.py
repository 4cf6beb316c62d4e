"""Shared pytest fixtures."""

from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("PROVIDER_MODE", "static")

from advisor.config import Settings  # noqa: E402
from advisor.main import create_app  # noqa: E402


@pytest.fixture(autouse=True)
def configure_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Pin environment variables that Settings reads during tests."""

    monkeypatch.setenv("ENVIRONMENT", "test")
    monkeypatch.setenv("PROVIDER_MODE", "static")
    monkeypatch.delenv("UPSTREAM_TIMEOUT", raising=False)


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.fixture
def app():
    return create_app()


class RecordingTelemetry:
    """Telemetry sink that keeps events in memory."""

    def __init__(self) -> None:
        self.events: list[tuple[str, dict]] = []

    def record(self, event: str, properties) -> None:
        self.events.append((event, dict(properties)))


@pytest.fixture
def telemetry() -> RecordingTelemetry:
    return RecordingTelemetry()
