"""Fire-and-forget telemetry hooks."""

from __future__ import annotations

import logging
from typing import Any, Mapping, Protocol

logger = logging.getLogger(__name__)


class TelemetrySink(Protocol):
    def record(self, event: str, properties: Mapping[str, Any]) -> None:
        """Record a single event."""
        ...


class LoggingTelemetrySink:
    """Write telemetry events as structured log records."""

    def __init__(self, name: str = "advisor.telemetry") -> None:
        self._logger = logging.getLogger(name)

    def record(self, event: str, properties: Mapping[str, Any]) -> None:
        self._logger.info(event, extra={"event": event, "properties": dict(properties)})


def emit(sink: TelemetrySink | None, event: str, **properties: Any) -> None:
    """Send an event to ``sink``; sink failures are logged, never raised."""

    if sink is None:
        return
    try:
        sink.record(event, properties)
    except Exception:
        logger.warning("Telemetry sink failed", extra={"event": event}, exc_info=True)
