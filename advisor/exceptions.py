"""Exceptions raised by downstream service adapters."""

from dataclasses import dataclass
from typing import ClassVar, Literal

Origin = Literal["ai", "data", "internal"]


@dataclass(eq=False)
class ServiceError(Exception):
    """Base exception for downstream service failures.

    ``timed_out`` and ``unreachable`` describe transport failures; otherwise
    ``status_code`` holds the upstream HTTP status, or ``None`` when the
    upstream answered with a payload we could not use.
    """

    message: str
    code: str = "service_error"
    status_code: int | None = None
    timed_out: bool = False
    unreachable: bool = False

    origin: ClassVar[Origin] = "internal"

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.message


@dataclass(eq=False)
class CompletionServiceError(ServiceError):
    """Raised when the AI completion provider fails to return a reply."""

    code: str = "completion_error"

    origin: ClassVar[Origin] = "ai"


@dataclass(eq=False)
class CatalogServiceError(ServiceError):
    """Raised when the dataset catalog provider fails to return records."""

    code: str = "catalog_error"

    origin: ClassVar[Origin] = "data"
