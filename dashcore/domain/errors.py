"""Error state value objects shared by the dashboard views.

``ErrorState`` is immutable on purpose: the owning ``ErrorHandling`` instance
swaps the whole snapshot on every transition, so subscribers never observe a
half-applied update.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ErrorKind(str, Enum):
    """Categories a caught failure can be classified into."""

    NETWORK = "network"
    DATA = "data"
    PERMISSION = "permission"
    SERVER = "server"
    UNKNOWN = "unknown"

    @classmethod
    def coerce(cls, value: "ErrorKind | str | None") -> "ErrorKind":
        """Return a member for ``value``; unknown labels map to ``UNKNOWN``."""
        if isinstance(value, cls):
            return value
        text = str(value or "").strip().lower()
        for member in cls:
            if member.value == text:
                return member
        return cls.UNKNOWN


@dataclass(frozen=True)
class ErrorState:
    """Last classified failure as surfaced to the UI.

    Attributes:
        has_error: Whether an error is currently shown.
        message: User-facing text, localized when the error was recorded.
        kind: Classification of the failure.
        timestamp: Time of the last transition (timezone-aware, UTC).
        retry_count: Automatic retries performed by the current invocation.
    """

    has_error: bool = False
    message: str = ""
    kind: ErrorKind = ErrorKind.UNKNOWN
    timestamp: datetime = field(default_factory=_utcnow)
    retry_count: int = 0

    @classmethod
    def clear(cls) -> "ErrorState":
        return cls()

    @property
    def is_clear(self) -> bool:
        return not self.has_error


@dataclass(frozen=True)
class HandledError:
    """Outcome of ``ErrorHandling.handle_error``."""

    kind: ErrorKind
    message: str
    retryable: bool = False


__all__ = ["ErrorKind", "ErrorState", "HandledError"]
