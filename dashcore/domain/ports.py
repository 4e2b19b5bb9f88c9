from __future__ import annotations
from typing import Any, Awaitable, Callable, Protocol, TypeVar

T = TypeVar("T")

# ---- Async operations ----
Operation = Callable[[], Awaitable[T]]
SleepFn = Callable[[float], Awaitable[Any]]

# ---- UI timer seam (asyncio loop, Tk ``after``, test clocks) ----
ScheduleFn = Callable[[int, Callable[[], None]], Any]
CancelFn = Callable[[Any], None]


# ---- Ports (host environment boundaries) ----
class Translator(Protocol):
    """Localization lookup. Returns the key unchanged when no string exists."""

    def __call__(self, key: str) -> str: ...


class Notifier(Protocol):
    """Shows a transient user-visible error notification (toast)."""

    def __call__(self, message: str) -> None: ...


class OnlineProbe(Protocol):
    """Reports whether the host environment currently has connectivity."""

    def __call__(self) -> bool: ...


def always_online() -> bool:
    return True


def no_notifier(message: str) -> None:
    """Default notifier when no UI toast facility is wired (headless, tests)."""


__all__ = [
    "CancelFn",
    "Notifier",
    "OnlineProbe",
    "Operation",
    "ScheduleFn",
    "SleepFn",
    "Translator",
    "always_online",
    "no_notifier",
]
