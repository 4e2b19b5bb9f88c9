"""Scheduler helper that owns debounce timers for UI-driven recomputes.

The host passes ``schedule`` and ``cancel`` callables (for example Tk
``after``/``after_cancel`` or a test clock) so timer state is tracked in one
place and cancelled safely when a view scope closes. Without them the running
asyncio loop's ``call_later`` is used.
"""

from __future__ import annotations

import asyncio
import functools
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Hashable, Optional

from dashcore.domain.ports import CancelFn, ScheduleFn
from dashcore.domain.settings import ResilienceSettings

LOGGER = logging.getLogger(__name__)


class UpdatePriority(str, Enum):
    """Urgency tiers for derived-value recomputes."""

    IMMEDIATE = "immediate"
    NORMAL = "normal"
    LOW = "low"

    @classmethod
    def coerce(cls, value: "UpdatePriority | str") -> "UpdatePriority":
        if isinstance(value, cls):
            return value
        text = str(value or "").strip().lower()
        if text == "high":
            return cls.IMMEDIATE
        for member in cls:
            if member.value == text:
                return member
        raise ValueError(f"Unknown update priority: {value!r}")


def asyncio_schedule(delay_ms: int, callback: Callable[[], None]) -> asyncio.Handle:
    """Arm ``callback`` on the running loop; ``0`` means next loop iteration."""
    loop = asyncio.get_running_loop()
    if delay_ms <= 0:
        return loop.call_soon(callback)
    return loop.call_later(delay_ms / 1000.0, callback)


def asyncio_cancel(token: asyncio.Handle) -> None:
    token.cancel()


@dataclass(eq=False)
class DebounceHandle:
    """Timer token associated with a single debounce registration.

    Attributes:
        key: Registration key.
        delay_ms: Delay the timer was armed with.
        token: Token returned by the host scheduler implementation.
    """

    key: Hashable
    delay_ms: int
    token: Any = None
    _owner: Optional["DebounceScheduler"] = field(default=None, repr=False)

    def cancel(self) -> bool:
        """Cancel this timer if it is still the pending one for its key."""
        if self._owner is None:
            return False
        return self._owner.cancel_handle(self)


class DebounceScheduler:
    """Trailing-edge debounce timers keyed by registration."""

    def __init__(
        self,
        schedule: Optional[ScheduleFn] = None,
        cancel: Optional[CancelFn] = None,
        *,
        settings: Optional[ResilienceSettings] = None,
    ) -> None:
        """Store schedule/cancel functions and initialize the handle registry.

        Args:
            schedule: Function compatible with ``after(delay_ms, callback)``.
            cancel: Function compatible with ``after_cancel(token)``.
            settings: Source of the priority tier delays.
        """
        self._schedule = schedule or asyncio_schedule
        self._cancel = cancel or asyncio_cancel
        self.settings = settings or ResilienceSettings()
        self._handles: Dict[Hashable, DebounceHandle] = {}

    def schedule(self, key: Hashable, delay_ms: int, callback: Callable[[], None]) -> DebounceHandle:
        """Schedule ``callback`` for ``key``, superseding any pending timer.

        Args:
            key: Registration key; one pending timer per key.
            delay_ms: Quiet period in milliseconds before the callback runs.
            callback: Zero-argument callable to execute.
        """
        delay = max(0, int(delay_ms))
        self.cancel(key)
        handle = DebounceHandle(key=key, delay_ms=delay, _owner=self)

        def fire() -> None:
            if self._handles.get(key) is not handle:
                return
            del self._handles[key]
            callback()

        self._handles[key] = handle
        try:
            handle.token = self._schedule(delay, fire)
        except BaseException:
            self._handles.pop(key, None)
            raise
        return handle

    def schedule_priority(
        self,
        key: Hashable,
        callback: Callable[[], None],
        priority: UpdatePriority | str = UpdatePriority.NORMAL,
    ) -> DebounceHandle:
        tier = UpdatePriority.coerce(priority)
        return self.schedule(key, self.settings.priority_delay(tier.value), callback)

    def cancel(self, key: Hashable) -> bool:
        """Cancel a pending timer for ``key``. Returns whether one was pending."""
        handle = self._handles.pop(key, None)
        if not handle:
            return False
        try:
            self._cancel(handle.token)
        except Exception:
            LOGGER.debug("Timer cancel failed for %r", key, exc_info=True)
        return True

    def cancel_handle(self, handle: DebounceHandle) -> bool:
        if self._handles.get(handle.key) is not handle:
            return False
        return self.cancel(handle.key)

    def cancel_all(self) -> None:
        """Cancel all pending timers across all keys."""
        for key in list(self._handles.keys()):
            self.cancel(key)

    def handle_for(self, key: Hashable) -> Optional[DebounceHandle]:
        """Return the current handle for a key, if scheduled."""
        return self._handles.get(key)

    def pending(self, key: Hashable) -> bool:
        return key in self._handles

    @property
    def pending_count(self) -> int:
        return len(self._handles)


class Debounced:
    """Callable wrapper delivering only the last call of a burst."""

    def __init__(
        self,
        fn: Callable[..., Any],
        delay_ms: int,
        scheduler: DebounceScheduler,
        *,
        key: Optional[Hashable] = None,
    ) -> None:
        self._fn = fn
        self.delay_ms = delay_ms
        self._scheduler = scheduler
        self._key: Hashable = key if key is not None else object()
        functools.update_wrapper(self, fn)

    def __call__(self, *args: Any, **kwargs: Any) -> None:
        self._scheduler.schedule(self._key, self.delay_ms, functools.partial(self._fn, *args, **kwargs))

    def cancel(self) -> bool:
        return self._scheduler.cancel(self._key)

    @property
    def pending(self) -> bool:
        return self._scheduler.pending(self._key)


class Throttled:
    """Leading-edge throttle: at most one call per ``delay_ms`` window."""

    def __init__(
        self,
        fn: Callable[..., Any],
        delay_ms: int,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._fn = fn
        self.delay_ms = delay_ms
        self._clock = clock
        self._last_call_ms: Optional[float] = None
        functools.update_wrapper(self, fn)

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        now_ms = self._clock() * 1000.0
        if self._last_call_ms is not None and now_ms - self._last_call_ms < self.delay_ms:
            return None
        self._last_call_ms = now_ms
        return self._fn(*args, **kwargs)

    def cancel(self) -> None:
        """Reopen the window so the next call goes through."""
        self._last_call_ms = None


__all__ = [
    "DebounceHandle",
    "DebounceScheduler",
    "Debounced",
    "Throttled",
    "UpdatePriority",
    "asyncio_cancel",
    "asyncio_schedule",
]
