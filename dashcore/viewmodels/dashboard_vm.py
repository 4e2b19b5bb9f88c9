from __future__ import annotations

import functools
import logging
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar

from ..app.debounce_scheduler import DebounceScheduler, UpdatePriority
from ..app.loading import LoadingAggregator
from ..app.performance import Performance, StopHandle, WatchCallback
from ..app.scope import Scope
from ..domain.errors import ErrorState
from ..domain.observable import Observable
from ..domain.ports import Notifier, OnlineProbe, SleepFn, Translator
from ..domain.retry_policy import RandomFn, RetryPolicy
from ..domain.settings import ResilienceSettings
from ..usecases.error_handling import ErrorHandling

T = TypeVar("T")

LOGGER = logging.getLogger(__name__)


class DashboardVM:
    """Owns data loads, error state and loading flag for one dashboard view.

    Each named dataset (``"stats"``, ``"trends"``, ...) is published through an
    ``Observable`` so views and derived computations can subscribe. Closing the
    VM cancels pending loads, timers and watchers.
    """

    def __init__(
        self,
        *,
        translate: Optional[Translator] = None,
        notify: Optional[Notifier] = None,
        online: Optional[OnlineProbe] = None,
        settings: Optional[ResilienceSettings] = None,
        scheduler: Optional[DebounceScheduler] = None,
        sleep: Optional[SleepFn] = None,
        rng: Optional[RandomFn] = None,
        name: str = "dashboard",
    ) -> None:
        self.settings = settings or ResilienceSettings()
        self.scope = Scope(name)
        self.loading = LoadingAggregator()
        self.scope.add_teardown(self.loading.reset)
        self.errors = ErrorHandling(
            translate=translate,
            notify=notify,
            online=online,
            loading=self.loading,
            settings=self.settings,
            sleep=sleep,
            rng=rng,
        )
        self.performance = Performance(
            scheduler or DebounceScheduler(settings=self.settings),
            scope=self.scope,
            settings=self.settings,
        )
        self._sources: Dict[str, Observable[Any]] = {}
        self._issued: Dict[str, int] = {}
        self._applied: Dict[str, int] = {}

    # ------------------------------------------------------------------
    # Read models
    # ------------------------------------------------------------------
    @property
    def error_state(self) -> ErrorState:
        return self.errors.error_state

    @property
    def is_loading(self) -> bool:
        return self.loading.is_loading

    @property
    def closed(self) -> bool:
        return self.scope.closed

    def source(self, name: str) -> Observable[Any]:
        """Return the observable holding the latest result for ``name``."""
        if name not in self._sources:
            self._sources[name] = Observable(None)
        return self._sources[name]

    def clear_error(self) -> None:
        self.errors.clear_error()

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------
    async def load(
        self,
        name: str,
        fetch: Callable[[], Awaitable[T]],
        *,
        apply: Optional[Callable[[T], Any]] = None,
        policy: Optional[RetryPolicy] = None,
        priority: UpdatePriority | str = UpdatePriority.NORMAL,
    ) -> T:
        """Fetch ``name`` with retries and publish the result.

        A result or failure is dropped when a newer load of the same name
        already published, or when the VM closed while the fetch was in
        flight; a dropped failure is still raised but leaves ``error_state``
        untouched. ``apply`` (derived recompute) runs through
        ``optimized_update`` with the latest published value.
        """
        self._ensure_open()
        ticket = self._issued.get(name, 0) + 1
        self._issued[name] = ticket
        policy = policy or self.settings.retry_policy()

        try:
            result = await self.errors.invoke(fetch, policy, record=False)
        except Exception as exc:
            if self._is_current(name, ticket, "failure"):
                self.errors.handle_error(exc, retryable=policy.max_retries > 0)
            raise

        if not self._is_current(name, ticket, "result"):
            return result
        self._applied[name] = ticket
        self.source(name).set(result)
        if apply is not None:
            self.performance.optimized_update(
                functools.partial(self._apply_latest, name, apply),
                priority,
                key=("apply", name),
            )
        return result

    async def load_safe(self, name: str, fetch: Callable[[], Awaitable[T]], fallback: T) -> T:
        """Single attempt without a toast; publishes ``fallback`` on failure."""
        self._ensure_open()
        with self.loading.track():
            result = await self.errors.safe_async(fetch, fallback)
        if not self.scope.closed:
            self.source(name).set(result)
        return result

    async def refresh(self, name: str, fetch: Callable[[], Awaitable[T]], **kwargs: Any) -> T:
        """Manual retry action: dismiss the current error and reload."""
        self.clear_error()
        return await self.load(name, fetch, **kwargs)

    def spawn_load(self, name: str, fetch: Callable[[], Awaitable[Any]], **kwargs: Any):
        """Start ``load`` in the background; the task is cancelled on close."""
        return self.scope.spawn(self.load(name, fetch, **kwargs), name=f"load:{name}")

    def watch(
        self,
        name: str,
        callback: WatchCallback,
        delay_ms: Optional[int] = None,
        *,
        immediate: bool = False,
        deep: bool = False,
    ) -> StopHandle:
        return self.performance.debounced_watch(
            self.source(name), callback, delay_ms, immediate=immediate, deep=deep
        )

    def close(self) -> None:
        self.scope.close()

    async def __aenter__(self) -> "DashboardVM":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _apply_latest(self, name: str, apply: Callable[[Any], Any]) -> None:
        apply(self.source(name).value)

    def _is_current(self, name: str, ticket: int, outcome: str) -> bool:
        if self.scope.closed:
            LOGGER.debug("Dropping %s %s: view closed.", name, outcome)
            return False
        if ticket < self._applied.get(name, 0):
            LOGGER.debug("Dropping stale %s %s (ticket %d).", name, outcome, ticket)
            return False
        return True

    def _ensure_open(self) -> None:
        if self.scope.closed:
            raise RuntimeError("DashboardVM is closed.")


__all__ = ["DashboardVM"]
