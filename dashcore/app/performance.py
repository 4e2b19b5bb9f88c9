"""Debounce, throttle and watch helpers bound to one view scope."""

from __future__ import annotations

from typing import Any, Callable, Hashable, Optional

from dashcore.app.debounce_scheduler import (
    DebounceHandle,
    DebounceScheduler,
    Debounced,
    Throttled,
    UpdatePriority,
)
from dashcore.app.loading import LoadingAggregator
from dashcore.app.scope import Scope
from dashcore.domain.observable import Observable
from dashcore.domain.settings import ResilienceSettings

WatchCallback = Callable[[Any, Any], Any]
StopHandle = Callable[[], None]


class Performance:
    """Coalesces bursts of reactive changes into single downstream updates.

    Every timer and watcher created here is cancelled when ``scope`` closes.
    """

    def __init__(
        self,
        scheduler: Optional[DebounceScheduler] = None,
        *,
        scope: Optional[Scope] = None,
        settings: Optional[ResilienceSettings] = None,
    ) -> None:
        self.settings = settings or (scheduler.settings if scheduler else ResilienceSettings())
        self.scheduler = scheduler or DebounceScheduler(settings=self.settings)
        self.scope = scope
        if scope is not None:
            scope.add_teardown(self.scheduler.cancel_all)

    def debounce(self, fn: Callable[..., Any], delay_ms: Optional[int] = None) -> Debounced:
        delay = self.settings.debounce_ms if delay_ms is None else delay_ms
        debounced = Debounced(fn, delay, self.scheduler)
        if self.scope is not None:
            self.scope.add_teardown(debounced.cancel)
        return debounced

    def throttle(self, fn: Callable[..., Any], delay_ms: int) -> Throttled:
        return Throttled(fn, delay_ms)

    def debounced_watch(
        self,
        source: Observable[Any],
        callback: WatchCallback,
        delay_ms: Optional[int] = None,
        *,
        immediate: bool = False,
        deep: bool = False,
    ) -> StopHandle:
        """Watch ``source`` and deliver ``callback(new, old)`` debounced.

        Args:
            source: Observable to watch.
            callback: Receives the latest ``(new, old)`` pair of a burst.
            delay_ms: Quiet period; defaults to ``settings.debounce_ms``.
            immediate: Also deliver the current value once (debounced).
            deep: Deliver in-place mutations announced via ``notify()``.

        Returns:
            Function that unsubscribes and drops a pending delivery.
        """
        debounced = Debounced(
            callback,
            self.settings.debounce_ms if delay_ms is None else delay_ms,
            self.scheduler,
        )

        def listener(new: Any, old: Any) -> None:
            if new is old and not deep:
                return
            debounced(new, old)

        unsubscribe = source.subscribe(listener)
        if immediate:
            debounced(source.value, None)
        remove_hook: Callable[[], None] = lambda: None

        def stop() -> None:
            remove_hook()
            unsubscribe()
            debounced.cancel()

        if self.scope is not None:
            remove_hook = self.scope.add_teardown(stop)
        return stop

    def optimized_update(
        self,
        callback: Callable[[], Any],
        priority: UpdatePriority | str = UpdatePriority.NORMAL,
        *,
        key: Optional[Hashable] = None,
    ) -> DebounceHandle:
        """Run ``callback`` after the tier delay; repeated calls on a key coalesce."""
        return self.scheduler.schedule_priority(
            key if key is not None else callback, callback, priority
        )

    def loading_state(self) -> LoadingAggregator:
        loading = LoadingAggregator()
        if self.scope is not None:
            self.scope.add_teardown(loading.reset)
        return loading


__all__ = ["Performance", "StopHandle", "WatchCallback"]
