"""Shared fixtures: deterministic timers and a recording backoff sleep."""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Tuple

import pytest

from dashcore.app.debounce_scheduler import DebounceScheduler


class FakeTimers:
    """Manual clock compatible with ``DebounceScheduler`` schedule/cancel seams."""

    def __init__(self) -> None:
        self.now_ms = 0
        self.cancelled: List[int] = []
        self._timers: Dict[int, Tuple[int, Callable[[], None]]] = {}
        self._next_token = 0

    def schedule(self, delay_ms: int, callback: Callable[[], None]) -> int:
        token = self._next_token
        self._next_token += 1
        self._timers[token] = (self.now_ms + delay_ms, callback)
        return token

    def cancel(self, token: int) -> None:
        self.cancelled.append(token)
        self._timers.pop(token, None)

    def advance(self, ms: int) -> None:
        target = self.now_ms + ms
        while True:
            due = [(when, token) for token, (when, _) in self._timers.items() if when <= target]
            if not due:
                break
            when, token = min(due)
            _, callback = self._timers.pop(token)
            self.now_ms = when
            callback()
        self.now_ms = target

    @property
    def pending(self) -> int:
        return len(self._timers)


class RecordingSleep:
    """Async stand-in for ``asyncio.sleep`` that records requested waits."""

    def __init__(self) -> None:
        self.calls: List[float] = []

    async def __call__(self, seconds: float) -> Any:
        self.calls.append(seconds)


@pytest.fixture
def fake_timers() -> FakeTimers:
    return FakeTimers()


@pytest.fixture
def scheduler(fake_timers: FakeTimers) -> DebounceScheduler:
    return DebounceScheduler(fake_timers.schedule, fake_timers.cancel)


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()
