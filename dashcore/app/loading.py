"""Reference-counted loading flag shared by concurrent data loads."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from dashcore.domain.observable import Observable

LOGGER = logging.getLogger(__name__)


class LoadingAggregator:
    """Keeps ``is_loading`` true while at least one load is in flight.

    Every ``begin()`` must be matched by one ``end()``; prefer ``track()``
    which guarantees the pairing. A stray ``end()`` is clamped at zero.
    """

    def __init__(self) -> None:
        self._active_count = 0
        self.state: Observable[bool] = Observable(False)

    @property
    def active_count(self) -> int:
        return self._active_count

    @property
    def is_loading(self) -> bool:
        return self.state.value

    def begin(self) -> None:
        self._active_count += 1
        self._publish()

    def end(self) -> None:
        if self._active_count == 0:
            LOGGER.debug("Unmatched end() on loading aggregator ignored.")
        self._active_count = max(0, self._active_count - 1)
        self._publish()

    def reset(self) -> None:
        self._active_count = 0
        self._publish()

    # View-facing names
    start_loading = begin
    stop_loading = end
    reset_loading = reset

    @contextmanager
    def track(self) -> Iterator["LoadingAggregator"]:
        """Bracket a block with ``begin()``/``end()`` on every exit path."""
        self.begin()
        try:
            yield self
        finally:
            self.end()

    def _publish(self) -> None:
        self.state.set(self._active_count > 0)


__all__ = ["LoadingAggregator"]
