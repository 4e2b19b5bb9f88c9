"""Teardown registry tying timers, watchers and tasks to a view lifetime."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, List, Optional, TypeVar

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")
Teardown = Callable[[], Any]


class Scope:
    """Owns teardown hooks and runs them once, newest first, on ``close()``.

    Hooks registered after the scope closed run immediately so a late
    registration cannot leak a timer or task.
    """

    def __init__(self, name: str = "scope") -> None:
        self.name = name
        self._hooks: List[Teardown] = []
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def hook_count(self) -> int:
        return len(self._hooks)

    def add_teardown(self, hook: Teardown) -> Callable[[], None]:
        """Register ``hook``; returns a function that unregisters it."""
        if self._closed:
            self._run(hook)
            return lambda: None
        self._hooks.append(hook)

        def remove() -> None:
            try:
                self._hooks.remove(hook)
            except ValueError:
                pass

        return remove

    def spawn(self, coro: Awaitable[T], *, name: Optional[str] = None) -> "asyncio.Task[T]":
        """Start ``coro`` as a task that is cancelled when the scope closes."""
        if self._closed:
            raise RuntimeError(f"Scope {self.name!r} is closed.")
        task = asyncio.ensure_future(coro)
        if name:
            task.set_name(name)
        remove = self.add_teardown(task.cancel)

        def _done(finished: "asyncio.Task[T]") -> None:
            remove()
            if finished.cancelled():
                return
            exc = finished.exception()
            if exc is not None:
                LOGGER.debug("Task %s in scope %s failed: %r", finished.get_name(), self.name, exc)

        task.add_done_callback(_done)
        return task

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        while self._hooks:
            self._run(self._hooks.pop())

    def _run(self, hook: Teardown) -> None:
        try:
            hook()
        except Exception:
            LOGGER.exception("Teardown hook failed in scope %s", self.name)

    def __enter__(self) -> "Scope":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    async def __aenter__(self) -> "Scope":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.close()


__all__ = ["Scope", "Teardown"]
