"""Observable value holder used in place of implicit UI reactivity.

Views and derived computations register listeners explicitly; every change
is delivered as ``listener(new, old)``.
"""

from __future__ import annotations

from typing import Callable, Generic, List, Optional, TypeVar

T = TypeVar("T")

Listener = Callable[[T, Optional[T]], None]
Unsubscribe = Callable[[], None]


class Observable(Generic[T]):
    """Single value subject with ``subscribe(listener) -> unsubscribe``."""

    def __init__(self, value: T) -> None:
        self._value = value
        self._listeners: List[Listener] = []

    @property
    def value(self) -> T:
        return self._value

    def set(self, value: T) -> bool:
        """Replace the value; listeners run only when it actually changed."""
        old = self._value
        if value is old:
            return False
        try:
            unchanged = value == old
        except Exception:
            unchanged = False
        self._value = value
        if unchanged:
            return False
        self._emit(value, old)
        return True

    def notify(self) -> None:
        """Announce an in-place mutation of the current value."""
        self._emit(self._value, self._value)

    def subscribe(self, listener: Listener) -> Unsubscribe:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass

        return unsubscribe

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def _emit(self, new: T, old: Optional[T]) -> None:
        for listener in list(self._listeners):
            listener(new, old)


__all__ = ["Listener", "Observable", "Unsubscribe"]
