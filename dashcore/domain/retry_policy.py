from __future__ import annotations

"""Retry policy value object and backoff delay computation."""

import random
from dataclasses import dataclass
from typing import Callable, Optional

RetryPredicate = Callable[[BaseException], bool]
RandomFn = Callable[[], float]


@dataclass(frozen=True)
class RetryPolicy:
    """Per-invocation retry configuration.

    Attributes:
        max_retries: Retries after the first attempt (``0`` = single attempt).
        base_delay_ms: Delay before the first retry, in milliseconds.
        backoff_factor: Multiplier applied per attempt.
        jitter: Scale each delay by a random factor in ``[0.5, 1.0]``.
        should_retry: Predicate deciding whether a failure is retried. ``None``
            means "retry network failures only" and is resolved by the invoker.
    """

    max_retries: int = 2
    base_delay_ms: float = 1000
    backoff_factor: float = 2.0
    jitter: bool = True
    should_retry: Optional[RetryPredicate] = None

    def __post_init__(self) -> None:
        if isinstance(self.max_retries, bool) or int(self.max_retries) != self.max_retries:
            raise ValueError("max_retries must be an integer.")
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0.")
        if not self.base_delay_ms > 0:
            raise ValueError("base_delay_ms must be > 0.")
        if not self.backoff_factor >= 1:
            raise ValueError("backoff_factor must be >= 1.")

    @property
    def max_attempts(self) -> int:
        return int(self.max_retries) + 1

    def base_delay_for(self, attempt: int) -> float:
        """Return the un-jittered delay (ms) before retrying after ``attempt``."""
        if attempt < 0:
            raise ValueError("attempt must be >= 0.")
        return float(self.base_delay_ms) * float(self.backoff_factor) ** attempt

    def delay_for(self, attempt: int, rng: RandomFn = random.random) -> float:
        """Return the delay (ms) to wait after the failed 0-indexed ``attempt``.

        With jitter the full exponential delay is scaled by ``0.5 + rng() * 0.5``.
        """
        delay = self.base_delay_for(attempt)
        if self.jitter:
            delay *= 0.5 + rng() * 0.5
        return delay


__all__ = ["RandomFn", "RetryPolicy", "RetryPredicate"]
