"""Error state machine, bounded retry, and safe wrappers for view data loads.

``ErrorHandling`` is owned by one UI scope (typically a ``DashboardVM``). It
keeps the last classified failure in an observable ``ErrorState`` and wraps
async fetches with exponential backoff retries.

Call context:
    - ``DashboardVM.load`` -> ``ErrorHandling.invoke`` -> fetch callable.
    - Views read ``error_state`` and call ``clear_error`` for the dismiss
      action; the manual retry action re-runs the view load.
"""

from __future__ import annotations

import asyncio
import logging
import random
from contextlib import nullcontext
from dataclasses import replace
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Optional, TypeVar

from dashcore.domain import messages
from dashcore.domain.errors import ErrorKind, ErrorState, HandledError
from dashcore.domain.observable import Observable
from dashcore.domain.ports import Notifier, OnlineProbe, SleepFn, Translator, no_notifier
from dashcore.domain.retry_policy import RandomFn, RetryPolicy, RetryPredicate
from dashcore.domain.settings import ResilienceSettings
from dashcore.usecases import error_mapping

if TYPE_CHECKING:  # pragma: no cover - type checking helper
    from dashcore.app.loading import LoadingAggregator

T = TypeVar("T")

LOGGER = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


class ErrorHandling:
    """Classified error state plus retrying invocation for one UI scope."""

    def __init__(
        self,
        *,
        translate: Optional[Translator] = None,
        notify: Optional[Notifier] = None,
        online: Optional[OnlineProbe] = None,
        loading: Optional["LoadingAggregator"] = None,
        settings: Optional[ResilienceSettings] = None,
        sleep: Optional[SleepFn] = None,
        rng: Optional[RandomFn] = None,
    ) -> None:
        """Wire host collaborators.

        Args:
            translate: Message lookup; missing keys fall back to English defaults.
            notify: Toast callback for user-visible errors.
            online: Connectivity probe; offline hosts classify failures as network.
            loading: Aggregator bracketing every ``invoke`` call when given.
            settings: Retry defaults and notification switches.
            sleep: Coroutine used for backoff waits (seconds).
            rng: Uniform ``[0, 1)`` source for jitter.
        """
        self.settings = settings or ResilienceSettings()
        self._translate = translate
        self._notify = notify or no_notifier
        self._online = online
        self._loading = loading
        self._sleep: SleepFn = sleep or asyncio.sleep
        self._rng: RandomFn = rng or random.random
        self.state: Observable[ErrorState] = Observable(ErrorState.clear())

    # ------------------------------------------------------------------
    # State machine
    # ------------------------------------------------------------------
    @property
    def error_state(self) -> ErrorState:
        return self.state.value

    def set_error(self, error: BaseException | str, kind: ErrorKind = ErrorKind.UNKNOWN) -> None:
        """Enter (or overwrite) the errored state; the retry count is kept."""
        if isinstance(error, str):
            text = error
        else:
            text = getattr(error, "message", None) or str(error)
        self.state.set(
            replace(
                self.state.value,
                has_error=True,
                message=str(text),
                kind=ErrorKind.coerce(kind),
                timestamp=_now(),
            )
        )

    def clear_error(self) -> None:
        self.state.set(ErrorState(timestamp=_now()))

    def increment_retry(self) -> None:
        current = self.state.value
        self.state.set(replace(current, retry_count=current.retry_count + 1))

    def reset_retry(self) -> None:
        current = self.state.value
        if current.retry_count:
            self.state.set(replace(current, retry_count=0))

    # ------------------------------------------------------------------
    # Classification
    # ------------------------------------------------------------------
    def classify(self, error: Any) -> ErrorKind:
        return error_mapping.classify(error, online=self._online)

    def is_network_error(self, error: Any) -> bool:
        return error_mapping.is_network_error(error, self._online)

    def is_permission_error(self, error: Any) -> bool:
        return error_mapping.is_permission_error(error)

    def is_data_error(self, error: Any) -> bool:
        return error_mapping.is_data_error(error)

    def is_server_error(self, error: Any) -> bool:
        return error_mapping.is_server_error(error)

    def handle_error(
        self,
        error: Any,
        *,
        show_message: bool = True,
        log_error: Optional[bool] = None,
        retryable: bool = False,
        fallback_message: Optional[str] = None,
    ) -> HandledError:
        """Classify ``error``, record it in ``error_state`` and surface it."""
        if log_error is None:
            log_error = self.settings.log_errors
        if log_error:
            LOGGER.error(
                "Error handled: %r",
                error,
                exc_info=error if isinstance(error, BaseException) else None,
            )

        kind = self.classify(error)
        fallback = fallback_message or messages.translate_or_default(
            self._translate, messages.GENERIC
        )
        message = error_mapping.message_for_kind(kind, error, self._translate, fallback)
        self.set_error(message, kind)

        if show_message and self.settings.show_notifications:
            self._notify(message)
        return HandledError(kind=kind, message=message, retryable=retryable)

    def get_friendly_error_message(self, error: Any) -> str:
        return error_mapping.friendly_message(error, self._translate, self._online)

    # ------------------------------------------------------------------
    # Invocation wrappers
    # ------------------------------------------------------------------
    async def invoke(
        self,
        operation: Callable[[], Awaitable[T]],
        policy: Optional[RetryPolicy] = None,
        *,
        record: bool = True,
    ) -> T:
        """Run ``operation`` with bounded retries and record the outcome.

        Args:
            operation: Zero-argument coroutine factory, called once per attempt.
            policy: Retry limits; defaults to the settings policy.
            record: When false the final failure is re-raised without going
                through ``handle_error`` (no ErrorState update, no toast), so
                the caller can decide whether it is still relevant.

        Raises:
            Exception: The last failure once retries are exhausted or the
                policy refuses a retry.
        """
        policy = policy or self.settings.retry_policy()
        should_retry: RetryPredicate = policy.should_retry or self.is_network_error
        self.reset_retry()
        bracket = self._loading.track() if self._loading is not None else nullcontext()

        with bracket:
            attempt = 0
            while True:
                try:
                    result = await operation()
                except Exception as exc:
                    if attempt >= policy.max_retries or not should_retry(exc):
                        failure = exc
                        break
                    self.increment_retry()
                    delay_ms = policy.delay_for(attempt, self._rng)
                    LOGGER.warning(
                        "Attempt %d/%d failed (%s); retrying in %.0f ms",
                        attempt + 1,
                        policy.max_attempts,
                        type(exc).__name__,
                        delay_ms,
                    )
                    await self._sleep(delay_ms / 1000.0)
                else:
                    self.clear_error()
                    return result
                attempt += 1

        if record:
            self.handle_error(failure, retryable=policy.max_retries > 0)
        raise failure

    async def with_retry(
        self,
        operation: Callable[[], Awaitable[T]],
        max_retries: Optional[int] = None,
        base_delay_ms: Optional[float] = None,
        *,
        should_retry: Optional[RetryPredicate] = None,
        factor: Optional[float] = None,
        jitter: Optional[bool] = None,
    ) -> T:
        """Convenience form of ``invoke`` taking the policy fields directly."""
        policy = RetryPolicy(
            max_retries=self.settings.max_retries if max_retries is None else max_retries,
            base_delay_ms=self.settings.retry_delay_ms if base_delay_ms is None else base_delay_ms,
            backoff_factor=self.settings.backoff_factor if factor is None else factor,
            jitter=self.settings.jitter if jitter is None else jitter,
            should_retry=should_retry,
        )
        return await self.invoke(operation, policy)

    async def safe_async(self, operation: Callable[[], Awaitable[T]], fallback: T) -> T:
        """Run ``operation`` once; on failure record the error and return ``fallback``."""
        try:
            result = await operation()
        except Exception as exc:
            self.handle_error(exc, show_message=False)
            return fallback
        self.clear_error()
        return result


__all__ = ["ErrorHandling"]
