"""Typed resilience settings with tolerant payload and environment loaders."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from .retry_policy import RetryPolicy, RetryPredicate

PRIORITY_TIERS: tuple[str, ...] = ("immediate", "normal", "low")
DEFAULT_PRIORITY_DELAYS_MS: Dict[str, int] = {"immediate": 0, "normal": 100, "low": 300}

_ENV_PREFIX = "DASHCORE_"


def _as_int(value: Any, default: int) -> int:
    """Convert mixed values to int with deterministic fallback."""
    try:
        return int(value)
    except (TypeError, ValueError):
        return int(default)


def _as_float(value: Any, default: float) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return float(default)


def _as_bool(value: Any, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in {"1", "true", "yes", "on"}:
        return True
    if text in {"0", "false", "no", "off"}:
        return False
    return default


@dataclass
class ResilienceSettings:
    """Defaults for retries, debounce windows, and error surfacing."""

    max_retries: int = 2
    retry_delay_ms: int = 1000
    backoff_factor: float = 2.0
    jitter: bool = True
    debounce_ms: int = 100
    priority_delays_ms: Dict[str, int] = field(
        default_factory=lambda: dict(DEFAULT_PRIORITY_DELAYS_MS)
    )
    show_notifications: bool = True
    log_errors: bool = True

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "ResilienceSettings":
        """Build settings from a loose mapping; unknown keys are ignored."""
        if not isinstance(payload, Mapping):
            raise ValueError("Settings payload must be a mapping.")
        defaults = cls()
        raw_delays = payload.get("priority_delays_ms") or {}
        if not isinstance(raw_delays, Mapping):
            raw_delays = {}
        delays = {
            tier: max(0, _as_int(raw_delays.get(tier), defaults.priority_delays_ms[tier]))
            for tier in PRIORITY_TIERS
        }
        return cls(
            max_retries=max(0, _as_int(payload.get("max_retries"), defaults.max_retries)),
            retry_delay_ms=max(1, _as_int(payload.get("retry_delay_ms"), defaults.retry_delay_ms)),
            backoff_factor=max(1.0, _as_float(payload.get("backoff_factor"), defaults.backoff_factor)),
            jitter=_as_bool(payload.get("jitter"), defaults.jitter),
            debounce_ms=max(0, _as_int(payload.get("debounce_ms"), defaults.debounce_ms)),
            priority_delays_ms=delays,
            show_notifications=_as_bool(payload.get("show_notifications"), defaults.show_notifications),
            log_errors=_as_bool(payload.get("log_errors"), defaults.log_errors),
        )

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ResilienceSettings":
        """Build settings from ``DASHCORE_*`` environment variables.

        Recognized: ``DASHCORE_MAX_RETRIES``, ``DASHCORE_RETRY_DELAY_MS``,
        ``DASHCORE_BACKOFF_FACTOR``, ``DASHCORE_JITTER``,
        ``DASHCORE_DEBOUNCE_MS``, ``DASHCORE_SHOW_NOTIFICATIONS``.
        """
        env = os.environ if environ is None else environ
        payload: Dict[str, Any] = {}
        for key in (
            "max_retries",
            "retry_delay_ms",
            "backoff_factor",
            "jitter",
            "debounce_ms",
            "show_notifications",
        ):
            value = env.get(_ENV_PREFIX + key.upper())
            if value is not None and value.strip():
                payload[key] = value.strip()
        return cls.from_payload(payload)

    def to_payload(self) -> Dict[str, Any]:
        return {
            "max_retries": int(self.max_retries),
            "retry_delay_ms": int(self.retry_delay_ms),
            "backoff_factor": float(self.backoff_factor),
            "jitter": bool(self.jitter),
            "debounce_ms": int(self.debounce_ms),
            "priority_delays_ms": dict(self.priority_delays_ms),
            "show_notifications": bool(self.show_notifications),
            "log_errors": bool(self.log_errors),
        }

    def retry_policy(self, should_retry: Optional[RetryPredicate] = None) -> RetryPolicy:
        return RetryPolicy(
            max_retries=self.max_retries,
            base_delay_ms=self.retry_delay_ms,
            backoff_factor=self.backoff_factor,
            jitter=self.jitter,
            should_retry=should_retry,
        )

    def priority_delay(self, tier: str) -> int:
        return int(self.priority_delays_ms.get(tier, DEFAULT_PRIORITY_DELAYS_MS[tier]))


__all__ = ["DEFAULT_PRIORITY_DELAYS_MS", "PRIORITY_TIERS", "ResilienceSettings"]
