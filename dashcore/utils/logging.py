from __future__ import annotations

import logging
import os
from typing import Mapping, Optional

_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
_DATEFMT = "%H:%M:%S"
LEVEL_ENV = "DASHCORE_LOG_LEVEL"
DEBUG_ENV = "DASHCORE_DEBUG"
# Chatty transport/UI loggers kept at WARNING unless debugging.
NOISY_LOGGERS = ("urllib3", "requests", "nicegui")


def _parse_level(value: int | str | None) -> Optional[int]:
    if isinstance(value, int):
        return value
    text = (value or "").strip()
    if not text:
        return None
    if text.isdigit():
        return int(text)
    level = logging.getLevelName(text.upper())
    return level if isinstance(level, int) else None


def env_level(environ: Optional[Mapping[str, str]] = None) -> Optional[int]:
    """Level forced by the environment, or ``None`` when nothing is set.

    ``DASHCORE_LOG_LEVEL`` wins over a truthy ``DASHCORE_DEBUG``; an
    unparsable level name counts as INFO.
    """
    env = os.environ if environ is None else environ
    raw = env.get(LEVEL_ENV)
    if raw and raw.strip():
        parsed = _parse_level(raw)
        return logging.INFO if parsed is None else parsed
    if (env.get(DEBUG_ENV) or "").strip().lower() in {"1", "true", "yes", "on"}:
        return logging.DEBUG
    return None


def configure_root(
    default_level: int | str = logging.INFO,
    *,
    environ: Optional[Mapping[str, str]] = None,
) -> int:
    """Configure the root logger for a dashboard host process.

    Installs a compact handler when the root has none, applies the
    environment override (or ``default_level``), and caps the transport and
    UI loggers at WARNING unless the effective level is DEBUG.
    Returns the effective level.
    """
    level = env_level(environ)
    if level is None:
        level = _parse_level(default_level) or logging.INFO

    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=level, format=_FORMAT, datefmt=_DATEFMT)
    root.setLevel(level)

    noisy_level = logging.NOTSET if level <= logging.DEBUG else logging.WARNING
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(noisy_level)
    return level


def debug_enabled(environ: Optional[Mapping[str, str]] = None) -> bool:
    level = env_level(environ)
    return level is not None and level <= logging.DEBUG


__all__ = ["configure_root", "debug_enabled", "env_level"]
