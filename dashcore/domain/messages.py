"""Message keys and built-in English defaults for user-facing error text."""

from __future__ import annotations

import logging
from typing import Dict, Optional

from .ports import Translator

LOGGER = logging.getLogger(__name__)

GENERIC = "error.generic"
NETWORK = "error.network"
NETWORK_RETRY = "error.networkRetry"
PERMISSION = "error.permission"
PERMISSION_REAUTH = "error.permissionReauth"
DATA = "error.data"
SERVER = "error.server"

DEFAULT_MESSAGES: Dict[str, str] = {
    GENERIC: "Operation failed, please try again later.",
    NETWORK: "Network connection failed, please check your connection.",
    NETWORK_RETRY: "Network connection failed, please check your connection and retry.",
    PERMISSION: "Insufficient permissions or session expired.",
    PERMISSION_REAUTH: "Insufficient permissions or session expired, please sign in again.",
    DATA: "Data request failed.",
    SERVER: "Service unavailable, please try again later.",
}


def translate_or_default(
    translate: Optional[Translator], key: str, fallback: Optional[str] = None
) -> str:
    """Resolve ``key`` through ``translate``, falling back to a built-in string.

    A lookup that returns the key unchanged (or nothing) counts as "no
    translation found". Lookup failures are logged and also fall back.
    """
    default = fallback if fallback is not None else DEFAULT_MESSAGES.get(key, key)
    if translate is None:
        return default
    try:
        text = translate(key)
    except Exception:
        LOGGER.debug("Translation lookup failed for %s", key, exc_info=True)
        return default
    if not text or text == key:
        return default
    return str(text)


__all__ = [
    "DATA",
    "DEFAULT_MESSAGES",
    "GENERIC",
    "NETWORK",
    "NETWORK_RETRY",
    "PERMISSION",
    "PERMISSION_REAUTH",
    "SERVER",
    "translate_or_default",
]
