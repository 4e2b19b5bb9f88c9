"""Classify caught failures into ``ErrorKind`` and user-facing messages."""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Any, Mapping, Optional

from requests import exceptions as req_exc

from dashcore.adapters.api_errors import ApiTimeoutError, parse_error_payload, server_message
from dashcore.domain import messages
from dashcore.domain.errors import ErrorKind
from dashcore.domain.ports import OnlineProbe, Translator

LOGGER = logging.getLogger(__name__)

NETWORK_CODES = frozenset({"NETWORK_ERROR", "ERR_NETWORK", "ECONNABORTED"})
_NETWORK_EXCEPTIONS = (
    asyncio.CancelledError,
    asyncio.TimeoutError,
    TimeoutError,
    ConnectionError,
    req_exc.Timeout,
    req_exc.ConnectionError,
    ApiTimeoutError,
)
_NETWORK_MESSAGE_MARKERS = ("Network Error", "Failed to fetch", "fetch")
_TIMEOUT_RE = re.compile(r"timeout", re.IGNORECASE)
_AUTH_STATUSES = (401, 403)


def _field(failure: Any, name: str) -> Any:
    if isinstance(failure, Mapping):
        return failure.get(name)
    return getattr(failure, name, None)


def _as_status(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        status = int(value)
    except (TypeError, ValueError):
        return None
    return status or None


def extract_status(failure: Any) -> Optional[int]:
    """Return the HTTP-like status carried by ``failure``, if any.

    Looks at ``response.status_code``, ``response.status``, ``status`` and
    ``status_code`` in that order; the first non-zero integer wins.
    """
    if failure is None:
        return None
    response = _field(failure, "response")
    candidates = []
    if response is not None:
        candidates.extend((_field(response, "status_code"), _field(response, "status")))
    candidates.extend((_field(failure, "status"), _field(failure, "status_code")))
    for candidate in candidates:
        status = _as_status(candidate)
        if status is not None:
            return status
    return None


def _message_of(failure: Any) -> str:
    if isinstance(failure, str):
        return failure
    value = _field(failure, "message")
    if isinstance(value, str):
        return value
    if isinstance(failure, BaseException):
        return str(failure)
    return ""


def _name_of(failure: Any) -> str:
    value = _field(failure, "name")
    if isinstance(value, str):
        return value
    if isinstance(failure, BaseException):
        return type(failure).__name__
    return ""


def is_network_error(failure: Any, online: Optional[OnlineProbe] = None) -> bool:
    if failure is None:
        return False
    if isinstance(failure, _NETWORK_EXCEPTIONS):
        return True
    code = _field(failure, "code")
    if isinstance(code, str) and code in NETWORK_CODES:
        return True
    if _name_of(failure) == "AbortError":
        return True
    text = _message_of(failure)
    if _TIMEOUT_RE.search(text):
        return True
    if any(marker in text for marker in _NETWORK_MESSAGE_MARKERS):
        return True
    return online is not None and not online()


def is_permission_error(failure: Any) -> bool:
    return extract_status(failure) in _AUTH_STATUSES


def is_data_error(failure: Any) -> bool:
    status = extract_status(failure)
    return status is not None and 400 <= status < 500 and status not in _AUTH_STATUSES


def is_server_error(failure: Any) -> bool:
    status = extract_status(failure)
    return status is not None and status >= 500


def classify(failure: Any, *, online: Optional[OnlineProbe] = None) -> ErrorKind:
    """Map any caught failure to an ``ErrorKind``. Never raises.

    Transport signals are checked first, then the HTTP-like status.
    """
    try:
        if is_network_error(failure, online):
            return ErrorKind.NETWORK
        if is_permission_error(failure):
            return ErrorKind.PERMISSION
        if is_data_error(failure):
            return ErrorKind.DATA
        if is_server_error(failure):
            return ErrorKind.SERVER
    except Exception:
        LOGGER.debug("Classification failed for %r", failure, exc_info=True)
    return ErrorKind.UNKNOWN


def payload_message(failure: Any) -> Optional[str]:
    """Return a server-supplied ``message`` from the failure payload."""
    if failure is None:
        return None
    message = server_message(_field(failure, "payload"))
    if message:
        return message
    message = server_message(_field(failure, "data"))
    if message:
        return message
    response = _field(failure, "response")
    if response is None:
        return None
    if isinstance(response, Mapping):
        return server_message(response.get("data"))
    return server_message(parse_error_payload(response))


def message_for_kind(
    kind: ErrorKind,
    failure: Any,
    translate: Optional[Translator] = None,
    fallback: Optional[str] = None,
) -> str:
    """Return the localized message recorded in ``ErrorState`` for ``kind``."""
    if kind is ErrorKind.NETWORK:
        return messages.translate_or_default(translate, messages.NETWORK)
    if kind is ErrorKind.PERMISSION:
        return messages.translate_or_default(translate, messages.PERMISSION)
    if kind is ErrorKind.DATA:
        return payload_message(failure) or messages.translate_or_default(translate, messages.DATA)
    if kind is ErrorKind.SERVER:
        return messages.translate_or_default(translate, messages.SERVER)
    if fallback:
        return fallback
    return messages.translate_or_default(translate, messages.GENERIC)


def friendly_message(
    failure: Any,
    translate: Optional[Translator] = None,
    online: Optional[OnlineProbe] = None,
) -> str:
    """Return a message suggesting the next user action for ``failure``."""
    if is_network_error(failure, online):
        return messages.translate_or_default(translate, messages.NETWORK_RETRY)
    if is_permission_error(failure):
        return messages.translate_or_default(translate, messages.PERMISSION_REAUTH)
    server_text = payload_message(failure)
    if server_text:
        return server_text
    text = _message_of(failure) if failure is not None else ""
    if text:
        return text
    return messages.translate_or_default(translate, messages.GENERIC)


__all__ = [
    "NETWORK_CODES",
    "classify",
    "extract_status",
    "friendly_message",
    "is_data_error",
    "is_network_error",
    "is_permission_error",
    "is_server_error",
    "message_for_kind",
    "payload_message",
]
