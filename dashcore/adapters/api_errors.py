"""Typed REST failures raised by dashboard data fetchers.

The HTTP client itself lives outside this package; fetchers translate
``requests`` responses and transport exceptions into these types so the error
classifier sees a stable shape (``status``, ``code``, ``payload``).

Example:
    resp = session.get(url, timeout=5)
    err = error_from_response(resp, "GET /stats")
    if err is not None:
        raise err
"""

from __future__ import annotations

from typing import Any, Iterable, Optional

from requests import exceptions as req_exc

_SNIPPET_LIMIT = 400
_HINT_LIMIT = 200
_CODE_KEYS = ("code", "error_code", "error")
_HINT_KEYS = ("hint", "details", "errors")
_DETAIL_KEYS = ("detail", "message", "error", "title")


class ApiError(RuntimeError):
    """Base class for dashboard API failures.

    Attributes:
        message: Human readable summary including the request context.
        status: HTTP status when a response was received.
        code: Machine readable error code from the payload or transport.
        hint: Short remediation text extracted from the payload.
        payload: Decoded JSON body, or a text snippet when not JSON.
        context: Request label such as ``"GET /stats"``.
    """

    def __init__(
        self,
        message: str,
        *,
        status: Optional[int] = None,
        code: Optional[str] = None,
        hint: Optional[str] = None,
        payload: Any = None,
        context: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status = status
        self.code = code
        self.hint = hint
        self.payload = payload
        self.context = context

    def __repr__(self) -> str:
        return f"{type(self).__name__}(status={self.status!r}, code={self.code!r}, message={self.message!r})"


class ApiClientError(ApiError):
    """Rejected request (HTTP 4xx)."""


class ApiServerError(ApiError):
    """Backend failure (HTTP 5xx)."""


class ApiTimeoutError(ApiError):
    """No usable response: timeout, refused connection, DNS failure."""

    def __init__(self, message: str, *, code: Optional[str] = "ERR_NETWORK", context: Optional[str] = None) -> None:
        super().__init__(message, code=code, context=context)


def error_from_response(resp: Any, ctx: str) -> Optional[ApiError]:
    """Return the typed failure for an error response, ``None`` on success."""
    status = int(getattr(resp, "status_code", 0) or 0)
    if 200 <= status < 400:
        return None

    payload = parse_error_payload(resp)
    detail = _first_text(payload)
    message = f"{ctx}: {detail} (HTTP {status})" if detail else f"{ctx}: HTTP {status}"
    cls = ApiServerError if status >= 500 else ApiClientError
    return cls(
        message,
        status=status,
        code=extract_error_code(payload),
        hint=extract_error_hint(payload),
        payload=payload,
        context=ctx,
    )


def error_from_transport(exc: BaseException, ctx: str) -> ApiError:
    """Map a ``requests`` transport exception onto the API error types."""
    if isinstance(exc, req_exc.Timeout):
        return ApiTimeoutError(f"{ctx}: timeout", code="ECONNABORTED", context=ctx)
    if isinstance(exc, req_exc.ConnectionError):
        return ApiTimeoutError(f"{ctx}: Network Error", context=ctx)
    return ApiError(f"{ctx}: {exc}", context=ctx)


def parse_error_payload(resp: Any) -> Any:
    """Decoded JSON body, else a trimmed text snippet, else ``None``."""
    try:
        return resp.json()
    except (ValueError, AttributeError):
        text = (getattr(resp, "text", "") or "").strip()
        return text[:_SNIPPET_LIMIT] or None


def extract_error_code(payload: Any) -> Optional[str]:
    if not isinstance(payload, dict):
        return None
    for key in _CODE_KEYS:
        value = payload.get(key)
        if value is not None and not isinstance(value, (dict, list)):
            return str(value)
    return None


def extract_error_hint(payload: Any) -> Optional[str]:
    """Compact ``hint``/``details``/``errors`` text; lists are ``;``-joined."""
    if isinstance(payload, list):
        return _flatten(payload)
    if not isinstance(payload, dict):
        return None
    for key in _HINT_KEYS:
        text = _flatten(payload.get(key))
        if text:
            return text
    return None


def server_message(payload: Any) -> Optional[str]:
    """Server-supplied ``message`` of an error payload, also under ``data``."""
    while isinstance(payload, dict):
        value = payload.get("message")
        if isinstance(value, str) and value.strip():
            return value.strip()
        payload = payload.get("data")
    return None


def _first_text(payload: Any) -> Optional[str]:
    if isinstance(payload, str):
        return payload.strip() or None
    if isinstance(payload, dict):
        nested: Iterable[Any] = (payload.get(key) for key in _DETAIL_KEYS)
    elif isinstance(payload, list):
        nested = payload
    else:
        return None
    for item in nested:
        text = _first_text(item)
        if text:
            return text
    return None


def _flatten(data: Any, limit: int = _HINT_LIMIT) -> Optional[str]:
    if data is None:
        return None
    if isinstance(data, list):
        parts = [text for text in (_flatten(item, limit) for item in data) if text][:3]
        text = "; ".join(parts)
    elif isinstance(data, dict):
        pairs = ((key, _flatten(value, limit)) for key, value in list(data.items())[:4])
        text = ", ".join(f"{key}={value}" for key, value in pairs if value)
    else:
        text = str(data).strip()
    return text[:limit] or None


__all__ = [
    "ApiClientError",
    "ApiError",
    "ApiServerError",
    "ApiTimeoutError",
    "error_from_response",
    "error_from_transport",
    "extract_error_code",
    "extract_error_hint",
    "parse_error_payload",
    "server_message",
]
