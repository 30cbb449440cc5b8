"""Typed HTTP failures raised by the update-server adapter.

All of them derive from ``NetworkError`` so use cases can treat any transport
problem as one failure kind, while tests and logs still see the status code
and the decoded server payload.
"""

from __future__ import annotations

from typing import Any, Iterable, Optional

from liveupdate.domain.errors import NetworkError

_MESSAGE_KEYS = ("detail", "message", "error", "title")
_CODE_KEYS = ("code", "error_code", "error")
_HINT_KEYS = ("hint", "details", "errors")
_SNIPPET_LIMIT = 400


class ApiError(NetworkError):
    """Update server answered with something the adapter cannot use."""

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
        super().__init__(message, code=code, hint=hint or "")
        self.status = status
        self.payload = payload
        self.context = context


class ApiClientError(ApiError):
    """HTTP 4xx (bad request, unknown app id, missing bundle)."""


class ApiServerError(ApiError):
    """HTTP 5xx from the update server or CDN."""


class ApiTimeoutError(ApiError):
    """No response: timeout or connection failure after all attempts."""

    def __init__(self, message: str, *, context: Optional[str] = None) -> None:
        super().__init__(message, code="bundle.network_timeout", context=context)


def parse_error_payload(resp: Any) -> Any:
    """Return the decoded error body, a text snippet, or ``None``; never raises."""
    try:
        return resp.json()
    except Exception:
        text = getattr(resp, "text", "") or ""
        return text[:_SNIPPET_LIMIT] or None


def build_error_message(ctx: str, status: int, payload: Any) -> str:
    detail = _find_text(payload)
    suffix = f"{detail} (HTTP {status})" if detail else f"HTTP {status}"
    return f"{ctx}: {suffix}"


def extract_error_code(payload: Any) -> Optional[str]:
    if not isinstance(payload, dict):
        return None
    value = _first_present(payload, _CODE_KEYS)
    return None if value is None else str(value)


def extract_error_hint(payload: Any) -> Optional[str]:
    if isinstance(payload, str):
        return payload.strip() or None
    if not isinstance(payload, dict):
        return None
    for key in _HINT_KEYS:
        if key in payload:
            text = _summarize(payload[key])
            if text:
                return text
    return None


def _first_present(payload: dict, keys: Iterable[str]) -> Any:
    for key in keys:
        if payload.get(key) is not None:
            return payload[key]
    return None


def _find_text(payload: Any) -> Optional[str]:
    """Depth-first search for the first human-readable message in ``payload``."""
    if isinstance(payload, str):
        return payload.strip() or None
    if isinstance(payload, dict):
        candidates = [payload.get(key) for key in _MESSAGE_KEYS]
    elif isinstance(payload, list):
        candidates = list(payload)
    else:
        return None
    for candidate in candidates:
        if isinstance(candidate, (str, dict, list)):
            found = _find_text(candidate)
            if found:
                return found
    return None


def _summarize(data: Any, limit: int = 200) -> Optional[str]:
    if data is None:
        return None
    if isinstance(data, list):
        text = "; ".join(filter(None, (_summarize(item, limit) for item in data[:3])))
    elif isinstance(data, dict):
        pairs = ((key, _summarize(value, limit)) for key, value in list(data.items())[:4])
        text = ", ".join(f"{key}={value}" for key, value in pairs if value)
    else:
        text = str(data).strip()
    return text[:limit] or None


__all__ = [
    "ApiClientError",
    "ApiError",
    "ApiServerError",
    "ApiTimeoutError",
    "build_error_message",
    "extract_error_code",
    "extract_error_hint",
    "parse_error_payload",
]
