"""Helpers for safe debug logging.

Sync requests carry caller-supplied headers which frequently hold bearer
tokens, API keys or cookies, and bodies which may be large serialized
values. Both are passed through here before being logged at DEBUG.
"""

from __future__ import annotations

from collections.abc import Mapping

_SENSITIVE_HEADERS: frozenset[str] = frozenset(
    {
        "authorization",
        "proxy-authorization",
        "cookie",
        "set-cookie",
        "x-api-key",
        "x-auth-token",
        "x-csrf-token",
    }
)

# Substrings that mark a custom header as secret-bearing.
_SENSITIVE_MARKERS: tuple[str, ...] = ("token", "secret", "password", "apikey", "api-key")


def _is_sensitive(name: str) -> bool:
    lowered = name.strip().lower()
    if lowered in _SENSITIVE_HEADERS:
        return True
    return any(marker in lowered for marker in _SENSITIVE_MARKERS)


def redact_headers(headers: Mapping[str, str]) -> dict[str, str]:
    """Return a copy of *headers* with secret-bearing values replaced."""
    return {name: "<redacted>" if _is_sensitive(name) else value for name, value in headers.items()}


def preview_body(body: str | bytes | None, *, max_length: int = 256) -> str:
    """Return a bounded, log-friendly preview of a request/response body."""
    if body is None:
        return "<empty>"
    if isinstance(body, bytes):
        return f"<bytes:{len(body)}b>"
    if len(body) > max_length:
        return f"{body[:max_length]}…<truncated {len(body) - max_length} chars>"
    return body
