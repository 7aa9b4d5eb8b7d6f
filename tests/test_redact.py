from __future__ import annotations

from pypouch._redact import preview_body, redact_headers


def test_redact_headers_hides_credentials() -> None:
    headers = {
        "Authorization": "Bearer secret",
        "Cookie": "sid=1",
        "X-Session-Token": "tok",
        "Content-Type": "application/json",
    }

    redacted = redact_headers(headers)
    assert redacted["Authorization"] == "<redacted>"
    assert redacted["Cookie"] == "<redacted>"
    assert redacted["X-Session-Token"] == "<redacted>"
    assert redacted["Content-Type"] == "application/json"
    assert headers["Authorization"] == "Bearer secret"


def test_preview_body_truncates_long_strings() -> None:
    preview = preview_body("x" * 600, max_length=10)
    assert preview.startswith("x" * 10)
    assert "<truncated 590 chars>" in preview
    assert preview_body(None) == "<empty>"
    assert preview_body(b"abc") == "<bytes:3b>"
