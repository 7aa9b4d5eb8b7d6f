"""Configuration for pypouch plugins."""

from __future__ import annotations

import dataclasses
import os
from collections.abc import Mapping
from typing import Any

from pypouch.exceptions import PouchConfigError

DEFAULT_SYNC_DEBOUNCE: float = 0.5
DEFAULT_SYNC_TIMEOUT: float = 10.0

_ALLOWED_METHODS: frozenset[str] = frozenset({"POST", "PUT", "PATCH"})


@dataclasses.dataclass(frozen=True)
class SyncConfig:
    """Remote sync configuration.

    Parameters
    ----------
    url : str
        Endpoint read once at setup (``GET``) and written on every commit.
    debounce : float
        Seconds of quiet after the last commit before the outbound write is
        sent. Bursts of commits collapse into one write of the latest value.
    method : str
        HTTP method used for outbound writes (``POST``, ``PUT`` or ``PATCH``).
    headers : Mapping[str, str]
        Extra headers sent with both directions. ``Content-Type`` defaults to
        JSON and may be overridden here.
    timeout : float
        Total per-request timeout in seconds.
    fetch_on_setup : bool
        Seed the store from the endpoint when the plugin is set up.
    """

    url: str
    debounce: float = DEFAULT_SYNC_DEBOUNCE
    method: str = "POST"
    headers: Mapping[str, str] = dataclasses.field(default_factory=dict)
    timeout: float = DEFAULT_SYNC_TIMEOUT
    fetch_on_setup: bool = True

    def __post_init__(self) -> None:
        if not self.url or not self.url.strip():
            raise PouchConfigError("sync url must be non-empty")
        if self.debounce < 0:
            raise PouchConfigError(f"sync debounce must be >= 0, got {self.debounce}")
        if self.timeout <= 0:
            raise PouchConfigError(f"sync timeout must be > 0, got {self.timeout}")
        method = self.method.upper()
        if method not in _ALLOWED_METHODS:
            raise PouchConfigError(f"Unsupported sync method: {self.method!r}")
        object.__setattr__(self, "method", method)
        object.__setattr__(self, "headers", dict(self.headers))

    @classmethod
    def from_env(cls, **overrides: Any) -> SyncConfig:
        """Create configuration from environment variables.

        Reads ``POUCH_SYNC_URL`` and the optional ``POUCH_SYNC_DEBOUNCE``,
        ``POUCH_SYNC_METHOD``, ``POUCH_SYNC_TIMEOUT`` and ``POUCH_SYNC_TOKEN``
        (sent as ``Authorization: Bearer <token>``). Explicit keyword
        arguments override environment values.
        """
        env = os.environ
        config_kwargs: dict[str, Any] = {}

        url = env.get("POUCH_SYNC_URL")
        if url is not None:
            config_kwargs["url"] = url

        method = env.get("POUCH_SYNC_METHOD")
        if method is not None:
            config_kwargs["method"] = method

        for env_key, field_name in (("POUCH_SYNC_DEBOUNCE", "debounce"), ("POUCH_SYNC_TIMEOUT", "timeout")):
            raw = env.get(env_key)
            if raw is None or field_name in overrides:
                continue
            try:
                config_kwargs[field_name] = float(raw)
            except ValueError as exc:
                raise PouchConfigError(f"{env_key} must be a number, got {raw!r}") from exc

        token = env.get("POUCH_SYNC_TOKEN")
        if token:
            headers = dict(overrides.pop("headers", None) or {})
            headers.setdefault("Authorization", f"Bearer {token}")
            config_kwargs["headers"] = headers

        config_kwargs.update(overrides)
        if "url" not in config_kwargs:
            raise PouchConfigError("POUCH_SYNC_URL is not set and no url was given")

        return cls(**config_kwargs)
