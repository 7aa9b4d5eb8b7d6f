"""HTTP transport for the sync plugin."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Protocol

import aiohttp

from pypouch._redact import preview_body, redact_headers
from pypouch.exceptions import SyncTransportError

_logger = logging.getLogger(__name__)


class SyncTransport(Protocol):
    """Structural transport interface used by the sync plugin.

    Having a protocol here makes it easy to pass test doubles while keeping
    the production implementation (`AiohttpTransport`) concrete.
    """

    async def fetch(self, url: str, *, headers: Mapping[str, str], timeout: float) -> str:
        ...

    async def push(
        self,
        url: str,
        body: str,
        *,
        method: str,
        headers: Mapping[str, str],
        timeout: float,
    ) -> None:
        ...

    async def close(self) -> None:
        ...


class AiohttpTransport:
    """aiohttp-backed transport.

    A caller-supplied ``ClientSession`` is used as-is and never closed here;
    otherwise a session is created lazily and owned by the transport.
    """

    def __init__(self, session: aiohttp.ClientSession | None = None) -> None:
        self._external_session = session is not None
        self._session = session

    def _http(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
            self._external_session = False
        return self._session

    async def fetch(self, url: str, *, headers: Mapping[str, str], timeout: float) -> str:
        _logger.debug("GET %s headers=%s", url, redact_headers(headers))
        return await self._request("GET", url, None, headers, timeout)

    async def push(
        self,
        url: str,
        body: str,
        *,
        method: str,
        headers: Mapping[str, str],
        timeout: float,
    ) -> None:
        _logger.debug("%s %s headers=%s body=%s", method, url, redact_headers(headers), preview_body(body))
        await self._request(method, url, body, headers, timeout)

    async def _request(
        self,
        method: str,
        url: str,
        body: str | None,
        headers: Mapping[str, str],
        timeout: float,
    ) -> str:
        try:
            async with self._http().request(
                method,
                url,
                data=body,
                headers=dict(headers),
                timeout=aiohttp.ClientTimeout(total=timeout),
            ) as resp:
                text = await resp.text()
                if resp.status >= 400:
                    raise SyncTransportError(
                        f"HTTP {resp.status} from {method} {url}: {text[:200]}",
                        status_code=resp.status,
                        url=url,
                    )
        except SyncTransportError:
            raise
        except (aiohttp.ClientError, TimeoutError) as exc:
            raise SyncTransportError(f"{method} {url} failed: {exc!r}", url=url) from exc

        _logger.debug("%s %s -> %s", method, url, preview_body(text))
        return text

    async def close(self) -> None:
        if self._session is not None and not self._external_session and not self._session.closed:
            await self._session.close()
        self._session = None
