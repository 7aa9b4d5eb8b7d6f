"""Best-effort two-way reconciliation with a remote HTTP endpoint."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Coroutine, Mapping
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from pypouch._scheduler import AsyncioScheduler, CancelHandle, Scheduler
from pypouch._serialize import JSON_SERIALIZER, Serializer
from pypouch._transport import AiohttpTransport, SyncTransport
from pypouch.config import DEFAULT_SYNC_DEBOUNCE, DEFAULT_SYNC_TIMEOUT, SyncConfig
from pypouch.exceptions import PouchConfigError
from pypouch.state.plugin import CommitOrigin, Plugin

if TYPE_CHECKING:
    from pypouch.state.store import Pouch

_logger = logging.getLogger(__name__)

T = TypeVar("T")

ErrorHandler = Callable[[Exception], None]

_NOTHING: Any = object()


def _log_error(error: Exception) -> None:
    _logger.error("Sync failed: %s", error)


class Sync(Plugin[T], Generic[T]):
    """Seed the store from a remote endpoint and push every commit back.

    Inbound: one fetch when the plugin is set up inside a running event loop.
    A successful response is committed with :attr:`CommitOrigin.REMOTE`
    unless a local commit has already happened, in which case the local
    value wins.

    Outbound: after every local commit a debounced write is scheduled; a
    burst of commits produces one write carrying the latest value. Writes
    are fire-and-forget and are not sequenced against each other.

    Transport and decoding failures in either direction go to ``on_error``
    and never reach the store's callers.
    """

    name = "sync"

    def __init__(
        self,
        config: SyncConfig,
        *,
        on_error: ErrorHandler | None = None,
        serializer: Serializer | None = None,
        transport: SyncTransport | None = None,
        scheduler: Scheduler | None = None,
    ) -> None:
        self.config = config
        self._on_error: ErrorHandler = on_error or _log_error
        self._serializer = serializer or JSON_SERIALIZER
        self._owns_transport = transport is None
        self._transport: SyncTransport = transport or AiohttpTransport()
        self._scheduler: Scheduler = scheduler or AsyncioScheduler()
        self._timer: CancelHandle | None = None
        self._latest: Any = _NOTHING
        self._local_commits = 0
        self._tasks: set[asyncio.Task[None]] = set()
        self._pouch: Pouch[T] | None = None

    @property
    def headers(self) -> dict[str, str]:
        return {"Content-Type": "application/json", **self.config.headers}

    def setup(self, pouch: Pouch[T]) -> None:
        if self._pouch is not None:
            raise PouchConfigError("sync plugin instances cannot be shared between stores")
        self._pouch = pouch
        pouch.attach("sync", self)

        if not self.config.fetch_on_setup:
            return
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            _logger.warning("No running event loop; skipping initial fetch from %s", self.config.url)
            return
        self._spawn(self._pull())

    def after_commit(self, new_value: T, old_value: T, origin: CommitOrigin) -> None:
        if origin is CommitOrigin.REMOTE:
            return
        self._local_commits += 1
        self._latest = new_value
        try:
            timer = self._scheduler.call_later(self.config.debounce, self._send_latest)
        except RuntimeError as exc:
            # No loop to run the write on; the value stays pending for flush().
            self._report(exc)
            return
        if self._timer is not None:
            self._timer.cancel()
        self._timer = timer

    @property
    def pending(self) -> bool:
        """Whether an outbound write is scheduled but not yet sent."""
        return self._latest is not _NOTHING

    def flush(self) -> None:
        """Send the scheduled outbound write now."""
        if self._timer is not None:
            self._timer.cancel()
        self._send_latest()

    async def drain(self) -> None:
        """Wait for every in-flight request to finish."""
        while self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    async def aclose(self) -> None:
        """Cancel the pending write, wait for in-flight requests, release the transport."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._latest = _NOTHING
        await self.drain()
        if self._owns_transport:
            await self._transport.close()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    async def _pull(self) -> None:
        commits_before = self._local_commits
        try:
            text = await self._transport.fetch(self.config.url, headers=self.headers, timeout=self.config.timeout)
            value = self._serializer.loads(text)
        except Exception as exc:
            self._report(exc)
            return

        if self._local_commits != commits_before or self._pouch is None:
            _logger.info("Local value changed before %s responded; keeping it", self.config.url)
            return

        try:
            self._pouch.commit(value, CommitOrigin.REMOTE)
        except Exception as exc:
            # A commit hook vetoed the remote value; the local one stays.
            self._report(exc)

    def _send_latest(self) -> None:
        self._timer = None
        value, self._latest = self._latest, _NOTHING
        if value is _NOTHING:
            return
        try:
            body = self._serializer.dumps(value)
        except Exception as exc:
            self._report(exc)
            return
        self._spawn(self._push(body))

    async def _push(self, body: str) -> None:
        try:
            await self._transport.push(
                self.config.url,
                body,
                method=self.config.method,
                headers=self.headers,
                timeout=self.config.timeout,
            )
        except Exception as exc:
            self._report(exc)

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            coro.close()
            self._report(RuntimeError("sync requires a running asyncio event loop"))
            return
        task = loop.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _report(self, error: Exception) -> None:
        try:
            self._on_error(error)
        except Exception:
            _logger.exception("Sync error handler raised while handling %r", error)


def sync(
    url: str | SyncConfig,
    *,
    debounce: float = DEFAULT_SYNC_DEBOUNCE,
    headers: Mapping[str, str] | None = None,
    method: str = "POST",
    timeout: float = DEFAULT_SYNC_TIMEOUT,
    fetch_on_setup: bool = True,
    on_error: ErrorHandler | None = None,
    serializer: Serializer | None = None,
    transport: SyncTransport | None = None,
    scheduler: Scheduler | None = None,
) -> Sync[T]:
    """Create a sync plugin for *url* (or a prepared :class:`SyncConfig`)."""
    if isinstance(url, SyncConfig):
        config = url
    else:
        config = SyncConfig(
            url=url,
            debounce=debounce,
            method=method,
            headers=headers or {},
            timeout=timeout,
            fetch_on_setup=fetch_on_setup,
        )
    return Sync(config, on_error=on_error, serializer=serializer, transport=transport, scheduler=scheduler)
