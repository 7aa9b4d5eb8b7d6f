"""pypouch - Reactive value store with a composable plugin pipeline."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pypouch")
except PackageNotFoundError:
    __version__ = "0+local"
from pypouch._scheduler import AsyncioScheduler, CancelHandle, ManualScheduler, Scheduler
from pypouch._serialize import CIRCULAR_MARKER, JSON_SERIALIZER, Serializer, safe_dumps, safe_loads
from pypouch._transport import AiohttpTransport, SyncTransport
from pypouch.config import SyncConfig
from pypouch.exceptions import (
    CommitRejectedError,
    PouchConfigError,
    PouchCryptoError,
    PouchError,
    PouchSerializationError,
    PouchStorageError,
    SyncTransportError,
)
from pypouch.plugins import (
    computed,
    debounce,
    encrypt,
    history,
    logger,
    middleware,
    persist,
    schema,
    sync,
    throttle,
    validate,
)
from pypouch.state.plugin import CommitOrigin, Plugin
from pypouch.state.store import Pouch, pouch, store
from pypouch.storage import FileStorage, KeyValueStorage, MemoryStorage

__all__ = [
    "__version__",
    "AiohttpTransport",
    "AsyncioScheduler",
    "CIRCULAR_MARKER",
    "CancelHandle",
    "CommitOrigin",
    "CommitRejectedError",
    "FileStorage",
    "JSON_SERIALIZER",
    "KeyValueStorage",
    "ManualScheduler",
    "MemoryStorage",
    "Plugin",
    "Pouch",
    "PouchConfigError",
    "PouchCryptoError",
    "PouchError",
    "PouchSerializationError",
    "PouchStorageError",
    "Scheduler",
    "Serializer",
    "SyncConfig",
    "SyncTransport",
    "SyncTransportError",
    "computed",
    "debounce",
    "encrypt",
    "history",
    "logger",
    "middleware",
    "persist",
    "pouch",
    "safe_dumps",
    "safe_loads",
    "schema",
    "store",
    "sync",
    "throttle",
    "validate",
]
