"""Custom exception hierarchy for pypouch."""

from __future__ import annotations


class PouchError(Exception):
    """Base exception for all pypouch errors."""


class PouchConfigError(PouchError):
    """Invalid plugin or store configuration."""


class CommitRejectedError(PouchError):
    """A commit hook or interceptor vetoed a proposed value.

    Raised synchronously to the caller of ``set``; the store value is left
    unchanged and no subscriber is notified.
    """

    def __init__(self, message: str, *, value: object = None) -> None:
        self.value = value
        super().__init__(message)


class PouchSerializationError(PouchError):
    """Value could not be encoded, or stored/received data could not be decoded."""


class PouchCryptoError(PouchSerializationError):
    """Encryption or decryption of a persisted value failed."""


class PouchStorageError(PouchError):
    """Key-value storage read or write failure."""

    def __init__(self, message: str, *, key: str = "") -> None:
        self.key = key
        super().__init__(message)


class SyncTransportError(PouchError):
    """HTTP-level failure while syncing (network, non-2xx status)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        url: str = "",
    ) -> None:
        self.status_code = status_code
        self.url = url
        super().__init__(message)
