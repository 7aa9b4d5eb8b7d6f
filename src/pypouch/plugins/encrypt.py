"""Keep the committed value as an encrypted literal.

Values are JSON-encoded and encrypted with Fernet (AES-128-CBC + HMAC).
The store then holds ``"encrypted:<token>"`` strings, which is what other
plugins (``persist``, ``sync``) see and write out.
"""

from __future__ import annotations

import base64
import hashlib
import logging
from typing import Any, Generic, TypeVar

from cryptography.fernet import Fernet, InvalidToken

from pypouch._serialize import safe_dumps, safe_loads
from pypouch.exceptions import PouchCryptoError, PouchSerializationError
from pypouch.state.plugin import CommitOrigin, Plugin

_logger = logging.getLogger(__name__)

T = TypeVar("T")

PREFIX = "encrypted:"


def _fernet_for(secret: str | bytes) -> Fernet:
    raw = secret.encode("utf-8") if isinstance(secret, str) else secret
    try:
        return Fernet(raw)
    except ValueError:
        # Not a Fernet key; derive one from the passphrase.
        return Fernet(base64.urlsafe_b64encode(hashlib.sha256(raw).digest()))


class Encrypt(Plugin[T], Generic[T]):
    name = "encrypt"

    def __init__(self, secret: str | bytes) -> None:
        self._fernet = _fernet_for(secret)

    def encrypt(self, value: Any) -> str:
        token = self._fernet.encrypt(safe_dumps(value).encode("utf-8"))
        return PREFIX + token.decode("ascii")

    def decrypt(self, literal: str) -> Any:
        if not literal.startswith(PREFIX):
            raise PouchCryptoError("value is not an encrypted literal")
        try:
            plaintext = self._fernet.decrypt(literal[len(PREFIX) :].encode("ascii"))
        except (InvalidToken, UnicodeEncodeError) as exc:
            raise PouchCryptoError("Failed to decrypt value") from exc
        return safe_loads(plaintext)

    def initialize(self, value: T) -> T:
        if isinstance(value, str) and value.startswith(PREFIX):
            try:
                decrypted: T = self.decrypt(value)
            except PouchSerializationError as exc:
                _logger.error("Failed to decrypt initial value: %s", exc)
                return value
            return decrypted
        return value

    def on_commit(self, new_value: T, old_value: T, origin: CommitOrigin) -> T:
        if isinstance(new_value, str) and new_value.startswith(PREFIX):
            return new_value
        try:
            encrypted: Any = self.encrypt(new_value)
        except PouchSerializationError as exc:
            _logger.error("Failed to encrypt value: %s", exc)
            return new_value
        return encrypted


def encrypt(secret: str | bytes) -> Encrypt[T]:
    """Encrypt committed values with *secret* (a Fernet key or a passphrase)."""
    return Encrypt(secret)
