from __future__ import annotations

import logging

import pytest
from cryptography.fernet import Fernet
from pydantic import BaseModel

from pypouch import CommitRejectedError, ManualScheduler, computed, debounce, encrypt, logger, middleware, pouch, schema, validate
from pypouch.plugins import ValidationResult
from pypouch.plugins.encrypt import PREFIX


class _Todo(BaseModel):
    title: str
    done: bool = False


def test_computed_tracks_commits() -> None:
    items = pouch([1, 2], [computed(sum)])

    assert items.computed is not None
    assert items.computed() == 3
    items.set(lambda xs: [*xs, 10])
    assert items.computed() == 13


def test_middleware_applies_functions_in_order() -> None:
    text = pouch("", [middleware(lambda value, old: value.strip(), lambda value, old: old + value)])

    text.set("  ab ")
    text.set(lambda current: current + "c ")

    assert text.get() == "ababc"


def test_validate_rejects_before_commit() -> None:
    age = pouch(30, [validate(lambda v: ValidationResult(v >= 0, "age must be positive"))])

    with pytest.raises(CommitRejectedError, match="age must be positive"):
        age.set(-1)
    assert age.get() == 30

    age.set(lambda v: v + 1)
    assert age.get() == 31


def test_validate_accepts_boolean_predicates() -> None:
    name = pouch("a", [validate(bool)])
    with pytest.raises(CommitRejectedError, match="Validation failed"):
        name.set("")


def test_validate_runs_before_debounce_when_installed_last() -> None:
    clock = ManualScheduler()
    value = pouch(0, [debounce(0.5, scheduler=clock), validate(lambda v: v < 10)])

    with pytest.raises(CommitRejectedError):
        value.set(11)
    value.set(5)
    clock.advance(0.5)

    assert value.get() == 5


def test_schema_rejects_without_mutating() -> None:
    todo = pouch({"title": "write", "done": False}, [schema(_Todo)])

    with pytest.raises(CommitRejectedError, match="title"):
        todo.set({"done": True})

    assert todo.get() == {"title": "write", "done": False}


def test_schema_can_coerce_to_model() -> None:
    todo = pouch(_Todo(title="a"), [schema(_Todo, coerce=True)])
    todo.set({"title": "b", "done": True})

    assert todo.get() == _Todo(title="b", done=True)


def test_logger_reports_initialization_and_commits(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.INFO, logger="pypouch.store.cart"):
        cart = pouch(0, [logger("cart")])
        cart.set(2)

    assert "[cart] initialized with 0" in caplog.text
    assert "[cart] user commit: 0 -> 2 (int)" in caplog.text


def test_encrypt_stores_ciphertext_and_decrypts_initial_literal() -> None:
    plugin = encrypt("passphrase")
    secret = pouch({"pin": "0000"}, [plugin])

    secret.set({"pin": "1234"})
    literal = secret.get()
    assert isinstance(literal, str) and literal.startswith(PREFIX)
    assert plugin.decrypt(literal) == {"pin": "1234"}

    restored = pouch(literal, [encrypt("passphrase")])
    assert restored.get() == {"pin": "1234"}


def test_encrypt_accepts_fernet_key_and_keeps_literal_on_wrong_key(caplog: pytest.LogCaptureFixture) -> None:
    key = Fernet.generate_key()
    literal = encrypt(key).encrypt([1, 2])

    assert pouch(literal, [encrypt(key)]).get() == [1, 2]
    assert pouch(literal, [encrypt("other")]).get() == literal
    assert "Failed to decrypt" in caplog.text
