"""Plugins that veto proposed values.

``validate`` runs a predicate at the entry point, before any deferral.
``schema`` checks the value against a pydantic type at commit time, after
earlier hooks have transformed it. Both raise :class:`CommitRejectedError`
and never let a rejected value be committed.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from pydantic import TypeAdapter, ValidationError

from pypouch.exceptions import CommitRejectedError
from pypouch.state.plugin import CommitOrigin, NextHandler, Plugin, resolve_proposal

if TYPE_CHECKING:
    from pypouch.state.store import Pouch

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class ValidationResult:
    is_valid: bool
    error: str | None = None


Validator = Callable[[T], ValidationResult | bool]


class Validate(Plugin[T], Generic[T]):
    name = "validate"

    def __init__(self, validator: Validator[T]) -> None:
        self._validator = validator
        self._pouch: Pouch[T] | None = None

    def setup(self, pouch: Pouch[T]) -> None:
        self._pouch = pouch
        pouch.intercept(self._intercept)

    def _intercept(self, proposal: Any, next_handler: NextHandler) -> None:
        assert self._pouch is not None  # noqa: S101
        value = resolve_proposal(proposal, self._pouch.get())
        result = self._validator(value)
        if isinstance(result, bool):
            result = ValidationResult(result)
        if not result.is_valid:
            raise CommitRejectedError(result.error or "Validation failed", value=value)
        # Pass the original proposal on so deferred updaters still resolve late.
        next_handler(proposal)


class Schema(Plugin[T], Generic[T]):
    """Validate (and coerce) every committed value with a pydantic ``TypeAdapter``.

    With ``coerce=False`` the value is only checked and committed as proposed;
    otherwise the validated object (e.g. a model instance) is committed.
    Values seeded remotely are checked too.
    """

    name = "schema"

    def __init__(self, schema: Any, *, coerce: bool = False) -> None:
        self._adapter: TypeAdapter[Any] = TypeAdapter(schema)
        self.coerce = coerce

    def on_commit(self, new_value: T, old_value: T, origin: CommitOrigin) -> T:
        try:
            validated = self._adapter.validate_python(new_value)
        except ValidationError as exc:
            problems = "; ".join(
                f"{'.'.join(str(part) for part in error['loc']) or '<root>'}: {error['msg']}" for error in exc.errors()
            )
            raise CommitRejectedError(f"Schema validation failed: {problems}", value=new_value) from exc
        return validated if self.coerce else new_value


def validate(validator: Validator[T]) -> Validate[T]:
    """Reject proposals for which *validator* returns false or an invalid result."""
    return Validate(validator)


def schema(schema: Any, *, coerce: bool = False) -> Schema[T]:
    """Reject commits that do not validate against *schema* (a model or type)."""
    return Schema(schema, coerce=coerce)
