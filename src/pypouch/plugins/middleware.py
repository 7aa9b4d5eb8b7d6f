"""Interceptor chain of ``(value, old_value) -> value`` functions."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from pypouch.state.plugin import NextHandler, Plugin, resolve_proposal

if TYPE_CHECKING:
    from pypouch.state.store import Pouch

T = TypeVar("T")

MiddlewareFn = Callable[[T, T], T]


class Middleware(Plugin[T], Generic[T]):
    name = "middleware"

    def __init__(self, *functions: MiddlewareFn[T]) -> None:
        self._functions = functions
        self._pouch: Pouch[T] | None = None

    def setup(self, pouch: Pouch[T]) -> None:
        self._pouch = pouch
        pouch.intercept(self._intercept)

    def _intercept(self, proposal: Any, next_handler: NextHandler) -> None:
        assert self._pouch is not None  # noqa: S101
        old_value = self._pouch.get()
        value = resolve_proposal(proposal, old_value)
        for function in self._functions:
            value = function(value, old_value)
        next_handler(value)


def middleware(*functions: MiddlewareFn[T]) -> Middleware[T]:
    """Transform every proposal through *functions*, in order, before it moves on."""
    return Middleware(*functions)
