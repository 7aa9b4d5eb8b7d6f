"""Built-in plugins.

Stateful: ``history``, ``debounce``, ``throttle``, ``sync``, ``persist``.
Transforms and observers: ``computed``, ``middleware``, ``validate``,
``schema``, ``logger``, ``encrypt``.
"""

from pypouch.plugins.computed import Computed, computed
from pypouch.plugins.debounce import Debounce, debounce
from pypouch.plugins.encrypt import Encrypt, encrypt
from pypouch.plugins.history import History, history
from pypouch.plugins.logger import Logger, logger
from pypouch.plugins.middleware import Middleware, middleware
from pypouch.plugins.persist import Persist, persist
from pypouch.plugins.sync import Sync, sync
from pypouch.plugins.throttle import Throttle, throttle
from pypouch.plugins.validate import Schema, Validate, ValidationResult, schema, validate

__all__ = [
    "Computed",
    "Debounce",
    "Encrypt",
    "History",
    "Logger",
    "Middleware",
    "Persist",
    "Schema",
    "Sync",
    "Throttle",
    "Validate",
    "ValidationResult",
    "computed",
    "debounce",
    "encrypt",
    "history",
    "logger",
    "middleware",
    "persist",
    "schema",
    "sync",
    "throttle",
    "validate",
]
