"""Default value serialization shared by the persistence and sync plugins.

Encoding is structural JSON. A container that is reached again while it is
still being encoded (a reference cycle) is replaced with
:data:`CIRCULAR_MARKER` instead of recursing, so self-referencing values
never raise. Containers shared between siblings are encoded in full.
"""

from __future__ import annotations

import dataclasses
import json
import math
from collections.abc import Callable, Mapping
from typing import Any

from pydantic import BaseModel

from pypouch.exceptions import PouchSerializationError

CIRCULAR_MARKER = "[Circular]"


def _encode_key(key: Any) -> str:
    if isinstance(key, str):
        return key
    if key is None or isinstance(key, (int, float, bool)):
        return json.dumps(key)
    raise PouchSerializationError(f"Unsupported mapping key type: {type(key).__name__}")


def _to_jsonable(value: Any, path: set[int]) -> Any:
    if value is None or isinstance(value, (str, bool, int)):
        return value

    if isinstance(value, float):
        # Non-finite floats have no JSON form; encode them as null.
        return value if math.isfinite(value) else None

    if isinstance(value, BaseModel):
        return _to_jsonable(value.model_dump(mode="json"), path)

    is_dataclass = dataclasses.is_dataclass(value) and not isinstance(value, type)
    if not (is_dataclass or isinstance(value, (Mapping, list, tuple, set, frozenset))):
        raise PouchSerializationError(f"Value of type {type(value).__name__} is not JSON serializable")

    marker = id(value)
    if marker in path:
        return CIRCULAR_MARKER

    # Only containers on the current path count; siblings may share references.
    path.add(marker)
    try:
        if is_dataclass:
            return {
                field.name: _to_jsonable(getattr(value, field.name), path) for field in dataclasses.fields(value)
            }
        if isinstance(value, Mapping):
            return {_encode_key(key): _to_jsonable(item, path) for key, item in value.items()}
        items = sorted(value, key=repr) if isinstance(value, (set, frozenset)) else value
        return [_to_jsonable(item, path) for item in items]
    finally:
        path.discard(marker)


def safe_dumps(value: Any) -> str:
    """Encode *value* as compact JSON, replacing reference cycles with a marker."""
    return json.dumps(_to_jsonable(value, set()), separators=(",", ":"), ensure_ascii=False)


def safe_loads(text: str | bytes) -> Any:
    """Decode JSON text produced by :func:`safe_dumps` (or any JSON source)."""
    try:
        return json.loads(text)
    except (json.JSONDecodeError, UnicodeDecodeError, TypeError) as exc:
        preview = text[:64] if isinstance(text, (str, bytes)) else type(text).__name__
        raise PouchSerializationError(f"Invalid JSON payload: {preview!r}") from exc


@dataclasses.dataclass(frozen=True)
class Serializer:
    """A ``dumps``/``loads`` pair used at the storage and network boundaries."""

    dumps: Callable[[Any], str] = safe_dumps
    loads: Callable[[str], Any] = safe_loads


JSON_SERIALIZER = Serializer()
