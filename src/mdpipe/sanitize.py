"""Coercion of arbitrary values into JSON-compatible values."""

from __future__ import annotations

import math
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from mdpipe.types import JSONValue

__all__ = ["CIRCULAR_MARKER", "sanitize_metadata", "to_json_value"]

CIRCULAR_MARKER = "[Circular]"


def to_json_value(value: Any) -> JSONValue:
    """Convert ``value`` into something ``json.dumps`` accepts.

    Scalars pass through and mappings, sequences and sets are converted
    recursively (mapping keys become strings, sets become lists). Cyclic
    references become ``"[Circular]"``. Non-finite floats and everything
    else are coerced with ``str()``.
    """
    return _convert(value, set())


def sanitize_metadata(record: Mapping[str, Any]) -> dict[str, JSONValue]:
    """Coerce a metadata mapping into a JSON-compatible dict."""
    result = _convert(record, set())
    return result if isinstance(result, dict) else {}


def _convert(value: Any, active: set[int]) -> JSONValue:
    if isinstance(value, float):
        return value if math.isfinite(value) else str(value)

    if value is None or isinstance(value, (str, bool, int)):
        return value

    if isinstance(value, (Mapping, list, tuple, set, frozenset)):
        if id(value) in active:
            return CIRCULAR_MARKER
        active.add(id(value))
        try:
            if isinstance(value, Mapping):
                return {str(k): _convert(v, active) for k, v in value.items()}
            return [_convert(item, active) for item in value]
        finally:
            active.discard(id(value))

    return str(value)
