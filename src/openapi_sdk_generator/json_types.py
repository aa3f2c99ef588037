"""JSON-compatible typing aliases and accessors for raw OpenAPI nodes."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Optional, Union

type JSONPrimitive = Union[str, int, float, bool, None]
type JSONValue = JSONPrimitive | list[JSONValue] | Mapping[str, JSONValue]
type JSONObject = Mapping[str, JSONValue]
type MutableJSONObject = dict[str, JSONValue]

_EMPTY: JSONObject = {}


def object_or_empty(value: Optional[JSONValue]) -> JSONObject:
    """Return ``value`` when it is a mapping, otherwise an empty mapping."""
    if isinstance(value, Mapping):
        return value
    return _EMPTY


def list_or_empty(value: Optional[JSONValue]) -> list[JSONValue]:
    """Return ``value`` when it is a list, otherwise an empty list."""
    if isinstance(value, list):
        return value
    return []


def string_or_none(value: Optional[JSONValue]) -> Optional[str]:
    """Return a stripped, non-empty string or ``None``."""
    if isinstance(value, str):
        stripped = value.strip()
        if stripped:
            return stripped
    return None
