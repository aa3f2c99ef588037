"""Shared helpers for JSON-Schema shape checks."""

from __future__ import annotations

import json
from collections.abc import Callable
from typing import Optional

from .json_types import JSONObject, JSONValue, MutableJSONObject

_STRUCTURAL_KEYS: frozenset[str] = frozenset(
    {
        "$ref",
        "properties",
        "additionalProperties",
        "items",
        "format",
        "enum",
        "const",
        "allOf",
        "anyOf",
        "oneOf",
    }
)


def schema_key(schema: JSONObject) -> str:
    """Return a canonical text key for caching structurally identical schemas."""
    return json.dumps(schema, sort_keys=True, default=str)


def is_empty_schema(schema: JSONObject) -> bool:
    """Return whether a schema is a structurally empty "any" schema.

    Args:
        schema (JSONObject): Schema node to inspect.

    Returns:
        bool: ``True`` when the schema has no properties, no format and no items.
    """
    if any(key in schema for key in _STRUCTURAL_KEYS):
        return False
    return schema.get("type") in (None, "object")


def is_object_schema(schema: JSONObject) -> bool:
    """Return whether a schema behaves as an object schema."""
    if schema.get("type") == "object":
        return True
    return isinstance(schema.get("properties"), dict)


def is_nullable(schema: JSONObject) -> bool:
    """Return whether a schema admits ``null`` (3.0 ``nullable`` or 3.1 type lists)."""
    if schema.get("nullable") is True:
        return True
    schema_type = schema.get("type")
    return isinstance(schema_type, list) and "null" in schema_type


def primary_type(schema: JSONObject) -> Optional[str]:
    """Return the first non-null ``type`` of a schema."""
    schema_type = schema.get("type")
    if isinstance(schema_type, str):
        return schema_type
    if isinstance(schema_type, list):
        for item in schema_type:
            if isinstance(item, str) and item != "null":
                return item
    return None


def merge_all_of(
    schema: JSONObject,
    *,
    resolve: Callable[[JSONObject], JSONObject],
) -> Optional[MutableJSONObject]:
    """Merge an object-only ``allOf`` chain into one object schema.

    Args:
        schema (JSONObject): Schema carrying an ``allOf`` list.
        resolve (Callable[[JSONObject], JSONObject]): Dereferences ``$ref`` children.

    Returns:
        Optional[MutableJSONObject]: Merged schema, or ``None`` when a child is
        not an object schema and the chain cannot be flattened.
    """
    all_of = schema.get("allOf")
    if not isinstance(all_of, list) or not all_of:
        return None

    merged: MutableJSONObject = {key: value for key, value in schema.items() if key != "allOf"}
    properties: MutableJSONObject = dict(_mapping(schema.get("properties")))
    required: list[str] = _strings(schema.get("required"))

    for item in all_of:
        if not isinstance(item, dict):
            return None
        child = resolve(item)
        if "allOf" in child:
            nested = merge_all_of(child, resolve=resolve)
            if nested is None:
                return None
            child = nested
        if not is_object_schema(child):
            return None
        properties.update(_mapping(child.get("properties")))
        for name in _strings(child.get("required")):
            if name not in required:
                required.append(name)
        if "description" in child and "description" not in merged:
            merged["description"] = child["description"]

    merged["type"] = "object"
    merged["properties"] = properties
    if required:
        merged["required"] = list(required)
    return merged


def _mapping(value: Optional[JSONValue]) -> MutableJSONObject:
    if isinstance(value, dict):
        return dict(value)
    return {}


def _strings(value: Optional[JSONValue]) -> list[str]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, str)]
