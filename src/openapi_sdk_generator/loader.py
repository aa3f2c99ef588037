"""Reading OpenAPI v3 documents from disk."""

from __future__ import annotations

import json
from pathlib import Path

import yaml
from openapi_python_client.schema import OpenAPI
from pydantic import ValidationError

from .json_types import JSONObject, JSONValue

_JSON_SUFFIXES: frozenset[str] = frozenset({".json"})


class OpenAPILoadError(RuntimeError):
    """Raised when a source OpenAPI document cannot be loaded."""


def load_openapi_document(path: Path) -> JSONObject:
    """Read an OpenAPI document and check it against the OpenAPI v3 schema.

    ``.json`` files are decoded as JSON, anything else as YAML.

    Args:
        path (Path): Document on disk.

    Returns:
        JSONObject: The raw document; generation works on the plain mapping.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise OpenAPILoadError(f"Failed to read OpenAPI file {path}: {exc}") from exc

    payload: JSONValue
    try:
        if path.suffix.lower() in _JSON_SUFFIXES:
            payload = json.loads(text)
        else:
            payload = yaml.safe_load(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise OpenAPILoadError(f"Failed to parse {path}: {exc}") from exc

    if not isinstance(payload, dict):
        raise OpenAPILoadError(f"{path} must contain a mapping, got {type(payload).__name__}")

    openapi_version(payload)
    try:
        OpenAPI.model_validate(payload)
    except ValidationError as exc:
        raise OpenAPILoadError(f"OpenAPI schema validation failed for {path}: {exc}") from exc
    return payload


def openapi_version(document: JSONObject) -> str:
    """Return the declared ``openapi`` version, rejecting anything before v3."""
    version = document.get("openapi")
    if not isinstance(version, str) or not version.strip():
        raise OpenAPILoadError("Missing or invalid 'openapi' version field")

    major, _, _ = version.strip().partition(".")
    if not major.isdigit():
        raise OpenAPILoadError(f"Unable to parse OpenAPI version: {version}")
    if int(major) < 3:
        raise OpenAPILoadError(f"Unsupported OpenAPI version {version}; only v3+ is supported")
    return version.strip()


def load_path_map(document: JSONObject) -> dict[str, JSONObject]:
    """Return the ``paths`` object keyed by path template, in document order."""
    raw_paths = document.get("paths")
    if not isinstance(raw_paths, dict):
        raise OpenAPILoadError("OpenAPI document missing 'paths' object")
    return {
        path: path_item
        for path, path_item in raw_paths.items()
        if isinstance(path, str) and isinstance(path_item, dict)
    }
