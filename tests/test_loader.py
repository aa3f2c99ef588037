"""Tests for reading OpenAPI documents."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from openapi_sdk_generator.loader import (
    OpenAPILoadError,
    load_openapi_document,
    load_path_map,
    openapi_version,
)
from .fixture_helpers import fixture_dir, load_fixture


def test_yaml_and_json_documents_load_the_same(tmp_path: Path) -> None:
    """A JSON copy of a fixture loads to the same mapping as the YAML original."""
    document = load_fixture("default_petstore.yaml")
    json_path = tmp_path / "petstore.json"
    json_path.write_text(json.dumps(document), encoding="utf-8")

    assert load_openapi_document(json_path) == document
    assert load_openapi_document(fixture_dir() / "default_petstore.yaml") == document


@pytest.mark.parametrize(
    ("file_name", "content", "message"),
    [
        ("list.yaml", "- a\n- b\n", "must contain a mapping, got list"),
        ("broken.yaml", "openapi: [3.0\n", "Failed to parse"),
        ("broken.json", "{", "Failed to parse"),
        ("swagger.yaml", "swagger: '2.0'\npaths: {}\n", "Missing or invalid 'openapi'"),
        ("old.yaml", "openapi: 2.0.0\npaths: {}\n", "only v3+ is supported"),
        ("noinfo.yaml", "openapi: 3.0.3\npaths: {}\n", "schema validation failed"),
    ],
)
def test_bad_documents_are_rejected(
    tmp_path: Path,
    file_name: str,
    content: str,
    message: str,
) -> None:
    path = tmp_path / file_name
    path.write_text(content, encoding="utf-8")
    with pytest.raises(OpenAPILoadError, match=message):
        load_openapi_document(path)


def test_missing_file(tmp_path: Path) -> None:
    with pytest.raises(OpenAPILoadError, match="Failed to read OpenAPI file"):
        load_openapi_document(tmp_path / "missing.yaml")


def test_openapi_version() -> None:
    assert openapi_version({"openapi": " 3.1.0 "}) == "3.1.0"
    with pytest.raises(OpenAPILoadError, match="Unable to parse"):
        openapi_version({"openapi": "three"})


def test_path_map_keeps_document_order() -> None:
    document = {"paths": {"/b": {"get": {}}, "/a": {"get": {}}, "/bad": None}}
    assert list(load_path_map(document)) == ["/b", "/a"]
    with pytest.raises(OpenAPILoadError, match="missing 'paths'"):
        load_path_map({})
