"""Tests for pagination driver selection and the generated all-pages call."""

from __future__ import annotations

import ast
from typing import Any

import pytest

from openapi_sdk_generator.codegen_ast import name
from openapi_sdk_generator.errors import PaginationNotSupportedError
from openapi_sdk_generator.model_types import ResponseShape
from openapi_sdk_generator.pagination import (
    LINK_HEADER_DRIVER,
    all_pages_call,
    select_pagination,
    single_page_result,
    strategy_expr,
)
from openapi_sdk_generator.profiles import VendorProfile, load_profile
from openapi_sdk_generator.resolver import Resolver
from openapi_sdk_generator.responses import detect_envelope
from openapi_sdk_generator.type_space import TypeSpace

_ITEMS = {"type": "array", "items": {"$ref": "#/components/schemas/Item"}}

_DOCUMENT: dict[str, Any] = {
    "components": {
        "schemas": {
            "Item": {"type": "object", "properties": {"id": {"type": "string"}}},
            "Page": {"type": "object", "properties": {"next": {"type": "string"}}},
        }
    }
}

_ENVELOPES: dict[str, dict[str, Any]] = {
    "has_more": {"data": _ITEMS, "has_more": {"type": "boolean"}},
    "page": {"data": _ITEMS, "page": {"$ref": "#/components/schemas/Page"}},
    "nextPageToken": {"items": _ITEMS, "nextPageToken": {"type": "string"}},
}


@pytest.fixture
def type_space() -> TypeSpace:
    return TypeSpace(Resolver(_DOCUMENT))


def _shape(type_space: TypeSpace, envelope: str) -> ResponseShape:
    schema = {"type": "object", "properties": _ENVELOPES[envelope]}
    return detect_envelope(type_space.select("item list", schema), type_space)


@pytest.mark.parametrize(
    ("profile_name", "envelope", "expected"),
    [
        ("stripe", "has_more", "StripePagination(collection='data')"),
        ("ramp", "page", "RampPagination(collection='data')"),
        ("tripactions", "page", "TripActionsPagination(collection='data')"),
        (
            "google",
            "nextPageToken",
            "GooglePagination(collection='items', token='nextPageToken')",
        ),
    ],
)
def test_profile_driver_builds_strategy(
    type_space: TypeSpace,
    profile_name: str,
    envelope: str,
    expected: str,
) -> None:
    """Each vendor driver accepts its envelope and renders a strategy constructor."""
    shape = _shape(type_space, envelope)
    profile = load_profile(profile_name)
    plan = select_pagination("get", shape, profile=profile, type_space=type_space)

    assert plan is not None
    assert plan.item_annotation == "types.Item"
    assert ast.unparse(strategy_expr(plan)) == expected
    assert ast.unparse(all_pages_call(plan, url=name("url"))) == (
        f"collect_all_pages(self.client, url, {expected}, item_type=types.Item)"
    )
    assert ast.unparse(single_page_result(plan, name("response"))) == (
        f"response.{plan.collection_field}"
    )


def test_mismatched_driver_is_fatal(type_space: TypeSpace) -> None:
    """A driver that cannot walk the detected envelope aborts generation."""
    shape = _shape(type_space, "page")
    with pytest.raises(
        PaginationNotSupportedError,
        match="must implement custom pagination function for Stripe page",
    ):
        select_pagination("get", shape, profile=load_profile("stripe"), type_space=type_space)


def test_envelope_without_driver_is_fatal(type_space: TypeSpace) -> None:
    """A paginated envelope under a profile with no driver aborts generation."""
    shape = _shape(type_space, "has_more")
    with pytest.raises(
        PaginationNotSupportedError,
        match="must implement custom pagination function for default has_more",
    ):
        select_pagination("get", shape, profile=VendorProfile(), type_space=type_space)


def test_only_get_operations_paginate(type_space: TypeSpace) -> None:
    shape = _shape(type_space, "has_more")
    stripe = load_profile("stripe")
    assert select_pagination("post", shape, profile=stripe, type_space=type_space) is None


def test_link_header_driver_for_array_responses(type_space: TypeSpace) -> None:
    """Array responses follow ``Link: rel="next"`` when the vendor uses link headers."""
    shape = detect_envelope(type_space.select("item list", _ITEMS), type_space)
    github = load_profile("github")

    plan = select_pagination("get", shape, profile=github, type_space=type_space)
    assert plan is not None
    assert plan.driver == LINK_HEADER_DRIVER
    assert ast.unparse(all_pages_call(plan, url=name("url"))) == (
        "self.client.get_all_pages(url, item_type=types.Item)"
    )
    assert ast.unparse(single_page_result(plan, name("response"))) == "response"

    assert select_pagination("get", shape, profile=VendorProfile(), type_space=type_space) is None


def test_unit_responses_never_paginate(type_space: TypeSpace) -> None:
    shape = ResponseShape(annotation="None")
    github = load_profile("github")
    assert select_pagination("get", shape, profile=github, type_space=type_space) is None
