"""Pagination codegen: driver selection and the all-pages call expression."""

from __future__ import annotations

import ast
from typing import Optional

from .codegen_ast import attr, call, expr, name
from .errors import PaginationNotSupportedError
from .model_types import PaginationPlan, ResponseShape
from .profiles import VendorProfile
from .type_space import TypeSpace

LINK_HEADER_DRIVER = "link_header"
COLLECT_ALL_PAGES = "collect_all_pages"

STRATEGY_CLASSES: dict[str, str] = {
    "stripe": "StripePagination",
    "google": "GooglePagination",
    "ramp": "RampPagination",
    "tripactions": "TripActionsPagination",
}

# Envelope pattern -> drivers able to walk it.
_PATTERN_DRIVERS: dict[str, tuple[str, ...]] = {
    "page": ("ramp", "tripactions"),
    "has_more": ("stripe",),
    "next_page_token": ("google",),
    "nextPageToken": ("google",),
}


def select_pagination(
    method: str,
    shape: ResponseShape,
    *,
    profile: VendorProfile,
    type_space: TypeSpace,
) -> Optional[PaginationPlan]:
    """Choose the pagination driver for an operation, if it is listable.

    Args:
        method (str): Lowercase HTTP method.
        shape (ResponseShape): Inferred response shape.
        profile (VendorProfile): Vendor pagination settings.
        type_space (TypeSpace): Shared type table.

    Returns:
        Optional[PaginationPlan]: Driver plan, or ``None`` for a single function.
    """
    if method != "get" or shape.type_id is None:
        return None

    if shape.is_paginated:
        pattern = shape.pattern or ""
        drivers = _PATTERN_DRIVERS.get(pattern, ())
        if profile.pagination is None or profile.pagination not in drivers:
            raise PaginationNotSupportedError(profile.name, shape.pagination_property or pattern)
        collection = type_space.property_named(shape.type_id, shape.collection_property or "")
        return PaginationPlan(
            driver=profile.pagination,
            item_annotation=shape.item_annotation or "Any",
            collection_property=shape.collection_property,
            collection_field=collection.field_name if collection is not None else None,
            cursor_property=shape.pagination_property,
        )

    if profile.link_header_pagination:
        item_id = type_space.array_item(shape.type_id)
        if item_id is not None:
            return PaginationPlan(
                driver=LINK_HEADER_DRIVER,
                item_annotation=type_space.render_type(item_id, qualified=True),
            )
    return None


def strategy_expr(plan: PaginationPlan) -> ast.expr:
    """Build the runtime strategy constructor call for an envelope driver."""
    keywords = [ast.keyword(arg="collection", value=ast.Constant(value=plan.collection_property))]
    if plan.driver == "google":
        keywords.append(ast.keyword(arg="token", value=ast.Constant(value=plan.cursor_property)))
    return call(name(STRATEGY_CLASSES[plan.driver]), keywords=keywords)


def all_pages_call(plan: PaginationPlan, *, url: ast.expr) -> ast.expr:
    """Build the expression that walks every page and returns the accumulated items."""
    item_type = ast.keyword(arg="item_type", value=expr(plan.item_annotation))
    client = attr(name("self"), "client")
    if plan.driver == LINK_HEADER_DRIVER:
        return call(attr(client, "get_all_pages"), url, keywords=[item_type])
    return call(name(COLLECT_ALL_PAGES), client, url, strategy_expr(plan), keywords=[item_type])


def single_page_result(plan: PaginationPlan, response: ast.expr) -> ast.expr:
    """Unwrap the collection from one page's response."""
    if plan.driver == LINK_HEADER_DRIVER or plan.collection_field is None:
        return response
    return attr(response, plan.collection_field)
