"""Tests for identifier, tag and method name helpers."""

from __future__ import annotations

import pytest

from openapi_sdk_generator.naming import (
    all_pages_name,
    claim_function_name,
    class_name,
    clean_name,
    function_name,
    make_plural,
    make_singular,
    oid_to_object_name,
    path_to_operation_id,
    sanitize_identifier,
    single_page_name,
    snake_case,
)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("GetWidgets", "get_widgets"),
        ("issues/list-for-repo", "issues_list_for_repo"),
        ("calendarId", "calendar_id"),
        ("IDs", "i_ds"),
        ("events.list", "events_list"),
    ],
)
def test_snake_case(raw: str, expected: str) -> None:
    """camelCase, kebab-case and dotted ids become snake_case."""
    assert snake_case(raw) == expected


def test_clean_name_drops_stop_words_and_fixes_ids() -> None:
    """Stop words vanish, ``IDs`` reads as ``ids`` and repeated words collapse."""
    assert clean_name("Account IDs") == "account_ids"
    assert clean_name("the list of the widgets") == "list_of_widgets"
    assert clean_name("widget widget") == "widget"
    assert clean_name("/") == "root"


@pytest.mark.parametrize(
    ("word", "expected"),
    [
        ("transaction", "transactions"),
        ("category", "categories"),
        ("address", "addresses"),
        ("access", "access"),
        ("users", "users"),
    ],
)
def test_make_plural(word: str, expected: str) -> None:
    """Tags are pluralized with simple English rules."""
    assert make_plural(word) == expected


@pytest.mark.parametrize(
    ("word", "expected"),
    [
        ("transactions", "transaction"),
        ("categories", "category"),
        ("addresses", "address"),
        ("access", "access"),
        ("apps", "app"),
    ],
)
def test_make_singular(word: str, expected: str) -> None:
    """Singular forms only drop the suffix the plural rules add."""
    assert make_singular(word) == expected


def test_path_to_operation_id() -> None:
    """Operations without an id get one from the verb and path."""
    assert path_to_operation_id("/widgets/{widget}", "GET") == "get_widgets_by_widget"


def test_oid_to_object_name() -> None:
    """Operation ids become space separated type-name hints without stop words."""
    assert oid_to_object_name("get_widgets") == "get widgets"
    assert oid_to_object_name("update_a_widget") == "update widget"


@pytest.mark.parametrize(
    ("operation_id", "tag", "expected"),
    [
        ("get_widgets", "widgets", "get"),
        ("get_widgets_widget", "widgets", "get"),
        ("issues_list_for_repo", "issues", "list_for_repo"),
        ("get_booking_report", "bookings", "get_report"),
        ("show_pet_by_id", "pets", "show"),
        ("get_address_by_id", "addresses", "get"),
        ("widgets", "widgets", "get"),
        ("events_list", "events", "list"),
    ],
)
def test_function_name_strips_tag(operation_id: str, tag: str, expected: str) -> None:
    """The resource tag and connector words are removed from method names."""
    assert function_name(operation_id, tag) == expected


def test_page_function_names() -> None:
    """Paginated operations get a single-page and an all-pages method name."""
    assert single_page_name("get") == "get_page"
    assert single_page_name("list") == "list_page"
    assert single_page_name("get_report") == "get_report"
    assert all_pages_name("get") == "get_all"
    assert all_pages_name("list_for_repo") == "list_all_for_repo"
    assert all_pages_name("get_report") == "get_all_report"
    assert all_pages_name("search") == "get_all_search"


def test_claim_function_name_is_scoped_per_tag() -> None:
    """Names collide only within one tag module and are disambiguated deterministically."""
    name, names = claim_function_name(frozenset(), "widgets", "get")
    assert name == "get"
    name, names = claim_function_name(names, "gadgets", "get")
    assert name == "get"
    name, names = claim_function_name(names, "widgets", "get")
    assert name == "get_widgets"
    name, names = claim_function_name(names, "widgets", "get")
    assert name == "get_widgets_2"
    assert names == frozenset(
        {"widgets.get", "gadgets.get", "widgets.get_widgets", "widgets.get_widgets_2"}
    )


def test_identifier_helpers() -> None:
    """Identifiers are valid Python names; class names are PascalCase."""
    assert sanitize_identifier("3d-secure") == "x_3d_secure"
    assert sanitize_identifier("class") == "class_"
    assert class_name("booking_report") == "BookingReport"
