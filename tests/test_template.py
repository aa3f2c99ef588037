"""Tests for path template parsing and URL expressions."""

from __future__ import annotations

import ast

import pytest

from openapi_sdk_generator.template import TemplateError, parse


def test_parse_constants_and_parameters() -> None:
    """Templates split into constant and parameter components."""
    template = parse("/repos/{owner}/{repo}/issues")
    assert template.parameter_names == ("owner", "repo")
    assert template.render() == "/repos/{owner}/{repo}/issues"
    assert parse("/widgets/").trailing_slash is True
    assert parse("/").render() == "/"


@pytest.mark.parametrize(
    "path",
    ["widgets", "/widgets/{}", "/widgets/{id", "/widgets/{id}x", "/a//b"],
)
def test_malformed_templates_are_rejected(path: str) -> None:
    """Missing slashes, empty or unterminated parameters are errors."""
    with pytest.raises(TemplateError):
        parse(path)


def test_to_expr_without_parameters_is_a_constant() -> None:
    """A parameterless path is emitted as a plain string."""
    expression = parse("/v1/widgets").to_expr({})
    assert ast.unparse(expression) == "'/v1/widgets'"


def test_to_expr_encodes_each_parameter() -> None:
    """Parameters are substituted through encode_path using generated identifiers."""
    expression = parse("/calendars/{calendarId}/events").to_expr({"calendarId": "calendar_id"})
    assert ast.unparse(expression) == "f'/calendars/{encode_path(calendar_id)}/events'"


def test_to_expr_requires_every_parameter() -> None:
    """A template parameter without an identifier is an error."""
    with pytest.raises(TemplateError):
        parse("/widgets/{widget}").to_expr({})
