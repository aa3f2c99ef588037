"""Path template parsing and URL expression building."""

from __future__ import annotations

import ast
import enum
from collections.abc import Mapping
from dataclasses import dataclass

from .errors import SpecError

ENCODE_PATH = "encode_path"


class TemplateError(SpecError):
    """Raised when a path template is malformed."""


class _State(enum.Enum):
    START = enum.auto()
    CONSTANT_OR_PARAMETER = enum.auto()
    CONSTANT = enum.auto()
    PARAMETER = enum.auto()
    PARAMETER_SLASH = enum.auto()


@dataclass(frozen=True)
class Component:
    """One ``/``-separated piece of a path template."""

    value: str
    is_parameter: bool = False


@dataclass(frozen=True)
class Template:
    """Parsed path template."""

    components: tuple[Component, ...]
    trailing_slash: bool = False

    @property
    def parameter_names(self) -> tuple[str, ...]:
        return tuple(component.value for component in self.components if component.is_parameter)

    def to_expr(self, identifiers: Mapping[str, str]) -> ast.expr:
        """Build the expression for the request path.

        Args:
            identifiers (Mapping[str, str]): Generated identifier per path parameter name.

        Returns:
            ast.expr: A string constant, or an f-string when parameters are present.
        """
        if not self.parameter_names:
            return ast.Constant(value=self.render())

        values: list[ast.expr] = []
        pending = ""
        for component in self.components:
            pending += "/"
            if not component.is_parameter:
                pending += component.value
                continue
            identifier = identifiers.get(component.value)
            if identifier is None:
                raise TemplateError(f"Path parameter {component.value!r} is not declared")
            values.append(ast.Constant(value=pending))
            pending = ""
            values.append(
                ast.FormattedValue(
                    value=ast.Call(
                        func=ast.Name(id=ENCODE_PATH, ctx=ast.Load()),
                        args=[ast.Name(id=identifier, ctx=ast.Load())],
                        keywords=[],
                    ),
                    conversion=-1,
                    format_spec=None,
                )
            )
        if self.trailing_slash:
            pending += "/"
        if pending:
            values.append(ast.Constant(value=pending))
        return ast.JoinedStr(values=values)

    def render(self) -> str:
        """Return the template text in ``/a/{b}`` form."""
        parts = [
            f"{{{component.value}}}" if component.is_parameter else component.value
            for component in self.components
        ]
        text = "/" + "/".join(parts)
        if self.trailing_slash and parts:
            text += "/"
        return text


def parse(path: str) -> Template:
    """Parse a path template such as ``/widgets/{widget_id}``."""
    state = _State.START
    buffer = ""
    components: list[Component] = []

    for char in path:
        if state is _State.START:
            if char != "/":
                raise TemplateError(f"Path must start with a slash: {path!r}")
            state = _State.CONSTANT_OR_PARAMETER
        elif state is _State.CONSTANT_OR_PARAMETER:
            if char in "/}":
                raise TemplateError(f"Expected a constant or parameter in {path!r}")
            if char == "{":
                state = _State.PARAMETER
            else:
                buffer += char
                state = _State.CONSTANT
        elif state is _State.CONSTANT:
            if char == "/":
                components.append(Component(buffer))
                buffer = ""
                state = _State.CONSTANT_OR_PARAMETER
            elif char in "{}":
                raise TemplateError(f"Unexpected parameter in {path!r}")
            else:
                buffer += char
        elif state is _State.PARAMETER:
            if char == "}":
                if not buffer:
                    raise TemplateError(f"Empty parameter name in {path!r}")
                components.append(Component(buffer, is_parameter=True))
                buffer = ""
                state = _State.PARAMETER_SLASH
            elif char in "/{":
                raise TemplateError(f"Expected parameter name in {path!r}")
            else:
                buffer += char
        elif state is _State.PARAMETER_SLASH:
            if char != "/":
                raise TemplateError(f"Expected a slash after parameter in {path!r}")
            state = _State.CONSTANT_OR_PARAMETER

    if state is _State.START:
        raise TemplateError("Empty path")
    if state is _State.PARAMETER:
        raise TemplateError(f"Unterminated parameter in {path!r}")
    if state is _State.CONSTANT:
        components.append(Component(buffer))

    trailing_slash = state is _State.CONSTANT_OR_PARAMETER and bool(components)
    return Template(components=tuple(components), trailing_slash=trailing_slash)
