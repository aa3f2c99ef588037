"""AST-based Python code generation for client packages."""

from __future__ import annotations

import ast
from collections.abc import Iterable
from typing import Optional

from .model_types import FieldDef, FileOutput, ModelDef
from .naming import class_name

RUNTIME_MODULE = "openapi_sdk_generator.runtime"

_DATETIME_IMPORT_ORDER: tuple[str, ...] = ("date", "datetime")

_TYPING_IMPORT_ORDER: tuple[str, ...] = (
    "Any",
    "Literal",
    "Optional",
    "Union",
)

_RUNTIME_IMPORT_ORDER: tuple[str, ...] = (
    "Client",
    "GooglePagination",
    "Message",
    "RampPagination",
    "StripePagination",
    "TripActionsPagination",
    "collect_all_pages",
    "encode_path",
)

_PYDANTIC_IMPORT_ORDER: tuple[str, ...] = (
    "BaseModel",
    "ConfigDict",
    "Field",
)


def expr(code: str) -> ast.expr:
    """Parse a Python expression into an AST node."""
    parsed = ast.parse(code, mode="eval")
    return parsed.body


def name(identifier: str) -> ast.Name:
    return ast.Name(id=identifier, ctx=ast.Load())


def attr(value: ast.expr, attribute: str) -> ast.Attribute:
    return ast.Attribute(value=value, attr=attribute, ctx=ast.Load())


def call(
    func: ast.expr,
    *args: ast.expr,
    keywords: Optional[list[ast.keyword]] = None,
) -> ast.Call:
    return ast.Call(func=func, args=list(args), keywords=keywords or [])


def docstring(text: str) -> ast.Expr:
    return ast.Expr(value=ast.Constant(value=text))


def tag_class_name(tag: str) -> str:
    """Return the class name that holds a tag's methods."""
    return class_name(tag)


def render_tag_module(output: FileOutput, *, runtime_module: str = RUNTIME_MODULE) -> str:
    """Render one tag module as Python source code using AST.

    Args:
        output (FileOutput): Accumulated head statements and methods for the tag.
        runtime_module (str): Import path of the client runtime.

    Returns:
        str: Generated Python source code for the tag module.
    """
    class_def = ast.ClassDef(
        name=tag_class_name(output.tag),
        bases=[],
        keywords=[],
        body=[
            docstring(f"Operations for the `{output.tag}` resource."),
            _init_method(),
            *output.functions,
        ],
        decorator_list=[],
        type_params=[],
    )
    definitions: list[ast.stmt] = [*output.head, class_def]

    body: list[ast.stmt] = [
        docstring(f"Generated operations for the `{output.tag}` resource."),
        ast.ImportFrom(module="__future__", names=[ast.alias(name="annotations")], level=0),
    ]
    body.extend(_build_imports(definitions, runtime_module=runtime_module))
    body.extend(definitions)
    return _unparse(body)


def render_types_module(models: list[ModelDef]) -> str:
    """Render every generated model into the package ``types`` module.

    Args:
        models (list[ModelDef]): Models in creation order.

    Returns:
        str: Generated Python source for the types module.
    """
    definitions: list[ast.stmt] = [_model_to_ast(model) for model in models]
    for model in models:
        definitions.append(ast.Expr(value=call(attr(name(model.name), "model_rebuild"))))

    body: list[ast.stmt] = [
        docstring("Generated request and response models."),
        ast.ImportFrom(module="__future__", names=[ast.alias(name="annotations")], level=0),
    ]
    body.extend(_build_imports(definitions, runtime_module=None))
    if models:
        body.append(
            ast.ImportFrom(
                module="pydantic",
                names=[ast.alias(name=item) for item in _PYDANTIC_IMPORT_ORDER],
                level=0,
            )
        )
    body.extend(definitions)
    return _unparse(body)


def render_package_init(
    *,
    title: str,
    tags: Iterable[str],
    default_host: str,
    runtime_module: str = RUNTIME_MODULE,
) -> str:
    """Render the package ``__init__`` exposing one client attribute per tag.

    Args:
        title (str): API title used in docstrings.
        tags (Iterable[str]): Tag module names in output order.
        default_host (str): Base URL used when the caller passes none.
        runtime_module (str): Import path of the client runtime.

    Returns:
        str: Generated Python source for the package ``__init__``.
    """
    tag_list = list(tags)
    body: list[ast.stmt] = [
        docstring(f"Generated client for {title}."),
        ast.ImportFrom(module="__future__", names=[ast.alias(name="annotations")], level=0),
        ast.ImportFrom(
            module=runtime_module,
            names=[ast.alias(name="Client", asname="BaseClient")],
            level=0,
        ),
    ]
    for tag in tag_list:
        body.append(
            ast.ImportFrom(module=tag, names=[ast.alias(name=tag_class_name(tag))], level=1)
        )

    class_body: list[ast.stmt] = [
        docstring(f"Entrypoint for the {title} API."),
        ast.Assign(
            targets=[ast.Name(id="default_host", ctx=ast.Store())],
            value=ast.Constant(value=default_host),
        ),
    ]
    for tag in tag_list:
        class_body.append(_tag_property(tag))

    body.append(
        ast.ClassDef(
            name="Client",
            bases=[name("BaseClient")],
            keywords=[],
            body=class_body,
            decorator_list=[],
            type_params=[],
        )
    )
    body.append(
        ast.Assign(
            targets=[ast.Name(id="__all__", ctx=ast.Store())],
            value=ast.List(elts=[ast.Constant(value="Client")], ctx=ast.Load()),
        )
    )
    return _unparse(body)


def _unparse(body: list[ast.stmt]) -> str:
    module = ast.Module(body=body, type_ignores=[])
    ast.fix_missing_locations(module)
    return ast.unparse(module) + "\n"


def _init_method() -> ast.FunctionDef:
    return ast.FunctionDef(
        name="__init__",
        args=ast.arguments(
            posonlyargs=[],
            args=[ast.arg(arg="self"), ast.arg(arg="client", annotation=name("Client"))],
            kwonlyargs=[],
            kw_defaults=[],
            defaults=[],
        ),
        body=[
            ast.Assign(
                targets=[ast.Attribute(value=name("self"), attr="client", ctx=ast.Store())],
                value=name("client"),
            )
        ],
        decorator_list=[],
        returns=ast.Constant(value=None),
        type_params=[],
    )


def _tag_property(tag: str) -> ast.FunctionDef:
    return ast.FunctionDef(
        name=tag,
        args=ast.arguments(
            posonlyargs=[],
            args=[ast.arg(arg="self")],
            kwonlyargs=[],
            kw_defaults=[],
            defaults=[],
        ),
        body=[ast.Return(value=call(name(tag_class_name(tag)), name("self")))],
        decorator_list=[name("property")],
        returns=name(tag_class_name(tag)),
        type_params=[],
    )


def _model_to_ast(model: ModelDef) -> ast.ClassDef:
    class_body: list[ast.stmt] = []
    if model.docstring:
        class_body.append(docstring(model.docstring))
    class_body.append(
        ast.Assign(
            targets=[ast.Name(id="model_config", ctx=ast.Store())],
            value=call(
                name("ConfigDict"),
                keywords=[
                    ast.keyword(arg="extra", value=ast.Constant(value="allow")),
                    ast.keyword(arg="populate_by_name", value=ast.Constant(value=True)),
                    ast.keyword(
                        arg="protected_namespaces",
                        value=ast.Tuple(elts=[], ctx=ast.Load()),
                    ),
                ],
            ),
        )
    )
    for field in model.fields:
        class_body.append(_field_to_ast(field))

    return ast.ClassDef(
        name=model.name,
        bases=[name("BaseModel")],
        keywords=[],
        body=class_body,
        decorator_list=[],
        type_params=[],
    )


def _field_to_ast(field: FieldDef) -> ast.AnnAssign:
    keywords: list[ast.keyword] = []
    if field.source_name != field.name:
        keywords.append(ast.keyword(arg="alias", value=ast.Constant(value=field.source_name)))
    if field.description:
        keywords.append(ast.keyword(arg="description", value=ast.Constant(value=field.description)))

    default_value = ast.Constant(value=Ellipsis if field.required else None)
    return ast.AnnAssign(
        target=ast.Name(id=field.name, ctx=ast.Store()),
        annotation=expr(field.annotation),
        value=call(name("Field"), default_value, keywords=keywords),
        simple=1,
    )


def _build_imports(
    definitions: list[ast.stmt],
    *,
    runtime_module: Optional[str],
) -> list[ast.stmt]:
    used_names = _extract_loaded_names(definitions)

    imports: list[ast.stmt] = []
    datetime_imports = [item for item in _DATETIME_IMPORT_ORDER if item in used_names]
    if datetime_imports:
        imports.append(_import_from("datetime", datetime_imports))
    typing_imports = [item for item in _TYPING_IMPORT_ORDER if item in used_names]
    if typing_imports:
        imports.append(_import_from("typing", typing_imports))
    if runtime_module is not None:
        runtime_imports = [item for item in _RUNTIME_IMPORT_ORDER if item in used_names]
        if runtime_imports:
            imports.append(_import_from(runtime_module, runtime_imports))
        if "types" in used_names:
            imports.append(
                ast.ImportFrom(module=None, names=[ast.alias(name="types")], level=1)
            )
    return imports


def _import_from(module: str, names: list[str]) -> ast.ImportFrom:
    return ast.ImportFrom(module=module, names=[ast.alias(name=item) for item in names], level=0)


def _extract_loaded_names(nodes: Iterable[ast.AST]) -> set[str]:
    loaded_names: set[str] = set()
    for node in nodes:
        for child in ast.walk(node):
            if isinstance(child, ast.Name) and isinstance(child.ctx, ast.Load):
                loaded_names.add(child.id)
    return loaded_names
