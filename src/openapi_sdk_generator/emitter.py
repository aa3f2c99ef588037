"""Emitter: doc comments, signatures and bodies for each classified operation."""

from __future__ import annotations

import ast
from collections.abc import Callable
from typing import Optional

from .codegen_ast import attr, call, docstring, expr, name
from .json_types import object_or_empty, string_or_none
from .model_types import (
    FileOutput,
    OperationSpec,
    PaginationPlan,
    ParameterPlan,
    PlannedParameter,
    RequestBody,
    ResponseShape,
)
from .naming import (
    all_pages_name,
    claim_function_name,
    clean_name,
    make_singular,
    oid_to_object_name,
    sanitize_identifier,
    single_page_name,
    snake_case,
)
from .pagination import all_pages_call, select_pagination, single_page_result
from .parameters import identifiers_by_source, plan_parameters
from .profiles import VendorProfile
from .resolver import Resolver
from .responses import infer_response_shape
from .template import parse
from .type_space import TypeSpace

_METHOD_INDENT = " " * 8
_CLIENT_VERBS: frozenset[str] = frozenset({"get", "post", "put", "patch", "delete"})
_JSON_MEDIA_TYPE = "application/json"
_BINARY_MEDIA_TYPE = "application/octet-stream"


def emit_operation(
    operation: OperationSpec,
    *,
    resolver: Resolver,
    type_space: TypeSpace,
    profile: VendorProfile,
    outputs: dict[str, FileOutput],
    fn_names: frozenset[str],
) -> tuple[frozenset[str], list[str]]:
    """Emit every generated method for one operation into its tag's output.

    Args:
        operation (OperationSpec): Classified operation.
        resolver (Resolver): Reference registry.
        type_space (TypeSpace): Shared type table.
        profile (VendorProfile): Vendor settings.
        outputs (dict[str, FileOutput]): Tag outputs, created on first use.
        fn_names (frozenset[str]): ``tag.name`` entries already emitted in this run.

    Returns:
        tuple[frozenset[str], list[str]]: Updated name set and warnings.
    """
    output = outputs.get(operation.tag)
    if output is None:
        output = FileOutput(tag=operation.tag)
        outputs[operation.tag] = output

    plan = plan_parameters(
        operation, resolver=resolver, type_space=type_space, profile=profile, all_pages=False
    )
    shape, warnings = infer_response_shape(
        operation, resolver=resolver, type_space=type_space, profile=profile
    )
    body = plan_request_body(operation, resolver=resolver, type_space=type_space)
    pagination = select_pagination(
        operation.method, shape, profile=profile, type_space=type_space
    )
    host = _server_constant(operation, output)
    emitter = _MethodEmitter(operation=operation, body=body, host=host)

    if pagination is None:
        fn_names = _append(
            output,
            fn_names,
            operation.function_name,
            lambda method_name: emitter.single(method_name, plan, shape.annotation),
        )
        if shape.type_id is not None:
            for index, variant in enumerate(type_space.variants(shape.type_id)):
                suffix = _variant_suffix(operation, type_space.type_name(variant), index)
                annotation = type_space.render_type(variant, qualified=True)
                fn_names = _append(
                    output,
                    fn_names,
                    f"{operation.function_name}_{suffix}",
                    lambda method_name, annotation=annotation: emitter.single(
                        method_name, plan, annotation
                    ),
                )
        return fn_names, warnings

    all_pages_plan = plan_parameters(
        operation, resolver=resolver, type_space=type_space, profile=profile, all_pages=True
    )
    fn_names = _append(
        output,
        fn_names,
        single_page_name(operation.function_name),
        lambda method_name: emitter.page(method_name, plan, shape, pagination),
    )
    fn_names = _append(
        output,
        fn_names,
        all_pages_name(operation.function_name),
        lambda method_name: emitter.all_pages(method_name, all_pages_plan, pagination),
    )
    return fn_names, warnings


def plan_request_body(
    operation: OperationSpec,
    *,
    resolver: Resolver,
    type_space: TypeSpace,
) -> Optional[RequestBody]:
    """Decide how the request body is typed and sent."""
    node = operation.operation.get("requestBody")
    if node is None:
        return None
    request_body = resolver.resolve_request_body(node)
    content = object_or_empty(request_body.get("content"))
    if not content:
        return None

    media_types = {
        media_type.split(";")[0].strip().lower(): media for media_type, media in content.items()
    }
    json_media = media_types.get(_JSON_MEDIA_TYPE)
    if json_media is not None:
        schema = object_or_empty(json_media).get("schema", {})
        hint = clean_name(f"{oid_to_object_name(operation.operation_id)} request")
        type_id = type_space.select(hint, schema)
        return RequestBody(
            annotation=type_space.render_type(type_id, qualified=True),
            kind="json",
            content_type=_JSON_MEDIA_TYPE,
        )

    media_type, media = next(iter(media_types.items()))
    schema = object_or_empty(object_or_empty(media).get("schema"))
    if media_type == _BINARY_MEDIA_TYPE or schema.get("format") == "binary":
        return RequestBody(annotation="bytes", kind="binary", content_type=media_type)
    return RequestBody(annotation="Union[str, bytes]", kind="raw", content_type=media_type)


class _MethodEmitter:
    """Builds the method ASTs for one operation."""

    def __init__(
        self,
        *,
        operation: OperationSpec,
        body: Optional[RequestBody],
        host: Optional[str],
    ) -> None:
        self._operation = operation
        self._body = body
        self._host = host

    def single(self, method_name: str, plan: ParameterPlan, annotation: str) -> ast.FunctionDef:
        request = self._request(plan, response_type=annotation)
        return self._function(method_name, plan, returns=annotation, result=request)

    def page(
        self,
        method_name: str,
        plan: ParameterPlan,
        shape: ResponseShape,
        pagination: PaginationPlan,
    ) -> ast.FunctionDef:
        request = self._request(plan, response_type=shape.annotation)
        returns = shape.collection_annotation or shape.annotation
        return self._function(
            method_name,
            plan,
            returns=returns,
            result=single_page_result(pagination, request),
        )

    def all_pages(
        self,
        method_name: str,
        plan: ParameterPlan,
        pagination: PaginationPlan,
    ) -> ast.FunctionDef:
        result = all_pages_call(pagination, url=name("url"))
        return self._function(
            method_name,
            plan,
            returns=f"list[{pagination.item_annotation}]",
            result=result,
            note="Walks every page of the listing and returns the accumulated items.",
        )

    def _function(
        self,
        method_name: str,
        plan: ParameterPlan,
        *,
        returns: str,
        result: ast.expr,
        note: Optional[str] = None,
    ) -> ast.FunctionDef:
        args = [ast.arg(arg="self")]
        args.extend(_arg(parameter) for parameter in plan.positional)
        if self._body is not None:
            args.append(ast.arg(arg="body", annotation=expr(self._body.annotation)))

        kwonlyargs = [_arg(parameter) for parameter in plan.keyword]
        kw_defaults: list[Optional[ast.expr]] = [
            None if parameter.required else ast.Constant(value=None) for parameter in plan.keyword
        ]

        statements: list[ast.stmt] = [
            docstring(_docstring(self._operation, plan, note=note)),
            ast.Assign(targets=[ast.Name(id="url", ctx=ast.Store())], value=self._url(plan)),
            ast.Return(value=result),
        ]
        return ast.FunctionDef(
            name=method_name,
            args=ast.arguments(
                posonlyargs=[],
                args=args,
                kwonlyargs=kwonlyargs,
                kw_defaults=kw_defaults,
                defaults=[],
            ),
            body=statements,
            decorator_list=[],
            returns=_annotation_expr(returns),
            type_params=[],
        )

    def _url(self, plan: ParameterPlan) -> ast.expr:
        template = parse(self._operation.path)
        keywords: list[ast.keyword] = []
        if plan.query:
            pairs = [
                ast.Tuple(
                    elts=[ast.Constant(value=parameter.source_name), name(parameter.name)],
                    ctx=ast.Load(),
                )
                for parameter in plan.query
            ]
            keywords.append(ast.keyword(arg="query", value=ast.List(elts=pairs, ctx=ast.Load())))
        if self._host is not None:
            keywords.append(ast.keyword(arg="host", value=name(self._host)))
        return call(
            attr(attr(name("self"), "client"), "url"),
            template.to_expr(identifiers_by_source(plan)),
            keywords=keywords,
        )

    def _request(self, plan: ParameterPlan, *, response_type: str) -> ast.Call:
        client = attr(name("self"), "client")
        args: list[ast.expr] = [name("url")]
        if self._body is not None:
            args.append(_message_expr(self._body))

        keywords: list[ast.keyword] = []
        if plan.headers:
            keywords.append(
                ast.keyword(
                    arg="headers",
                    value=ast.Dict(
                        keys=[
                            ast.Constant(value=parameter.source_name)
                            for parameter in plan.headers
                        ],
                        values=[name(parameter.name) for parameter in plan.headers],
                    ),
                )
            )
        keywords.append(ast.keyword(arg="response_type", value=_annotation_expr(response_type)))

        method = self._operation.method
        if method in _CLIENT_VERBS:
            return call(attr(client, method), *args, keywords=keywords)
        return call(
            attr(client, "send"),
            ast.Constant(value=method.upper()),
            *args,
            keywords=keywords,
        )


def _append(
    output: FileOutput,
    fn_names: frozenset[str],
    preferred_name: str,
    build: Callable[[str], ast.FunctionDef],
) -> frozenset[str]:
    method_name, fn_names = claim_function_name(fn_names, output.tag, preferred_name)
    output.functions.append(build(method_name))
    return fn_names


def _arg(parameter: PlannedParameter) -> ast.arg:
    return ast.arg(arg=parameter.name, annotation=expr(parameter.annotation))


def _annotation_expr(annotation: str) -> ast.expr:
    if annotation == "None":
        return ast.Constant(value=None)
    return expr(annotation)


def _message_expr(body: RequestBody) -> ast.expr:
    if body.kind == "json":
        return call(attr(name("Message"), "json"), name("body"))
    return call(
        name("Message"),
        keywords=[
            ast.keyword(arg="body", value=name("body")),
            ast.keyword(arg="content_type", value=ast.Constant(value=body.content_type)),
        ],
    )


def _server_constant(operation: OperationSpec, output: FileOutput) -> Optional[str]:
    servers = operation.operation.get("servers") or operation.path_item.get("servers")
    if not isinstance(servers, list) or not servers:
        return None
    url = string_or_none(object_or_empty(servers[0]).get("url"))
    if url is None:
        return None

    constant = f"DEFAULT_SERVER_{sanitize_identifier(operation.operation_id).upper()}"
    defined = {
        target.id
        for statement in output.head
        if isinstance(statement, ast.Assign)
        for target in statement.targets
        if isinstance(target, ast.Name)
    }
    if constant not in defined:
        output.head.append(
            ast.Assign(
                targets=[ast.Name(id=constant, ctx=ast.Store())],
                value=ast.Constant(value=url.rstrip("/")),
            )
        )
    return constant


def _variant_suffix(operation: OperationSpec, type_name: Optional[str], index: int) -> str:
    if type_name:
        dropped = {
            *operation.tag.split("_"),
            make_singular(operation.tag),
            *operation.operation_id.split("_"),
        }
        words = [word for word in snake_case(type_name).split("_") if word not in dropped]
        if words:
            return sanitize_identifier("_".join(words))
    return f"variant_{index + 1}"


def _docstring(operation: OperationSpec, plan: ParameterPlan, *, note: Optional[str]) -> str:
    lines: list[str] = []
    summary = string_or_none(operation.operation.get("summary"))
    if summary:
        lines.extend([f"{summary.rstrip('.')}.", ""])
    lines.append(
        f"This function performs a `{operation.method.upper()}` to the `{operation.path}` endpoint."
    )

    description = string_or_none(operation.operation.get("description"))
    if description:
        lines.extend(["", *description.splitlines()])
    docs_url = string_or_none(object_or_empty(operation.operation.get("externalDocs")).get("url"))
    if docs_url:
        lines.extend(["", f"FROM: <{docs_url}>"])
    if note:
        lines.extend(["", note])
    if operation.self_recursive:
        lines.extend(["", "This function may call itself recursively."])

    parameters = plan.all
    if parameters:
        lines.extend(["", "**Parameters:**", ""])
        for parameter in parameters:
            signature = f"{parameter.name}: {parameter.annotation}"
            lines.append(f"* `{signature}`{_parameter_docs(parameter)}")

    body = "\n".join(f"{_METHOD_INDENT}{line}" if line else "" for line in lines[1:])
    text = lines[0] if not body else f"{lines[0]}\n{body}"
    return f"{text}\n{_METHOD_INDENT}"


def _parameter_docs(parameter: PlannedParameter) -> str:
    description = parameter.description or ""
    type_docs = parameter.type_docs.strip("*").strip()
    if description and len(description) > len(type_docs):
        text = description
    elif type_docs:
        text = type_docs
    else:
        return ""
    text = " ".join(text.split())
    return f" -- {text.rstrip('.')}."
