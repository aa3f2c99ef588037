"""Parameter planning: OpenAPI parameters to generated function parameters."""

from __future__ import annotations

import keyword

from .errors import SpecError
from .json_types import JSONObject, JSONValue, list_or_empty, object_or_empty, string_or_none
from .model_types import OperationSpec, ParameterPlan, PlannedParameter
from .naming import oid_to_object_name, sanitize_identifier, snake_case
from .profiles import VendorProfile
from .resolver import Resolver
from .template import ENCODE_PATH, parse
from .type_space import TYPES_MODULE, TypeSpace

RESERVED_PARAMETER_NAMES: frozenset[str] = frozenset(
    {
        "ref",
        "type",
        "foo",
        "enum",
        "const",
        "use",
        "self",
        "url",
        "body",
        "l",
        ENCODE_PATH,
        TYPES_MODULE,
    }
)

PAGINATION_PARAMETER_NAMES: frozenset[str] = frozenset(
    {
        "page",
        "per_page",
        "per",
        "page_size",
        "size",
        "next_page_token",
        "page_token",
        "max_results",
        "page_number",
        "start",
        "sync_token",
        "limit",
        "ending_before",
    }
)

_SUPPORTED_LOCATIONS: tuple[str, ...] = ("path", "query", "header")


def parameter_identifier(source_name: str) -> str:
    """Derive the generated identifier for a declared parameter name."""
    identifier = snake_case(source_name)
    if identifier == "i_ds":
        identifier = "ids"
    identifier = f"_{identifier}_".replace("_i_ds_", "_ids_").strip("_")
    if identifier in RESERVED_PARAMETER_NAMES or keyword.iskeyword(identifier):
        return f"{identifier}_"
    return sanitize_identifier(identifier)


def plan_parameters(
    operation: OperationSpec,
    *,
    resolver: Resolver,
    type_space: TypeSpace,
    profile: VendorProfile,
    all_pages: bool,
) -> ParameterPlan:
    """Expand, filter, deduplicate and order the parameters of one operation.

    Args:
        operation (OperationSpec): Classified operation.
        resolver (Resolver): Reference registry for ``$ref`` parameters.
        type_space (TypeSpace): Shared type table.
        profile (VendorProfile): Vendor noise and pagination parameter names.
        all_pages (bool): Drop pagination controls for the all-pages variant.

    Returns:
        ParameterPlan: Ordered parameters for the generated function.
    """
    declared = [
        *list_or_empty(operation.path_item.get("parameters")),
        *list_or_empty(operation.operation.get("parameters")),
    ]
    object_name = oid_to_object_name(operation.operation_id)

    candidates: list[tuple[JSONObject, str, str]] = []
    for node in declared:
        parameter = resolver.resolve_parameter(node)
        source_name = string_or_none(parameter.get("name"))
        location = parameter.get("in")
        if source_name is None or not isinstance(location, str):
            raise SpecError(
                f"Parameter without a name or location in {operation.method.upper()} "
                f"{operation.path}"
            )
        if location == "cookie":
            raise SpecError(
                f"Cookie parameter {source_name!r} in {operation.method.upper()} "
                f"{operation.path} is not supported"
            )
        if location not in _SUPPORTED_LOCATIONS:
            raise SpecError(f"Unknown parameter location {location!r} for {source_name!r}")
        candidates.append((parameter, source_name, location))

    # Path parameters claim their identifiers before same-named query or header parameters.
    candidates.sort(key=lambda candidate: candidate[2] != "path")
    planned: list[PlannedParameter] = []
    seen: set[str] = set()
    for parameter, source_name, location in candidates:
        if profile.is_noise_parameter(source_name):
            continue
        identifier = parameter_identifier(source_name)
        if all_pages and location != "path" and _is_pagination_control(identifier, profile):
            continue

        key = identifier.rstrip("_")
        if key in seen:
            continue
        seen.add(key)

        planned.append(
            _planned_parameter(
                parameter,
                identifier=identifier,
                source_name=source_name,
                location=location,
                name_hint=f"{object_name} {source_name}",
                type_space=type_space,
            )
        )

    return _order(planned, path=operation.path)


def _planned_parameter(
    parameter: JSONObject,
    *,
    identifier: str,
    source_name: str,
    location: str,
    name_hint: str,
    type_space: TypeSpace,
) -> PlannedParameter:
    type_id = type_space.select(name_hint, _parameter_schema(parameter))
    annotation = type_space.render_type(type_id, qualified=True)
    required = location == "path" or parameter.get("required") is True
    if annotation in ("datetime", "Optional[datetime]"):
        required = False
    if not required:
        annotation = _optional(annotation)
    return PlannedParameter(
        name=identifier,
        source_name=source_name,
        location=location,
        annotation=annotation,
        required=required,
        description=string_or_none(parameter.get("description")),
        type_docs=type_space.render_docs(type_id),
    )


def _optional(annotation: str) -> str:
    if annotation in ("Any", "None") or annotation.startswith("Optional["):
        return annotation
    return f"Optional[{annotation}]"


def _parameter_schema(parameter: JSONObject) -> JSONValue:
    schema = parameter.get("schema")
    if isinstance(schema, dict):
        return schema
    for media in object_or_empty(parameter.get("content")).values():
        media_schema = object_or_empty(media).get("schema")
        if isinstance(media_schema, dict):
            return media_schema
    return {"type": "string"}


def _is_pagination_control(identifier: str, profile: VendorProfile) -> bool:
    name = identifier.rstrip("_")
    return name in PAGINATION_PARAMETER_NAMES or name in profile.extra_pagination_parameters


def _order(planned: list[PlannedParameter], *, path: str) -> ParameterPlan:
    by_source: dict[str, PlannedParameter] = {
        parameter.source_name: parameter for parameter in planned if parameter.location == "path"
    }
    positional: list[PlannedParameter] = []
    for name in parse(path).parameter_names:
        parameter = by_source.pop(name, None)
        if parameter is None:
            raise SpecError(f"Path parameter {name!r} of {path} is not declared")
        positional.append(parameter)
    positional.extend(by_source.values())

    others = [parameter for parameter in planned if parameter.location != "path"]
    keyword_params = sorted(
        others, key=lambda parameter: (not parameter.required, parameter.name)
    )
    query = sorted(
        (parameter for parameter in others if parameter.location == "query"),
        key=lambda parameter: parameter.source_name,
    )
    headers = tuple(parameter for parameter in others if parameter.location == "header")
    return ParameterPlan(
        positional=tuple(positional),
        keyword=tuple(keyword_params),
        query=tuple(query),
        headers=headers,
    )


def identifiers_by_source(plan: ParameterPlan) -> dict[str, str]:
    """Map each path parameter's declared name to its generated identifier."""
    return {parameter.source_name: parameter.name for parameter in plan.positional}
