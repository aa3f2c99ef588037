"""Response shape inference, including pagination envelope detection."""

from __future__ import annotations

from collections.abc import Callable
from typing import Optional

from .json_types import object_or_empty
from .model_types import OperationSpec, ResponseShape, TypeId
from .naming import clean_name, oid_to_object_name
from .profiles import VendorProfile
from .resolver import Resolver
from .schema_utils import is_empty_schema
from .type_space import PropertyDef, TypeSpace

UNIT_SHAPE = ResponseShape(annotation="None")

_TEXT_MEDIA_TYPES: frozenset[str] = frozenset(
    {"text/plain", "text/html", "application/octocat-stream", "*/*"}
)
_JSON_MEDIA_TYPE = "application/json"
_SCIM_MEDIA_TYPE = "application/scim+json"


def select_response(
    operation: OperationSpec,
    profile: VendorProfile,
) -> tuple[Optional[str], list[str]]:
    """Pick the status code whose response drives the return type.

    The first 2xx response wins, falling back to the first declared one. With
    ``profile.first_declared_response`` the first declared response always wins.
    """
    responses = object_or_empty(operation.operation.get("responses"))
    statuses = [str(status) for status in responses]
    if not statuses:
        return None, []

    first_declared = statuses[0]
    if profile.first_declared_response:
        return first_declared, []

    success = next((status for status in statuses if status.startswith("2")), None)
    if success is None:
        return first_declared, []
    warnings: list[str] = []
    if success != first_declared:
        warnings.append(
            f"{operation.method.upper()} {operation.path}: first declared response "
            f"{first_declared} is not a success response; using {success}"
        )
    return success, warnings


def infer_response_shape(
    operation: OperationSpec,
    *,
    resolver: Resolver,
    type_space: TypeSpace,
    profile: VendorProfile,
) -> tuple[ResponseShape, list[str]]:
    """Infer the return type and pagination envelope of an operation.

    Args:
        operation (OperationSpec): Classified operation.
        resolver (Resolver): Reference registry for ``$ref`` responses.
        type_space (TypeSpace): Shared type table.
        profile (VendorProfile): Response selection switch.

    Returns:
        tuple[ResponseShape, list[str]]: Inferred shape and warnings.
    """
    status, warnings = select_response(operation, profile)
    if status is None:
        return UNIT_SHAPE, warnings

    responses = object_or_empty(operation.operation.get("responses"))
    response, response_ref = resolver.resolve_response(responses.get(status, {}))
    content = object_or_empty(response.get("content"))
    if not content:
        return UNIT_SHAPE, warnings

    name_hint = clean_name(f"{oid_to_object_name(operation.operation_id)} response")
    media_types = {
        media_type.split(";")[0].strip().lower(): media for media_type, media in content.items()
    }

    json_media = media_types.get(_JSON_MEDIA_TYPE)
    if json_media is not None:
        schema = object_or_empty(object_or_empty(json_media).get("schema"))
        if is_empty_schema(schema):
            return UNIT_SHAPE, warnings
        type_id = type_space.select(response_ref or name_hint, schema)
        return detect_envelope(type_id, type_space), warnings

    first_media_type, first_media = next(iter(media_types.items()))
    schema = object_or_empty(object_or_empty(first_media).get("schema"))
    if schema and first_media_type in _TEXT_MEDIA_TYPES:
        return _plain_shape(type_space.select(None, schema), type_space), warnings
    if schema and first_media_type == _SCIM_MEDIA_TYPE:
        return _plain_shape(type_space.select(name_hint, schema), type_space), warnings

    warnings.append(
        f"ResponseShapeUnrecognized: {operation.method.upper()} {operation.path} "
        f"response {status} ({', '.join(media_types)}); generating an untyped return"
    )
    return UNIT_SHAPE, warnings


def detect_envelope(type_id: TypeId, type_space: TypeSpace) -> ResponseShape:
    """Test a resolved type against the pagination envelope patterns in priority order."""
    properties = {prop.source_name: prop for prop in type_space.object_properties(type_id)}
    if properties:
        for pattern in _ENVELOPE_PATTERNS:
            shape = pattern(type_id, properties, type_space)
            if shape is not None:
                return shape
    return _plain_shape(type_id, type_space)


def _plain_shape(type_id: TypeId, type_space: TypeSpace) -> ResponseShape:
    return ResponseShape(
        annotation=type_space.render_type(type_id, qualified=True),
        type_id=type_id,
    )


def _page_wrapper(
    type_id: TypeId,
    properties: dict[str, PropertyDef],
    type_space: TypeSpace,
) -> Optional[ResponseShape]:
    page = properties.get("page")
    if page is None:
        return None
    page_type = type_space.render_type(page.type_id)
    if not page_type.removeprefix("Optional[").removesuffix("]").endswith("Page"):
        return None
    collection = _data_or_pair_collection(properties, exclude="page", type_space=type_space)
    return _paginated_shape(type_id, collection, "page", type_space)


def _has_more_wrapper(
    type_id: TypeId,
    properties: dict[str, PropertyDef],
    type_space: TypeSpace,
) -> Optional[ResponseShape]:
    if "has_more" not in properties:
        return None
    collection = _data_or_pair_collection(properties, exclude="has_more", type_space=type_space)
    return _paginated_shape(type_id, collection, "has_more", type_space)


def _next_page_token_wrapper(
    type_id: TypeId,
    properties: dict[str, PropertyDef],
    type_space: TypeSpace,
) -> Optional[ResponseShape]:
    token = properties.get("next_page_token")
    if token is None or not type_space.is_string(token.type_id):
        return None
    collection = _first_collection(properties, type_space)
    return _paginated_shape(type_id, collection, "next_page_token", type_space)


def _next_page_token_camel_wrapper(
    type_id: TypeId,
    properties: dict[str, PropertyDef],
    type_space: TypeSpace,
) -> Optional[ResponseShape]:
    token = properties.get("nextPageToken")
    if token is None or not type_space.is_string(token.type_id):
        return None
    items = properties.get("items")
    if items is not None and type_space.array_item(items.type_id) is not None:
        collection: Optional[PropertyDef] = items
    else:
        collection = _first_collection(properties, type_space)
    return _paginated_shape(type_id, collection, "nextPageToken", type_space)


_ENVELOPE_PATTERNS: tuple[
    Callable[[TypeId, dict[str, PropertyDef], TypeSpace], Optional[ResponseShape]], ...
] = (
    _page_wrapper,
    _has_more_wrapper,
    _next_page_token_wrapper,
    _next_page_token_camel_wrapper,
)


def _data_or_pair_collection(
    properties: dict[str, PropertyDef],
    *,
    exclude: str,
    type_space: TypeSpace,
) -> Optional[PropertyDef]:
    data = properties.get("data")
    if data is not None:
        return data if type_space.array_item(data.type_id) is not None else None
    if len(properties) != 2:
        return None
    for name, prop in properties.items():
        if name != exclude and type_space.array_item(prop.type_id) is not None:
            return prop
    return None


def _first_collection(
    properties: dict[str, PropertyDef],
    type_space: TypeSpace,
) -> Optional[PropertyDef]:
    for prop in properties.values():
        if type_space.array_item(prop.type_id) is not None:
            return prop
    return None


def _paginated_shape(
    type_id: TypeId,
    collection: Optional[PropertyDef],
    pattern: str,
    type_space: TypeSpace,
) -> Optional[ResponseShape]:
    if collection is None:
        return None
    item_id = type_space.array_item(collection.type_id)
    if item_id is None:
        return None
    return ResponseShape(
        annotation=type_space.render_type(type_id, qualified=True),
        type_id=type_id,
        collection_annotation=type_space.render_type(collection.type_id, qualified=True),
        item_annotation=type_space.render_type(item_id, qualified=True),
        collection_property=collection.source_name,
        pagination_property=pattern,
        pattern=pattern,
    )


__all__ = ["UNIT_SHAPE", "detect_envelope", "infer_response_shape", "select_response"]
