"""Operation classification: operation ids, resource tags and method names."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Optional

from .errors import SpecError
from .json_types import JSONObject, JSONValue, string_or_none
from .model_types import OperationSpec
from .naming import (
    HTTP_METHODS,
    clean_name,
    function_name,
    make_plural,
    path_to_operation_id,
    sanitize_identifier,
    snake_case,
)
from .profiles import VendorProfile

SELF_RECURSIVE_EXTENSION = "x-self-recursive"

# Tags that would shadow generated modules, typing imports or runtime client attributes.
_RESERVED_TAG_NAMES: frozenset[str] = frozenset(
    {
        "any",
        "base_url",
        "client",
        "close",
        "delete",
        "get",
        "get_all_pages",
        "literal",
        "message",
        "optional",
        "patch",
        "post",
        "put",
        "request",
        "request_json",
        "send",
        "types",
        "union",
        "url",
    }
)


@dataclass(frozen=True)
class _OperationCandidate:
    path: str
    method: str
    operation: JSONObject
    path_item: JSONObject
    declared_id: Optional[str]


def classify_operations(
    path_map: dict[str, JSONObject],
    profile: VendorProfile,
) -> tuple[list[OperationSpec], list[str]]:
    """Classify every operation of a document.

    Paths are visited in document order and verbs in the fixed order of
    :data:`~openapi_sdk_generator.naming.HTTP_METHODS`.

    Args:
        path_map (dict[str, JSONObject]): ``paths`` object keyed by template.
        profile (VendorProfile): Vendor settings for tag derivation.

    Returns:
        tuple[list[OperationSpec], list[str]]: Classified operations and warnings.
    """
    candidates = _collect_operation_candidates(path_map)
    declared_ids = [candidate.declared_id for candidate in candidates if candidate.declared_id]
    conflicting_ids = {name for name, count in Counter(declared_ids).items() if count > 1}

    warnings: list[str] = []
    if conflicting_ids:
        joined = ", ".join(sorted(conflicting_ids))
        warnings.append(
            "Conflicting operationId values detected; using path-based ids for conflicts: "
            f"{joined}"
        )

    operations: list[OperationSpec] = []
    for candidate in candidates:
        if candidate.declared_id is not None and candidate.declared_id not in conflicting_ids:
            operation_id = candidate.declared_id
        else:
            operation_id = path_to_operation_id(candidate.path, candidate.method)
        tag = resolve_tag(candidate.path, candidate.method, candidate.operation, profile)
        operations.append(
            OperationSpec(
                path=candidate.path,
                method=candidate.method,
                operation_id=operation_id,
                tag=tag,
                function_name=function_name(operation_id, tag),
                operation=candidate.operation,
                path_item=candidate.path_item,
                self_recursive=_is_self_recursive(candidate.operation, operation_id, profile),
            )
        )
    return operations, warnings


def resolve_tag(path: str, method: str, operation: JSONObject, profile: VendorProfile) -> str:
    """Resolve exactly one normalized tag for an operation.

    The first usable value wins: the ``tags`` list, the profile's tag extension
    field, then the first meaningful path segment.
    """
    for raw_tag in (
        _first_string(operation.get("tags")),
        _first_string(operation.get(profile.tag_extension)),
        _tag_from_path(path, profile),
    ):
        if raw_tag is None:
            continue
        tag = normalize_tag(raw_tag, profile)
        if tag:
            return tag
    raise SpecError(f"Unable to derive a tag for {method.upper()} {path}")


def normalize_tag(raw_tag: str, profile: VendorProfile) -> str:
    """Normalize a raw tag into a module name."""
    tag = snake_case(clean_name(raw_tag))
    if not tag:
        return ""
    if profile.pluralize_tags:
        tag = make_plural(tag)
    tag = profile.tag_renames.get(tag, tag)
    tag = sanitize_identifier(tag)
    if tag in _RESERVED_TAG_NAMES:
        tag = f"{tag}_api"
    return tag


def _tag_from_path(path: str, profile: VendorProfile) -> Optional[str]:
    segments = [
        segment
        for segment in path.split("/")
        if segment and not (segment.startswith("{") and segment.endswith("}"))
    ]
    if segments and profile.is_version_prefix(segments[0]):
        segments = segments[1:]
    return segments[0] if segments else None


def _first_string(value: Optional[JSONValue]) -> Optional[str]:
    if isinstance(value, str):
        return string_or_none(value)
    if isinstance(value, list):
        for item in value:
            text = string_or_none(item)
            if text is not None:
                return text
    return None


def _is_self_recursive(operation: JSONObject, operation_id: str, profile: VendorProfile) -> bool:
    return (
        operation.get(SELF_RECURSIVE_EXTENSION) is True
        or operation_id in profile.self_recursive_operations
    )


def _collect_operation_candidates(path_map: dict[str, JSONObject]) -> list[_OperationCandidate]:
    candidates: list[_OperationCandidate] = []
    for path, path_item in path_map.items():
        for method in HTTP_METHODS:
            operation = path_item.get(method)
            if not isinstance(operation, dict):
                continue
            declared_id = string_or_none(operation.get("operationId"))
            candidates.append(
                _OperationCandidate(
                    path=path,
                    method=method,
                    operation=operation,
                    path_item=path_item,
                    declared_id=snake_case(declared_id or "") or None,
                )
            )
    return candidates
