"""Internal datatypes shared by the generation stages."""

from __future__ import annotations

import ast
from dataclasses import dataclass, field
from typing import Optional

from .json_types import JSONObject


@dataclass(frozen=True, order=True)
class TypeId:
    """Opaque handle into a :class:`~openapi_sdk_generator.type_space.TypeSpace`.

    ``TypeId(0)`` means "no type yet / unit" and is never a valid lookup key.
    """

    value: int

    @property
    def is_unit(self) -> bool:
        return self.value == 0


UNIT_TYPE = TypeId(0)


@dataclass(frozen=True)
class OperationSpec:
    """One classified HTTP operation."""

    path: str
    method: str
    operation_id: str
    tag: str
    function_name: str
    operation: JSONObject
    path_item: JSONObject
    self_recursive: bool = False


@dataclass(frozen=True)
class PlannedParameter:
    """A function parameter derived from an OpenAPI parameter."""

    name: str
    source_name: str
    location: str
    annotation: str
    required: bool
    description: Optional[str] = None
    type_docs: str = ""


@dataclass(frozen=True)
class ParameterPlan:
    """Ordered, deduplicated parameters of one generated function.

    ``positional`` holds path parameters in template order, ``keyword`` every
    other parameter in signature order, ``query`` the query-string subset sorted
    by source name and ``headers`` the header subset.
    """

    positional: tuple[PlannedParameter, ...]
    keyword: tuple[PlannedParameter, ...]
    query: tuple[PlannedParameter, ...]
    headers: tuple[PlannedParameter, ...]

    @property
    def all(self) -> tuple[PlannedParameter, ...]:
        return (*self.positional, *self.keyword)


@dataclass(frozen=True)
class RequestBody:
    """How a request body is accepted and sent."""

    annotation: str
    kind: str
    content_type: str


@dataclass(frozen=True)
class ResponseShape:
    """Inferred response type and, for paginated envelopes, where the items live."""

    annotation: str
    type_id: Optional[TypeId] = None
    collection_annotation: Optional[str] = None
    item_annotation: Optional[str] = None
    collection_property: Optional[str] = None
    pagination_property: Optional[str] = None
    pattern: Optional[str] = None

    def __post_init__(self) -> None:
        if (self.collection_annotation is None) != (self.pagination_property is None):
            raise ValueError(
                "collection_annotation and pagination_property must be set together"
            )
        if self.type_id is not None and self.type_id.is_unit:
            raise ValueError("ResponseShape.type_id must not be the unit type")

    @property
    def is_paginated(self) -> bool:
        return self.pagination_property is not None

    @property
    def is_unit(self) -> bool:
        return self.type_id is None


@dataclass(frozen=True)
class PaginationPlan:
    """Driver choice for the all-pages sibling of a listable operation."""

    driver: str
    item_annotation: str
    collection_property: Optional[str] = None
    collection_field: Optional[str] = None
    cursor_property: Optional[str] = None


@dataclass(frozen=True)
class FieldDef:
    """Represents a single pydantic model field."""

    name: str
    source_name: str
    annotation: str
    required: bool
    description: Optional[str] = None


@dataclass(frozen=True)
class ModelDef:
    """Represents a generated pydantic model class."""

    name: str
    fields: tuple[FieldDef, ...]
    docstring: Optional[str] = None


@dataclass
class FileOutput:
    """Generated code accumulated for one tag module.

    ``head`` holds module-level statements such as per-operation server
    constants; ``functions`` holds the methods of the tag class.
    """

    tag: str
    head: list[ast.stmt] = field(default_factory=list)
    functions: list[ast.FunctionDef] = field(default_factory=list)


@dataclass(frozen=True)
class GenerationResult:
    """Generation output metadata."""

    output_dir: str
    package_dir: str
    tags: tuple[str, ...]
    warnings: tuple[str, ...]
