"""Type table mapping JSON-schema fragments to canonical, renderable Python types."""

from __future__ import annotations

import keyword
from dataclasses import dataclass
from typing import Optional

from pydantic import BaseModel

from .json_types import JSONObject, JSONValue, list_or_empty, object_or_empty, string_or_none
from .model_types import UNIT_TYPE, FieldDef, ModelDef, TypeId
from .naming import class_name, clean_name, sanitize_identifier, snake_case
from .resolver import Resolver, ref_name
from .schema_utils import is_nullable, merge_all_of, primary_type, schema_key

TYPES_MODULE = "types"

_RESERVED_CLASS_NAMES: frozenset[str] = frozenset(
    {
        "Any",
        "BaseModel",
        "ConfigDict",
        "Field",
        "Literal",
        "Optional",
        "Self",
        "Union",
    }
)
_RESERVED_FIELD_NAMES: frozenset[str] = frozenset(
    {
        *dir(BaseModel),
        "bool",
        "bytes",
        "date",
        "datetime",
        "dict",
        "float",
        "int",
        "list",
        "str",
        "type",
    }
)
_STRING_FORMATS: dict[str, str] = {
    "date-time": "datetime",
    "date": "date",
    "binary": "bytes",
}
_SCALAR_TYPES: dict[str, str] = {
    "integer": "int",
    "number": "float",
    "boolean": "bool",
}


@dataclass(frozen=True)
class PropertyDef:
    """One property of an object type."""

    source_name: str
    field_name: str
    type_id: TypeId
    required: bool
    description: Optional[str] = None


@dataclass(frozen=True)
class TypeEntry:
    """Table row for one :class:`TypeId`.

    ``kind`` is one of ``object``, ``array``, ``map``, ``union``, ``optional``,
    ``alias``, ``literal``, ``primitive`` or ``pending`` (a named reference whose
    schema is still being converted).
    """

    kind: str
    name: Optional[str] = None
    annotation: Optional[str] = None
    item: Optional[TypeId] = None
    properties: tuple[PropertyDef, ...] = ()
    variants: tuple[TypeId, ...] = ()
    description: Optional[str] = None


class TypeSpace:
    """Get-or-create table of generated types for one generation run."""

    def __init__(self, resolver: Resolver) -> None:
        self._resolver = resolver
        self._entries: dict[TypeId, TypeEntry] = {}
        self._next_id = 1
        self._by_schema: dict[str, TypeId] = {}
        self._by_ref: dict[str, TypeId] = {}
        self._class_names: set[str] = set()
        self._models: list[TypeId] = []

    def select(self, name_hint: Optional[str], schema: JSONValue) -> TypeId:
        """Return the type for a schema fragment, creating it on first use.

        Args:
            name_hint (Optional[str]): Words used to name any generated model.
            schema (JSONValue): Schema fragment, possibly a ``$ref``.

        Returns:
            TypeId: Canonical type handle.
        """
        if not isinstance(schema, dict):
            return self._store(TypeEntry(kind="primitive", annotation="Any"))

        ref = schema.get("$ref")
        if isinstance(ref, str):
            return self.select_ref(ref)

        key = schema_key(schema)
        existing = self._by_schema.get(key)
        if existing is not None:
            return existing

        type_id = self._build(name_hint, schema)
        self._by_schema[key] = type_id
        return type_id

    def select_ref(self, ref: str) -> TypeId:
        """Return the named type for a component schema reference."""
        target_ref = ref
        target = self._resolver.lookup(target_ref)
        seen = {target_ref}
        while isinstance(target.get("$ref"), str):
            target_ref = str(target["$ref"])
            if target_ref in seen:
                break
            seen.add(target_ref)
            target = self._resolver.lookup(target_ref)

        existing = self._by_ref.get(target_ref)
        if existing is not None:
            self._by_ref[ref] = existing
            return existing

        reserved_name = self._unique_class_name(ref_name(target_ref))
        type_id = self._store(TypeEntry(kind="pending", name=reserved_name))
        self._by_ref[target_ref] = type_id
        self._by_ref[ref] = type_id
        self._build(ref_name(target_ref), target, type_id=type_id, reserved_name=reserved_name)
        return type_id

    def entry(self, type_id: TypeId) -> TypeEntry:
        """Return the table row for a type id."""
        if type_id.is_unit:
            raise ValueError("TypeId(0) is the unit type and cannot be looked up")
        try:
            return self._entries[type_id]
        except KeyError as exc:
            raise ValueError(f"Unknown type id: {type_id.value}") from exc

    def render_type(self, type_id: TypeId, *, qualified: bool = False) -> str:
        """Render a type as a Python annotation.

        Args:
            type_id (TypeId): Type to render; ``UNIT_TYPE`` renders as ``None``.
            qualified (bool): Prefix generated models with the ``types`` module.

        Returns:
            str: Annotation source text.
        """
        if type_id.is_unit:
            return "None"
        return self._render(type_id, qualified=qualified, stack=())

    def render_docs(self, type_id: TypeId) -> str:
        """Return the schema description attached to a type, if any."""
        if type_id.is_unit:
            return ""
        entry = self.entry(type_id)
        while entry.description is None and entry.kind in ("alias", "optional") and entry.item:
            entry = self.entry(entry.item)
        return entry.description or ""

    def object_properties(self, type_id: TypeId) -> tuple[PropertyDef, ...]:
        """Return the properties of an object type, or an empty tuple."""
        entry = self._unwrap(type_id, through_optional=True)
        if entry.kind != "object":
            return ()
        return entry.properties

    def property_named(self, type_id: TypeId, source_name: str) -> Optional[PropertyDef]:
        """Return the property declared as ``source_name`` on an object type."""
        for prop in self.object_properties(type_id):
            if prop.source_name == source_name:
                return prop
        return None

    def variants(self, type_id: TypeId) -> tuple[TypeId, ...]:
        """Return the variants of a one-of type, or an empty tuple."""
        entry = self._unwrap(type_id, through_optional=False)
        if entry.kind != "union":
            return ()
        return entry.variants

    def array_item(self, type_id: TypeId) -> Optional[TypeId]:
        """Return the item type of an array type, unwrapping optional layers."""
        entry = self._unwrap(type_id, through_optional=True)
        if entry.kind != "array":
            return None
        return entry.item

    def type_name(self, type_id: TypeId) -> Optional[str]:
        """Return the generated class name behind a type, if it is a model."""
        entry = self._unwrap(type_id, through_optional=True)
        if entry.kind in ("object", "pending"):
            return entry.name
        return None

    def is_string(self, type_id: TypeId) -> bool:
        entry = self._unwrap(type_id, through_optional=True)
        return entry.kind == "primitive" and entry.annotation == "str"

    def models(self) -> list[ModelDef]:
        """Return every generated model in creation order."""
        models: list[ModelDef] = []
        for type_id in self._models:
            entry = self.entry(type_id)
            fields = tuple(
                FieldDef(
                    name=prop.field_name,
                    source_name=prop.source_name,
                    annotation=self._field_annotation(prop),
                    required=prop.required,
                    description=prop.description,
                )
                for prop in entry.properties
            )
            models.append(
                ModelDef(name=entry.name or "Model", fields=fields, docstring=entry.description)
            )
        return models

    def _field_annotation(self, prop: PropertyDef) -> str:
        annotation = self.render_type(prop.type_id)
        if prop.required or annotation in ("Any", "None") or annotation.startswith("Optional["):
            return annotation
        return f"Optional[{annotation}]"

    def _unwrap(self, type_id: TypeId, *, through_optional: bool) -> TypeEntry:
        entry = self.entry(type_id)
        seen = {type_id}
        while entry.item is not None and (
            entry.kind == "alias" or (through_optional and entry.kind == "optional")
        ):
            if entry.item in seen:
                break
            seen.add(entry.item)
            entry = self.entry(entry.item)
        return entry

    def _render(self, type_id: TypeId, *, qualified: bool, stack: tuple[TypeId, ...]) -> str:
        entry = self.entry(type_id)
        if entry.kind in ("object", "pending") and entry.name:
            return f"{TYPES_MODULE}.{entry.name}" if qualified else entry.name
        if type_id in stack:
            return "Any"
        inner_stack = (*stack, type_id)

        if entry.kind == "array" and entry.item is not None:
            return f"list[{self._render(entry.item, qualified=qualified, stack=inner_stack)}]"
        if entry.kind == "map" and entry.item is not None:
            value = self._render(entry.item, qualified=qualified, stack=inner_stack)
            return f"dict[str, {value}]"
        if entry.kind == "alias" and entry.item is not None:
            return self._render(entry.item, qualified=qualified, stack=inner_stack)
        if entry.kind == "optional" and entry.item is not None:
            inner = self._render(entry.item, qualified=qualified, stack=inner_stack)
            if inner in ("Any", "None") or inner.startswith("Optional["):
                return inner
            return f"Optional[{inner}]"
        if entry.kind == "union":
            rendered: list[str] = []
            for variant in entry.variants:
                text = self._render(variant, qualified=qualified, stack=inner_stack)
                if text not in rendered:
                    rendered.append(text)
            if len(rendered) == 1:
                return rendered[0]
            return f"Union[{', '.join(rendered)}]"
        return entry.annotation or "Any"

    def _store(self, entry: TypeEntry, type_id: Optional[TypeId] = None) -> TypeId:
        if type_id is None:
            type_id = TypeId(self._next_id)
            self._next_id += 1
        self._entries[type_id] = entry
        if entry.kind == "object" and type_id not in self._models:
            self._models.append(type_id)
        return type_id

    def _build(
        self,
        name_hint: Optional[str],
        schema: JSONObject,
        *,
        type_id: Optional[TypeId] = None,
        reserved_name: Optional[str] = None,
    ) -> TypeId:
        entry = self._entry_for(name_hint, schema, reserved_name)
        enum_values = list_or_empty(schema.get("enum"))
        if entry.kind != "optional" and (is_nullable(schema) or None in enum_values):
            inner_id = self._store(entry)
            entry = TypeEntry(
                kind="optional",
                item=inner_id,
                description=string_or_none(schema.get("description")),
            )
        return self._store(entry, type_id)

    def _entry_for(
        self,
        name_hint: Optional[str],
        schema: JSONObject,
        reserved_name: Optional[str],
    ) -> TypeEntry:
        description = string_or_none(schema.get("description"))

        if "enum" in schema or "const" in schema:
            return self._literal_entry(schema, description)

        for key in ("oneOf", "anyOf"):
            options = schema.get(key)
            if isinstance(options, list) and options:
                return self._union_entry(name_hint, options, description)

        if "allOf" in schema:
            merged = merge_all_of(schema, resolve=self._inline_ref)
            if merged is not None:
                return self._object_entry(name_hint, merged, reserved_name, description)
            parts = [part for part in list_or_empty(schema.get("allOf")) if isinstance(part, dict)]
            if len(parts) == 1:
                return TypeEntry(
                    kind="alias", item=self.select(name_hint, parts[0]), description=description
                )
            return TypeEntry(kind="primitive", annotation="Any", description=description)

        schema_type = primary_type(schema)
        if schema_type == "array":
            item_hint = f"{name_hint} item" if name_hint else None
            return TypeEntry(
                kind="array",
                item=self.select(item_hint, schema.get("items", {})),
                description=description,
            )

        if schema_type == "object" or "properties" in schema or "additionalProperties" in schema:
            if object_or_empty(schema.get("properties")):
                return self._object_entry(name_hint, schema, reserved_name, description)
            additional = schema.get("additionalProperties")
            if isinstance(additional, dict) and additional:
                value_hint = f"{name_hint} value" if name_hint else None
                return TypeEntry(
                    kind="map", item=self.select(value_hint, additional), description=description
                )
            return TypeEntry(kind="primitive", annotation="dict[str, Any]", description=description)

        if schema_type == "string":
            schema_format = schema.get("format")
            annotation = "str"
            if isinstance(schema_format, str):
                annotation = _STRING_FORMATS.get(schema_format, "str")
            return TypeEntry(kind="primitive", annotation=annotation, description=description)

        if schema_type in _SCALAR_TYPES:
            return TypeEntry(
                kind="primitive", annotation=_SCALAR_TYPES[schema_type], description=description
            )

        return TypeEntry(kind="primitive", annotation="Any", description=description)

    def _literal_entry(self, schema: JSONObject, description: Optional[str]) -> TypeEntry:
        raw_values = list_or_empty(schema.get("enum")) if "enum" in schema else [schema["const"]]
        values = [value for value in raw_values if value is not None]
        if values and all(isinstance(value, (str, int, bool)) for value in values):
            literal = ", ".join(repr(value) for value in values)
            return TypeEntry(
                kind="literal", annotation=f"Literal[{literal}]", description=description
            )

        schema_type = primary_type(schema)
        if schema_type == "string":
            annotation = "str"
        else:
            annotation = _SCALAR_TYPES.get(schema_type or "", "Any")
        return TypeEntry(kind="primitive", annotation=annotation, description=description)

    def _union_entry(
        self,
        name_hint: Optional[str],
        options: list[JSONValue],
        description: Optional[str],
    ) -> TypeEntry:
        variants: list[TypeId] = []
        nullable = False
        for index, option in enumerate(options):
            if option == {"type": "null"}:
                nullable = True
                continue
            title = string_or_none(object_or_empty(option).get("title"))
            hint = title or (f"{name_hint} variant {index + 1}" if name_hint else None)
            variant = self.select(hint, option)
            if variant not in variants:
                variants.append(variant)

        if not variants:
            return TypeEntry(kind="primitive", annotation="Any", description=description)
        if len(variants) == 1:
            entry = TypeEntry(kind="alias", item=variants[0], description=description)
        else:
            entry = TypeEntry(kind="union", variants=tuple(variants), description=description)
        if nullable:
            return TypeEntry(kind="optional", item=self._store(entry), description=description)
        return entry

    def _object_entry(
        self,
        name_hint: Optional[str],
        schema: JSONObject,
        reserved_name: Optional[str],
        description: Optional[str],
    ) -> TypeEntry:
        name = reserved_name or self._unique_class_name(name_hint or "object")
        required = {item for item in list_or_empty(schema.get("required")) if isinstance(item, str)}
        used_fields: set[str] = set()
        properties: list[PropertyDef] = []
        for source_name, property_schema in object_or_empty(schema.get("properties")).items():
            field_name = _field_name(source_name, used_fields)
            used_fields.add(field_name)
            property_id = self.select(f"{name} {source_name}", property_schema)
            properties.append(
                PropertyDef(
                    source_name=source_name,
                    field_name=field_name,
                    type_id=property_id,
                    required=source_name in required,
                    description=string_or_none(object_or_empty(property_schema).get("description"))
                    or self.render_docs(property_id)
                    or None,
                )
            )
        return TypeEntry(
            kind="object", name=name, properties=tuple(properties), description=description
        )

    def _inline_ref(self, node: JSONObject) -> JSONObject:
        resolved, _ = self._resolver.deref(node)
        return resolved

    def _unique_class_name(self, hint: str) -> str:
        base = class_name(clean_name(hint))
        if base in _RESERVED_CLASS_NAMES:
            base = f"{base}Data"
        candidate = base
        suffix = 2
        while candidate in self._class_names:
            candidate = f"{base}{suffix}"
            suffix += 1
        self._class_names.add(candidate)
        return candidate


def _field_name(source_name: str, used_names: set[str]) -> str:
    candidate = sanitize_identifier(snake_case(source_name))
    if candidate in _RESERVED_FIELD_NAMES or keyword.iskeyword(candidate.rstrip("_")):
        candidate = f"{candidate.rstrip('_')}_field"
    if candidate not in used_names:
        return candidate

    suffix = 2
    while f"{candidate}_{suffix}" in used_names:
        suffix += 1
    return f"{candidate}_{suffix}"


__all__ = ["TYPES_MODULE", "UNIT_TYPE", "PropertyDef", "TypeEntry", "TypeSpace"]
