"""Local ``$ref`` resolution against one OpenAPI document."""

from __future__ import annotations

from typing import Optional

from .errors import SpecError, UnresolvedReferenceError
from .json_types import JSONObject, JSONValue, object_or_empty


class Resolver:
    """Look up ``#/...`` references and unwrap referenced components."""

    def __init__(self, document: JSONObject) -> None:
        self._document = document

    def lookup(self, ref: str) -> JSONObject:
        """Return the node a local JSON pointer reference points at."""
        if not ref.startswith("#/"):
            raise UnresolvedReferenceError(ref)

        current: JSONValue = self._document
        for token in ref[2:].split("/"):
            token = token.replace("~1", "/").replace("~0", "~")
            if not isinstance(current, dict) or token not in current:
                raise UnresolvedReferenceError(ref)
            current = current[token]

        if not isinstance(current, dict):
            raise SpecError(f"Reference {ref} does not point at an object")
        return current

    def deref(self, node: JSONValue) -> tuple[JSONObject, Optional[str]]:
        """Follow a chain of ``$ref`` nodes.

        Returns:
            tuple[JSONObject, Optional[str]]: The target node and the name of the
            first component that was referenced, if any.
        """
        mapping = object_or_empty(node)
        first_name: Optional[str] = None
        seen: set[str] = set()
        ref = mapping.get("$ref")
        while isinstance(ref, str):
            if ref in seen:
                raise SpecError(f"Circular reference chain through {ref}")
            seen.add(ref)
            if first_name is None:
                first_name = ref_name(ref)
            mapping = self.lookup(ref)
            ref = mapping.get("$ref")
        return mapping, first_name

    def resolve_parameter(self, node: JSONValue) -> JSONObject:
        """Resolve an inline or ``#/components/parameters`` parameter."""
        parameter, _ = self.deref(node)
        return parameter

    def resolve_response(self, node: JSONValue) -> tuple[JSONObject, Optional[str]]:
        """Resolve an inline or ``#/components/responses`` response."""
        return self.deref(node)

    def resolve_request_body(self, node: JSONValue) -> JSONObject:
        """Resolve an inline or ``#/components/requestBodies`` request body."""
        body, _ = self.deref(node)
        return body


def ref_name(ref: str) -> str:
    """Return the last segment of a reference, e.g. ``Widget`` for a component schema."""
    return ref.rsplit("/", maxsplit=1)[-1].replace("~1", "/").replace("~0", "~")
