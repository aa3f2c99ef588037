"""Errors raised when an OpenAPI document cannot be turned into a client package."""

from __future__ import annotations


class SpecError(RuntimeError):
    """Raised when the source document has a defect that aborts generation."""


class UnresolvedReferenceError(SpecError):
    """Raised when a local ``$ref`` does not point at an existing node."""

    def __init__(self, reference: str) -> None:
        super().__init__(f"could not find reference: {reference}")
        self.reference = reference


class PaginationNotSupportedError(SpecError):
    """Raised when a paginated response matches none of the known drivers."""

    def __init__(self, vendor: str, pagination_property: str) -> None:
        super().__init__(
            f"must implement custom pagination function for {vendor} {pagination_property}"
        )
        self.vendor = vendor
        self.pagination_property = pagination_property
