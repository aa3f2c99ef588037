"""Vendor profiles: per-API configuration consumed by the generator core."""

from __future__ import annotations

import re
from importlib import resources
from pathlib import Path
from typing import Literal, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

_BUILTIN_PACKAGE = "openapi_sdk_generator"
_BUILTIN_DIR = "vendor_profiles"

type PaginationDriver = Literal["stripe", "google", "ramp", "tripactions"]


class ProfileError(RuntimeError):
    """Raised when a vendor profile cannot be loaded."""


class VendorProfile(BaseModel):
    """Vendor-specific generation settings.

    Every vendor decision the generator makes reads one of these fields, so a
    new API is supported by writing a profile rather than editing the core.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str = "default"
    pagination: Optional[PaginationDriver] = None
    link_header_pagination: bool = False
    pluralize_tags: bool = False
    tag_extension: str = "x-tags"
    version_prefix_pattern: str = r"v\d+"
    tag_renames: dict[str, str] = Field(default_factory=dict)
    noise_parameters: frozenset[str] = frozenset()
    extra_pagination_parameters: frozenset[str] = frozenset()
    self_recursive_operations: frozenset[str] = frozenset()
    first_declared_response: bool = False
    default_host: Optional[str] = None

    @field_validator("version_prefix_pattern")
    @classmethod
    def _check_pattern(cls, value: str) -> str:
        try:
            re.compile(value)
        except re.error as exc:
            raise ValueError(f"invalid version prefix pattern {value!r}: {exc}") from exc
        return value

    def is_version_prefix(self, segment: str) -> bool:
        """Return whether a path segment is a generic API version prefix."""
        return re.fullmatch(self.version_prefix_pattern, segment) is not None

    def is_noise_parameter(self, name: str) -> bool:
        """Return whether a parameter is housekeeping the client already handles."""
        lowered = name.lower()
        return any(lowered == noise.lower() for noise in self.noise_parameters)


def available_profiles() -> list[str]:
    """Return the names of the profiles shipped with the package."""
    directory = resources.files(_BUILTIN_PACKAGE) / _BUILTIN_DIR
    return sorted(
        entry.name.removesuffix(".yaml")
        for entry in directory.iterdir()
        if entry.name.endswith(".yaml")
    )


def load_profile(name_or_path: str | Path) -> VendorProfile:
    """Load a builtin profile by name, or a custom profile from a YAML file.

    Args:
        name_or_path (str | Path): Builtin profile name or path to a YAML file.

    Returns:
        VendorProfile: Validated profile.
    """
    candidate = Path(name_or_path)
    if candidate.suffix in (".yaml", ".yml") or candidate.is_file():
        try:
            text = candidate.read_text(encoding="utf-8")
        except OSError as exc:
            raise ProfileError(f"Failed to read profile {candidate}: {exc}") from exc
        return _parse_profile(text, source=str(candidate))

    name = str(name_or_path)
    if name not in available_profiles():
        known = ", ".join(available_profiles())
        raise ProfileError(f"Unknown profile {name!r}; expected one of: {known}")
    resource = resources.files(_BUILTIN_PACKAGE) / _BUILTIN_DIR / f"{name}.yaml"
    return _parse_profile(resource.read_text(encoding="utf-8"), source=name)


def _parse_profile(text: str, *, source: str) -> VendorProfile:
    try:
        payload = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ProfileError(f"Failed to parse YAML in profile {source}: {exc}") from exc

    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ProfileError(f"Profile {source} must deserialize to a mapping, got {type(payload)!r}")

    try:
        return VendorProfile.model_validate(payload)
    except ValidationError as exc:
        raise ProfileError(f"Invalid profile {source}: {exc}") from exc
