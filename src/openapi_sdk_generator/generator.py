"""High-level generator orchestration."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .classifier import classify_operations
from .codegen_ast import render_package_init, render_tag_module, render_types_module
from .emitter import emit_operation
from .json_types import JSONObject, list_or_empty, object_or_empty, string_or_none
from .loader import (
    OpenAPILoadError,
    load_openapi_document,
    load_path_map,
    openapi_version,
)
from .model_types import FileOutput, GenerationResult
from .naming import sanitize_identifier, snake_case
from .profiles import VendorProfile
from .project_files import ProjectMetadata, render_project_files
from .resolver import Resolver
from .type_space import TYPES_MODULE, TypeSpace
from .writer import WriteError, create_output_layout, format_generated_tree, write_files

__all__ = [
    "GeneratedPackage",
    "OpenAPILoadError",
    "ProjectMetadata",
    "WriteError",
    "default_host",
    "default_package_name",
    "generate_sources",
    "run_generation",
]


@dataclass(frozen=True)
class GeneratedPackage:
    """Rendered sources of one client package, before anything touches the disk."""

    package_name: str
    files: dict[str, str]
    project_files: dict[str, str]
    tags: tuple[str, ...]
    warnings: tuple[str, ...]


def generate_sources(
    document: JSONObject,
    profile: VendorProfile,
    *,
    package_name: str,
    metadata: Optional[ProjectMetadata] = None,
) -> GeneratedPackage:
    """Render every module of a client package from a loaded OpenAPI document.

    Operations are visited in document order and all per-run state (the type
    table and the emitted function names) is threaded through explicitly.

    Args:
        document (JSONObject): Loaded OpenAPI document.
        profile (VendorProfile): Vendor settings.
        package_name (str): Import name of the generated package.
        metadata (Optional[ProjectMetadata]): Version, description and spec link for the
            rendered ``pyproject.toml`` and ``README.md``.

    Returns:
        GeneratedPackage: Module and project file sources keyed by file name, tags and
            warnings.
    """
    openapi_version(document)
    path_map = load_path_map(document)
    operations, warnings = classify_operations(path_map, profile)

    resolver = Resolver(document)
    type_space = TypeSpace(resolver)
    outputs: dict[str, FileOutput] = {}
    fn_names: frozenset[str] = frozenset()
    for operation in operations:
        fn_names, operation_warnings = emit_operation(
            operation,
            resolver=resolver,
            type_space=type_space,
            profile=profile,
            outputs=outputs,
            fn_names=fn_names,
        )
        warnings.extend(operation_warnings)

    tags = tuple(sorted(outputs))
    files = {f"{tag}.py": render_tag_module(outputs[tag]) for tag in tags}
    files[f"{TYPES_MODULE}.py"] = render_types_module(type_space.models())
    title = _title(document, package_name)
    files["__init__.py"] = render_package_init(
        title=title,
        tags=tags,
        default_host=default_host(document, profile),
    )
    return GeneratedPackage(
        package_name=package_name,
        files=files,
        project_files=render_project_files(
            package_name=package_name,
            title=title,
            tags=tags,
            metadata=metadata or ProjectMetadata(),
        ),
        tags=tags,
        warnings=tuple(warnings),
    )


def run_generation(
    *,
    input_path: Path,
    output_dir: Path,
    profile: VendorProfile,
    package_name: Optional[str] = None,
    metadata: Optional[ProjectMetadata] = None,
) -> GenerationResult:
    """Generate a client package from an OpenAPI document on disk.

    Nothing is written unless every operation generates successfully.

    Args:
        input_path (Path): Path to the input OpenAPI document.
        output_dir (Path): Directory where the package is written; must not exist.
        profile (VendorProfile): Vendor settings.
        package_name (Optional[str]): Import name; derived from ``info.title`` when omitted.
        metadata (Optional[ProjectMetadata]): Distribution metadata of the generated project.

    Returns:
        GenerationResult: Generation metadata.
    """
    document = load_openapi_document(input_path)
    name = sanitize_identifier(package_name) if package_name else default_package_name(document)
    package = generate_sources(document, profile, package_name=name, metadata=metadata)

    package_dir = create_output_layout(output_dir, name)
    write_files(directory=package_dir, files=package.files)
    write_files(directory=output_dir, files=package.project_files)
    format_generated_tree(package_dir=package_dir)

    return GenerationResult(
        output_dir=str(output_dir),
        package_dir=str(package_dir),
        tags=package.tags,
        warnings=package.warnings,
    )


def default_package_name(document: JSONObject) -> str:
    """Derive a package name from the document title."""
    title = string_or_none(object_or_empty(document.get("info")).get("title"))
    return sanitize_identifier(snake_case(title or "client"))


def default_host(document: JSONObject, profile: VendorProfile) -> str:
    """Pick the base URL baked into the generated client.

    An absolute first server URL wins, with server variables replaced by their
    defaults. Otherwise the profile's host is used, then any relative server URL.
    """
    servers = list_or_empty(document.get("servers"))
    server_url = ""
    if servers:
        server = object_or_empty(servers[0])
        server_url = string_or_none(server.get("url")) or ""
        for variable, spec in object_or_empty(server.get("variables")).items():
            default = object_or_empty(spec).get("default")
            if default is not None:
                server_url = server_url.replace(f"{{{variable}}}", str(default))

    if server_url.startswith(("http://", "https://")):
        return server_url.rstrip("/")
    if profile.default_host:
        return profile.default_host.rstrip("/")
    return server_url.rstrip("/")


def _title(document: JSONObject, package_name: str) -> str:
    title = string_or_none(object_or_empty(document.get("info")).get("title"))
    return title or package_name
