"""Distribution metadata written next to a generated client package."""

from __future__ import annotations

import json
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Optional

from .codegen_ast import tag_class_name

DEFAULT_VERSION = "0.1.0"

RUNTIME_DEPENDENCIES: tuple[str, ...] = ("openapi-sdk-generator", "httpx", "pydantic")


@dataclass(frozen=True)
class ProjectMetadata:
    """Version, summary and documentation link of a generated distribution."""

    version: str = DEFAULT_VERSION
    description: Optional[str] = None
    spec_link: Optional[str] = None


def distribution_name(package_name: str) -> str:
    """Return the index name of a generated package."""
    return package_name.replace("_", "-")


def render_project_files(
    *,
    package_name: str,
    title: str,
    tags: Iterable[str],
    metadata: ProjectMetadata,
) -> dict[str, str]:
    """Render ``pyproject.toml`` and ``README.md`` for a generated package.

    Args:
        package_name (str): Import name of the generated package.
        title (str): API title from the document.
        tags (Iterable[str]): Tag module names in output order.
        metadata (ProjectMetadata): Caller supplied distribution metadata.

    Returns:
        dict[str, str]: File contents keyed by file name.
    """
    description = metadata.description or f"A generated Python client for the {title} API."
    return {
        "pyproject.toml": render_pyproject(
            package_name=package_name,
            version=metadata.version,
            description=description,
        ),
        "README.md": render_readme(
            package_name=package_name,
            title=title,
            description=description,
            tags=list(tags),
            spec_link=metadata.spec_link,
        ),
    }


def render_pyproject(*, package_name: str, version: str, description: str) -> str:
    dependencies = "".join(
        f"    {_toml_string(dependency)},\n" for dependency in RUNTIME_DEPENDENCIES
    )
    return (
        "[build-system]\n"
        'requires = ["setuptools>=69", "wheel"]\n'
        'build-backend = "setuptools.build_meta"\n'
        "\n"
        "[project]\n"
        f"name = {_toml_string(distribution_name(package_name))}\n"
        f"version = {_toml_string(version)}\n"
        f"description = {_toml_string(description)}\n"
        'readme = "README.md"\n'
        'requires-python = ">=3.12"\n'
        f"dependencies = [\n{dependencies}]\n"
        "\n"
        "[tool.setuptools]\n"
        f"packages = [{_toml_string(package_name)}]\n"
    )


def render_readme(
    *,
    package_name: str,
    title: str,
    description: str,
    tags: list[str],
    spec_link: Optional[str],
) -> str:
    lines = [f"# `{package_name}`", "", description, ""]
    if spec_link:
        lines += [f"This client is generated from the [{title} OpenAPI spec]({spec_link}).", ""]
    lines += [
        "## Install",
        "",
        "```sh",
        f"pip install {distribution_name(package_name)}",
        "```",
        "",
        "## Basic example",
        "",
        "```python",
        f"from {package_name} import Client",
        "",
        "client = Client()",
    ]
    if tags:
        lines.append(f"client.{tags[0]}  # {tag_class_name(tags[0])}")
    lines += ["```", ""]
    if tags:
        lines += ["## Resources", ""]
        lines += [f"- `{tag}`: `{package_name}.{tag}.{tag_class_name(tag)}`" for tag in tags]
        lines.append("")
    return "\n".join(lines)


def _toml_string(value: str) -> str:
    # JSON string escapes are valid TOML basic-string escapes.
    return json.dumps(value, ensure_ascii=False)
