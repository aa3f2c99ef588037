"""Tests for the pyproject and README rendered next to a generated package."""

from __future__ import annotations

import tomllib

from openapi_sdk_generator.project_files import (
    ProjectMetadata,
    distribution_name,
    render_project_files,
)


def _render(metadata: ProjectMetadata, tags: tuple[str, ...] = ("widgets",)) -> dict[str, str]:
    return render_project_files(
        package_name="acme_api",
        title="Acme",
        tags=tags,
        metadata=metadata,
    )


def test_pyproject_declares_runtime_dependencies() -> None:
    files = _render(ProjectMetadata(version="2.1.0", description='Acme "v2" client'))
    pyproject = tomllib.loads(files["pyproject.toml"])

    project = pyproject["project"]
    assert project["name"] == "acme-api"
    assert project["version"] == "2.1.0"
    assert project["description"] == 'Acme "v2" client'
    assert project["readme"] == "README.md"
    assert project["dependencies"] == ["openapi-sdk-generator", "httpx", "pydantic"]
    assert pyproject["tool"]["setuptools"]["packages"] == ["acme_api"]
    assert pyproject["build-system"]["build-backend"] == "setuptools.build_meta"


def test_defaults_come_from_the_title() -> None:
    files = _render(ProjectMetadata())
    project = tomllib.loads(files["pyproject.toml"])["project"]

    assert project["version"] == "0.1.0"
    assert project["description"] == "A generated Python client for the Acme API."
    assert "OpenAPI spec" not in files["README.md"]


def test_readme_links_spec_and_lists_resources() -> None:
    files = _render(
        ProjectMetadata(spec_link="https://example.com/openapi.yaml"),
        tags=("invoices", "widgets"),
    )
    readme = files["README.md"]

    assert readme.startswith("# `acme_api`\n")
    assert "[Acme OpenAPI spec](https://example.com/openapi.yaml)" in readme
    assert "pip install acme-api" in readme
    assert "from acme_api import Client" in readme
    assert "- `invoices`: `acme_api.invoices.Invoices`" in readme
    assert "- `widgets`: `acme_api.widgets.Widgets`" in readme


def test_distribution_name() -> None:
    assert distribution_name("stripe_widgets") == "stripe-widgets"
