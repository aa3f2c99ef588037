"""Integration tests for generator behavior."""

from __future__ import annotations

import ast
import importlib
import subprocess
import sys
import tomllib
from pathlib import Path
from typing import Any

import httpx
import pytest

from openapi_sdk_generator.cli import main
from openapi_sdk_generator.errors import SpecError
from openapi_sdk_generator.generator import (
    OpenAPILoadError,
    WriteError,
    default_host,
    default_package_name,
    generate_sources,
    run_generation,
)
from openapi_sdk_generator.profiles import VendorProfile, load_profile
from .fixture_helpers import (
    fixture_dir,
    iter_fixture_paths,
    load_fixture,
    parametrize_fixtures,
    profile_for_fixture,
)

_EXPECTED_METHODS: dict[str, dict[str, list[str]]] = {
    "default_petstore.yaml": {"pets": ["list", "create", "show", "upload_photo"]},
    "github_issues.yaml": {
        "apps": ["create_installation_access_token"],
        "issues": ["list_for_repo", "list_all_for_repo"],
        "repos": ["get_readme"],
    },
    "google_calendar.yaml": {"events": ["list_page", "list_all", "get"]},
    "ramp_transactions.yaml": {"transactions": ["get_page", "get_all", "get_resource"]},
    "stripe_widgets.yaml": {"widgets": ["get_page", "get_all", "post", "get", "delete"]},
    "tripactions_bookings.yaml": {"bookings": ["get_report", "get_all_report"]},
}


def _method_names(module_path: Path) -> list[str]:
    parsed = ast.parse(module_path.read_text(encoding="utf-8"))
    classes = [node for node in parsed.body if isinstance(node, ast.ClassDef)]
    assert len(classes) == 1, module_path
    return [
        node.name
        for node in classes[0].body
        if isinstance(node, ast.FunctionDef) and node.name != "__init__"
    ]


def _document(paths: dict[str, Any]) -> dict[str, Any]:
    return {"openapi": "3.0.3", "info": {"title": "Inline", "version": "1"}, "paths": paths}


@parametrize_fixtures()
def test_generation_smoke(fixture_path: Path, tmp_path: Path) -> None:
    """Each fixture should generate a client package with the expected methods."""
    output_dir = tmp_path / fixture_path.stem
    result = run_generation(
        input_path=fixture_path,
        output_dir=output_dir,
        profile=profile_for_fixture(fixture_path),
    )

    package_dir = Path(result.package_dir)
    assert Path(result.output_dir) == output_dir
    assert (package_dir / "__init__.py").is_file()
    assert (package_dir / "types.py").is_file()
    assert (output_dir / "pyproject.toml").is_file()
    assert (output_dir / "README.md").is_file()

    expected = _EXPECTED_METHODS[fixture_path.name]
    assert result.tags == tuple(sorted(expected))
    for tag, methods in expected.items():
        assert _method_names(package_dir / f"{tag}.py") == methods


def test_output_directory_must_not_exist(tmp_path: Path) -> None:
    """Generator refuses to write into pre-existing output directories."""
    fixture = iter_fixture_paths()[0]
    output_dir = tmp_path / "existing"
    output_dir.mkdir(parents=True)

    with pytest.raises(WriteError):
        run_generation(
            input_path=fixture,
            output_dir=output_dir,
            profile=profile_for_fixture(fixture),
        )


def test_fatal_errors_write_nothing(tmp_path: Path) -> None:
    """A spec defect aborts generation before the output directory is created."""
    spec_path = tmp_path / "broken.yaml"
    spec_path.write_text(
        "openapi: 3.0.3\ninfo: {title: Broken, version: '1'}\n"
        "paths:\n  /:\n    get:\n      responses: {'200': {description: ok}}\n",
        encoding="utf-8",
    )
    output_dir = tmp_path / "out"

    with pytest.raises(SpecError, match="Unable to derive a tag"):
        run_generation(input_path=spec_path, output_dir=output_dir, profile=VendorProfile())
    assert not output_dir.exists()


def test_generation_invokes_ruff_formatting(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Generation should run ruff formatting on the emitted package."""
    fixture = iter_fixture_paths()[0]
    output_dir = tmp_path / "formatted"
    captured: dict[str, Path] = {}

    def _fake_format(*, package_dir: Path) -> None:
        captured["package_dir"] = package_dir

    monkeypatch.setattr(
        "openapi_sdk_generator.generator.format_generated_tree",
        _fake_format,
    )

    result = run_generation(
        input_path=fixture,
        output_dir=output_dir,
        profile=profile_for_fixture(fixture),
        package_name="petstore",
    )
    assert "package_dir" in captured, f"ruff formatting hook was not called: {captured!r}"
    assert captured["package_dir"] == output_dir / "petstore"
    assert Path(result.package_dir) == output_dir / "petstore"


def test_cli_help_screen() -> None:
    """Running the CLI help should succeed and print usage information."""
    result = subprocess.run(
        [sys.executable, "-m", "openapi_sdk_generator.cli", "--help"],
        check=False,
        capture_output=True,
        text=True,
    )
    assert result.returncode == 0
    assert "usage:" in result.stdout.lower()
    assert "--profile" in result.stdout
    assert "--spec-link" in result.stdout


def test_cli_generates_package(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    output_dir = tmp_path / "cli"
    exit_code = main(
        [
            "--input",
            str(fixture_dir() / "stripe_widgets.yaml"),
            "--output",
            str(output_dir),
            "--profile",
            "stripe",
            "--version",
            "1.2.3",
            "--description",
            "Widgets client",
            "--spec-link",
            "https://example.com/stripe.yaml",
        ]
    )

    assert exit_code == 0
    assert (output_dir / "stripe_widgets" / "widgets.py").is_file()
    pyproject = tomllib.loads((output_dir / "pyproject.toml").read_text(encoding="utf-8"))
    assert pyproject["project"]["version"] == "1.2.3"
    assert pyproject["project"]["description"] == "Widgets client"
    assert pyproject["tool"]["setuptools"]["packages"] == ["stripe_widgets"]
    readme = (output_dir / "README.md").read_text(encoding="utf-8")
    assert "(https://example.com/stripe.yaml)" in readme
    out = capsys.readouterr().out
    assert "Warning: GET /v1/widgets" not in out
    assert "Generated 1 modules in" in out


def test_cli_reports_errors(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as exc_info:
        main(
            [
                "--input",
                str(fixture_dir() / "stripe_widgets.yaml"),
                "--output",
                str(tmp_path / "out"),
                "--profile",
                "acme",
            ]
        )
    assert exc_info.value.code == 2
    assert "Unknown profile 'acme'" in capsys.readouterr().err


@parametrize_fixtures()
def test_generated_modules_pass_ruff_check(fixture_path: Path, tmp_path: Path) -> None:
    """Generated modules should pass all ruff checks."""
    output_dir = tmp_path / "lint"
    result = run_generation(
        input_path=fixture_path,
        output_dir=output_dir,
        profile=profile_for_fixture(fixture_path),
    )

    lint = subprocess.run(
        [
            sys.executable,
            "-m",
            "ruff",
            "check",
            "--ignore",
            "D100,D101,D102,D103,D104,D205,D301,D415,E501",
            result.package_dir,
        ],
        check=False,
        capture_output=True,
        text=True,
    )
    details = f"{lint.stdout}\n{lint.stderr}".strip()
    assert lint.returncode == 0, details


def test_generated_stripe_client_end_to_end(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """The generated package imports and walks a paginated listing through the runtime."""
    output_dir = tmp_path / "e2e"
    package_name = "stripe_widgets_e2e"
    run_generation(
        input_path=fixture_dir() / "stripe_widgets.yaml",
        output_dir=output_dir,
        profile=load_profile("stripe"),
        package_name=package_name,
    )
    monkeypatch.syspath_prepend(str(output_dir))
    package = importlib.import_module(package_name)

    def widget(widget_id: str) -> dict[str, Any]:
        return {"id": widget_id, "object": "widget", "name": f"Widget {widget_id}"}

    def envelope(items: list[dict[str, Any]], has_more: bool) -> dict[str, Any]:
        return {"object": "list", "url": "/v1/widgets", "data": items, "has_more": has_more}

    pages = {
        "/v1/widgets?color=red": envelope([widget("w1"), widget("w2")], True),
        "/v1/widgets?color=red&starting_after=w2": envelope([widget("w3")], False),
    }

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.host == "api.stripe.com"
        return httpx.Response(200, json=pages[request.url.raw_path.decode()])

    client = package.Client(http_client=httpx.Client(transport=httpx.MockTransport(handler)))
    first_page = client.widgets.get_page(color="red")
    assert [item.id for item in first_page] == ["w1", "w2"]

    everything = client.widgets.get_all(color="red")
    assert [item.id for item in everything] == ["w1", "w2", "w3"]
    assert type(everything[0]).__name__ == "Widget"


def test_generate_sources_is_pure() -> None:
    """Rendering happens in memory and returns one module per tag."""
    document = load_fixture("default_petstore.yaml")
    package = generate_sources(document, VendorProfile(), package_name="petstore")

    assert set(package.files) == {"__init__.py", "pets.py", "types.py"}
    assert set(package.project_files) == {"pyproject.toml", "README.md"}
    assert package.tags == ("pets",)
    assert "default_host = 'http://petstore.swagger.io/v1'" in package.files["__init__.py"]
    assert "DEFAULT_SERVER_UPLOAD_PET_PHOTO" in package.files["pets.py"]


def test_generate_sources_tags_from_extension_and_path() -> None:
    document = _document(
        {
            "/v1/accounts": {
                "get": {"operationId": "GetAccounts", "responses": {"200": {"description": "ok"}}}
            },
            "/billing/invoices": {
                "get": {
                    "operationId": "ListInvoices",
                    "x-tags": ["Billing"],
                    "responses": {"200": {"description": "ok"}},
                }
            },
        }
    )
    package = generate_sources(document, VendorProfile(), package_name="inline")
    assert package.tags == ("accounts", "billing")


def test_generate_sources_rejects_unsupported_documents() -> None:
    with pytest.raises(OpenAPILoadError):
        generate_sources({"swagger": "2.0", "paths": {}}, VendorProfile(), package_name="old")

    cookie = _document(
        {
            "/v1/session": {
                "get": {
                    "operationId": "GetSession",
                    "parameters": [{"name": "sid", "in": "cookie", "schema": {"type": "string"}}],
                    "responses": {"200": {"description": "ok"}},
                }
            }
        }
    )
    with pytest.raises(SpecError, match="Cookie parameter 'sid'"):
        generate_sources(cookie, VendorProfile(), package_name="inline")


def test_default_names_and_hosts() -> None:
    document = load_fixture("ramp_transactions.yaml")
    assert default_package_name({"info": {"title": "Ramp Developer API"}}) == "ramp_developer_api"
    assert default_package_name({}) == "client"
    assert default_host(document, load_profile("ramp")) == "https://api.ramp.com/developer/v1"
    assert default_host({"servers": [{"url": "/api/"}]}, VendorProfile()) == "/api"
