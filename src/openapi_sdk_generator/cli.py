"""Command line interface for OpenAPI client generation."""

from __future__ import annotations

import argparse
from pathlib import Path

from .errors import SpecError
from .generator import OpenAPILoadError, ProjectMetadata, WriteError, run_generation
from .profiles import ProfileError, available_profiles, load_profile
from .project_files import DEFAULT_VERSION


def build_parser() -> argparse.ArgumentParser:
    """Build the CLI parser."""
    parser = argparse.ArgumentParser(
        prog="openapi-sdk-generator",
        description="Generate a typed Python API client package from an OpenAPI document",
    )
    parser.add_argument("--input", required=True, help="Path to an OpenAPI YAML or JSON file")
    parser.add_argument(
        "--output", required=True, help="Output directory for the generated package"
    )
    parser.add_argument(
        "--package-name",
        default=None,
        help="Import name of the generated package (default: derived from info.title)",
    )
    parser.add_argument(
        "--profile",
        default="default",
        help=(
            "Vendor profile name or path to a profile YAML file "
            f"(builtin: {', '.join(available_profiles())})"
        ),
    )
    parser.add_argument(
        "--version",
        default=DEFAULT_VERSION,
        help=f"Version of the generated distribution (default: {DEFAULT_VERSION})",
    )
    parser.add_argument(
        "--description",
        default=None,
        help="Description of the generated distribution (default: derived from info.title)",
    )
    parser.add_argument(
        "--spec-link", default=None, help="Link to the OpenAPI document, shown in the README"
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """Run CLI and return process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        profile = load_profile(args.profile)
        result = run_generation(
            input_path=Path(args.input),
            output_dir=Path(args.output),
            package_name=args.package_name,
            profile=profile,
            metadata=ProjectMetadata(
                version=args.version,
                description=args.description,
                spec_link=args.spec_link,
            ),
        )
    except (OpenAPILoadError, ProfileError, SpecError, WriteError) as exc:
        parser.error(str(exc))
        return 2

    for warning in result.warnings:
        print(f"Warning: {warning}")
    print(f"Generated {len(result.tags)} modules in {result.package_dir}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
