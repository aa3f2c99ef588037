"""Filesystem writers for generated client packages."""

from __future__ import annotations

import subprocess
import sys
from pathlib import Path

# Generated modules carry their own docstrings; long URLs and signatures are left alone.
_GENERATED_RUFF_IGNORE = "D100,D101,D102,D103,D104,D205,D301,D415,E501"

# Format, fix unused imports and other lint, then format the fixed output again.
_RUFF_PASSES: tuple[tuple[str, ...], ...] = (
    ("format",),
    ("check", "--fix", "--ignore", _GENERATED_RUFF_IGNORE),
    ("format",),
)


class WriteError(RuntimeError):
    """Raised when output files cannot be written."""


def create_output_layout(output_dir: Path, package_name: str) -> Path:
    """Create the output directory and the empty client package directory.

    Args:
        output_dir (Path): Root output directory to create; must not exist yet.
        package_name (str): Import name of the generated package.

    Returns:
        Path: Path to the created package directory.
    """
    if output_dir.exists():
        raise WriteError(f"Output directory already exists: {output_dir}")

    package_dir = output_dir / package_name
    try:
        package_dir.mkdir(parents=True, exist_ok=False)
    except OSError as exc:
        raise WriteError(f"Failed to create package directory {package_dir}: {exc}") from exc
    return package_dir


def write_files(*, directory: Path, files: dict[str, str]) -> None:
    """Write rendered files into an existing directory, keyed by file name."""
    for file_name, source in files.items():
        target = directory / file_name
        try:
            target.write_text(source, encoding="utf-8")
        except OSError as exc:
            raise WriteError(f"Failed to write file {target}: {exc}") from exc


def format_generated_tree(*, package_dir: Path) -> None:
    """Run the ruff passes over a generated package.

    Args:
        package_dir (Path): Generated package directory to format.
    """
    for ruff_args in _RUFF_PASSES:
        _ruff(*ruff_args, str(package_dir))


def _ruff(*args: str) -> None:
    description = " ".join(args[:-1])
    target = args[-1]
    try:
        subprocess.run(
            [sys.executable, "-m", "ruff", *args],
            check=True,
            capture_output=True,
            text=True,
        )
    except OSError as exc:
        raise WriteError(f"Failed to execute ruff {description} for {target}: {exc}") from exc
    except subprocess.CalledProcessError as exc:
        details = exc.stderr.strip() or exc.stdout.strip() or str(exc)
        raise WriteError(f"ruff {description} failed for {target}: {details}") from exc
