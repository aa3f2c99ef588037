"""OpenAPI client SDK generator package."""

from __future__ import annotations

from .cli import main
from .generator import GeneratedPackage, generate_sources, run_generation
from .profiles import VendorProfile, load_profile

__all__ = [
    "GeneratedPackage",
    "VendorProfile",
    "generate_sources",
    "load_profile",
    "main",
    "run_generation",
]
