"""Service manifest model, loading and per-environment context."""
from __future__ import annotations

from .context import build_context
from .loader import check_manifest, load_manifest, manifest_issues, parse_manifest
from .model import (
    Binding,
    ComponentContext,
    ComponentSpec,
    EnvironmentSpec,
    Patch,
    Selector,
    ServiceManifest,
)

__all__ = [
    "Binding",
    "ComponentContext",
    "ComponentSpec",
    "EnvironmentSpec",
    "Patch",
    "Selector",
    "ServiceManifest",
    "build_context",
    "check_manifest",
    "load_manifest",
    "manifest_issues",
    "parse_manifest",
]
