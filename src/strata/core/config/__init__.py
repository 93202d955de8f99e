"""Layered configuration resolution."""
from __future__ import annotations

from .builder import BuildSummary, ConfigBuilder, LayerConflict
from .cache import FrameworkDefaultsCache, default_search_paths
from .resolved import LayerRecord, ResolvedConfig

__all__ = [
    "BuildSummary",
    "ConfigBuilder",
    "FrameworkDefaultsCache",
    "LayerConflict",
    "LayerRecord",
    "ResolvedConfig",
    "default_search_paths",
]
