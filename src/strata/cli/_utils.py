"""Shared helpers for CLI commands."""
from __future__ import annotations

import argparse
from pathlib import Path
from typing import Optional

from strata.components import default_registry
from strata.core.config.cache import FrameworkDefaultsCache
from strata.core.resolver.engine import ResolverEngine


def get_defaults_cache(args: argparse.Namespace) -> FrameworkDefaultsCache:
    """Framework defaults cache honouring ``--defaults-path``."""
    paths: Optional[list[str]] = getattr(args, "defaults_path", None)
    if paths:
        return FrameworkDefaultsCache([Path(p) for p in paths])
    return FrameworkDefaultsCache()


def build_engine(args: argparse.Namespace) -> ResolverEngine:
    """Resolver engine over the built-in component types."""
    return ResolverEngine(default_registry(), defaults_cache=get_defaults_cache(args))


__all__ = ["build_engine", "get_defaults_cache"]
