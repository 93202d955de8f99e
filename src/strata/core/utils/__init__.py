"""Utility helpers shared across strata."""
from __future__ import annotations

from .frozen import freeze, thaw
from .merge import deep_merge, merge_layers

__all__ = ["deep_merge", "merge_layers", "freeze", "thaw"]
