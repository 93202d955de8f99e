"""Canonical deep merge utilities.

This module is the single source of truth for mapping merges in strata.
Every configuration layer is folded through :func:`deep_merge`.

Semantics:
- Both sides plain mappings: recurse (union of keys)
- Anything else (lists, scalars, ``None``): the higher layer replaces the
  lower one entirely
"""
from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from .frozen import thaw


def deep_merge(base: Optional[Mapping[str, Any]], override: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Recursively merge mappings without mutating inputs.

    Args:
        base: Base mapping (lower priority)
        override: Override mapping (higher priority)

    Returns:
        New merged dictionary. Values taken from either side are deep copies,
        so mutating the result never reaches back into a layer.

    Example:
        >>> deep_merge({"a": {"b": 1, "c": 2}}, {"a": {"b": 9}})
        {'a': {'b': 9, 'c': 2}}
        >>> deep_merge({"list": [1, 2]}, {"list": [9]})
        {'list': [9]}
    """
    result: Dict[str, Any] = {k: thaw(v) for k, v in (base or {}).items()}
    for key, value in (override or {}).items():
        current = result.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            result[key] = deep_merge(current, value)
        else:
            result[key] = thaw(value)
    return result


def merge_layers(*layers: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Fold ``layers`` left to right (lowest precedence first)."""
    result: Dict[str, Any] = {}
    for layer in layers:
        result = deep_merge(result, layer)
    return result


__all__ = ["deep_merge", "merge_layers"]
