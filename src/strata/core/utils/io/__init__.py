"""I/O utilities for strata.

- YAML: read with PyYAML ``safe_load``
- JSON: read and canonical serialization
"""
from __future__ import annotations

from .json import canonical_json, read_json
from .yaml import read_structured, read_yaml

__all__ = [
    "canonical_json",
    "read_json",
    "read_yaml",
    "read_structured",
]
