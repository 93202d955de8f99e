"""YAML I/O utilities."""
from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from .json import read_json


def read_yaml(path: Path | str, default: Any = None, raise_on_error: bool = False) -> Any:
    """Read YAML with error handling.

    Returns default if file is missing or invalid, unless raise_on_error is True.

    Args:
        path: YAML file path to read
        default: Value to return if file missing or invalid (default: None)
        raise_on_error: If True, propagate exceptions instead of returning default.

    Returns:
        Any: Parsed YAML data, or default if error
    """
    path = Path(path)
    if not path.exists():
        if raise_on_error:
            raise FileNotFoundError(f"File not found: {path}")
        return default

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
        return data if data is not None else default
    except yaml.YAMLError:
        if raise_on_error:
            raise
        return default


def read_structured(path: Path | str) -> Any:
    """Read a YAML or JSON document, chosen by extension.

    ``.json`` files go through the JSON reader; everything else is parsed as
    YAML (a superset of JSON). Errors propagate.
    """
    p = Path(path)
    if p.suffix.lower() == ".json":
        return read_json(p)
    return read_yaml(p, raise_on_error=True)


__all__ = ["read_yaml", "read_structured"]
