"""JSON I/O utilities."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from ..frozen import thaw


def read_json(file_path: Path | str) -> Any:
    """Read a JSON file.

    Raises:
        FileNotFoundError: If the file does not exist
    """
    path = Path(file_path)
    if not path.exists():
        raise FileNotFoundError(f"JSON file not found: {path}")
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def canonical_json(data: Any) -> str:
    """Serialize ``data`` deterministically (sorted keys, compact separators).

    Frozen mappings and tuples are accepted.
    """
    return json.dumps(thaw(data), sort_keys=True, separators=(",", ":"), ensure_ascii=False)


__all__ = ["read_json", "canonical_json"]
