"""Compliance framework defaults cache.

Framework default documents (``frameworks/<key>.yaml``) are the only file
reads performed during resolution. They are loaded once per framework key,
merged with any overlay documents of the same name found in the configured
search directories, deep-frozen and then served read-through.

The cache is an explicit object handed to :class:`~strata.core.config.builder.ConfigBuilder`
and the resolver engine; there is no module-level singleton.
"""
from __future__ import annotations

import logging
import os
import threading
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from strata.core.exceptions import UnknownComplianceFrameworkError
from strata.core.utils.frozen import freeze, thaw
from strata.core.utils.io import read_yaml
from strata.core.utils.merge import deep_merge
from strata.data import get_data_path

logger = logging.getLogger(__name__)

DEFAULTS_PATH_ENV = "STRATA_DEFAULTS_PATH"


def default_search_paths() -> List[Path]:
    """Overlay directories from ``STRATA_DEFAULTS_PATH`` (``os.pathsep``-separated).

    Order is low to high precedence.
    """
    raw = os.environ.get(DEFAULTS_PATH_ENV, "")
    return [Path(p).expanduser() for p in raw.split(os.pathsep) if p.strip()]


def _candidate_files(directory: Path, framework: str) -> List[Path]:
    for ext in (".yaml", ".yml"):
        candidate = directory / f"{framework}{ext}"
        if candidate.exists():
            return [candidate]
    return []


def _read_document(path: Path) -> Dict[str, Any]:
    data = read_yaml(path, default={}, raise_on_error=True)
    if not isinstance(data, dict):
        raise ValueError(f"Framework document must be a YAML mapping: {path}")
    components = data.get("components", {})
    if components is not None and not isinstance(components, dict):
        raise ValueError(f"'components' must be a mapping in framework document: {path}")
    return data


class FrameworkDefaultsCache:
    """Populate-once, read-through cache of framework default documents.

    Args:
        search_paths: Extra overlay directories (low to high precedence).
            ``None`` uses :func:`default_search_paths`.
        include_bundled: Whether the documents shipped in ``strata.data``
            form the base layer.
    """

    def __init__(
        self,
        search_paths: Optional[Iterable[Path | str]] = None,
        *,
        include_bundled: bool = True,
    ) -> None:
        paths = default_search_paths() if search_paths is None else search_paths
        self._search_paths: List[Path] = [Path(p) for p in paths]
        self._include_bundled = include_bundled
        self._lock = threading.Lock()
        self._documents: Dict[str, Mapping[str, Any]] = {}

    @property
    def search_paths(self) -> Sequence[Path]:
        return tuple(self._search_paths)

    def _directories(self) -> List[Path]:
        dirs: List[Path] = []
        if self._include_bundled:
            dirs.append(get_data_path("frameworks"))
        dirs.extend(self._search_paths)
        return dirs

    def _load(self, framework: str) -> Mapping[str, Any]:
        merged: Dict[str, Any] = {}
        found = False
        for directory in self._directories():
            for path in _candidate_files(directory, framework):
                logger.debug("Loading framework defaults for %s from %s", framework, path)
                merged = deep_merge(merged, _read_document(path))
                found = True
        if not found:
            raise UnknownComplianceFrameworkError(framework, self._directories())
        return freeze(merged)

    def get(self, framework: str) -> Mapping[str, Any]:
        """Return the frozen, merged default document for ``framework``."""
        cached = self._documents.get(framework)
        if cached is not None:
            return cached
        with self._lock:
            # Re-check under the lock; another caller may have populated it.
            cached = self._documents.get(framework)
            if cached is None:
                cached = self._load(framework)
                self._documents[framework] = cached
                logger.debug("Cached framework defaults for %s", framework)
            return cached

    def defaults_for(self, framework: str, component_type: str) -> Dict[str, Any]:
        """Return a mutable deep copy of ``components.<component_type>``.

        An empty dict is returned when the framework has no entry for the type.
        """
        components = self.get(framework).get("components") or {}
        return thaw(components.get(component_type) or {})

    def is_cached(self, framework: str) -> bool:
        return framework in self._documents

    def reset(self) -> None:
        """Drop every cached document (test hook)."""
        with self._lock:
            self._documents.clear()


__all__ = [
    "DEFAULTS_PATH_ENV",
    "FrameworkDefaultsCache",
    "default_search_paths",
]
