"""Resolved component configuration and its provenance."""
from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, Mapping, Tuple

from strata.core.utils.frozen import freeze, thaw
from strata.core.utils.io import canonical_json

SCHEMA_DEFAULT_LAYER = "schema-default"


def iter_leaves(value: Any, prefix: str = "") -> Iterator[Tuple[str, Any]]:
    """Yield ``(dotted_path, value)`` for every leaf of a nested mapping.

    Lists, scalars and empty mappings are leaves.
    """
    if isinstance(value, Mapping) and value:
        for key, child in value.items():
            yield from iter_leaves(child, f"{prefix}.{key}" if prefix else str(key))
    elif prefix:
        yield prefix, value


@dataclass(frozen=True)
class LayerRecord:
    """One precedence layer as it was applied.

    Attributes:
        name: Layer name (``fallback``, ``compliance-framework``,
            ``environment``, ``component`` or ``patch:<name>``)
        values: The fragment the layer contributed (frozen)
    """

    name: str
    values: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "values", freeze(dict(self.values)))

    def leaves(self) -> Dict[str, Any]:
        return dict(iter_leaves(self.values))

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "values": thaw(self.values)}


@dataclass(frozen=True)
class ResolvedConfig:
    """Fully merged, defaulted and validated configuration for one component.

    Immutable once built. ``config_hash`` is the SHA-256 of the canonical
    JSON form of ``values`` so identical inputs always hash identically.
    """

    component: str
    component_type: str
    values: Mapping[str, Any]
    layers: Tuple[LayerRecord, ...] = ()
    sources: Mapping[str, str] = field(default_factory=dict)
    config_hash: str = ""

    @classmethod
    def create(
        cls,
        component: str,
        component_type: str,
        values: Mapping[str, Any],
        *,
        layers: Tuple[LayerRecord, ...] = (),
        sources: Mapping[str, str] | None = None,
    ) -> ResolvedConfig:
        digest = hashlib.sha256(canonical_json(values).encode("utf-8")).hexdigest()
        return cls(
            component=component,
            component_type=component_type,
            values=freeze(dict(values)),
            layers=tuple(layers),
            sources=freeze(dict(sources or {})),
            config_hash=digest,
        )

    def __getitem__(self, key: str) -> Any:
        return self.values[key]

    def get(self, key: str, default: Any = None) -> Any:
        return self.values.get(key, default)

    def lookup(self, path: str, default: Any = None) -> Any:
        """Return the value at dotted ``path`` (``default`` when absent)."""
        node: Any = self.values
        for part in path.split("."):
            if not isinstance(node, Mapping) or part not in node:
                return default
            node = node[part]
        return node

    def canonical_json(self) -> str:
        return canonical_json(self.values)

    def to_dict(self) -> Dict[str, Any]:
        """Return a mutable deep copy of the configuration values."""
        return thaw(self.values)


__all__ = [
    "SCHEMA_DEFAULT_LAYER",
    "LayerRecord",
    "ResolvedConfig",
    "iter_leaves",
]
