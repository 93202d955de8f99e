"""Component handle contract.

A component type is a factory ``(context, resolved_config) -> handle``. The
handle reports its type and the capabilities it offers to consumers.
Synthesis of physical resources happens elsewhere; handles only carry the
metadata resolution needs.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Mapping, Protocol, Tuple, runtime_checkable

from strata.core.config.resolved import ResolvedConfig
from strata.core.manifest.model import ComponentContext
from strata.core.utils.frozen import freeze, thaw

CAPABILITY_KEY_PATTERN = re.compile(r"^[^:\s]+:[^:\s]+$")


@dataclass(frozen=True)
class Capability:
    """A named contract a producer exposes.

    Attributes:
        key: ``"<domain>:<resource>"``, matched exactly
        payload: Producer facts handed to consumers (frozen)
        allowed_access: Access levels a consumer may request
    """

    key: str
    payload: Mapping[str, Any] = field(default_factory=dict)
    allowed_access: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if not CAPABILITY_KEY_PATTERN.match(self.key or ""):
            raise ValueError(f"Capability key must look like '<domain>:<resource>', got {self.key!r}")
        object.__setattr__(self, "payload", freeze(dict(self.payload)))
        object.__setattr__(self, "allowed_access", tuple(self.allowed_access))

    @classmethod
    def from_value(cls, key: str, value: Any) -> Capability:
        """Accept a :class:`Capability` or a ``{payload, allowedAccess}`` mapping."""
        if isinstance(value, Capability):
            return value
        if isinstance(value, Mapping):
            allowed = value.get("allowedAccess", value.get("allowed_access", ()))
            return cls(key=key, payload=value.get("payload") or {}, allowed_access=tuple(allowed))
        raise TypeError(f"Capability '{key}' must be a Capability or mapping, got {type(value).__name__}")

    def allows(self, access: str) -> bool:
        return access in self.allowed_access

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": self.key,
            "payload": thaw(self.payload),
            "allowedAccess": list(self.allowed_access),
        }


@runtime_checkable
class ComponentHandle(Protocol):
    """What every instantiated component must provide."""

    def get_type(self) -> str: ...

    def get_capabilities(self) -> Mapping[str, Any]: ...


def normalize_capabilities(raw: Mapping[str, Any]) -> Dict[str, Capability]:
    """Turn a handle's ``get_capabilities()`` result into ``{key: Capability}``."""
    out: Dict[str, Capability] = {}
    for key, value in (raw or {}).items():
        capability = Capability.from_value(key, value)
        if capability.key != key:
            raise ValueError(f"Capability registered under '{key}' reports key '{capability.key}'")
        out[key] = capability
    return out


class BaseComponent:
    """Convenience base for component handles.

    Subclasses set ``component_type`` and register their capabilities in
    :meth:`define_capabilities`.
    """

    component_type: str = ""

    def __init__(self, context: ComponentContext, config: ResolvedConfig) -> None:
        self.context = context
        self.config = config
        self.name = config.component
        self._capabilities: Dict[str, Capability] = {}
        self.define_capabilities()

    def define_capabilities(self) -> None:
        """Hook for subclasses; called once from ``__init__``."""

    def register_capability(
        self,
        key: str,
        payload: Mapping[str, Any],
        allowed_access: Iterable[str],
    ) -> Capability:
        capability = Capability(key=key, payload=payload, allowed_access=tuple(allowed_access))
        self._capabilities[key] = capability
        return capability

    def get_type(self) -> str:
        return self.component_type

    def get_capabilities(self) -> Dict[str, Capability]:
        return dict(self._capabilities)

    def resource_name(self, suffix: str = "") -> str:
        """Deterministic physical name: ``<service>-<env>-<component>[-suffix]``."""
        parts = [self.context.service_name, self.context.environment, self.name]
        if suffix:
            parts.append(suffix)
        return "-".join(parts).lower()

    @property
    def partition(self) -> str:
        region = self.context.region or ""
        return "aws-us-gov" if region.startswith("us-gov-") else "aws"

    def arn(self, service: str, resource: str, *, regional: bool = True) -> str:
        region = (self.context.region or "") if regional else ""
        account = (self.context.account_id or "") if regional else ""
        return f"arn:{self.partition}:{service}:{region}:{account}:{resource}"

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, type={self.get_type()!r})"


__all__ = [
    "CAPABILITY_KEY_PATTERN",
    "BaseComponent",
    "Capability",
    "ComponentHandle",
    "normalize_capabilities",
]
