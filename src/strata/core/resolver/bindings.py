"""Capability binding resolution.

A binding asks a producer for a capability at an access level. Keys are
matched exactly, then the access level is checked against what the
producer allows. A successful binding becomes an :class:`AccessGrant`
attached to the consumer. Grants are component-agnostic: they describe who
may do what to which resource, never how that is enforced.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Mapping, Optional, Sequence, Tuple

from strata.core.components.base import Capability, normalize_capabilities
from strata.core.exceptions import CapabilityMismatchError
from strata.core.manifest.model import Binding, ComponentSpec
from strata.core.utils.frozen import freeze, thaw
from strata.data import read_yaml

logger = logging.getLogger(__name__)


def load_access_levels() -> Dict[str, Tuple[str, ...]]:
    """Access level -> verbs table bundled in ``config/access-levels.yaml``."""
    data = read_yaml("config", "access-levels.yaml") or {}
    levels = data.get("accessLevels") or {}
    return {str(level): tuple(verbs or ()) for level, verbs in levels.items()}


@dataclass(frozen=True)
class AccessGrant:
    """Authorization for ``principal`` to act on ``resource``.

    Attributes:
        principal: Consuming component name
        principal_type: Consuming component type
        resource: Producing component name
        resource_type: Producing component type
        capability: Capability key granted
        access: Access level granted
        actions: Verbs the access level expands to
        payload: Producer capability payload (frozen)
    """

    principal: str
    principal_type: str
    resource: str
    resource_type: Optional[str]
    capability: str
    access: str
    actions: Tuple[str, ...] = ()
    payload: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "actions", tuple(self.actions))
        object.__setattr__(self, "payload", freeze(dict(self.payload)))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "principal": self.principal,
            "principalType": self.principal_type,
            "resource": self.resource,
            "resourceType": self.resource_type,
            "capability": self.capability,
            "access": self.access,
            "actions": list(self.actions),
            "payload": thaw(self.payload),
        }


class CapabilityBindingResolver:
    """Validate bindings against producer capabilities and emit grants."""

    def __init__(self, access_levels: Optional[Mapping[str, Sequence[str]]] = None) -> None:
        levels = load_access_levels() if access_levels is None else access_levels
        self._access_levels: Dict[str, Tuple[str, ...]] = {k: tuple(v) for k, v in levels.items()}

    def actions_for(self, access: str) -> Tuple[str, ...]:
        """Verbs ``access`` expands to; unknown levels expand to themselves."""
        return self._access_levels.get(access, (access,))

    def resolve(
        self,
        binding: Binding,
        producer_capabilities: Mapping[str, Any],
        consumer_spec: ComponentSpec,
        *,
        producer_type: Optional[str] = None,
    ) -> AccessGrant:
        """Authorize ``binding`` and return the resulting grant.

        Raises:
            CapabilityMismatchError: The producer does not offer the
                capability key, or does not allow the requested access level.
        """
        capabilities: Dict[str, Capability] = normalize_capabilities(producer_capabilities)
        capability = capabilities.get(binding.capability)
        if capability is None:
            available = sorted(capabilities)
            raise CapabilityMismatchError(
                f"Component '{binding.target}' does not provide capability '{binding.capability}' "
                f"requested by '{binding.source}'. Available: {', '.join(available) or '(none)'}",
                source=binding.source,
                target=binding.target,
                capability=binding.capability,
                access=binding.access,
                available=available,
            )
        if not capability.allows(binding.access):
            raise CapabilityMismatchError(
                f"Component '{binding.source}' requested '{binding.access}' access to "
                f"'{binding.capability}' on '{binding.target}', but only "
                f"[{', '.join(capability.allowed_access) or 'none'}] is allowed",
                source=binding.source,
                target=binding.target,
                capability=binding.capability,
                access=binding.access,
                available=capability.allowed_access,
            )

        grant = AccessGrant(
            principal=consumer_spec.name,
            principal_type=consumer_spec.type,
            resource=binding.target or "",
            resource_type=producer_type,
            capability=capability.key,
            access=binding.access,
            actions=self.actions_for(binding.access),
            payload=capability.payload,
        )
        logger.debug("Granted %s", binding.describe())
        return grant

    def check_required(
        self,
        spec: ComponentSpec,
        descriptor: Any,
        grants: Iterable[AccessGrant],
    ) -> None:
        """Every ``descriptor.required_capabilities`` key must be covered by a grant held by ``spec``."""
        held = {g.capability for g in grants if g.principal == spec.name}
        missing = [key for key in descriptor.required_capabilities if key not in held]
        if missing:
            raise CapabilityMismatchError(
                f"Component '{spec.name}' ({spec.type}) requires capabilities that no binding "
                f"grants: {', '.join(missing)}",
                source=spec.name,
                target=None,
                capability=missing[0],
                available=sorted(held),
            )


__all__ = ["AccessGrant", "CapabilityBindingResolver", "load_access_levels"]
