"""Component type registry.

Maps a component type string to its descriptor: factory, config schema,
capability contracts and fallback configuration. Registration is explicit
(see :func:`strata.components.register_builtin_components`); nothing is
discovered by scanning modules.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from strata.core.components.base import Capability, ComponentHandle, normalize_capabilities
from strata.core.config.resolved import ResolvedConfig
from strata.core.exceptions import (
    ComponentContractError,
    DuplicateComponentTypeError,
    StrataError,
    UnknownComponentTypeError,
)
from strata.core.manifest.model import ComponentContext
from strata.core.schemas.validation import SchemaValidator
from strata.core.utils.frozen import freeze, thaw

logger = logging.getLogger(__name__)

ComponentFactory = Callable[[ComponentContext, ResolvedConfig], ComponentHandle]


@dataclass(frozen=True)
class ComponentDescriptor:
    """Metadata for one component type.

    Attributes:
        type: Component type string (filled in by the registry when blank)
        factory: ``(context, resolved_config) -> handle``
        config_schema: JSON Schema for the resolved configuration
        provided_capabilities: Capability keys handles may expose
        required_capabilities: Capability keys a consumer must be granted
        fallback_config: Lowest-precedence configuration layer
        description: Human readable summary
    """

    type: str
    factory: ComponentFactory
    config_schema: Mapping[str, Any] = field(default_factory=lambda: {"type": "object"})
    provided_capabilities: Tuple[str, ...] = ()
    required_capabilities: Tuple[str, ...] = ()
    fallback_config: Mapping[str, Any] = field(default_factory=dict)
    description: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "config_schema", freeze(dict(self.config_schema)))
        object.__setattr__(self, "provided_capabilities", tuple(self.provided_capabilities))
        object.__setattr__(self, "required_capabilities", tuple(self.required_capabilities))
        object.__setattr__(self, "fallback_config", freeze(dict(self.fallback_config)))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "description": self.description,
            "providedCapabilities": list(self.provided_capabilities),
            "requiredCapabilities": list(self.required_capabilities),
            "fallbackConfig": thaw(self.fallback_config),
        }


class ComponentRegistry:
    """Registry of component types.

    Example:
        registry = ComponentRegistry()
        register_builtin_components(registry)
        handle = registry.create("s3-bucket", context, resolved)
    """

    def __init__(self, validator: Optional[SchemaValidator] = None) -> None:
        self._validator = validator or SchemaValidator()
        self._descriptors: Dict[str, ComponentDescriptor] = {}

    def register(self, component_type: str, descriptor: ComponentDescriptor) -> ComponentDescriptor:
        """Register ``descriptor`` under ``component_type``.

        Raises:
            DuplicateComponentTypeError: The type is already registered.
            InvalidSchemaError: The descriptor's config schema is malformed.
            ValueError: The descriptor names a different type.
        """
        if not component_type or not component_type.strip():
            raise ValueError("Component type must be a non-empty string")
        if component_type in self._descriptors:
            raise DuplicateComponentTypeError(component_type)
        if descriptor.type and descriptor.type != component_type:
            raise ValueError(
                f"Descriptor for '{descriptor.type}' cannot be registered as '{component_type}'"
            )
        self._validator.check_schema(descriptor.config_schema)
        if not descriptor.type:
            descriptor = replace(descriptor, type=component_type)
        self._descriptors[component_type] = descriptor
        logger.debug("Registered component type %s", component_type)
        return descriptor

    def has(self, component_type: str) -> bool:
        return component_type in self._descriptors

    def get(self, component_type: str, *, component: Optional[str] = None) -> ComponentDescriptor:
        descriptor = self._descriptors.get(component_type)
        if descriptor is None:
            raise UnknownComponentTypeError(component_type, self._descriptors.keys(), component=component)
        return descriptor

    def list_types(self) -> List[str]:
        return sorted(self._descriptors)

    def descriptors(self) -> List[ComponentDescriptor]:
        return [self._descriptors[t] for t in self.list_types()]

    def __contains__(self, component_type: object) -> bool:
        return component_type in self._descriptors

    def __len__(self) -> int:
        return len(self._descriptors)

    def create(
        self,
        component_type: str,
        context: ComponentContext,
        resolved_config: ResolvedConfig,
    ) -> ComponentHandle:
        """Instantiate ``component_type`` and check the handle's contract."""
        name = resolved_config.component
        descriptor = self.get(component_type, component=name)
        try:
            handle = descriptor.factory(context, resolved_config)
        except StrataError:
            raise
        except Exception as exc:
            raise ComponentContractError(
                f"Factory for component '{name}' ({component_type}) failed: {exc}",
                component=name,
                component_type=component_type,
            ) from exc

        reported = handle.get_type()
        if reported != component_type:
            raise ComponentContractError(
                f"Component '{name}' was registered as '{component_type}' but its handle reports '{reported}'",
                component=name,
                component_type=component_type,
            )
        self.capabilities_of(handle, component=name, component_type=component_type)
        return handle

    def capabilities_of(
        self,
        handle: ComponentHandle,
        *,
        component: str,
        component_type: str,
    ) -> Dict[str, Capability]:
        """Normalized capabilities of ``handle``, checked against the descriptor."""
        descriptor = self.get(component_type, component=component)
        try:
            capabilities = normalize_capabilities(handle.get_capabilities())
        except (TypeError, ValueError) as exc:
            raise ComponentContractError(
                f"Component '{component}' exposes malformed capabilities: {exc}",
                component=component,
                component_type=component_type,
            ) from exc
        undeclared = sorted(set(capabilities) - set(descriptor.provided_capabilities))
        if undeclared:
            raise ComponentContractError(
                f"Component '{component}' ({component_type}) exposes undeclared capabilities: "
                f"{', '.join(undeclared)} (declared: {', '.join(descriptor.provided_capabilities) or 'none'})",
                component=component,
                component_type=component_type,
            )
        return capabilities


__all__ = ["ComponentDescriptor", "ComponentFactory", "ComponentRegistry"]
