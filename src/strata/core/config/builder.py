"""Layered configuration builder.

Turns a component's manifest fragment plus compliance framework defaults
into one resolved, schema-valid configuration. Layers, lowest to highest
precedence:

1. ``fallback``: the component type's own constants
2. ``compliance-framework``: defaults for the context's framework
3. ``environment``: environment overrides (by type, then by name)
4. ``component``: the component's ``config`` block
5. ``patch:<name>``: approved patches targeting the component, manifest order

Layers are folded with :func:`~strata.core.utils.merge.deep_merge`, schema
defaults are filled in, and the result is validated. Nothing is
auto-corrected: any violation raises.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Protocol, Tuple

from strata.core.exceptions import CrossFieldInvariantViolation, SchemaValidationError
from strata.core.manifest.model import ComponentContext, ComponentSpec, EnvironmentSpec, Patch
from strata.core.schemas.validation import SchemaValidator
from strata.core.utils.frozen import thaw
from strata.core.utils.merge import merge_layers

from .cache import FrameworkDefaultsCache
from .resolved import SCHEMA_DEFAULT_LAYER, LayerRecord, ResolvedConfig, iter_leaves

logger = logging.getLogger(__name__)

FALLBACK_LAYER = "fallback"
FRAMEWORK_LAYER = "compliance-framework"
ENVIRONMENT_LAYER = "environment"
COMPONENT_LAYER = "component"
PATCH_LAYER_PREFIX = "patch:"


class ConfigSource(Protocol):
    """What the builder needs from a component descriptor."""

    config_schema: Mapping[str, Any]
    fallback_config: Mapping[str, Any]


@dataclass(frozen=True)
class LayerConflict:
    """A leaf path set by more than one layer."""

    path: str
    values: Tuple[Tuple[str, Any], ...]
    winner: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": self.path,
            "values": [{"layer": layer, "value": thaw(value)} for layer, value in self.values],
            "winner": self.winner,
        }


@dataclass(frozen=True)
class BuildSummary:
    """Layer-by-layer account of how a configuration was assembled."""

    component: str
    component_type: str
    layers: Tuple[LayerRecord, ...]
    conflicts: Tuple[LayerConflict, ...]
    sources: Mapping[str, str]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "component": self.component,
            "type": self.component_type,
            "layers": [layer.to_dict() for layer in self.layers],
            "conflicts": [c.to_dict() for c in self.conflicts],
            "sources": dict(self.sources),
        }


def _attribute_sources(values: Mapping[str, Any], layers: Iterable[LayerRecord]) -> Dict[str, str]:
    """Map every leaf of ``values`` to the highest layer that set it."""
    layer_leaves = [(layer.name, layer.leaves()) for layer in layers]
    sources: Dict[str, str] = {}
    for path, _ in iter_leaves(values):
        winner = SCHEMA_DEFAULT_LAYER
        for name, leaves in layer_leaves:
            if path in leaves:
                winner = name
        sources[path] = winner
    return sources


def _find_conflicts(values: Mapping[str, Any], layers: Iterable[LayerRecord]) -> List[LayerConflict]:
    layer_leaves = [(layer.name, layer.leaves()) for layer in layers]
    conflicts: List[LayerConflict] = []
    for path, _ in iter_leaves(values):
        setters = [(name, leaves[path]) for name, leaves in layer_leaves if path in leaves]
        if len(setters) > 1:
            conflicts.append(LayerConflict(path=path, values=tuple(setters), winner=setters[-1][0]))
    return conflicts


class ConfigBuilder:
    """Build :class:`ResolvedConfig` objects from precedence layers.

    Stateless apart from its collaborators; safe to share across components.
    """

    def __init__(
        self,
        defaults_cache: FrameworkDefaultsCache,
        validator: Optional[SchemaValidator] = None,
    ) -> None:
        self.defaults_cache = defaults_cache
        self.validator = validator or SchemaValidator()

    def layers_for(
        self,
        spec: ComponentSpec,
        context: ComponentContext,
        descriptor: ConfigSource,
        *,
        environment: Optional[EnvironmentSpec] = None,
        patches: Iterable[Patch] = (),
    ) -> List[LayerRecord]:
        """Return the precedence layers for ``spec``, lowest first."""
        env_fragments = environment.overrides_for(spec) if environment is not None else []
        layers = [
            LayerRecord(FALLBACK_LAYER, descriptor.fallback_config or {}),
            LayerRecord(
                FRAMEWORK_LAYER,
                self.defaults_cache.defaults_for(context.compliance_framework, spec.type),
            ),
            LayerRecord(ENVIRONMENT_LAYER, merge_layers(*env_fragments)),
            LayerRecord(COMPONENT_LAYER, spec.config),
        ]
        for patch in patches:
            if not patch.applies_to(spec.name, context.environment):
                continue
            logger.warning(
                "Applying patch '%s' to component '%s' in %s (justification: %s; approved by %s%s)",
                patch.name,
                spec.name,
                context.environment,
                patch.justification,
                patch.approved_by,
                f" on {patch.approved_date}" if patch.approved_date else "",
            )
            layers.append(LayerRecord(f"{PATCH_LAYER_PREFIX}{patch.name}", patch.config))
        return layers

    def _merge(self, descriptor: ConfigSource, layers: List[LayerRecord]) -> Dict[str, Any]:
        merged = merge_layers(*(layer.values for layer in layers))
        return self.validator.apply_defaults(descriptor.config_schema, merged)

    def build(
        self,
        spec: ComponentSpec,
        context: ComponentContext,
        descriptor: ConfigSource,
        *,
        environment: Optional[EnvironmentSpec] = None,
        patches: Iterable[Patch] = (),
    ) -> ResolvedConfig:
        """Merge, default and validate the configuration for ``spec``.

        Raises:
            SchemaValidationError: Type, range, pattern, required or
                additional-property violations (carries every issue).
            CrossFieldInvariantViolation: Only conditional rules failed.
        """
        layers = self.layers_for(spec, context, descriptor, environment=environment, patches=patches)
        candidate = self._merge(descriptor, layers)

        result = self.validator.validate(descriptor.config_schema, candidate)
        if result.schema_errors:
            raise SchemaValidationError(result.errors, component=spec.name, component_type=spec.type)
        if result.cross_field_errors:
            raise CrossFieldInvariantViolation(
                result.cross_field_errors, component=spec.name, component_type=spec.type
            )

        resolved = ResolvedConfig.create(
            spec.name,
            spec.type,
            candidate,
            layers=tuple(layers),
            sources=_attribute_sources(candidate, layers),
        )
        logger.debug(
            "Resolved config for %s (%s) from %d layer(s): %s",
            spec.name,
            spec.type,
            len(layers),
            resolved.config_hash[:12],
        )
        return resolved

    def explain(
        self,
        spec: ComponentSpec,
        context: ComponentContext,
        descriptor: ConfigSource,
        *,
        environment: Optional[EnvironmentSpec] = None,
        patches: Iterable[Patch] = (),
    ) -> BuildSummary:
        """Describe how ``spec`` would be assembled, without validating it."""
        layers = self.layers_for(spec, context, descriptor, environment=environment, patches=patches)
        candidate = self._merge(descriptor, layers)
        return BuildSummary(
            component=spec.name,
            component_type=spec.type,
            layers=tuple(layers),
            conflicts=tuple(_find_conflicts(candidate, layers)),
            sources=_attribute_sources(candidate, layers),
        )


__all__ = [
    "FALLBACK_LAYER",
    "FRAMEWORK_LAYER",
    "ENVIRONMENT_LAYER",
    "COMPONENT_LAYER",
    "PATCH_LAYER_PREFIX",
    "BuildSummary",
    "ConfigBuilder",
    "LayerConflict",
]
