"""Resolver engine: the single entry point for resolving a service manifest.

A run walks a fixed state machine::

    unparsed -> validated -> context-bound -> ordered -> instantiated
             -> bindings-resolved -> ready

Structural and environment problems stop the run at once. Per-component
configuration errors, unresolved references and binding mismatches are
collected so one bad component does not hide its siblings; a dependency
cycle aborts ordering immediately. A run that collected any error ends in
``failed`` and raises :class:`~strata.core.exceptions.ResolutionFailedError`.
"""
from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Set, Tuple, Union

from strata.core.components.base import Capability, ComponentHandle
from strata.core.config.builder import ConfigBuilder
from strata.core.config.cache import FrameworkDefaultsCache
from strata.core.config.resolved import ResolvedConfig
from strata.core.exceptions import (
    CircularDependencyError,
    ResolutionFailedError,
    StrataError,
)
from strata.core.manifest.context import build_context
from strata.core.manifest.loader import check_manifest, parse_manifest
from strata.core.manifest.model import ComponentContext, ServiceManifest
from strata.core.registries.components import ComponentDescriptor, ComponentRegistry
from strata.core.utils.frozen import freeze

from .bindings import AccessGrant, CapabilityBindingResolver
from .graph import DependencyGraph, DependencyGraphResolver

logger = logging.getLogger(__name__)

ManifestInput = Union[ServiceManifest, Mapping[str, Any]]


class ResolutionState(str, Enum):
    UNPARSED = "unparsed"
    VALIDATED = "validated"
    CONTEXT_BOUND = "context-bound"
    ORDERED = "ordered"
    INSTANTIATED = "instantiated"
    BINDINGS_RESOLVED = "bindings-resolved"
    READY = "ready"
    FAILED = "failed"


@dataclass(frozen=True)
class ResolvedComponent:
    """One instantiated component of a successful run."""

    name: str
    type: str
    config: ResolvedConfig
    handle: ComponentHandle
    capabilities: Mapping[str, Capability] = field(default_factory=dict)
    grants: Tuple[AccessGrant, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "capabilities", freeze(dict(self.capabilities)))
        object.__setattr__(self, "grants", tuple(self.grants))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "type": self.type,
            "configHash": self.config.config_hash,
            "config": self.config.to_dict(),
            "sources": dict(self.config.sources),
            "capabilities": [c.to_dict() for c in self.capabilities.values()],
            "grants": [g.to_dict() for g in self.grants],
        }


@dataclass(frozen=True)
class ResolutionResult:
    """Ready-to-synthesize plan for one service in one environment."""

    service: str
    environment: str
    context: ComponentContext
    ordered_components: Tuple[ResolvedComponent, ...]
    access_grants: Tuple[AccessGrant, ...]
    dependency_graph: DependencyGraph
    history: Tuple[str, ...] = ()

    @property
    def order(self) -> List[str]:
        return [c.name for c in self.ordered_components]

    def component(self, name: str) -> ResolvedComponent:
        for resolved in self.ordered_components:
            if resolved.name == name:
                return resolved
        raise KeyError(name)

    def grants_for(self, name: str) -> List[AccessGrant]:
        return [g for g in self.access_grants if g.principal == name]

    def to_dict(self) -> Dict[str, Any]:
        """JSON-serializable plan."""
        return {
            "service": self.service,
            "environment": self.environment,
            "context": self.context.to_dict(),
            "order": self.order,
            "components": [c.to_dict() for c in self.ordered_components],
            "grants": [g.to_dict() for g in self.access_grants],
            "graph": self.dependency_graph.to_dict(),
            "history": list(self.history),
        }

    def render_report(self) -> str:
        """Human readable summary of components, capabilities and bindings."""
        ctx = self.context
        lines = [
            f"Service: {self.service}",
            f"Environment: {self.environment} "
            f"(framework: {ctx.compliance_framework}, region: {ctx.region or '-'}, account: {ctx.account_id or '-'})",
            "",
            f"Components ({len(self.ordered_components)}, in instantiation order):",
        ]
        for index, resolved in enumerate(self.ordered_components, start=1):
            lines.append(
                f"  {index}. {resolved.name} [{resolved.type}] config {resolved.config.config_hash[:12]}"
            )
            for capability in resolved.capabilities.values():
                lines.append(
                    f"       provides {capability.key} ({', '.join(capability.allowed_access) or 'no access'})"
                )
            for grant in resolved.grants:
                lines.append(
                    f"       uses {grant.capability} on {grant.resource} as {grant.access} "
                    f"({', '.join(grant.actions)})"
                )
        lines.append("")
        lines.append(f"Bindings: {len(self.access_grants)} access grant(s)")
        for grant in self.access_grants:
            lines.append(f"  {grant.principal} -> {grant.resource}: {grant.capability} [{grant.access}]")
        return "\n".join(lines)


class _Run:
    """Mutable bookkeeping for one resolution run."""

    def __init__(self, environment: str) -> None:
        self.environment = environment
        self.service: Optional[str] = None
        self.state = ResolutionState.UNPARSED
        self.history: List[str] = [self.state.value]
        self.errors: List[StrataError] = []

    def advance(self, state: ResolutionState) -> None:
        logger.debug("Resolution %s/%s: %s -> %s", self.service, self.environment, self.state.value, state.value)
        self.state = state
        self.history.append(state.value)

    def fail(self) -> ResolutionFailedError:
        last = self.state.value
        self.history.append(ResolutionState.FAILED.value)
        logger.info(
            "Resolution of %s/%s failed after %s with %d error(s)",
            self.service,
            self.environment,
            last,
            len(self.errors),
        )
        return ResolutionFailedError(
            self.errors,
            service=self.service,
            environment=self.environment,
            last_state=last,
            history=self.history,
        )


@dataclass
class _Instance:
    descriptor: ComponentDescriptor
    config: ResolvedConfig
    handle: ComponentHandle
    capabilities: Dict[str, Capability]


class ResolverEngine:
    """Resolve a service manifest for one environment.

    Collaborators are injectable; by default the engine owns a
    :class:`FrameworkDefaultsCache` shared by every run it performs.
    """

    def __init__(
        self,
        registry: ComponentRegistry,
        *,
        defaults_cache: Optional[FrameworkDefaultsCache] = None,
        config_builder: Optional[ConfigBuilder] = None,
        graph_resolver: Optional[DependencyGraphResolver] = None,
        binding_resolver: Optional[CapabilityBindingResolver] = None,
    ) -> None:
        self.registry = registry
        if config_builder is not None:
            self.defaults_cache = defaults_cache or config_builder.defaults_cache
            self.config_builder = config_builder
        else:
            self.defaults_cache = defaults_cache or FrameworkDefaultsCache()
            self.config_builder = ConfigBuilder(self.defaults_cache)
        self.graph_resolver = graph_resolver or DependencyGraphResolver()
        self.binding_resolver = binding_resolver or CapabilityBindingResolver()

    def resolve(self, manifest: ManifestInput, environment: str) -> ResolutionResult:
        """Resolve ``manifest`` for ``environment``.

        Raises:
            ResolutionFailedError: The run collected one or more errors.
        """
        run = _Run(environment)

        # unparsed -> validated (fail-fast)
        try:
            if isinstance(manifest, ServiceManifest):
                model = check_manifest(manifest)
            else:
                model = parse_manifest(manifest)
        except StrataError as exc:
            run.errors.append(exc)
            raise run.fail() from exc
        run.service = model.service
        run.advance(ResolutionState.VALIDATED)

        # validated -> context-bound (fail-fast)
        try:
            context = build_context(model, environment)
            self.defaults_cache.get(context.compliance_framework)
        except StrataError as exc:
            run.errors.append(exc)
            raise run.fail() from exc
        env_spec = model.environments[environment]
        run.advance(ResolutionState.CONTEXT_BOUND)

        # context-bound -> ordered (cycle aborts)
        bindings, selector_errors = self.graph_resolver.resolve_selectors(
            model.components, model.all_bindings(), strict=False
        )
        run.errors.extend(selector_errors)
        graph = self.graph_resolver.build(model.components, bindings, strict=False)
        run.errors.extend(graph.errors)
        try:
            order = self.graph_resolver.order(graph)
        except CircularDependencyError as exc:
            run.errors.append(exc)
            raise run.fail() from exc
        run.advance(ResolutionState.ORDERED)
        logger.info("Resolved order for %s/%s: %s", model.service, environment, ", ".join(order))

        # ordered -> instantiated (errors collected)
        specs = {spec.name: spec for spec in model.components}
        instances: Dict[str, _Instance] = {}
        for name in order:
            spec = specs[name]
            try:
                descriptor = self.registry.get(spec.type, component=name)
                config = self.config_builder.build(
                    spec, context, descriptor, environment=env_spec, patches=model.patches
                )
                handle = self.registry.create(spec.type, context, config)
                capabilities = self.registry.capabilities_of(handle, component=name, component_type=spec.type)
            except StrataError as exc:
                logger.debug("Component %s failed: %s", name, exc)
                run.errors.append(exc)
                continue
            instances[name] = _Instance(descriptor, config, handle, capabilities)
        run.advance(ResolutionState.INSTANTIATED)
        logger.info("Instantiated %d of %d component(s)", len(instances), len(order))

        # instantiated -> bindings-resolved (errors collected)
        grants_by_consumer: Dict[str, List[AccessGrant]] = defaultdict(list)
        grants: List[AccessGrant] = []
        unsettled: Set[str] = {getattr(err, "component", "") for err in selector_errors}
        for binding in bindings:
            if binding.source not in specs or binding.target not in specs:
                unsettled.add(binding.source)
                continue  # already reported while building the graph
            producer = instances.get(binding.target or "")
            consumer = instances.get(binding.source)
            if producer is None or consumer is None:
                logger.warning("Skipping binding %s: an endpoint failed to instantiate", binding.describe())
                unsettled.add(binding.source)
                continue
            try:
                grant = self.binding_resolver.resolve(
                    binding,
                    producer.capabilities,
                    specs[binding.source],
                    producer_type=specs[binding.target].type,
                )
            except StrataError as exc:
                run.errors.append(exc)
                unsettled.add(binding.source)
                continue
            grants_by_consumer[binding.source].append(grant)
            grants.append(grant)
        # A consumer with a skipped or failed binding has already been reported.
        for name in order:
            instance = instances.get(name)
            if instance is None or name in unsettled:
                continue
            try:
                self.binding_resolver.check_required(specs[name], instance.descriptor, grants_by_consumer[name])
            except StrataError as exc:
                run.errors.append(exc)
        run.advance(ResolutionState.BINDINGS_RESOLVED)
        logger.info("Resolved %d binding(s) into access grants", len(grants))

        if run.errors:
            raise run.fail()

        # bindings-resolved -> ready
        run.advance(ResolutionState.READY)
        ordered = tuple(
            ResolvedComponent(
                name=name,
                type=specs[name].type,
                config=instances[name].config,
                handle=instances[name].handle,
                capabilities=instances[name].capabilities,
                grants=tuple(grants_by_consumer[name]),
            )
            for name in order
        )
        return ResolutionResult(
            service=model.service,
            environment=environment,
            context=context,
            ordered_components=ordered,
            access_grants=tuple(grants),
            dependency_graph=graph,
            history=tuple(run.history),
        )


__all__ = [
    "ResolutionResult",
    "ResolutionState",
    "ResolvedComponent",
    "ResolverEngine",
]
