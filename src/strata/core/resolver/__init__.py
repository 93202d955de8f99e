"""Dependency ordering, capability bindings and the resolver engine."""
from __future__ import annotations

from .bindings import AccessGrant, CapabilityBindingResolver
from .engine import ResolutionResult, ResolutionState, ResolvedComponent, ResolverEngine
from .graph import (
    DependencyEdge,
    DependencyGraph,
    DependencyGraphResolver,
    build_graph,
    resolve_selectors,
    topological_order,
)

__all__ = [
    "AccessGrant",
    "CapabilityBindingResolver",
    "DependencyEdge",
    "DependencyGraph",
    "DependencyGraphResolver",
    "ResolutionResult",
    "ResolutionState",
    "ResolvedComponent",
    "ResolverEngine",
    "build_graph",
    "resolve_selectors",
    "topological_order",
]
