"""Dependency graph construction and deterministic ordering.

Edges point from a prerequisite to the component that needs it: every
explicit dependency yields ``dependency -> component`` and every binding
yields ``producer (to) -> consumer (from)``. Ordering is a depth-first
topological sort with three-colour marking; roots and predecessors are
visited in declaration order so the same manifest always produces the
same order.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

from strata.core.exceptions import (
    AmbiguousBindingTargetError,
    CircularDependencyError,
    MissingBindingTargetError,
    MissingDependencyError,
    MissingReferenceError,
    StrataError,
)
from strata.core.manifest.model import Binding, ComponentSpec

logger = logging.getLogger(__name__)

DEPENDENCY = "dependency"
BINDING = "binding"

_WHITE, _GRAY, _BLACK = 0, 1, 2


@dataclass(frozen=True)
class DependencyEdge:
    """``source`` must be instantiated before ``target``."""

    source: str
    target: str
    reason: str = DEPENDENCY

    def to_dict(self) -> Dict[str, str]:
        return {"from": self.source, "to": self.target, "reason": self.reason}


@dataclass(frozen=True)
class DependencyGraph:
    """Components and ordering edges of one manifest.

    ``errors`` holds the unresolved references that were dropped while the
    graph was built in non-strict mode.
    """

    nodes: Tuple[str, ...]
    edges: Tuple[DependencyEdge, ...] = ()
    errors: Tuple[MissingReferenceError, ...] = ()

    def predecessors(self, node: str) -> List[str]:
        """Direct prerequisites of ``node`` in declaration order."""
        position = {name: i for i, name in enumerate(self.nodes)}
        found = {e.source for e in self.edges if e.target == node}
        return sorted(found, key=position.__getitem__)

    def successors(self, node: str) -> List[str]:
        position = {name: i for i, name in enumerate(self.nodes)}
        found = {e.target for e in self.edges if e.source == node}
        return sorted(found, key=position.__getitem__)

    def to_dict(self) -> Dict[str, object]:
        return {
            "nodes": list(self.nodes),
            "edges": [e.to_dict() for e in self.edges],
        }


def resolve_selectors(
    specs: Sequence[ComponentSpec],
    bindings: Iterable[Binding],
    *,
    strict: bool = True,
) -> Tuple[List[Binding], List[StrataError]]:
    """Replace selector bindings with bindings to the single matching component.

    A selector never matches the binding's own source. Unresolvable
    bindings are dropped and their errors returned (``strict=False``) or
    raised (``strict=True``).
    """
    resolved: List[Binding] = []
    errors: List[StrataError] = []
    for binding in bindings:
        if binding.selector is None:
            resolved.append(binding)
            continue
        candidates = [
            s.name for s in specs if s.name != binding.source and binding.selector.matches(s)
        ]
        error: Optional[StrataError] = None
        if not candidates:
            error = MissingBindingTargetError(
                binding.source,
                str(binding.selector.to_dict()),
                role="binding target matching",
            )
        elif len(candidates) > 1:
            error = AmbiguousBindingTargetError(binding.source, binding.selector.to_dict(), candidates)
        if error is not None:
            if strict:
                raise error
            errors.append(error)
            continue
        logger.debug("Selector on %s resolved to %s", binding.source, candidates[0])
        resolved.append(binding.with_target(candidates[0]))
    return resolved, errors


def build_graph(
    specs: Sequence[ComponentSpec],
    bindings: Iterable[Binding] = (),
    *,
    strict: bool = True,
) -> DependencyGraph:
    """Build the ordering graph for ``specs``.

    Raises:
        MissingDependencyError: An explicit dependency names an undeclared
            component (``strict=True`` only).
        MissingBindingTargetError: A binding endpoint is undeclared
            (``strict=True`` only).
    """
    nodes = tuple(s.name for s in specs)
    known = set(nodes)
    edges: List[DependencyEdge] = []
    seen: set[Tuple[str, str]] = set()
    errors: List[MissingReferenceError] = []

    def _reject(error: MissingReferenceError) -> None:
        if strict:
            raise error
        errors.append(error)

    def _add(source: str, target: str, reason: str) -> None:
        if (source, target) in seen:
            return
        seen.add((source, target))
        edges.append(DependencyEdge(source, target, reason))

    for spec in specs:
        for dependency in spec.dependencies:
            if dependency not in known:
                _reject(MissingDependencyError(spec.name, dependency))
                continue
            _add(dependency, spec.name, DEPENDENCY)

    for binding in bindings:
        if binding.source not in known:
            _reject(
                MissingBindingTargetError(
                    binding.source,
                    binding.source,
                    role="binding source",
                    subject=f"Binding {binding.describe()}",
                )
            )
            continue
        if binding.target is None or binding.target not in known:
            _reject(MissingBindingTargetError(binding.source, binding.target or "<unresolved selector>"))
            continue
        _add(binding.target, binding.source, BINDING)

    logger.debug("Built dependency graph: %d node(s), %d edge(s)", len(nodes), len(edges))
    return DependencyGraph(nodes=nodes, edges=tuple(edges), errors=tuple(errors))


def topological_order(graph: DependencyGraph) -> List[str]:
    """Return ``graph.nodes`` ordered so prerequisites come first.

    Raises:
        CircularDependencyError: The graph has a cycle. ``cycle`` lists the
            members in "depends on" direction, closed by repeating the first.
    """
    position = {name: i for i, name in enumerate(graph.nodes)}
    predecessors: Dict[str, List[str]] = {name: [] for name in graph.nodes}
    for edge in graph.edges:
        predecessors[edge.target].append(edge.source)
    for name in predecessors:
        predecessors[name].sort(key=position.__getitem__)

    state = {name: _WHITE for name in graph.nodes}
    path: List[str] = []
    order: List[str] = []

    for root in graph.nodes:
        if state[root] != _WHITE:
            continue
        # Explicit stack of (node, remaining prerequisites); depth is bounded by
        # manifest size, not the interpreter recursion limit.
        state[root] = _GRAY
        path.append(root)
        stack: List[Tuple[str, Iterator[str]]] = [(root, iter(predecessors[root]))]
        while stack:
            node, remaining = stack[-1]
            prerequisite = next(remaining, None)
            if prerequisite is None:
                stack.pop()
                path.pop()
                state[node] = _BLACK
                order.append(node)
                continue
            if state[prerequisite] == _GRAY:
                cycle = path[path.index(prerequisite):] + [prerequisite]
                raise CircularDependencyError(cycle)
            if state[prerequisite] == _WHITE:
                state[prerequisite] = _GRAY
                path.append(prerequisite)
                stack.append((prerequisite, iter(predecessors[prerequisite])))
    return order


class DependencyGraphResolver:
    """Thin object wrapper so the engine can take the graph logic as a collaborator."""

    def resolve_selectors(
        self,
        specs: Sequence[ComponentSpec],
        bindings: Iterable[Binding],
        *,
        strict: bool = True,
    ) -> Tuple[List[Binding], List[StrataError]]:
        return resolve_selectors(specs, bindings, strict=strict)

    def build(
        self,
        specs: Sequence[ComponentSpec],
        bindings: Iterable[Binding] = (),
        *,
        strict: bool = True,
    ) -> DependencyGraph:
        return build_graph(specs, bindings, strict=strict)

    def order(self, graph: DependencyGraph) -> List[str]:
        return topological_order(graph)


__all__ = [
    "BINDING",
    "DEPENDENCY",
    "DependencyEdge",
    "DependencyGraph",
    "DependencyGraphResolver",
    "build_graph",
    "resolve_selectors",
    "topological_order",
]
