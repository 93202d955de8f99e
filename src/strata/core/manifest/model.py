"""Service manifest data models.

Provides immutable dataclasses for a parsed service manifest and the
per-environment context shared by every component resolved in a run.
Nested mappings are stored deep-frozen so a parsed manifest cannot change
underneath a resolution run.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Mapping, Optional, Tuple

from strata.core.utils.frozen import freeze, thaw


def _frozen_map(value: Optional[Mapping[str, Any]]) -> Mapping[str, Any]:
    return freeze(dict(value or {}))


@dataclass(frozen=True)
class Selector:
    """Query resolving a binding target by component type and labels.

    Attributes:
        type: Component type the target must have (optional)
        with_labels: Labels the target must carry with equal values
    """

    type: Optional[str] = None
    with_labels: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "with_labels", _frozen_map(self.with_labels))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Selector:
        return cls(type=data.get("type"), with_labels=data.get("withLabels") or {})

    def matches(self, spec: ComponentSpec) -> bool:
        if self.type is not None and spec.type != self.type:
            return False
        return all(spec.labels.get(k) == v for k, v in self.with_labels.items())

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {}
        if self.type is not None:
            result["type"] = self.type
        if self.with_labels:
            result["withLabels"] = dict(self.with_labels)
        return result


@dataclass(frozen=True)
class Binding:
    """A declared use of a producer capability by a consumer.

    Attributes:
        source: Consuming component (manifest key ``from``)
        target: Producing component (manifest key ``to``); ``None`` until a
            selector is resolved
        capability: Exact capability key requested
        access: Requested access level
        selector: Optional selector used instead of ``target``
    """

    source: str
    target: Optional[str]
    capability: str
    access: str
    selector: Optional[Selector] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], *, source: Optional[str] = None) -> Binding:
        select = data.get("select")
        return cls(
            source=source if source is not None else data["from"],
            target=data.get("to"),
            capability=data["capability"],
            access=data["access"],
            selector=Selector.from_dict(select) if select else None,
        )

    def with_target(self, target: str) -> Binding:
        return replace(self, target=target)

    def describe(self) -> str:
        if self.target is not None:
            target = self.target
        else:
            target = f"select({self.selector.to_dict() if self.selector else ''})"
        return f"{self.source} -> {target} [{self.capability}:{self.access}]"

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"from": self.source}
        if self.target is not None:
            result["to"] = self.target
        if self.selector is not None:
            result["select"] = self.selector.to_dict()
        result["capability"] = self.capability
        result["access"] = self.access
        return result


@dataclass(frozen=True)
class ComponentSpec:
    """One component entry of a manifest.

    Attributes:
        name: Unique component name
        type: Registered component type
        config: Component-level configuration (highest non-patch layer)
        dependencies: Names of components that must be instantiated first
        binds: Component-level bindings (``source`` is this component)
        labels: Free-form labels matched by binding selectors
    """

    name: str
    type: str
    config: Mapping[str, Any] = field(default_factory=dict)
    dependencies: Tuple[str, ...] = ()
    binds: Tuple[Binding, ...] = ()
    labels: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "config", _frozen_map(self.config))
        object.__setattr__(self, "dependencies", tuple(self.dependencies))
        object.__setattr__(self, "binds", tuple(self.binds))
        object.__setattr__(self, "labels", _frozen_map(self.labels))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ComponentSpec:
        name = data["name"]
        return cls(
            name=name,
            type=data["type"],
            config=data.get("config") or {},
            dependencies=tuple(data.get("dependencies") or ()),
            binds=tuple(Binding.from_dict(b, source=name) for b in data.get("binds") or ()),
            labels=data.get("labels") or {},
        )

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"name": self.name, "type": self.type}
        if self.config:
            result["config"] = thaw(self.config)
        if self.dependencies:
            result["dependencies"] = list(self.dependencies)
        if self.labels:
            result["labels"] = dict(self.labels)
        if self.binds:
            binds = []
            for b in self.binds:
                entry = b.to_dict()
                entry.pop("from", None)
                binds.append(entry)
            result["binds"] = binds
        return result


@dataclass(frozen=True)
class EnvironmentSpec:
    """A deployment environment declared by the manifest.

    Attributes:
        name: Environment name
        compliance_framework: Framework key; ``None`` falls back to the
            manifest default
        region: Deployment region
        account_id: Deployment account identifier
        type_overrides: Overrides applied to every component of a type
        component_overrides: Overrides applied to one named component
        tags: Environment tags
    """

    name: str
    compliance_framework: Optional[str] = None
    region: Optional[str] = None
    account_id: Optional[str] = None
    type_overrides: Mapping[str, Mapping[str, Any]] = field(default_factory=dict)
    component_overrides: Mapping[str, Mapping[str, Any]] = field(default_factory=dict)
    tags: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "type_overrides", _frozen_map(self.type_overrides))
        object.__setattr__(self, "component_overrides", _frozen_map(self.component_overrides))
        object.__setattr__(self, "tags", _frozen_map(self.tags))

    @classmethod
    def from_dict(cls, name: str, data: Mapping[str, Any]) -> EnvironmentSpec:
        overrides = data.get("overrides") or {}
        return cls(
            name=name,
            compliance_framework=data.get("complianceFramework"),
            region=data.get("region"),
            account_id=data.get("accountId"),
            type_overrides=overrides.get("types") or {},
            component_overrides=overrides.get("components") or {},
            tags=data.get("tags") or {},
        )

    def overrides_for(self, spec: ComponentSpec) -> List[Dict[str, Any]]:
        """Return the override fragments for ``spec``: type first, then name."""
        fragments: List[Dict[str, Any]] = []
        if spec.type in self.type_overrides:
            fragments.append(thaw(self.type_overrides[spec.type]))
        if spec.name in self.component_overrides:
            fragments.append(thaw(self.component_overrides[spec.name]))
        return fragments

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {}
        if self.compliance_framework is not None:
            result["complianceFramework"] = self.compliance_framework
        if self.region is not None:
            result["region"] = self.region
        if self.account_id is not None:
            result["accountId"] = self.account_id
        overrides: Dict[str, Any] = {}
        if self.type_overrides:
            overrides["types"] = thaw(self.type_overrides)
        if self.component_overrides:
            overrides["components"] = thaw(self.component_overrides)
        if overrides:
            result["overrides"] = overrides
        if self.tags:
            result["tags"] = dict(self.tags)
        return result


@dataclass(frozen=True)
class Patch:
    """A named, justified and approved configuration escape hatch.

    Attributes:
        name: Patch identifier
        justification: Why the patch exists
        approved_by: Who approved it
        approved_date: Approval date (ISO string)
        component: Target component name
        config: Override values (highest precedence layer)
        environments: Restrict the patch to these environments (empty: all)
    """

    name: str
    justification: str
    approved_by: str
    approved_date: Optional[str] = None
    component: str = ""
    config: Mapping[str, Any] = field(default_factory=dict)
    environments: Tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "config", _frozen_map(self.config))
        object.__setattr__(self, "environments", tuple(self.environments))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Patch:
        approved_date = data.get("approvedDate")
        return cls(
            name=data["name"],
            justification=data.get("justification", ""),
            approved_by=data.get("approvedBy", ""),
            approved_date=str(approved_date) if approved_date is not None else None,
            component=data.get("component", ""),
            config=data.get("config") or {},
            environments=tuple(data.get("environments") or ()),
        )

    def applies_to(self, component: str, environment: Optional[str]) -> bool:
        if self.component != component:
            return False
        if self.environments and environment is not None:
            return environment in self.environments
        return True

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "name": self.name,
            "justification": self.justification,
            "approvedBy": self.approved_by,
        }
        if self.approved_date is not None:
            result["approvedDate"] = self.approved_date
        result["component"] = self.component
        result["config"] = thaw(self.config)
        if self.environments:
            result["environments"] = list(self.environments)
        return result


@dataclass(frozen=True)
class ServiceManifest:
    """A parsed service manifest.

    Attributes:
        service: Service name
        owner: Owning team or person
        compliance_framework: Default framework for every environment
        environments: Environment name -> EnvironmentSpec (declaration order)
        components: Components in declaration order
        bindings: Manifest-level bindings
        patches: Declared patches in manifest order
        tags: Manifest-level tags
    """

    service: str
    owner: str
    compliance_framework: str
    environments: Mapping[str, EnvironmentSpec] = field(default_factory=dict)
    components: Tuple[ComponentSpec, ...] = ()
    bindings: Tuple[Binding, ...] = ()
    patches: Tuple[Patch, ...] = ()
    tags: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "environments", freeze(dict(self.environments)))
        object.__setattr__(self, "components", tuple(self.components))
        object.__setattr__(self, "bindings", tuple(self.bindings))
        object.__setattr__(self, "patches", tuple(self.patches))
        object.__setattr__(self, "tags", _frozen_map(self.tags))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ServiceManifest:
        """Build a manifest from an already validated mapping."""
        return cls(
            service=data["service"],
            owner=data["owner"],
            compliance_framework=data["complianceFramework"],
            environments={
                name: EnvironmentSpec.from_dict(name, env or {})
                for name, env in (data.get("environments") or {}).items()
            },
            components=tuple(ComponentSpec.from_dict(c) for c in data.get("components") or ()),
            bindings=tuple(Binding.from_dict(b) for b in data.get("binds") or ()),
            patches=tuple(Patch.from_dict(p) for p in data.get("patches") or ()),
            tags=data.get("tags") or {},
        )

    def all_bindings(self) -> List[Binding]:
        """Component-level bindings (declaration order), then manifest-level ones."""
        out: List[Binding] = []
        for spec in self.components:
            out.extend(spec.binds)
        out.extend(self.bindings)
        return out

    def component_names(self) -> List[str]:
        return [c.name for c in self.components]

    def component(self, name: str) -> Optional[ComponentSpec]:
        for spec in self.components:
            if spec.name == name:
                return spec
        return None

    def patches_for(self, component: str, environment: Optional[str] = None) -> List[Patch]:
        return [p for p in self.patches if p.applies_to(component, environment)]

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {
            "service": self.service,
            "owner": self.owner,
            "complianceFramework": self.compliance_framework,
            "environments": {name: env.to_dict() for name, env in self.environments.items()},
            "components": [c.to_dict() for c in self.components],
        }
        if self.bindings:
            result["binds"] = [b.to_dict() for b in self.bindings]
        if self.patches:
            result["patches"] = [p.to_dict() for p in self.patches]
        if self.tags:
            result["tags"] = dict(self.tags)
        return result


@dataclass(frozen=True)
class ComponentContext:
    """Resolved per-environment facts shared by every component in a run.

    Attributes:
        service_name: Service name
        environment: Environment name
        compliance_framework: Effective framework key
        region: Deployment region
        account_id: Deployment account identifier
        tags: Read-only tag set
    """

    service_name: str
    environment: str
    compliance_framework: str
    region: Optional[str] = None
    account_id: Optional[str] = None
    tags: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "tags", _frozen_map(self.tags))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "service": self.service_name,
            "environment": self.environment,
            "complianceFramework": self.compliance_framework,
            "region": self.region,
            "accountId": self.account_id,
            "tags": dict(self.tags),
        }


__all__ = [
    "Selector",
    "Binding",
    "ComponentSpec",
    "EnvironmentSpec",
    "Patch",
    "ServiceManifest",
    "ComponentContext",
]
