"""Exception hierarchy for manifest loading, configuration resolution and binding.

Every error derives from :class:`StrataError` and carries a JSON-ready
``context`` mapping used by the CLI error output.
"""
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence


class StrataError(Exception):
    """Base exception for strata."""

    context: Dict[str, Any]

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        super().__init__(message)
        if context is not None:
            # Store a shallow copy to avoid accidental mutation.
            self.context = dict(context)
        else:
            self.context = {}

    def to_json_error(self) -> Dict[str, Any]:
        """Return a JSON-serializable error payload."""
        return {
            "message": str(self),
            "code": self.__class__.__name__,
            "context": self.context,
        }


def _format_issues(issues: Sequence[Any]) -> str:
    return "\n".join(f"  - {issue}" for issue in issues)


# ---------------------------------------------------------------------------
# Manifest / environment (fail-fast)
# ---------------------------------------------------------------------------


class ManifestStructureError(StrataError, ValueError):
    """Raised when a manifest is missing required fields or is malformed."""

    def __init__(self, issues: Iterable[str], *, source: str | None = None) -> None:
        self.issues: List[str] = list(issues)
        where = f" ({source})" if source else ""
        message = f"Invalid service manifest{where}:\n{_format_issues(self.issues)}"
        StrataError.__init__(self, message, context={"issues": self.issues, "source": source})
        ValueError.__init__(self, message)


class UnknownEnvironmentError(StrataError, LookupError):
    """Raised when the requested environment is not declared in the manifest."""

    def __init__(self, environment: str, declared: Iterable[str]) -> None:
        self.environment = environment
        self.declared = sorted(declared)
        message = (
            f"Environment '{environment}' is not declared in the manifest. "
            f"Declared environments: {', '.join(self.declared) or '(none)'}"
        )
        StrataError.__init__(
            self, message, context={"environment": environment, "declared": self.declared}
        )
        LookupError.__init__(self, message)

    def __str__(self) -> str:
        return str(self.args[0])


class UnknownComplianceFrameworkError(StrataError, LookupError):
    """Raised when no default document exists for a compliance framework."""

    def __init__(self, framework: str, searched: Iterable[str] = ()) -> None:
        self.framework = framework
        self.searched = [str(s) for s in searched]
        message = f"No default document found for compliance framework '{framework}'"
        if self.searched:
            message += "\nSearched:\n" + "\n".join(f"- {s}" for s in self.searched)
        StrataError.__init__(
            self, message, context={"framework": framework, "searched": self.searched}
        )
        LookupError.__init__(self, message)

    def __str__(self) -> str:
        return str(self.args[0])


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class UnknownComponentTypeError(StrataError, LookupError):
    """Raised when a component type is not present in the registry."""

    def __init__(self, component_type: str, registered: Iterable[str], *, component: str | None = None) -> None:
        self.component_type = component_type
        self.registered = sorted(registered)
        self.component = component
        subject = f"Component '{component}' has unknown type" if component else "Unknown component type"
        message = (
            f"{subject} '{component_type}'. "
            f"Registered types: {', '.join(self.registered) or '(none)'}"
        )
        StrataError.__init__(
            self,
            message,
            context={"type": component_type, "registered": self.registered, "component": component},
        )
        LookupError.__init__(self, message)

    def __str__(self) -> str:
        return str(self.args[0])


class DuplicateComponentTypeError(StrataError, ValueError):
    """Raised when a component type is registered more than once."""

    def __init__(self, component_type: str) -> None:
        self.component_type = component_type
        message = f"Component type '{component_type}' is already registered"
        StrataError.__init__(self, message, context={"type": component_type})
        ValueError.__init__(self, message)


class InvalidSchemaError(StrataError, ValueError):
    """Raised when a component config schema is not a valid JSON Schema."""


class ComponentContractError(StrataError, TypeError):
    """Raised when a component handle does not honour the component contract."""

    def __init__(self, message: str, *, component: str, component_type: str) -> None:
        self.component = component
        self.component_type = component_type
        StrataError.__init__(self, message, context={"component": component, "type": component_type})
        TypeError.__init__(self, message)


# ---------------------------------------------------------------------------
# Configuration resolution (collected per component)
# ---------------------------------------------------------------------------


class SchemaValidationError(StrataError, ValueError):
    """Raised when a resolved configuration fails its component schema."""

    label = "failed schema validation"

    def __init__(self, issues: Sequence[Any], *, component: str, component_type: str) -> None:
        self.issues = list(issues)
        self.component = component
        self.component_type = component_type
        message = (
            f"Configuration for component '{component}' ({component_type}) {self.label}:\n"
            f"{_format_issues(self.issues)}"
        )
        StrataError.__init__(
            self,
            message,
            context={
                "component": component,
                "type": component_type,
                "issues": [getattr(i, "to_dict", lambda i=i: str(i))() for i in self.issues],
            },
        )
        ValueError.__init__(self, message)


class CrossFieldInvariantViolation(SchemaValidationError):
    """Raised when a conditional cross-field rule fails after merge and defaulting."""

    label = "violates a cross-field invariant"


# ---------------------------------------------------------------------------
# Graph and bindings
# ---------------------------------------------------------------------------


class MissingReferenceError(StrataError, LookupError):
    """Base for references that name a component not present in the manifest."""

    kind = "reference"

    def __init__(
        self,
        component: str,
        missing: str,
        *,
        role: str | None = None,
        subject: str | None = None,
    ) -> None:
        self.component = component
        self.missing = missing
        self.role = role or self.kind
        subject = subject or f"Component '{component}'"
        message = f"{subject} references {self.role} '{missing}' which is not a declared component"
        StrataError.__init__(self, message, context={"component": component, "missing": missing})
        LookupError.__init__(self, message)

    def __str__(self) -> str:
        return str(self.args[0])


class MissingDependencyError(MissingReferenceError):
    """Raised when an explicit dependency names an undeclared component."""

    kind = "dependency"


class MissingBindingTargetError(MissingReferenceError):
    """Raised when a binding references an undeclared component."""

    kind = "binding target"


class AmbiguousBindingTargetError(StrataError, LookupError):
    """Raised when a binding selector matches more than one component."""

    def __init__(self, component: str, selector: Mapping[str, Any], candidates: Sequence[str]) -> None:
        self.component = component
        self.candidates = list(candidates)
        message = (
            f"Binding selector {dict(selector)!r} on component '{component}' is ambiguous: "
            f"matches {len(self.candidates)} components [{', '.join(self.candidates)}]. "
            "Make the selector more specific."
        )
        StrataError.__init__(
            self, message, context={"component": component, "candidates": self.candidates}
        )
        LookupError.__init__(self, message)

    def __str__(self) -> str:
        return str(self.args[0])


class CircularDependencyError(StrataError, ValueError):
    """Raised when the dependency/binding graph contains a cycle."""

    def __init__(self, cycle: Sequence[str]) -> None:
        self.cycle = list(cycle)
        message = f"Circular dependency detected: {' -> '.join(self.cycle)}"
        StrataError.__init__(self, message, context={"cycle": self.cycle})
        ValueError.__init__(self, message)


class CapabilityMismatchError(StrataError, ValueError):
    """Raised when a binding requests a capability or access level that is not offered."""

    def __init__(
        self,
        message: str,
        *,
        source: str,
        target: str | None,
        capability: str,
        access: str | None = None,
        available: Optional[Sequence[str]] = None,
    ) -> None:
        self.source = source
        self.target = target
        self.capability = capability
        self.access = access
        self.available = list(available or [])
        StrataError.__init__(
            self,
            message,
            context={
                "from": source,
                "to": target,
                "capability": capability,
                "access": access,
                "available": self.available,
            },
        )
        ValueError.__init__(self, message)


# ---------------------------------------------------------------------------
# Run-level aggregation
# ---------------------------------------------------------------------------


class ResolutionFailedError(StrataError):
    """Raised by the resolver engine when a run ends in the failed state.

    ``errors`` holds every collected error in detection order; ``last_state``
    is the last state the run reached before failing.
    """

    def __init__(
        self,
        errors: Sequence[BaseException],
        *,
        service: str | None,
        environment: str | None,
        last_state: str,
        history: Sequence[str] = (),
    ) -> None:
        self.errors = list(errors)
        self.service = service
        self.environment = environment
        self.last_state = last_state
        self.history = list(history)
        header = (
            f"Resolution of service '{service or '?'}' in environment '{environment or '?'}' "
            f"failed with {len(self.errors)} error(s) after state '{last_state}'"
        )
        message = header + ":\n" + "\n".join(
            f"  [{type(err).__name__}] {str(err).splitlines()[0] if str(err) else ''}" for err in self.errors
        )
        StrataError.__init__(
            self,
            message,
            context={
                "service": service,
                "environment": environment,
                "last_state": last_state,
                "errors": [
                    err.to_json_error() if isinstance(err, StrataError) else {"message": str(err), "code": type(err).__name__}
                    for err in self.errors
                ],
            },
        )

    def errors_of(self, kind: type) -> List[BaseException]:
        """Return the collected errors that are instances of ``kind``."""
        return [err for err in self.errors if isinstance(err, kind)]


__all__ = [
    "StrataError",
    "ManifestStructureError",
    "UnknownEnvironmentError",
    "UnknownComplianceFrameworkError",
    "UnknownComponentTypeError",
    "DuplicateComponentTypeError",
    "InvalidSchemaError",
    "ComponentContractError",
    "SchemaValidationError",
    "CrossFieldInvariantViolation",
    "MissingReferenceError",
    "MissingDependencyError",
    "MissingBindingTargetError",
    "AmbiguousBindingTargetError",
    "CircularDependencyError",
    "CapabilityMismatchError",
    "ResolutionFailedError",
]
