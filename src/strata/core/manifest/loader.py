"""Service manifest loading and structural validation.

Manifests are YAML (or JSON) documents. Loading is fail-fast: every
structural problem found in one pass is reported together in a single
:class:`~strata.core.exceptions.ManifestStructureError`.
"""
from __future__ import annotations

import datetime
import logging
from collections import Counter
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml

from strata.core.exceptions import ManifestStructureError
from strata.core.schemas.validation import SchemaValidator, load_schema
from strata.core.utils.io import read_structured

from .model import ServiceManifest

logger = logging.getLogger(__name__)

MANIFEST_SCHEMA = "manifest"


def _normalize_scalars(value: Any) -> Any:
    """Render YAML timestamps as ISO strings so they validate as strings."""
    if isinstance(value, Mapping):
        return {k: _normalize_scalars(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_normalize_scalars(v) for v in value]
    if isinstance(value, (datetime.date, datetime.datetime)):
        return value.isoformat()
    return value


def _blank(value: Optional[str]) -> bool:
    return value is None or not str(value).strip()


def manifest_issues(manifest: ServiceManifest) -> List[str]:
    """Return every structural rule ``manifest`` breaks (empty when valid)."""
    issues: List[str] = []
    if _blank(manifest.service):
        issues.append("service: must be a non-empty string")
    if _blank(manifest.owner):
        issues.append("owner: must be a non-empty string")
    if _blank(manifest.compliance_framework):
        issues.append("complianceFramework: must be a non-empty string")
    if not manifest.environments:
        issues.append("environments: at least one environment must be declared")
    if not manifest.components:
        issues.append("components: at least one component must be declared")

    for index, spec in enumerate(manifest.components):
        if _blank(spec.name):
            issues.append(f"components[{index}].name: must be a non-empty string")
        if _blank(spec.type):
            issues.append(f"components[{index}].type: must be a non-empty string")

    counts = Counter(spec.name for spec in manifest.components)
    for name, count in counts.items():
        if count > 1 and not _blank(name):
            issues.append(f"components: duplicate component name '{name}' ({count} occurrences)")

    for binding in manifest.all_bindings():
        label = binding.describe()
        if _blank(binding.source):
            issues.append(f"binds: binding {label} has an empty 'from'")
        if _blank(binding.target) and binding.selector is None:
            issues.append(f"binds: binding {label} needs 'to' or 'select'")
        if binding.target is not None and binding.selector is not None:
            issues.append(f"binds: binding {label} declares both 'to' and 'select'")
        if _blank(binding.capability):
            issues.append(f"binds: binding {label} has an empty 'capability'")
        if _blank(binding.access):
            issues.append(f"binds: binding {label} has an empty 'access'")

    declared = set(counts)
    for patch in manifest.patches:
        if _blank(patch.justification):
            issues.append(f"patches.{patch.name}: justification is required")
        if _blank(patch.approved_by):
            issues.append(f"patches.{patch.name}: approvedBy is required")
        if patch.component not in declared:
            issues.append(f"patches.{patch.name}: targets unknown component '{patch.component}'")
        for env in patch.environments:
            if env not in manifest.environments:
                issues.append(f"patches.{patch.name}: references undeclared environment '{env}'")
    return issues


def check_manifest(manifest: ServiceManifest, *, source: Optional[str] = None) -> ServiceManifest:
    """Raise :class:`ManifestStructureError` if ``manifest`` breaks a structural rule."""
    issues = manifest_issues(manifest)
    if issues:
        raise ManifestStructureError(issues, source=source)
    return manifest


def parse_manifest(
    data: Any,
    *,
    source: Optional[str] = None,
    validator: Optional[SchemaValidator] = None,
) -> ServiceManifest:
    """Validate a raw manifest mapping and build a :class:`ServiceManifest`.

    The raw document is checked against the bundled manifest schema first;
    model-level rules (unique names, patch approvals, ...) run afterwards.
    """
    if not isinstance(data, Mapping):
        raise ManifestStructureError(
            [f"manifest must be a mapping, got {type(data).__name__}"], source=source
        )
    raw: Dict[str, Any] = _normalize_scalars(data)
    validator = validator or SchemaValidator()
    result = validator.validate(load_schema(MANIFEST_SCHEMA), raw)
    if not result.valid:
        raise ManifestStructureError([str(issue) for issue in result.errors], source=source)

    manifest = check_manifest(ServiceManifest.from_dict(raw), source=source)
    logger.debug(
        "Parsed manifest for service %s: %d component(s), %d environment(s)",
        manifest.service,
        len(manifest.components),
        len(manifest.environments),
    )
    return manifest


def load_manifest(path: Path | str) -> ServiceManifest:
    """Read and parse a manifest file (``.yaml``/``.yml``/``.json``)."""
    p = Path(path)
    try:
        data = read_structured(p)
    except (yaml.YAMLError, ValueError) as exc:
        raise ManifestStructureError([f"could not parse manifest: {exc}"], source=str(p)) from exc
    if data is None:
        raise ManifestStructureError(["manifest is empty"], source=str(p))
    return parse_manifest(data, source=str(p))


__all__ = [
    "MANIFEST_SCHEMA",
    "manifest_issues",
    "check_manifest",
    "parse_manifest",
    "load_manifest",
]
