from __future__ import annotations

import json

import pytest

from strata.core.exceptions import (
    AmbiguousBindingTargetError,
    CapabilityMismatchError,
    CircularDependencyError,
    CrossFieldInvariantViolation,
    ManifestStructureError,
    MissingBindingTargetError,
    MissingDependencyError,
    ResolutionFailedError,
    SchemaValidationError,
    StrataError,
    UnknownComponentTypeError,
    UnknownEnvironmentError,
)
from strata.core.schemas.validation import ValidationIssue


def test_errors_share_a_base_and_builtin_categories() -> None:
    assert issubclass(ManifestStructureError, ValueError)
    assert issubclass(UnknownEnvironmentError, LookupError)
    assert issubclass(UnknownComponentTypeError, LookupError)
    assert issubclass(CrossFieldInvariantViolation, SchemaValidationError)
    for cls in (ManifestStructureError, CircularDependencyError, CapabilityMismatchError):
        assert issubclass(cls, StrataError)


def test_manifest_structure_error_lists_issues() -> None:
    err = ManifestStructureError(["owner: required", "components: empty"], source="svc.yaml")
    assert str(err) == "Invalid service manifest (svc.yaml):\n  - owner: required\n  - components: empty"
    assert err.to_json_error()["context"]["issues"] == ["owner: required", "components: empty"]


def test_missing_reference_messages() -> None:
    assert str(MissingDependencyError("api", "db")) == (
        "Component 'api' references dependency 'db' which is not a declared component"
    )
    assert str(MissingBindingTargetError("api", "cache")) == (
        "Component 'api' references binding target 'cache' which is not a declared component"
    )


def test_ambiguous_target_names_candidates() -> None:
    err = AmbiguousBindingTargetError("api", {"type": "db"}, ["db1", "db2"])
    assert "matches 2 components [db1, db2]" in str(err)


def test_schema_validation_error_serializes_issues() -> None:
    issue = ValidationIssue(path="storageGb", message="5 is less than the minimum of 20", rule="properties/storageGb/minimum")
    err = SchemaValidationError([issue], component="db", component_type="db-postgres")

    assert "storageGb: 5 is less than the minimum of 20" in str(err)
    payload = err.to_json_error()
    assert payload["code"] == "SchemaValidationError"
    assert payload["context"]["issues"][0]["path"] == "storageGb"


def test_resolution_failed_error_aggregates() -> None:
    causes = [CircularDependencyError(["a", "b", "a"]), ValueError("plain\nsecond line")]
    err = ResolutionFailedError(
        causes, service="orders", environment="dev", last_state="context-bound", history=["unparsed", "failed"]
    )

    text = str(err)
    assert text.startswith("Resolution of service 'orders' in environment 'dev' failed with 2 error(s)")
    assert "[CircularDependencyError] Circular dependency detected: a -> b -> a" in text
    assert "[ValueError] plain" in text
    assert "second line" not in text
    assert err.errors_of(CircularDependencyError) == [causes[0]]
    assert err.history == ["unparsed", "failed"]

    payload = json.loads(json.dumps(err.to_json_error()))
    assert [e["code"] for e in payload["context"]["errors"]] == ["CircularDependencyError", "ValueError"]


def test_strata_error_context_is_copied() -> None:
    context = {"a": 1}
    err = StrataError("boom", context=context)
    context["a"] = 2
    assert err.context == {"a": 1}
    with pytest.raises(StrataError, match="boom"):
        raise err
