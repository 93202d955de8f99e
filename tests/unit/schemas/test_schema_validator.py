from __future__ import annotations

import copy

import pytest

from helpers.components import DB_SCHEMA
from strata.core.exceptions import InvalidSchemaError
from strata.core.schemas.validation import (
    CROSS_FIELD_KIND,
    SCHEMA_KIND,
    SchemaValidator,
    load_schema,
)


@pytest.fixture
def validator() -> SchemaValidator:
    return SchemaValidator()


def test_valid_candidate_has_no_errors(validator: SchemaValidator) -> None:
    result = validator.validate(DB_SCHEMA, {"storageGb": 50})
    assert result.valid
    assert result.errors == ()


def test_collects_every_error_sorted_by_path(validator: SchemaValidator) -> None:
    result = validator.validate(
        DB_SCHEMA, {"storageGb": 5, "multiAZ": "yes", "unexpected": True}
    )

    assert not result.valid
    paths = [issue.path for issue in result.errors]
    assert paths == sorted(paths)
    assert {"", "multiAZ", "storageGb"} <= set(paths)
    assert all(issue.kind == SCHEMA_KIND for issue in result.errors)


def test_nested_paths_are_dotted(validator: SchemaValidator) -> None:
    result = validator.validate(DB_SCHEMA, {"compliance": {"objectLock": {"enabled": "on"}}})
    assert [i.path for i in result.errors] == ["compliance.objectLock.enabled"]


def test_conditional_rule_failure_is_cross_field(validator: SchemaValidator) -> None:
    candidate = {"versioning": False, "compliance": {"objectLock": {"enabled": True}}}
    result = validator.validate(DB_SCHEMA, candidate)

    assert not result.valid
    assert result.schema_errors == []
    [issue] = result.cross_field_errors
    assert issue.kind == CROSS_FIELD_KIND
    assert issue.path == "versioning"
    assert issue.message.startswith("Object lock requires versioning")
    assert issue.rule == "allOf/0/then/properties/versioning/const"


def test_conditional_rule_passes_when_satisfied(validator: SchemaValidator) -> None:
    candidate = {"versioning": True, "compliance": {"objectLock": {"enabled": True}}}
    assert validator.validate(DB_SCHEMA, candidate).valid


def test_dependent_required_is_cross_field(validator: SchemaValidator) -> None:
    schema = {
        "type": "object",
        "properties": {"a": {"type": "string"}, "b": {"type": "string"}},
        "dependentRequired": {"a": ["b"]},
    }
    result = validator.validate(schema, {"a": "x"})
    [issue] = result.errors
    assert issue.kind == CROSS_FIELD_KIND


def test_property_named_then_is_not_cross_field(validator: SchemaValidator) -> None:
    schema = {"type": "object", "properties": {"then": {"type": "integer"}}}
    [issue] = validator.validate(schema, {"then": "later"}).errors
    assert issue.kind == SCHEMA_KIND
    assert issue.path == "then"


def test_validation_is_deterministic(validator: SchemaValidator) -> None:
    candidate = {"storageGb": 1, "multiAZ": 3, "instanceClass": 7}
    assert validator.validate(DB_SCHEMA, candidate) == validator.validate(DB_SCHEMA, candidate)


def test_apply_defaults_fills_missing_and_nested_defaults(validator: SchemaValidator) -> None:
    result = validator.apply_defaults(DB_SCHEMA, {"storageGb": 100})
    assert result == {
        "storageGb": 100,
        "instanceClass": "db.t3.micro",
        "multiAZ": False,
        "versioning": False,
        "compliance": {"objectLock": {"enabled": False}},
    }


def test_apply_defaults_keeps_present_values_and_does_not_mutate(validator: SchemaValidator) -> None:
    candidate = {"multiAZ": True, "compliance": {"objectLock": {"enabled": True}}}
    snapshot = copy.deepcopy(candidate)

    result = validator.apply_defaults(DB_SCHEMA, candidate)

    assert candidate == snapshot
    assert result["multiAZ"] is True
    assert result["compliance"]["objectLock"]["enabled"] is True


def test_apply_defaults_visits_all_of_properties_but_not_conditionals(validator: SchemaValidator) -> None:
    schema = {
        "type": "object",
        "allOf": [{"properties": {"fromAllOf": {"default": 1}}}],
        "if": {"properties": {"x": {"const": 1}}},
        "then": {"properties": {"fromThen": {"default": 2}}},
    }
    assert validator.apply_defaults(schema, {"x": 1}) == {"x": 1, "fromAllOf": 1}


def test_apply_defaults_copies_default_values(validator: SchemaValidator) -> None:
    schema = {"type": "object", "properties": {"items": {"type": "array", "default": []}}}
    first = validator.apply_defaults(schema, {})
    first["items"].append(1)
    assert validator.apply_defaults(schema, {}) == {"items": []}


def test_check_schema_rejects_malformed_schema(validator: SchemaValidator) -> None:
    with pytest.raises(InvalidSchemaError):
        validator.check_schema({"type": "not-a-type"})
    with pytest.raises(InvalidSchemaError):
        validator.check_schema(["not", "a", "mapping"])  # type: ignore[arg-type]


@pytest.mark.parametrize(
    "name",
    [
        "manifest",
        "components/s3-bucket",
        "components/rds-postgres",
        "components/sqs-queue",
        "components/lambda-worker",
    ],
)
def test_bundled_schemas_are_valid(validator: SchemaValidator, name: str) -> None:
    validator.check_schema(load_schema(name))


def test_load_schema_unknown_name_raises() -> None:
    with pytest.raises(FileNotFoundError):
        load_schema("components/does-not-exist")
