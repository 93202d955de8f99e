from __future__ import annotations

from typing import Any, Dict

import pytest

from helpers.components import API_DESCRIPTOR, DB_DESCRIPTOR, FakeDatabase, descriptor
from strata.core.components.base import BaseComponent, Capability
from strata.core.config.resolved import ResolvedConfig
from strata.core.exceptions import (
    ComponentContractError,
    DuplicateComponentTypeError,
    InvalidSchemaError,
    UnknownComponentTypeError,
)
from strata.core.manifest.model import ComponentContext
from strata.core.registries.components import ComponentRegistry

CONTEXT = ComponentContext(
    service_name="orders",
    environment="dev",
    compliance_framework="commercial",
    region="us-east-1",
    account_id="111111111111",
)


def _resolved(name: str, component_type: str, values: Dict[str, Any] | None = None) -> ResolvedConfig:
    return ResolvedConfig.create(name, component_type, values or {})


def test_register_and_get() -> None:
    registry = ComponentRegistry()
    registry.register("db-postgres", DB_DESCRIPTOR)

    assert registry.has("db-postgres")
    assert "db-postgres" in registry
    assert len(registry) == 1
    assert registry.get("db-postgres") is DB_DESCRIPTOR


def test_duplicate_registration_fails(registry: ComponentRegistry) -> None:
    with pytest.raises(DuplicateComponentTypeError) as exc_info:
        registry.register("db-postgres", DB_DESCRIPTOR)
    assert exc_info.value.component_type == "db-postgres"


def test_blank_descriptor_type_is_filled_in() -> None:
    registry = ComponentRegistry()
    stored = registry.register("thing", descriptor("", BaseComponent, {"type": "object"}))
    assert stored.type == "thing"
    assert registry.get("thing").type == "thing"


def test_mismatched_descriptor_type_is_rejected() -> None:
    with pytest.raises(ValueError):
        ComponentRegistry().register("other", DB_DESCRIPTOR)


def test_invalid_schema_is_rejected_at_registration() -> None:
    bad = descriptor("bad", BaseComponent, {"type": "object", "properties": {"x": {"type": 12}}})
    registry = ComponentRegistry()
    with pytest.raises(InvalidSchemaError):
        registry.register("bad", bad)
    assert not registry.has("bad")


def test_unknown_type_lists_registered_types(registry: ComponentRegistry) -> None:
    with pytest.raises(UnknownComponentTypeError) as exc_info:
        registry.get("redis", component="cache")

    err = exc_info.value
    assert err.registered == ["api-worker", "db-postgres", "queue", "widget"]
    assert "Component 'cache' has unknown type 'redis'" in str(err)
    assert "api-worker, db-postgres, queue, widget" in str(err)


def test_list_types_is_sorted(registry: ComponentRegistry) -> None:
    assert registry.list_types() == ["api-worker", "db-postgres", "queue", "widget"]
    assert [d.type for d in registry.descriptors()] == registry.list_types()


def test_create_returns_handle_with_capabilities(registry: ComponentRegistry) -> None:
    handle = registry.create("db-postgres", CONTEXT, _resolved("db", "db-postgres"))

    assert isinstance(handle, FakeDatabase)
    assert handle.get_type() == "db-postgres"
    capability = handle.get_capabilities()["database:postgres"]
    assert capability.allows("read-write")
    assert not capability.allows("admin")


def test_factory_failure_becomes_contract_error() -> None:
    def explode(context, config):
        raise RuntimeError("boom")

    registry = ComponentRegistry()
    registry.register("broken", descriptor("broken", explode, {"type": "object"}))

    with pytest.raises(ComponentContractError) as exc_info:
        registry.create("broken", CONTEXT, _resolved("b", "broken"))
    assert "boom" in str(exc_info.value)
    assert isinstance(exc_info.value.__cause__, RuntimeError)


def test_handle_reporting_wrong_type_is_contract_error() -> None:
    registry = ComponentRegistry()
    registry.register("db-alias", descriptor("db-alias", FakeDatabase, {"type": "object"}, provided=["database:postgres"]))

    with pytest.raises(ComponentContractError) as exc_info:
        registry.create("db-alias", CONTEXT, _resolved("db", "db-alias"))
    assert "reports 'db-postgres'" in str(exc_info.value)


def test_undeclared_capability_is_contract_error() -> None:
    registry = ComponentRegistry()
    registry.register("db-postgres", descriptor("db-postgres", FakeDatabase, {"type": "object"}))

    with pytest.raises(ComponentContractError) as exc_info:
        registry.create("db-postgres", CONTEXT, _resolved("db", "db-postgres"))
    assert "database:postgres" in str(exc_info.value)


def test_capabilities_may_be_plain_mappings() -> None:
    class MappingHandle:
        def __init__(self, context, config):
            self.config = config

        def get_type(self) -> str:
            return "mapping"

        def get_capabilities(self):
            return {"cache:redis": {"payload": {"host": "h"}, "allowedAccess": ["read"]}}

    registry = ComponentRegistry()
    registry.register("mapping", descriptor("mapping", MappingHandle, {"type": "object"}, provided=["cache:redis"]))
    handle = registry.create("mapping", CONTEXT, _resolved("m", "mapping"))

    capabilities = registry.capabilities_of(handle, component="m", component_type="mapping")
    assert capabilities["cache:redis"] == Capability("cache:redis", {"host": "h"}, ("read",))


def test_malformed_capability_is_contract_error() -> None:
    class BadHandle:
        def __init__(self, context, config):
            pass

        def get_type(self) -> str:
            return "bad-caps"

        def get_capabilities(self):
            return {"no-colon": {"allowedAccess": ["read"]}}

    registry = ComponentRegistry()
    registry.register("bad-caps", descriptor("bad-caps", BadHandle, {"type": "object"}))
    with pytest.raises(ComponentContractError):
        registry.create("bad-caps", CONTEXT, _resolved("x", "bad-caps"))


def test_base_component_naming_helpers() -> None:
    registry = ComponentRegistry()
    registry.register("api-worker", API_DESCRIPTOR)
    gov = ComponentContext(
        service_name="Orders",
        environment="prod",
        compliance_framework="fedramp-high",
        region="us-gov-west-1",
        account_id="222222222222",
    )
    handle = registry.create("api-worker", gov, _resolved("api", "api-worker"))

    assert handle.resource_name() == "orders-prod-api"
    assert handle.resource_name("dlq") == "orders-prod-api-dlq"
    assert handle.partition == "aws-us-gov"
    assert handle.arn("s3", "bucket", regional=False) == "arn:aws-us-gov:s3:::bucket"
    assert handle.get_capabilities() == {}


def test_descriptor_to_dict() -> None:
    assert DB_DESCRIPTOR.to_dict() == {
        "type": "db-postgres",
        "description": "test db-postgres",
        "providedCapabilities": ["database:postgres"],
        "requiredCapabilities": [],
        "fallbackConfig": {},
    }
