from __future__ import annotations

import pytest

from helpers.manifests import manifest
from strata.core.exceptions import UnknownEnvironmentError
from strata.core.manifest import build_context, parse_manifest


@pytest.fixture
def two_envs():
    return parse_manifest(
        manifest(
            environments={
                "dev": {"region": "us-east-1", "accountId": "111111111111"},
                "prod": {
                    "complianceFramework": "fedramp-high",
                    "region": "us-gov-west-1",
                    "accountId": "222222222222",
                    "tags": {"cost-center": "cc-42", "owner": "oncall"},
                },
            },
            tags={"team": "payments"},
        )
    )


def test_framework_defaults_to_manifest_value(two_envs) -> None:
    context = build_context(two_envs, "dev")
    assert context.compliance_framework == "commercial"
    assert context.region == "us-east-1"
    assert context.account_id == "111111111111"


def test_environment_framework_overrides_manifest(two_envs) -> None:
    context = build_context(two_envs, "prod")
    assert context.compliance_framework == "fedramp-high"
    assert context.tags["compliance-framework"] == "fedramp-high"


def test_tags_layer_manifest_then_environment(two_envs) -> None:
    context = build_context(two_envs, "prod")
    assert dict(context.tags) == {
        "service": "orders",
        "owner": "oncall",
        "environment": "prod",
        "compliance-framework": "fedramp-high",
        "team": "payments",
        "cost-center": "cc-42",
    }


def test_context_is_immutable(two_envs) -> None:
    context = build_context(two_envs, "dev")
    with pytest.raises(AttributeError):
        context.environment = "prod"  # type: ignore[misc]
    with pytest.raises(TypeError):
        context.tags["service"] = "other"  # type: ignore[index]


def test_unknown_environment_lists_declared(two_envs) -> None:
    with pytest.raises(UnknownEnvironmentError) as exc_info:
        build_context(two_envs, "staging")

    err = exc_info.value
    assert err.environment == "staging"
    assert err.declared == ["dev", "prod"]
    assert "dev, prod" in str(err)
