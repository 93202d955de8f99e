from __future__ import annotations

import pytest

from helpers.components import descriptor
from strata.core.components.base import BaseComponent, Capability
from strata.core.exceptions import CapabilityMismatchError
from strata.core.manifest.model import Binding, ComponentSpec
from strata.core.resolver.bindings import AccessGrant, CapabilityBindingResolver, load_access_levels

WORKER = ComponentSpec(name="worker", type="api-worker")


def _queue(*allowed: str) -> dict:
    return {"queue:sqs": Capability("queue:sqs", {"queueName": "jobs"}, allowed)}


def _bind(access: str, capability: str = "queue:sqs") -> Binding:
    return Binding(source="worker", target="jobs", capability=capability, access=access)


@pytest.fixture
def resolver() -> CapabilityBindingResolver:
    return CapabilityBindingResolver()


def test_access_not_offered_is_mismatch(resolver: CapabilityBindingResolver) -> None:
    with pytest.raises(CapabilityMismatchError) as exc_info:
        resolver.resolve(_bind("send"), _queue("receive"), WORKER)

    err = exc_info.value
    assert err.access == "send"
    assert err.available == ["receive"]
    assert "only [receive] is allowed" in str(err)


def test_offered_access_produces_grant(resolver: CapabilityBindingResolver) -> None:
    grant = resolver.resolve(_bind("send"), _queue("send", "receive"), WORKER, producer_type="queue")

    assert grant == AccessGrant(
        principal="worker",
        principal_type="api-worker",
        resource="jobs",
        resource_type="queue",
        capability="queue:sqs",
        access="send",
        actions=("send",),
        payload={"queueName": "jobs"},
    )


def test_unknown_capability_lists_available(resolver: CapabilityBindingResolver) -> None:
    with pytest.raises(CapabilityMismatchError) as exc_info:
        resolver.resolve(_bind("read", capability="database:postgres"), _queue("send"), WORKER)

    err = exc_info.value
    assert err.capability == "database:postgres"
    assert err.available == ["queue:sqs"]
    assert "Available: queue:sqs" in str(err)


def test_capability_keys_match_exactly(resolver: CapabilityBindingResolver) -> None:
    with pytest.raises(CapabilityMismatchError):
        resolver.resolve(_bind("send", capability="queue:SQS"), _queue("send"), WORKER)


def test_mapping_capabilities_are_accepted(resolver: CapabilityBindingResolver) -> None:
    raw = {"queue:sqs": {"payload": {"queueName": "jobs"}, "allowedAccess": ["send"]}}
    grant = resolver.resolve(_bind("send"), raw, WORKER)
    assert grant.payload["queueName"] == "jobs"


def test_read_write_expands_to_read_and_write(resolver: CapabilityBindingResolver) -> None:
    assert resolver.actions_for("read-write") == ("read", "write")
    assert resolver.actions_for("custom") == ("custom",)


def test_bundled_access_levels() -> None:
    levels = load_access_levels()
    assert levels["read-write"] == ("read", "write")
    assert {"read", "write", "admin", "send", "receive", "invoke"} <= set(levels)


def test_custom_access_table() -> None:
    resolver = CapabilityBindingResolver({"send": ["sqs:SendMessage", "sqs:GetQueueUrl"]})
    grant = resolver.resolve(_bind("send"), _queue("send"), WORKER)
    assert grant.actions == ("sqs:SendMessage", "sqs:GetQueueUrl")


def test_grant_to_dict_is_plain() -> None:
    grant = CapabilityBindingResolver().resolve(_bind("send"), _queue("send"), WORKER)
    assert grant.to_dict()["payload"] == {"queueName": "jobs"}
    assert grant.to_dict()["actions"] == ["send"]


def test_check_required_passes_when_granted(resolver: CapabilityBindingResolver) -> None:
    needs_queue = descriptor("api-worker", BaseComponent, {"type": "object"}, required=["queue:sqs"])
    grant = resolver.resolve(_bind("send"), _queue("send"), WORKER)
    resolver.check_required(WORKER, needs_queue, [grant])


def test_check_required_fails_without_grant(resolver: CapabilityBindingResolver) -> None:
    needs_queue = descriptor("api-worker", BaseComponent, {"type": "object"}, required=["queue:sqs"])
    other = AccessGrant(
        principal="someone-else",
        principal_type="api-worker",
        resource="jobs",
        resource_type="queue",
        capability="queue:sqs",
        access="send",
    )
    with pytest.raises(CapabilityMismatchError) as exc_info:
        resolver.check_required(WORKER, needs_queue, [other])
    assert exc_info.value.capability == "queue:sqs"
    assert exc_info.value.target is None
