"""Per-environment component context construction."""
from __future__ import annotations

from typing import Dict

from strata.core.exceptions import UnknownEnvironmentError

from .model import ComponentContext, ServiceManifest


def build_context(manifest: ServiceManifest, environment: str) -> ComponentContext:
    """Build the immutable :class:`ComponentContext` for ``environment``.

    The framework falls back to the manifest default. Tags always carry
    ``service``, ``owner``, ``environment`` and ``compliance-framework``;
    manifest tags and then environment tags are layered on top.
    """
    env = manifest.environments.get(environment)
    if env is None:
        raise UnknownEnvironmentError(environment, manifest.environments.keys())

    framework = env.compliance_framework or manifest.compliance_framework
    tags: Dict[str, str] = {
        "service": manifest.service,
        "owner": manifest.owner,
        "environment": environment,
        "compliance-framework": framework,
    }
    tags.update(manifest.tags)
    tags.update(env.tags)

    return ComponentContext(
        service_name=manifest.service,
        environment=environment,
        compliance_framework=framework,
        region=env.region,
        account_id=env.account_id,
        tags=tags,
    )


__all__ = ["build_context"]
