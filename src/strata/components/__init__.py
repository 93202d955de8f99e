"""Built-in component types.

These descriptors carry metadata and capability contracts only; creating
physical resources is left to synthesis tooling.
"""
from __future__ import annotations

from typing import List

from strata.core.registries.components import ComponentDescriptor, ComponentRegistry

from . import lambda_worker, rds_postgres, s3_bucket, sqs_queue

BUILTIN_DESCRIPTORS: List[ComponentDescriptor] = [
    s3_bucket.DESCRIPTOR,
    rds_postgres.DESCRIPTOR,
    sqs_queue.DESCRIPTOR,
    lambda_worker.DESCRIPTOR,
]


def register_builtin_components(registry: ComponentRegistry) -> ComponentRegistry:
    """Register every built-in component type on ``registry``."""
    for descriptor in BUILTIN_DESCRIPTORS:
        registry.register(descriptor.type, descriptor)
    return registry


def default_registry() -> ComponentRegistry:
    """A fresh registry holding the built-in component types."""
    return register_builtin_components(ComponentRegistry())


__all__ = ["BUILTIN_DESCRIPTORS", "default_registry", "register_builtin_components"]
