"""Registries for strata.

Architecture:
    ComponentRegistry - component type -> ComponentDescriptor
"""
from __future__ import annotations

from .components import ComponentDescriptor, ComponentFactory, ComponentRegistry

__all__ = ["ComponentDescriptor", "ComponentFactory", "ComponentRegistry"]
