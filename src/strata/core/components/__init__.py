"""Component handle contract and capabilities."""
from __future__ import annotations

from .base import BaseComponent, Capability, ComponentHandle, normalize_capabilities

__all__ = ["BaseComponent", "Capability", "ComponentHandle", "normalize_capabilities"]
