"""JSON Schema validation for component configurations and manifests."""
from __future__ import annotations

from .validation import (
    CROSS_FIELD_KIND,
    SCHEMA_KIND,
    SchemaValidator,
    ValidationIssue,
    ValidationResult,
    load_schema,
)

__all__ = [
    "CROSS_FIELD_KIND",
    "SCHEMA_KIND",
    "SchemaValidator",
    "ValidationIssue",
    "ValidationResult",
    "load_schema",
]
