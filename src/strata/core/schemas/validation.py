"""Shared schema validation utilities.

strata validates component configurations and service manifests using JSON
Schema (Draft 2020-12). Schemas are stored as YAML files (human-readable and
easy to review) and loaded in a single, consistent way across the codebase.

Conditional rules expressed with ``if``/``then``/``else``,
``dependentRequired`` or ``dependentSchemas`` are reported as
*cross-field* issues so callers can tell a type error from a violated
invariant between fields.
"""
from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from jsonschema import Draft202012Validator
from jsonschema.exceptions import SchemaError
from jsonschema.exceptions import ValidationError as JsonSchemaError

from strata.core.exceptions import InvalidSchemaError
from strata.core.utils.frozen import thaw
from strata.data import get_data_path, read_yaml

SCHEMA_KIND = "schema"
CROSS_FIELD_KIND = "cross-field"

_CROSS_FIELD_KEYWORDS = frozenset({"then", "else", "dependentRequired", "dependentSchemas"})
# Keywords whose value maps names to subschemas.
_NAMED_CHILDREN = frozenset({"properties", "patternProperties", "$defs", "definitions", "dependentSchemas"})
# Keywords whose value is a list of subschemas.
_INDEXED_CHILDREN = frozenset({"allOf", "anyOf", "oneOf", "prefixItems"})
# Keywords whose value is a single subschema.
_SINGLE_CHILD = frozenset({
    "items", "not", "if", "then", "else", "additionalProperties", "contains",
    "propertyNames", "unevaluatedItems", "unevaluatedProperties",
})


@dataclass(frozen=True)
class ValidationIssue:
    """One schema violation.

    ``path`` is the dotted location in the candidate (empty for the root),
    ``rule`` the slash-joined schema location of the failing keyword and
    ``kind`` either ``"schema"`` or ``"cross-field"``.
    """

    path: str
    message: str
    rule: str
    kind: str = SCHEMA_KIND

    @property
    def is_cross_field(self) -> bool:
        return self.kind == CROSS_FIELD_KIND

    def to_dict(self) -> Dict[str, str]:
        return {"path": self.path, "message": self.message, "rule": self.rule, "kind": self.kind}

    def __str__(self) -> str:
        return f"{self.path}: {self.message}" if self.path else self.message


@dataclass(frozen=True)
class ValidationResult:
    valid: bool
    errors: Tuple[ValidationIssue, ...] = ()

    @property
    def schema_errors(self) -> List[ValidationIssue]:
        return [e for e in self.errors if not e.is_cross_field]

    @property
    def cross_field_errors(self) -> List[ValidationIssue]:
        return [e for e in self.errors if e.is_cross_field]


def _format_path(parts: Iterable[Any]) -> str:
    out = ""
    for part in parts:
        if isinstance(part, int):
            out += f"[{part}]"
        else:
            out += f".{part}" if out else str(part)
    return out


def _classify(schema: Mapping[str, Any], schema_path: List[Any]) -> Tuple[str, Optional[str]]:
    """Return ``(kind, rule_description)`` for a failing schema location.

    Walks ``schema_path`` through ``schema``. The innermost conditional
    keyword wins; its owning subschema's ``description`` names the rule.
    """
    kind = SCHEMA_KIND
    description: Optional[str] = None
    node: Any = schema
    i = 0
    while i < len(schema_path):
        keyword = schema_path[i]
        if keyword in _CROSS_FIELD_KEYWORDS:
            kind = CROSS_FIELD_KIND
            description = node.get("description") if isinstance(node, Mapping) else None
        if not isinstance(node, Mapping) or keyword not in node:
            # Unwalkable (e.g. through a $ref): fall back to keyword membership.
            if any(p in _CROSS_FIELD_KEYWORDS for p in schema_path[i:] if isinstance(p, str)):
                kind = CROSS_FIELD_KIND
            break
        child = node[keyword]
        if keyword in _NAMED_CHILDREN or keyword in _INDEXED_CHILDREN:
            if i + 1 >= len(schema_path):
                break
            key = schema_path[i + 1]
            try:
                node = child[key]
            except (KeyError, IndexError, TypeError):
                break
            if keyword == "dependentSchemas" and isinstance(node, Mapping):
                description = node.get("description", description)
            i += 2
            continue
        if keyword in _SINGLE_CHILD:
            node = child
            i += 1
            continue
        break
    return kind, description


def _to_issue(schema: Mapping[str, Any], error: JsonSchemaError) -> ValidationIssue:
    schema_path = list(error.absolute_schema_path)
    kind, description = _classify(schema, schema_path)
    message = error.message
    if kind == CROSS_FIELD_KIND and description:
        message = f"{description}: {message}"
    return ValidationIssue(
        path=_format_path(error.absolute_path),
        message=message,
        rule="/".join(str(p) for p in schema_path),
        kind=kind,
    )


def _fill_defaults(schema: Any, target: Any) -> None:
    if not isinstance(schema, Mapping):
        return
    if isinstance(target, dict):
        properties = schema.get("properties")
        if isinstance(properties, Mapping):
            for name, sub in properties.items():
                if not isinstance(sub, Mapping):
                    continue
                if name not in target and "default" in sub:
                    target[name] = copy.deepcopy(thaw(sub["default"]))
                if name in target:
                    _fill_defaults(sub, target[name])
        for branch in schema.get("allOf") or ():
            _fill_defaults(branch, target)
    elif isinstance(target, list):
        items = schema.get("items")
        if isinstance(items, Mapping):
            for item in target:
                _fill_defaults(items, item)


class SchemaValidator:
    """Stateless JSON Schema validator.

    The same ``schema`` and ``candidate`` always produce the same result.
    """

    def check_schema(self, schema: Mapping[str, Any]) -> None:
        """Raise :class:`InvalidSchemaError` when ``schema`` is not valid JSON Schema."""
        if not isinstance(schema, Mapping):
            raise InvalidSchemaError(f"Schema must be a mapping, got {type(schema).__name__}")
        try:
            Draft202012Validator.check_schema(thaw(schema))
        except SchemaError as exc:
            raise InvalidSchemaError(f"Invalid JSON Schema: {exc.message}") from exc

    def apply_defaults(self, schema: Mapping[str, Any], candidate: Mapping[str, Any]) -> Dict[str, Any]:
        """Return a copy of ``candidate`` with schema ``default`` values filled in.

        Only missing properties are filled. Nested objects are visited when
        present in the candidate or created by their own default, and
        ``allOf`` branches contribute their ``properties``. Conditional
        branches never contribute defaults.
        """
        result = thaw(candidate)
        _fill_defaults(schema, result)
        return result

    def validate(self, schema: Mapping[str, Any], candidate: Any) -> ValidationResult:
        """Validate ``candidate`` and collect every issue, sorted by ``(path, message)``."""
        plain_schema = thaw(schema)
        validator = Draft202012Validator(
            plain_schema, format_checker=Draft202012Validator.FORMAT_CHECKER
        )
        issues = [_to_issue(plain_schema, err) for err in validator.iter_errors(thaw(candidate))]
        issues.sort(key=lambda issue: (issue.path, issue.message))
        return ValidationResult(valid=not issues, errors=tuple(issues))


def load_schema(schema_name: str) -> Dict[str, Any]:
    """Load a bundled schema (YAML) from ``strata.data/schemas``.

    Automatically appends ``.schema.yaml`` if no extension is present.

    Raises:
        FileNotFoundError: If schema file doesn't exist.
        ValueError: If schema is not a YAML mapping.
    """
    lowered = schema_name.lower()
    if not (lowered.endswith(".yaml") or lowered.endswith(".yml")):
        schema_name = f"{schema_name}.schema.yaml"

    path = get_data_path("schemas", schema_name)
    if not path.exists():
        raise FileNotFoundError(f"Schema not found: {schema_name}\nSearched:\n- {path.parent}")

    schema = read_yaml("schemas", schema_name)
    if not isinstance(schema, dict):
        raise ValueError(f"Schema must be a YAML mapping, got {type(schema).__name__}")
    return copy.deepcopy(schema)


__all__ = [
    "SCHEMA_KIND",
    "CROSS_FIELD_KIND",
    "ValidationIssue",
    "ValidationResult",
    "SchemaValidator",
    "load_schema",
]
