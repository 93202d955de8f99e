"""Manifest builders and writers for tests."""
from __future__ import annotations

import copy
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml


def manifest(
    components: Optional[List[Dict[str, Any]]] = None,
    *,
    binds: Optional[List[Dict[str, Any]]] = None,
    patches: Optional[List[Dict[str, Any]]] = None,
    framework: str = "commercial",
    environments: Optional[Dict[str, Any]] = None,
    **extra: Any,
) -> Dict[str, Any]:
    """Return a minimal valid raw manifest mapping."""
    data: Dict[str, Any] = {
        "service": "orders",
        "owner": "team-payments",
        "complianceFramework": framework,
        "environments": environments
        if environments is not None
        else {"dev": {"region": "us-east-1", "accountId": "111111111111"}},
        "components": components if components is not None else [{"name": "db", "type": "db-postgres"}],
    }
    if binds is not None:
        data["binds"] = binds
    if patches is not None:
        data["patches"] = patches
    data.update(extra)
    return copy.deepcopy(data)


def db_and_api(access: str = "read-write") -> Dict[str, Any]:
    """``db`` (db-postgres) plus ``api`` (api-worker) bound to it."""
    return manifest(
        [
            {"name": "db", "type": "db-postgres"},
            {
                "name": "api",
                "type": "api-worker",
                "binds": [{"to": "db", "capability": "database:postgres", "access": access}],
            },
        ]
    )


def write_manifest(path: Path, data: Dict[str, Any]) -> Path:
    path.write_text(yaml.safe_dump(data, sort_keys=False), encoding="utf-8")
    return path


def write_framework(directory: Path, key: str, components: Dict[str, Any]) -> Path:
    path = directory / f"{key}.yaml"
    path.write_text(
        yaml.safe_dump({"framework": key, "components": components}, sort_keys=False),
        encoding="utf-8",
    )
    return path
