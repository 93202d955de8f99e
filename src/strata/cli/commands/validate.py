"""strata validate command.

SUMMARY: Validate a manifest's structure and resolve it for every (or one) environment.
"""

from __future__ import annotations

import argparse
from typing import Any, Dict, List

from strata.cli import (
    OutputFormatter,
    add_defaults_path_flag,
    add_json_flag,
    add_manifest_arg,
    build_engine,
)
from strata.core.exceptions import ResolutionFailedError, StrataError
from strata.core.manifest.loader import load_manifest

SUMMARY = "Validate a manifest and check that it resolves in each environment"


def register_args(parser: argparse.ArgumentParser) -> None:
    add_manifest_arg(parser)
    parser.add_argument(
        "--env",
        "-e",
        dest="env",
        action="append",
        default=None,
        help="Only check this environment (repeatable; default: all declared)",
    )
    add_defaults_path_flag(parser)
    add_json_flag(parser)


def main(args: argparse.Namespace) -> int:
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))

    try:
        manifest = load_manifest(args.manifest)
    except FileNotFoundError as exc:
        formatter.error(exc, error_code="not_found")
        return 1
    except StrataError as exc:
        formatter.error(exc, error_code="invalid_manifest")
        return 1

    environments: List[str] = list(args.env or manifest.environments.keys())
    engine = build_engine(args)
    results: List[Dict[str, Any]] = []
    lines: List[str] = []
    ok = True
    for env in environments:
        try:
            result = engine.resolve(manifest, env)
        except ResolutionFailedError as exc:
            ok = False
            results.append({"environment": env, "valid": False, "error": exc.to_json_error()})
            lines.append(f"✗ {env}: {len(exc.errors)} error(s)")
            lines.extend(f"    - {str(err).splitlines()[0]}" for err in exc.errors)
            continue
        results.append({"environment": env, "valid": True, "order": result.order})
        lines.append(f"✓ {env}: {len(result.ordered_components)} component(s), {len(result.access_grants)} grant(s)")

    data = {"service": manifest.service, "valid": ok, "environments": results}
    header = f"Manifest for service '{manifest.service}' is {'valid' if ok else 'INVALID'}"
    formatter.success(data, "\n".join([header, *lines]), status="success" if ok else "failed")
    return 0 if ok else 1
