"""strata plan command.

SUMMARY: Resolve a manifest for one environment and print the plan.
"""

from __future__ import annotations

import argparse

from strata.cli import (
    OutputFormatter,
    add_defaults_path_flag,
    add_env_arg,
    add_json_flag,
    add_manifest_arg,
    build_engine,
)
from strata.core.exceptions import ResolutionFailedError, StrataError
from strata.core.manifest.loader import load_manifest

SUMMARY = "Resolve a manifest for one environment and print the ready-to-synthesize plan"


def register_args(parser: argparse.ArgumentParser) -> None:
    add_manifest_arg(parser)
    add_env_arg(parser)
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

    engine = build_engine(args)
    try:
        result = engine.resolve(manifest, args.env)
    except ResolutionFailedError as exc:
        formatter.error(exc, error_code="resolution_failed")
        return 1

    formatter.success(result.to_dict(), result.render_report())
    return 0
