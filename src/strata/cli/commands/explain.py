"""strata explain command.

SUMMARY: Show which configuration layer supplied each value of a component.
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
from strata.core.exceptions import StrataError
from strata.core.manifest.context import build_context
from strata.core.manifest.loader import load_manifest
from strata.core.utils.frozen import thaw

SUMMARY = "Explain how a component's configuration was assembled from its layers"


def register_args(parser: argparse.ArgumentParser) -> None:
    add_manifest_arg(parser)
    add_env_arg(parser)
    parser.add_argument("--component", "-c", required=True, help="Component name")
    add_defaults_path_flag(parser)
    add_json_flag(parser)


def main(args: argparse.Namespace) -> int:
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))

    try:
        manifest = load_manifest(args.manifest)
        spec = manifest.component(args.component)
        if spec is None:
            formatter.error(
                f"Component '{args.component}' is not declared. "
                f"Declared: {', '.join(manifest.component_names())}",
                error_code="unknown_component",
            )
            return 1
        engine = build_engine(args)
        context = build_context(manifest, args.env)
        descriptor = engine.registry.get(spec.type, component=spec.name)
        summary = engine.config_builder.explain(
            spec,
            context,
            descriptor,
            environment=manifest.environments[args.env],
            patches=manifest.patches,
        )
    except FileNotFoundError as exc:
        formatter.error(exc, error_code="not_found")
        return 1
    except StrataError as exc:
        formatter.error(exc, error_code="explain_failed")
        return 1

    lines = [f"{spec.name} [{spec.type}] in {args.env} ({context.compliance_framework})", "", "Values:"]
    for path, layer in sorted(summary.sources.items()):
        lines.append(f"  {path}  <- {layer}")
    if summary.conflicts:
        lines.append("")
        lines.append("Overridden values:")
        for conflict in summary.conflicts:
            chain = ", ".join(f"{layer}={thaw(value)!r}" for layer, value in conflict.values)
            lines.append(f"  {conflict.path}: {chain} (winner: {conflict.winner})")

    formatter.success(summary.to_dict(), "\n".join(lines))
    return 0
