"""strata components command.

SUMMARY: List registered component types.
"""

from __future__ import annotations

import argparse

from strata.cli import OutputFormatter, add_json_flag
from strata.components import default_registry

SUMMARY = "List registered component types and their capability contracts"


def register_args(parser: argparse.ArgumentParser) -> None:
    add_json_flag(parser)


def main(args: argparse.Namespace) -> int:
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))
    registry = default_registry()
    descriptors = registry.descriptors()

    lines = [f"{len(descriptors)} component type(s):"]
    for descriptor in descriptors:
        lines.append(f"  {descriptor.type}: {descriptor.description}")
        if descriptor.provided_capabilities:
            lines.append(f"    provides: {', '.join(descriptor.provided_capabilities)}")
        if descriptor.required_capabilities:
            lines.append(f"    requires: {', '.join(descriptor.required_capabilities)}")

    formatter.success({"components": [d.to_dict() for d in descriptors]}, "\n".join(lines))
    return 0
