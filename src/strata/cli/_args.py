"""Common CLI argument registration utilities."""
from __future__ import annotations

import argparse


def add_json_flag(parser: argparse.ArgumentParser) -> None:
    """Add --json flag for JSON output mode."""
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output as JSON",
    )


def add_verbose_flag(parser: argparse.ArgumentParser) -> None:
    """Add --verbose flag (DEBUG logging)."""
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose (DEBUG) logging",
    )


def add_manifest_arg(parser: argparse.ArgumentParser) -> None:
    """Add the positional service manifest path."""
    parser.add_argument("manifest", help="Path to the service manifest (.yaml, .yml or .json)")


def add_env_arg(parser: argparse.ArgumentParser, required: bool = True) -> None:
    """Add --env (environment name)."""
    parser.add_argument(
        "--env",
        "-e",
        dest="env",
        required=required,
        help="Environment declared in the manifest",
    )


def add_defaults_path_flag(parser: argparse.ArgumentParser) -> None:
    """Add --defaults-path (repeatable framework overlay directory)."""
    parser.add_argument(
        "--defaults-path",
        dest="defaults_path",
        action="append",
        default=None,
        metavar="DIR",
        help="Extra directory with compliance framework overlays "
        "(repeatable; defaults to STRATA_DEFAULTS_PATH)",
    )


__all__ = [
    "add_json_flag",
    "add_verbose_flag",
    "add_manifest_arg",
    "add_env_arg",
    "add_defaults_path_flag",
]
