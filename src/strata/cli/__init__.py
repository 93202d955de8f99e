"""
strata CLI package.

Commands are auto-discovered from ``strata/cli/commands/*.py``; each module
exposes ``SUMMARY``, ``register_args(parser)`` and ``main(args) -> int``.

Framework utilities for building CLI commands:
- _output: Output formatting (JSON/text modes)
- _args: Common argument registration helpers
- _utils: Engine construction shared by commands
"""
from ._args import (
    add_defaults_path_flag,
    add_env_arg,
    add_json_flag,
    add_manifest_arg,
    add_verbose_flag,
)
from ._output import OutputFormatter
from ._utils import build_engine, get_defaults_cache

__all__ = [
    "OutputFormatter",
    "add_defaults_path_flag",
    "add_env_arg",
    "add_json_flag",
    "add_manifest_arg",
    "add_verbose_flag",
    "build_engine",
    "get_defaults_cache",
]
