"""strata core library package.

Configuration resolution (``config``), schema validation (``schemas``),
the component registry (``registries``), manifest handling (``manifest``)
and the dependency/binding resolver (``resolver``).
"""

from . import exceptions  # noqa: F401

__all__ = ["exceptions"]
