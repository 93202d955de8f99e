"""
strata - layered configuration resolution and component binding

strata turns a service manifest into an ordered, fully-resolved set of
infrastructure components: compliance-tier defaults are merged with manifest
overrides, configs are validated against their component schemas, and
declared capability bindings are checked and turned into access grants.
"""

__version__ = "0.4.0"
__all__ = ["__version__"]
