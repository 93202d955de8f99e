"""Test helper modules for the strata test suite.

- cache_utils: Cache reset utilities for test isolation
- components: Fake component types and registry factory
- manifests: Manifest builders and writers
"""
