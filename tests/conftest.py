import sys
from pathlib import Path

import pytest

# Keep the repository free of Python bytecode and __pycache__ artifacts during tests.
sys.dont_write_bytecode = True

TESTS_ROOT = Path(__file__).resolve().parent
REPO_ROOT = TESTS_ROOT.parent
SRC_ROOT = REPO_ROOT / "src"

# Make src/ importable as 'strata' and tests/ as 'helpers'
for p in (SRC_ROOT, TESTS_ROOT):
    if str(p) not in sys.path:
        sys.path.insert(0, str(p))


from helpers.cache_utils import reset_strata_caches
from helpers.components import make_registry
from strata.core.config.cache import DEFAULTS_PATH_ENV, FrameworkDefaultsCache
from strata.core.registries.components import ComponentRegistry
from strata.core.resolver.engine import ResolverEngine


@pytest.fixture(autouse=True)
def _reset_strata_caches(monkeypatch: pytest.MonkeyPatch) -> None:
    """Ensure all global caches are fresh and no overlay path leaks into a test."""
    monkeypatch.delenv(DEFAULTS_PATH_ENV, raising=False)
    reset_strata_caches()
    yield
    reset_strata_caches()


@pytest.fixture
def defaults_cache() -> FrameworkDefaultsCache:
    """Bundled framework documents only."""
    return FrameworkDefaultsCache(search_paths=[])


@pytest.fixture
def registry() -> ComponentRegistry:
    """Registry holding the fake test component types."""
    return make_registry()


@pytest.fixture
def engine(registry: ComponentRegistry, defaults_cache: FrameworkDefaultsCache) -> ResolverEngine:
    return ResolverEngine(registry, defaults_cache=defaults_cache)


@pytest.fixture
def overlay_dir(tmp_path: Path) -> Path:
    """Empty directory for framework overlay documents."""
    d = tmp_path / "frameworks"
    d.mkdir()
    return d
