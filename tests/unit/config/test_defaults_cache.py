from __future__ import annotations

import os
from pathlib import Path

import pytest

from helpers.manifests import write_framework
from strata.core.config.cache import DEFAULTS_PATH_ENV, FrameworkDefaultsCache, default_search_paths
from strata.core.exceptions import UnknownComplianceFrameworkError


def test_bundled_frameworks_are_available(defaults_cache: FrameworkDefaultsCache) -> None:
    for framework in ("commercial", "fedramp-moderate", "fedramp-high"):
        document = defaults_cache.get(framework)
        assert document["framework"] == framework
        assert "s3-bucket" in document["components"]


def test_defaults_for_returns_mutable_copy(defaults_cache: FrameworkDefaultsCache) -> None:
    first = defaults_cache.defaults_for("fedramp-high", "s3-bucket")
    first["versioning"] = "changed"
    first.setdefault("encryption", {})["type"] = "changed"

    second = defaults_cache.defaults_for("fedramp-high", "s3-bucket")
    assert second["versioning"] is True
    assert second["encryption"]["type"] != "changed"


def test_defaults_for_unknown_type_is_empty(defaults_cache: FrameworkDefaultsCache) -> None:
    assert defaults_cache.defaults_for("commercial", "not-a-type") == {}


def test_cached_document_is_frozen(defaults_cache: FrameworkDefaultsCache) -> None:
    document = defaults_cache.get("commercial")
    with pytest.raises(TypeError):
        document["components"]["s3-bucket"]["publicAccessBlock"] = False  # type: ignore[index]


def test_unknown_framework_lists_searched_directories(overlay_dir: Path) -> None:
    cache = FrameworkDefaultsCache([overlay_dir])
    with pytest.raises(UnknownComplianceFrameworkError) as exc_info:
        cache.get("pci")

    err = exc_info.value
    assert err.framework == "pci"
    assert str(overlay_dir) in err.searched
    assert not cache.is_cached("pci")


def test_overlay_deep_merges_over_bundled(overlay_dir: Path) -> None:
    write_framework(overlay_dir, "commercial", {"s3-bucket": {"encryption": {"kmsKeyArn": "arn:key"}}})
    cache = FrameworkDefaultsCache([overlay_dir])

    s3 = cache.defaults_for("commercial", "s3-bucket")
    assert s3["encryption"] == {"type": "AES256", "kmsKeyArn": "arn:key"}
    assert s3["publicAccessBlock"] is True


def test_overlay_only_framework(overlay_dir: Path) -> None:
    write_framework(overlay_dir, "internal", {"widget": {"X": 9}})
    cache = FrameworkDefaultsCache([overlay_dir], include_bundled=False)
    assert cache.defaults_for("internal", "widget") == {"X": 9}

    with pytest.raises(UnknownComplianceFrameworkError):
        cache.get("commercial")


def test_later_search_path_wins(tmp_path: Path) -> None:
    low = tmp_path / "low"
    high = tmp_path / "high"
    low.mkdir()
    high.mkdir()
    write_framework(low, "internal", {"widget": {"X": 1, "Y": 1}})
    write_framework(high, "internal", {"widget": {"X": 2}})

    cache = FrameworkDefaultsCache([low, high], include_bundled=False)
    assert cache.defaults_for("internal", "widget") == {"X": 2, "Y": 1}


def test_env_var_supplies_search_paths(
    overlay_dir: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    other = tmp_path / "other"
    monkeypatch.setenv(DEFAULTS_PATH_ENV, os.pathsep.join([str(overlay_dir), str(other)]))

    assert default_search_paths() == [overlay_dir, other]
    assert FrameworkDefaultsCache().search_paths == (overlay_dir, other)


def test_document_is_loaded_once_until_reset(overlay_dir: Path) -> None:
    path = write_framework(overlay_dir, "internal", {"widget": {"X": 1}})
    cache = FrameworkDefaultsCache([overlay_dir], include_bundled=False)

    assert cache.defaults_for("internal", "widget") == {"X": 1}
    assert cache.is_cached("internal")

    write_framework(overlay_dir, "internal", {"widget": {"X": 5}})
    assert cache.defaults_for("internal", "widget") == {"X": 1}

    cache.reset()
    assert not cache.is_cached("internal")
    assert cache.defaults_for("internal", "widget") == {"X": 5}
    assert path.exists()


def test_malformed_overlay_raises(overlay_dir: Path) -> None:
    (overlay_dir / "internal.yaml").write_text("components: [1, 2]\n", encoding="utf-8")
    cache = FrameworkDefaultsCache([overlay_dir], include_bundled=False)
    with pytest.raises(ValueError):
        cache.get("internal")
