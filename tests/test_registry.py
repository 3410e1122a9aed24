"""Feature registry tests."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from baseline_scan.registry import FeatureRegistry, RegistryError, load_registry


def test_from_mapping_accepts_full_document_and_bare_mapping() -> None:
    entry = {"kind": "feature", "status": {"baseline": "high"}}
    full = FeatureRegistry.from_mapping({"features": {"fetch": entry}})
    bare = FeatureRegistry.from_mapping({"fetch": entry})
    assert full.baseline_tier("fetch") == "high"
    assert bare.baseline_tier("fetch") == "high"
    assert "fetch" in full
    assert len(bare) == 1


def test_moved_entries_redirect_to_their_target() -> None:
    registry = FeatureRegistry.from_mapping(
        {
            "old-name": {"kind": "moved", "redirect_target": "new-name"},
            "new-name": {"kind": "feature", "status": {"baseline": "low"}},
        }
    )
    assert registry.baseline_tier("old-name") == "low"
    assert registry.lookup("old-name") == registry.lookup("new-name")


def test_redirect_loop_resolves_to_none() -> None:
    registry = FeatureRegistry.from_mapping(
        {
            "a": {"kind": "moved", "redirect_target": "b"},
            "b": {"kind": "moved", "redirect_target": "a"},
        }
    )
    assert registry.lookup("a") is None
    assert registry.baseline_tier("a") is None


def test_non_baseline_status_false_has_no_tier() -> None:
    registry = FeatureRegistry.from_mapping(
        {"feature": {"kind": "feature", "status": {"baseline": False}}}
    )
    assert registry.baseline_tier("feature") is None


def test_bundled_snapshot_covers_catalog_keys() -> None:
    registry = load_registry()
    assert registry.source == "bundled:web-features.json"
    for key in ("aborting", "fetch", "flexbox-gap", "nesting", "subgrid", "container-queries"):
        assert key in registry
    assert registry.baseline_tier("css-container-queries") == "high"
    assert registry.baseline_tier("has") == "low"


def test_from_path_reads_file(tmp_path: Path) -> None:
    path = tmp_path / "data.json"
    path.write_text(
        json.dumps({"features": {"gap": {"kind": "feature", "status": {"baseline": "high"}}}}),
        encoding="utf-8",
    )
    registry = load_registry(path)
    assert registry.baseline_tier("gap") == "high"
    assert registry.source == str(path)


def test_invalid_json_raises_registry_error(tmp_path: Path) -> None:
    path = tmp_path / "data.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(RegistryError, match="Invalid JSON"):
        load_registry(path)


def test_missing_file_raises_registry_error(tmp_path: Path) -> None:
    with pytest.raises(RegistryError, match="Cannot read registry file"):
        load_registry(tmp_path / "missing.json")


def test_non_object_features_rejected() -> None:
    with pytest.raises(RegistryError):
        FeatureRegistry.from_mapping({"features": ["fetch"]})
