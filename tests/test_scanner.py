"""Directory scan tests."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from baseline_scan.registry import FeatureRegistry
from baseline_scan.rules import build_rules
from baseline_scan.scanner import detect_features, discover_files, scan_directory


def test_discover_files_sorts_and_skips_unsupported(tmp_path: Path) -> None:
    _write(tmp_path, "src/z.js", "")
    _write(tmp_path, "a.css", "")
    _write(tmp_path, "README.md", "")
    _write(tmp_path, "types.ts", "")
    assert discover_files(tmp_path) == ["a.css", "src/z.js"]
    assert discover_files(tmp_path, file_type="js") == ["src/z.js"]
    assert discover_files(tmp_path, file_type="css") == ["a.css"]


def test_discover_files_applies_exclude_globs(tmp_path: Path) -> None:
    _write(tmp_path, "node_modules/lib/index.js", "")
    _write(tmp_path, "app.js", "")
    assert discover_files(tmp_path, exclude=["node_modules/*"]) == ["app.js"]


def test_empty_directory_yields_empty_result(tmp_path: Path) -> None:
    result = scan_directory(tmp_path, registry=FeatureRegistry.bundled())
    assert result.files == []
    assert result.features == []
    assert result.errors == []
    assert result.report.summary.total == 0


def test_scan_classifies_in_file_then_detection_order(tmp_path: Path) -> None:
    _write(tmp_path, "b.css", "div:has(p) { gap: 1rem; }\n")
    _write(tmp_path, "a.js", "const c = new AbortController();\nitems.at(-1);\n")
    result = scan_directory(tmp_path, registry=FeatureRegistry.bundled())
    assert [(item.file, item.display_name, item.status) for item in result.features] == [
        ("a.js", "AbortController", "baseline"),
        ("a.js", "Array.prototype.at", "baseline"),
        ("b.css", ":has", "baseline"),
        ("b.css", "gap", "baseline"),
    ]


def test_unparseable_file_is_skipped_and_siblings_still_scanned(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    _write(tmp_path, "a.js", "fetch('/x');\n")
    _write(tmp_path, "broken.js", "}}}\n")
    _write(tmp_path, "c.css", ".x { aspect-ratio: 1; }\n")

    with caplog.at_level(logging.ERROR, logger="baseline_scan"):
        result = scan_directory(tmp_path, registry=FeatureRegistry.bundled())

    assert [item.file for item in result.features] == ["a.js", "c.css"]
    assert [(error.file, error.kind) for error in result.errors] == [("broken.js", "parse")]
    assert "Skipping broken.js" in caplog.text


def test_deeply_nested_stylesheet_does_not_abort_scan(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    _write(tmp_path, "deep.css", ".a{" * 3000 + "gap:1px" + "}" * 3000)
    _write(tmp_path, "ok.css", ".x { aspect-ratio: 1; }\n")

    with caplog.at_level(logging.ERROR, logger="baseline_scan"):
        result = scan_directory(tmp_path, registry=FeatureRegistry.bundled())

    assert [(item.file, item.display_name) for item in result.features] == [
        ("ok.css", "aspect-ratio")
    ]
    assert [(error.file, error.kind) for error in result.errors] == [("deep.css", "parse")]
    assert "deep.css" in caplog.text


def test_undecodable_file_is_recorded_as_read_error(tmp_path: Path) -> None:
    (tmp_path / "binary.js").write_bytes(b"\xff\xfe\x00bad")
    result = scan_directory(tmp_path, registry=FeatureRegistry.bundled())
    assert [(error.file, error.kind) for error in result.errors] == [("binary.js", "read")]


def test_scan_respects_rules_and_file_type(tmp_path: Path) -> None:
    _write(tmp_path, "a.js", "fetch('/x', {});\n")
    _write(tmp_path, "b.css", ".x { gap: 1px; }\n")
    result = scan_directory(
        tmp_path,
        registry=FeatureRegistry.bundled(),
        rules=build_rules(disabled_rule_ids=["js.fetch-init"]),
        file_type="js",
    )
    assert result.files == ["a.js"]
    assert [item.display_name for item in result.features] == ["fetch"]


def test_detect_features_ignores_unsupported_extension() -> None:
    assert detect_features("fetch('/x');", "notes.txt") == []


def _write(root: Path, relative: str, content: str) -> None:
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
