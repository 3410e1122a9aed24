"""Report serialization tests."""

from __future__ import annotations

import csv
import io
import json
from pathlib import Path

import click
import pytest

from baseline_scan.models import ClassifiedFeature
from baseline_scan.output import (
    load_report,
    parse_report_payload,
    render_csv,
    render_human,
    render_json,
    render_report,
    write_report,
)
from baseline_scan.report import FeatureFilter, Report


def test_render_json_shape() -> None:
    payload = json.loads(render_json(_report()))
    assert payload == {
        "summary": {"baseline": 1, "non_baseline": 1},
        "features": [
            {"name": "AbortController", "status": "baseline", "file": "a.js", "line": 1},
            {"name": "subgrid", "status": "non-baseline", "file": "css/b.css", "line": 3},
        ],
    }
    assert render_json(_report()).startswith('{\n  "summary"')


def test_render_csv_quotes_every_field() -> None:
    output = render_csv(_report())
    lines = output.splitlines()
    assert lines[0] == '"name","status","file","line"'
    assert lines[1] == '"AbortController","baseline","a.js","1"'
    rows = list(csv.DictReader(io.StringIO(output)))
    assert [row["status"] for row in rows] == ["baseline", "non-baseline"]


def test_csv_and_json_exports_of_a_filtered_report_agree() -> None:
    report = Report(
        features=(
            *_report().features,
            ClassifiedFeature("gap", "flexbox-gap", 7, "css/b.css", "baseline"),
            ClassifiedFeature("fetch", "fetch", 2, "a.js", "baseline"),
        )
    )
    filtered = FeatureFilter(file_type="css").apply(report)

    from_csv = [
        (row["name"], row["status"], row["file"], int(row["line"]))
        for row in csv.DictReader(io.StringIO(render_csv(filtered)))
    ]
    from_json = [
        (item["name"], item["status"], item["file"], item["line"])
        for item in json.loads(render_json(filtered))["features"]
    ]
    assert from_csv == from_json
    assert from_csv == [
        ("subgrid", "non-baseline", "css/b.css", 3),
        ("gap", "baseline", "css/b.css", 7),
    ]


def test_render_csv_empty_report_has_header_only() -> None:
    assert render_csv(Report()) == '"name","status","file","line"\n'


def test_render_report_rejects_unknown_format() -> None:
    with pytest.raises(ValueError, match="report format"):
        render_report(_report(), "xml")


def test_render_human_groups_by_file() -> None:
    output = click.unstyle(render_human(_report()))
    assert "Detected features: 2" in output
    assert "1 baseline, 1 non-baseline" in output
    assert "- a.js" in output
    assert "    subgrid (non-baseline) line 3" in output


def test_write_then_load_report(tmp_path: Path) -> None:
    path = tmp_path / "report.json"
    write_report(_report(), path, "json")
    loaded = load_report(path)
    assert [(item.display_name, item.status, item.file, item.line) for item in loaded.features] == [
        ("AbortController", "baseline", "a.js", 1),
        ("subgrid", "non-baseline", "css/b.css", 3),
    ]


def test_load_report_rejects_invalid_json(tmp_path: Path) -> None:
    path = tmp_path / "report.json"
    path.write_text("[", encoding="utf-8")
    with pytest.raises(ValueError, match="Invalid JSON report"):
        load_report(path)


def test_parse_report_payload_validates_shape() -> None:
    with pytest.raises(ValueError, match="'features' list"):
        parse_report_payload({"summary": {}})
    with pytest.raises(ValueError, match="status"):
        parse_report_payload({"features": [{"name": "gap", "status": "unknown"}]})
    with pytest.raises(ValueError, match="must be an object"):
        parse_report_payload({"features": ["gap"]})


def test_parse_report_payload_defaults_missing_line() -> None:
    report = parse_report_payload({"features": [{"name": "gap", "status": "baseline"}]})
    assert report.features[0].line == 1
    assert report.features[0].file == ""


def _report() -> Report:
    return Report(
        features=(
            ClassifiedFeature("AbortController", "aborting", 1, "a.js", "baseline"),
            ClassifiedFeature("subgrid", "subgrid", 3, "css/b.css", "non-baseline"),
        )
    )
