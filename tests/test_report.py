"""Aggregation and filter tests."""

from __future__ import annotations

import pytest

from baseline_scan.models import ClassifiedFeature
from baseline_scan.report import (
    FeatureFilter,
    Report,
    Summary,
    build_report,
    group_by_file,
)


def test_summary_counts_statuses() -> None:
    summary = _report().summary
    assert summary == Summary(baseline=3, non_baseline=1)
    assert summary.total == 4
    assert summary.to_dict() == {"baseline": 3, "non_baseline": 1}


def test_css_file_type_filter_keeps_matching_subset_and_recomputes_summary() -> None:
    report = _report()
    filtered = FeatureFilter(file_type="css").apply(report)
    assert [item.file for item in filtered.features] == ["b.css", "b.css"]
    assert filtered.summary == Summary(baseline=1, non_baseline=1)
    assert len(report) == 4


def test_exact_name_filter_is_case_insensitive() -> None:
    filtered = FeatureFilter(name="abortcontroller").apply(_report())
    assert [item.display_name for item in filtered.features] == ["AbortController"]


def test_exact_name_filter_does_not_match_substrings() -> None:
    assert FeatureFilter(name="fetch").apply(_report()).features == (
        _feature("fetch", "a.js", 2),
    )
    assert FeatureFilter(name="abort").apply(_report()).features == ()


def test_substring_name_filter() -> None:
    filtered = FeatureFilter(name="ABORT", name_mode="substring").apply(_report())
    assert [item.display_name for item in filtered.features] == ["AbortController"]


def test_filters_combine() -> None:
    feature_filter = FeatureFilter(name="gap", file_type="js")
    assert feature_filter.apply(_report()).features == ()


def test_empty_filter_returns_same_report() -> None:
    report = _report()
    assert FeatureFilter().is_empty
    assert FeatureFilter().apply(report) is report


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (None, FeatureFilter()),
        ("", FeatureFilter()),
        ("js", FeatureFilter(file_type="js")),
        ("CSS", FeatureFilter(file_type="css")),
        ("fetch", FeatureFilter(name="fetch")),
    ],
)
def test_from_cli_value(value: str | None, expected: FeatureFilter) -> None:
    assert FeatureFilter.from_cli_value(value) == expected


def test_invalid_filter_values_raise() -> None:
    with pytest.raises(ValueError, match="file type"):
        FeatureFilter(file_type="ts")  # type: ignore[arg-type]
    with pytest.raises(ValueError, match="name mode"):
        FeatureFilter(name_mode="regex")  # type: ignore[arg-type]


def test_group_by_file_keeps_first_seen_order() -> None:
    grouped = group_by_file(_report())
    assert list(grouped) == ["a.js", "b.css"]
    assert [item.display_name for item in grouped["a.js"]] == ["AbortController", "fetch"]


def test_report_to_dict() -> None:
    report = Report(features=(_feature("gap", "b.css", 4),))
    assert report.to_dict() == {
        "summary": {"baseline": 1, "non_baseline": 0},
        "features": [{"name": "gap", "status": "baseline", "file": "b.css", "line": 4}],
    }


def _report() -> Report:
    return build_report(
        [
            _feature("AbortController", "a.js", 1),
            _feature("fetch", "a.js", 2),
            _feature(":has", "b.css", 1),
            _feature("subgrid", "b.css", 3, status="non-baseline"),
        ]
    )


def _feature(name: str, file: str, line: int = 1, *, status: str = "baseline") -> ClassifiedFeature:
    return ClassifiedFeature(
        display_name=name,
        feature_key=name,
        line=line,
        file=file,
        status=status,  # type: ignore[arg-type]
    )
