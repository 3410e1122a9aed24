"""Report serialization, loading and console rendering."""

from __future__ import annotations

import csv
import io
import json
from pathlib import Path
from typing import Any

import click

from baseline_scan.models import ClassifiedFeature
from baseline_scan.report import Report, group_by_file

CSV_FIELDS = ("name", "status", "file", "line")
REPORT_FORMATS = ("json", "csv")
STATUS_COLORS = {"baseline": "green", "non-baseline": "red"}


def build_json_payload(report: Report) -> dict[str, Any]:
    """Build the stable report payload shared by the CLI and the viewer."""
    return report.to_dict()


def render_json(report: Report) -> str:
    return json.dumps(build_json_payload(report), indent=2)


def render_csv(report: Report) -> str:
    buffer = io.StringIO()
    writer = csv.DictWriter(
        buffer, fieldnames=list(CSV_FIELDS), quoting=csv.QUOTE_ALL, lineterminator="\n"
    )
    writer.writeheader()
    for feature in report.features:
        writer.writerow(feature.to_dict())
    return buffer.getvalue()


def render_report(report: Report, report_format: str) -> str:
    if report_format == "csv":
        return render_csv(report)
    if report_format == "json":
        return render_json(report)
    choices = ", ".join(REPORT_FORMATS)
    raise ValueError(f"report format must be one of: {choices}")


def write_report(report: Report, path: Path, report_format: str) -> None:
    """Write the report; raises ``OSError`` when the file cannot be written."""
    content = render_report(report, report_format)
    path.write_text(content, encoding="utf-8")


def render_human(report: Report) -> str:
    """Render a compact colorized summary with a per-file breakdown."""
    summary = report.summary
    lines: list[str] = [
        click.style(f"Detected features: {summary.total}", bold=True),
        "  "
        + click.style(f"{summary.baseline} baseline", fg="green")
        + ", "
        + click.style(f"{summary.non_baseline} non-baseline", fg="red"),
    ]
    for file_path, features in group_by_file(report).items():
        lines.append(click.style(f"- {file_path}", bold=True))
        for feature in features:
            status = style_status(feature.status)
            lines.append(f"    {feature.display_name} ({status}) line {feature.line}")
    return "\n".join(lines)


def style_status(status: str) -> str:
    return click.style(status, fg=STATUS_COLORS.get(status))


def load_report(path: Path) -> Report:
    """Load a JSON report written by ``scan``."""
    try:
        loaded = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON report {path}: {exc}") from exc
    return parse_report_payload(loaded)


def parse_report_payload(payload: Any) -> Report:
    if not isinstance(payload, dict) or not isinstance(payload.get("features"), list):
        raise ValueError("Report must be an object with a 'features' list")
    features: list[ClassifiedFeature] = []
    for index, item in enumerate(payload["features"]):
        if not isinstance(item, dict):
            raise ValueError(f"features[{index}] must be an object")
        status = item.get("status")
        if status not in STATUS_COLORS:
            raise ValueError(f"features[{index}].status must be baseline or non-baseline")
        line = item.get("line", 1)
        features.append(
            ClassifiedFeature(
                display_name=str(item.get("name", "")),
                feature_key="",
                line=line if isinstance(line, int) and line > 0 else 1,
                file=str(item.get("file", "")),
                status=status,
            )
        )
    return Report(features=tuple(features))
