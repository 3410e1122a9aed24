"""Terminal viewer for a precomputed report.

Filtering is recomputed from the unfiltered report on every call; nothing is
cached between views.
"""

from __future__ import annotations

import click

from baseline_scan.output import STATUS_COLORS, style_status
from baseline_scan.report import FeatureFilter, FileType, Report, Summary, group_by_file

BAR_WIDTH = 40
BAR_CHAR = "█"


def viewer_filter(feature: str | None, file_type: FileType) -> FeatureFilter:
    """Feature names match as a case-insensitive substring, as typed."""
    return FeatureFilter(name=feature or None, name_mode="substring", file_type=file_type)


def render_chart(summary: Summary, *, width: int = BAR_WIDTH) -> str:
    """Render the baseline vs non-baseline counts as two horizontal bars."""
    peak = max(summary.baseline, summary.non_baseline, 1)
    rows = [
        ("Baseline", summary.baseline, "baseline"),
        ("Non-Baseline", summary.non_baseline, "non-baseline"),
    ]
    label_width = max(len(label) for label, _, _ in rows)
    lines: list[str] = []
    for label, count, status in rows:
        length = round(count / peak * width)
        if count and not length:
            length = 1
        bar = click.style(BAR_CHAR * length, fg=STATUS_COLORS[status])
        lines.append(f"{label.ljust(label_width)} {bar} {count}")
    return "\n".join(lines)


def render_table(report: Report, *, include_file: bool = True) -> str:
    headers = ["Feature", "Status"] + (["File", "Line"] if include_file else [])
    rows = [
        [feature.display_name, feature.status]
        + ([feature.file, str(feature.line)] if include_file else [])
        for feature in report.features
    ]
    widths = [len(header) for header in headers]
    for row in rows:
        widths = [max(width, len(cell)) for width, cell in zip(widths, row)]

    lines = [
        click.style("  ".join(h.ljust(w) for h, w in zip(headers, widths)), bold=True),
        "  ".join("-" * width for width in widths),
    ]
    for row in rows:
        cells = [cell.ljust(width) for cell, width in zip(row, widths)]
        # Pad before styling so ANSI codes do not break alignment.
        cells[1] = style_status(row[1]) + " " * (widths[1] - len(row[1]))
        lines.append("  ".join(cells).rstrip())
    return "\n".join(lines)


def render_view(report: Report, feature_filter: FeatureFilter, *, by_file: bool = False) -> str:
    """Render the filtered summary, chart, table and optional per-file breakdown."""
    filtered = feature_filter.apply(report)
    summary = filtered.summary
    lines = [
        click.style("Baseline Compatibility Report", bold=True),
        f"Filtered Summary: {summary.baseline} Baseline, {summary.non_baseline} Non-Baseline",
        "",
        render_chart(summary),
        "",
    ]
    if not filtered.features:
        lines.append("No features match the current filters.")
        return "\n".join(lines)

    lines.append(click.style("Filtered Feature Overview", bold=True))
    lines.append(render_table(filtered))
    if by_file:
        lines.append("")
        lines.append(click.style("Per-File Feature Breakdown (Filtered)", bold=True))
        for file_path, features in group_by_file(filtered).items():
            lines.append("")
            lines.append(click.style(file_path, underline=True))
            lines.append(render_table(Report(features=tuple(features)), include_file=False))
    return "\n".join(lines)
