"""CLI entrypoint for baseline-scan."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Annotated

import click
import typer

from baseline_scan import __version__
from baseline_scan.config import AppConfig, default_config_template, load_app_config
from baseline_scan.output import (
    REPORT_FORMATS,
    load_report,
    render_human,
    render_report,
    write_report,
)
from baseline_scan.registry import FeatureRegistry, RegistryError, load_registry
from baseline_scan.report import FILE_TYPES, FeatureFilter
from baseline_scan.rules import DetectionRule, build_rules, list_rule_info
from baseline_scan.scanner import scan_directory
from baseline_scan.viewer import render_view, viewer_filter

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="baseline-scan",
    no_args_is_help=True,
    help="Scan JS/CSS sources for web-platform features and report their Baseline status.",
)

LEVEL_COLORS = {logging.ERROR: "red", logging.WARNING: "yellow"}


class _EchoHandler(logging.Handler):
    """Send log records to stderr through typer."""

    def emit(self, record: logging.LogRecord) -> None:
        message = self.format(record)
        typer.echo(click.style(message, fg=LEVEL_COLORS.get(record.levelno)), err=True)


def version_callback(value: bool) -> None:
    """Print version and exit when --version is provided."""
    if value:
        typer.echo(__version__)
        raise typer.Exit()


@app.callback()
def main_callback(
    version: Annotated[
        bool,
        typer.Option("--version", help="Show version and exit.", callback=version_callback),
    ] = False,
) -> None:
    """Root command callback."""
    _ = version


@app.command("scan")
def scan_command(
    path: Annotated[Path, typer.Argument(help="Folder to scan.")],
    output: Annotated[
        Path | None, typer.Option("--output", "-o", help="Write the report to this file.")
    ] = None,
    verbose: Annotated[
        bool, typer.Option("--verbose", "-v", help="Log every visited node and detection.")
    ] = False,
    filter_value: Annotated[
        str | None,
        typer.Option("--filter", "-f", help="Feature name (exact) or file type: js|css."),
    ] = None,
    report_format: Annotated[
        str | None,
        typer.Option("--report-format", "-r", help="Report format: json|csv.", show_default="json"),
    ] = None,
    registry: Annotated[
        Path | None,
        typer.Option("--registry", help="Path to a web-features data.json file."),
    ] = None,
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Path to config TOML file."),
    ] = None,
) -> None:
    """Scan a folder and report detected features."""
    root = path.resolve()
    if not root.is_dir():
        raise typer.BadParameter(f"Not a directory: {root}", param_hint="PATH")

    _configure_logging(verbose)
    app_config = _load_config_or_raise(root, config_file)
    resolved_format = _choice_or_default(
        value=report_format,
        default=app_config.report_format,
        allowed=set(REPORT_FORMATS),
        field_name="--report-format",
    )
    feature_filter = FeatureFilter.from_cli_value(filter_value)
    rules = _build_configured_rules_or_raise(app_config)
    support_registry = _load_registry_or_raise(registry or app_config.registry_path(root))

    result = scan_directory(
        root,
        registry=support_registry,
        rules=rules,
        file_type=feature_filter.file_type,
        exclude=app_config.exclude,
        verbose=verbose,
    )
    if not result.files:
        kind = "JS/CSS" if feature_filter.file_type == "all" else feature_filter.file_type.upper()
        typer.echo(f"No {kind} files found in {root}")
        return
    if result.errors:
        logger.warning(
            "Skipped %d of %d file(s) with errors.", len(result.errors), len(result.files)
        )

    report = feature_filter.apply(result.report)
    if not report.features:
        typer.echo("No supported features detected.")
        return

    output_path = output
    if output_path is None and app_config.output is not None:
        output_path = root / app_config.output
    if output_path is None:
        typer.echo(render_report(report, resolved_format))
        return

    typer.echo(render_human(report))
    try:
        write_report(report, output_path, resolved_format)
    except OSError as exc:
        logger.error("Error saving report to %s: %s", output_path, exc)
        return
    typer.echo(f"{resolved_format.upper()} report saved to {output_path}")


@app.command("view")
def view_command(
    report_path: Annotated[
        Path | None,
        typer.Argument(help="JSON report written by scan.", show_default="report.json"),
    ] = None,
    feature: Annotated[
        str | None, typer.Option(help="Show features whose name contains this text.")
    ] = None,
    file_type: Annotated[str, typer.Option(help="File type: all|js|css.")] = "all",
    by_file: Annotated[bool, typer.Option("--by-file", help="Add a per-file breakdown.")] = False,
    export: Annotated[
        str | None, typer.Option(help="Export the filtered view: json|csv.")
    ] = None,
    out: Annotated[Path | None, typer.Option(help="Export destination.")] = None,
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Path to config TOML file."),
    ] = None,
) -> None:
    """Show a filtered table and status chart for a saved report."""
    app_config = _load_config_or_raise(Path("."), config_file)
    resolved_file_type = _choice_or_default(
        value=file_type,
        default="all",
        allowed=set(FILE_TYPES),
        field_name="--file-type",
    )
    resolved_export = None
    if export is not None:
        resolved_export = _choice_or_default(
            value=export,
            default="json",
            allowed=set(REPORT_FORMATS),
            field_name="--export",
        )
        if out is None:
            raise typer.BadParameter("--export requires --out.", param_hint="--out")

    source = report_path or Path(app_config.viewer.report)
    try:
        report = load_report(source)
    except OSError as exc:
        raise typer.BadParameter(f"Failed to load report: {exc}", param_hint="REPORT") from exc
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="REPORT") from exc

    feature_filter = viewer_filter(feature, resolved_file_type)  # type: ignore[arg-type]
    typer.echo(render_view(report, feature_filter, by_file=by_file))

    if resolved_export is not None and out is not None:
        filtered = feature_filter.apply(report)
        try:
            write_report(filtered, out, resolved_export)
        except OSError as exc:
            typer.echo(click.style(f"Error exporting view to {out}: {exc}", fg="red"), err=True)
            raise typer.Exit(code=1) from exc
        typer.echo(f"Exported {len(filtered)} feature(s) to {out}")


@app.command("rules")
def rules_command(
    root: Annotated[Path, typer.Option(help="Project root holding the config.")] = Path("."),
    format: Annotated[str, typer.Option(help="Output format: human|json.")] = "human",
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Path to config TOML file."),
    ] = None,
) -> None:
    """List the detection catalog and whether each rule is active."""
    as_json = _wants_json(format)
    app_config = _load_config_or_raise(root, config_file)
    active_ids = {rule.rule_id for rule in _build_configured_rules_or_raise(app_config)}
    catalog = [
        {
            "rule_id": info.rule_id,
            "feature_key": info.feature_key,
            "name": info.display_name,
            "dialect": info.dialect,
            "description": info.description,
            "enabled": info.rule_id in active_ids,
        }
        for info in list_rule_info()
    ]

    if as_json:
        payload = {"rules": catalog, "meta": {"config_source": app_config.source}}
        typer.echo(json.dumps(payload, sort_keys=True))
        return

    typer.echo("Available rules:")
    for entry in catalog:
        state = "enabled" if entry["enabled"] else "disabled"
        typer.echo(
            f"- {entry['rule_id']} [{state}] {entry['name']} -> {entry['feature_key']}: "
            f"{entry['description']}"
        )


@app.command("config")
def config_command(
    root: Annotated[Path, typer.Option(help="Project root holding the config.")] = Path("."),
    format: Annotated[str, typer.Option(help="Output format: human|json.")] = "human",
    config_file: Annotated[
        Path | None,
        typer.Option("--config", help="Path to config TOML file."),
    ] = None,
) -> None:
    """Show the configuration a scan in ROOT would use."""
    as_json = _wants_json(format)
    app_config = _load_config_or_raise(root, config_file)
    payload = app_config.to_dict()
    payload["active_rule_ids"] = [
        rule.rule_id for rule in _build_configured_rules_or_raise(app_config)
    ]

    if as_json:
        typer.echo(json.dumps(payload, sort_keys=True))
        return

    rules = payload["rules"]
    entries = {
        "source": payload["source"] or "defaults",
        "report_format": payload["report_format"],
        "output": payload["output"],
        "registry": payload["registry"] or "bundled",
        "exclude": payload["exclude"],
        "rules.enable": rules["enable"],
        "rules.disable": rules["disable"],
        "viewer.report": payload["viewer"]["report"],
        "active_rule_ids": payload["active_rule_ids"],
    }
    typer.echo("Resolved configuration:")
    for key, value in entries.items():
        typer.echo(f"- {key}: {value}")


@app.command("config-init")
def config_init_command(
    out: Annotated[Path, typer.Option(help="Where to write the starter config.")] = Path(
        ".baseline-scan.toml"
    ),
    force: Annotated[
        bool,
        typer.Option("--force", help="Replace an existing file."),
    ] = False,
) -> None:
    """Write a starter .baseline-scan.toml."""
    target = out.resolve()
    if target.exists() and not force:
        raise typer.BadParameter(
            f"Refusing to overwrite existing file: {target}. Use --force to overwrite.",
            param_hint="--out",
        )
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(default_config_template(), encoding="utf-8")
    typer.echo(f"Wrote starter config: {target}")


def main() -> None:
    app()


def _wants_json(output_format: str) -> bool:
    lowered = output_format.lower()
    if lowered not in {"human", "json"}:
        raise typer.BadParameter("format must be one of: human, json", param_hint="--format")
    return lowered == "json"


def _configure_logging(verbose: bool) -> None:
    package_logger = logging.getLogger("baseline_scan")
    for handler in list(package_logger.handlers):
        if isinstance(handler, _EchoHandler):
            package_logger.removeHandler(handler)
    package_logger.addHandler(_EchoHandler())
    package_logger.setLevel(logging.INFO if verbose else logging.WARNING)


def _load_config_or_raise(root: Path, config_file: Path | None = None) -> AppConfig:
    try:
        return load_app_config(root, config_path=config_file)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="config") from exc


def _build_configured_rules_or_raise(app_config: AppConfig) -> list[DetectionRule]:
    try:
        return build_rules(
            enabled_rule_ids=app_config.rule_enable,
            disabled_rule_ids=app_config.rule_disable,
        )
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="config.rules") from exc


def _load_registry_or_raise(path: Path | None) -> FeatureRegistry:
    try:
        return load_registry(path)
    except RegistryError as exc:
        raise typer.BadParameter(str(exc), param_hint="--registry") from exc


def _choice_or_default(
    *,
    value: str | None,
    default: str,
    allowed: set[str],
    field_name: str,
) -> str:
    resolved = (value or default).lower()
    if resolved not in allowed:
        choices = ", ".join(sorted(allowed))
        raise typer.BadParameter(f"{field_name} must be one of: {choices}", param_hint=field_name)
    return resolved
