"""Configuration loading for baseline-scan.

Lookup order: an explicit ``--config`` file, then ``.baseline-scan.toml`` or
``baseline-scan.toml`` in the scan root, then a ``[tool.baseline_scan]`` (or
``[tool."baseline-scan"]``) table in the root's ``pyproject.toml``.
"""

from __future__ import annotations

import tomllib
from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from baseline_scan.output import REPORT_FORMATS

CONFIG_FILENAMES = (".baseline-scan.toml", "baseline-scan.toml")
PYPROJECT_FILENAME = "pyproject.toml"
PYPROJECT_TOOL_KEYS = ("baseline_scan", "baseline-scan")
DEFAULT_VIEWER_REPORT = "report.json"


@dataclass(slots=True)
class ViewerConfig:
    report: str = DEFAULT_VIEWER_REPORT


@dataclass(slots=True)
class AppConfig:
    """Scan and viewer settings; CLI options take precedence over these."""

    report_format: str = "json"
    output: str | None = None
    registry: str | None = None
    exclude: list[str] = field(default_factory=list)
    rule_enable: list[str] | None = None
    rule_disable: list[str] = field(default_factory=list)
    viewer: ViewerConfig = field(default_factory=ViewerConfig)
    source: str | None = None

    def to_dict(self) -> dict[str, Any]:
        enable = None if self.rule_enable is None else list(self.rule_enable)
        return {
            "report_format": self.report_format,
            "output": self.output,
            "registry": self.registry,
            "exclude": [*self.exclude],
            "rules": {"enable": enable, "disable": [*self.rule_disable]},
            "viewer": {"report": self.viewer.report},
            "source": self.source,
        }

    def registry_path(self, base: Path) -> Path | None:
        """Resolve the configured registry file relative to ``base``."""
        if self.registry is None:
            return None
        path = Path(self.registry)
        return path if path.is_absolute() else base / path


def load_app_config(root: Path, config_path: Path | None = None) -> AppConfig:
    """Return the first config found for ``root``, or defaults."""
    root = root.resolve()
    if config_path is not None:
        explicit = config_path if config_path.is_absolute() else root / config_path
        if not explicit.exists():
            raise ValueError(f"Config file does not exist: {explicit}")
        return _parse_config(_config_table(explicit), source=explicit)

    for candidate in _candidate_files(root):
        table = _config_table(candidate)
        # A pyproject.toml without our tool table does not count as config.
        if candidate.name == PYPROJECT_FILENAME and not table:
            continue
        return _parse_config(table, source=candidate)
    return AppConfig()


def default_config_template() -> str:
    """Return a starter config template."""
    return """\
report_format = "json"
output = "report.json"
# Full web-features data.json; the bundled snapshot is used when unset.
# registry = "node_modules/web-features/data.json"
exclude = ["node_modules/**", "dist/**"]

[rules]
# enable = ["js.aborting", "js.fetch", "css.has"]
disable = []

[viewer]
report = "report.json"
"""


def _candidate_files(root: Path) -> Iterator[Path]:
    for name in (*CONFIG_FILENAMES, PYPROJECT_FILENAME):
        path = root / name
        if path.exists():
            yield path


def _config_table(path: Path) -> dict[str, Any]:
    try:
        with path.open("rb") as handle:
            document = tomllib.load(handle)
    except tomllib.TOMLDecodeError as exc:
        raise ValueError(f"Invalid TOML in {path}: {exc}") from exc

    tool_table = _tool_table(document)
    if tool_table is not None:
        return tool_table
    return {} if path.name == PYPROJECT_FILENAME else document


def _tool_table(document: dict[str, Any]) -> dict[str, Any] | None:
    tools = document.get("tool")
    if not isinstance(tools, dict):
        return None
    return next(
        (tools[key] for key in PYPROJECT_TOOL_KEYS if isinstance(tools.get(key), dict)),
        None,
    )


def _parse_config(table: dict[str, Any], *, source: Path) -> AppConfig:
    rules = _table(table, "rules")
    viewer = _table(table, "viewer")
    report_format = str(table.get("report_format", "json")).lower()
    if report_format not in REPORT_FORMATS:
        choices = ", ".join(sorted(REPORT_FORMATS))
        raise ValueError(f"report_format must be one of: {choices}")

    return AppConfig(
        report_format=report_format,
        output=_optional_string(table, "output"),
        registry=_optional_string(table, "registry"),
        exclude=_string_list(table, "exclude") or [],
        rule_enable=_string_list(rules, "enable"),
        rule_disable=_string_list(rules, "disable") or [],
        viewer=ViewerConfig(
            report=_optional_string(viewer, "report", label="viewer.report")
            or DEFAULT_VIEWER_REPORT
        ),
        source=str(source),
    )


def _table(table: dict[str, Any], key: str) -> dict[str, Any]:
    value = table.get(key, {})
    if not isinstance(value, dict):
        raise ValueError(f"{key} must be a table/object")
    return value


def _optional_string(table: dict[str, Any], key: str, *, label: str | None = None) -> str | None:
    value = table.get(key)
    if value is not None and not isinstance(value, str):
        raise ValueError(f"{label or key} must be a string")
    return value


def _string_list(table: dict[str, Any], key: str) -> list[str] | None:
    value = table.get(key)
    if value is None:
        return None
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ValueError(f"{key}: Expected a list of strings")
    return list(value)
