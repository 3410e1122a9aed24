"""Directory scanning: discovery, per-file detection and the error boundary."""

from __future__ import annotations

import fnmatch
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

from baseline_scan.classifier import classify_all
from baseline_scan.javascript import detect_js_features, parse_javascript
from baseline_scan.models import (
    ClassifiedFeature,
    DialectSyntaxError,
    Occurrence,
    dialect_for_path,
)
from baseline_scan.registry import SupportRegistry
from baseline_scan.report import FileType, Report, build_report
from baseline_scan.rules import DetectionRule
from baseline_scan.stylesheet import detect_css_features

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ScanError:
    """A file skipped during a scan."""

    file: str
    kind: Literal["read", "parse"]
    message: str


@dataclass(slots=True)
class ScanResult:
    """Accumulated output of one scan invocation."""

    root: str
    files: list[str] = field(default_factory=list)
    features: list[ClassifiedFeature] = field(default_factory=list)
    errors: list[ScanError] = field(default_factory=list)

    @property
    def report(self) -> Report:
        return build_report(self.features)


def discover_files(
    root: Path, *, file_type: FileType = "all", exclude: list[str] | None = None
) -> list[str]:
    """Return sorted root-relative POSIX paths of scannable files."""
    excludes = exclude or []
    found: list[str] = []
    for path in root.rglob("*"):
        relative = path.relative_to(root).as_posix()
        dialect = dialect_for_path(relative)
        if dialect is None:
            continue
        if file_type != "all" and dialect != file_type:
            continue
        if excludes and any(fnmatch.fnmatch(relative, pattern) for pattern in excludes):
            continue
        if not path.is_file():
            continue
        found.append(relative)
    return sorted(found)


def detect_features(
    source: str,
    relative_path: str,
    *,
    rules: list[DetectionRule] | None = None,
    verbose: bool = False,
) -> list[Occurrence]:
    """Run the matcher for the file's dialect; unsupported files yield nothing."""
    dialect = dialect_for_path(relative_path)
    if dialect == "js":
        program = parse_javascript(source)
        return detect_js_features(program, verbose=verbose, file=relative_path, rules=rules)
    if dialect == "css":
        return detect_css_features(source, verbose=verbose, file=relative_path, rules=rules)
    return []


def scan_file(
    root: Path,
    relative_path: str,
    *,
    registry: SupportRegistry,
    rules: list[DetectionRule] | None = None,
    verbose: bool = False,
) -> list[ClassifiedFeature]:
    """Read, match and classify one file.

    Raises ``OSError``/``UnicodeDecodeError`` when the file cannot be read and
    ``DialectSyntaxError`` when it cannot be parsed.
    """
    source = (root / relative_path).read_text(encoding="utf-8")
    occurrences = detect_features(source, relative_path, rules=rules, verbose=verbose)
    return classify_all(occurrences, registry)


def scan_directory(
    root: Path,
    *,
    registry: SupportRegistry,
    rules: list[DetectionRule] | None = None,
    file_type: FileType = "all",
    exclude: list[str] | None = None,
    verbose: bool = False,
) -> ScanResult:
    """Scan every discoverable file; per-file failures are logged and skipped."""
    resolved = root.resolve()
    result = ScanResult(root=str(resolved))
    result.files = discover_files(resolved, file_type=file_type, exclude=exclude)

    for relative_path in result.files:
        try:
            features = scan_file(
                resolved, relative_path, registry=registry, rules=rules, verbose=verbose
            )
        except (OSError, UnicodeDecodeError) as exc:
            logger.error("Error reading %s: %s", relative_path, exc)
            result.errors.append(ScanError(relative_path, "read", str(exc)))
            continue
        except DialectSyntaxError as exc:
            logger.error("Skipping %s: %s", relative_path, exc)
            result.errors.append(ScanError(relative_path, "parse", str(exc)))
            continue
        except Exception as exc:
            # RecursionError on deeply nested input ends up here.
            logger.error("Unexpected error processing %s: %r", relative_path, exc)
            result.errors.append(ScanError(relative_path, "parse", repr(exc)))
            continue
        result.features.extend(features)
    return result
