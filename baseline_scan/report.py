"""Report aggregation and filtering."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Literal

from baseline_scan.models import ClassifiedFeature

FileType = Literal["all", "js", "css"]
NameMode = Literal["exact", "substring"]

FILE_TYPES: tuple[FileType, ...] = ("all", "js", "css")


@dataclass(frozen=True, slots=True)
class Summary:
    """Per-status counts."""

    baseline: int = 0
    non_baseline: int = 0

    @property
    def total(self) -> int:
        return self.baseline + self.non_baseline

    def to_dict(self) -> dict[str, int]:
        return {"baseline": self.baseline, "non_baseline": self.non_baseline}


@dataclass(frozen=True, slots=True)
class Report:
    """Classified features in file-then-detection order."""

    features: tuple[ClassifiedFeature, ...] = ()

    @property
    def summary(self) -> Summary:
        baseline = sum(1 for feature in self.features if feature.status == "baseline")
        return Summary(baseline=baseline, non_baseline=len(self.features) - baseline)

    def __len__(self) -> int:
        return len(self.features)

    def to_dict(self) -> dict[str, object]:
        return {
            "summary": self.summary.to_dict(),
            "features": [feature.to_dict() for feature in self.features],
        }


@dataclass(frozen=True, slots=True)
class FeatureFilter:
    """Feature-name and file-type restriction applied to a report."""

    name: str | None = None
    name_mode: NameMode = "exact"
    file_type: FileType = "all"

    def __post_init__(self) -> None:
        if self.file_type not in FILE_TYPES:
            choices = ", ".join(FILE_TYPES)
            raise ValueError(f"file type must be one of: {choices}")
        if self.name_mode not in {"exact", "substring"}:
            raise ValueError("name mode must be one of: exact, substring")

    @classmethod
    def from_cli_value(cls, value: str | None) -> FeatureFilter:
        """``js``/``css`` select a file type; anything else is an exact feature name."""
        if not value:
            return cls()
        lowered = value.lower()
        if lowered in {"js", "css"}:
            return cls(file_type=lowered)  # type: ignore[arg-type]
        return cls(name=value, name_mode="exact")

    @property
    def is_empty(self) -> bool:
        return not self.name and self.file_type == "all"

    def matches(self, feature: ClassifiedFeature) -> bool:
        if self.file_type != "all" and not feature.file.lower().endswith(f".{self.file_type}"):
            return False
        if not self.name:
            return True
        wanted = self.name.lower()
        actual = feature.display_name.lower()
        if self.name_mode == "substring":
            return wanted in actual
        return wanted == actual

    def apply(self, report: Report) -> Report:
        """Return a new report holding only matching features."""
        if self.is_empty:
            return report
        return Report(features=tuple(item for item in report.features if self.matches(item)))


def build_report(features: Iterable[ClassifiedFeature]) -> Report:
    return Report(features=tuple(features))


def group_by_file(report: Report) -> dict[str, list[ClassifiedFeature]]:
    """Group features by file path in first-seen file order."""
    grouped: dict[str, list[ClassifiedFeature]] = {}
    for feature in report.features:
        grouped.setdefault(feature.file, []).append(feature)
    return grouped

