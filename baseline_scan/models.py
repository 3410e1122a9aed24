"""Detection and classification value objects."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

Dialect = Literal["js", "css"]
Status = Literal["baseline", "non-baseline"]

DIALECT_BY_SUFFIX: dict[str, Dialect] = {
    ".js": "js",
    ".css": "css",
}


@dataclass(frozen=True, slots=True)
class Occurrence:
    """First detected use of a cataloged feature in one file."""

    display_name: str
    feature_key: str
    line: int = 1
    file: str = ""


@dataclass(frozen=True, slots=True)
class ClassifiedFeature:
    """An occurrence with its Baseline verdict."""

    display_name: str
    feature_key: str
    line: int
    file: str
    status: Status

    @classmethod
    def from_occurrence(cls, occurrence: Occurrence, status: Status) -> ClassifiedFeature:
        return cls(
            display_name=occurrence.display_name,
            feature_key=occurrence.feature_key,
            line=occurrence.line,
            file=occurrence.file,
            status=status,
        )

    def to_dict(self) -> dict[str, object]:
        return {
            "name": self.display_name,
            "status": self.status,
            "file": self.file,
            "line": self.line,
        }


def dialect_for_path(path: str) -> Dialect | None:
    """Return the dialect for a file path, or None for unsupported extensions."""
    lowered = path.lower()
    for suffix, dialect in DIALECT_BY_SUFFIX.items():
        if lowered.endswith(suffix):
            return dialect
    return None


class DialectSyntaxError(ValueError):
    """Raised when a source file cannot be parsed for its dialect."""
