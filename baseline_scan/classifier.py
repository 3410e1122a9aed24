"""Baseline classification of detected occurrences."""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from baseline_scan.models import ClassifiedFeature, Occurrence, Status
from baseline_scan.registry import WIDELY_AVAILABLE, SupportRegistry

# Feature keys classified as baseline without consulting the registry.
# Remove an entry once the upstream tier for it is corrected.
BASELINE_OVERRIDES: Mapping[str, str] = {
    "nesting": (
        ":has() detections are keyed as nesting; web-features reports a low "
        "tier for the :has entry although every major engine ships it."
    ),
    "subgrid": "web-features reports a low tier for subgrid although every major engine ships it.",
}


def classify(occurrence: Occurrence, registry: SupportRegistry) -> ClassifiedFeature:
    """Return the occurrence with its Baseline status attached."""
    status = status_for(occurrence.feature_key, registry)
    return ClassifiedFeature.from_occurrence(occurrence, status)


def classify_all(
    occurrences: Iterable[Occurrence], registry: SupportRegistry
) -> list[ClassifiedFeature]:
    return [classify(occurrence, registry) for occurrence in occurrences]


def status_for(feature_key: str, registry: SupportRegistry) -> Status:
    if feature_key in BASELINE_OVERRIDES:
        return "baseline"
    if registry.baseline_tier(feature_key) == WIDELY_AVAILABLE:
        return "baseline"
    return "non-baseline"
