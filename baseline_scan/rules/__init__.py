"""Rules package."""

from __future__ import annotations

from dataclasses import dataclass

from baseline_scan.models import Dialect
from baseline_scan.rules.base import DetectionRule, fold_first_matches
from baseline_scan.rules.javascript import JS_RULES
from baseline_scan.rules.stylesheet import CSS_RULES

__all__ = [
    "DetectionRule",
    "RuleInfo",
    "build_rules",
    "fold_first_matches",
    "list_rule_info",
    "rules_for_dialect",
]


@dataclass(frozen=True, slots=True)
class RuleInfo:
    """Rule metadata for listing and selection."""

    rule_id: str
    feature_key: str
    display_name: str
    dialect: Dialect
    description: str


def catalog() -> tuple[DetectionRule, ...]:
    """Return every known detection rule in catalog order."""
    return JS_RULES + CSS_RULES


def build_rules(
    *,
    enabled_rule_ids: list[str] | None = None,
    disabled_rule_ids: list[str] | None = None,
) -> list[DetectionRule]:
    """Build the active rule list applying enable/disable filters."""
    rules = catalog()
    registry = {rule.rule_id: rule for rule in rules}
    disabled_set = set(disabled_rule_ids or [])
    requested_ids = set(enabled_rule_ids or []) | disabled_set

    unknown = [rule_id for rule_id in requested_ids if rule_id not in registry]
    if unknown:
        joined = ", ".join(sorted(unknown))
        raise ValueError(f"Unknown rule ids: {joined}")

    # Catalog order decides which of several rules matching one node reports first.
    enabled_set = set(enabled_rule_ids) if enabled_rule_ids is not None else None
    return [
        rule
        for rule in rules
        if (enabled_set is None or rule.rule_id in enabled_set)
        and rule.rule_id not in disabled_set
    ]


def rules_for_dialect(
    rules: list[DetectionRule] | tuple[DetectionRule, ...] | None, dialect: Dialect
) -> list[DetectionRule]:
    active = catalog() if rules is None else rules
    return [rule for rule in active if rule.dialect == dialect]


def list_rule_info() -> list[RuleInfo]:
    """Return metadata for all known rules."""
    return [
        RuleInfo(
            rule_id=rule.rule_id,
            feature_key=rule.feature_key,
            display_name=rule.display_name,
            dialect=rule.dialect,
            description=rule.description,
        )
        for rule in catalog()
    ]
