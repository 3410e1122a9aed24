"""Detection rule model and the first-match-wins fold."""

from __future__ import annotations

from collections.abc import Callable, Hashable, Iterable
from dataclasses import dataclass
from typing import Any

from baseline_scan.models import Dialect, Occurrence


@dataclass(frozen=True, slots=True)
class DetectionRule:
    """One recognizable feature shape for one dialect.

    ``sites`` names the syntax positions a matcher presents to ``predicate``.
    JS matchers use ``statement``, ``expression`` and ``initializer``; CSS
    matchers use ``pseudo-class`` and ``declaration``.

    A rule with ``refines`` set is a variant of another rule: it is only
    reported for the node on which that rule was first reported.
    """

    rule_id: str
    feature_key: str
    display_name: str
    dialect: Dialect
    sites: frozenset[str]
    predicate: Callable[[Any], bool]
    description: str = ""
    refines: str | None = None

    def matches(self, site: str, node: Any) -> bool:
        return site in self.sites and self.predicate(node)


def fold_first_matches(
    candidates: Iterable[tuple[DetectionRule, int, Hashable]], *, file: str = ""
) -> list[Occurrence]:
    """Keep the earliest candidate per rule, in detection order.

    Candidates are ``(rule, line, anchor)`` where ``anchor`` identifies the
    matched node. Later candidates for a rule already present are dropped
    along with their line numbers.
    """
    found: dict[str, Occurrence] = {}
    anchors: dict[str, Hashable] = {}
    for rule, line, anchor in candidates:
        if rule.rule_id in found:
            continue
        if rule.refines is not None and (
            anchor is None or anchors.get(rule.refines) != anchor
        ):
            continue
        found[rule.rule_id] = Occurrence(
            display_name=rule.display_name,
            feature_key=rule.feature_key,
            line=line if line and line > 0 else 1,
            file=file,
        )
        anchors[rule.rule_id] = anchor
    return list(found.values())
