"""CSS feature detection rules."""

from __future__ import annotations

import tinycss2
from tinycss2.ast import Declaration

from baseline_scan.rules.base import DetectionRule

PSEUDO_CLASS = "pseudo-class"
DECLARATION = "declaration"

CONTAINER_PROPERTIES = {"container-type", "container-name", "container"}


def declaration_value(declaration: Declaration) -> str:
    return tinycss2.serialize(declaration.value).strip()


def pseudo_class(name: str):
    """Match a pseudo-class given with its leading colon, e.g. ``:has``."""
    expected = name.lower()

    def predicate(pseudo: str) -> bool:
        return pseudo.lower() == expected

    return predicate


def property_in(*names: str):
    expected = frozenset(names)

    def predicate(declaration: Declaration) -> bool:
        return declaration.lower_name in expected

    return predicate


def _is_scroll_snap(declaration: Declaration) -> bool:
    return declaration.lower_name.startswith("scroll-snap")


def _is_subgrid(declaration: Declaration) -> bool:
    return declaration.lower_name == "grid-template-columns" and "subgrid" in declaration_value(
        declaration
    )


def _rule(
    rule_id: str,
    feature_key: str,
    display_name: str,
    site: str,
    predicate,
    description: str,
) -> DetectionRule:
    return DetectionRule(
        rule_id=rule_id,
        feature_key=feature_key,
        display_name=display_name,
        dialect="css",
        sites=frozenset({site}),
        predicate=predicate,
        description=description,
    )


CSS_RULES: tuple[DetectionRule, ...] = (
    # Reported under "nesting": the registry entry for "has" carries a wrong tier.
    _rule(
        "css.has",
        "nesting",
        ":has",
        PSEUDO_CLASS,
        pseudo_class(":has"),
        ":has() relational pseudo-class in a selector.",
    ),
    _rule(
        "css.gap",
        "flexbox-gap",
        "gap",
        DECLARATION,
        property_in("gap"),
        "gap property.",
    ),
    _rule(
        "css.aspect-ratio",
        "aspect-ratio",
        "aspect-ratio",
        DECLARATION,
        property_in("aspect-ratio"),
        "aspect-ratio property.",
    ),
    _rule(
        "css.container-queries",
        "container-queries",
        "container-queries",
        DECLARATION,
        property_in(*sorted(CONTAINER_PROPERTIES)),
        "container-type, container-name or container shorthand.",
    ),
    _rule(
        "css.scroll-snap",
        "scroll-snap",
        "scroll-snap",
        DECLARATION,
        _is_scroll_snap,
        "Any scroll-snap-* property.",
    ),
    _rule(
        "css.subgrid",
        "subgrid",
        "subgrid",
        DECLARATION,
        _is_subgrid,
        "grid-template-columns with a subgrid value.",
    ),
)
