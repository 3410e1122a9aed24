"""CSS parsing and feature matching."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterator
from typing import Any

import cssselect
import tinycss2
from cssselect.parser import Function, Matching, Negation, Pseudo, Relation, SpecificityAdjustment
from tinycss2.ast import AtRule, Declaration, ParseError, QualifiedRule

from baseline_scan.models import DialectSyntaxError, Occurrence
from baseline_scan.rules import DetectionRule, fold_first_matches, rules_for_dialect
from baseline_scan.rules.stylesheet import DECLARATION, PSEUDO_CLASS

logger = logging.getLogger(__name__)

# At-rules whose block holds style rules rather than declarations.
GROUPING_AT_RULES = {
    "-webkit-keyframes",
    "container",
    "document",
    "keyframes",
    "layer",
    "media",
    "scope",
    "starting-style",
    "supports",
}

KEYFRAME_SELECTOR = re.compile(
    r"^(?:from|to|\d+(?:\.\d+)?%)(?:\s*,\s*(?:from|to|\d+(?:\.\d+)?%))*$", re.IGNORECASE
)

_SELECTOR_CHILD_ATTRS = ("subselector", "selector_list", "parsed_tree")


class StylesheetSyntaxError(DialectSyntaxError):
    """Raised when a stylesheet cannot be parsed at all."""


def parse_stylesheet(css: str) -> list[QualifiedRule | AtRule]:
    """Parse stylesheet text into top-level rules.

    Any top-level parse error rejects the whole stylesheet.
    """
    nodes = tinycss2.parse_stylesheet(css, skip_comments=True, skip_whitespace=True)
    for node in nodes:
        if isinstance(node, ParseError):
            raise StylesheetSyntaxError(
                f"Invalid CSS syntax: {node.message} (line {node.source_line})"
            )
    return [node for node in nodes if isinstance(node, (QualifiedRule, AtRule))]


def detect_css_features(
    css: str,
    *,
    verbose: bool = False,
    file: str = "",
    rules: list[DetectionRule] | None = None,
) -> list[Occurrence]:
    """Return one occurrence per matching rule, earliest first."""
    css_rules = rules_for_dialect(rules, "css")
    stylesheet = parse_stylesheet(css)
    candidates = _candidates(stylesheet, css_rules, verbose=verbose, file=file)
    return fold_first_matches(candidates, file=file)


def iter_style_rules(nodes: list[Any]) -> Iterator[QualifiedRule]:
    """Yield every style rule, descending into grouping at-rules and nested rules."""
    for node in nodes:
        if isinstance(node, QualifiedRule):
            yield node
            yield from iter_style_rules(_nested_rules(node.content))
        elif isinstance(node, AtRule) and node.content is not None:
            if node.lower_at_keyword in GROUPING_AT_RULES:
                yield from iter_style_rules(_nested_rules(node.content))


def iter_declarations(rule: QualifiedRule) -> Iterator[Declaration]:
    for node in _block_contents(rule.content):
        if isinstance(node, Declaration):
            yield node


def iter_pseudo_classes(node: Any) -> Iterator[str]:
    """Yield pseudo-class names (with leading colon) from a cssselect tree, left to right."""
    if node is None:
        return
    if isinstance(node, (list, tuple)):
        for item in node:
            yield from iter_pseudo_classes(item)
        return

    yield from iter_pseudo_classes(getattr(node, "selector", None))
    name = _pseudo_class_name(node)
    if name is not None:
        yield name
    for attr in _SELECTOR_CHILD_ATTRS:
        yield from iter_pseudo_classes(getattr(node, attr, None))


def _candidates(
    stylesheet: list[Any], rules: list[DetectionRule], *, verbose: bool, file: str
) -> Iterator[tuple[DetectionRule, int, None]]:
    for style_rule in iter_style_rules(stylesheet):
        selector_text = tinycss2.serialize(style_rule.prelude).strip()
        rule_line = style_rule.source_line or 1
        if verbose:
            logger.info("CSS rule: %s at line %d", selector_text, rule_line)

        selectors = _parse_selectors(selector_text, file=file)
        for pseudo in iter_pseudo_classes(selectors):
            for rule in rules:
                if rule.matches(PSEUDO_CLASS, pseudo):
                    if verbose:
                        logger.info("Detected %s at line %d", pseudo, rule_line)
                    yield (rule, rule_line, None)

        for declaration in iter_declarations(style_rule):
            line = declaration.source_line or 1
            if verbose:
                logger.info("Declaration: %s at line %d", declaration.name, line)
            for rule in rules:
                if rule.matches(DECLARATION, declaration):
                    if verbose:
                        logger.info("Detected %s at line %d", rule.display_name, line)
                    yield (rule, line, None)


def _parse_selectors(selector_text: str, *, file: str) -> list[Any]:
    # Keyframe steps (from, to, 50%) carry no pseudo-classes.
    if KEYFRAME_SELECTOR.match(selector_text):
        return []
    try:
        return cssselect.parse(selector_text)
    except cssselect.SelectorError as exc:
        logger.warning("Error parsing selector in rule: %s in %s: %s", selector_text, file, exc)
        return []


def _pseudo_class_name(node: Any) -> str | None:
    if isinstance(node, Pseudo):
        return f":{node.ident.lower()}"
    if isinstance(node, Function):
        return f":{node.name.lower()}"
    if isinstance(node, Relation):
        return ":has"
    if isinstance(node, Matching):
        return ":is"
    if isinstance(node, SpecificityAdjustment):
        return ":where"
    if isinstance(node, Negation):
        return ":not"
    return None


def _block_contents(content: list[Any] | None) -> list[Any]:
    if content is None:
        return []
    return tinycss2.parse_blocks_contents(content, skip_comments=True, skip_whitespace=True)


def _nested_rules(content: list[Any] | None) -> list[Any]:
    return [
        node for node in _block_contents(content) if isinstance(node, (QualifiedRule, AtRule))
    ]
