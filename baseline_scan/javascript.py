"""JavaScript parsing and feature matching.

The matcher is a deliberately shallow scan: it visits the top-level statement
list only, looking at each statement, the expression of an expression
statement, and the initializers of ``var``/``let``/``const`` declarators.
Features used only inside function bodies, blocks, conditionals, loops or
``export`` declarations are not reported.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator

import tree_sitter_javascript
from tree_sitter import Language, Node, Parser

from baseline_scan.models import DialectSyntaxError, Occurrence
from baseline_scan.rules import DetectionRule, fold_first_matches, rules_for_dialect
from baseline_scan.rules.javascript import EXPRESSION, INITIALIZER, STATEMENT

logger = logging.getLogger(__name__)

JS_LANGUAGE = Language(tree_sitter_javascript.language())

DECLARATION_TYPES = {"lexical_declaration", "variable_declaration"}


class JavaScriptSyntaxError(DialectSyntaxError):
    """Raised when a JavaScript file has no recoverable statements."""


def parse_javascript(source: str) -> Node:
    """Parse module-scoped JavaScript and return the program node.

    Statements containing syntax errors are tolerated; the file is rejected
    only when nothing parses cleanly.
    """
    parser = Parser(JS_LANGUAGE)
    tree = parser.parse(source.encode("utf-8"))
    root = tree.root_node
    if root.type == "ERROR":
        raise JavaScriptSyntaxError(_describe_error(root))
    if root.has_error and not any(_is_clean_statement(child) for child in root.named_children):
        raise JavaScriptSyntaxError(_describe_error(root))
    return root


def top_level_statements(program: Node) -> list[Node]:
    """Return the program's statements, dropping ones the parser had to recover."""
    return [child for child in program.named_children if _is_clean_statement(child)]


def detect_js_features(
    program: Node,
    *,
    verbose: bool = False,
    file: str = "",
    rules: list[DetectionRule] | None = None,
) -> list[Occurrence]:
    """Return one occurrence per matching rule, earliest first."""
    js_rules = rules_for_dialect(rules, "js")
    return fold_first_matches(_candidates(program, js_rules, verbose=verbose), file=file)


def _candidates(
    program: Node, rules: list[DetectionRule], *, verbose: bool
) -> Iterator[tuple[DetectionRule, int, tuple[int, int]]]:
    for site, node, line in _iter_sites(program, verbose=verbose):
        anchor = (node.start_byte, node.end_byte)
        for rule in rules:
            if rule.matches(site, node):
                if verbose:
                    logger.info("Detected %s at line %d", rule.display_name, line)
                yield (rule, line, anchor)


def _iter_sites(program: Node, *, verbose: bool) -> Iterator[tuple[str, Node, int]]:
    for statement in top_level_statements(program):
        line = _line(statement)
        if verbose:
            logger.info("JS node: %s at line %d", statement.type, line)
        yield (STATEMENT, statement, line)

        if statement.type == "expression_statement":
            expression = _first_named_child(statement)
            if expression is not None:
                yield (EXPRESSION, expression, line)
        elif statement.type in DECLARATION_TYPES:
            for declarator in statement.named_children:
                if declarator.type != "variable_declarator":
                    continue
                value = declarator.child_by_field_name("value")
                if value is not None:
                    yield (INITIALIZER, value, _line(declarator))


def _is_clean_statement(node: Node) -> bool:
    return node.type != "comment" and not node.is_error and not node.has_error


def _first_named_child(node: Node) -> Node | None:
    for child in node.named_children:
        if child.type != "comment":
            return child
    return None


def _line(node: Node) -> int:
    return node.start_point[0] + 1


def _describe_error(root: Node) -> str:
    error_node = _find_error(root)
    if error_node is None:
        return "Invalid JavaScript syntax"
    row, column = error_node.start_point[0] + 1, error_node.start_point[1] + 1
    return f"Invalid JavaScript syntax at line {row}, column {column}"


def _find_error(node: Node) -> Node | None:
    if node.is_error or node.is_missing:
        return node
    for child in node.children:
        if child.has_error or child.is_error or child.is_missing:
            found = _find_error(child)
            if found is not None:
                return found
    return None
