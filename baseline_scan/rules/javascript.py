"""JavaScript feature detection rules over tree-sitter nodes."""

from __future__ import annotations

from tree_sitter import Node

from baseline_scan.rules.base import DetectionRule

STATEMENT = "statement"
EXPRESSION = "expression"
INITIALIZER = "initializer"

ASYNC_FUNCTION_TYPES = {
    "function_declaration",
    "generator_function_declaration",
    "arrow_function",
}


def node_text(node: Node | None) -> str:
    if node is None or node.text is None:
        return ""
    return node.text.decode("utf-8", errors="replace")


def is_identifier(node: Node | None, name: str | None = None) -> bool:
    if node is None or node.type != "identifier":
        return False
    return name is None or node_text(node) == name


def call_arguments(node: Node) -> list[Node]:
    arguments = node.child_by_field_name("arguments")
    if arguments is None or arguments.type != "arguments":
        return []
    return [child for child in arguments.named_children if child.type != "comment"]


def constructs(type_name: str):
    """Match ``new <type_name>(...)`` with a bare identifier constructor."""

    def predicate(node: Node) -> bool:
        return node.type == "new_expression" and is_identifier(
            node.child_by_field_name("constructor"), type_name
        )

    return predicate


def calls_identifier(name: str):
    def predicate(node: Node) -> bool:
        return node.type == "call_expression" and is_identifier(
            node.child_by_field_name("function"), name
        )

    return predicate


def _is_fetch_with_init(node: Node) -> bool:
    if not calls_identifier("fetch")(node):
        return False
    arguments = call_arguments(node)
    return len(arguments) > 1 and arguments[1].type == "object"


def _is_promise_all_settled(node: Node) -> bool:
    if node.type != "call_expression":
        return False
    callee = node.child_by_field_name("function")
    if callee is None or callee.type != "member_expression":
        return False
    return is_identifier(callee.child_by_field_name("object"), "Promise") and node_text(
        callee.child_by_field_name("property")
    ) == "allSettled"


def _is_async_or_await(node: Node) -> bool:
    if node.type == "await_expression":
        return True
    if node.type not in ASYNC_FUNCTION_TYPES:
        return False
    return any(child.type == "async" for child in node.children)


def _is_array_at(node: Node) -> bool:
    if node.type != "call_expression":
        return False
    callee = node.child_by_field_name("function")
    if callee is None or callee.type != "member_expression":
        return False
    if node_text(callee.child_by_field_name("property")) != "at":
        return False
    receiver = callee.child_by_field_name("object")
    return receiver is not None and receiver.type in {"array", "identifier"}


def _rule(
    rule_id: str,
    feature_key: str,
    display_name: str,
    sites: set[str],
    predicate,
    description: str,
    *,
    refines: str | None = None,
) -> DetectionRule:
    return DetectionRule(
        rule_id=rule_id,
        feature_key=feature_key,
        display_name=display_name,
        dialect="js",
        sites=frozenset(sites),
        predicate=predicate,
        description=description,
        refines=refines,
    )


JS_RULES: tuple[DetectionRule, ...] = (
    _rule(
        "js.aborting",
        "aborting",
        "AbortController",
        {EXPRESSION, INITIALIZER},
        constructs("AbortController"),
        "new AbortController() as a statement or variable initializer.",
    ),
    _rule(
        "js.fetch",
        "fetch",
        "fetch",
        {EXPRESSION},
        calls_identifier("fetch"),
        "fetch(...) called as a statement.",
    ),
    _rule(
        "js.fetch-init",
        "fetch",
        "fetch with init options",
        {EXPRESSION},
        _is_fetch_with_init,
        "The call reported as fetch, when it passes an object literal init.",
        refines="js.fetch",
    ),
    _rule(
        "js.promise-allsettled",
        "promise-allsettled",
        "Promise.allSettled",
        {EXPRESSION},
        _is_promise_all_settled,
        "Promise.allSettled(...) called as a statement.",
    ),
    _rule(
        "js.async-await",
        "async-await",
        "async/await",
        {STATEMENT, EXPRESSION, INITIALIZER},
        _is_async_or_await,
        "Async function declaration, async arrow function or await expression.",
    ),
    _rule(
        "js.intersection-observer",
        "intersection-observer",
        "IntersectionObserver",
        {EXPRESSION, INITIALIZER},
        constructs("IntersectionObserver"),
        "new IntersectionObserver() as a statement or variable initializer.",
    ),
    _rule(
        "js.array-at",
        "array-at",
        "Array.prototype.at",
        {EXPRESSION},
        _is_array_at,
        "<array literal or identifier>.at(...) called as a statement.",
    ),
    _rule(
        "js.weak-references",
        "weak-references",
        "WeakRef",
        {INITIALIZER},
        constructs("WeakRef"),
        "new WeakRef() as a variable initializer.",
    ),
)
