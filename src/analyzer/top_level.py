"""
Top-level feature scans over ESTree ASTs.

"Top-level" means not enclosed by any function (declaration, expression or
arrow) between the node and the Program, however deeply it sits inside blocks,
loops or conditionals. Every scan here stops descending at function
boundaries; nested function bodies are never inspected.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional

FUNCTION_TYPES = frozenset(
    {"FunctionDeclaration", "FunctionExpression", "ArrowFunctionExpression"}
)

# Metadata keys attached by esprima that never hold child nodes.
_SKIP_KEYS = frozenset({"loc", "range", "comments", "errors", "tokens"})


def _children(node: Dict[str, Any]) -> Iterator[Any]:
    for key, value in node.items():
        if key in _SKIP_KEYS:
            continue
        if isinstance(value, (dict, list)):
            yield value


def contains_top_level_await(node: Any) -> bool:
    """Return True if `node` holds an AwaitExpression outside any nested function."""
    if isinstance(node, list):
        return any(contains_top_level_await(element) for element in node)
    if not isinstance(node, dict):
        return False
    node_type = node.get("type")
    if node_type in FUNCTION_TYPES:
        return False
    if node_type == "AwaitExpression":
        return True
    return any(contains_top_level_await(child) for child in _children(node))


def find_split_index(statements: List[Dict[str, Any]]) -> Optional[int]:
    """Index of the first statement whose subtree contains a top-level await."""
    for index, statement in enumerate(statements):
        if contains_top_level_await(statement):
            return index
    return None


@dataclass
class TopLevelScan:
    """Top-level constructs found in one Program."""

    awaits: List[Dict[str, Any]] = field(default_factory=list)
    returns: List[Dict[str, Any]] = field(default_factory=list)
    with_statements: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def has_top_level_await(self) -> bool:
        return bool(self.awaits)

    @property
    def has_illegal_return(self) -> bool:
        return bool(self.returns)


class _TopLevelScanner:
    def __init__(self) -> None:
        self.result = TopLevelScan()

    def _visit(self, node: Any) -> None:
        if node is None:
            return
        if isinstance(node, list):
            for element in node:
                self._visit(element)
            return
        if not isinstance(node, dict):
            return

        node_type = node.get("type")
        if node_type in FUNCTION_TYPES:
            return
        handler = getattr(self, f"_visit_{node_type}", None)
        if handler:
            handler(node)
        self._generic_visit(node)

    def _generic_visit(self, node: Dict[str, Any]) -> None:
        for child in _children(node):
            self._visit(child)

    def _visit_AwaitExpression(self, node: Dict[str, Any]) -> None:
        self.result.awaits.append(node)

    def _visit_ReturnStatement(self, node: Dict[str, Any]) -> None:
        self.result.returns.append(node)

    def _visit_WithStatement(self, node: Dict[str, Any]) -> None:
        self.result.with_statements.append(node)


def scan_top_level(node: Any) -> TopLevelScan:
    """Collect top-level awaits, returns and `with` statements under `node`."""
    scanner = _TopLevelScanner()
    scanner._visit(node)
    return scanner.result


def binding_identifiers(pattern: Optional[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Identifiers bound by a declaration target, in source order.

    Handles plain identifiers and destructuring: object / array patterns,
    defaults (`AssignmentPattern`) and rest elements. Property keys, computed
    or not, are never bindings.
    """
    if not isinstance(pattern, dict):
        return []
    pattern_type = pattern.get("type")
    if pattern_type == "Identifier":
        return [pattern]
    if pattern_type == "ObjectPattern":
        found: List[Dict[str, Any]] = []
        for prop in pattern.get("properties", []):
            if prop.get("type") == "RestElement":
                found.extend(binding_identifiers(prop))
            else:
                found.extend(binding_identifiers(prop.get("value")))
        return found
    if pattern_type == "ArrayPattern":
        found = []
        for element in pattern.get("elements", []):
            found.extend(binding_identifiers(element))
        return found
    if pattern_type == "AssignmentPattern":
        return binding_identifiers(pattern.get("left"))
    if pattern_type == "RestElement":
        return binding_identifiers(pattern.get("argument"))
    return []


__all__ = [
    "FUNCTION_TYPES",
    "TopLevelScan",
    "binding_identifiers",
    "contains_top_level_await",
    "find_split_index",
    "scan_top_level",
]
