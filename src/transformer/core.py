"""
Shared plumbing for ESTree-to-ESTree desugaring passes.

Every pass receives an esprima Program dict and returns a Program dict. Passes
never edit the tree they are given: they build new statement lists and hand
back a shallow copy of the Program, or the very same object when nothing had
to change. Conditions a pass cannot handle raise `TransformError` carrying the
offending node so callers can surface a positioned diagnostic.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional


def format_location(node: Optional[Dict[str, Any]]) -> str:
    if not node or not isinstance(node, dict):
        return ""
    loc_meta = node.get("loc") or {}
    start = loc_meta.get("start") or {}
    line = start.get("line")
    column = start.get("column")
    if line is None or column is None:
        return ""
    return f" (line {line}, column {column})"


class TransformError(RuntimeError):
    """Raised when a node cannot be desugared."""

    def __init__(self, message: str, node: Optional[Dict[str, Any]] = None):
        super().__init__(f"{message}{format_location(node)}")
        self.node = node


class IllegalTopLevelReturnError(TransformError):
    """A `return` statement sits outside any function."""

    def __init__(self, node: Optional[Dict[str, Any]] = None):
        super().__init__("Illegal top-level return in module using top-level await.", node)


@dataclass(frozen=True)
class TransformContext:
    """Contextual information available to every pass."""

    source_name: str
    loader: str = "require"


@dataclass(frozen=True)
class TransformResult:
    program: Dict[str, Any]
    diagnostics: List[str]
    applied: List[str]


class Transform:
    """Base class for passes; subclasses implement `transform_program`."""

    name = "transform"

    def __init__(self, *, context: TransformContext):
        self.context = context
        self.diagnostics: List[str] = []

    def _warn(self, message: str, node: Optional[Dict[str, Any]] = None) -> None:
        self.diagnostics.append(f"{message}{format_location(node)}")

    def _expect_program(self, program: Dict[str, Any]) -> List[Dict[str, Any]]:
        if not isinstance(program, dict) or program.get("type") != "Program":
            raise TransformError("Expected Program node at the root.", program)
        return list(program.get("body", []))

    def transform_program(self, program: Dict[str, Any]) -> Dict[str, Any]:
        raise NotImplementedError


__all__ = [
    "IllegalTopLevelReturnError",
    "Transform",
    "TransformContext",
    "TransformError",
    "TransformResult",
    "format_location",
]
