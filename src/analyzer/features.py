"""
Program-level feature analysis for ES module / script ASTs.

The analyzer summarises which desugaring passes a Program needs: how many
`import` declarations it has, whether it uses top-level `await` (and where the
first such statement sits), and whether it contains constructs the rewrites
cannot handle, such as a top-level `return` or a `with` statement. Issues are
reported as data so the CLI can print them; nothing here raises.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .top_level import find_split_index, scan_top_level


@dataclass(frozen=True)
class SourcePosition:
    line: Optional[int]
    column: Optional[int]


@dataclass(frozen=True)
class ProgramFeatures:
    import_count: int
    has_top_level_await: bool
    split_index: Optional[int]
    top_level_returns: List[SourcePosition]

    @property
    def needs_rewrite(self) -> bool:
        return self.import_count > 0 or self.has_top_level_await or bool(self.top_level_returns)


@dataclass(frozen=True)
class AnalysisIssue:
    code: str
    message: str
    loc: SourcePosition


@dataclass(frozen=True)
class AnalysisResult:
    source_name: str
    features: ProgramFeatures
    issues: List[AnalysisIssue]


def source_position(node: Dict[str, Any]) -> SourcePosition:
    loc = node.get("loc") or {}
    start = loc.get("start") or {}
    return SourcePosition(
        line=start.get("line"),
        column=start.get("column"),
    )


def analyze_program(ast: Dict[str, Any], *, source_name: str = "<input>") -> AnalysisResult:
    """
    Summarise the desugaring-relevant features of a Program.

    Args:
        ast: esprima-compatible Program (result of `parse_js`).
        source_name: Label for diagnostics and reporting.

    Returns:
        AnalysisResult with the feature summary and analysis issues.
    """
    body = ast.get("body", [])
    scan = scan_top_level(body)
    issues: List[AnalysisIssue] = []

    for node in scan.returns:
        issues.append(
            AnalysisIssue(
                code="TOP_LEVEL_RETURN",
                message="`return` outside of a function cannot be desugared.",
                loc=source_position(node),
            )
        )
    for node in scan.with_statements:
        issues.append(
            AnalysisIssue(
                code="WITH_STATEMENT",
                message="`with` statement changes scope resolution dynamically.",
                loc=source_position(node),
            )
        )

    features = ProgramFeatures(
        import_count=sum(1 for stmt in body if stmt.get("type") == "ImportDeclaration"),
        has_top_level_await=scan.has_top_level_await,
        split_index=find_split_index(body) if scan.has_top_level_await else None,
        top_level_returns=[source_position(node) for node in scan.returns],
    )
    return AnalysisResult(source_name=source_name, features=features, issues=issues)


__all__ = [
    "AnalysisIssue",
    "AnalysisResult",
    "ProgramFeatures",
    "SourcePosition",
    "analyze_program",
    "source_position",
]
