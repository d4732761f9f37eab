"""Static analysis helpers for ES module / script ASTs."""

from .features import (
    AnalysisIssue,
    AnalysisResult,
    ProgramFeatures,
    SourcePosition,
    analyze_program,
    source_position,
)
from .top_level import (
    FUNCTION_TYPES,
    TopLevelScan,
    binding_identifiers,
    contains_top_level_await,
    find_split_index,
    scan_top_level,
)

__all__ = [
    "AnalysisIssue",
    "AnalysisResult",
    "FUNCTION_TYPES",
    "ProgramFeatures",
    "SourcePosition",
    "TopLevelScan",
    "analyze_program",
    "binding_identifiers",
    "contains_top_level_await",
    "find_split_index",
    "scan_top_level",
    "source_position",
]
