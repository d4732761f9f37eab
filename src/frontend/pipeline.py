"""
Parse-then-analyse step shared by the CLI and the tests.

`run_frontend` parses the source, scans the Program for import declarations,
top-level await and top-level returns, and can drop the parse result into a
JSON cache keyed by the source hash. The returned `FrontEndResult` tells the
caller which desugaring passes have anything to do.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Union

from analyzer import AnalysisResult, analyze_program
from parser import ParseResult, parse_js

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FrontEndResult:
    parse: ParseResult
    analysis: Optional[AnalysisResult]

    @property
    def has_ast(self) -> bool:
        return self.parse.ast is not None

    @property
    def diagnostics(self):
        """Parse errors followed by analysis issues."""
        diagnostics = list(self.parse.errors)
        if self.analysis:
            diagnostics.extend(self.analysis.issues)
        return diagnostics

    @property
    def required_transforms(self) -> List[str]:
        """
        Passes with work to do, in pipeline order.

        Without an analysis nothing is known, so every pass is listed. A
        top-level return alone still selects the await pass, which rejects it.
        """
        if self.analysis is None:
            return ["imports", "top-level-await"]
        features = self.analysis.features
        names: List[str] = []
        if features.import_count:
            names.append("imports")
        if features.has_top_level_await or features.top_level_returns:
            names.append("top-level-await")
        return names


def run_frontend(
    source: str,
    *,
    source_name: str = "<input>",
    tolerant: bool = True,
    analyze: bool = True,
    source_type: str = "script",
    allow_top_level_await: bool = True,
    cache_dir: Optional[Union[str, Path]] = None,
) -> FrontEndResult:
    """
    Parse `source` and, unless `analyze` is False, collect its top-level features.

    `tolerant`, `source_type` and `allow_top_level_await` go straight to
    `parse_js`. When `cache_dir` is given the parse result is written there as
    `<source hash>.json`. Analysis is skipped when parsing produced no AST.
    """
    parse_result = parse_js(
        source,
        source_name=source_name,
        tolerant=tolerant,
        source_type=source_type,
        allow_top_level_await=allow_top_level_await,
    )

    analysis_result: Optional[AnalysisResult] = None
    if analyze and parse_result.ast is not None:
        analysis_result = analyze_program(parse_result.ast, source_name=source_name)

    if cache_dir is not None:
        _write_cache(Path(cache_dir), parse_result)

    return FrontEndResult(parse=parse_result, analysis=analysis_result)


def _write_cache(cache_dir: Path, parse_result: ParseResult) -> Path:
    cache_dir.mkdir(parents=True, exist_ok=True)
    cache_file = cache_dir / f"{parse_result.source_hash}.json"
    cache_file.write_text(parse_result.to_json(), encoding="utf-8")
    logger.debug("cached parse of %s at %s", parse_result.source_name, cache_file)
    return cache_file


__all__ = ["FrontEndResult", "run_frontend"]
