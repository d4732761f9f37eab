"""Run a sequence of desugaring passes over one Program."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence, Type

from .core import Transform, TransformContext, TransformError, TransformResult
from .imports import ImportDesugarer
from .top_level_await import TopLevelAwaitRewriter

logger = logging.getLogger(__name__)

TRANSFORMS: Dict[str, Type[Transform]] = {
    ImportDesugarer.name: ImportDesugarer,
    TopLevelAwaitRewriter.name: TopLevelAwaitRewriter,
}

DEFAULT_TRANSFORMS = (ImportDesugarer.name, TopLevelAwaitRewriter.name)


def transform_program(
    program: Dict[str, Any],
    *,
    source_name: str = "<input>",
    loader: str = "require",
    transforms: Optional[Sequence[str]] = None,
) -> TransformResult:
    """
    Apply the named passes to `program` in order.

    Args:
        program: esprima Program dict; it is never modified.
        source_name: Label used in diagnostics.
        loader: Name of the CommonJS loader function called for imports.
        transforms: Pass names from `TRANSFORMS`; defaults to imports then
            top-level await.

    Returns:
        TransformResult with the final Program, diagnostics from every pass,
        and the names of the passes that changed the tree.

    Raises:
        TransformError: For an unknown pass name, or when a pass rejects the
            program (e.g. `IllegalTopLevelReturnError`).
    """
    context = TransformContext(source_name=source_name, loader=loader)
    names = DEFAULT_TRANSFORMS if transforms is None else tuple(transforms)

    diagnostics: List[str] = []
    applied: List[str] = []
    current = program
    for name in names:
        transform_cls = TRANSFORMS.get(name)
        if transform_cls is None:
            raise TransformError(f"Unknown transform: {name}")
        transform = transform_cls(context=context)
        result = transform.transform_program(current)
        diagnostics.extend(transform.diagnostics)
        if result is not current:
            applied.append(name)
            current = result
        logger.debug("%s: pass %s %s", source_name, name, "applied" if name in applied else "skipped")

    return TransformResult(program=current, diagnostics=diagnostics, applied=applied)


__all__ = ["DEFAULT_TRANSFORMS", "TRANSFORMS", "transform_program"]
