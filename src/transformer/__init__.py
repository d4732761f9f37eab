"""ESTree desugaring passes: imports to require, top-level await to async IIFE."""

from .core import (
    IllegalTopLevelReturnError,
    Transform,
    TransformContext,
    TransformError,
    TransformResult,
)
from .imports import ImportDesugarer
from .pipeline import DEFAULT_TRANSFORMS, TRANSFORMS, transform_program
from .top_level_await import TopLevelAwaitRewriter

__all__ = [
    "DEFAULT_TRANSFORMS",
    "IllegalTopLevelReturnError",
    "ImportDesugarer",
    "TRANSFORMS",
    "TopLevelAwaitRewriter",
    "Transform",
    "TransformContext",
    "TransformError",
    "TransformResult",
    "transform_program",
]
