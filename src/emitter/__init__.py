"""Utilities for emitting JavaScript source code from ESTree programs."""

from .writer import EmitError, EmitOptions, EmitResult, emit_program

__all__ = ["EmitError", "EmitOptions", "EmitResult", "emit_program"]
