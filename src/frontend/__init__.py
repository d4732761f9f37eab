"""Parse-then-analyse glue shared by the CLI and tests."""

from .pipeline import FrontEndResult, run_frontend

__all__ = ["FrontEndResult", "run_frontend"]
