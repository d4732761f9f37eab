"""
Command-line interface for desugaring ES module imports and top-level await.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List

import esprima

from emitter import EmitError, EmitOptions, emit_program
from frontend import run_frontend
from transformer import TransformError, transform_program

logger = logging.getLogger(__name__)


def _format_location(line: int | None, column: int | None) -> str:
    if line is None:
        return ""
    if column is None:
        return f":{line}"
    return f":{line}:{column}"


def _print_diagnostics(messages: List[str]) -> None:
    if not messages:
        return
    for message in messages:
        sys.stderr.write(message + "\n")


def _collect_diagnostics(frontend_result, transform_result) -> List[str]:
    diagnostics: List[str] = []
    source_name = frontend_result.parse.source_name

    for error in frontend_result.parse.errors:
        loc = _format_location(error.line, error.column)
        diagnostics.append(f"ERROR {source_name}{loc}: {error.description}")

    analysis = frontend_result.analysis
    if analysis:
        for issue in analysis.issues:
            loc = _format_location(issue.loc.line, issue.loc.column)
            diagnostics.append(f"WARNING {source_name}{loc}: {issue.message}")

    if transform_result.diagnostics:
        for message in transform_result.diagnostics:
            diagnostics.append(f"INFO {source_name}: {message}")

    return diagnostics


def _selected_transforms(args: argparse.Namespace) -> List[str]:
    names: List[str] = []
    if not args.skip_imports:
        names.append("imports")
    if not args.skip_top_level_await:
        names.append("top-level-await")
    return names


def _default_output(input_path: Path) -> Path:
    return input_path.with_name(f"{input_path.stem}.cjs.js")


def convert_command(args: argparse.Namespace) -> int:
    input_path = Path(args.input).resolve()
    if not input_path.exists():
        sys.stderr.write(f"ERROR: Input file not found: {input_path}\n")
        return 1

    try:
        source = input_path.read_text(encoding="utf-8")
    except OSError as exc:
        sys.stderr.write(f"ERROR: Failed to read {input_path}: {exc}\n")
        return 1

    source_type = "module" if getattr(args, "module", False) else "script"

    try:
        frontend_result = run_frontend(
            source,
            source_name=str(input_path),
            tolerant=not args.strict,
            analyze=True,
            source_type=source_type,
        )
    except esprima.Error as exc:
        sys.stderr.write(f"ERROR: Parsing failed: {exc}\n")
        return 1

    if frontend_result.parse.ast is None:
        sys.stderr.write("ERROR: Parsing failed; no AST produced.\n")
        for error in frontend_result.parse.errors:
            loc = _format_location(error.line, error.column)
            sys.stderr.write(f"  {error.description}{loc}\n")
        return 1

    required = frontend_result.required_transforms
    transforms = [name for name in _selected_transforms(args) if name in required]
    if not transforms:
        logger.debug("nothing to rewrite in %s", input_path)

    try:
        transform_result = transform_program(
            frontend_result.parse.ast,
            source_name=str(input_path),
            loader=args.loader,
            transforms=transforms,
        )
    except TransformError as exc:
        sys.stderr.write(f"ERROR: Transformation failed: {exc}\n")
        return 1
    logger.debug("applied passes: %s", ", ".join(transform_result.applied) or "none")

    try:
        emit_result = emit_program(
            transform_result.program, EmitOptions(indent=" " * args.indent)
        )
    except EmitError as exc:
        sys.stderr.write(f"ERROR: Emitting failed: {exc}\n")
        return 1

    output_path = Path(args.out) if args.out else _default_output(input_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(emit_result.source, encoding="utf-8")

    diagnostics = _collect_diagnostics(frontend_result, transform_result)
    _print_diagnostics(diagnostics)

    has_errors = bool(frontend_result.parse.errors)
    if args.strict and (frontend_result.analysis and frontend_result.analysis.issues):
        has_errors = True
    if args.strict and transform_result.diagnostics:
        has_errors = True

    return 1 if has_errors else 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="jsdesugar",
        description="Rewrite ES module imports and top-level await into CommonJS-compatible JavaScript",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log pass decisions to stderr.",
    )
    subparsers = parser.add_subparsers(dest="command")

    convert_parser = subparsers.add_parser(
        "convert",
        help="Desugar a single JS file",
        description="Desugar import declarations and top-level await in a single JS file.",
        epilog="Comments are not preserved in the output.",
    )
    convert_parser.add_argument("input", help="Path to the JavaScript file")
    convert_parser.add_argument(
        "--out",
        help="Output file path (defaults to <input>.cjs.js next to the input)",
    )
    convert_parser.add_argument(
        "--loader",
        default="require",
        help="Function called in place of import declarations (default: require).",
    )
    convert_parser.add_argument(
        "--skip-imports",
        action="store_true",
        help="Leave import declarations untouched.",
    )
    convert_parser.add_argument(
        "--skip-top-level-await",
        action="store_true",
        help="Leave top-level await untouched.",
    )
    convert_parser.add_argument(
        "--indent",
        type=int,
        default=2,
        help="Spaces per indentation level in the output (default: 2).",
    )
    convert_parser.add_argument(
        "--strict",
        action="store_true",
        help="Treat warnings as errors and disable tolerant parsing.",
    )
    convert_parser.add_argument(
        "--module",
        action="store_true",
        help="Parse the input as an ES module (enables import/export syntax).",
    )
    convert_parser.set_defaults(func=convert_command)

    return parser


def main(argv: List[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    if not hasattr(args, "func"):
        parser.print_help()
        return 1
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
