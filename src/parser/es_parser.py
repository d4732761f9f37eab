"""
JavaScript parsing utilities built on top of the Python `esprima` port.

The module exposes `parse_js`, which returns the JSON-compatible ESTree AST
along with metadata describing the parse run. Consumers can decide whether to
allow recoverable parsing via the `tolerant` flag, and choose between script /
module source types to unlock import/export syntax.

esprima predates top-level await, so `await` outside an async function is a
hard syntax error for it. Scripts are therefore always parsed inside a
synthetic async function and the function body is promoted back to the
Program, with `loc` / `range` shifted back onto the caller's source text.
Modules are parsed as modules first; only when that fails is the run of
leading import declarations split off and the remainder parsed the same way
as a script.
"""

from __future__ import annotations

import hashlib
import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import esprima

logger = logging.getLogger(__name__)

_AWAIT_WRAPPER_PREFIX = "async function __top_level__() {\n"
_AWAIT_WRAPPER_SUFFIX = "\n}"
_WRAPPER_LINES = _AWAIT_WRAPPER_PREFIX.count("\n")
_LINE_PREFIX = re.compile(r"^(Error: )?Line \d+: ")


@dataclass(frozen=True)
class ParseError:
    """Represents a recoverable parsing issue detected by esprima."""

    description: str
    line: Optional[int]
    column: Optional[int]


@dataclass(frozen=True)
class ParseResult:
    """Aggregate of the output AST plus metadata about the parse run."""

    ast: Any
    errors: List[ParseError]
    source_hash: str
    source_name: str

    def to_json(self) -> str:
        """Serialise the parse result to JSON for debugging or caching."""
        payload = {
            "ast": self.ast,
            "errors": [error.__dict__ for error in self.errors],
            "source_hash": self.source_hash,
            "source_name": self.source_name,
        }
        return json.dumps(payload, ensure_ascii=False, indent=2, default=str)


def _hash_source(source: str) -> str:
    """Create a deterministic hash for cache keying."""
    return hashlib.sha256(source.encode("utf-8")).hexdigest()


def _error_field(error: Any, name: str) -> Any:
    # Tolerated errors arrive as dicts from `toDict()`, raised ones as `esprima.Error`.
    if isinstance(error, dict):
        return error.get(name)
    return getattr(error, name, None)


def _describe(error: Any) -> str:
    description = _error_field(error, "description")
    if description:
        return description
    # esprima folds the description into "Line N: ..." and drops the field itself.
    message = _LINE_PREFIX.sub("", str(_error_field(error, "message") or ""))
    return message or "Failed to parse source."


def _make_error(description: str, *, index: Optional[int], line: Optional[int], column: Optional[int]) -> esprima.Error:
    error = esprima.Error(
        f"Line {line}: {description}" if line is not None else description,
        index=index,
        lineNumber=line,
        column=column,
    )
    error.description = description
    return error


def _shift_error(error: Any, text: str) -> esprima.Error:
    """Rebase an error reported inside the wrapper onto `text` coordinates."""
    line = _error_field(error, "lineNumber")
    if line is not None:
        # Errors on the closing wrapper line belong to the end of the input.
        line = min(max(line - _WRAPPER_LINES, 1), text.count("\n") + 1)
    index = _error_field(error, "index")
    if index is not None:
        index = min(max(index - len(_AWAIT_WRAPPER_PREFIX), 0), len(text))
    return _make_error(_describe(error), index=index, line=line, column=_error_field(error, "column"))


def _relocate(node: Any, *, line_offset: int, range_offset: int, seen: set) -> None:
    """Shift `loc` lines and `range` offsets of every node in place."""
    if isinstance(node, list):
        for element in node:
            _relocate(element, line_offset=line_offset, range_offset=range_offset, seen=seen)
        return
    if not isinstance(node, dict):
        return

    loc = node.get("loc")
    if isinstance(loc, dict) and id(loc) not in seen:
        seen.add(id(loc))
        for key in ("start", "end"):
            position = loc.get(key)
            if isinstance(position, dict) and id(position) not in seen and position.get("line") is not None:
                seen.add(id(position))
                position["line"] -= line_offset
    span = node.get("range")
    if isinstance(span, (list, tuple)) and id(span) not in seen:
        shifted = [offset - range_offset for offset in span]
        seen.add(id(shifted))
        node["range"] = shifted

    for key, value in node.items():
        if key in {"loc", "range"}:
            continue
        _relocate(value, line_offset=line_offset, range_offset=range_offset, seen=seen)


def _unwrap_top_level(wrapped: Dict[str, Any], text: str) -> Dict[str, Any]:
    """Promote the synthetic async function body to the Program body."""
    function_node = wrapped["body"][0]
    program: Dict[str, Any] = {
        "type": "Program",
        "sourceType": "script",
        "body": function_node.get("body", {}).get("body", []),
    }
    if "comments" in wrapped:
        program["comments"] = wrapped["comments"]
    _relocate(
        program,
        line_offset=_WRAPPER_LINES,
        range_offset=len(_AWAIT_WRAPPER_PREFIX),
        seen=set(),
    )
    if "range" in wrapped:
        program["range"] = [0, len(text)]
    if "errors" in wrapped:
        program["errors"] = [_shift_error(error, text).toDict() for error in wrapped["errors"]]
    return program


def _parse_wrapped(text: str, options: Dict[str, Any]) -> Dict[str, Any]:
    """Parse `text` as the body of an async function and return it as a Program."""
    wrapped_text = f"{_AWAIT_WRAPPER_PREFIX}{text}{_AWAIT_WRAPPER_SUFFIX}"
    try:
        wrapped = esprima.parseScript(wrapped_text, **options).toDict()
    except esprima.Error as exc:
        raise _shift_error(exc, text) from exc

    body = wrapped.get("body", [])
    function_node = body[0]
    if len(body) != 1 or function_node["range"][1] != len(wrapped_text):
        # A stray `}` in the input closed the wrapper early.
        end = function_node["loc"]["end"]
        raise _make_error(
            "Unexpected token }",
            index=function_node["range"][1] - 1 - len(_AWAIT_WRAPPER_PREFIX),
            line=end["line"] - _WRAPPER_LINES,
            column=end["column"] - 1,
        )
    return _unwrap_top_level(wrapped, text)


def _token_field(token: Any, name: str) -> Any:
    if isinstance(token, dict):
        return token.get(name)
    return getattr(token, name, None)


def _leading_imports_end(source: str) -> int:
    """Offset just past the import declarations that open a module."""
    tokens = list(esprima.tokenize(source, range=True))
    end = 0
    index = 0
    while index < len(tokens):
        token = tokens[index]
        if _token_field(token, "type") != "Keyword" or _token_field(token, "value") != "import":
            break
        following = tokens[index + 1] if index + 1 < len(tokens) else None
        # `import(...)` and `import.meta` are expressions, not declarations.
        if following is None or _token_field(following, "value") in {"(", "."}:
            break
        index += 1
        while index < len(tokens) and _token_field(tokens[index], "type") != "String":
            index += 1
        if index == len(tokens):
            break
        end = _token_field(tokens[index], "range")[1]
        index += 1
        if index < len(tokens) and _token_field(tokens[index], "value") == ";":
            end = _token_field(tokens[index], "range")[1]
            index += 1
    return end


def _parse_module_with_top_level_await(source: str, options: Dict[str, Any]) -> Dict[str, Any]:
    """
    Parse a module whose body uses top-level await.

    The leading import declarations are parsed as a module of their own. The
    rest is parsed inside the async wrapper with the import text blanked out,
    so every offset and line number already matches `source`.
    """
    end = _leading_imports_end(source)
    head = esprima.parseModule(source[:end], **options).toDict()
    blanked = re.sub(r"[^\n]", " ", source[:end])
    tail = _parse_wrapped(blanked + source[end:], options)

    program: Dict[str, Any] = {
        "type": "Program",
        "sourceType": "module",
        "body": head.get("body", []) + tail["body"],
    }
    if "range" in tail:
        program["range"] = [0, len(source)]
    if "comments" in head or "comments" in tail:
        program["comments"] = head.get("comments", []) + tail.get("comments", [])
    if "errors" in head or "errors" in tail:
        program["errors"] = list(head.get("errors", [])) + list(tail.get("errors", []))
    return program


def _parse_module(source: str, options: Dict[str, Any], *, allow_top_level_await: bool, source_name: str) -> Dict[str, Any]:
    if not allow_top_level_await:
        return esprima.parseModule(source, **options).toDict()
    # Tolerant module parsing accepts `await (x)` as a call to `await`, so the
    # first attempt must be strict.
    try:
        return esprima.parseModule(source, **dict(options, tolerant=False)).toDict()
    except esprima.Error as exc:
        logger.debug("module parse of %s failed (%s); retrying with top-level await", source_name, exc)
    try:
        return _parse_module_with_top_level_await(source, options)
    except esprima.Error as exc:
        logger.debug("top-level await parse of %s failed: %s", source_name, exc)
    return esprima.parseModule(source, **options).toDict()


def _collect_errors(raw_ast: Any) -> List[ParseError]:
    errors: List[ParseError] = []
    if not isinstance(raw_ast, dict):
        return errors
    # Collect recoverable errors reported by esprima in tolerant mode.
    for error in raw_ast.get("errors", []):
        errors.append(
            ParseError(
                description=_describe(error),
                line=_error_field(error, "lineNumber"),
                column=_error_field(error, "column"),
            )
        )
    return errors


def parse_js(
    source: str,
    *,
    source_name: str = "<input>",
    tolerant: bool = True,
    source_type: str = "script",
    allow_top_level_await: bool = True,
) -> ParseResult:
    """
    Parse JavaScript source text into an esprima AST.

    Args:
        source: Raw JavaScript source code.
        source_name: Optional label used for diagnostics (defaults to `<input>`).
        tolerant: When True, esprima performs error recovery instead of raising.
        source_type: `"script"` or `"module"`; modules enable import/export.
        allow_top_level_await: Accept `await` (and, in scripts, `return`)
            outside any function.

    Returns:
        ParseResult containing the AST, any recoverable errors, and metadata.

    Raises:
        esprima.Error: If parsing fails and `tolerant` is False. Line numbers
            always refer to `source`.
    """
    options = dict(loc=True, range=True, comment=True, tolerant=tolerant)

    try:
        if source_type == "module":
            raw_ast = _parse_module(
                source, options, allow_top_level_await=allow_top_level_await, source_name=source_name
            )
        elif allow_top_level_await:
            raw_ast = _parse_wrapped(source, options)
        else:
            raw_ast = esprima.parseScript(source, **options).toDict()
    except esprima.Error as exc:
        # Re-raise when caller opted into strict error handling.
        if not tolerant:
            raise
        logger.debug("esprima failed on %s: %s", source_name, exc)
        # When tolerant parsing fails hard, convert exception into diagnostics.
        errors = [
            ParseError(
                description=_describe(exc),
                line=getattr(exc, "lineNumber", None),
                column=getattr(exc, "column", None),
            )
        ]
        return ParseResult(
            ast=None,
            errors=errors,
            source_hash=_hash_source(source),
            source_name=source_name,
        )

    errors = _collect_errors(raw_ast) if tolerant else []

    return ParseResult(
        ast=raw_ast,
        errors=errors,
        source_hash=_hash_source(source),
        source_name=source_name,
    )


__all__ = ["ParseResult", "ParseError", "parse_js"]
