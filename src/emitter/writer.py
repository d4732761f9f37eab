"""
Serialize ESTree Program dicts back to JavaScript source text.

The writer covers the node set esprima produces for ES2017 scripts and
modules plus the nodes the desugaring passes synthesise. Expressions are
parenthesised from an operator precedence table rather than from the source,
so rewritten trees print correctly even when nodes were moved between
contexts. Layout follows Babel's generator closely enough that outputs read
like `@babel/core` results: two-space indent, multi-line object literals and
patterns, and declarators with initialisers split one per line.
"""

from __future__ import annotations

import io
import json
import re
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Dict, Iterator, List, Optional

Node = Dict[str, Any]

_SEQUENCE = 0
_YIELD = 1
_ASSIGN = 2
_CONDITIONAL = 3
_UNARY = 15
_UPDATE = 16
_CALL = 17
_NEW = 18
_MEMBER = 19
_PRIMARY = 20

_BINARY_PRECEDENCE = {
    "||": 4,
    "&&": 5,
    "|": 6,
    "^": 7,
    "&": 8,
    "==": 9,
    "!=": 9,
    "===": 9,
    "!==": 9,
    "<": 10,
    ">": 10,
    "<=": 10,
    ">=": 10,
    "in": 10,
    "instanceof": 10,
    "<<": 11,
    ">>": 11,
    ">>>": 11,
    "+": 12,
    "-": 12,
    "*": 13,
    "/": 13,
    "%": 13,
    "**": 14,
}

_NODE_PRECEDENCE = {
    "SequenceExpression": _SEQUENCE,
    "YieldExpression": _YIELD,
    "AssignmentExpression": _ASSIGN,
    "ArrowFunctionExpression": _ASSIGN,
    "ConditionalExpression": _CONDITIONAL,
    "UnaryExpression": _UNARY,
    "AwaitExpression": _UNARY,
    "UpdateExpression": _UPDATE,
    "CallExpression": _CALL,
    "NewExpression": _NEW,
    "MemberExpression": _MEMBER,
    "TaggedTemplateExpression": _MEMBER,
}

# An expression statement may not begin with these tokens.
_AMBIGUOUS_STATEMENT_START = re.compile(r"^(\{|function\b|async\s+function\b|class\b|let\s*\[)")


class EmitError(RuntimeError):
    """Raised when a node kind has no JavaScript rendering."""


@dataclass(frozen=True)
class EmitOptions:
    indent: str = "  "
    trailing_newline: bool = True


@dataclass(frozen=True)
class EmitResult:
    source: str


def _calls_in_chain(callee: Node) -> bool:
    """True when a call sits inside the member chain of a `new` callee."""
    node = callee
    while True:
        kind = node.get("type")
        if kind == "MemberExpression":
            node = node.get("object")
        elif kind == "TaggedTemplateExpression":
            node = node.get("tag")
        else:
            return kind == "CallExpression" and node is not callee


class _Writer:
    def __init__(self, options: EmitOptions) -> None:
        self.options = options
        self._level = 0

    # ------------------------------------------------------------------ helpers

    def _indent(self) -> str:
        return self.options.indent * self._level

    @contextmanager
    def _nested(self) -> Iterator[None]:
        self._level += 1
        try:
            yield
        finally:
            self._level -= 1

    def _lines(self, statements: List[Node]) -> List[str]:
        return [self._indent() + self.statement(stmt) for stmt in statements]

    def _block(self, statements: List[Node]) -> str:
        if not statements:
            return "{}"
        with self._nested():
            lines = self._lines(statements)
        return "{\n" + "\n".join(lines) + "\n" + self._indent() + "}"

    def _dispatch(self, node: Node, kind: str) -> str:
        handler = getattr(self, f"_emit_{node.get('type')}", None)
        if handler is None:
            raise EmitError(f"Cannot emit {kind} node: {node.get('type')}")
        return handler(node)

    @staticmethod
    def _precedence(node: Node) -> int:
        node_type = node.get("type")
        if node_type in {"BinaryExpression", "LogicalExpression"}:
            return _BINARY_PRECEDENCE.get(node.get("operator"), _ASSIGN)
        return _NODE_PRECEDENCE.get(node_type, _PRIMARY)

    @staticmethod
    def _is_async(node: Node) -> bool:
        return bool(node.get("async") or node.get("isAsync"))

    # ------------------------------------------------------------ entry points

    def program(self, node: Node) -> str:
        return "\n".join(self._lines(node.get("body", [])))

    def statement(self, node: Node) -> str:
        return self._dispatch(node, "statement")

    def expression(self, node: Optional[Node], min_precedence: int = _SEQUENCE) -> str:
        if node is None:
            return ""
        text = self._dispatch(node, "expression")
        if self._precedence(node) < min_precedence:
            return f"({text})"
        return text

    # ----------------------------------------------------------- statement nodes

    def _emit_ExpressionStatement(self, node: Node) -> str:
        text = self.expression(node.get("expression"))
        if _AMBIGUOUS_STATEMENT_START.match(text):
            text = f"({text})"
        return f"{text};"

    def _emit_BlockStatement(self, node: Node) -> str:
        return self._block(node.get("body", []))

    def _emit_EmptyStatement(self, node: Node) -> str:
        return ";"

    def _emit_DebuggerStatement(self, node: Node) -> str:
        return "debugger;"

    def _declarations(self, node: Node) -> str:
        declarators = node.get("declarations", [])
        kind = node.get("kind", "var")
        if len(declarators) > 1 and any(d.get("init") is not None for d in declarators):
            with self._nested():
                parts = [self._emit_VariableDeclarator(d) for d in declarators]
                separator = ",\n" + self._indent()
            return f"{kind} " + separator.join(parts)
        return f"{kind} " + ", ".join(self._emit_VariableDeclarator(d) for d in declarators)

    def _emit_VariableDeclaration(self, node: Node) -> str:
        return self._declarations(node) + ";"

    def _emit_VariableDeclarator(self, node: Node) -> str:
        target = self.expression(node.get("id"), _ASSIGN)
        init = node.get("init")
        if init is None:
            return target
        return f"{target} = {self.expression(init, _ASSIGN)}"

    def _emit_ReturnStatement(self, node: Node) -> str:
        argument = node.get("argument")
        if argument is None:
            return "return;"
        return f"return {self.expression(argument)};"

    def _emit_ThrowStatement(self, node: Node) -> str:
        return f"throw {self.expression(node.get('argument'))};"

    def _emit_BreakStatement(self, node: Node) -> str:
        label = node.get("label")
        return f"break {label.get('name')};" if label else "break;"

    def _emit_ContinueStatement(self, node: Node) -> str:
        label = node.get("label")
        return f"continue {label.get('name')};" if label else "continue;"

    def _emit_LabeledStatement(self, node: Node) -> str:
        return f"{node['label']['name']}: {self.statement(node.get('body'))}"

    def _emit_IfStatement(self, node: Node) -> str:
        text = f"if ({self.expression(node.get('test'))}) {self.statement(node.get('consequent'))}"
        alternate = node.get("alternate")
        if alternate is not None:
            text += f" else {self.statement(alternate)}"
        return text

    def _for_head_part(self, node: Optional[Node]) -> str:
        if node is None:
            return ""
        if node.get("type") == "VariableDeclaration":
            return self._declarations(node)
        return self.expression(node)

    def _emit_ForStatement(self, node: Node) -> str:
        init = self._for_head_part(node.get("init"))
        test = self.expression(node.get("test"))
        update = self.expression(node.get("update"))
        head = init + ";" + (f" {test}" if test else "") + ";" + (f" {update}" if update else "")
        return f"for ({head}) {self.statement(node.get('body'))}"

    def _emit_ForInStatement(self, node: Node) -> str:
        left = self._for_head_part(node.get("left"))
        return f"for ({left} in {self.expression(node.get('right'))}) {self.statement(node.get('body'))}"

    def _emit_ForOfStatement(self, node: Node) -> str:
        left = self._for_head_part(node.get("left"))
        right = self.expression(node.get("right"), _ASSIGN)
        return f"for ({left} of {right}) {self.statement(node.get('body'))}"

    def _emit_WhileStatement(self, node: Node) -> str:
        return f"while ({self.expression(node.get('test'))}) {self.statement(node.get('body'))}"

    def _emit_DoWhileStatement(self, node: Node) -> str:
        return f"do {self.statement(node.get('body'))} while ({self.expression(node.get('test'))});"

    def _emit_TryStatement(self, node: Node) -> str:
        text = f"try {self.statement(node.get('block'))}"
        handler = node.get("handler")
        if handler is not None:
            param = handler.get("param")
            clause = f" ({self.expression(param)})" if param is not None else ""
            text += f" catch{clause} {self.statement(handler.get('body'))}"
        finalizer = node.get("finalizer")
        if finalizer is not None:
            text += f" finally {self.statement(finalizer)}"
        return text

    def _emit_SwitchStatement(self, node: Node) -> str:
        discriminant = self.expression(node.get("discriminant"))
        cases = node.get("cases", [])
        if not cases:
            return f"switch ({discriminant}) {{}}"
        lines: List[str] = []
        with self._nested():
            for case in cases:
                test = case.get("test")
                label = f"case {self.expression(test)}:" if test is not None else "default:"
                lines.append(self._indent() + label)
                with self._nested():
                    lines.extend(self._lines(case.get("consequent", [])))
        return f"switch ({discriminant}) {{\n" + "\n".join(lines) + "\n" + self._indent() + "}"

    def _emit_FunctionDeclaration(self, node: Node) -> str:
        return self._function(node)

    def _emit_ClassDeclaration(self, node: Node) -> str:
        return self._class(node)

    # ------------------------------------------------------------ module nodes

    def _emit_ImportDeclaration(self, node: Node) -> str:
        source = self.expression(node.get("source"))
        specifiers = node.get("specifiers", [])
        if not specifiers:
            return f"import {source};"
        parts: List[str] = []
        named: List[str] = []
        for specifier in specifiers:
            local = specifier["local"]["name"]
            if specifier.get("type") == "ImportDefaultSpecifier":
                parts.append(local)
            elif specifier.get("type") == "ImportNamespaceSpecifier":
                parts.append(f"* as {local}")
            else:
                imported = specifier["imported"]["name"]
                named.append(local if imported == local else f"{imported} as {local}")
        if named:
            parts.append("{ " + ", ".join(named) + " }")
        return f"import {', '.join(parts)} from {source};"

    def _export_specifiers(self, node: Node) -> str:
        names = []
        for specifier in node.get("specifiers", []):
            local = specifier["local"]["name"]
            exported = specifier["exported"]["name"]
            names.append(local if local == exported else f"{local} as {exported}")
        return "{ " + ", ".join(names) + " }" if names else "{}"

    def _emit_ExportNamedDeclaration(self, node: Node) -> str:
        declaration = node.get("declaration")
        if declaration is not None:
            return f"export {self.statement(declaration)}"
        text = f"export {self._export_specifiers(node)}"
        if node.get("source") is not None:
            text += f" from {self.expression(node.get('source'))}"
        return text + ";"

    def _emit_ExportDefaultDeclaration(self, node: Node) -> str:
        declaration = node.get("declaration")
        if declaration.get("type") in {"FunctionDeclaration", "ClassDeclaration"}:
            return f"export default {self.statement(declaration)}"
        return f"export default {self.expression(declaration, _ASSIGN)};"

    def _emit_ExportAllDeclaration(self, node: Node) -> str:
        return f"export * from {self.expression(node.get('source'))};"

    # --------------------------------------------------------- expression nodes

    def _emit_Identifier(self, node: Node) -> str:
        return node.get("name")

    def _emit_ThisExpression(self, node: Node) -> str:
        return "this"

    def _emit_Super(self, node: Node) -> str:
        return "super"

    def _emit_Import(self, node: Node) -> str:
        return "import"

    def _emit_MetaProperty(self, node: Node) -> str:
        return f"{node['meta']['name']}.{node['property']['name']}"

    def _emit_Literal(self, node: Node) -> str:
        raw = node.get("raw")
        if raw is not None:
            return raw
        value = node.get("value")
        if value is None:
            return "null"
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, str):
            return json.dumps(value, ensure_ascii=False)
        return repr(value)

    def _emit_TemplateLiteral(self, node: Node) -> str:
        buffer = io.StringIO()
        buffer.write("`")
        expressions = node.get("expressions", [])
        for index, quasi in enumerate(node.get("quasis", [])):
            buffer.write((quasi.get("value") or {}).get("raw", ""))
            if index < len(expressions):
                buffer.write("${" + self.expression(expressions[index]) + "}")
        buffer.write("`")
        return buffer.getvalue()

    def _emit_TaggedTemplateExpression(self, node: Node) -> str:
        return self.expression(node.get("tag"), _MEMBER) + self._emit_TemplateLiteral(node["quasi"])

    def _emit_ArrayExpression(self, node: Node) -> str:
        elements = node.get("elements", [])
        rendered = [self.expression(element, _ASSIGN) for element in elements]
        if elements and elements[-1] is None:
            # A trailing hole needs its own comma to survive.
            rendered.append("")
        return "[" + ", ".join(rendered) + "]"

    _emit_ArrayPattern = _emit_ArrayExpression

    def _emit_ObjectExpression(self, node: Node) -> str:
        properties = node.get("properties", [])
        if not properties:
            return "{}"
        with self._nested():
            lines = [self._indent() + self._property(prop) for prop in properties]
        return "{\n" + ",\n".join(lines) + "\n" + self._indent() + "}"

    _emit_ObjectPattern = _emit_ObjectExpression

    def _property_key(self, node: Node) -> str:
        key = node.get("key")
        if node.get("computed"):
            return f"[{self.expression(key, _ASSIGN)}]"
        return self.expression(key)

    def _property(self, node: Node) -> str:
        if node.get("type") != "Property":
            return self.expression(node, _ASSIGN)
        value = node.get("value")
        if node.get("shorthand"):
            return self.expression(value, _ASSIGN)
        key = self._property_key(node)
        kind = node.get("kind")
        if kind in {"get", "set"}:
            return f"{kind} {key}{self._function_tail(value)}"
        if node.get("method"):
            return self._method_prefix(value) + key + self._function_tail(value)
        return f"{key}: {self.expression(value, _ASSIGN)}"

    def _emit_SpreadElement(self, node: Node) -> str:
        return "..." + self.expression(node.get("argument"), _ASSIGN)

    _emit_RestElement = _emit_SpreadElement

    def _emit_AssignmentPattern(self, node: Node) -> str:
        return f"{self.expression(node.get('left'), _ASSIGN)} = {self.expression(node.get('right'), _ASSIGN)}"

    def _emit_AssignmentExpression(self, node: Node) -> str:
        left = self.expression(node.get("left"), _ASSIGN)
        right = self.expression(node.get("right"), _ASSIGN)
        return f"{left} {node.get('operator', '=')} {right}"

    def _emit_SequenceExpression(self, node: Node) -> str:
        return ", ".join(self.expression(e, _ASSIGN) for e in node.get("expressions", []))

    def _emit_ConditionalExpression(self, node: Node) -> str:
        test = self.expression(node.get("test"), _CONDITIONAL + 1)
        consequent = self.expression(node.get("consequent"), _ASSIGN)
        alternate = self.expression(node.get("alternate"), _ASSIGN)
        return f"{test} ? {consequent} : {alternate}"

    def _emit_BinaryExpression(self, node: Node) -> str:
        operator = node.get("operator")
        precedence = _BINARY_PRECEDENCE.get(operator, _ASSIGN)
        if operator == "**":
            # Right-associative, and a unary operand on the left is a syntax error.
            left = self.expression(node.get("left"), _UNARY + 1)
            right = self.expression(node.get("right"), precedence)
        else:
            left = self.expression(node.get("left"), precedence)
            right = self.expression(node.get("right"), precedence + 1)
        return f"{left} {operator} {right}"

    _emit_LogicalExpression = _emit_BinaryExpression

    def _emit_UnaryExpression(self, node: Node) -> str:
        operator = node.get("operator")
        argument = self.expression(node.get("argument"), _UNARY)
        if operator.isalpha() or (operator in {"+", "-"} and argument.startswith(operator)):
            return f"{operator} {argument}"
        return operator + argument

    def _emit_UpdateExpression(self, node: Node) -> str:
        operator = node.get("operator")
        if node.get("prefix"):
            return operator + self.expression(node.get("argument"), _UNARY)
        return self.expression(node.get("argument"), _CALL) + operator

    def _emit_AwaitExpression(self, node: Node) -> str:
        return "await " + self.expression(node.get("argument"), _UNARY)

    def _emit_YieldExpression(self, node: Node) -> str:
        text = "yield*" if node.get("delegate") else "yield"
        argument = node.get("argument")
        if argument is not None:
            text += " " + self.expression(argument, _YIELD)
        return text

    def _arguments(self, node: Node) -> str:
        return "(" + ", ".join(self.expression(a, _ASSIGN) for a in node.get("arguments", [])) + ")"

    def _emit_CallExpression(self, node: Node) -> str:
        return self.expression(node.get("callee"), _CALL) + self._arguments(node)

    def _emit_NewExpression(self, node: Node) -> str:
        callee = node.get("callee")
        text = self.expression(callee, _MEMBER)
        if _calls_in_chain(callee):
            # `new a().b()` would bind the arguments to `a`.
            text = f"({text})"
        return "new " + text + self._arguments(node)

    def _emit_MemberExpression(self, node: Node) -> str:
        target = node.get("object")
        text = self.expression(target, _CALL)
        if target.get("type") == "Literal" and re.fullmatch(r"\d+", str(target.get("raw", ""))):
            text = f"({text})"
        prop = node.get("property")
        if node.get("computed"):
            return f"{text}[{self.expression(prop)}]"
        return f"{text}.{self.expression(prop)}"

    def _params(self, node: Node) -> str:
        return "(" + ", ".join(self.expression(p, _ASSIGN) for p in node.get("params", [])) + ")"

    def _function_tail(self, node: Node) -> str:
        return f"{self._params(node)} {self.statement(node.get('body'))}"

    def _method_prefix(self, node: Node) -> str:
        prefix = "async " if self._is_async(node) else ""
        return prefix + ("*" if node.get("generator") else "")

    def _function(self, node: Node) -> str:
        text = "async function" if self._is_async(node) else "function"
        if node.get("generator"):
            text += "*"
        ident = node.get("id")
        if ident:
            text += " " + ident.get("name")
        return text + self._function_tail(node)

    _emit_FunctionExpression = _function

    def _emit_ArrowFunctionExpression(self, node: Node) -> str:
        prefix = "async " if self._is_async(node) else ""
        body = node.get("body")
        if body.get("type") == "BlockStatement":
            rendered = self.statement(body)
        else:
            rendered = self.expression(body, _ASSIGN)
            if rendered.startswith("{"):
                rendered = f"({rendered})"
        return f"{prefix}{self._params(node)} => {rendered}"

    def _class(self, node: Node) -> str:
        text = "class"
        ident = node.get("id")
        if ident:
            text += " " + ident.get("name")
        super_class = node.get("superClass")
        if super_class is not None:
            text += " extends " + self.expression(super_class, _CALL)
        methods = (node.get("body") or {}).get("body", [])
        if not methods:
            return text + " {}"
        with self._nested():
            lines = [self._indent() + self._method_definition(m) for m in methods]
        return text + " {\n" + "\n".join(lines) + "\n" + self._indent() + "}"

    _emit_ClassExpression = _class

    def _method_definition(self, node: Node) -> str:
        value = node.get("value")
        prefix = "static " if node.get("static") else ""
        kind = node.get("kind")
        if kind in {"get", "set"}:
            prefix += f"{kind} "
        else:
            prefix += self._method_prefix(value)
        return prefix + self._property_key(node) + self._function_tail(value)


def emit_program(program: Node, options: Optional[EmitOptions] = None) -> EmitResult:
    """
    Render an ESTree Program to JavaScript source text.

    Raises:
        EmitError: If the tree holds a node kind the writer does not support.
    """
    options = options or EmitOptions()
    if program.get("type") != "Program":
        raise EmitError(f"Expected Program node, got {program.get('type')}")

    source = _Writer(options).program(program)
    if options.trailing_newline and source:
        source += "\n"
    return EmitResult(source=source)


__all__ = ["EmitError", "EmitOptions", "EmitResult", "emit_program"]
