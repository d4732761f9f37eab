"""Constructors for the ESTree nodes the desugaring passes synthesise."""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

Node = Dict[str, Any]


def identifier(name: str) -> Node:
    return {"type": "Identifier", "name": name}


def string_literal(value: str) -> Node:
    return {"type": "Literal", "value": value, "raw": json.dumps(value, ensure_ascii=False)}


def call_expression(callee: Node, arguments: List[Node]) -> Node:
    return {"type": "CallExpression", "callee": callee, "arguments": arguments}


def expression_statement(expression: Node) -> Node:
    return {"type": "ExpressionStatement", "expression": expression}


def return_statement(argument: Optional[Node]) -> Node:
    node: Node = {"type": "ReturnStatement"}
    if argument is not None:
        node["argument"] = argument
    return node


def block_statement(body: List[Node]) -> Node:
    return {"type": "BlockStatement", "body": body}


def variable_declarator(target: Node, init: Optional[Node] = None) -> Node:
    node: Node = {"type": "VariableDeclarator", "id": target}
    if init is not None:
        node["init"] = init
    return node


def variable_declaration(kind: str, declarations: List[Node]) -> Node:
    return {"type": "VariableDeclaration", "kind": kind, "declarations": declarations}


def object_property(key: Node, value: Node, *, shorthand: bool = False) -> Node:
    return {
        "type": "Property",
        "key": key,
        "computed": False,
        "value": value,
        "kind": "init",
        "method": False,
        "shorthand": shorthand,
    }


def object_pattern(properties: List[Node]) -> Node:
    return {"type": "ObjectPattern", "properties": properties}


def assignment_expression(left: Node, right: Node, operator: str = "=") -> Node:
    return {"type": "AssignmentExpression", "operator": operator, "left": left, "right": right}


def async_arrow_function(body: List[Node]) -> Node:
    return {
        "type": "ArrowFunctionExpression",
        "params": [],
        "body": block_statement(body),
        "generator": False,
        "expression": False,
        "async": True,
    }


def class_expression(declaration: Node) -> Node:
    """Expression form of a ClassDeclaration, keeping its name and body."""
    return {**declaration, "type": "ClassExpression"}


def loader_call(loader: str, source: str) -> Node:
    return call_expression(identifier(loader), [string_literal(source)])
