"""
Rewrite top-level `await` into an immediately-invoked async arrow function.

Given

    const x = 1;
    const y = await f();
    class C {}
    g(y);

the statements before the first top-level await stay where they are, every
binding declared from that point on is hoisted as a bare `let`, and the rest
of the program runs inside the wrapper:

    const x = 1;
    let y, C;
    (async () => {
      y = await f();
      C = class C {};
      return g(y);
    })();

The last statement's value is returned from the wrapper unless it is an
assignment, whose value is already observable through the hoisted binding.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List

from analyzer import binding_identifiers, find_split_index, scan_top_level

from . import builders
from .core import IllegalTopLevelReturnError, Transform

logger = logging.getLogger(__name__)


@dataclass
class _WrapperPlan:
    hoisted: List[str] = field(default_factory=list)
    body: List[Dict[str, Any]] = field(default_factory=list)

    def hoist(self, name: str) -> None:
        # A name redeclared in the tail (`var a; var a;`) is hoisted once.
        if name not in self.hoisted:
            self.hoisted.append(name)


class TopLevelAwaitRewriter(Transform):
    """Moves everything from the first top-level await onward into an async IIFE."""

    name = "top-level-await"

    def transform_program(self, program: Dict[str, Any]) -> Dict[str, Any]:
        body = self._expect_program(program)

        scan = scan_top_level(body)
        if scan.has_illegal_return:
            raise IllegalTopLevelReturnError(scan.returns[0])
        if not scan.has_top_level_await:
            logger.debug("%s: no top-level await, leaving program unchanged", self.context.source_name)
            return program

        split_index = find_split_index(body)
        if split_index is None:
            self._warn("Top-level await detected but no statement contains it; skipped rewrite.", program)
            return program

        prefix, tail = body[:split_index], body[split_index:]
        plan = _WrapperPlan()
        for statement in tail:
            handler = getattr(self, f"_reclassify_{statement.get('type')}", None)
            if handler is None:
                plan.body.append(statement)
            else:
                handler(statement, plan)

        self._return_last_value(plan.body)

        logger.debug(
            "%s: wrapping %d statement(s) from index %d, hoisting %s",
            self.context.source_name,
            len(tail),
            split_index,
            ", ".join(plan.hoisted) or "nothing",
        )

        new_body = list(prefix)
        if plan.hoisted:
            new_body.append(
                builders.variable_declaration(
                    "let",
                    [builders.variable_declarator(builders.identifier(name)) for name in plan.hoisted],
                )
            )
        new_body.append(
            builders.expression_statement(
                builders.call_expression(builders.async_arrow_function(plan.body), [])
            )
        )
        return {**program, "body": new_body}

    def _reclassify_VariableDeclaration(self, node: Dict[str, Any], plan: _WrapperPlan) -> None:
        for declarator in node.get("declarations", []):
            target = declarator.get("id")
            for ident in binding_identifiers(target):
                plan.hoist(ident.get("name"))
            init = declarator.get("init") or builders.identifier("undefined")
            plan.body.append(
                builders.expression_statement(builders.assignment_expression(target, init))
            )

    def _reclassify_ClassDeclaration(self, node: Dict[str, Any], plan: _WrapperPlan) -> None:
        ident = node.get("id")
        if not ident:
            plan.body.append(node)
            return
        plan.hoist(ident.get("name"))
        plan.body.append(
            builders.expression_statement(
                builders.assignment_expression(
                    builders.identifier(ident.get("name")), builders.class_expression(node)
                )
            )
        )

    @staticmethod
    def _return_last_value(statements: List[Dict[str, Any]]) -> None:
        if not statements:
            return
        last = statements[-1]
        expression = last.get("expression")
        if (
            last.get("type") == "ExpressionStatement"
            and expression is not None
            and expression.get("type") != "AssignmentExpression"
        ):
            statements[-1] = builders.return_statement(expression)


__all__ = ["TopLevelAwaitRewriter"]
