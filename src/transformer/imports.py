"""
Desugar ES module `import` declarations into CommonJS `require` calls.

    import "polyfill";                 ->  require("polyfill");
    import fs from "fs";               ->  const fs = require("fs");
    import * as path from "path";      ->  const path = require("path");
    import { a, b as c } from "m";     ->  const { a, b: c } = require("m");

Default, namespace and named specifiers of one declaration end up as separate
declarators of a single `const`, in that order, each with its own loader call.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List

from . import builders
from .core import Transform, TransformError

logger = logging.getLogger(__name__)


class ImportDesugarer(Transform):
    """Rewrites every top-level ImportDeclaration of a Program."""

    name = "imports"

    def transform_program(self, program: Dict[str, Any]) -> Dict[str, Any]:
        body = self._expect_program(program)
        if not any(stmt.get("type") == "ImportDeclaration" for stmt in body):
            return program

        rewritten = [
            self.desugar_import(stmt) if stmt.get("type") == "ImportDeclaration" else stmt
            for stmt in body
        ]
        logger.debug(
            "%s: desugared %d import declaration(s)",
            self.context.source_name,
            sum(1 for stmt in body if stmt.get("type") == "ImportDeclaration"),
        )
        return {**program, "body": rewritten}

    def desugar_import(self, node: Dict[str, Any]) -> Dict[str, Any]:
        """Return the replacement statement for a single ImportDeclaration."""
        source = (node.get("source") or {}).get("value")
        if not isinstance(source, str):
            raise TransformError("ImportDeclaration missing string source.", node)

        specifiers = node.get("specifiers", [])
        if not specifiers:
            return builders.expression_statement(self._require(source))

        defaults = [s for s in specifiers if s.get("type") == "ImportDefaultSpecifier"]
        namespaces = [s for s in specifiers if s.get("type") == "ImportNamespaceSpecifier"]
        named = [s for s in specifiers if s.get("type") == "ImportSpecifier"]

        declarations: List[Dict[str, Any]] = []
        for group in (defaults, namespaces):
            if group:
                # At most one default and one namespace specifier per declaration.
                declarations.append(
                    builders.variable_declarator(
                        builders.identifier(self._local_name(group[0])),
                        self._require(source),
                    )
                )

        if named:
            properties = []
            for specifier in named:
                imported = (specifier.get("imported") or {}).get("name")
                local = self._local_name(specifier)
                properties.append(
                    builders.object_property(
                        builders.identifier(imported or local),
                        builders.identifier(local),
                        shorthand=imported is None or imported == local,
                    )
                )
            declarations.append(
                builders.variable_declarator(
                    builders.object_pattern(properties), self._require(source)
                )
            )

        return builders.variable_declaration("const", declarations)

    def _require(self, source: str) -> Dict[str, Any]:
        return builders.loader_call(self.context.loader, source)

    @staticmethod
    def _local_name(specifier: Dict[str, Any]) -> str:
        local = specifier.get("local")
        if not isinstance(local, dict) or local.get("type") != "Identifier":
            raise TransformError("Import specifier must bind an Identifier.", specifier)
        return local.get("name")


__all__ = ["ImportDesugarer"]
