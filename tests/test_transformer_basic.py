import copy
from pathlib import Path

import pytest

from frontend import run_frontend
from transformer import (
    ImportDesugarer,
    TransformContext,
    TransformError,
    transform_program,
)


def _load_ast(relative_path: str, *, source_type: str = "module"):
    source_path = Path(relative_path)
    source = source_path.read_text(encoding="utf-8")
    frontend_result = run_frontend(
        source, source_name=str(source_path), analyze=False, source_type=source_type
    )
    assert frontend_result.parse.ast is not None
    return frontend_result.parse.ast


def _desugarer(loader: str = "require") -> ImportDesugarer:
    return ImportDesugarer(context=TransformContext(source_name="<test>", loader=loader))


def _import(source, *specifiers):
    return {
        "type": "ImportDeclaration",
        "source": {"type": "Literal", "value": source, "raw": f'"{source}"'},
        "specifiers": list(specifiers),
    }


def _specifier(kind, local, imported=None):
    node = {"type": kind, "local": {"type": "Identifier", "name": local}}
    if imported is not None:
        node["imported"] = {"type": "Identifier", "name": imported}
    return node


def _assert_require(call, source, loader="require"):
    assert call["type"] == "CallExpression"
    assert call["callee"] == {"type": "Identifier", "name": loader}
    assert [arg["value"] for arg in call["arguments"]] == [source]


def test_side_effect_import_becomes_loader_call():
    statement = _desugarer().desugar_import(_import("polyfill"))

    assert statement["type"] == "ExpressionStatement"
    _assert_require(statement["expression"], "polyfill")


def test_default_import_becomes_const_binding():
    statement = _desugarer().desugar_import(
        _import("s", _specifier("ImportDefaultSpecifier", "x"))
    )

    assert statement["type"] == "VariableDeclaration"
    assert statement["kind"] == "const"
    (declarator,) = statement["declarations"]
    assert declarator["id"] == {"type": "Identifier", "name": "x"}
    _assert_require(declarator["init"], "s")


def test_named_imports_use_shorthand_only_when_names_match():
    statement = _desugarer().desugar_import(
        _import(
            "s",
            _specifier("ImportSpecifier", "a", imported="a"),
            _specifier("ImportSpecifier", "c", imported="b"),
        )
    )

    (declarator,) = statement["declarations"]
    pattern = declarator["id"]
    assert pattern["type"] == "ObjectPattern"
    props = [
        (p["key"]["name"], p["value"]["name"], p["shorthand"]) for p in pattern["properties"]
    ]
    assert props == [("a", "a", True), ("b", "c", False)]
    _assert_require(declarator["init"], "s")


def test_specifier_groups_are_ordered_default_namespace_named():
    statement = _desugarer().desugar_import(
        _import(
            "s",
            _specifier("ImportSpecifier", "named", imported="named"),
            _specifier("ImportNamespaceSpecifier", "ns"),
            _specifier("ImportDefaultSpecifier", "def"),
        )
    )

    targets = [d["id"] for d in statement["declarations"]]
    assert targets[0] == {"type": "Identifier", "name": "def"}
    assert targets[1] == {"type": "Identifier", "name": "ns"}
    assert targets[2]["type"] == "ObjectPattern"
    inits = [d["init"] for d in statement["declarations"]]
    for init in inits:
        _assert_require(init, "s")
    assert inits[0] is not inits[1]


def test_custom_loader_name():
    statement = _desugarer(loader="__load").desugar_import(
        _import("s", _specifier("ImportDefaultSpecifier", "x"))
    )

    _assert_require(statement["declarations"][0]["init"], "s", loader="__load")


def test_import_without_source_is_rejected():
    node = {"type": "ImportDeclaration", "specifiers": [], "loc": {"start": {"line": 3, "column": 4}}}

    with pytest.raises(TransformError, match=r"line 3, column 4"):
        _desugarer().desugar_import(node)


def test_transformer_handles_mixed_default_and_named_imports():
    program = _load_ast("tests/cases/mixed_import.js")
    result = transform_program(program, source_name="mixed_import.js")

    assert result.applied == ["imports"]
    (declaration,) = result.program["body"]
    assert declaration["type"] == "VariableDeclaration"
    assert declaration["kind"] == "const"
    default, named = declaration["declarations"]
    assert default["id"]["name"] == "defaultExport"
    assert [p["key"]["name"] for p in named["id"]["properties"]] == ["named1", "named2"]


def test_transformer_handles_module_imports():
    program = _load_ast("tests/cases/module_import.js")
    original = copy.deepcopy(program)
    result = transform_program(program, source_name="module_import.js")

    body = result.program["body"]
    assert [stmt["type"] for stmt in body] == [
        "ExpressionStatement",
        "VariableDeclaration",
        "VariableDeclaration",
        "VariableDeclaration",
        "ExportNamedDeclaration",
    ]
    assert body[4] is program["body"][4]
    assert not any(stmt["type"] == "ImportDeclaration" for stmt in body)
    assert program == original


def test_desugaring_is_idempotent():
    program = _load_ast("tests/cases/module_import.js")
    first = transform_program(program, transforms=["imports"])
    second = transform_program(first.program, transforms=["imports"])

    assert second.applied == []
    assert second.program is first.program


def test_program_without_imports_is_returned_as_is():
    program = _load_ast("tests/cases/tla_declarations.js", source_type="script")

    assert _desugarer().transform_program(program) is program


def test_unknown_transform_name():
    program = _load_ast("tests/cases/named_import.js")

    with pytest.raises(TransformError, match="Unknown transform"):
        transform_program(program, transforms=["imports", "exports"])


def test_non_program_root_is_rejected():
    with pytest.raises(TransformError, match="Expected Program"):
        _desugarer().transform_program({"type": "BlockStatement", "body": []})
