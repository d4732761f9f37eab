import copy
from pathlib import Path

import pytest

from frontend import run_frontend
from transformer import (
    IllegalTopLevelReturnError,
    TopLevelAwaitRewriter,
    TransformContext,
    TransformError,
    transform_program,
)


def _load_ast(relative_path: str):
    source_path = Path(relative_path)
    source = source_path.read_text(encoding="utf-8")
    frontend_result = run_frontend(source, source_name=str(source_path), analyze=False)
    assert frontend_result.parse.ast is not None
    return frontend_result.parse.ast


def _rewrite(program):
    rewriter = TopLevelAwaitRewriter(context=TransformContext(source_name="<test>"))
    return rewriter.transform_program(program)


def _hoisted_names(declaration):
    assert declaration["type"] == "VariableDeclaration"
    assert declaration["kind"] == "let"
    assert all("init" not in d for d in declaration["declarations"])
    return [d["id"]["name"] for d in declaration["declarations"]]


def _wrapper_body(statement):
    assert statement["type"] == "ExpressionStatement"
    call = statement["expression"]
    assert call["type"] == "CallExpression"
    assert call["arguments"] == []
    wrapper = call["callee"]
    assert wrapper["type"] == "ArrowFunctionExpression"
    assert wrapper["async"] is True
    assert wrapper["params"] == []
    return wrapper["body"]["body"]


def test_program_without_top_level_await_is_untouched():
    program = _load_ast("tests/cases/tla_nested_only.js")
    original = copy.deepcopy(program)

    assert _rewrite(program) is program
    assert program == original


def test_declarations_are_hoisted_from_split_point():
    program = _load_ast("tests/cases/tla_declarations.js")
    result = _rewrite(program)

    prefix, hoisted, call = result["body"]
    assert prefix is program["body"][0]
    assert _hoisted_names(hoisted) == ["y", "z"]

    body = _wrapper_body(call)
    assert [stmt["type"] for stmt in body] == ["ExpressionStatement", "ExpressionStatement"]
    first, second = (stmt["expression"] for stmt in body)
    assert first["type"] == "AssignmentExpression"
    assert first["left"]["name"] == "y"
    assert first["right"]["type"] == "AwaitExpression"
    assert second["left"]["name"] == "z"
    assert second["right"]["value"] == 3


def test_trailing_expression_is_returned():
    program = _load_ast("tests/cases/tla_prefix.js")
    result = _rewrite(program)

    assert result["body"][:2] == program["body"][:2]
    assert _hoisted_names(result["body"][2]) == ["y"]
    body = _wrapper_body(result["body"][3])
    last = body[-1]
    assert last["type"] == "ReturnStatement"
    assert last["argument"]["callee"]["property"]["name"] == "log"


def test_class_before_first_await_stays_in_prefix():
    program = _load_ast("tests/cases/tla_class.js")
    result = _rewrite(program)

    assert result["body"][0]["type"] == "ClassDeclaration"
    assert _hoisted_names(result["body"][1]) == ["instance"]


def test_class_in_tail_is_hoisted_and_assigned():
    program = _load_ast("tests/cases/tla_class_tail.js")
    result = _rewrite(program)

    hoisted, call = result["body"]
    assert _hoisted_names(hoisted) == ["config", "Service"]
    body = _wrapper_body(call)
    assignment = body[1]["expression"]
    assert assignment["type"] == "AssignmentExpression"
    assert assignment["left"] == {"type": "Identifier", "name": "Service"}
    assert assignment["right"]["type"] == "ClassExpression"
    assert assignment["right"]["id"]["name"] == "Service"
    assert body[2]["type"] == "ReturnStatement"
    assert body[2]["argument"]["type"] == "NewExpression"


def test_destructuring_patterns_are_kept_and_every_binding_hoisted():
    program = _load_ast("tests/cases/tla_destructuring.js")
    result = _rewrite(program)

    prefix, hoisted, call = result["body"]
    assert prefix["kind"] == "const"
    assert _hoisted_names(hoisted) == [
        "a",
        "renamed",
        "computed",
        "first",
        "third",
        "others",
        "pending",
    ]
    body = _wrapper_body(call)
    object_assign, array_assign, pending_assign = (stmt["expression"] for stmt in body)
    assert object_assign["left"] is program["body"][1]["declarations"][0]["id"]
    assert array_assign["left"]["type"] == "ArrayPattern"
    assert pending_assign["right"] == {"type": "Identifier", "name": "undefined"}


def test_block_with_await_is_moved_unmodified():
    program = _load_ast("tests/cases/tla_conditional.js")
    result = _rewrite(program)

    prefix, hoisted, call = result["body"]
    assert prefix["declarations"][0]["id"]["name"] == "started"
    assert _hoisted_names(hoisted) == ["elapsed"]
    body = _wrapper_body(call)
    assert body[0] is program["body"][1]
    assert body[-1]["type"] == "ReturnStatement"
    assert body[-1]["argument"]["operator"] == "*"


def test_plain_assignment_is_not_returned():
    program = run_frontend("let x = 1;\nx = await Promise.resolve(2);\n").parse.ast
    result = _rewrite(program)

    prefix, call = result["body"]
    assert prefix["kind"] == "let"
    (statement,) = _wrapper_body(call)
    assert statement["type"] == "ExpressionStatement"
    assert statement["expression"]["type"] == "AssignmentExpression"


def test_single_await_expression_is_returned():
    program = run_frontend("await Promise.resolve(1);\n").parse.ast
    result = _rewrite(program)

    (call,) = result["body"]
    (statement,) = _wrapper_body(call)
    assert statement["type"] == "ReturnStatement"
    assert statement["argument"]["type"] == "AwaitExpression"


def test_redeclared_names_are_hoisted_once():
    program = run_frontend("var a = await f();\nvar a = 2;\n").parse.ast
    result = _rewrite(program)

    assert _hoisted_names(result["body"][0]) == ["a"]
    assert len(_wrapper_body(result["body"][1])) == 2


def test_illegal_top_level_return_raises_without_mutation():
    program = _load_ast("tests/cases/tla_illegal_return.js")
    original = copy.deepcopy(program)

    with pytest.raises(IllegalTopLevelReturnError) as excinfo:
        _rewrite(program)

    assert "line 2, column 0" in str(excinfo.value)
    assert excinfo.value.node["type"] == "ReturnStatement"
    assert isinstance(excinfo.value, TransformError)
    assert program == original


def test_top_level_return_nested_in_block_is_still_illegal():
    program = run_frontend("await ready;\nif (done) {\n  return;\n}\n").parse.ast

    with pytest.raises(IllegalTopLevelReturnError, match="line 3, column 2"):
        _rewrite(program)


def test_top_level_return_without_await_is_illegal():
    program = run_frontend("if (done) return 1;\n").parse.ast

    with pytest.raises(IllegalTopLevelReturnError):
        _rewrite(program)


def test_default_pipeline_desugars_imports_without_await():
    program = run_frontend(
        'import fs from "fs";\n', source_type="module"
    ).parse.ast
    result = transform_program(program)

    assert result.applied == ["imports"]
    assert result.diagnostics == []


def test_pipeline_applies_top_level_await_after_imports():
    program = _load_ast("tests/cases/tla_declarations.js")
    result = transform_program(program, source_name="tla_declarations.js")

    assert result.applied == ["top-level-await"]
    assert len(result.program["body"]) == 3


def test_module_imports_stay_ahead_of_the_wrapper():
    program = run_frontend(
        'import fs from "fs";\nconst d = await fs.promises.readFile("x");\n',
        source_type="module",
    ).parse.ast
    result = transform_program(program)

    assert result.applied == ["imports", "top-level-await"]
    prefix, hoisted, call = result.program["body"]
    assert prefix["kind"] == "const"
    assert prefix["declarations"][0]["init"]["callee"]["name"] == "require"
    assert _hoisted_names(hoisted) == ["d"]
    (statement,) = _wrapper_body(call)
    assert statement["expression"]["right"]["type"] == "AwaitExpression"


def test_await_inside_earlier_function_does_not_move_the_split():
    program = _load_ast("tests/cases/tla_nested_before.js")
    result = _rewrite(program)

    prefix, hoisted, call = result["body"]
    assert prefix is program["body"][0]
    assert _hoisted_names(hoisted) == ["v"]
    (statement,) = _wrapper_body(call)
    assert statement["expression"]["left"]["name"] == "v"
