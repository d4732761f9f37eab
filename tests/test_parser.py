import esprima
import pytest

from parser import parse_js


def test_parse_accepts_top_level_await():
    result = parse_js("const y = await f();\ny;\n", source_name="tla.js")

    assert result.errors == []
    program = result.ast
    assert program["type"] == "Program"
    assert program["sourceType"] == "script"
    assert [stmt["type"] for stmt in program["body"]] == [
        "VariableDeclaration",
        "ExpressionStatement",
    ]
    init = program["body"][0]["declarations"][0]["init"]
    assert init["type"] == "AwaitExpression"


def test_parse_relocates_positions_onto_original_source():
    source = "const y = await f();\ny;\n"
    program = parse_js(source).ast

    first, second = program["body"]
    assert first["loc"]["start"] == {"line": 1, "column": 0}
    assert second["loc"]["start"] == {"line": 2, "column": 0}
    start, end = first["range"]
    assert source[start:end] == "const y = await f();"
    start, end = second["range"]
    assert source[start:end] == "y;"


def test_parse_keeps_top_level_return_for_later_checks():
    program = parse_js("await x;\nreturn 42;\n").ast

    ret = program["body"][1]
    assert ret["type"] == "ReturnStatement"
    assert ret["loc"]["start"]["line"] == 2


def test_parse_module_source():
    result = parse_js('import fs from "fs";\n', source_type="module")

    assert result.ast["sourceType"] == "module"
    declaration = result.ast["body"][0]
    assert declaration["type"] == "ImportDeclaration"
    assert declaration["source"]["value"] == "fs"


def test_parse_without_top_level_await_support_rejects_await():
    result = parse_js("await f();\n", allow_top_level_await=False)

    assert result.ast is None
    assert len(result.errors) == 1


def test_parse_failure_reports_original_line():
    result = parse_js("const a = 1;\nconst = ;\n")

    assert result.ast is None
    assert result.errors[0].line == 2


def test_parse_result_hash_is_stable():
    first = parse_js("a;\n")
    second = parse_js("a;\n")

    assert first.source_hash == second.source_hash
    assert '"type": "Program"' in first.to_json()


def test_strict_parse_error_reports_original_line():
    with pytest.raises(esprima.Error) as excinfo:
        parse_js("const = ;", tolerant=False)

    assert excinfo.value.lineNumber == 1
    assert "Line 1:" in str(excinfo.value)


def test_parse_rejects_input_that_closes_the_wrapper():
    result = parse_js("a();\n}\nfunction evil() {\nb();")

    assert result.ast is None
    assert len(result.errors) == 1
    assert result.errors[0].line == 2
    assert result.errors[0].column == 0


def test_strict_parse_rejects_input_that_closes_the_wrapper():
    with pytest.raises(esprima.Error):
        parse_js("}\n{", tolerant=False)


def test_parse_treats_parenthesised_await_as_await():
    program = parse_js("const v = await (x);\n").ast

    init = program["body"][0]["declarations"][0]["init"]
    assert init["type"] == "AwaitExpression"


def test_parse_module_with_top_level_await():
    source = 'import fs from "fs";\nconst d = await fs.promises.readFile("x");\n'
    result = parse_js(source, source_type="module")

    assert result.errors == []
    program = result.ast
    assert program["sourceType"] == "module"
    declaration, statement = program["body"]
    assert declaration["type"] == "ImportDeclaration"
    assert statement["declarations"][0]["init"]["type"] == "AwaitExpression"
    assert statement["loc"]["start"] == {"line": 2, "column": 0}
    start, end = statement["range"]
    assert source[start:end] == 'const d = await fs.promises.readFile("x");'


def test_parse_module_without_top_level_await_support_rejects_await():
    result = parse_js(
        'import fs from "fs";\nawait fs.ready();\n',
        source_type="module",
        allow_top_level_await=False,
    )

    assert result.ast is None
    assert result.errors[0].line == 2
