from __future__ import annotations

import pytest

from innergraph import ALWAYS_USED, analyze_source
from innergraph.builder import GraphBuilder
from innergraph.dependency import UsageState
from innergraph.errors import AnalysisFinished, ParseError
from innergraph.parse import parse_module


def test_unexported_function_is_unused() -> None:
    result = analyze_source("function foo() { return 1; }")
    assert result.symbol_value("foo") is None
    assert result.unused_symbols() == ["foo"]


def test_pure_initializer_used_through_export() -> None:
    result = analyze_source(
        "const a = /* @__PURE__ */ compute();\n"
        "export function bar() { return a; }\n"
    )
    decision = result.dependency("a").used_by_exports
    assert decision.state is UsageState.EXPORTS
    assert decision.exports == frozenset({"bar"})
    assert result.symbol_value("bar") == {"bar"}


def test_mutually_recursive_functions_without_export_are_unused() -> None:
    result = analyze_source(
        "function f() { return g(); }\n"
        "function g() { return f(); }\n"
    )
    assert result.symbol_value("f") is None
    assert result.symbol_value("g") is None


def test_top_level_reference_is_always_used() -> None:
    result = analyze_source("const x = 1;\nconsole.log(x);\n")
    assert result.symbol_value("x") is ALWAYS_USED
    assert result.dependency("x").used_by_exports.state is UsageState.ALWAYS


def test_forward_reference_resolves() -> None:
    result = analyze_source(
        "export function a() { return b; }\n"
        "const b = 1;\n"
    )
    assert result.dependency("b").used_by_exports.exports == frozenset({"a"})


def test_renamed_export() -> None:
    result = analyze_source(
        "function helper() {}\n"
        "export { helper as api };\n"
    )
    assert result.symbol_value("helper") == {"api"}


def test_shared_symbol_used_by_several_exports() -> None:
    result = analyze_source(
        "const shared = 1;\n"
        "export function a() { return shared; }\n"
        "export function b() { return shared; }\n"
    )
    decision = result.dependency("shared").used_by_exports
    assert decision.exports == frozenset({"a", "b"})
    assert decision.is_used({"b"})
    assert not decision.is_used({"c"})


def test_anonymous_default_export() -> None:
    result = analyze_source(
        "const t = 1;\n"
        "export default function () { return t; }\n"
    )
    assert result.symbol_value("*default*") == {"default"}
    assert result.dependency("t").used_by_exports.exports == frozenset({"default"})


def test_default_export_of_identifier() -> None:
    result = analyze_source("const c = 1;\nexport default c;\n")
    assert result.dependency("c").used_by_exports.exports == frozenset({"default"})


def test_plain_assignment_does_not_count_as_use() -> None:
    result = analyze_source(
        "let counter = 0;\n"
        "export function inc() { counter += 1; return counter; }\n"
        "counter = 5;\n"
    )
    assert result.symbol_value("counter") == {"inc"}


def test_parameter_shadowing_module_name() -> None:
    result = analyze_source(
        "const v = 1;\n"
        "export function f(v) { return v; }\n"
    )
    assert result.dependency("v").used_by_exports.state is UsageState.UNUSED


def test_self_recursive_arrow_export() -> None:
    result = analyze_source("export const fact = (n) => n <= 1 ? 1 : n * fact(n - 1);\n")
    assert result.symbol_value("fact") == {"fact"}
    assert result.symbols["fact"].kind == "function"


def test_class_instantiated_at_top_level() -> None:
    result = analyze_source(
        "const helper = 1;\n"
        "class A { m() { return helper; } }\n"
        "new A();\n"
    )
    assert result.symbol_value("A") is ALWAYS_USED
    assert result.dependency("helper").used_by_exports.state is UsageState.ALWAYS


def test_argument_of_impure_initializer_is_always_used() -> None:
    result = analyze_source("const a = 1;\nconst b = compute(a);\n")
    assert "b" not in result.symbols
    assert result.symbol_value("a") is ALWAYS_USED


def test_line_comment_does_not_make_initializer_pure() -> None:
    result = analyze_source(
        "const a = // @__PURE__\n  compute();\n"
        "export function f() { return a; }\n"
    )
    assert "a" not in result.symbols
    assert result.dependencies == []


def test_script_source_type() -> None:
    result = analyze_source("var x = 1;\nfunction f() { return x; }\nf();\n", source_type="script")
    assert result.symbol_value("f") is ALWAYS_USED
    assert result.symbol_value("x") is ALWAYS_USED


def test_to_dict() -> None:
    result = analyze_source(
        "const a = 1;\nconst dead = 2;\nexport function f() { return a; }\n",
        filename="m.js",
    )
    data = result.to_dict()
    assert data["file"] == "m.js"
    assert data["unused"] == ["dead"]
    usage = {s["name"]: s["usage"] for s in data["symbols"]}
    assert usage == {"a": ["f"], "dead": False, "f": ["f"]}
    pure = {p["name"]: p["used_by_exports"] for p in data["pure_expressions"]}
    assert pure == {"a": ["f"], "dead": False}
    assert all(p["line"] for p in data["pure_expressions"])


def test_parse_error_carries_filename() -> None:
    with pytest.raises(ParseError) as exc:
        analyze_source("const = ;", filename="bad.js")
    assert "bad.js" in str(exc.value)


def test_events_after_finish_are_rejected() -> None:
    builder = GraphBuilder()
    ctx = builder.program(parse_module("const a = 1;"))
    builder.finish(ctx)
    with pytest.raises(AnalysisFinished):
        builder.identifier(ctx, "a", {})


def test_modules_do_not_share_state() -> None:
    one = analyze_source("const a = 1;\nexport function f() { return a; }\n")
    two = analyze_source("const a = 1;\n")
    assert one.symbol_value("a") == {"f"}
    assert two.symbol_value("a") is None


CYCLE_DECLARATIONS = {
    "A": "function A() { return C(); }\n",
    "C": "function C() { return B(); }\n",
    "B": "function B() { return A() + K; }\n",
    "K": "const K = 1;\n",
}


def _decisions(order) -> dict:
    source = "".join(CYCLE_DECLARATIONS[name] for name in order) + "export { A };\n"
    result = analyze_source(source)
    return {name: result.symbol_decision(name) for name in CYCLE_DECLARATIONS}


def test_decisions_do_not_depend_on_declaration_order() -> None:
    expected = _decisions(["K", "B", "A", "C"])
    assert expected["K"].exports == frozenset({"A"})
    for order in (["A", "C", "B", "K"], ["C", "K", "A", "B"], ["B", "A", "K", "C"]):
        assert _decisions(order) == expected, order


def test_pure_initializer_reached_through_cycle_is_kept() -> None:
    source = "".join(CYCLE_DECLARATIONS[name] for name in ("A", "C", "B", "K")) + "export { A };\n"
    decision = analyze_source(source).dependency("K").used_by_exports
    assert decision.state is UsageState.EXPORTS
    assert decision.is_used({"A"})


def test_destructuring_assignment_does_not_count_as_use() -> None:
    result = analyze_source(
        "let a = 1;\n"
        "let b = 2;\n"
        "[a] = [3];\n"
        "export function f() { ({ a } = { a: b }); }\n"
    )
    assert result.symbol_value("a") is None
    assert result.symbol_value("b") == {"f"}
