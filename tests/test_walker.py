from __future__ import annotations

from typing import Any, List, Tuple

from innergraph.parse import parse_module
from innergraph.walker import ModuleWalker, pattern_names


class RecordingHooks:
    def __init__(self) -> None:
        self.events: List[Tuple[Any, ...]] = []

    def program(self, module):
        self.events.append(("program",))
        return self

    def pre_statement(self, ctx, statement):
        self.events.append(("pre_statement", statement["type"]))

    def block_pre_statement(self, ctx, statement):
        self.events.append(("block_pre_statement", statement["type"]))

    def pre_declarator(self, ctx, declarator, statement):
        self.events.append(("pre_declarator", declarator["id"].get("name")))

    def statement(self, ctx, statement):
        self.events.append(("statement", statement["type"]))

    def declarator(self, ctx, declarator, statement, walk):
        self.events.append(("declarator", declarator["id"].get("name")))
        return None

    def identifier(self, ctx, name, node):
        self.events.append(("identifier", name))

    def assign(self, ctx, name, expr):
        self.events.append(("assign", name, expr["operator"]))
        return None

    def export(self, ctx, local, exported):
        self.events.append(("export", local, exported))

    def finish(self, ctx):
        self.events.append(("finish",))
        return self.events


def _walk(source: str, source_type: str = "module") -> List[Tuple[Any, ...]]:
    return ModuleWalker(RecordingHooks()).walk_module(parse_module(source, source_type=source_type))


def _identifiers(events) -> List[str]:
    return [e[1] for e in events if e[0] == "identifier"]


def test_pre_walk_announces_declarations_before_any_walk() -> None:
    events = _walk(
        'import { x } from "m";\n'
        "function f(a) { return a + g; }\n"
        "const g = 1;\n"
        "export { f as h };\n"
    )
    assert events[0] == ("program",)
    assert events[-1] == ("finish",)
    first_statement = events.index(("statement", "ImportDeclaration"))
    assert events.index(("pre_statement", "FunctionDeclaration")) < first_statement
    assert events.index(("pre_declarator", "g")) < first_statement
    assert _identifiers(events) == ["g"]
    assert ("export", "f", "h") in events


def test_property_keys_and_labels_are_not_references() -> None:
    events = _walk("const o = { k: v };\no.k;\nouter: for (;;) { break outer; }\n")
    assert _identifiers(events) == ["v", "o"]


def test_block_scoped_and_parameter_names_shadow_module_names() -> None:
    events = _walk(
        "const z = 1;\n"
        "function f(z) { return z; }\n"
        "function g() { let z = 2; return z; }\n"
        "function h() { try {} catch (z) { z; } }\n"
        "z;\n"
    )
    assert _identifiers(events) == ["z"]


def test_hoisted_var_in_function_shadows() -> None:
    events = _walk("var q = 1;\nfunction f() { if (true) { var q = 2; } return q; }\n", "script")
    assert _identifiers(events) == []


def test_assignment_reports_assign_then_identifier() -> None:
    events = _walk("let c = 0;\nc = 1;\nc += 2;\n")
    assigns = [e for e in events if e[0] == "assign"]
    assert assigns == [("assign", "c", "="), ("assign", "c", "+=")]
    assert _identifiers(events) == ["c", "c"]


def test_export_events() -> None:
    events = _walk(
        "export function f() {}\n"
        "export const a = 1, b = 2;\n"
        "export default class {}\n"
    )
    exports = [e for e in events if e[0] == "export"]
    assert exports == [
        ("export", "f", "f"),
        ("export", "a", "a"),
        ("export", "b", "b"),
        ("export", "*default*", "default"),
    ]


def test_reexport_from_other_module_is_not_local() -> None:
    events = _walk('export { a as b } from "other";\n')
    assert not [e for e in events if e[0] == "export"]


def test_pattern_names() -> None:
    module = parse_module("const { a, b: [c, ...d], e = 1 } = obj;")
    decl = module.ast["body"][0]["declarations"][0]
    assert pattern_names(decl["id"]) == ["a", "c", "d", "e"]
