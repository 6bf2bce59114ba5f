"""
Source-order walker over a dict-based ESTree module.

The walker knows nothing about usage analysis. It resolves lexical scopes and
reports events to a hooks object (see ``GraphBuilder``) in two phases:

  1. pre-walk: every top-level statement is announced before any code is
     walked, so later references can be resolved to earlier *and* later
     declarations;
  2. walk: statements are walked in document order; references to names
     that are not shadowed by an inner scope are reported.

Export bindings (``export function f``, ``export { a as b }``,
``export default ...``) are reported as ``export`` events carrying the local
name and the exported name.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Iterator, List, Optional, Protocol, Set

from .parse import ASTNode, ParsedModule

logger = logging.getLogger(__name__)

FUNCTION_TYPES = ("FunctionDeclaration", "FunctionExpression", "ArrowFunctionExpression")
CLASS_TYPES = ("ClassDeclaration", "ClassExpression")
_SKIP_KEYS = ("type", "range", "loc")


class WalkerHooks(Protocol):
    def program(self, module: ParsedModule) -> Any: ...

    def pre_statement(self, ctx: Any, statement: ASTNode) -> Optional[bool]: ...

    def block_pre_statement(self, ctx: Any, statement: ASTNode) -> Optional[bool]: ...

    def pre_declarator(self, ctx: Any, declarator: ASTNode, statement: ASTNode) -> Optional[bool]: ...

    def statement(self, ctx: Any, statement: ASTNode) -> None: ...

    def declarator(self, ctx: Any, declarator: ASTNode, statement: ASTNode, walk: Any) -> Optional[bool]: ...

    def identifier(self, ctx: Any, name: str, node: ASTNode) -> None: ...

    def assign(self, ctx: Any, name: str, expr: ASTNode) -> Optional[bool]: ...

    def export(self, ctx: Any, local: str, exported: str) -> None: ...

    def finish(self, ctx: Any) -> Any: ...


class Scope:
    def __init__(self, parent: Optional["Scope"] = None, top_level: bool = False) -> None:
        self.parent = parent
        self.top_level = top_level
        self.names: Set[str] = set()

    def define(self, name: str) -> None:
        self.names.add(name)

    def is_module_binding(self, name: str) -> bool:
        """``name`` is not shadowed by any enclosing non-module scope."""
        scope: Optional[Scope] = self
        while scope is not None:
            if name in scope.names:
                return scope.top_level
            scope = scope.parent
        # undeclared globals resolve at module level as well
        return True


def pattern_names(pattern: Optional[ASTNode]) -> List[str]:
    """Names bound by a binding pattern."""
    if not pattern:
        return []
    kind = pattern.get("type")
    if kind == "Identifier":
        return [pattern["name"]]
    if kind == "AssignmentPattern":
        return pattern_names(pattern.get("left"))
    if kind == "RestElement":
        return pattern_names(pattern.get("argument"))
    if kind == "ArrayPattern":
        names: List[str] = []
        for element in pattern.get("elements") or []:
            names.extend(pattern_names(element))
        return names
    if kind == "ObjectPattern":
        names = []
        for prop in pattern.get("properties") or []:
            if prop.get("type") == "RestElement":
                names.extend(pattern_names(prop.get("argument")))
            else:
                names.extend(pattern_names(prop.get("value")))
        return names
    return []


def _hoisted_var_names(statements: List[ASTNode]) -> List[str]:
    names: List[str] = []
    for stmt in statements:
        if not stmt:
            continue
        kind = stmt.get("type")
        if kind == "VariableDeclaration":
            if stmt.get("kind") == "var":
                for decl in stmt.get("declarations") or []:
                    names.extend(pattern_names(decl.get("id")))
        elif kind == "BlockStatement":
            names.extend(_hoisted_var_names(stmt.get("body") or []))
        elif kind == "IfStatement":
            names.extend(_hoisted_var_names([stmt.get("consequent"), stmt.get("alternate")]))
        elif kind in ("ForStatement", "ForInStatement", "ForOfStatement"):
            names.extend(_hoisted_var_names([stmt.get("init"), stmt.get("left"), stmt.get("body")]))
        elif kind in ("WhileStatement", "DoWhileStatement", "LabeledStatement"):
            names.extend(_hoisted_var_names([stmt.get("body")]))
        elif kind == "TryStatement":
            handler = stmt.get("handler") or {}
            names.extend(_hoisted_var_names([stmt.get("block"), handler.get("body"), stmt.get("finalizer")]))
        elif kind == "SwitchStatement":
            for case in stmt.get("cases") or []:
                names.extend(_hoisted_var_names(case.get("consequent") or []))
    return names


def _lexical_names(statements: List[ASTNode]) -> List[str]:
    names: List[str] = []
    for stmt in statements:
        kind = stmt.get("type")
        if kind in ("FunctionDeclaration", "ClassDeclaration") and stmt.get("id"):
            names.append(stmt["id"]["name"])
        elif kind == "VariableDeclaration" and stmt.get("kind") in ("let", "const"):
            for decl in stmt.get("declarations") or []:
                names.extend(pattern_names(decl.get("id")))
    return names


class ModuleWalker:
    """Drives ``hooks`` over one parsed module."""

    def __init__(self, hooks: WalkerHooks) -> None:
        self.hooks = hooks
        self.ctx: Any = None
        self.scope = Scope(top_level=True)

    def walk_module(self, module: ParsedModule) -> Any:
        self.ctx = self.hooks.program(module)
        self.scope = Scope(top_level=True)
        body = module.ast.get("body") or []
        logger.debug("walking %s (%d top-level statements)", module.filename or "<source>", len(body))
        for name in _hoisted_var_names(body):
            self.scope.define(name)
        for stmt in body:
            self._prewalk_top_level(stmt)
        for stmt in body:
            self._walk_top_level(stmt)
        return self.hooks.finish(self.ctx)

    # --- pre-walk ---
    def _prewalk_top_level(self, stmt: ASTNode) -> None:
        kind = stmt.get("type")
        if kind == "ImportDeclaration":
            for spec in stmt.get("specifiers") or []:
                self.scope.define(spec["local"]["name"])
        elif kind == "ExportNamedDeclaration":
            if stmt.get("declaration"):
                self._prewalk_top_level(stmt["declaration"])
        elif kind == "ExportDefaultDeclaration":
            decl = stmt["declaration"]
            if decl.get("type") in ("FunctionDeclaration", "ClassDeclaration"):
                self._prewalk_top_level(decl)
            else:
                self.hooks.block_pre_statement(self.ctx, stmt)
        elif kind == "FunctionDeclaration":
            self.hooks.pre_statement(self.ctx, stmt)
            if stmt.get("id"):
                self.scope.define(stmt["id"]["name"])
        elif kind == "ClassDeclaration":
            self.hooks.block_pre_statement(self.ctx, stmt)
            if stmt.get("id"):
                self.scope.define(stmt["id"]["name"])
        elif kind == "VariableDeclaration":
            for decl in stmt.get("declarations") or []:
                self.hooks.pre_declarator(self.ctx, decl, stmt)
                for name in pattern_names(decl.get("id")):
                    self.scope.define(name)

    # --- top-level walk ---
    def _walk_top_level(self, stmt: ASTNode) -> None:
        self.hooks.statement(self.ctx, stmt)
        kind = stmt.get("type")
        if kind == "ExportNamedDeclaration":
            decl = stmt.get("declaration")
            if decl:
                self._walk_top_level(decl)
                if decl.get("type") == "VariableDeclaration":
                    for d in decl.get("declarations") or []:
                        for name in pattern_names(d.get("id")):
                            self.hooks.export(self.ctx, name, name)
                elif decl.get("id"):
                    name = decl["id"]["name"]
                    self.hooks.export(self.ctx, name, name)
            elif not stmt.get("source"):
                for spec in stmt.get("specifiers") or []:
                    self.hooks.export(self.ctx, spec["local"]["name"], spec["exported"]["name"])
        elif kind == "ExportDefaultDeclaration":
            decl = stmt["declaration"]
            if decl.get("type") in ("FunctionDeclaration", "ClassDeclaration"):
                self._walk_top_level(decl)
                local = decl["id"]["name"] if decl.get("id") else None
            else:
                self.walk_expression(decl)
                local = None
            self.hooks.export(self.ctx, local or "*default*", "default")
        elif kind == "VariableDeclaration":
            for decl in stmt.get("declarations") or []:
                if not self.hooks.declarator(self.ctx, decl, stmt, self.walk_expression):
                    self._walk_declarator(decl)
        elif kind == "ImportDeclaration":
            pass
        else:
            self.walk_statement(stmt)

    # --- statements ---
    @contextmanager
    def _in_scope(self, scope: Scope) -> Iterator[Scope]:
        previous = self.scope
        self.scope = scope
        try:
            yield scope
        finally:
            self.scope = previous

    def _walk_block(self, statements: List[ASTNode], scope: Optional[Scope] = None) -> None:
        scope = scope or Scope(self.scope)
        for name in _lexical_names(statements):
            scope.define(name)
        with self._in_scope(scope):
            for stmt in statements:
                self.walk_statement(stmt)

    def walk_statement(self, stmt: Optional[ASTNode]) -> None:
        if not stmt:
            return
        kind = stmt.get("type")
        if kind == "BlockStatement":
            self._walk_block(stmt.get("body") or [])
        elif kind == "ExpressionStatement":
            self.walk_expression(stmt["expression"])
        elif kind == "IfStatement":
            self.walk_expression(stmt["test"])
            self.walk_statement(stmt.get("consequent"))
            self.walk_statement(stmt.get("alternate"))
        elif kind in ("WhileStatement", "DoWhileStatement"):
            self.walk_expression(stmt["test"])
            self.walk_statement(stmt.get("body"))
        elif kind in ("ReturnStatement", "ThrowStatement"):
            self.walk_expression(stmt.get("argument"))
        elif kind == "LabeledStatement":
            self.walk_statement(stmt.get("body"))
        elif kind == "ForStatement":
            with self._in_scope(Scope(self.scope)):
                init = stmt.get("init")
                if init and init.get("type") == "VariableDeclaration":
                    self._declare_and_walk(init)
                else:
                    self.walk_expression(init)
                self.walk_expression(stmt.get("test"))
                self.walk_expression(stmt.get("update"))
                self.walk_statement(stmt.get("body"))
        elif kind in ("ForInStatement", "ForOfStatement"):
            with self._in_scope(Scope(self.scope)):
                left = stmt["left"]
                if left.get("type") == "VariableDeclaration":
                    self._declare_and_walk(left)
                else:
                    self._walk_assignment_target(left, None)
                self.walk_expression(stmt["right"])
                self.walk_statement(stmt.get("body"))
        elif kind == "SwitchStatement":
            self.walk_expression(stmt["discriminant"])
            scope = Scope(self.scope)
            cases = stmt.get("cases") or []
            for case in cases:
                for name in _lexical_names(case.get("consequent") or []):
                    scope.define(name)
            with self._in_scope(scope):
                for case in cases:
                    self.walk_expression(case.get("test"))
                    for inner in case.get("consequent") or []:
                        self.walk_statement(inner)
        elif kind == "TryStatement":
            self.walk_statement(stmt.get("block"))
            handler = stmt.get("handler")
            if handler:
                scope = Scope(self.scope)
                for name in pattern_names(handler.get("param")):
                    scope.define(name)
                with self._in_scope(scope):
                    self._walk_binding(handler.get("param"))
                    self.walk_statement(handler.get("body"))
            self.walk_statement(stmt.get("finalizer"))
        elif kind in FUNCTION_TYPES:
            self._walk_function(stmt)
        elif kind in CLASS_TYPES:
            self._walk_class(stmt)
        elif kind == "VariableDeclaration":
            for decl in stmt.get("declarations") or []:
                self._walk_declarator(decl)
        elif kind in ("EmptyStatement", "DebuggerStatement", "BreakStatement", "ContinueStatement"):
            pass
        else:
            self._walk_children(stmt)

    def _declare_and_walk(self, declaration: ASTNode) -> None:
        for decl in declaration.get("declarations") or []:
            if declaration.get("kind") != "var":
                for name in pattern_names(decl.get("id")):
                    self.scope.define(name)
            self._walk_declarator(decl)

    def _walk_declarator(self, decl: ASTNode) -> None:
        self._walk_binding(decl.get("id"))
        self.walk_expression(decl.get("init"))

    # --- functions and classes ---
    def _walk_function(self, fn: ASTNode) -> None:
        scope = Scope(self.scope)
        if fn.get("type") == "FunctionExpression" and fn.get("id"):
            scope.define(fn["id"]["name"])
        for param in fn.get("params") or []:
            for name in pattern_names(param):
                scope.define(name)
        with self._in_scope(scope):
            for param in fn.get("params") or []:
                self._walk_binding(param)
            body = fn.get("body")
            if body and body.get("type") == "BlockStatement":
                statements = body.get("body") or []
                for name in _hoisted_var_names(statements):
                    scope.define(name)
                self._walk_block(statements, scope)
            else:
                self.walk_expression(body)

    def _walk_class(self, cls: ASTNode) -> None:
        self.walk_expression(cls.get("superClass"))
        scope = Scope(self.scope)
        if cls.get("type") == "ClassExpression" and cls.get("id"):
            scope.define(cls["id"]["name"])
        with self._in_scope(scope):
            for member in (cls.get("body") or {}).get("body") or []:
                if member.get("computed"):
                    self.walk_expression(member.get("key"))
                self.walk_expression(member.get("value"))

    # --- patterns ---
    def _walk_binding(self, pattern: Optional[ASTNode]) -> None:
        """Walk default values and computed keys of a binding pattern."""
        if not pattern:
            return
        kind = pattern.get("type")
        if kind == "AssignmentPattern":
            self._walk_binding(pattern.get("left"))
            self.walk_expression(pattern.get("right"))
        elif kind == "RestElement":
            self._walk_binding(pattern.get("argument"))
        elif kind == "ArrayPattern":
            for element in pattern.get("elements") or []:
                self._walk_binding(element)
        elif kind == "ObjectPattern":
            for prop in pattern.get("properties") or []:
                if prop.get("type") == "RestElement":
                    self._walk_binding(prop.get("argument"))
                    continue
                if prop.get("computed"):
                    self.walk_expression(prop.get("key"))
                self._walk_binding(prop.get("value"))

    def _walk_assignment_target(self, target: Optional[ASTNode], expr: Optional[ASTNode]) -> None:
        if not target:
            return
        kind = target.get("type")
        if kind == "Identifier":
            name = target["name"]
            if not self.scope.is_module_binding(name):
                return
            if expr is not None and self.hooks.assign(self.ctx, name, expr):
                return
            self.hooks.identifier(self.ctx, name, target)
        elif kind == "AssignmentPattern":
            self._walk_assignment_target(target.get("left"), expr)
            self.walk_expression(target.get("right"))
        elif kind == "RestElement":
            self._walk_assignment_target(target.get("argument"), expr)
        elif kind == "ArrayPattern":
            for element in target.get("elements") or []:
                self._walk_assignment_target(element, expr)
        elif kind == "ObjectPattern":
            for prop in target.get("properties") or []:
                if prop.get("type") == "RestElement":
                    self._walk_assignment_target(prop.get("argument"), expr)
                    continue
                if prop.get("computed"):
                    self.walk_expression(prop.get("key"))
                self._walk_assignment_target(prop.get("value"), expr)
        else:
            self.walk_expression(target)

    # --- expressions ---
    def walk_expression(self, expr: Optional[ASTNode]) -> None:
        if not expr:
            return
        kind = expr.get("type")
        if kind == "Identifier":
            name = expr["name"]
            if self.scope.is_module_binding(name):
                self.hooks.identifier(self.ctx, name, expr)
        elif kind == "MemberExpression":
            self.walk_expression(expr.get("object"))
            if expr.get("computed"):
                self.walk_expression(expr.get("property"))
        elif kind == "Property":
            if expr.get("computed"):
                self.walk_expression(expr.get("key"))
            self.walk_expression(expr.get("value"))
        elif kind in FUNCTION_TYPES:
            self._walk_function(expr)
        elif kind in CLASS_TYPES:
            self._walk_class(expr)
        elif kind == "AssignmentExpression":
            self.walk_expression(expr.get("right"))
            self._walk_assignment_target(expr.get("left"), expr)
        elif kind in ("Literal", "ThisExpression", "Super", "MetaProperty", "TemplateElement"):
            pass
        else:
            self._walk_children(expr)

    def _walk_children(self, node: ASTNode) -> None:
        for key, value in node.items():
            if key in _SKIP_KEYS:
                continue
            if isinstance(value, dict) and "type" in value:
                self.walk_expression(value)
            elif isinstance(value, list):
                for item in value:
                    if isinstance(item, dict) and "type" in item:
                        self.walk_expression(item)
