"""
Incremental construction of the usage graph.

``GraphBuilder`` implements the walker hooks. Every handler receives the
``AnalysisContext`` created for the module on the ``program`` event; nothing
is kept on the builder itself, so one builder can serve many modules.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Set, Tuple

from .dependency import PureExpressionDependency, UsageDecision
from .errors import AnalysisFinished
from .graph import ALWAYS_USED, UsageGraph, decision_for, flatten, publish
from .parse import ASTNode, ParsedModule, node_key
from .purity import is_pure_declarator
from .symbols import DEFAULT_EXPORT_NAME, SymbolRegistry, TopLevelSymbol

logger = logging.getLogger(__name__)

FUNCTION_INIT_TYPES = ("FunctionExpression", "ArrowFunctionExpression", "ClassExpression")
DEFAULT_EXPORT_TYPES = FUNCTION_INIT_TYPES + ("Identifier",)


@dataclass
class AnalysisContext:
    """Mutable state of one module's analysis, from module entry to finish."""

    module: ParsedModule
    graph: UsageGraph = field(default_factory=UsageGraph)
    registry: SymbolRegistry = field(init=False)
    pending: Dict[PureExpressionDependency, None] = field(default_factory=dict)
    current_symbol: Optional[TopLevelSymbol] = None
    statement_symbols: Dict[tuple, TopLevelSymbol] = field(default_factory=dict)
    declarator_symbols: Dict[tuple, TopLevelSymbol] = field(default_factory=dict)
    pure_declarators: Set[tuple] = field(default_factory=set)
    finished: bool = False

    def __post_init__(self) -> None:
        self.registry = SymbolRegistry(self.graph)

    @property
    def comments(self) -> List[Dict[str, Any]]:
        return self.module.comments


@dataclass
class ModuleAnalysis:
    """Flattened usage information of one module."""

    filename: Optional[str]
    graph: UsageGraph
    symbols: Dict[str, TopLevelSymbol]
    dependencies: List[PureExpressionDependency]
    edges: List[Tuple[Any, Any]] = field(default_factory=list)

    def symbol_value(self, name: str) -> Any:
        """Flattened graph value of a symbol: None, ALWAYS_USED or a set of export names."""
        return self.graph.get(self.symbols[name])

    def symbol_decision(self, name: str) -> UsageDecision:
        return decision_for(self.symbol_value(name))

    def dependency(self, name: str) -> PureExpressionDependency:
        for dep in self.dependencies:
            if dep.name == name:
                return dep
        raise KeyError(name)

    def unused_symbols(self) -> List[str]:
        return sorted(name for name, sym in self.symbols.items() if self.graph.get(sym) is None)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "file": self.filename,
            "symbols": [
                {
                    "name": name,
                    "kind": sym.kind,
                    "usage": self.symbol_decision(name).to_json(),
                }
                for name, sym in sorted(self.symbols.items())
            ],
            "pure_expressions": [
                {
                    "name": dep.name,
                    "range": list(dep.range),
                    "line": dep.line,
                    "used_by_exports": dep.used_by_exports.to_json() if dep.published else False,
                }
                for dep in self.dependencies
            ],
            "unused": self.unused_symbols(),
        }


class GraphBuilder:
    """Walker hooks that record usage edges into ``AnalysisContext.graph``."""

    def program(self, module: ParsedModule) -> AnalysisContext:
        return AnalysisContext(module=module)

    def pre_statement(self, ctx: AnalysisContext, statement: ASTNode) -> Optional[bool]:
        _ensure_open(ctx)
        if statement.get("type") != "FunctionDeclaration":
            return None
        ident = statement.get("id")
        name = ident["name"] if ident else DEFAULT_EXPORT_NAME
        symbol = ctx.registry.get_or_create(
            name, kind="function" if ident else "default", range=_span(statement)
        )
        ctx.statement_symbols[node_key(statement)] = symbol
        return True

    def block_pre_statement(self, ctx: AnalysisContext, statement: ASTNode) -> Optional[bool]:
        _ensure_open(ctx)
        kind = statement.get("type")
        if kind == "ClassDeclaration":
            ident = statement.get("id")
            name = ident["name"] if ident else DEFAULT_EXPORT_NAME
            symbol = ctx.registry.get_or_create(
                name, kind="class" if ident else "default", range=_span(statement)
            )
            ctx.statement_symbols[node_key(statement)] = symbol
            return True
        if kind == "ExportDefaultDeclaration":
            if statement["declaration"].get("type") in DEFAULT_EXPORT_TYPES:
                symbol = ctx.registry.get_or_create(
                    DEFAULT_EXPORT_NAME, kind="default", range=_span(statement)
                )
                ctx.statement_symbols[node_key(statement)] = symbol
        return None

    def pre_declarator(self, ctx: AnalysisContext, declarator: ASTNode, statement: ASTNode) -> Optional[bool]:
        _ensure_open(ctx)
        ident = declarator.get("id") or {}
        init = declarator.get("init")
        if not init or ident.get("type") != "Identifier":
            return None
        name = ident["name"]
        if init.get("type") in FUNCTION_INIT_TYPES:
            kind = "class" if init["type"] == "ClassExpression" else "function"
            symbol = ctx.registry.get_or_create(name, kind=kind, range=_span(declarator))
            ctx.declarator_symbols[node_key(declarator)] = symbol
            return True
        if is_pure_declarator(declarator, ctx.comments):
            symbol = ctx.registry.get_or_create(name, kind="variable", range=_span(declarator))
            ctx.declarator_symbols[node_key(declarator)] = symbol
            ctx.pure_declarators.add(node_key(declarator))
            return True
        return None

    def statement(self, ctx: AnalysisContext, statement: ASTNode) -> None:
        _ensure_open(ctx)
        ctx.current_symbol = ctx.statement_symbols.get(node_key(statement))

    def declarator(
        self,
        ctx: AnalysisContext,
        declarator: ASTNode,
        statement: ASTNode,
        walk: Callable[[ASTNode], None],
    ) -> Optional[bool]:
        _ensure_open(ctx)
        key = node_key(declarator)
        symbol = ctx.declarator_symbols.get(key)
        if symbol is None:
            return None
        init = declarator["init"]
        if key in ctx.pure_declarators:
            dep = PureExpressionDependency(init["range"], symbol.name, loc=declarator.get("loc"))
            ctx.pending[dep] = None
            ctx.graph.set(dep, {symbol})
        ctx.current_symbol = symbol
        walk(init)
        ctx.current_symbol = None
        return True

    def identifier(self, ctx: AnalysisContext, name: str, node: ASTNode) -> None:
        _ensure_open(ctx)
        symbol = ctx.registry.lookup(name)
        if symbol is None:
            return
        if ctx.current_symbol is not None:
            symbol.add_dependency(ctx.current_symbol)
        else:
            symbol.add_dependency(ALWAYS_USED)

    def assign(self, ctx: AnalysisContext, name: str, expr: ASTNode) -> Optional[bool]:
        _ensure_open(ctx)
        if name in ctx.registry and expr.get("operator") == "=":
            return True
        return None

    def export(self, ctx: AnalysisContext, local: str, exported: str) -> None:
        _ensure_open(ctx)
        symbol = ctx.registry.lookup(local)
        if symbol is not None:
            symbol.add_dependency(exported)

    def finish(self, ctx: AnalysisContext) -> ModuleAnalysis:
        _ensure_open(ctx)
        edges = ctx.graph.edges()
        flatten(ctx.graph)
        publish(ctx.graph, ctx.pending)
        ctx.finished = True
        ctx.current_symbol = None
        logger.debug(
            "%s: %d symbols, %d pure expressions",
            ctx.module.filename or "<source>",
            len(ctx.registry),
            len(ctx.pending),
        )
        return ModuleAnalysis(
            filename=ctx.module.filename,
            graph=ctx.graph,
            symbols={sym.name: sym for sym in ctx.registry},
            dependencies=list(ctx.pending),
            edges=edges,
        )


def _ensure_open(ctx: AnalysisContext) -> None:
    if ctx.finished:
        raise AnalysisFinished(f"analysis of {ctx.module.filename or '<source>'} already finished")


def _span(node: ASTNode) -> Optional[Tuple[int, int]]:
    rng = node.get("range")
    if not rng:
        return None
    return (rng[0], rng[1])
