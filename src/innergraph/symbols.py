"""
Top-level symbols and the per-module symbol table.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterator, Optional, Tuple

from .graph import UsageGraph

logger = logging.getLogger(__name__)

# Name given to an anonymous ``export default`` declaration.
DEFAULT_EXPORT_NAME = "*default*"


class TopLevelSymbol:
    """One top-level declaration of a module.

    Symbols compare by identity; two symbols with the same name only exist
    across different modules.
    """

    __slots__ = ("name", "kind", "range", "graph")

    def __init__(
        self,
        name: str,
        graph: UsageGraph,
        kind: str = "variable",
        range: Optional[Tuple[int, int]] = None,
    ) -> None:
        self.name = name
        self.kind = kind  # function|class|variable|default
        self.range = range
        self.graph = graph

    def add_dependency(self, target: Any) -> None:
        """``target``: export name, another ``TopLevelSymbol`` or ``ALWAYS_USED``."""
        self.graph.add_dependency(self, target)

    @property
    def value(self) -> Any:
        return self.graph.get(self)

    def __repr__(self) -> str:
        return f"TopLevelSymbol({self.name!r})"


class SymbolRegistry:
    """Declared name -> ``TopLevelSymbol`` for one module."""

    def __init__(self, graph: UsageGraph) -> None:
        self.graph = graph
        self._symbols: Dict[str, TopLevelSymbol] = {}

    def get_or_create(
        self,
        name: str,
        kind: Optional[str] = None,
        range: Optional[Tuple[int, int]] = None,
    ) -> TopLevelSymbol:
        """The symbol bound to ``name``, created on first request.

        A redeclaration keeps the symbol identity (and its recorded usage) but
        takes the ``kind`` and ``range`` of the latest registration.
        """
        existing = self._symbols.get(name)
        if existing is not None:
            # TODO: distinguish a `var` re-binding from a genuine redeclaration
            # with a different kind once the walker reports binding kinds.
            if kind is not None:
                existing.kind = kind
            if range is not None:
                existing.range = range
            logger.debug("reusing symbol %s for redeclaration as %s", name, existing.kind)
            return existing
        symbol = TopLevelSymbol(name, self.graph, kind=kind or "variable", range=range)
        self._symbols[name] = symbol
        logger.debug("registered top-level %s %s", symbol.kind, name)
        return symbol

    def lookup(self, name: str) -> Optional[TopLevelSymbol]:
        return self._symbols.get(name)

    def __contains__(self, name: str) -> bool:
        return name in self._symbols

    def __iter__(self) -> Iterator[TopLevelSymbol]:
        return iter(self._symbols.values())

    def __len__(self) -> int:
        return len(self._symbols)
