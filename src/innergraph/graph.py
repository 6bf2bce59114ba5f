"""
Per-module usage graph and its end-of-module flattening.

Graph values are one of:
  - ``None``         nothing recorded, i.e. never used
  - ``ALWAYS_USED``  absorbing; usage is unconditional
  - ``set``          targets: export-name strings (leaves) or other
                     top-level symbols (internal edges)

Flattening collapses internal edges so that only leaves or ``ALWAYS_USED``
remain, then publishes a decision on every pending dependency.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Hashable, Iterable, Iterator, List, Optional, Set, Tuple

from .dependency import PureExpressionDependency, UsageDecision

logger = logging.getLogger(__name__)


class _AlwaysUsed:
    _instance: Optional["_AlwaysUsed"] = None

    def __new__(cls) -> "_AlwaysUsed":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "ALWAYS_USED"


ALWAYS_USED = _AlwaysUsed()


class UsageGraph:
    """Mapping from symbol or dependency to its usage value."""

    def __init__(self) -> None:
        self._values: Dict[Hashable, Any] = {}

    def __contains__(self, node: Hashable) -> bool:
        return node in self._values

    def __len__(self) -> int:
        return len(self._values)

    def __iter__(self) -> Iterator[Hashable]:
        return iter(self._values)

    def get(self, node: Hashable) -> Any:
        return self._values.get(node)

    def set(self, node: Hashable, value: Any) -> None:
        self._values[node] = value

    def items(self) -> Iterable[Tuple[Hashable, Any]]:
        return self._values.items()

    def add_dependency(self, node: Hashable, target: Any) -> None:
        """Record that ``node`` is used by ``target``.

        ``target`` is an export name, another top-level symbol, or
        ``ALWAYS_USED``. Values only grow; ``ALWAYS_USED`` is never replaced.
        """
        current = self._values.get(node)
        if current is ALWAYS_USED:
            return
        if target is ALWAYS_USED:
            self._values[node] = ALWAYS_USED
        elif current is None:
            self._values[node] = {target}
        else:
            current.add(target)

    def edges(self) -> List[Tuple[Hashable, Any]]:
        """Snapshot of (node, target) pairs, ``ALWAYS_USED`` included."""
        result: List[Tuple[Hashable, Any]] = []
        for node, value in self._values.items():
            if value is ALWAYS_USED:
                result.append((node, ALWAYS_USED))
            elif value:
                for target in value:
                    result.append((node, target))
        return result


class _Frame:
    __slots__ = ("key", "children", "leaves", "waiting")

    def __init__(self, key: Hashable, value: Set[Any]) -> None:
        self.key = key
        self.children = iter(list(value))
        self.leaves: Set[str] = set()
        self.waiting: Optional[Hashable] = None


_DONE = object()


def flatten(graph: UsageGraph) -> None:
    """Resolve every internal edge of ``graph`` in place.

    A key is removed from the unresolved set before its children are
    visited. Meeting it again through a cycle therefore reads whatever value
    it holds at that moment and the back edge is dropped, which makes the
    pass terminate on any cycle. The walk uses an explicit stack so long
    chains do not hit the interpreter recursion limit.

    Inside a cycle that first pass can miss leaves carried by a node that was
    still being expanded. A second pass replays the internal edges recorded
    before flattening until no value grows, so every key ends up with the
    leaves of everything it reaches whatever order the keys were inserted in.
    """
    internal = [
        (node, target)
        for node, target in graph.edges()
        if target is not ALWAYS_USED and not isinstance(target, str)
    ]
    unresolved: Set[Hashable] = set(graph)
    for key in list(graph):
        if key in unresolved:
            _expand(graph, key, unresolved)
    rounds = _propagate(graph, internal)
    logger.debug("flattened usage graph with %d nodes (%d propagation rounds)", len(graph), rounds)


def _enter(graph: UsageGraph, key: Hashable, unresolved: Set[Hashable], stack: List[_Frame]) -> None:
    unresolved.discard(key)
    value = graph.get(key)
    if value is not None and value is not ALWAYS_USED:
        stack.append(_Frame(key, value))


def _expand(graph: UsageGraph, root: Hashable, unresolved: Set[Hashable]) -> None:
    stack: List[_Frame] = []
    _enter(graph, root, unresolved, stack)
    while stack:
        frame = stack[-1]
        if frame.waiting is not None:
            child_value = graph.get(frame.waiting)
            frame.waiting = None
            if child_value is ALWAYS_USED:
                graph.set(frame.key, ALWAYS_USED)
                stack.pop()
                continue
            if child_value is not None:
                frame.leaves.update(i for i in child_value if isinstance(i, str))
        item = next(frame.children, _DONE)
        if item is _DONE:
            graph.set(frame.key, frame.leaves or None)
            stack.pop()
        elif isinstance(item, str):
            frame.leaves.add(item)
        else:
            frame.waiting = item
            if item in unresolved:
                _enter(graph, item, unresolved, stack)


def _propagate(graph: UsageGraph, internal: List[Tuple[Hashable, Any]]) -> int:
    """Grow values along ``internal`` edges to a fixed point; returns the number of rounds."""
    rounds = 0
    changed = True
    while changed:
        changed = False
        rounds += 1
        for node, target in internal:
            current = graph.get(node)
            incoming = graph.get(target)
            if current is ALWAYS_USED or incoming is None:
                continue
            if incoming is ALWAYS_USED:
                graph.set(node, ALWAYS_USED)
                changed = True
            elif current is None:
                graph.set(node, set(incoming))
                changed = True
            elif not incoming <= current:
                current |= incoming
                changed = True
    return rounds


def decision_for(value: Any) -> UsageDecision:
    if value is None:
        return UsageDecision.unused()
    if value is ALWAYS_USED:
        return UsageDecision.always()
    return UsageDecision.via(i for i in value if isinstance(i, str))


def publish(graph: UsageGraph, pending: Iterable[PureExpressionDependency]) -> None:
    """Write the flattened value of each pending dependency onto it."""
    count = 0
    for dep in pending:
        dep.publish(decision_for(graph.get(dep)))
        count += 1
    logger.debug("published %d usage decisions", count)
