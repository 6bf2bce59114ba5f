"""
Usage points whose fate the code generator needs.

A ``PureExpressionDependency`` is anchored at the initializer of a pure
top-level binding. After flattening it carries a ``UsageDecision`` telling
whether the initializer has to be emitted at all, and for which exports.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, Optional, Tuple

from .errors import DecisionAlreadyPublished


class UsageState(Enum):
    UNUSED = "unused"
    ALWAYS = "always"
    EXPORTS = "exports"


@dataclass(frozen=True)
class UsageDecision:
    """Final, read-only usage decision of one dependency."""

    state: UsageState
    exports: FrozenSet[str] = field(default_factory=frozenset)

    @classmethod
    def unused(cls) -> "UsageDecision":
        return cls(UsageState.UNUSED)

    @classmethod
    def always(cls) -> "UsageDecision":
        return cls(UsageState.ALWAYS)

    @classmethod
    def via(cls, exports: Iterable[str]) -> "UsageDecision":
        names = frozenset(exports)
        if not names:
            return cls.unused()
        return cls(UsageState.EXPORTS, names)

    def is_used(self, used_exports: Optional[Iterable[str]] = None) -> bool:
        """Whether the anchored expression must be kept.

        ``used_exports`` is the set of export names some consumer actually
        imports; ``None`` means that is unknown, in which case anything that
        is reachable from an export at all is kept.
        """
        if self.state is UsageState.UNUSED:
            return False
        if self.state is UsageState.ALWAYS or used_exports is None:
            return True
        return not self.exports.isdisjoint(used_exports)

    def to_json(self) -> Any:
        if self.state is UsageState.UNUSED:
            return False
        if self.state is UsageState.ALWAYS:
            return True
        return sorted(self.exports)

    def __str__(self) -> str:
        if self.state is UsageState.EXPORTS:
            return "used via " + ", ".join(sorted(self.exports))
        if self.state is UsageState.ALWAYS:
            return "unconditionally used"
        return "not used by any export"


class PureExpressionDependency:
    """Handle for a side-effect free initializer expression."""

    __slots__ = ("range", "loc", "name", "_decision")

    def __init__(
        self,
        range: Tuple[int, int],
        name: str,
        loc: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.range = (int(range[0]), int(range[1]))
        self.name = name
        self.loc = loc
        self._decision: Optional[UsageDecision] = None

    @property
    def published(self) -> bool:
        return self._decision is not None

    @property
    def used_by_exports(self) -> Optional[UsageDecision]:
        """The published decision, ``None`` until the module is flattened."""
        return self._decision

    def publish(self, decision: UsageDecision) -> None:
        if self._decision is not None:
            raise DecisionAlreadyPublished(
                f"usage of {self.name!r} at {self.range} was already decided"
            )
        self._decision = decision

    @property
    def line(self) -> int:
        if not self.loc:
            return 0
        return int((self.loc.get("start") or {}).get("line") or 0)

    def __repr__(self) -> str:
        return f"PureExpressionDependency({self.name!r}, range={self.range})"
