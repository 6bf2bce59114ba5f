"""
JavaScript parsing front door.

Sources are parsed with esprima (ranges, locations and comments enabled) and
converted to a plain dict-based ESTree so the rest of the package never
touches parser objects.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import esprima
from esprima.error_handler import Error as EsprimaError

from .errors import ParseError

logger = logging.getLogger(__name__)

ASTNode = Dict[str, Any]


@dataclass
class ParsedModule:
    ast: ASTNode
    source: str
    filename: Optional[str] = None
    comments: List[Dict[str, Any]] = field(default_factory=list)


def _to_plain(value: Any) -> Any:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, (list, tuple)):
        return [_to_plain(v) for v in value]
    if hasattr(value, "__dict__"):
        return {k: _to_plain(v) for k, v in vars(value).items() if not k.startswith("_")}
    return value


def parse_module(source: str, filename: Optional[str] = None, source_type: str = "module") -> ParsedModule:
    options = {"range": True, "loc": True, "comment": True}
    try:
        if source_type == "script":
            program = esprima.parseScript(source, options)
        else:
            program = esprima.parseModule(source, options)
    except EsprimaError as e:
        raise ParseError(
            getattr(e, "description", None) or str(e),
            filename=filename,
            line=getattr(e, "lineNumber", None),
            column=getattr(e, "column", None),
        ) from e
    tree = _to_plain(program)
    comments = tree.pop("comments", None) or []
    comments.sort(key=lambda c: c["range"][0])
    logger.debug("parsed %s: %d statements, %d comments", filename or "<source>", len(tree.get("body") or []), len(comments))
    return ParsedModule(ast=tree, source=source, filename=filename, comments=comments)


def parse_file(path: Path, source_type: str = "module") -> ParsedModule:
    source = path.read_text(encoding="utf-8")
    return parse_module(source, filename=str(path), source_type=source_type)


def comments_in_range(comments: Sequence[Dict[str, Any]], start: int, end: int) -> List[Dict[str, Any]]:
    """Comments lying entirely inside ``[start, end]``."""
    return [c for c in comments if c["range"][0] >= start and c["range"][1] <= end]


def node_key(node: ASTNode) -> tuple:
    """Stable identity of a node within one module: its type and span."""
    start, end = node["range"]
    return (node.get("type"), start, end)
