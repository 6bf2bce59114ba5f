"""
Side-effect freedom of top-level initializers.

Deliberately narrow: an identifier, a literal, or a conditional built only
from those is pure, and so is anything marked with a ``/*#__PURE__*/`` or
``/*@__PURE__*/`` comment. Everything else is treated as having effects.
"""

from __future__ import annotations

import re
from typing import Any, Dict, Sequence

from .parse import ASTNode, comments_in_range

PURE_PRAGMA_RE = re.compile(r"^\s*(#|@)__PURE__\s*$")

# A binding-to-initializer gap this short cannot contain a pragma comment.
PURE_PRAGMA_MIN_GAP = 9


def is_pure_expression(expr: ASTNode) -> bool:
    kind = expr.get("type")
    if kind in ("Identifier", "Literal"):
        return True
    if kind == "ConditionalExpression":
        return (
            is_pure_expression(expr["test"])
            and is_pure_expression(expr["consequent"])
            and is_pure_expression(expr["alternate"])
        )
    return False


def is_pure_comment(comment: Dict[str, Any]) -> bool:
    # esprima reports "Block"; some ESTree producers use "BlockComment"
    if comment.get("type") not in ("Block", "BlockComment"):
        return False
    return PURE_PRAGMA_RE.match(comment.get("value") or "") is not None


def has_pure_pragma(declarator: ASTNode, comments: Sequence[Dict[str, Any]]) -> bool:
    """A pure comment sits between the bound name and its initializer."""
    ident_end = declarator["id"]["range"][1]
    init_start = declarator["init"]["range"][0]
    if init_start - ident_end <= PURE_PRAGMA_MIN_GAP:
        return False
    return any(is_pure_comment(c) for c in comments_in_range(comments, ident_end, init_start))


def is_pure_declarator(declarator: ASTNode, comments: Sequence[Dict[str, Any]] = ()) -> bool:
    init = declarator.get("init")
    if not init:
        return False
    return has_pure_pragma(declarator, comments) or is_pure_expression(init)
