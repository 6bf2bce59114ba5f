from __future__ import annotations

from typing import Any, Dict, Tuple

from graphviz import Digraph
from graphviz.backend import ExecutableNotFound

from .builder import ModuleAnalysis
from .dependency import PureExpressionDependency
from .graph import ALWAYS_USED

ALWAYS_NODE = "__always__"


def _color_for_value(value: Any) -> str:
    # traffic light: kept via exports / kept always / removable
    if value is None:
        return "#F44336"  # red
    if value is ALWAYS_USED:
        return "#2196F3"  # blue
    return "#4CAF50"  # green


def _node_id(node: Any, ids: Dict[int, str]) -> str:
    if node is ALWAYS_USED:
        return ALWAYS_NODE
    if isinstance(node, str):
        return f"export:{node}"
    key = id(node)
    if key not in ids:
        ids[key] = f"n{len(ids)}"
    return ids[key]


def render_usage_graph(
    analysis: ModuleAnalysis,
    output_base: str,
    fmt: str = "svg",
) -> Tuple[str, str]:
    """Draw the module's usage edges as recorded before flattening.

    An edge ``a -> b`` reads "a uses b". Node colours show the flattened
    result. Returns (dot path, rendered path); the rendered path is empty when
    the Graphviz executables are not installed.
    """
    dot = Digraph(
        "innergraph",
        graph_attr={
            "rankdir": "LR",
            "splines": "spline",
            "label": analysis.filename or "<source>",
            "labelloc": "t",
        },
        node_attr={"shape": "box", "style": "rounded,filled", "fontname": "Helvetica"},
        edge_attr={"arrowhead": "vee"},
    )
    ids: Dict[int, str] = {}

    for name, sym in sorted(analysis.symbols.items()):
        value = analysis.graph.get(sym)
        dot.node(
            _node_id(sym, ids),
            label=f"{name}\n{sym.kind}",
            fillcolor=_color_for_value(value),
        )
    for dep in analysis.dependencies:
        value = analysis.graph.get(dep)
        dot.node(
            _node_id(dep, ids),
            label=f"pure {dep.name}\n@{dep.range[0]}-{dep.range[1]}",
            shape="ellipse",
            fillcolor=_color_for_value(value),
        )

    seen_exports = set()
    has_always = False
    for node, target in analysis.edges:
        if target is ALWAYS_USED:
            has_always = True
        elif isinstance(target, str) and target not in seen_exports:
            seen_exports.add(target)
            dot.node(_node_id(target, ids), label=f"export {target}", shape="note", fillcolor="#FFFFFF")
        style = "dashed" if isinstance(node, PureExpressionDependency) else "solid"
        dot.edge(_node_id(target, ids), _node_id(node, ids), color="black", style=style)
    if has_always:
        dot.node(ALWAYS_NODE, label="always", shape="doublecircle", fillcolor="#FFFFFF")

    dot_path = f"{output_base}.dot"
    out_path = f"{output_base}.{fmt}"
    dot.save(dot_path)

    try:
        dot.render(output_base, format=fmt, cleanup=True)
    except ExecutableNotFound:
        # Only DOT written; caller should inform user
        out_path = ""
    return dot_path, out_path
