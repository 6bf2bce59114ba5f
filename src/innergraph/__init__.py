"""
innergraph - which top-level declarations of a JavaScript module are used, and by which exports

Simple API:

    from innergraph import analyze_source

    result = analyze_source("const a = /*#__PURE__*/ f(); export function b() { return a; }")
    print(result.dependency("a").used_by_exports)   # used via b
    print(result.unused_symbols())
"""


def analyze_source(*args, **kwargs):
    """Lazy import wrapper to avoid importing the parser at package import time."""
    from .api import analyze_source as _analyze_source

    return _analyze_source(*args, **kwargs)


def analyze_project(*args, **kwargs):
    """Lazy import wrapper for analyze_project."""
    from .api import analyze_project as _analyze_project

    return _analyze_project(*args, **kwargs)


from .dependency import PureExpressionDependency, UsageDecision, UsageState
from .graph import ALWAYS_USED, UsageGraph, flatten
from .symbols import DEFAULT_EXPORT_NAME, SymbolRegistry, TopLevelSymbol

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("innergraph")
except PackageNotFoundError:
    # Fallback for development/uninstalled package
    __version__ = "unknown"

__all__ = [
    "ALWAYS_USED",
    "DEFAULT_EXPORT_NAME",
    "PureExpressionDependency",
    "SymbolRegistry",
    "TopLevelSymbol",
    "UsageDecision",
    "UsageGraph",
    "UsageState",
    "analyze_project",
    "analyze_source",
    "flatten",
    "__version__",
]
