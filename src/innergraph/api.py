"""
High level entry points: analyse a source string, a file, or a tree of files.

Each module gets a fresh graph; nothing is shared between modules.
"""

from __future__ import annotations

import fnmatch
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from .builder import GraphBuilder, ModuleAnalysis
from .errors import ParseError
from .parse import parse_file, parse_module
from .walker import ModuleWalker

logger = logging.getLogger(__name__)

DEFAULT_INCLUDE = ["**/*.js", "**/*.mjs"]
DEFAULT_EXCLUDE = ["**/node_modules/**", "**/dist/**", "**/build/**"]


@dataclass
class ProjectAnalysis:
    modules: Dict[str, ModuleAnalysis] = field(default_factory=dict)
    errors: Dict[str, str] = field(default_factory=dict)

    @property
    def summary(self) -> Dict[str, int]:
        symbols = sum(len(m.symbols) for m in self.modules.values())
        unused = sum(len(m.unused_symbols()) for m in self.modules.values())
        pure = sum(len(m.dependencies) for m in self.modules.values())
        removable = sum(
            1
            for m in self.modules.values()
            for dep in m.dependencies
            if dep.published and not dep.used_by_exports.is_used()
        )
        return {
            "modules": len(self.modules),
            "errors": len(self.errors),
            "symbols": symbols,
            "unused_symbols": unused,
            "pure_expressions": pure,
            "removable_expressions": removable,
        }


def analyze_source(source: str, filename: Optional[str] = None, source_type: str = "module") -> ModuleAnalysis:
    """Parse ``source`` and compute the usage of its top-level declarations."""
    module = parse_module(source, filename=filename, source_type=source_type)
    return ModuleWalker(GraphBuilder()).walk_module(module)


def analyze_file(path: Path, source_type: str = "module") -> ModuleAnalysis:
    module = parse_file(Path(path), source_type=source_type)
    return ModuleWalker(GraphBuilder()).walk_module(module)


def _matches(rel: str, patterns: List[str]) -> bool:
    # fnmatch's "**/" needs at least one directory; also try the bare tail
    for pat in patterns:
        if fnmatch.fnmatch(rel, pat):
            return True
        if pat.startswith("**/") and fnmatch.fnmatch(rel, pat[3:]):
            return True
    return False


def collect_js_files(paths: List[str], include: List[str], exclude: List[str]) -> List[Path]:
    collected: List[Path] = []
    for root in paths:
        base = Path(root)
        if base.is_file():
            collected.append(base)
            continue
        if not base.exists():
            logger.warning("path does not exist: %s", base)
            continue
        for dirpath, dirnames, filenames in os.walk(base):
            # prune excluded dirs
            for d in list(dirnames):
                rel = (Path(dirpath) / d).relative_to(base).as_posix()
                if _matches(rel + "/", exclude) or _matches(rel, exclude):
                    dirnames.remove(d)
            for fn in sorted(filenames):
                rel = (Path(dirpath) / fn).relative_to(base).as_posix()
                if _matches(rel, exclude):
                    continue
                if include and not _matches(rel, include):
                    continue
                collected.append(Path(dirpath) / fn)
    return sorted(collected)


def analyze_project(
    paths: List[str],
    include: Optional[List[str]] = None,
    exclude: Optional[List[str]] = None,
    source_type: str = "module",
) -> ProjectAnalysis:
    """Analyse every matching file; parse failures are recorded, not raised."""
    files = collect_js_files(
        paths,
        DEFAULT_INCLUDE if include is None else include,
        DEFAULT_EXCLUDE if exclude is None else exclude,
    )
    result = ProjectAnalysis()
    for path in files:
        key = path.as_posix()
        try:
            result.modules[key] = analyze_file(path, source_type=source_type)
        except (ParseError, OSError, UnicodeDecodeError) as e:
            logger.warning("skipping %s: %s", key, e)
            result.errors[key] = str(e)
            continue
        logger.info("analysed %s", key)
    return result
