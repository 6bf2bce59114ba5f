"""
JSON report of a project analysis.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Tuple

from .api import ProjectAnalysis
from .builder import ModuleAnalysis
from .dependency import PureExpressionDependency
from .graph import ALWAYS_USED
from .symbols import TopLevelSymbol

REPORT_VERSION = "1.0"


def node_label(node: Any) -> str:
    if isinstance(node, TopLevelSymbol):
        return node.name
    if isinstance(node, PureExpressionDependency):
        return f"pure:{node.name}@{node.range[0]}"
    if node is ALWAYS_USED:
        return "<always>"
    return f"export:{node}"


def _edges(analysis: ModuleAnalysis) -> List[Dict[str, str]]:
    pairs: List[Tuple[str, str]] = [(node_label(n), node_label(t)) for n, t in analysis.edges]
    return [{"used": used, "by": by} for used, by in sorted(pairs)]


def build_report(project: ProjectAnalysis) -> Dict[str, Any]:
    modules = []
    for name, analysis in sorted(project.modules.items()):
        entry = analysis.to_dict()
        entry["file"] = name
        entry["edges"] = _edges(analysis)
        modules.append(entry)
    return {
        "version": REPORT_VERSION,
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "summary": project.summary,
        "modules": modules,
        "errors": [{"file": f, "error": msg} for f, msg in sorted(project.errors.items())],
    }


def save_report(project: ProjectAnalysis, output_dir: Path) -> Path:
    output_dir.mkdir(parents=True, exist_ok=True)
    out = output_dir / "usage_report.json"
    out.write_text(json.dumps(build_report(project), ensure_ascii=False, indent=2), encoding="utf-8")
    return out
