#!/usr/bin/env python3
"""
innergraph command line

Subcommands:
  - analyze:      compute top-level usage for every JS module under the given paths
  - init:         write innergraph.yaml from the packaged template
  - show-config:  print the effective configuration
"""
from __future__ import annotations

import argparse
import logging
import re
import sys
from pathlib import Path
from typing import List, Optional

from . import __version__

logger = logging.getLogger("innergraph")


def _setup_logging(verbose: bool) -> None:
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
    root = logging.getLogger("innergraph")
    root.handlers[:] = [handler]
    root.setLevel(logging.DEBUG if verbose else logging.WARNING)


def _graph_basename(module: str) -> str:
    return re.sub(r"[^A-Za-z0-9_.-]+", "_", module).strip("_") or "module"


def _run_analyze(args: argparse.Namespace) -> int:
    from .api import analyze_project
    from .config_loader import load_config
    from .report import save_report

    config = load_config(Path(args.config) if args.config else None)
    paths = args.paths or config.paths
    output_dir = Path(args.output or config.output)
    fmt = args.format or config.format

    project = analyze_project(paths, config.include, config.exclude, source_type=config.source_type)

    for name, analysis in sorted(project.modules.items()):
        unused = analysis.unused_symbols()
        removable = [
            dep.name for dep in analysis.dependencies
            if dep.published and not dep.used_by_exports.is_used()
        ]
        if unused or removable:
            print(f"{name}")
            for sym in unused:
                print(f"  unused: {sym}")
            for dep_name in removable:
                print(f"  removable pure initializer: {dep_name}")
    for name, error in sorted(project.errors.items()):
        print(f"❌ {error}", file=sys.stderr)

    if config.write_json and not args.no_json:
        out = save_report(project, output_dir)
        print(f"📄 report: {out}")

    if args.graph or config.render_graph:
        from .graphviz_render import render_usage_graph

        graph_dir = output_dir / "graphs"
        graph_dir.mkdir(parents=True, exist_ok=True)
        for name, analysis in sorted(project.modules.items()):
            dot_path, out_path = render_usage_graph(analysis, str(graph_dir / _graph_basename(name)), fmt=fmt)
            if not out_path:
                print(f"⚠️  Graphviz executables not found, wrote {dot_path} only")

    s = project.summary
    print(
        f"modules={s['modules']} symbols={s['symbols']} unused={s['unused_symbols']} "
        f"pure={s['pure_expressions']} removable={s['removable_expressions']} errors={s['errors']}"
    )
    return 1 if project.errors else 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="innergraph",
        description="Top-level usage analysis for JavaScript modules (tree shaking inner graph)",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="cmd")

    p_analyze = sub.add_parser("analyze", help="Analyse JS files or directories")
    p_analyze.add_argument("paths", nargs="*", help="Files or directories (default from config)")
    p_analyze.add_argument("--config", default=None, help="Path to innergraph.yaml or pyproject.toml")
    p_analyze.add_argument("--output", default=None, help="Output directory (default from config)")
    p_analyze.add_argument("--format", default=None, choices=["svg", "png", "pdf"], help="Graph format")
    p_analyze.add_argument("--graph", action="store_true", help="Render one usage graph per module")
    p_analyze.add_argument("--no-json", action="store_true", help="Do not write usage_report.json")

    p_init = sub.add_parser("init", help="Generate innergraph.yaml")
    p_init.add_argument("--force", action="store_true", help="Overwrite existing innergraph.yaml if present")
    p_init.add_argument("--output", default="innergraph.yaml", help="Target file")

    p_show = sub.add_parser("show-config", help="Print the effective configuration")
    p_show.add_argument("--config", default=None, help="Path to innergraph.yaml or pyproject.toml")

    args = parser.parse_args(argv)
    _setup_logging(args.verbose)

    if not args.cmd:
        parser.print_help()
        return 0

    from .errors import InnerGraphError

    try:
        if args.cmd == "analyze":
            return _run_analyze(args)
        if args.cmd == "init":
            from .config_init import init_config
            init_config(Path(args.output), force=args.force)
            return 0
        if args.cmd == "show-config":
            from .config_init import show_config
            show_config(Path(args.config) if args.config else None)
            return 0
    except (InnerGraphError, FileExistsError) as e:
        print(f"❌ {e}", file=sys.stderr)
        return 2
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
