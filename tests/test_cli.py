from __future__ import annotations

import json
from pathlib import Path

import pytest

from innergraph.api import analyze_project, collect_js_files
from innergraph.cli import main
from innergraph.report import build_report


def test_collect_js_files_applies_include_and_exclude(js_project: Path) -> None:
    files = collect_js_files([str(js_project)], ["**/*.js", "**/*.mjs"], ["**/node_modules/**"])
    assert [f.relative_to(js_project).as_posix() for f in files] == ["lib/util.js", "main.mjs"]


def test_analyze_project_records_parse_errors(js_project: Path) -> None:
    (js_project / "broken.js").write_text("function (", encoding="utf-8")
    project = analyze_project([str(js_project)])
    assert len(project.modules) == 2
    assert list(project.errors) == [(js_project / "broken.js").as_posix()]
    summary = project.summary
    assert summary["unused_symbols"] == 1
    assert summary["pure_expressions"] == 2
    assert summary["removable_expressions"] == 1


def test_report_lists_edges(js_project: Path) -> None:
    report = build_report(analyze_project([str(js_project)]))
    util = next(m for m in report["modules"] if m["file"].endswith("util.js"))
    assert {"used": "used", "by": "api"} in util["edges"]
    assert {"used": "api", "by": "export:api"} in util["edges"]
    assert util["unused"] == ["dead"]


def test_cli_analyze_writes_report(tmp_path: Path, js_project: Path, monkeypatch: pytest.MonkeyPatch, capsys) -> None:
    out = tmp_path / "out"
    monkeypatch.chdir(tmp_path)
    code = main(["analyze", str(js_project), "--output", str(out)])
    assert code == 0
    printed = capsys.readouterr().out
    assert "unused: dead" in printed
    assert "removable pure initializer: dead" in printed
    data = json.loads((out / "usage_report.json").read_text(encoding="utf-8"))
    assert data["summary"]["modules"] == 2
    assert data["errors"] == []


def test_cli_exit_code_on_parse_error(tmp_path: Path, js_project: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    (js_project / "broken.js").write_text("function (", encoding="utf-8")
    monkeypatch.chdir(tmp_path)
    assert main(["analyze", str(js_project), "--no-json"]) == 1
    assert not (tmp_path / "innergraph_results").exists()


def test_cli_init_refuses_to_overwrite(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)
    assert main(["init"]) == 0
    assert (tmp_path / "innergraph.yaml").exists()
    assert main(["init"]) == 2
    assert main(["init", "--force"]) == 0


def test_cli_bad_config_exit_code(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    (tmp_path / "innergraph.yaml").write_text("format: gif\n", encoding="utf-8")
    monkeypatch.chdir(tmp_path)
    assert main(["analyze"]) == 2
