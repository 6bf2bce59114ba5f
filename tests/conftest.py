import sys
from pathlib import Path

import pytest

# Ensure repo_root/src is available on sys.path before any tests import innergraph
REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = REPO_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))


@pytest.fixture
def js_project(tmp_path: Path) -> Path:
    """A small JS tree: one library module, one entry module, plus files to skip."""
    src = tmp_path / "web"
    (src / "lib").mkdir(parents=True)
    (src / "node_modules" / "dep").mkdir(parents=True)
    (src / "lib" / "util.js").write_text(
        "const used = 1;\n"
        "const dead = /*#__PURE__*/ make();\n"
        "export function api() { return used; }\n",
        encoding="utf-8",
    )
    (src / "main.mjs").write_text("import { api } from './lib/util.js';\napi();\n", encoding="utf-8")
    (src / "notes.txt").write_text("not js", encoding="utf-8")
    (src / "node_modules" / "dep" / "index.js").write_text("export const x = 1;\n", encoding="utf-8")
    return src
