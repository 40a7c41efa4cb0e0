from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from .workspace import Workspace


EXPORT_FILENAME = "microsteps-export.json"


def export_json(workspace: Workspace, out_dir: Path) -> Path:
    out_path = Path(out_dir)
    out_path.mkdir(parents=True, exist_ok=True)
    json_path = out_path / EXPORT_FILENAME
    json_path.write_text(
        json.dumps(workspace.export_data(), ensure_ascii=False, indent=2),
        encoding="utf-8",
    )
    return json_path


def read_export(path: Path) -> dict[str, Any]:
    content = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(content, dict):
        raise ValueError("export JSON must be an object")
    return content
