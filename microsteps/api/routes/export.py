from __future__ import annotations

from pathlib import Path
from typing import Any

from fastapi import APIRouter, Body, Depends

from ...exporting import export_json
from ...workspace import Workspace
from ..deps import get_workspace
from ..schemas import ExportFileRequest, ExportOut, FileResult, OkOut

router = APIRouter(prefix="/api/v1", tags=["export"])


@router.get("/export", response_model=ExportOut)
def export_data(workspace: Workspace = Depends(get_workspace)) -> ExportOut:
    return ExportOut(**workspace.export_data())


@router.post("/export/json", response_model=FileResult)
def export_file(payload: ExportFileRequest, workspace: Workspace = Depends(get_workspace)) -> FileResult:
    out_dir = Path(payload.out_dir) if payload.out_dir else Path(__file__).resolve().parents[2] / "out"
    json_path = export_json(workspace, out_dir)
    return FileResult(path=str(json_path))


@router.post("/import", response_model=ExportOut)
def import_data(document: dict[str, Any] = Body(...), workspace: Workspace = Depends(get_workspace)) -> ExportOut:
    workspace.load_data(document)
    return ExportOut(**workspace.export_data())


@router.delete("/data", response_model=OkOut)
def delete_all_data(workspace: Workspace = Depends(get_workspace)) -> OkOut:
    workspace.delete_all_data()
    return OkOut()
