from __future__ import annotations

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from ..db import get_session
from ..services import export_files, export_ledger, init_db


app = FastAPI(title="GDPdU Export API", version="0.1.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class ExportIn(BaseModel):
    base_path: str


class ExportOut(BaseModel):
    status: str
    files: list[str]


@app.on_event("startup")
def _startup() -> None:
    init_db()


@app.post("/export", response_model=ExportOut)
def api_export(payload: ExportIn):
    with get_session() as s:
        try:
            info = export_ledger(s, payload.base_path)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
    if info.failed:
        raise HTTPException(status_code=500, detail="GDPdU export failed")
    return ExportOut(status="ok", files=[str(p) for p in export_files(info.file_name)])
