from __future__ import annotations

from datetime import datetime
from typing import Annotated

from fastapi import Depends, FastAPI, Header, HTTPException
from pydantic import BaseModel

from evalq.config.settings import settings
from evalq.core.db import SQLiteJobStore
from evalq.core.errors import StoreError
from evalq.core.state import JobStatus

app = FastAPI(title="evalq panel", version="0.1.0")


def auth(x_panel_token: Annotated[str | None, Header()] = None):
    if settings.PANEL_TOKEN and x_panel_token != settings.PANEL_TOKEN:
        raise HTTPException(status_code=401, detail="Unauthorized")


def get_store() -> SQLiteJobStore:
    return SQLiteJobStore(settings.DB_PATH)


class SubmissionIn(BaseModel):
    name: str
    code: str
    timestamp: str | None = None


# ---------- API JSON ----------


@app.get("/health")
async def health():
    return {"ok": True, "time": datetime.now().isoformat()}


@app.get("/jobs")
async def jobs(
    status: JobStatus | None = None,
    limit: int = 50,
    store: SQLiteJobStore = Depends(get_store),
    _: Annotated[None, Depends(auth)] = None,
):
    try:
        rows = store.list_jobs(limit=limit, status=status)
        counts = store.counts()
    except StoreError as e:
        raise HTTPException(status_code=503, detail=str(e))
    # el payload puede ser grande; no se lista
    items = [j.model_dump(exclude={"payload"}, mode="json") for j in rows]
    return {"counts": counts, "items": items}


@app.get("/jobs/{job_id}")
async def job_detail(
    job_id: str,
    store: SQLiteJobStore = Depends(get_store),
    _: Annotated[None, Depends(auth)] = None,
):
    try:
        job = store.get(job_id)
        events = store.list_events(job_id) if job is not None else []
    except StoreError as e:
        raise HTTPException(status_code=503, detail=str(e))
    if job is None:
        raise HTTPException(status_code=404, detail="job not found")
    return {"job": job.model_dump(exclude={"payload"}, mode="json"), "events": events}


@app.post("/jobs", status_code=201)
async def submit(
    body: SubmissionIn,
    store: SQLiteJobStore = Depends(get_store),
    _: Annotated[None, Depends(auth)] = None,
):
    if not body.name.strip() or not body.code:
        raise HTTPException(status_code=422, detail="name and code are required")
    job_id = store.add(body.name.strip(), body.code, body.timestamp)
    return {"id": job_id, "status": JobStatus.PENDING.value}
