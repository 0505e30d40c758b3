from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
from fxcrowd.config import settings
from fxcrowd.core import store
from fxcrowd.core.errors import PassInProgressError, UnknownSourceError
from fxcrowd.core.scheduler import ScraperOrchestrator, get_orchestrator
from fxcrowd.db import get_db
from fxcrowd.models import now_utc
from fxcrowd.schemas import AdapterStatusOut, PassOut, RunLogOut, ScrapeResultOut

router = APIRouter(prefix="/api/v1/admin", tags=["admin"])

@router.post("/scrape", response_model=PassOut)
async def scrape_all(orchestrator: ScraperOrchestrator = Depends(get_orchestrator)):
    try:
        result = await orchestrator.run_all()
    except PassInProgressError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return result.to_dict()

@router.get("/scrape/status", response_model=dict[str, AdapterStatusOut])
def scrape_status(orchestrator: ScraperOrchestrator = Depends(get_orchestrator)):
    return orchestrator.status()

@router.post("/scrape/{name}", response_model=ScrapeResultOut)
async def scrape_one(name: str, orchestrator: ScraperOrchestrator = Depends(get_orchestrator)):
    try:
        result = await orchestrator.run_one(name.lower())
    except UnknownSourceError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except PassInProgressError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return result.to_dict()

@router.get("/logs", response_model=list[RunLogOut])
def run_logs(
    limit: int = Query(50, ge=1, le=200),
    db: Session = Depends(get_db),
):
    rows = store.recent_run_logs(db, now_utc(), settings.run_log_retention_hours, limit)
    return [r.as_dict() for r in rows]
