from __future__ import annotations
import logging
from fastapi import FastAPI
from fxcrowd.db import init_db
from fxcrowd.log import setup_logging
from fxcrowd.core.scheduler import get_orchestrator, schedule_passes, start_scheduler, shutdown_scheduler
from fxcrowd.config import settings

from fxcrowd.routers.health import router as health_router
from fxcrowd.routers.sentiment import router as sentiment_router
from fxcrowd.routers.admin import router as admin_router

setup_logging()
log = logging.getLogger("fxcrowd.main")

app = FastAPI(title="fxcrowd", version="0.1.0")

app.include_router(health_router)
app.include_router(sentiment_router)
app.include_router(admin_router)

@app.on_event("startup")
async def startup():
    # Now, we initialize the database schema (create tables if missing).
    init_db()
    log.info("DB initialized.")

    if not settings.scheduler_enabled:
        log.info("Scheduler disabled; scrapes run only on demand.")
        return

    # Now, we hand the shared orchestrator to the scheduler and start it.
    # The admin endpoints use the same instance, so manual and scheduled
    # runs see the same cooldowns and in-flight flag.
    schedule_passes(get_orchestrator())
    start_scheduler()
    log.info("Scheduler started with scrape interval of %d seconds.", settings.scrape_interval_seconds)

@app.on_event("shutdown")
async def shutdown():
    shutdown_scheduler()
