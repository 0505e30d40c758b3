"""
Scraper Orchestrator + Scheduler.

One pass = every eligible adapter, one after another, each with its own
browser session. After the adapters:
1. successful results are persisted
2. snapshots past the retention horizon are deleted
3. a ScraperRunLog row is written and old run logs are purged

The orchestrator holds all scheduling state itself (per-adapter last run,
in-flight flag, last good result) and reads time from an injected clock, so
tests can move time forward without waiting on real timers.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Iterable

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from sqlalchemy.orm import Session

from fxcrowd.config import settings
from fxcrowd.core import store
from fxcrowd.core.errors import PassInProgressError, UnknownSourceError
from fxcrowd.core.symbols import standard_orientation
from fxcrowd.db import SessionLocal
from fxcrowd.models import now_utc
from fxcrowd.services.base_adapter import ScrapeResult, SourceAdapter
from fxcrowd.services.registry import build_adapters

log = logging.getLogger("core.scheduler")

Clock = Callable[[], datetime]

# Now, we create the Scheduler.
# AsyncIOScheduler runs jobs on the application's own event loop, so a pass
# shares the loop with the API instead of needing a thread.
scheduler = AsyncIOScheduler(timezone="UTC")


class CooldownTracker:
    """
    Minimum spacing between two runs of the same adapter.

    Unlike a sliding-window rate limiter this never sleeps; callers ask
    whether an adapter may run and skip it when it may not.
    """
    def __init__(self, cooldown_seconds: float, clock: Clock = now_utc):
        self.cooldown = timedelta(seconds=cooldown_seconds)
        self.clock = clock
        self._last_run: dict[str, datetime] = {}

    def record(self, name: str) -> None:
        self._last_run[name] = self.clock()

    def wait_seconds(self, name: str) -> int:
        last = self._last_run.get(name)
        if last is None:
            return 0
        remaining = (last + self.cooldown - self.clock()).total_seconds()
        return max(0, math.ceil(remaining))

    def can_run(self, name: str) -> bool:
        return self.wait_seconds(name) == 0


@dataclass
class PassResult:
    run_log: dict
    results: list[ScrapeResult] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"run_log": self.run_log, "results": [r.to_dict() for r in self.results]}


class ScraperOrchestrator:
    def __init__(
        self,
        adapters: Iterable[SourceAdapter],
        *,
        session_factory: Callable[[], Session] = SessionLocal,
        clock: Clock = now_utc,
        cooldown_seconds: float = settings.scrape_cooldown_seconds,
        snapshot_retention_days: int = settings.snapshot_retention_days,
        run_log_retention_hours: int = settings.run_log_retention_hours,
    ):
        self.adapters: dict[str, SourceAdapter] = {a.name: a for a in adapters}
        self.session_factory = session_factory
        self.clock = clock
        self.cooldowns = CooldownTracker(cooldown_seconds, clock)
        self.snapshot_retention_days = snapshot_retention_days
        self.run_log_retention_hours = run_log_retention_hours
        self._last_success: dict[str, ScrapeResult] = {}
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def status(self) -> dict[str, dict]:
        return {
            name: {
                "can_run": self.cooldowns.can_run(name),
                "wait_seconds": self.cooldowns.wait_seconds(name),
            }
            for name in self.adapters
        }

    def _persist(self, result: ScrapeResult) -> int:
        db = self.session_factory()
        try:
            return store.save_snapshots(db, result.source, result.data, result.timestamp)
        finally:
            db.close()

    async def _execute(self, adapter: SourceAdapter) -> ScrapeResult:
        self.cooldowns.record(adapter.name)
        result = await adapter.scrape()
        if result.success:
            stored = self._persist(result)
            log.info("%s: stored %d of %d snapshots", adapter.name, stored, len(result.data))
            self._last_success[adapter.name] = result
        return result

    def _cached(self, name: str) -> ScrapeResult | None:
        cached = self._last_success.get(name)
        if cached is None:
            return None
        if self.clock() - cached.timestamp < self.cooldowns.cooldown:
            return cached
        return None

    async def run_one(self, name: str) -> ScrapeResult:
        """
        Run a single adapter on demand.

        Raises:
            UnknownSourceError: no adapter is registered under `name`.
            PassInProgressError: a full pass currently owns the adapters.
        """
        adapter = self.adapters.get(name)
        if adapter is None:
            raise UnknownSourceError(name)
        if self._running:
            raise PassInProgressError("a scrape pass is already running")

        wait = self.cooldowns.wait_seconds(name)
        if wait > 0:
            cached = self._cached(name)
            if cached is not None:
                log.info("%s cooling down; returning cached result from %s", name, cached.timestamp.isoformat())
                return cached
            return ScrapeResult.failed(name, f"Rate limited. Try again in {wait} seconds.", self.clock())

        self._running = True
        try:
            return await self._execute(adapter)
        finally:
            self._running = False

    async def run_all(self) -> PassResult:
        """
        One full pass over every eligible adapter.

        Adapters still cooling down are skipped and do not count towards the
        run log totals.
        """
        if self._running:
            raise PassInProgressError("a scrape pass is already running")
        self._running = True
        try:
            results: list[ScrapeResult] = []
            for name, adapter in self.adapters.items():
                wait = self.cooldowns.wait_seconds(name)
                if wait > 0:
                    log.info("skipping %s: cooling down for %d more seconds", name, wait)
                    continue
                results.append(await self._execute(adapter))

            failed = [r for r in results if not r.success]
            instruments = {standard_orientation(cs.symbol)[0] for r in results if r.success for cs in r.data}

            now = self.clock()
            db = self.session_factory()
            try:
                deleted = store.cleanup_old_snapshots(db, now, self.snapshot_retention_days)
                entry = store.record_run_log(
                    db,
                    timestamp=now,
                    total_scrapers=len(results),
                    success_count=len(results) - len(failed),
                    failed_count=len(failed),
                    instrument_count=len(instruments),
                    failed_scrapers=[r.source for r in failed],
                    error_messages=[f"{r.source}: {r.error}" for r in failed],
                    deleted_snapshots=deleted,
                )
                run_log = entry.as_dict()
                store.cleanup_old_run_logs(db, now, self.run_log_retention_hours)
            finally:
                db.close()

            log.info(
                "scrape pass done: %d/%d succeeded, %d instruments, %d old snapshots deleted",
                run_log["success_count"], run_log["total_scrapers"], len(instruments), deleted,
            )
            return PassResult(run_log=run_log, results=results)
        finally:
            self._running = False


_orchestrator: ScraperOrchestrator | None = None


def get_orchestrator() -> ScraperOrchestrator:
    """Process-wide orchestrator built from ENABLED_SOURCES. Used as a FastAPI dependency."""
    global _orchestrator
    if _orchestrator is None:
        _orchestrator = ScraperOrchestrator(build_adapters(settings.enabled_sources))
    return _orchestrator


async def run_scheduled_pass(orchestrator: ScraperOrchestrator) -> None:
    """Scheduler job body. Nothing raised here may stop the recurring job."""
    try:
        await orchestrator.run_all()
    except PassInProgressError:
        log.warning("scheduled pass skipped: previous pass still running")
    except Exception:
        log.exception("scheduled scrape pass failed")


def schedule_passes(
    orchestrator: ScraperOrchestrator,
    interval_seconds: int = settings.scrape_interval_seconds,
    initial_delay_seconds: int = settings.scrape_initial_delay_seconds,
    clock: Clock = now_utc,
) -> None:
    # Now, we add the recurring pass plus one pass shortly after start-up,
    # so a fresh deployment does not wait a full interval for data.
    scheduler.add_job(
        run_scheduled_pass, "interval", seconds=interval_seconds,
        args=[orchestrator], id="scrape", replace_existing=True,
        max_instances=1, coalesce=True,
    )
    scheduler.add_job(
        run_scheduled_pass, "date", run_date=clock() + timedelta(seconds=initial_delay_seconds),
        args=[orchestrator], id="scrape-initial", replace_existing=True,
    )
    log.info("scrape pass scheduled every %d seconds (first in %d seconds)", interval_seconds, initial_delay_seconds)


def start_scheduler() -> None:
    if not scheduler.running:
        scheduler.start()


def shutdown_scheduler() -> None:
    if scheduler.running:
        scheduler.shutdown(wait=False)
