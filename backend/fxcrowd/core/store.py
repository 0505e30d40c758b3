"""
Snapshot Store.

Thin persistence layer between the orchestrator / read service and the
database. Writes are insert-only: a reading is never updated in place, it is
superseded by a newer row and eventually removed by the retention sweep.
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Iterable

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from fxcrowd.core.normalize import CanonicalSentiment
from fxcrowd.core.symbols import asset_class as asset_class_of, split_pair, standard_orientation
from fxcrowd.models import Instrument, ScraperRunLog, SentimentSnapshot

log = logging.getLogger("core.store")


def get_instrument(db: Session, symbol: str) -> Instrument | None:
    return db.query(Instrument).filter(Instrument.symbol == symbol).first()


def _ensure_instrument(db: Session, symbol: str) -> None:
    # Now, we register the instrument on first sight.
    # The row is flushed with the snapshot so both commit (or roll back) together.
    if get_instrument(db, symbol) is not None:
        return
    base, quote = split_pair(symbol)
    db.add(Instrument(symbol=symbol, base=base, quote=quote, asset_class=asset_class_of(symbol)))


def save_snapshots(db: Session, source: str, data: Iterable[CanonicalSentiment], timestamp: datetime) -> int:
    """
    Persist one adapter run.

    Each record commits on its own. A constraint violation (the same reading
    written twice) rolls back that record only and the batch continues.
    A pair quoted against convention ("CHF/USD") is stored under the standard
    pair with long and short swapped, so every source lands on one instrument.

    Returns:
        int: number of rows actually stored.
    """
    stored = 0
    for cs in data:
        symbol, flipped = standard_orientation(cs.symbol)
        long_percent, short_percent = cs.long_percent, cs.short_percent
        if flipped:
            # Being long CHF/USD is being short USD/CHF.
            long_percent, short_percent = short_percent, long_percent
        _ensure_instrument(db, symbol)
        db.add(SentimentSnapshot(
            instrument=symbol,
            source=source,
            long_percent=long_percent,
            short_percent=short_percent,
            net_sentiment=round(long_percent - short_percent, 2),
            timestamp=timestamp,
        ))
        try:
            db.commit()
            stored += 1
        except IntegrityError as e:
            db.rollback()
            log.warning("%s: could not store %s: %s", source, symbol, e.orig)
    return stored


def latest_per_source(db: Session, instrument: str, since: datetime | None = None) -> list[SentimentSnapshot]:
    """Newest snapshot of each source for one instrument, optionally ignoring rows older than `since`."""
    q = db.query(SentimentSnapshot).filter(SentimentSnapshot.instrument == instrument)
    if since is not None:
        q = q.filter(SentimentSnapshot.timestamp >= since)
    latest: dict[str, SentimentSnapshot] = {}
    for row in q.order_by(SentimentSnapshot.timestamp.desc(), SentimentSnapshot.id.desc()):
        latest.setdefault(row.source, row)
    return list(latest.values())


def latest_by_instrument(db: Session, since: datetime | None = None) -> dict[str, list[SentimentSnapshot]]:
    """Same as latest_per_source, for every instrument in one query."""
    q = db.query(SentimentSnapshot)
    if since is not None:
        q = q.filter(SentimentSnapshot.timestamp >= since)
    grouped: dict[str, dict[str, SentimentSnapshot]] = {}
    for row in q.order_by(SentimentSnapshot.timestamp.desc(), SentimentSnapshot.id.desc()):
        grouped.setdefault(row.instrument, {}).setdefault(row.source, row)
    return {symbol: list(by_source.values()) for symbol, by_source in grouped.items()}


def snapshots_between(db: Session, instrument: str, start: datetime, end: datetime) -> list[SentimentSnapshot]:
    return (
        db.query(SentimentSnapshot)
        .filter(
            SentimentSnapshot.instrument == instrument,
            SentimentSnapshot.timestamp >= start,
            SentimentSnapshot.timestamp <= end,
        )
        .order_by(SentimentSnapshot.timestamp.asc(), SentimentSnapshot.id.asc())
        .all()
    )


def cleanup_old_snapshots(db: Session, now: datetime, retention_days: int) -> int:
    """Delete snapshots strictly older than now - retention_days. Returns the row count."""
    cutoff = now - timedelta(days=retention_days)
    deleted = (
        db.query(SentimentSnapshot)
        .filter(SentimentSnapshot.timestamp < cutoff)
        .delete(synchronize_session=False)
    )
    db.commit()
    if deleted:
        log.info("deleted %d snapshots older than %s", deleted, cutoff.isoformat())
    return deleted


def record_run_log(
    db: Session,
    *,
    timestamp: datetime,
    total_scrapers: int,
    success_count: int,
    failed_count: int,
    instrument_count: int,
    failed_scrapers: list[str],
    error_messages: list[str],
    deleted_snapshots: int = 0,
) -> ScraperRunLog:
    entry = ScraperRunLog(
        timestamp=timestamp,
        total_scrapers=total_scrapers,
        success_count=success_count,
        failed_count=failed_count,
        instrument_count=instrument_count,
        failed_scrapers=list(failed_scrapers),
        error_messages=list(error_messages),
        deleted_snapshots=deleted_snapshots,
    )
    db.add(entry)
    db.commit()
    db.refresh(entry)
    return entry


def cleanup_old_run_logs(db: Session, now: datetime, retention_hours: int) -> int:
    cutoff = now - timedelta(hours=retention_hours)
    deleted = (
        db.query(ScraperRunLog)
        .filter(ScraperRunLog.timestamp < cutoff)
        .delete(synchronize_session=False)
    )
    db.commit()
    return deleted


def recent_run_logs(db: Session, now: datetime, retention_hours: int, limit: int = 50) -> list[ScraperRunLog]:
    cutoff = now - timedelta(hours=retention_hours)
    return (
        db.query(ScraperRunLog)
        .filter(ScraperRunLog.timestamp >= cutoff)
        .order_by(ScraperRunLog.timestamp.desc())
        .limit(limit)
        .all()
    )


def list_instruments(db: Session, asset_class: str | None = None) -> list[Instrument]:
    q = db.query(Instrument).order_by(Instrument.symbol.asc())
    if asset_class:
        q = q.filter(Instrument.asset_class == asset_class.lower())
    return q.all()
