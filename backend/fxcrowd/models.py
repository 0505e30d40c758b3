"""
Database models for the fxcrowd application.
Defines the schema for Instruments, Sentiment Snapshots and Scraper Run Logs.
"""
from __future__ import annotations

from datetime import datetime, timezone
from sqlalchemy import String, Float, Integer, DateTime, JSON, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from fxcrowd.db import Base

# Helper function to get current UTC time, ensuring timezone awareness
def now_utc() -> datetime:
    # Now, we get the current time.
    # We explicitly enforce UTC to avoid timezone headaches later.
    return datetime.now(timezone.utc)

def as_utc(value: datetime | None) -> datetime | None:
    """SQLite hands back naive datetimes; treat them as the UTC values we stored."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)

class Instrument(Base):
    """
    Registry of every canonical instrument seen by any source.
    Rows are created on first sight and never deleted.
    """
    __tablename__ = "instruments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    symbol: Mapped[str] = mapped_column(String(32), unique=True, index=True)
    base: Mapped[str] = mapped_column(String(16))
    quote: Mapped[str] = mapped_column(String(16), default="")
    asset_class: Mapped[str] = mapped_column(String(16), index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=now_utc)

class SentimentSnapshot(Base):
    """
    One reading of one instrument from one source at one point in time.
    Immutable once written; later rows supersede it and the retention sweep removes it.
    """
    __tablename__ = "sentiment_snapshots"
    # Now, we key rows by (instrument, source, timestamp).
    # A second write of the same reading fails here instead of duplicating it.
    __table_args__ = (
        UniqueConstraint("instrument", "source", "timestamp", name="uq_snapshot_instrument_source_ts"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    instrument: Mapped[str] = mapped_column(String(32), index=True)
    source: Mapped[str] = mapped_column(String(32), index=True)
    long_percent: Mapped[float] = mapped_column(Float)
    short_percent: Mapped[float] = mapped_column(Float)
    net_sentiment: Mapped[float] = mapped_column(Float)
    # Now, we index the timestamp. Both "latest per source" reads and retention deletes filter on it.
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=now_utc, index=True)

    def as_dict(self) -> dict:
        return {
            "source": self.source,
            "long_percent": self.long_percent,
            "short_percent": self.short_percent,
            "net_sentiment": self.net_sentiment,
            "timestamp": as_utc(self.timestamp),
        }

class ScraperRunLog(Base):
    """
    Summary of one orchestrator pass. Expires after a few hours.
    """
    __tablename__ = "scraper_run_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=now_utc, index=True)
    total_scrapers: Mapped[int] = mapped_column(Integer, default=0)
    success_count: Mapped[int] = mapped_column(Integer, default=0)
    failed_count: Mapped[int] = mapped_column(Integer, default=0)
    instrument_count: Mapped[int] = mapped_column(Integer, default=0)
    deleted_snapshots: Mapped[int] = mapped_column(Integer, default=0)
    # Generic JSON so the same schema works on Postgres and SQLite.
    failed_scrapers: Mapped[list[str]] = mapped_column(JSON, default=list)
    error_messages: Mapped[list[str]] = mapped_column(JSON, default=list)

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "timestamp": as_utc(self.timestamp),
            "total_scrapers": self.total_scrapers,
            "success_count": self.success_count,
            "failed_count": self.failed_count,
            "instrument_count": self.instrument_count,
            "deleted_snapshots": self.deleted_snapshots,
            "failed_scrapers": list(self.failed_scrapers or []),
            "error_messages": list(self.error_messages or []),
        }
