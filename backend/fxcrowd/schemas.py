"""
Pydantic schemas for the fxcrowd API.
Defines the data validation and serialization rules for API responses.
"""
from __future__ import annotations

from datetime import datetime
from pydantic import BaseModel

class SourceReadingOut(BaseModel):
    """
    One source's latest reading for an instrument.
    This acts as a Data Transfer Object (DTO).
    It decouples the internal Database Model from the external API Contract.
    """
    source: str
    long_percent: float
    short_percent: float
    net_sentiment: float
    timestamp: datetime

class SignalOut(BaseModel):
    label: str
    strength: float
    spread: float

class SentimentOut(BaseModel):
    """
    Consensus view of one instrument across every source that reports it.
    """
    symbol: str
    base: str
    quote: str
    asset_class: str
    sources_used: list[str]
    per_source_breakdown: list[SourceReadingOut]
    blended_long: float
    blended_short: float
    net_sentiment: float
    signal: SignalOut
    last_updated: datetime

class HistoryPointOut(BaseModel):
    timestamp: datetime
    blended_long: float
    blended_short: float
    net_sentiment: float
    sources_used: list[str]

class HistoryOut(BaseModel):
    symbol: str
    base: str
    quote: str
    interval: str
    range: int
    history: list[HistoryPointOut]

class CurrencyStrengthOut(BaseModel):
    currency: str
    strength: float

class RiskSentimentOut(BaseModel):
    # "RISK-ON", "RISK-OFF" or "NEUTRAL"
    status: str
    risk_score: float
    safe_haven_score: float
    delta: float

class SignalChangeOut(BaseModel):
    symbol: str
    previous_label: str
    current_label: str
    previous_spread: float
    current_spread: float
    # "new" or "fading"
    change_type: str

class OverviewOut(BaseModel):
    instrument_count: int
    currency_strength: list[CurrencyStrengthOut]
    risk_sentiment: RiskSentimentOut
    new_signals: list[SignalChangeOut]
    fading_signals: list[SignalChangeOut]

class CanonicalSentimentOut(BaseModel):
    symbol: str
    long_percent: float
    short_percent: float

class ScrapeResultOut(BaseModel):
    """
    Result of one adapter run, exactly as the orchestrator produced it.
    """
    success: bool
    source: str
    data: list[CanonicalSentimentOut]
    error: str | None = None
    timestamp: datetime
    strategy: str | None = None

class RunLogOut(BaseModel):
    id: int
    timestamp: datetime
    total_scrapers: int
    success_count: int
    failed_count: int
    instrument_count: int
    deleted_snapshots: int
    failed_scrapers: list[str]
    error_messages: list[str]

class PassOut(BaseModel):
    run_log: RunLogOut
    results: list[ScrapeResultOut]

class AdapterStatusOut(BaseModel):
    can_run: bool
    wait_seconds: int
