"""
Sentiment read service.

Everything here is derived on read from the latest snapshots:
- per-instrument consensus (blend) and contrarian label (classify)
- the filtered / sorted list of every registered instrument
- hourly or daily history buckets
- the currency strength, risk sentiment and signal-change overview
Nothing is cached. Two reads around a scrape may disagree; that is expected.
"""
from __future__ import annotations

import logging
from datetime import datetime, timedelta
from statistics import fmean
from typing import Iterable

from sqlalchemy.orm import Session

from fxcrowd.core import store
from fxcrowd.core.blend import blend
from fxcrowd.core.contrarian import SignalLabel, classify
from fxcrowd.core.symbols import CURRENCIES, normalize, split_pair, standard_orientation, strip_separators
from fxcrowd.models import Instrument, SentimentSnapshot, as_utc

log = logging.getLogger("core.sentiment")

SORT_KEYS = {
    "symbol": lambda item: item["symbol"],
    "blended_long": lambda item: item["blended_long"],
    "blended_short": lambda item: item["blended_short"],
    "net_sentiment": lambda item: item["net_sentiment"],
    "strength": lambda item: item["signal"]["strength"],
    "spread": lambda item: item["signal"]["spread"],
    "sources": lambda item: len(item["sources_used"]),
    "last_updated": lambda item: item["last_updated"],
}

HISTORY_DEFAULT_RANGE = {"hourly": 12, "daily": 14}

RISK_CURRENCIES = ("AUD", "NZD", "CAD")
SAFE_HAVEN_CURRENCIES = ("JPY", "CHF")
RISK_THRESHOLD = 5.0

# Signal changes compare today's consensus with the one a day earlier.
# Thresholds are in spread points (|long - short|).
COMPARISON_LOOKBACK = timedelta(hours=24)
COMPARISON_WINDOW = timedelta(minutes=30)
FADING_MIN_SPREAD = 25.0
FADING_MIN_DROP = 10.0
SIGNAL_CHANGES_LIMIT = 5


def resolve_symbol(symbol: str) -> str | None:
    """
    Accept any spelling the shared normalizer understands ("eurusd", "EUR_USD",
    "Gold"). Reversed pairs resolve to the stored orientation ("CHF/USD" -> "USD/CHF").
    """
    canonical = normalize(symbol, "")
    if canonical is None:
        return None
    return standard_orientation(canonical)[0]


def build_item(instrument: Instrument, snapshots: list[SentimentSnapshot]) -> dict | None:
    blended = blend(snapshots)
    if blended is None:
        return None
    signal = classify(blended.blended_long, blended.blended_short)
    return {
        "symbol": instrument.symbol,
        "base": instrument.base,
        "quote": instrument.quote,
        "asset_class": instrument.asset_class,
        "sources_used": blended.sources_used,
        "per_source_breakdown": [s.as_dict() for s in sorted(snapshots, key=lambda s: s.source)],
        "blended_long": blended.blended_long,
        "blended_short": blended.blended_short,
        "net_sentiment": blended.net_sentiment,
        "signal": signal.as_dict(),
        "last_updated": max(as_utc(s.timestamp) for s in snapshots),
    }


def instrument_sentiment(db: Session, symbol: str, now: datetime, freshness_hours: int) -> dict | None:
    """Consensus for one instrument, or None when no source reported it inside the freshness window."""
    canonical = resolve_symbol(symbol)
    if canonical is None:
        return None
    instrument = store.get_instrument(db, canonical)
    if instrument is None:
        return None
    since = now - timedelta(hours=freshness_hours)
    return build_item(instrument, store.latest_per_source(db, canonical, since))


def list_sentiment(
    db: Session,
    now: datetime,
    freshness_hours: int,
    *,
    asset_class: str | None = None,
    source: str | None = None,
    search: str | None = None,
    sort_by: str = "symbol",
    sort_order: str = "asc",
) -> list[dict]:
    """
    Every registered instrument with at least one fresh reading.

    Args:
        asset_class: "fx", "commodity", "index" or "crypto".
        source: keep instruments that this source currently reports.
        search: case-insensitive match on the symbol, separators ignored.
        sort_by: one of SORT_KEYS; unknown keys raise ValueError.
        sort_order: "asc" or "desc".
    """
    if sort_by not in SORT_KEYS:
        raise ValueError(f"sort_by must be one of {sorted(SORT_KEYS)}")

    since = now - timedelta(hours=freshness_hours)
    needle = strip_separators(search) if search else ""
    latest = store.latest_by_instrument(db, since)
    items = []
    # Now, we walk the instrument registry; the asset-class filter runs in SQL.
    for instrument in store.list_instruments(db, asset_class):
        snapshots = latest.get(instrument.symbol)
        if not snapshots:
            continue
        if source and source.lower() not in {s.source for s in snapshots}:
            continue
        if needle and needle not in strip_separators(instrument.symbol):
            continue
        item = build_item(instrument, snapshots)
        if item is not None:
            items.append(item)

    items.sort(key=SORT_KEYS[sort_by], reverse=sort_order.lower() == "desc")
    log.debug("sentiment list: %d instruments (sort=%s %s)", len(items), sort_by, sort_order)
    return items


def _bucket(ts: datetime, interval: str) -> datetime:
    ts = as_utc(ts)
    if interval == "hourly":
        return ts.replace(minute=0, second=0, microsecond=0)
    return ts.replace(hour=0, minute=0, second=0, microsecond=0)


def sentiment_history(
    db: Session,
    symbol: str,
    now: datetime,
    interval: str = "daily",
    range_: int | None = None,
) -> dict | None:
    """
    Blended series for one instrument.

    Snapshots are grouped into hour or day buckets; inside a bucket the latest
    reading of each source is blended. `range_` counts hours for hourly and
    days for daily.
    """
    if interval not in HISTORY_DEFAULT_RANGE:
        raise ValueError("interval must be 'hourly' or 'daily'")
    canonical = resolve_symbol(symbol)
    if canonical is None:
        return None
    span = range_ or HISTORY_DEFAULT_RANGE[interval]
    start = now - (timedelta(hours=span) if interval == "hourly" else timedelta(days=span))

    rows = store.snapshots_between(db, canonical, start, now)
    if not rows:
        return None

    buckets: dict[datetime, list[SentimentSnapshot]] = {}
    for row in rows:
        buckets.setdefault(_bucket(row.timestamp, interval), []).append(row)

    points = []
    for bucket_start in sorted(buckets):
        # Rows come oldest first; blend() keeps the first per source, so reverse.
        blended = blend(reversed(buckets[bucket_start]))
        if blended is None:
            continue
        points.append({
            "timestamp": bucket_start,
            "blended_long": blended.blended_long,
            "blended_short": blended.blended_short,
            "net_sentiment": blended.net_sentiment,
            "sources_used": blended.sources_used,
        })

    base, quote = split_pair(canonical)
    return {
        "symbol": canonical,
        "base": base,
        "quote": quote,
        "interval": interval,
        "range": span,
        "history": points,
    }


def currency_strength(items: Iterable[dict]) -> list[dict]:
    """
    Mean blended net per major currency: the net counts as-is for the base
    currency and inverted for the quote currency.
    """
    scores: dict[str, list[float]] = {c: [] for c in CURRENCIES}
    for item in items:
        if item["asset_class"] != "fx":
            continue
        if item["base"] in scores:
            scores[item["base"]].append(item["net_sentiment"])
        if item["quote"] in scores:
            scores[item["quote"]].append(-item["net_sentiment"])

    result = [
        {"currency": c, "strength": round(fmean(v), 1) if v else 0.0}
        for c, v in scores.items()
    ]
    result.sort(key=lambda r: r["strength"], reverse=True)
    return result


def risk_sentiment(strength: list[dict]) -> dict:
    by_currency = {r["currency"]: r["strength"] for r in strength}
    risk = [by_currency[c] for c in RISK_CURRENCIES if c in by_currency]
    safe = [by_currency[c] for c in SAFE_HAVEN_CURRENCIES if c in by_currency]
    risk_score = fmean(risk) if risk else 0.0
    safe_score = fmean(safe) if safe else 0.0
    delta = risk_score - safe_score

    status = "NEUTRAL"
    if delta > RISK_THRESHOLD:
        status = "RISK-ON"
    elif delta < -RISK_THRESHOLD:
        status = "RISK-OFF"
    return {
        "status": status,
        "risk_score": round(risk_score, 1),
        "safe_haven_score": round(safe_score, 1),
        "delta": round(delta, 1),
    }


def signal_changes(db: Session, items: Iterable[dict], now: datetime) -> dict[str, list[dict]]:
    """
    Compare each current signal with the consensus a day earlier.

    The earlier consensus blends the latest reading per source found within
    COMPARISON_WINDOW of now - COMPARISON_LOOKBACK; instruments without such
    readings are skipped.
    - new: the label went from NEUTRAL to BULLISH or BEARISH.
    - fading: the earlier label was not NEUTRAL with a spread of at least
      FADING_MIN_SPREAD, and it is NEUTRAL now or the spread fell by at least
      FADING_MIN_DROP.
    Each list holds at most SIGNAL_CHANGES_LIMIT entries: new signals by current
    spread, fading signals by spread lost.
    """
    then = now - COMPARISON_LOOKBACK
    new: list[dict] = []
    fading: list[dict] = []
    for item in items:
        rows = store.snapshots_between(db, item["symbol"], then - COMPARISON_WINDOW, then + COMPARISON_WINDOW)
        previous_blend = blend(reversed(rows))
        if previous_blend is None:
            continue
        previous = classify(previous_blend.blended_long, previous_blend.blended_short)
        current = classify(item["blended_long"], item["blended_short"])
        change = {
            "symbol": item["symbol"],
            "previous_label": previous.label.value,
            "current_label": current.label.value,
            "previous_spread": previous.spread,
            "current_spread": current.spread,
        }

        if previous.label is SignalLabel.NEUTRAL and current.label is not SignalLabel.NEUTRAL:
            new.append({**change, "change_type": "new"})

        if previous.label is not SignalLabel.NEUTRAL and previous.spread >= FADING_MIN_SPREAD:
            dropped = previous.spread - current.spread
            if current.label is SignalLabel.NEUTRAL or dropped >= FADING_MIN_DROP:
                fading.append({**change, "change_type": "fading"})

    new.sort(key=lambda c: c["current_spread"], reverse=True)
    fading.sort(key=lambda c: c["previous_spread"] - c["current_spread"], reverse=True)
    return {
        "new_signals": new[:SIGNAL_CHANGES_LIMIT],
        "fading_signals": fading[:SIGNAL_CHANGES_LIMIT],
    }


def market_overview(db: Session, now: datetime, freshness_hours: int) -> dict:
    items = list_sentiment(db, now, freshness_hours, asset_class="fx")
    strength = currency_strength(items)
    return {
        "instrument_count": len(items),
        "currency_strength": strength,
        "risk_sentiment": risk_sentiment(strength),
        **signal_changes(db, items, now),
    }
