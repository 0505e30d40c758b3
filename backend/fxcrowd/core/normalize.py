from __future__ import annotations

import logging
from dataclasses import dataclass, asdict
from typing import Iterable

from fxcrowd.core.symbols import normalize, canonical_key
from fxcrowd.core.validate import Unit, validate

log = logging.getLogger("core.normalize")


@dataclass(frozen=True)
class RawPositionRecord:
    """
    One reading exactly as an extraction strategy found it.
    Short-lived: it goes straight through normalize_records() and is discarded.
    """
    source_symbol: str
    long_value: object = None
    short_value: object = None
    unit: Unit = Unit.PERCENT


@dataclass(frozen=True)
class CanonicalSentiment:
    """
    Canonical Data Model.
    Regardless of which source produced it, a reading is converted into this
    structure before it can be persisted.
    """
    symbol: str
    long_percent: float
    short_percent: float

    @property
    def net_sentiment(self) -> float:
        return round(self.long_percent - self.short_percent, 2)

    def as_dict(self) -> dict:
        return asdict(self)


def normalize_record(record: RawPositionRecord, source_id: str) -> CanonicalSentiment | None:
    symbol = normalize(record.source_symbol, source_id)
    if symbol is None:
        log.debug("%s: dropped unrecognized symbol %r", source_id, record.source_symbol)
        return None
    pair = validate(record.long_value, record.short_value, record.unit)
    if pair is None:
        log.debug(
            "%s: dropped invalid reading for %s (%r/%r %s)",
            source_id, symbol, record.long_value, record.short_value, record.unit.value,
        )
        return None
    return CanonicalSentiment(symbol=symbol, long_percent=pair[0], short_percent=pair[1])


def normalize_records(records: Iterable[RawPositionRecord], source_id: str) -> list[CanonicalSentiment]:
    """
    Run raw records through Normalizer + Validator and dedupe by canonical key.
    The first occurrence of an instrument wins.
    """
    out: list[CanonicalSentiment] = []
    seen: set[str] = set()
    for record in records:
        cs = normalize_record(record, source_id)
        if cs is None:
            continue
        key = canonical_key(cs.symbol)
        if key in seen:
            continue
        seen.add(key)
        out.append(cs)
    return out
