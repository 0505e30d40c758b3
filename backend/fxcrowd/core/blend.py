"""
Sentiment Blender.

Combines the latest reading of each source into one consensus value per
instrument. The weighting is fixed: the two sources with the largest trader
populations count double.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterable, Mapping, Protocol

SOURCE_WEIGHTS: Mapping[str, float] = MappingProxyType({
    "myfxbook": 2.0,
    "oanda": 2.0,
    "dukascopy": 1.0,
    "forexfactory": 1.0,
})
DEFAULT_WEIGHT = 1.0


class Reading(Protocol):
    instrument: str
    source: str
    long_percent: float
    short_percent: float


@dataclass(frozen=True)
class BlendedSentiment:
    instrument: str
    blended_long: float
    blended_short: float
    sources_used: list[str] = field(default_factory=list)
    weights_used: dict[str, float] = field(default_factory=dict)
    total_weight: float = 0.0

    @property
    def net_sentiment(self) -> float:
        return round(self.blended_long - self.blended_short, 2)


def blend(
    snapshots: Iterable[Reading],
    weights: Mapping[str, float] = SOURCE_WEIGHTS,
) -> BlendedSentiment | None:
    """
    Weighted average of long and (separately) short across the sources present.

    Absent sources are left out rather than counted as zero, so the weights
    renormalize over whoever reported. Returns None when nobody reported.
    """
    # Now, we keep only the first reading per source (callers pass newest first).
    per_source: dict[str, Reading] = {}
    for snap in snapshots:
        per_source.setdefault(snap.source, snap)
    if not per_source:
        return None
    instrument = next(iter(per_source.values())).instrument

    used = {name: weights.get(name, DEFAULT_WEIGHT) for name in per_source}
    total = sum(used.values())
    if total <= 0:
        return None

    long_sum = sum(per_source[name].long_percent * w for name, w in used.items())
    short_sum = sum(per_source[name].short_percent * w for name, w in used.items())
    return BlendedSentiment(
        instrument=instrument,
        blended_long=round(long_sum / total, 2),
        blended_short=round(short_sum / total, 2),
        sources_used=sorted(per_source),
        weights_used=used,
        total_weight=total,
    )
