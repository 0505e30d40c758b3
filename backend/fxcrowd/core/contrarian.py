"""
Contrarian Signal Classifier.

Retail crowds tend to be positioned against the next move, so the label
points the other way: a crowd that is heavily short reads BULLISH.
"""
from __future__ import annotations

from dataclasses import dataclass, asdict
from enum import Enum

# Points of long/short separation before a label fires (a 60/40 split).
SIGNAL_THRESHOLD = 20.0


class SignalLabel(str, Enum):
    BULLISH = "BULLISH"
    BEARISH = "BEARISH"
    NEUTRAL = "NEUTRAL"


@dataclass(frozen=True)
class ContrarianSignal:
    label: SignalLabel
    strength: float
    spread: float

    def as_dict(self) -> dict:
        d = asdict(self)
        d["label"] = self.label.value
        return d


def classify(blended_long: float, blended_short: float, threshold: float = SIGNAL_THRESHOLD) -> ContrarianSignal:
    """
    strength is the distance of the long side from an even split;
    spread is the full long/short gap the label is decided on.
    """
    gap = round(blended_short - blended_long, 2)
    if gap >= threshold:
        label = SignalLabel.BULLISH
    elif -gap >= threshold:
        label = SignalLabel.BEARISH
    else:
        label = SignalLabel.NEUTRAL
    return ContrarianSignal(
        label=label,
        strength=round(abs(blended_long - 50.0), 2),
        spread=round(abs(gap), 2),
    )
