"""
Record Validator.

Turns whatever a source rendered into a trustworthy (long%, short%) pair, or
rejects it. Three input units are understood:
  - percent: 0..100 per side
  - ratio:   0..1 per side, scaled x100
  - index:   one signed net value in -100..100 (Dukascopy SWFX style),
             long = 50 + index/2, short = 50 - index/2

Bad values are dropped, never clamped: a missing reading is better than a
fabricated one.
"""
from __future__ import annotations

import math
from enum import Enum

SUM_MIN = 95.0
SUM_MAX = 105.0


class Unit(str, Enum):
    PERCENT = "percent"
    RATIO = "ratio"
    INDEX = "index"


def to_number(value) -> float | None:
    """Coerce ints, floats and numeric strings ("62.5", "62.5%") to float."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip().rstrip("%").strip().replace(",", ".")
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def _in_range(value: float) -> bool:
    return 0.0 <= value <= 100.0


def validate(long_raw, short_raw, unit: Unit | str = Unit.PERCENT) -> tuple[float, float] | None:
    """
    Validate one extracted long/short reading.

    Args:
        long_raw: Long side (or the signed net index when unit is "index").
        short_raw: Short side; ignored for "index".
        unit: Unit of the raw values.

    Returns:
        tuple[float, float] | None: (long_percent, short_percent) rounded to
        2 decimals, or None when the reading is unusable.
    """
    unit = Unit(unit)

    if unit is Unit.INDEX:
        index = to_number(long_raw)
        if index is None or not -100.0 <= index <= 100.0:
            return None
        long_val: float | None = 50.0 + index / 2.0
        short_val: float | None = 50.0 - index / 2.0
    else:
        long_val = to_number(long_raw)
        short_val = to_number(short_raw)
        if long_val is None and short_val is None:
            return None
        if unit is Unit.RATIO:
            for v in (long_val, short_val):
                if v is not None and not 0.0 <= v <= 1.0:
                    return None
            long_val = long_val * 100.0 if long_val is not None else None
            short_val = short_val * 100.0 if short_val is not None else None

        # Now, we derive a missing side from the one the source did give us.
        if short_val is None:
            short_val = 100.0 - long_val
        elif long_val is None:
            long_val = 100.0 - short_val

    if not (_in_range(long_val) and _in_range(short_val)):
        return None
    if not SUM_MIN <= long_val + short_val <= SUM_MAX:
        return None
    return round(long_val, 2), round(short_val, 2)
