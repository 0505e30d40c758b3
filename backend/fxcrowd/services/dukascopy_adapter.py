"""
Dukascopy SWFX sentiment adapter.

The sentiment page embeds its data in script literals, either as explicit
long/short values (sometimes strings, sometimes 0..1 ratios) or as a single
signed SWFX index in -100..100. Rendered text, when present, lists LONG first.
"""
from __future__ import annotations

import re

from fxcrowd.core.extract import LONG_FIRST, TextTemplate
from fxcrowd.core.validate import Unit
from fxcrowd.services.base_adapter import SourceAdapter

_NUM = r"\d{1,3}(?:\.\d+)?"


class DukascopyAdapter(SourceAdapter):
    name = "dukascopy"
    url = "https://www.dukascopy.com/swiss/english/marketwatch/sentiment/"
    side_order = LONG_FIRST
    min_cells = 3
    script_hints = ("sentiment", "swfx", "long")
    text_templates = (
        TextTemplate(
            name="percent-pair",
            pattern=re.compile(rf"\b(?P<symbol>[A-Z]{{3}}/[A-Z]{{3}})\b\s+(?P<first>{_NUM})\s*%\s+(?P<second>{_NUM})\s*%"),
            side_order=LONG_FIRST,
        ),
        TextTemplate(
            name="swfx-index",
            pattern=re.compile(
                rf"\b(?P<symbol>[A-Z]{{3}}/?[A-Z]{{3}})\b\s+(?i:SWFX|index|sentiment)\s*:?\s*(?P<first>[+-]?{_NUM})\b(?!\s*%)"
            ),
            side_order=LONG_FIRST,
            unit=Unit.INDEX,
        ),
    )
