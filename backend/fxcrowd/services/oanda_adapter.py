"""
OANDA position-ratio adapter.

The sentiment widget is rendered client-side by a chart library. Its visible
text comes out in two shapes depending on layout state:
    "EUR/USD\n72%\n28%"   (one value per line)
    "EUR/USD72%28%"       (compact, no whitespace)
OANDA prints NET-SHORT first, then NET-LONG. Named instruments ("Gold",
"US SPX 500") use the same layout.
"""
from __future__ import annotations

import re

from fxcrowd.core.extract import SHORT_FIRST, TextTemplate
from fxcrowd.services.base_adapter import SourceAdapter

_NUM = r"\d{1,3}(?:\.\d+)?"
_NAMED = r"(?i:Gold|Silver|US Wall St 30|US SPX 500|US Nas 100|Germany 30|West Texas Oil|Brent Crude Oil|Bitcoin)"


class OandaAdapter(SourceAdapter):
    name = "oanda"
    url = "https://proptrader.oanda.com/en/lab-education/tools/sentiment/"
    side_order = SHORT_FIRST
    min_cells = 3
    script_hints = ("sentiment", "longPercent", "shortPercent")
    text_templates = (
        TextTemplate(
            name="stacked",
            pattern=re.compile(rf"\b(?P<symbol>[A-Z]{{3}}/[A-Z]{{3}})\b\s+(?P<first>{_NUM})\s*%\s+(?P<second>{_NUM})\s*%"),
            side_order=SHORT_FIRST,
        ),
        TextTemplate(
            name="compact",
            pattern=re.compile(rf"(?<![A-Z])(?P<symbol>[A-Z]{{3}}/[A-Z]{{3}})(?P<first>{_NUM})%(?P<second>{_NUM})%"),
            side_order=SHORT_FIRST,
        ),
        TextTemplate(
            name="named",
            pattern=re.compile(
                rf"\b(?P<symbol>{_NAMED})\b\s+(?P<first>{_NUM})\s*%\s+(?P<second>{_NUM})\s*%"
            ),
            side_order=SHORT_FIRST,
        ),
    )
