"""
ForexFactory trades adapter.

The public trades page shows one row per instrument, LONG first:
    "EUR/USD\n\t\n42% 68 Traders\n94 Traders 58%\n\tOpen"
Metals are spelled "Gold/USD" and "Silver/USD".
"""
from __future__ import annotations

import re

from fxcrowd.core.extract import LONG_FIRST, TextTemplate
from fxcrowd.services.base_adapter import SourceAdapter

_NUM = r"\d{1,3}(?:\.\d+)?"
_SYMBOL = r"\b(?:[A-Z]{3}/[A-Z]{3}|(?i:Gold|Silver)/USD)\b"


class ForexFactoryAdapter(SourceAdapter):
    name = "forexfactory"
    url = "https://www.forexfactory.com/trades"
    side_order = LONG_FIRST
    min_cells = 2
    script_hints = ("traders", "positions")
    text_templates = (
        TextTemplate(
            name="traders",
            pattern=re.compile(
                rf"(?P<symbol>{_SYMBOL})\s+(?P<first>{_NUM})\s*%\s*\d+\s*(?i:Traders)\s+\d+\s*(?i:Traders)\s*(?P<second>{_NUM})\s*%"
            ),
            side_order=LONG_FIRST,
        ),
        TextTemplate(
            name="labelled",
            pattern=re.compile(
                rf"(?P<symbol>{_SYMBOL})\s+(?i:Long)\s*(?P<first>{_NUM})\s*%\s+(?i:Short)\s*(?P<second>{_NUM})\s*%"
            ),
            side_order=LONG_FIRST,
        ),
    )
