"""
Myfxbook community outlook adapter.

The outlook page sits behind a Cloudflare check and renders one row per
symbol with the SHORT percentage first, then LONG:
    EURUSD | Short 45% | Long 55% | ...
"""
from __future__ import annotations

import re

from fxcrowd.core.extract import SHORT_FIRST, TextTemplate
from fxcrowd.services.base_adapter import SourceAdapter

_NUM = r"\d{1,3}(?:\.\d+)?"


class MyfxbookAdapter(SourceAdapter):
    name = "myfxbook"
    url = "https://www.myfxbook.com/community/outlook"
    side_order = SHORT_FIRST
    min_cells = 3
    script_hints = ("outlook", "symbols", "shortPercentage")
    text_templates = (
        TextTemplate(
            name="labelled",
            pattern=re.compile(
                rf"\b(?P<symbol>[A-Z]{{6}})\b\s+(?i:Short)\s*(?P<first>{_NUM})\s*%\s+(?i:Long)\s*(?P<second>{_NUM})\s*%"
            ),
            side_order=SHORT_FIRST,
        ),
        TextTemplate(
            name="bare",
            pattern=re.compile(
                rf"\b(?P<symbol>[A-Z]{{6}})\b\s+(?P<first>{_NUM})\s*%\s+(?P<second>{_NUM})\s*%"
            ),
            side_order=SHORT_FIRST,
        ),
    )
