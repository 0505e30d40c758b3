"""
Extraction strategies.

Concept: Ordered Strategy Cascade.
No source offers a reliable "data ready" signal or a stable layout, so each
adapter tries several ways of reading the same page and keeps the first one
that produces usable records:
  (a) structured scan of table rows/cells
  (b) scan of embedded <script> content for JSON array/object literals
  (c) free-text templates over the rendered page text

Every strategy is a pure function of PageContent -> list[RawPositionRecord],
so the whole cascade can be exercised against saved HTML without a browser.
"""
from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Sequence

from bs4 import BeautifulSoup

from fxcrowd.core.normalize import RawPositionRecord
from fxcrowd.core.validate import Unit, to_number

log = logging.getLogger("core.extract")

LONG_FIRST = ("long", "short")
SHORT_FIRST = ("short", "long")

PERCENT = re.compile(r"(\d{1,3}(?:\.\d+)?)\s*%")
# A cell that looks like an instrument: EURUSD, EUR/USD, EUR_USD, Gold/USD, US30, SPX500_USD ...
SYMBOL_CELL = re.compile(
    r"[A-Za-z]{6}|[A-Za-z]{3,6}\s?[/_\-]\s?[A-Za-z]{3}|[A-Za-z]{2,6}\d{2,3}(?:_[A-Za-z]{3})?"
)

SYMBOL_FIELDS = ("symbol", "instrument", "pair", "name", "title", "currency", "ticker", "id")
LONG_FIELDS = (
    "long", "longPercent", "longPercentage", "long_percent", "longPositionPercent",
    "buy", "buyPercent", "bullish", "bulls", "buyers", "longs",
)
SHORT_FIELDS = (
    "short", "shortPercent", "shortPercentage", "short_percent", "shortPositionPercent",
    "sell", "sellPercent", "bearish", "bears", "sellers", "shorts",
)
INDEX_FIELDS = ("index", "swfx", "sentimentIndex", "net", "value")
CONTAINER_FIELDS = (
    "data", "items", "instruments", "positions", "sentiments", "sentimentList",
    "results", "list", "symbols", "pairs", "ratios",
)

_LITERAL_START = re.compile(r"\[\s*\{|\{\s*\"")
_MAX_DEPTH = 4


@dataclass(frozen=True)
class PageContent:
    """Everything an adapter pulled out of one rendered page."""
    html: str = ""
    text: str = ""
    frame_texts: tuple[str, ...] = ()

    @property
    def all_text(self) -> str:
        return "\n".join((self.text,) + self.frame_texts)


@dataclass(frozen=True)
class Strategy:
    name: str
    run: Callable[[PageContent], list[RawPositionRecord]]


@dataclass(frozen=True)
class TextTemplate:
    """
    One textual shape a source uses, e.g. "EUR/USD 42% 68 Traders ... 94 Traders 58%".
    The pattern must define the named groups `symbol` and `first`;
    `second` is optional (the validator derives a missing side).
    """
    name: str
    pattern: re.Pattern
    side_order: tuple[str, str] = LONG_FIRST
    unit: Unit = Unit.PERCENT


def _ordered(symbol: str, first, second, side_order: Sequence[str], unit: Unit = Unit.PERCENT) -> RawPositionRecord:
    if tuple(side_order) == SHORT_FIRST:
        return RawPositionRecord(symbol, long_value=second, short_value=first, unit=unit)
    return RawPositionRecord(symbol, long_value=first, short_value=second, unit=unit)


def first_non_empty(
    strategies: Iterable[Strategy],
    content: PageContent,
    finish: Callable[[list[RawPositionRecord]], list],
) -> tuple[str | None, list]:
    """
    Run strategies in order and return (name, result) for the first one whose
    records survive `finish` (normalize + validate + dedupe). (None, []) if none do.
    """
    for strategy in strategies:
        raw = strategy.run(content)
        result = finish(raw)
        log.debug("strategy %s: %d raw -> %d usable", strategy.name, len(raw), len(result))
        if result:
            return strategy.name, result
    return None, []


# ---------------------------------------------------------------------------
# (a) Structured row/cell scan
# ---------------------------------------------------------------------------

def scan_table_rows(
    html: str,
    side_order: Sequence[str] = LONG_FIRST,
    min_cells: int = 3,
    row_selector: str = "tr",
) -> list[RawPositionRecord]:
    """
    Walk table rows; a row counts when one cell looks like an instrument and the
    other cells carry at least two percentages.
    """
    if not html:
        return []
    soup = BeautifulSoup(html, "html.parser")
    records: list[RawPositionRecord] = []
    for row in soup.select(row_selector):
        cells = [c.get_text(" ", strip=True) for c in row.find_all(["td", "th"])]
        if len(cells) < min_cells:
            continue

        symbol_idx = next((i for i, c in enumerate(cells) if SYMBOL_CELL.fullmatch(c)), None)
        if symbol_idx is None:
            continue
        rest = " ".join(c for i, c in enumerate(cells) if i != symbol_idx)
        percents = PERCENT.findall(rest)
        if len(percents) < 2:
            continue
        records.append(_ordered(cells[symbol_idx], percents[0], percents[1], side_order))
    return records


# ---------------------------------------------------------------------------
# (b) Embedded script literals
# ---------------------------------------------------------------------------

def _first_field(obj: dict, names: Sequence[str]) -> Any:
    for name in names:
        if name in obj and to_number(obj[name]) is not None:
            return obj[name]
    return None


def _record_from_item(obj: dict, symbol_hint: str | None = None) -> RawPositionRecord | None:
    symbol = symbol_hint
    if symbol is None:
        symbol = next((obj[f] for f in SYMBOL_FIELDS if isinstance(obj.get(f), str)), None)
    if symbol is None:
        return None

    # Some payloads nest the numbers one level down: {"name": ..., "sentiment": {...}}
    fields = dict(obj)
    nested = obj.get("sentiment")
    if isinstance(nested, dict):
        fields.update(nested)

    long_raw = _first_field(fields, LONG_FIELDS)
    short_raw = _first_field(fields, SHORT_FIELDS)
    if long_raw is None and short_raw is None:
        index_raw = _first_field(fields, INDEX_FIELDS)
        if index_raw is None:
            return None
        return RawPositionRecord(symbol, long_value=index_raw, unit=Unit.INDEX)

    present = [to_number(v) for v in (long_raw, short_raw) if v is not None]
    unit = Unit.RATIO if all(0.0 <= v <= 1.0 for v in present) else Unit.PERCENT
    return RawPositionRecord(symbol, long_value=long_raw, short_value=short_raw, unit=unit)


def records_from_json(value: Any, depth: int = 0) -> list[RawPositionRecord]:
    """Pull symbol + long/short (or index) records out of an arbitrary decoded literal."""
    if depth > _MAX_DEPTH:
        return []
    records: list[RawPositionRecord] = []

    if isinstance(value, list):
        for item in value:
            if isinstance(item, dict):
                rec = _record_from_item(item)
                if rec is not None:
                    records.append(rec)
                    continue
            if isinstance(item, (list, dict)):
                records.extend(records_from_json(item, depth + 1))
        return records

    if isinstance(value, dict):
        for name in CONTAINER_FIELDS:
            if isinstance(value.get(name), (list, dict)):
                found = records_from_json(value[name], depth + 1)
                if found:
                    return found

        # Symbol-keyed objects: {"EURUSD": {"long": 61, "short": 39}, ...}
        for key, item in value.items():
            if isinstance(item, dict) and SYMBOL_CELL.fullmatch(str(key)):
                rec = _record_from_item(item, symbol_hint=str(key))
                if rec is not None:
                    records.append(rec)
        if records:
            return records

        rec = _record_from_item(value)
        if rec is not None:
            return [rec]

        # Wrapper objects under arbitrary keys: {"sentiment": {"data": [...]}}
        for item in value.values():
            if isinstance(item, (list, dict)):
                records.extend(records_from_json(item, depth + 1))
    return records


def _literals(body: str) -> Iterable[Any]:
    decoder = json.JSONDecoder()
    consumed_to = 0
    for match in _LITERAL_START.finditer(body):
        if match.start() < consumed_to:
            continue
        try:
            value, end = decoder.raw_decode(body, match.start())
        except ValueError:
            continue
        consumed_to = end
        yield value


def scan_script_literals(html: str, hints: Sequence[str] = ()) -> list[RawPositionRecord]:
    """
    Decode JSON literals embedded in <script> tags.

    Args:
        html: Page HTML.
        hints: Substrings a script must contain to be worth decoding
               (e.g. "outlook", "sentiment"). Empty means every script.
    """
    if not html:
        return []
    soup = BeautifulSoup(html, "html.parser")
    records: list[RawPositionRecord] = []
    for script in soup.find_all("script"):
        body = script.string or script.get_text() or ""
        if not body.strip():
            continue
        if hints and not any(h in body for h in hints):
            continue
        for literal in _literals(body):
            records.extend(records_from_json(literal))
    return records


# ---------------------------------------------------------------------------
# (c) Free-text templates
# ---------------------------------------------------------------------------

def scan_text(text: str, templates: Sequence[TextTemplate]) -> list[RawPositionRecord]:
    """
    Apply every template to the rendered text and collect all matches in
    template order. Duplicates are left for the record pipeline to resolve.
    """
    if not text:
        return []
    records: list[RawPositionRecord] = []
    for template in templates:
        for m in template.pattern.finditer(text):
            groups = m.groupdict()
            records.append(
                _ordered(
                    groups["symbol"].strip(),
                    groups.get("first"),
                    groups.get("second"),
                    template.side_order,
                    template.unit,
                )
            )
    return records


# ---------------------------------------------------------------------------
# Strategy factories
# ---------------------------------------------------------------------------

def table_strategy(side_order: Sequence[str], min_cells: int = 3, row_selector: str = "tr") -> Strategy:
    return Strategy(
        name="table",
        run=lambda content: scan_table_rows(content.html, side_order, min_cells, row_selector),
    )


def script_strategy(hints: Sequence[str] = ()) -> Strategy:
    return Strategy(name="script", run=lambda content: scan_script_literals(content.html, hints))


def text_strategy(templates: Sequence[TextTemplate]) -> Strategy:
    return Strategy(name="text", run=lambda content: scan_text(content.all_text, templates))
