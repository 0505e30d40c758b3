"""
Symbol Normalizer.

Every source spells the same instrument differently: "EURUSD", "EUR_USD",
"EUR/USD", "Gold/USD", "US SPX 500", "USA500.IDX/USD" ...
This module maps those spellings onto one canonical id:
  - "BASE/QUOTE" for currency pairs and metals/energies ("EUR/USD", "XAU/USD")
  - a fixed code for indices ("SPX500", "NAS100", "US30", "DE30")

Lookup order:
  1. Blocklist (crypto and index aliases that are ambiguous across sources) -> None
  2. Per-source exact-match alias table, then the shared plain-English names
  3. Six letters after stripping separators -> split 3/3
  4. Shared generic normalizer (plain-English names, "A/B" pairs, fixed codes)

Everything here is pure. The alias tables are read-only mappings built once at
import time.
"""
from __future__ import annotations

import re
from types import MappingProxyType
from typing import Mapping

# Now, we define the currency universe.
# Priority decides which side of a pair is the base currency (EUR > GBP > ... > JPY),
# which is the standard market convention for the 28 major/cross pairs.
CURRENCY_PRIORITY: Mapping[str, int] = MappingProxyType({
    "EUR": 8,
    "GBP": 7,
    "AUD": 6,
    "NZD": 5,
    "USD": 4,
    "CAD": 3,
    "CHF": 2,
    "JPY": 1,
})
CURRENCIES: tuple[str, ...] = tuple(CURRENCY_PRIORITY)


def _standard_pairs() -> tuple[str, ...]:
    pairs = []
    for i, first in enumerate(CURRENCIES):
        for second in CURRENCIES[i + 1:]:
            if CURRENCY_PRIORITY[first] > CURRENCY_PRIORITY[second]:
                base, quote = first, second
            else:
                base, quote = second, first
            pairs.append(f"{base}/{quote}")
    return tuple(pairs)


FX_PAIRS: tuple[str, ...] = _standard_pairs()

# Minor/exotic pairs some sources publish alongside the majors.
EXOTIC_PAIRS: tuple[str, ...] = (
    "USD/MXN", "USD/ZAR", "USD/TRY", "USD/SEK", "USD/NOK", "USD/SGD",
    "USD/HKD", "USD/PLN", "USD/CNH", "EUR/TRY", "EUR/NOK", "EUR/SEK", "EUR/PLN",
)

METALS: Mapping[str, str] = MappingProxyType({
    "XAUUSD": "XAU/USD",
    "XAU/USD": "XAU/USD",
    "XAGUSD": "XAG/USD",
    "XAG/USD": "XAG/USD",
    "GOLD": "XAU/USD",
    "SILVER": "XAG/USD",
})

FIXED_CODES = frozenset({"SPX500", "NAS100", "US30", "DE30"})

# Crypto is out of scope; the index aliases below mean different contracts
# depending on the source, so they are never blended.
BLOCKLIST = frozenset({
    "BTC", "ETH", "BTCUSD", "ETHUSD", "BTC/USD", "ETH/USD", "BITCOIN", "ETHEREUM",
    "UK100", "UK100_GBP", "UK100GBP", "HK33", "HK50", "JP225", "JP225USD", "JP225_USD",
    "HONG KONG 33", "HONGKONG33", "JAPAN 225", "JAPAN225",
})

_SEPARATORS = re.compile(r"[\s/_\-.]+")
_PAIR_PARTS = re.compile(r"[/_\-\s]+")
_SIX_LETTERS = re.compile(r"[A-Z]{6}")


def _spellings(pairs: tuple[str, ...], *separators: str) -> dict[str, str]:
    """Expand "EUR/USD" into every separator variant a source is known to use."""
    table: dict[str, str] = {}
    for pair in pairs:
        base, quote = pair.split("/")
        for sep in separators:
            table[f"{base}{sep}{quote}"] = pair
    return table


# Now, we build the per-source alias tables.
# Each one is frozen with MappingProxyType so no caller can mutate the mapping at runtime.
_MYFXBOOK: dict[str, str] = {
    **_spellings(FX_PAIRS + EXOTIC_PAIRS, "", "/"),
    **METALS,
    "XTIUSD": "WTI/USD",
    "XBRUSD": "BRENT/USD",
    "USOIL": "WTI/USD",
    "UKOIL": "BRENT/USD",
    "US500": "SPX500",
    "USTEC": "NAS100",
    "US30": "US30",
    "GER30": "DE30",
}

_OANDA: dict[str, str] = {
    **_spellings(FX_PAIRS + EXOTIC_PAIRS, "", "/", "_"),
    **METALS,
    "XAU_USD": "XAU/USD",
    "XAG_USD": "XAG/USD",
    "WTICO_USD": "WTI/USD",
    "BCO_USD": "BRENT/USD",
    "WEST TEXAS OIL": "WTI/USD",
    "BRENT CRUDE OIL": "BRENT/USD",
    "US30_USD": "US30",
    "SPX500_USD": "SPX500",
    "NAS100_USD": "NAS100",
    "DE30_EUR": "DE30",
    "US WALL ST 30": "US30",
    "US SPX 500": "SPX500",
    "US NAS 100": "NAS100",
    "GERMANY 30": "DE30",
    "US100": "NAS100",
    "US500": "SPX500",
    "US30": "US30",
}

_DUKASCOPY: dict[str, str] = {
    **_spellings(FX_PAIRS + EXOTIC_PAIRS, "", "/"),
    **METALS,
    "E_XAUUSD": "XAU/USD",
    "E_XAGUSD": "XAG/USD",
    "LIGHT.CMD/USD": "WTI/USD",
    "BRENT.CMD/USD": "BRENT/USD",
    "USA500.IDX/USD": "SPX500",
    "USATECH.IDX/USD": "NAS100",
    "USA30.IDX/USD": "US30",
    "DEU.IDX/EUR": "DE30",
    "SPX500": "SPX500",
    "NAS100": "NAS100",
    "US30": "US30",
    "DE30": "DE30",
}

_FOREXFACTORY: dict[str, str] = {
    **_spellings(FX_PAIRS + EXOTIC_PAIRS, "", "/"),
    **METALS,
    "GOLD/USD": "XAU/USD",
    "SILVER/USD": "XAG/USD",
    "GOLDUSD": "XAU/USD",
    "SILVERUSD": "XAG/USD",
    "OIL/USD": "WTI/USD",
    "OILUSD": "WTI/USD",
}

ALIASES: Mapping[str, Mapping[str, str]] = MappingProxyType({
    "myfxbook": MappingProxyType(_MYFXBOOK),
    "oanda": MappingProxyType(_OANDA),
    "dukascopy": MappingProxyType(_DUKASCOPY),
    "forexfactory": MappingProxyType(_FOREXFACTORY),
})

_EMPTY: Mapping[str, str] = MappingProxyType({})

# Shared fallback table: plain-English labels any source might render.
GENERIC_ALIASES: Mapping[str, str] = MappingProxyType({
    **METALS,
    "GOLD/USD": "XAU/USD",
    "SILVER/USD": "XAG/USD",
    "CRUDE OIL": "WTI/USD",
    "WTI": "WTI/USD",
    "WTI OIL": "WTI/USD",
    "BRENT": "BRENT/USD",
    "BRENT OIL": "BRENT/USD",
    "DOW JONES": "US30",
    "WALL STREET": "US30",
    "S&P 500": "SPX500",
    "SP500": "SPX500",
    "NASDAQ": "NAS100",
    "NASDAQ 100": "NAS100",
    "DAX": "DE30",
    "DAX 30": "DE30",
})

_METAL_NAMES: Mapping[str, str] = MappingProxyType({"GOLD": "XAU", "SILVER": "XAG"})


def _clean(symbol: str) -> str:
    # Upper-case and collapse inner whitespace ("US  SPX 500" -> "US SPX 500").
    return " ".join(symbol.strip().upper().split())


def strip_separators(symbol: str) -> str:
    return _SEPARATORS.sub("", symbol.upper())


def canonical_key(symbol: str) -> str:
    """Dedupe key for a canonical id: "EUR/USD" -> "EURUSD"."""
    return strip_separators(symbol)


def generic_normalize(symbol: str) -> str | None:
    """
    Source-agnostic fallback.

    Returns None for anything it cannot map with confidence: an unrecognized
    symbol is dropped rather than stored under a made-up id.
    """
    key = _clean(symbol)
    if not key:
        return None
    if key in GENERIC_ALIASES:
        return GENERIC_ALIASES[key]
    if key in FIXED_CODES:
        return key

    parts = [p for p in _PAIR_PARTS.split(key) if p]
    if len(parts) == 2:
        base = _METAL_NAMES.get(parts[0], parts[0])
        quote = parts[1]
        if all(p.isascii() and p.isalpha() and 3 <= len(p) <= 5 for p in (base, quote)):
            return f"{base}/{quote}"

    stripped = strip_separators(key)
    if stripped in FIXED_CODES:
        return stripped
    return None


def normalize(source_symbol: str, source_id: str) -> str | None:
    """
    Map a source-specific spelling to its canonical instrument id.

    Args:
        source_symbol: The symbol exactly as the source rendered it.
        source_id: Adapter name ("myfxbook", "oanda", ...). Unknown ids just skip
                   the per-source table.

    Returns:
        str | None: Canonical id, or None for blocklisted/unrecognized symbols.
    """
    if not isinstance(source_symbol, str):
        return None
    key = _clean(source_symbol)
    if not key:
        return None
    stripped = strip_separators(key)

    if key in BLOCKLIST or stripped in BLOCKLIST:
        return None

    table = ALIASES.get(source_id, _EMPTY)
    for candidate in (key, stripped):
        if candidate in table:
            return table[candidate]
    if key in GENERIC_ALIASES:
        return GENERIC_ALIASES[key]

    if _SIX_LETTERS.fullmatch(stripped):
        return f"{stripped[:3]}/{stripped[3:]}"

    return generic_normalize(key)


def asset_class(canonical: str) -> str:
    """Classify a canonical id as "fx", "commodity", "index" or "crypto" by keyword."""
    upper = canonical.upper()
    if any(k in upper for k in ("BTC", "ETH", "BITCOIN", "ETHEREUM")):
        return "crypto"
    if any(k in upper for k in ("XAU", "XAG", "XPT", "XPD", "WTI", "BCO", "BRENT", "GOLD", "SILVER", "OIL")):
        return "commodity"
    if any(k in upper for k in ("SPX", "NAS", "US30", "US500", "US100", "DE30", "DAX", "FTSE", "DOW")):
        return "index"
    return "fx"


def split_pair(canonical: str) -> tuple[str, str]:
    """("EUR", "USD") for "EUR/USD"; fixed codes come back as (code, "")."""
    if "/" in canonical:
        base, quote = canonical.split("/", 1)
        return base, quote
    return canonical, ""


def standard_orientation(canonical: str) -> tuple[str, bool]:
    """
    Market-convention orientation of a currency pair.

    Returns the symbol to store under and whether the reading has to be
    flipped: "CHF/USD" -> ("USD/CHF", True). Anything that is not a pair of two
    major currencies comes back unchanged.
    """
    base, quote = split_pair(canonical)
    if base in CURRENCY_PRIORITY and quote in CURRENCY_PRIORITY:
        if CURRENCY_PRIORITY[quote] > CURRENCY_PRIORITY[base]:
            return f"{quote}/{base}", True
    return canonical, False
