"""Symbol normalizer tests."""

import pytest

from fxcrowd.core.symbols import (
    ALIASES,
    FX_PAIRS,
    asset_class,
    canonical_key,
    generic_normalize,
    normalize,
    split_pair,
    standard_orientation,
)


class TestSourceAliases:
    @pytest.mark.parametrize(
        ("symbol", "source", "expected"),
        [
            ("EURUSD", "myfxbook", "EUR/USD"),
            ("EUR_USD", "oanda", "EUR/USD"),
            ("EUR/USD", "forexfactory", "EUR/USD"),
            ("XTIUSD", "myfxbook", "WTI/USD"),
            ("WTICO_USD", "oanda", "WTI/USD"),
            ("LIGHT.CMD/USD", "dukascopy", "WTI/USD"),
            ("USA500.IDX/USD", "dukascopy", "SPX500"),
            ("US SPX 500", "oanda", "SPX500"),
            ("us  spx 500", "oanda", "SPX500"),
            ("Gold", "oanda", "XAU/USD"),
            ("Gold/USD", "forexfactory", "XAU/USD"),
            ("GER30", "myfxbook", "DE30"),
        ],
    )
    def test_known_spellings(self, symbol, source, expected):
        assert normalize(symbol, source) == expected

    def test_same_commodity_from_two_sources(self):
        assert normalize("WTICO_USD", "oanda") == normalize("LIGHT.CMD/USD", "dukascopy") == "WTI/USD"
        assert normalize("XAU_USD", "oanda") == normalize("Gold/USD", "forexfactory")

    def test_tables_are_read_only(self):
        with pytest.raises(TypeError):
            ALIASES["oanda"]["FOO"] = "BAR/BAZ"  # type: ignore[index]


class TestBlocklist:
    @pytest.mark.parametrize(
        ("symbol", "source"),
        [
            ("BTCUSD", "myfxbook"),
            ("BTC/USD", "forexfactory"),
            ("Bitcoin", "oanda"),
            ("UK100_GBP", "oanda"),
            ("JP225", "dukascopy"),
            ("HK33", "unknown"),
        ],
    )
    def test_blocked(self, symbol, source):
        assert normalize(symbol, source) is None


class TestSixLetterFallback:
    @pytest.mark.parametrize("symbol", ["ZARJPY", "ABCXYZ", "qwerty", "MXN-JPY", "sek_nok"])
    @pytest.mark.parametrize("source", ["myfxbook", "oanda", "dukascopy", "forexfactory", "unknown"])
    def test_split_three_three(self, symbol, source):
        letters = symbol.upper().replace("-", "").replace("_", "")
        assert normalize(symbol, source) == f"{letters[:3]}/{letters[3:]}"


class TestGenericNormalizer:
    @pytest.mark.parametrize(
        ("symbol", "expected"),
        [
            ("Crude Oil", "WTI/USD"),
            ("S&P 500", "SPX500"),
            ("nasdaq", "NAS100"),
            ("Silver/USD", "XAG/USD"),
            ("gold usd", "XAU/USD"),
            ("NAS100", "NAS100"),
            ("US-30", "US30"),
        ],
    )
    def test_plain_names(self, symbol, expected):
        assert generic_normalize(symbol) == expected
        assert normalize(symbol, "somewhere-else") == expected

    @pytest.mark.parametrize("symbol", ["", "   ", "Foo Bar Baz", "12/34", "?"])
    def test_unrecognized(self, symbol):
        assert normalize(symbol, "oanda") is None

    def test_non_string(self):
        assert normalize(None, "oanda") is None  # type: ignore[arg-type]
        assert normalize(1.2345, "oanda") is None  # type: ignore[arg-type]


class TestHelpers:
    def test_standard_pairs(self):
        assert len(FX_PAIRS) == 28
        assert len(set(FX_PAIRS)) == 28
        for pair in ("EUR/USD", "GBP/JPY", "USD/JPY", "EUR/GBP"):
            assert pair in FX_PAIRS

    @pytest.mark.parametrize(
        ("canonical", "expected"),
        [
            ("EUR/USD", "fx"),
            ("XAU/USD", "commodity"),
            ("WTI/USD", "commodity"),
            ("SPX500", "index"),
            ("DE30", "index"),
        ],
    )
    def test_asset_class(self, canonical, expected):
        assert asset_class(canonical) == expected

    def test_split_pair(self):
        assert split_pair("EUR/USD") == ("EUR", "USD")
        assert split_pair("US30") == ("US30", "")

    def test_canonical_key(self):
        assert canonical_key("EUR/USD") == canonical_key("eur_usd") == "EURUSD"

    @pytest.mark.parametrize(
        ("symbol", "expected"),
        [
            ("CHF/USD", ("USD/CHF", True)),
            ("JPY/EUR", ("EUR/JPY", True)),
            ("USD/CHF", ("USD/CHF", False)),
            ("XAU/USD", ("XAU/USD", False)),
            ("USD/MXN", ("USD/MXN", False)),
            ("SPX500", ("SPX500", False)),
        ],
    )
    def test_standard_orientation(self, symbol, expected):
        assert standard_orientation(symbol) == expected

    def test_reversed_pair_still_splits_as_written(self):
        assert normalize("CHFUSD", "oanda") == "CHF/USD"
