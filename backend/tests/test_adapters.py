"""Source adapter tests: each adapter runs end to end against a fake page."""

import pytest

from fakes import FakeFrame, FakePage, SessionRecorder, SleepRecorder
from fxcrowd.core.errors import UnknownSourceError
from fxcrowd.core.extract import LONG_FIRST, SHORT_FIRST
from fxcrowd.core.normalize import CanonicalSentiment
from fxcrowd.services.base_adapter import NO_DATA, ScrapeResult
from fxcrowd.services.dukascopy_adapter import DukascopyAdapter
from fxcrowd.services.forexfactory_adapter import ForexFactoryAdapter
from fxcrowd.services.myfxbook_adapter import MyfxbookAdapter
from fxcrowd.services.oanda_adapter import OandaAdapter
from fxcrowd.services.registry import ADAPTER_CLASSES, build_adapters

MYFXBOOK_HTML = """
<html><body><table>
  <tr><td>EURUSD</td><td>Short 45%</td><td>Long 55%</td></tr>
  <tr><td>BTCUSD</td><td>Short 30%</td><td>Long 70%</td></tr>
  <tr><td>XAUUSD</td><td>Short 72%</td><td>Long 28%</td></tr>
</table></body></html>
"""

DUKASCOPY_HTML = """
<html><body><div id="chart"></div>
<script>
  var swfxSentiment = {"instruments": [
    {"instrument": "EUR/USD", "long": 0.62, "short": 0.38},
    {"instrument": "LIGHT.CMD/USD", "swfx": -40},
    {"instrument": "BTC/USD", "long": 0.5, "short": 0.5}
  ]};
</script></body></html>
"""


def _adapter(cls, page, clock, **kwargs):
    session = SessionRecorder(page)
    adapter = cls(session_factory=session, sleep=SleepRecorder(), clock=clock, **kwargs)
    return adapter, session


class TestSideOrder:
    def test_pinned_per_source(self):
        assert MyfxbookAdapter.side_order == SHORT_FIRST
        assert OandaAdapter.side_order == SHORT_FIRST
        assert DukascopyAdapter.side_order == LONG_FIRST
        assert ForexFactoryAdapter.side_order == LONG_FIRST


class TestAdapters:
    @pytest.mark.asyncio
    async def test_myfxbook_table(self, clock):
        adapter, session = _adapter(MyfxbookAdapter, FakePage.showing(MYFXBOOK_HTML, "EURUSD"), clock)

        result = await adapter.scrape()

        assert result.success
        assert result.source == "myfxbook"
        assert result.strategy == "table"
        assert result.timestamp == clock.now
        assert result.data == [
            CanonicalSentiment("EUR/USD", 55.0, 45.0),
            CanonicalSentiment("XAU/USD", 28.0, 72.0),
        ]
        assert session.opened == session.closed == 1

    @pytest.mark.asyncio
    async def test_oanda_text_when_no_table(self, clock):
        text = "Position Ratios\nEUR/USD\n72%\n28%\nUS SPX 500\n35%\n65%\nBitcoin\n20%\n80%"
        adapter, _ = _adapter(OandaAdapter, FakePage.showing("<html><canvas></canvas></html>", text), clock)

        result = await adapter.scrape()

        assert result.success
        assert result.strategy == "text"
        assert result.data == [
            CanonicalSentiment("EUR/USD", 28.0, 72.0),
            CanonicalSentiment("SPX500", 65.0, 35.0),
        ]

    @pytest.mark.asyncio
    async def test_dukascopy_script(self, clock):
        adapter, _ = _adapter(DukascopyAdapter, FakePage.showing(DUKASCOPY_HTML, ""), clock)

        result = await adapter.scrape()

        assert result.success
        assert result.strategy == "script"
        assert result.data == [
            CanonicalSentiment("EUR/USD", 62.0, 38.0),
            CanonicalSentiment("WTI/USD", 30.0, 70.0),
        ]

    @pytest.mark.asyncio
    async def test_forexfactory_text(self, clock):
        text = "EUR/USD\n\t\n42% 68 Traders\n94 Traders 58%\n\tOpen\nSilver/USD\n\t\n81% 40 Traders\n9 Traders 19%"
        adapter, session = _adapter(ForexFactoryAdapter, FakePage.showing("<html></html>", text), clock)

        result = await adapter.scrape()

        assert result.success
        assert result.data == [
            CanonicalSentiment("EUR/USD", 42.0, 58.0),
            CanonicalSentiment("XAG/USD", 81.0, 19.0),
        ]
        assert session.kwargs["navigation_timeout_ms"] == adapter.navigation_timeout_ms

    @pytest.mark.asyncio
    async def test_frame_text_is_scanned(self, clock):
        page = FakePage.showing("<html><iframe></iframe></html>", "", frames=[FakeFrame("GBP/USD\n61%\n39%")])
        adapter, _ = _adapter(OandaAdapter, page, clock)

        result = await adapter.scrape()

        assert result.data == [CanonicalSentiment("GBP/USD", 39.0, 61.0)]


class TestTextTemplatesIgnoreProse:
    @pytest.mark.asyncio
    async def test_dukascopy_heading_is_not_an_instrument(self, clock):
        text = "Global sentiment: 35\nSWFX Sentiment Index\nEUR/USD 62% 38%\nGBPUSD SWFX: -20"
        adapter, _ = _adapter(DukascopyAdapter, FakePage.showing("<html></html>", text), clock)

        result = await adapter.scrape()

        assert result.data == [
            CanonicalSentiment("EUR/USD", 62.0, 38.0),
            CanonicalSentiment("GBP/USD", 40.0, 60.0),
        ]

    @pytest.mark.asyncio
    async def test_myfxbook_words_are_not_instruments(self, clock):
        text = "Traders Short 40% Long 60%\nXEURUSD Short 10% Long 90%\nEURUSD Short 45% Long 55%"
        adapter, _ = _adapter(MyfxbookAdapter, FakePage.showing("<html></html>", text), clock)

        result = await adapter.scrape()

        assert result.data == [CanonicalSentiment("EUR/USD", 55.0, 45.0)]

    @pytest.mark.asyncio
    async def test_myfxbook_prose_only_is_no_data(self, clock):
        text = "Traders Short 40% Long 60%"
        adapter, _ = _adapter(MyfxbookAdapter, FakePage.showing("<html></html>", text), clock)

        result = await adapter.scrape()

        assert not result.success
        assert result.error == NO_DATA

    @pytest.mark.asyncio
    async def test_forexfactory_keywords_any_case(self, clock):
        text = "and/the 40% LONG\nUSD/JPY LONG 30% SHORT 70%\nGOLD/USD Long 55% Short 45%"
        adapter, _ = _adapter(ForexFactoryAdapter, FakePage.showing("<html></html>", text), clock)

        result = await adapter.scrape()

        assert result.data == [
            CanonicalSentiment("USD/JPY", 30.0, 70.0),
            CanonicalSentiment("XAU/USD", 55.0, 45.0),
        ]


class TestFailures:
    @pytest.mark.asyncio
    async def test_no_strategy_finds_data(self, clock):
        adapter, session = _adapter(MyfxbookAdapter, FakePage.showing("<html>maintenance</html>", "maintenance"), clock)

        result = await adapter.scrape()

        assert result == ScrapeResult(success=False, source="myfxbook", data=[], error=NO_DATA, timestamp=clock.now)
        assert result.error == "no data found"
        assert session.closed == 1

    @pytest.mark.asyncio
    async def test_only_invalid_records(self, clock):
        html = "<table><tr><td>EURUSD</td><td>Short 90%</td><td>Long 90%</td></tr></table>"
        adapter, _ = _adapter(MyfxbookAdapter, FakePage.showing(html, ""), clock)

        result = await adapter.scrape()

        assert not result.success
        assert result.error == NO_DATA

    @pytest.mark.asyncio
    async def test_navigation_timeout_becomes_failed_result(self, clock):
        page = FakePage(goto_error=TimeoutError("Timeout 60000ms exceeded"))
        adapter, session = _adapter(OandaAdapter, page, clock)

        result = await adapter.scrape()

        assert not result.success
        assert result.error == "Timeout 60000ms exceeded"
        assert session.opened == session.closed == 1

    @pytest.mark.asyncio
    async def test_unresolved_challenge(self, clock):
        page = FakePage.showing("<title>Just a moment...</title>", "Just a moment...")
        adapter, session = _adapter(MyfxbookAdapter, page, clock)

        result = await adapter.scrape()

        assert not result.success
        assert "challenge" in result.error
        assert session.closed == 1

    @pytest.mark.asyncio
    async def test_error_without_message(self, clock):
        adapter, _ = _adapter(OandaAdapter, FakePage(goto_error=RuntimeError()), clock)

        result = await adapter.scrape()

        assert result.error == "RuntimeError"


class TestScrapeResult:
    def test_to_dict(self, clock):
        result = ScrapeResult(
            success=True,
            source="oanda",
            data=[CanonicalSentiment("EUR/USD", 40.0, 60.0)],
            timestamp=clock.now,
            strategy="text",
        )
        assert result.to_dict() == {
            "success": True,
            "source": "oanda",
            "data": [{"symbol": "EUR/USD", "long_percent": 40.0, "short_percent": 60.0}],
            "error": None,
            "timestamp": clock.now,
            "strategy": "text",
        }


class TestRegistry:
    def test_registry_order(self):
        adapters = build_adapters(["forexfactory", "OANDA", " myfxbook "])
        assert [a.name for a in adapters] == ["myfxbook", "oanda", "forexfactory"]

    def test_every_adapter_registered(self):
        assert set(ADAPTER_CLASSES) == {"myfxbook", "oanda", "dukascopy", "forexfactory"}

    def test_unknown(self):
        with pytest.raises(UnknownSourceError) as exc_info:
            build_adapters(["myfxbook", "fxblue"])
        assert exc_info.value.name == "fxblue"
        assert str(exc_info.value) == "Unknown source: fxblue"
