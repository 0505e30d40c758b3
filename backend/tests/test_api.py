"""HTTP surface tests through FastAPI's TestClient."""

from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from fakes import StubAdapter
from fxcrowd.core import store
from fxcrowd.core.normalize import CanonicalSentiment
from fxcrowd.core.scheduler import ScraperOrchestrator, get_orchestrator
from fxcrowd.db import get_db
from fxcrowd.main import app
from fxcrowd.models import now_utc


@pytest.fixture
def orchestrator(session_factory):
    return ScraperOrchestrator(
        [
            StubAdapter("myfxbook", data=[CanonicalSentiment("EUR/USD", 35.0, 65.0)]),
            StubAdapter("forexfactory", error="no data found"),
        ],
        session_factory=session_factory,
    )


@pytest.fixture
def client(session_factory, orchestrator):
    def override_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_db
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    # No context manager: startup would schedule real scrape passes.
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def seeded(db):
    recent = now_utc() - timedelta(minutes=10)
    for source, symbol, long_ in [
        ("myfxbook", "EUR/USD", 30.0),
        ("oanda", "EUR/USD", 30.0),
        ("oanda", "USD/JPY", 65.0),
        ("dukascopy", "XAU/USD", 55.0),
    ]:
        store.save_snapshots(db, source, [CanonicalSentiment(symbol, long_, 100 - long_)], recent)
    return db


class TestHealth:
    def test_health(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json() == {"ok": True}


class TestSentimentRoutes:
    def test_list(self, client, seeded):
        resp = client.get("/api/v1/sentiment", params={"sort_by": "net_sentiment", "sort_order": "desc"})

        assert resp.status_code == 200
        assert [i["symbol"] for i in resp.json()] == ["USD/JPY", "XAU/USD", "EUR/USD"]

    def test_list_filtered(self, client, seeded):
        resp = client.get("/api/v1/sentiment", params={"asset_class": "commodity"})
        assert [i["symbol"] for i in resp.json()] == ["XAU/USD"]

    def test_list_bad_sort(self, client, seeded):
        assert client.get("/api/v1/sentiment", params={"sort_by": "volume"}).status_code == 400
        assert client.get("/api/v1/sentiment", params={"sort_order": "sideways"}).status_code == 422

    def test_instrument(self, client, seeded):
        resp = client.get("/api/v1/sentiment/instrument", params={"symbol": "eur_usd"})

        assert resp.status_code == 200
        body = resp.json()
        assert body["symbol"] == "EUR/USD"
        assert body["signal"] == {"label": "BULLISH", "strength": 20.0, "spread": 40.0}
        assert len(body["per_source_breakdown"]) == 2

    def test_instrument_missing(self, client, seeded):
        assert client.get("/api/v1/sentiment/instrument", params={"symbol": "NZD/CAD"}).status_code == 404

    def test_history(self, client, seeded):
        resp = client.get("/api/v1/sentiment/history", params={"symbol": "EURUSD", "interval": "hourly", "range": 6})

        assert resp.status_code == 200
        body = resp.json()
        assert (body["interval"], body["range"]) == ("hourly", 6)
        assert len(body["history"]) == 1

    def test_history_errors(self, client, seeded):
        assert client.get("/api/v1/sentiment/history", params={"symbol": "NZD/CAD"}).status_code == 404
        resp = client.get("/api/v1/sentiment/history", params={"symbol": "EUR/USD", "interval": "weekly"})
        assert resp.status_code == 422

    def test_overview(self, client, seeded):
        resp = client.get("/api/v1/sentiment/overview")

        assert resp.status_code == 200
        body = resp.json()
        assert body["instrument_count"] == 2
        assert len(body["currency_strength"]) == 8
        assert body["risk_sentiment"]["status"] in {"RISK-ON", "RISK-OFF", "NEUTRAL"}
        assert isinstance(body["new_signals"], list)
        assert isinstance(body["fading_signals"], list)


class TestAdminRoutes:
    def test_scrape_all(self, client):
        resp = client.post("/api/v1/admin/scrape")

        assert resp.status_code == 200
        body = resp.json()
        assert body["run_log"]["success_count"] == 1
        assert body["run_log"]["failed_scrapers"] == ["forexfactory"]
        assert [r["source"] for r in body["results"]] == ["myfxbook", "forexfactory"]

        logs = client.get("/api/v1/admin/logs").json()
        assert len(logs) == 1
        assert logs[0]["error_messages"] == ["forexfactory: no data found"]

    def test_scrape_one_and_status(self, client):
        resp = client.post("/api/v1/admin/scrape/MyFxBook")

        assert resp.status_code == 200
        assert resp.json()["data"] == [{"symbol": "EUR/USD", "long_percent": 35.0, "short_percent": 65.0}]

        status = client.get("/api/v1/admin/scrape/status").json()
        assert status["myfxbook"]["can_run"] is False
        assert status["forexfactory"] == {"can_run": True, "wait_seconds": 0}

        listed = client.get("/api/v1/sentiment").json()
        assert [i["symbol"] for i in listed] == ["EUR/USD"]

    def test_scrape_unknown(self, client):
        assert client.post("/api/v1/admin/scrape/fxblue").status_code == 404

    def test_scrape_while_running(self, client, orchestrator):
        orchestrator._running = True

        assert client.post("/api/v1/admin/scrape").status_code == 409
        assert client.post("/api/v1/admin/scrape/myfxbook").status_code == 409
