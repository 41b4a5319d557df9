"""API route tests."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import httpx
import pytest
from fastapi.testclient import TestClient

from oddslab.api import server
from oddslab.data.odds_api_client import OddsApiError
from oddslab.data.schemas import UsageStats
from oddslab.odds.markets import DEFAULT_BOOKMAKERS, get_available_player_markets


def _event(event_id: str) -> dict:
    start = datetime.now(timezone.utc) + timedelta(days=1)
    return {
        "id": event_id,
        "sport_key": "basketball_nba",
        "commence_time": start.isoformat(),
        "home_team": "Celtics",
        "away_team": "Knicks",
        "bookmakers": [
            {"key": key, "markets": [{"key": "h2h", "outcomes": [
                {"name": "Celtics", "price": home},
                {"name": "Knicks", "price": away},
            ]}]}
            for key, home, away in [("fanduel", 120, -140), ("draftkings", 100, -120), ("betmgm", 100, -120)]
        ],
    }


class FakeOddsClient:
    def __init__(self) -> None:
        self.event_calls: list[tuple] = []
        self.props_calls: list[tuple] = []
        self.last_usage = UsageStats(requests_used=3, requests_remaining=497)

    def get_sports(self):
        return [{"key": "basketball_nba", "title": "NBA"}]

    def get_odds(self, sport, markets=("h2h",), regions=("us",), bookmakers=None, odds_format="american"):
        return [_event("evt-1"), _event("evt-2")]

    def get_event_odds(self, sport, event_id, markets=(), regions=("us",), odds_format="american"):
        self.event_calls.append((event_id, tuple(markets)))
        if event_id == "broken":
            raise OddsApiError("upstream down", status_code=502)
        if event_id == "slow":
            raise httpx.ReadTimeout("read timed out")
        return {"id": event_id, "bookmakers": []}

    def get_player_props(self, sport, event_id, markets, regions=("us",), odds_format="american"):
        self.props_calls.append((sport, event_id, tuple(markets)))
        if event_id == "missing":
            raise OddsApiError("Event not found", status_code=404)
        return {
            "id": event_id,
            "bookmakers": [
                {
                    "key": "fanduel",
                    "markets": [
                        {
                            "key": "player_points",
                            "outcomes": [{"name": "Over", "description": "Jayson Tatum", "point": 27.5, "price": -115}],
                        }
                    ],
                }
            ],
        }


@pytest.fixture()
def fake_client() -> FakeOddsClient:
    return FakeOddsClient()


@pytest.fixture()
def api(fake_client: FakeOddsClient):
    server.app.dependency_overrides[server.get_odds_client] = lambda: fake_client
    yield TestClient(server.app)
    server.app.dependency_overrides.clear()


def test_health(api: TestClient) -> None:
    assert api.get("/health").json() == {"status": "ok"}


def test_sports_and_odds_wrap_data(api: TestClient) -> None:
    body = api.get("/sports").json()
    assert body["source"] == "api"
    assert body["data"][0]["key"] == "basketball_nba"
    odds = api.get("/odds", params={"sport": "basketball_nba", "markets": "h2h,spreads"}).json()
    assert [e["id"] for e in odds["data"]] == ["evt-1", "evt-2"]


def test_event_odds_errors(api: TestClient) -> None:
    missing = api.get("/event-odds")
    assert missing.status_code == 400
    assert missing.json() == {"error": "Event ID is required"}

    unknown = api.get("/event-odds", params={"eventId": "nope"})
    assert unknown.status_code == 404
    assert unknown.json() == {"error": "Event not found"}

    found = api.get("/event-odds", params={"eventId": "evt-2"})
    assert found.json()["data"]["id"] == "evt-2"


def test_batch_odds_filters_events(api: TestClient) -> None:
    response = api.post("/batch-odds", json={"sport": "basketball_nba", "eventIds": ["evt-2"], "markets": ["h2h"]})
    assert response.status_code == 200
    assert [e["id"] for e in response.json()["data"]] == ["evt-2"]

    bad = api.post("/batch-odds", json={"sport": "basketball_nba", "eventIds": []})
    assert bad.status_code == 400
    assert "error" in bad.json()


def test_alternate_lines_drops_failed_events(api: TestClient, fake_client: FakeOddsClient) -> None:
    response = api.post(
        "/alternate-lines",
        json={"sport": "basketball_nba", "eventIds": ["evt-1", "broken", "slow"], "markets": ["totals", "h2h"]},
    )
    assert response.status_code == 200
    assert [e["id"] for e in response.json()["data"]] == ["evt-1"]
    markets = dict(fake_client.event_calls)["evt-1"]
    assert markets == ("totals", "h2h", "alternate_totals")


def test_player_props(api: TestClient) -> None:
    body = api.get(
        "/player-props",
        params={"eventId": "evt-1", "markets": "player_points", "player": "Jayson Tatum"},
    ).json()
    assert body["data"] == {"fanduel": {"point": 27.5, "price": -115}}

    missing = api.get("/player-props", params={"eventId": "missing", "markets": "player_points"})
    assert missing.status_code == 400
    assert api.get("/player-props", params={"markets": "player_points"}).status_code == 400
    assert api.get("/player-props", params={"sport": "curling", "eventId": "evt-1"}).status_code == 400


def test_usage_stats(api: TestClient) -> None:
    data = api.get("/usage-stats").json()["data"]
    assert data["requests_used"] == 3
    assert data["requests_remaining"] == 497


def test_ev_opportunities(api: TestClient) -> None:
    response = api.get(
        "/ev-opportunities",
        params={"sport": "basketball_nba", "markets": "h2h", "threshold": 5, "comparisonMethod": "consensus"},
    )
    assert response.status_code == 200
    body = response.json()
    assert body["source"] == "api"
    assert "lastUpdated" in body
    assert {(o["event_id"], o["bookmaker"]) for o in body["data"]} == {("evt-1", "fanduel"), ("evt-2", "fanduel")}

    bad = api.get("/ev-opportunities", params={"comparisonMethod": "vibes"})
    assert bad.status_code == 400


def test_line_match(api: TestClient) -> None:
    payload = {
        "targetPoint": 217.5,
        "market": "totals",
        "selection": "Over",
        "bookmakers": [
            {"key": "fanduel", "markets": [{"key": "totals", "outcomes": [{"name": "Over", "price": -110, "point": 217.5}]}]},
            {"key": "draftkings", "markets": [
                {"key": "alternate_totals", "outcomes": [{"name": "Over", "price": -105, "point": 217.5}]}
            ]},
        ],
    }
    body = api.post("/lines/match", json=payload).json()
    assert [row["isAlternate"] for row in body["data"]] == [False, True]
    assert body["best"] == {"bookmaker": "draftkings", "odds": -105}


def test_parlay_price(api: TestClient) -> None:
    legs = [
        {"id": "a", "eventId": "e1", "market": "spreads", "selection": "Celtics", "odds": {"fanduel": -110, "betmgm": -115}},
        {"id": "b", "eventId": "e2", "market": "spreads", "selection": "Lakers", "odds": {"fanduel": -110}},
    ]
    body = api.post("/parlays/price", json={"legs": legs}).json()
    quotes = {q["bookmaker"]: q for q in body["data"]}
    assert quotes["fanduel"]["american_odds"] == 264
    assert quotes["betmgm"]["available"] is False
    assert body["best"]["bookmaker"] == "fanduel"


def test_parlay_conflicts(api: TestClient) -> None:
    legs = [
        {"id": "over", "eventId": "g1", "market": "totals", "selection": "Over"},
        {"id": "ml", "eventId": "g1", "market": "h2h", "selection": "Celtics"},
    ]
    body = api.post(
        "/parlays/conflicts",
        json={
            "legs": legs,
            "events": [{"id": "g1", "home_team": "Celtics", "away_team": "Knicks"}],
            "eventId": "g1",
            "market": "totals",
            "selection": "Under",
        },
    ).json()
    assert body["data"] == {"legs": ["ml"], "removed": ["over"]}


def test_calculators(api: TestClient) -> None:
    kelly = api.post("/calculators/kelly", json={"probability": 0.6, "americanOdds": -110, "bankroll": 1000}).json()
    assert kelly["data"]["stake"] == pytest.approx(160.0)

    ev = api.post(
        "/calculators/ev", json={"betAmount": 100, "americanOdds": 150, "estimatedProbability": 0.5}
    ).json()
    assert ev["data"]["expectedValue"] == pytest.approx(25.0)
    assert ev["data"]["fairOdds"] == -100

    no_vig = api.post("/calculators/no-vig", json={"oddsA": -110, "oddsB": -110}).json()
    assert no_vig["data"]["sideA"] == pytest.approx(0.5)
    assert no_vig["data"]["margin"] == pytest.approx(4.7619, rel=1e-3)

    wager = api.post(
        "/calculators/wager", json={"bankroll": 1000, "bookmakerOdds": 110, "consensusOdds": -110, "kellyFraction": 0.25}
    ).json()
    assert wager["data"]["expectedValue"] == pytest.approx(10.0)


def test_convert_and_domain_errors(api: TestClient) -> None:
    converted = api.post("/calculators/convert", json={"decimalOdds": 2.5}).json()
    assert converted["data"]["american"] == 150

    bad_probability = api.post("/calculators/convert", json={"probability": 1.5})
    assert bad_probability.status_code == 400
    assert "between 0 and 1" in bad_probability.json()["error"]

    assert api.post("/calculators/convert", json={}).status_code == 400
    assert api.post("/calculators/kelly", json={"probability": 0.6, "americanOdds": 0, "bankroll": 10}).status_code == 400
    assert api.post("/calculators/kelly", json={"probability": 0.6}).status_code == 400


def test_run_ev_scan(api: TestClient, monkeypatch) -> None:
    captured: dict = {}

    def fake_scan(**kwargs):
        captured.update(kwargs)
        return {"success": True, "total_opportunities": 0, "results": []}

    monkeypatch.setattr(server, "run_ev_scan", fake_scan)
    body = api.post("/run_ev_scan", json={"sports": ["basketball_nba"], "threshold": 3}).json()
    assert body["data"]["success"] is True
    assert captured["sports"] == ["basketball_nba"]
    assert captured["ev_threshold"] == 3


def test_player_props_default_to_sport_markets(api: TestClient, fake_client: FakeOddsClient) -> None:
    response = api.get("/player-props", params={"eventId": "evt-1"})
    assert response.status_code == 200
    assert fake_client.props_calls[-1] == (
        "basketball_nba",
        "evt-1",
        tuple(get_available_player_markets("basketball_nba")),
    )


def test_odds_rejects_unknown_region(api: TestClient) -> None:
    response = api.get("/odds", params={"regions": "us,mars"})
    assert response.status_code == 400
    assert response.json() == {"error": "Unknown regions: mars"}


def test_kelly_defaults_bankroll_from_settings(api: TestClient) -> None:
    body = api.post("/calculators/kelly", json={"probability": 0.6, "americanOdds": -110}).json()
    assert body["data"]["stake"] == pytest.approx(0.16 * server.settings.default_bankroll)


def test_normalized_parlay_defaults_bookmakers(api: TestClient) -> None:
    legs = [{"id": "a", "eventId": "e1", "market": "h2h", "selection": "Celtics"}]
    events = [{"id": "e1", "bookmakers": []}]
    body = api.post("/parlays/normalized", json={"legs": legs, "events": events}).json()
    assert list(body["data"]) == list(DEFAULT_BOOKMAKERS)
    assert all(price is None for price in body["data"].values())


def test_transport_error_returns_json(api: TestClient, fake_client: FakeOddsClient, monkeypatch) -> None:
    def unreachable():
        raise httpx.ConnectError("connection refused")

    monkeypatch.setattr(fake_client, "get_sports", unreachable)
    response = api.get("/sports")
    assert response.status_code == 500
    assert "connection refused" in response.json()["error"]


def test_unexpected_error_returns_json(fake_client: FakeOddsClient, monkeypatch) -> None:
    def broken():
        raise KeyError("bookmakers")

    monkeypatch.setattr(fake_client, "get_sports", broken)
    server.app.dependency_overrides[server.get_odds_client] = lambda: fake_client
    try:
        response = TestClient(server.app, raise_server_exceptions=False).get("/sports")
    finally:
        server.app.dependency_overrides.clear()
    assert response.status_code == 500
    assert "bookmakers" in response.json()["error"]
