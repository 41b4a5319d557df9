"""Odds provider client tests."""

from __future__ import annotations

from types import SimpleNamespace

import httpx
import pytest

from oddslab import config
from oddslab.data import odds_api_client as oac

BASE_URL = "https://odds.example.test/v4"


def _client(handler, **kwargs) -> oac.OddsApiClient:
    return oac.OddsApiClient(
        api_key="secret",
        base_url=BASE_URL,
        http_client=httpx.Client(transport=httpx.MockTransport(handler)),
        **kwargs,
    )


def test_get_odds_builds_query_and_records_usage() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json=[{"id": "evt-1"}],
            headers={"x-requests-used": "12", "x-requests-remaining": "488"},
        )

    with _client(handler) as client:
        data = client.get_odds("basketball_nba", ["h2h", "totals"], ["us", "eu"], ["fanduel"])

    assert data == [{"id": "evt-1"}]
    params = seen[0].url.params
    assert seen[0].url.path == "/v4/sports/basketball_nba/odds"
    assert params["apiKey"] == "secret"
    assert params["markets"] == "h2h,totals"
    assert params["regions"] == "us,eu"
    assert params["bookmakers"] == "fanduel"
    assert params["oddsFormat"] == "american"
    assert client.last_usage.requests_used == 12
    assert client.last_usage.requests_remaining == 488


def test_client_error_is_not_retried() -> None:
    calls = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal calls
        calls += 1
        return httpx.Response(422, text="Invalid market")

    client = _client(handler)
    with pytest.raises(oac.OddsApiError) as excinfo:
        client.get_event_odds("basketball_nba", "evt-1", ["bogus"])
    assert excinfo.value.status_code == 422
    assert excinfo.value.is_client_error
    assert calls == 1


def test_player_props_for_events_collects_failures() -> None:
    sleeps: list[float] = []

    def handler(request: httpx.Request) -> httpx.Response:
        if "evt-2" in request.url.path:
            return httpx.Response(404, text="Event not found")
        return httpx.Response(200, json={"id": request.url.path.split("/")[-2], "bookmakers": []})

    client = _client(handler, sleep_fn=sleeps.append)
    results, errors = client.get_player_props_for_events(
        "basketball_nba", ["evt-1", "evt-2", "evt-3"], ["player_points"], delay_seconds=0.5
    )
    assert [r["id"] for r in results] == ["evt-1", "evt-3"]
    assert len(errors) == 1 and "evt-2" in errors[0]
    assert sleeps == [0.5, 0.5]


def test_missing_api_key(monkeypatch) -> None:
    settings = SimpleNamespace(
        odds_api_key="",
        odds_api_base_url=BASE_URL,
        http_timeout=1.0,
        player_props_delay_seconds=0.0,
    )
    monkeypatch.delenv("ODDS_API_KEY", raising=False)
    monkeypatch.setattr(oac, "get_settings", lambda: settings)
    monkeypatch.setattr(config, "get_settings", lambda: settings)
    with pytest.raises(RuntimeError, match="ODDS_API_KEY is not configured"):
        oac.OddsApiClient()


def test_compare_player_props() -> None:
    props = [
        {
            "bookmakers": [
                {
                    "key": "fanduel",
                    "markets": [
                        {
                            "key": "player_points",
                            "outcomes": [
                                {"name": "Over", "description": "Jayson Tatum", "point": 27.5, "price": -115},
                                {"name": "Over", "description": "Jaylen Brown", "point": 23.5, "price": -110},
                            ],
                        }
                    ],
                },
                {"key": "draftkings", "markets": [{"key": "player_rebounds", "outcomes": []}]},
            ]
        }
    ]
    result = oac.compare_player_props(props, "Jayson Tatum", "player_points")
    assert result == {"fanduel": {"point": 27.5, "price": -115}}
