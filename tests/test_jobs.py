from __future__ import annotations

from types import SimpleNamespace

from oddslab.scheduling import jobs


class FakeFinder:
    def __init__(self) -> None:
        self.calls: list[tuple] = []

    def find_ev_opportunities(self, sport, markets, threshold):
        self.calls.append((sport, tuple(markets), threshold))
        if sport == "icehockey_nhl":
            raise RuntimeError("provider timeout")
        count = 2 if sport == "basketball_nba" else 1
        return SimpleNamespace(opportunities=[object()] * count)


def test_run_ev_scan_summarizes_per_sport() -> None:
    finder = FakeFinder()
    summary = jobs.run_ev_scan(
        sports=["basketball_nba", "americanfootball_nfl", "icehockey_nhl"],
        markets=["h2h"],
        ev_threshold=4.0,
        finder=finder,
    )
    assert summary["success"] is True
    assert summary["total_opportunities"] == 3
    by_sport = {r["sport"]: r for r in summary["results"]}
    assert by_sport["basketball_nba"]["opportunities_count"] == 2
    assert by_sport["icehockey_nhl"]["success"] is False
    assert "provider timeout" in by_sport["icehockey_nhl"]["error"]
    assert [r["sport"] for r in summary["results"]] == ["basketball_nba", "americanfootball_nfl", "icehockey_nhl"]
    assert all(call[2] == 4.0 for call in finder.calls)
    assert "3 opportunities across 3 sports" in summary["message"]


def test_run_ev_scan_uses_default_threshold(monkeypatch) -> None:
    monkeypatch.setattr(jobs, "settings", SimpleNamespace(ev_threshold=7.5, scan_max_workers=2))
    finder = FakeFinder()
    summary = jobs.run_ev_scan(sports=["basketball_nba"], finder=finder)
    assert finder.calls == [("basketball_nba", tuple(jobs.GAME_MARKETS), 7.5)]
    assert summary["total_opportunities"] == 2
