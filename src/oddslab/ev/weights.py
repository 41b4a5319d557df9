"""Bookmaker sharpness weights used by the weighted consensus.

Pinnacle anchors every table at 5.0; books not listed fall back to 1.0.
"""

from __future__ import annotations

from oddslab.odds.markets import MLB, MONEYLINE, NBA, NCAAB, NFL, NHL, SPREADS, TOTALS, is_player_market

DEFAULT_WEIGHT = 1.0

_NBA = {
    "pinnacle": 5.0,
    "draftkings": 4.97,
    "betmgm": 4.39,
    "bet365": 4.7,
    "fanduel": 4.6,
    "caesars": 4.5,
    "pointsbet": 4.0,
    "betonline": 4.92,
}

_NCAAB_BASE = {
    "pinnacle": 5.0,
    "bet365": 4.5,
    "draftkings": 4.3,
    "fanduel": 4.2,
    "betmgm": 4.0,
    "caesars": 4.0,
    "pointsbet": 3.8,
    "betrivers": 4.0,
    "bovada": 3.9,
    "fanatics": 3.8,
    "williamhill_us": 4.1,
    "mybookieag": 3.7,
    "betonline": 3.8,
    "betonlineag": 3.8,
    "betus": 3.7,
    "lowvig": 4.1,
}

_NFL_BASE = {
    "pinnacle": 5.0,
    "bet365": 2.0,
    "draftkings": 1.8,
    "fanduel": 1.8,
    "betmgm": 1.5,
    "caesars": 1.5,
    "pointsbet": 1.0,
}

_MLB = {
    "pinnacle": 5.0,
    "draftkings": 4.34,
    "fanduel": 4.33,
    "betmgm": 3.97,
    "bet365": 4.3,
    "caesars": 4.2,
    "pointsbet": 4.0,
}

_NHL = {
    "pinnacle": 5.0,
    "bet365": 4.6,
    "draftkings": 4.4,
    "fanduel": 4.3,
    "betmgm": 4.1,
    "caesars": 4.1,
    "pointsbet": 3.9,
    "betrivers": 4.0,
    "bovada": 3.9,
    "fanatics": 3.8,
    "williamhill_us": 4.2,
    "mybookieag": 3.7,
    "betonline": 3.8,
    "betonlineag": 3.8,
    "betus": 3.7,
    "lowvig": 4.2,
}

BOOKMAKER_WEIGHTS: dict[str, dict[str, dict[str, float]]] = {
    NBA: {MONEYLINE: _NBA, SPREADS: _NBA, TOTALS: _NBA},
    NCAAB: {
        MONEYLINE: _NCAAB_BASE,
        SPREADS: {**_NCAAB_BASE, "draftkings": 4.4},
        TOTALS: _NCAAB_BASE,
    },
    NFL: {
        MONEYLINE: _NFL_BASE,
        SPREADS: {**_NFL_BASE, "draftkings": 2.0},
        TOTALS: _NFL_BASE,
    },
    MLB: {MONEYLINE: _MLB, SPREADS: _MLB, TOTALS: _MLB},
    NHL: {MONEYLINE: _NHL, SPREADS: _NHL, TOTALS: _NHL},
}

PLAYER_PROPS_WEIGHTS: dict[str, dict[str, float]] = {
    "nba": {
        "fanduel": 4.6,
        "draftkings": 4.8,
        "pinnacle": 4.5,
        "caesars": 4.55,
        "kambi": 2.9,
        "betmgm": 4.0,
        "pointsbet": 3.8,
        "bet365": 4.2,
    },
    "mlb": {
        "fanduel": 5.0,
        "pinnacle": 3.7,
        "caesars": 3.7,
        "draftkings": 3.5,
        "kambi": 2.2,
        "betmgm": 3.3,
        "pointsbet": 3.0,
        "bet365": 3.5,
    },
}


def get_bookmaker_weight(bookmaker: str, sport: str, market: str) -> float:
    key = bookmaker.lower()
    if is_player_market(market):
        if sport in (NBA, NCAAB):
            return PLAYER_PROPS_WEIGHTS["nba"].get(key, DEFAULT_WEIGHT)
        if sport == MLB:
            return PLAYER_PROPS_WEIGHTS["mlb"].get(key, DEFAULT_WEIGHT)
    return BOOKMAKER_WEIGHTS.get(sport, {}).get(market, {}).get(key, DEFAULT_WEIGHT)
