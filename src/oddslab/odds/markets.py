"""Sport, market, region and bookmaker keys used by the odds provider."""

from __future__ import annotations

NBA = "basketball_nba"
NFL = "americanfootball_nfl"
MLB = "baseball_mlb"
NHL = "icehockey_nhl"
NCAAF = "americanfootball_ncaaf"
NCAAB = "basketball_ncaab"
UFC = "mma_mixed_martial_arts"
EPL = "soccer_epl"

SPORTS: tuple[str, ...] = (NBA, NFL, MLB, NHL, NCAAF, NCAAB, UFC, EPL)

MONEYLINE = "h2h"
SPREADS = "spreads"
TOTALS = "totals"
ALTERNATE_SPREADS = "alternate_spreads"
ALTERNATE_TOTALS = "alternate_totals"

GAME_MARKETS: tuple[str, ...] = (MONEYLINE, SPREADS, TOTALS)

ALTERNATE_MARKETS: dict[str, str] = {
    TOTALS: ALTERNATE_TOTALS,
    SPREADS: ALTERNATE_SPREADS,
}

REGIONS: tuple[str, ...] = ("us", "uk", "eu", "au")

DEFAULT_BOOKMAKERS: tuple[str, ...] = (
    "fanduel",
    "draftkings",
    "betmgm",
    "caesars",
    "pointsbet",
    "bet365",
    "pinnacle",
    "bovada",
    "betonline",
    "fanatics",
    "betrivers",
)

PLAYER_MARKETS: dict[str, dict[str, str]] = {
    NBA: {
        "points": "player_points",
        "rebounds": "player_rebounds",
        "assists": "player_assists",
        "threes": "player_threes",
        "steals": "player_steals",
        "blocks": "player_blocks",
        "pra": "player_points_rebounds_assists",
        "pr": "player_points_rebounds",
        "pa": "player_points_assists",
        "ra": "player_rebounds_assists",
    },
    NFL: {
        "pass_yards": "player_pass_yds",
        "pass_tds": "player_pass_tds",
        "rush_yards": "player_rush_yds",
        "receiving_yards": "player_recv_yds",
        "receptions": "player_receptions",
    },
    MLB: {
        "strikeouts": "pitcher_strikeouts",
        "hits": "batter_hits",
        "home_runs": "batter_home_runs",
        "runs": "batter_runs",
        "rbis": "batter_rbis",
        "total_bases": "batter_total_bases",
    },
    NHL: {
        "points": "player_points_nhl",
        "goals": "player_goals",
        "assists": "player_assists_nhl",
        "shots": "player_shots",
        "saves": "player_saves",
    },
}

_PLAYER_MARKET_PREFIXES = ("player_", "pitcher_", "batter_")


def is_player_market(market: str) -> bool:
    return market.startswith(_PLAYER_MARKET_PREFIXES)


def get_available_player_markets(sport: str) -> list[str]:
    """Return every player prop market key offered for ``sport``."""

    return list(PLAYER_MARKETS.get(sport, {}).values())


def split_csv(value: str | None) -> list[str]:
    """Split a comma-separated query value, dropping blanks."""

    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]
