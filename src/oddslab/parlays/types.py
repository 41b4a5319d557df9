"""Dataclasses for parlay legs and priced parlays."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass
class ParlayLeg:
    id: str
    sport: str
    event_id: str
    market: str
    selection: str
    odds: dict[str, int] = field(default_factory=dict)
    point: float | None = None
    bookmaker: str | None = None
    event_name: str = ""
    selection_display_name: str = ""

    def price_for(self, bookmaker: str) -> int | None:
        return self.odds.get(bookmaker)


@dataclass
class ParlayQuote:
    bookmaker: str
    american_odds: int | None
    decimal_odds: float | None
    same_game: bool = False

    @property
    def available(self) -> bool:
        return self.american_odds is not None
