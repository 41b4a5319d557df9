"""Pydantic schemas for the OddsLab API."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from oddslab.config import get_settings
from oddslab.parlays.types import ParlayLeg


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class EventBatchRequest(_CamelModel):
    sport: str
    event_ids: list[str] = Field(alias="eventIds", min_length=1)
    markets: list[str] = Field(default_factory=lambda: ["h2h", "spreads", "totals"], min_length=1)


class ParlayLegIn(_CamelModel):
    id: str
    sport: str = ""
    event_id: str = Field(alias="eventId")
    market: str
    selection: str
    odds: dict[str, int] = Field(default_factory=dict)
    point: float | None = None
    bookmaker: str | None = None

    def to_leg(self) -> ParlayLeg:
        return ParlayLeg(
            id=self.id,
            sport=self.sport,
            event_id=self.event_id,
            market=self.market,
            selection=self.selection,
            odds=dict(self.odds),
            point=self.point,
            bookmaker=self.bookmaker,
        )


class ParlayPriceRequest(_CamelModel):
    legs: list[ParlayLegIn] = Field(min_length=1)
    bookmakers: list[str] | None = None
    same_game: bool | None = Field(default=None, alias="sameGame")


class NormalizedParlayRequest(_CamelModel):
    legs: list[ParlayLegIn] = Field(min_length=1)
    bookmakers: list[str] | None = None
    events: list[dict[str, Any]] = Field(min_length=1)


class ConflictRequest(_CamelModel):
    legs: list[ParlayLegIn]
    events: list[dict[str, Any]]
    event_id: str = Field(alias="eventId")
    market: str
    selection: str


class ParlayQuoteOut(BaseModel):
    bookmaker: str
    american_odds: int | None
    decimal_odds: float | None
    same_game: bool
    available: bool


class LineMatchRequest(_CamelModel):
    target_point: float = Field(alias="targetPoint")
    market: str
    bookmakers: list[dict[str, Any]]
    selection: str | None = None


class EVRequest(_CamelModel):
    bet_amount: float = Field(alias="betAmount", gt=0)
    american_odds: float = Field(alias="americanOdds")
    estimated_probability: float = Field(alias="estimatedProbability", ge=0, le=1)


class KellyRequest(_CamelModel):
    probability: float = Field(ge=0, le=1)
    american_odds: float = Field(alias="americanOdds")
    bankroll: float = Field(default_factory=lambda: get_settings().default_bankroll, gt=0)
    fraction: float = Field(default=1.0, gt=0, le=1)


class WagerRequest(_CamelModel):
    bankroll: float = Field(default_factory=lambda: get_settings().default_bankroll, gt=0)
    bookmaker_odds: float = Field(alias="bookmakerOdds")
    consensus_odds: float = Field(alias="consensusOdds")
    kelly_fraction: float | None = Field(default=None, alias="kellyFraction", gt=0, le=1)


class NoVigRequest(_CamelModel):
    odds_a: float = Field(alias="oddsA")
    odds_b: float = Field(alias="oddsB")


class ConvertRequest(_CamelModel):
    american_odds: float | None = Field(default=None, alias="americanOdds")
    decimal_odds: float | None = Field(default=None, alias="decimalOdds")
    probability: float | None = None


class ScanRequest(BaseModel):
    sports: list[str] | None = None
    markets: list[str] | None = None
    threshold: float | None = None
