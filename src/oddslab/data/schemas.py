"""Pydantic schemas for odds provider responses."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class _ProviderModel(BaseModel):
    model_config = ConfigDict(extra="allow")


class SportSchema(_ProviderModel):
    key: str
    group: str = ""
    title: str = ""
    description: str = ""
    active: bool = True
    has_outrights: bool = False


class EventSchema(_ProviderModel):
    id: str
    sport_key: str
    sport_title: str = ""
    commence_time: datetime
    home_team: str | None = None
    away_team: str | None = None


class OutcomeSchema(_ProviderModel):
    name: str
    price: int | float
    point: float | None = None
    description: str | None = None


class MarketSchema(_ProviderModel):
    key: str
    last_update: datetime | None = None
    outcomes: list[OutcomeSchema] = Field(default_factory=list)


class BookmakerSchema(_ProviderModel):
    key: str
    title: str = ""
    last_update: datetime | None = None
    markets: list[MarketSchema] = Field(default_factory=list)
    region: str | None = None

    def market(self, key: str) -> MarketSchema | None:
        return next((m for m in self.markets if m.key == key), None)


class ScoresSchema(_ProviderModel):
    home_score: int | None = None
    away_score: int | None = None


class GameOddsSchema(EventSchema):
    bookmakers: list[BookmakerSchema] = Field(default_factory=list)
    completed: bool = False
    scores: ScoresSchema | None = None

    @property
    def name(self) -> str:
        return f"{self.away_team} @ {self.home_team}"

    def is_live(self, now: datetime | None = None) -> bool:
        """A game is live once it has started and has not completed."""

        now = now or datetime.now(timezone.utc)
        if self.commence_time < now:
            return not self.completed
        if self.scores and (self.scores.home_score is not None or self.scores.away_score is not None):
            return True
        return False


class UsageStats(BaseModel):
    requests_used: int | None = None
    requests_remaining: int | None = None
    updated_at: datetime | None = None


def parse_game_odds(payload: list[dict[str, Any]]) -> list[GameOddsSchema]:
    return [GameOddsSchema.model_validate(item) for item in payload]
