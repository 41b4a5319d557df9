"""Positive expected value scanner.

Each bookmaker's price is compared with a consensus price built from the
rest of the market (median, sharp-book or sharpness-weighted). Prices whose
EV against that consensus clears the threshold are reported.
"""

from __future__ import annotations

import logging
import statistics
from collections.abc import Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Literal

import httpx

from oddslab.config import get_settings
from oddslab.data.odds_api_client import OddsApiClient, OddsApiError
from oddslab.data.schemas import BookmakerSchema, GameOddsSchema, parse_game_odds
from oddslab.ev.calculator import ev_percentage
from oddslab.ev.weights import get_bookmaker_weight
from oddslab.odds.lines import are_similar_lines

logger = logging.getLogger(__name__)

ComparisonMethod = Literal["consensus", "sharp", "weighted"]

# Weight boost applied to every book when no Pinnacle price is available.
NO_PINNACLE_WEIGHT_MULTIPLIER = 1.5


@dataclass
class EVOpportunity:
    id: str
    event_id: str
    event_name: str
    market: str
    selection: str
    bookmaker: str
    odds: float
    consensus_odds: float
    ev: float
    timestamp: str
    point: float | None = None
    commence_time: str | None = None
    is_live: bool = False
    region: str = "unknown"
    comparison_method: ComparisonMethod = "weighted"

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class EVScanResult:
    opportunities: list[EVOpportunity] = field(default_factory=list)
    last_updated: str = ""
    source: str = "api"


def _outcome_price(
    bookmaker: BookmakerSchema,
    market_key: str,
    outcome_name: str,
    point: float | None,
) -> float | None:
    market = bookmaker.market(market_key)
    if market is None:
        return None
    for outcome in market.outcomes:
        if outcome.name != outcome_name:
            continue
        if point is None or are_similar_lines(outcome.point, point):
            return outcome.price
    return None


def find_consensus_odds(
    bookmakers: Iterable[BookmakerSchema],
    market_key: str,
    outcome_name: str,
    point: float | None = None,
) -> float:
    """Median price across ``bookmakers``; 0 when nobody lists the outcome."""

    prices = [
        price
        for price in (_outcome_price(b, market_key, outcome_name, point) for b in bookmakers)
        if price is not None
    ]
    if not prices:
        return 0
    return statistics.median(prices)


def find_sharp_consensus_odds(
    bookmakers: Sequence[BookmakerSchema],
    market_key: str,
    outcome_name: str,
    point: float | None = None,
    sharp_bookmakers: Sequence[str] = ("pinnacle",),
) -> float:
    """Pinnacle's price when listed, else the mean of the sharp books, else the median."""

    pinnacle = next((b for b in bookmakers if b.key.lower() == "pinnacle"), None)
    if pinnacle is not None:
        price = _outcome_price(pinnacle, market_key, outcome_name, point)
        if price is not None:
            return price

    sharp_keys = {key.lower() for key in sharp_bookmakers}
    sharp_prices = [
        price
        for b in bookmakers
        if b.key.lower() in sharp_keys
        for price in [_outcome_price(b, market_key, outcome_name, point)]
        if price is not None
    ]
    if not sharp_prices:
        return find_consensus_odds(bookmakers, market_key, outcome_name, point)
    return sum(sharp_prices) / len(sharp_prices)


def round_to_standard_american_odds(odds: float) -> int:
    """Snap a blended price to the 5-cent grid books actually quote."""

    if -100 < odds < 100:
        return 100 if odds >= 0 else -110
    return int(round(odds / 5) * 5)


def find_weighted_consensus_odds(
    bookmakers: Sequence[BookmakerSchema],
    market_key: str,
    outcome_name: str,
    sport: str,
    point: float | None = None,
    exclude_bookmaker: str | None = None,
) -> float:
    """Sharpness-weighted mean of the other books' prices, snapped to the 5-cent grid."""

    others = [b for b in bookmakers if not exclude_bookmaker or b.key != exclude_bookmaker]
    if len(others) < 2:
        logger.debug("Not enough bookmakers for %s %s consensus", sport, market_key)
        return 0

    has_pinnacle = any(b.key.lower() == "pinnacle" for b in others)
    multiplier = 1.0 if has_pinnacle else NO_PINNACLE_WEIGHT_MULTIPLIER

    weighted: list[tuple[float, float]] = []
    for bookmaker in others:
        price = _outcome_price(bookmaker, market_key, outcome_name, point)
        if price is None:
            continue
        weight = get_bookmaker_weight(bookmaker.key, sport, market_key) * multiplier
        weighted.append((price, weight))

    if len(weighted) < 2:
        logger.debug("Not enough weighted prices for %s %s consensus", sport, market_key)
        return 0

    total_weight = sum(w for _, w in weighted)
    raw = sum(p * w for p, w in weighted) / total_weight
    return round_to_standard_american_odds(raw)


def merge_region_odds(responses: Iterable[tuple[str, Sequence[GameOddsSchema]]]) -> list[GameOddsSchema]:
    """Merge per-region event lists into one list.

    Events are keyed by id, bookmakers by key and markets by key; the first
    region to report a bookmaker or market wins.
    """

    merged: dict[str, GameOddsSchema] = {}
    for region, events in responses:
        for event in events:
            for bookmaker in event.bookmakers:
                bookmaker.region = region
            existing = merged.get(event.id)
            if existing is None:
                merged[event.id] = event
                continue
            books = {b.key: b for b in existing.bookmakers}
            for bookmaker in event.bookmakers:
                current = books.get(bookmaker.key)
                if current is None:
                    existing.bookmakers.append(bookmaker)
                    books[bookmaker.key] = bookmaker
                    continue
                known_markets = {m.key for m in current.markets}
                current.markets.extend(m for m in bookmaker.markets if m.key not in known_markets)
    return list(merged.values())


def is_game_live(event: GameOddsSchema, now: datetime | None = None) -> bool:
    return event.is_live(now)


def find_game_ev_opportunities(
    events: Iterable[GameOddsSchema],
    sport: str,
    markets: Sequence[str],
    ev_threshold: float,
    include_live_games: bool = False,
    comparison_method: ComparisonMethod = "weighted",
    sharp_bookmakers: Sequence[str] = ("pinnacle",),
    now: datetime | None = None,
) -> list[EVOpportunity]:
    now = now or datetime.now(timezone.utc)
    timestamp = now.isoformat()
    sharp_keys = {key.lower() for key in sharp_bookmakers}
    opportunities: list[EVOpportunity] = []

    for event in events:
        if len(event.bookmakers) < 2:
            continue
        live = is_game_live(event, now)
        if live and not include_live_games:
            logger.debug("Skipping live game: %s", event.name)
            continue

        for market_key in markets:
            with_market = [b for b in event.bookmakers if b.market(market_key) is not None]
            if len(with_market) < 2:
                continue

            for bookmaker in with_market:
                if comparison_method == "sharp" and bookmaker.key.lower() in sharp_keys:
                    continue
                market = bookmaker.market(market_key)
                for outcome in market.outcomes:  # type: ignore[union-attr]
                    if comparison_method == "sharp":
                        consensus = find_sharp_consensus_odds(
                            with_market, market_key, outcome.name, outcome.point, sharp_bookmakers
                        )
                    elif comparison_method == "weighted":
                        consensus = find_weighted_consensus_odds(
                            with_market, market_key, outcome.name, sport, outcome.point, bookmaker.key
                        )
                    else:
                        consensus = find_consensus_odds(
                            [b for b in with_market if b.key != bookmaker.key],
                            market_key,
                            outcome.name,
                            outcome.point,
                        )
                    if consensus == 0:
                        continue

                    ev = ev_percentage(outcome.price, consensus)
                    if ev < ev_threshold:
                        continue

                    selection = outcome.name if outcome.point is None else f"{outcome.name} {outcome.point:g}"
                    opportunities.append(
                        EVOpportunity(
                            id=f"{event.id}-{market_key}-{outcome.name}-{outcome.point or 0:g}-{bookmaker.key}",
                            event_id=event.id,
                            event_name=event.name,
                            market=market_key,
                            selection=selection,
                            point=outcome.point,
                            bookmaker=bookmaker.key,
                            odds=outcome.price,
                            consensus_odds=consensus,
                            ev=ev,
                            timestamp=timestamp,
                            commence_time=event.commence_time.isoformat(),
                            is_live=live,
                            region=bookmaker.region or "unknown",
                            comparison_method=comparison_method,
                        )
                    )

    opportunities.sort(key=lambda o: o.ev, reverse=True)
    return opportunities


class EVFinder:
    """Fetch odds for every region and scan them for +EV prices."""

    def __init__(self, client: OddsApiClient | None = None, max_workers: int | None = None) -> None:
        self.settings = get_settings()
        self._client = client
        self.max_workers = max_workers or self.settings.scan_max_workers

    @property
    def client(self) -> OddsApiClient:
        if self._client is None:
            self._client = OddsApiClient()
        return self._client

    def _fetch_region(self, sport: str, markets: Sequence[str], region: str) -> list[GameOddsSchema]:
        try:
            return parse_game_odds(self.client.get_odds(sport, markets, [region]))
        except (OddsApiError, httpx.HTTPError) as exc:
            logger.error("Failed to fetch %s odds for region %s: %s", sport, region, exc)
            return []

    def find_ev_opportunities(
        self,
        sport: str,
        markets: Sequence[str],
        ev_threshold: float | None = None,
        include_live_games: bool = False,
        regions: Sequence[str] | None = None,
        comparison_method: ComparisonMethod | None = None,
        sharp_bookmakers: Sequence[str] | None = None,
    ) -> EVScanResult:
        regions = list(regions or self.settings.region_list)
        threshold = self.settings.ev_threshold if ev_threshold is None else ev_threshold
        method = comparison_method or self.settings.comparison_method  # type: ignore[assignment]
        sharp = list(sharp_bookmakers or self.settings.sharp_bookmaker_list)

        with ThreadPoolExecutor(max_workers=min(self.max_workers, max(len(regions), 1))) as pool:
            per_region = list(pool.map(lambda r: self._fetch_region(sport, markets, r), regions))

        events = merge_region_odds(zip(regions, per_region))
        opportunities = find_game_ev_opportunities(
            events,
            sport,
            markets,
            threshold,
            include_live_games=include_live_games,
            comparison_method=method,
            sharp_bookmakers=sharp,
        )
        logger.info(
            "EV scan %s: %d events, %d opportunities >= %.1f%% (%s)",
            sport,
            len(events),
            len(opportunities),
            threshold,
            method,
        )
        return EVScanResult(
            opportunities=opportunities,
            last_updated=datetime.now(timezone.utc).isoformat(),
        )
