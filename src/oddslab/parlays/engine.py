"""Parlay pricing logic."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import replace
from typing import Any

from oddslab.config import get_settings
from oddslab.odds.conversion import american_to_decimal, decimal_to_american
from oddslab.odds.lines import find_matching_lines
from oddslab.odds.markets import MONEYLINE, SPREADS, TOTALS
from oddslab.parlays.types import ParlayLeg, ParlayQuote


def combine_decimal_odds(prices: Iterable[int]) -> float:
    decimal = 1.0
    for price in prices:
        decimal *= american_to_decimal(price)
    return decimal


def apply_same_game_discount(decimal_odds: float, factor: float | None = None) -> float:
    """Shrink the payout portion of a same-game parlay's decimal odds.

    Correlated legs are not independent events, so the combined price is cut
    to ``1 + (decimal - 1) * factor``. The factor is a heuristic, not a
    correlation model.
    """

    factor = factor if factor is not None else get_settings().sgp_correlation_factor
    return 1 + (decimal_odds - 1) * factor


def is_same_game_parlay(legs: Sequence[ParlayLeg]) -> bool:
    return len(legs) > 1 and len({leg.event_id for leg in legs}) == 1


def calculate_parlay_odds(
    legs: Sequence[ParlayLeg],
    bookmaker: str,
    same_game: bool | None = None,
    correlation_factor: float | None = None,
) -> ParlayQuote:
    """Price a parlay at one bookmaker.

    Every leg must carry a price for ``bookmaker``; otherwise the quote comes
    back unavailable rather than priced with a substitute. ``same_game=None``
    detects a same-game parlay from the legs' event ids.
    """

    sgp = is_same_game_parlay(legs) if same_game is None else same_game
    prices = [leg.price_for(bookmaker) for leg in legs]
    if not legs or any(price is None for price in prices):
        return ParlayQuote(bookmaker=bookmaker, american_odds=None, decimal_odds=None, same_game=sgp)

    decimal = combine_decimal_odds(prices)  # type: ignore[arg-type]
    if sgp:
        decimal = apply_same_game_discount(decimal, correlation_factor)
    return ParlayQuote(
        bookmaker=bookmaker,
        american_odds=decimal_to_american(decimal),
        decimal_odds=decimal,
        same_game=sgp,
    )


def price_parlay(
    legs: Sequence[ParlayLeg],
    bookmakers: Iterable[str],
    same_game: bool | None = None,
) -> list[ParlayQuote]:
    return [calculate_parlay_odds(legs, book, same_game=same_game) for book in bookmakers]


def best_parlay_quote(quotes: Iterable[ParlayQuote]) -> ParlayQuote | None:
    available = [quote for quote in quotes if quote.available]
    if not available:
        return None
    return max(available, key=lambda q: q.decimal_odds or 0.0)


def _matched_price(leg: ParlayLeg, bookmaker: str, event_odds: Any) -> int | None:
    bookmakers = event_odds.get("bookmakers") if isinstance(event_odds, Mapping) else event_odds.bookmakers
    normalized = find_matching_lines(
        leg.point or 0,
        leg.market,
        bookmakers,
        leg.selection if leg.market == TOTALS else None,
    )
    for odds in normalized:
        if odds.bookmaker == bookmaker and odds.line is not None:
            return odds.line.price
    return None


def calculate_normalized_parlay_odds(
    legs: Sequence[ParlayLeg],
    bookmaker: str,
    event_odds_map: Mapping[str, Any],
) -> int | None:
    """Price a parlay at ``bookmaker`` using the exact same line on every leg.

    Each leg's point is re-matched against the event's bookmaker listings
    (standard market, then alternate) so books are compared on identical
    lines. Returns ``None`` if the book cannot price any leg on that line.
    """

    prices: list[int] = []
    for leg in legs:
        event_odds = event_odds_map.get(leg.event_id)
        if not event_odds:
            return None
        price = _matched_price(leg, bookmaker, event_odds)
        if price is None:
            return None
        prices.append(price)
    return decimal_to_american(combine_decimal_odds(prices))


def find_best_odds_for_leg(leg: ParlayLeg) -> tuple[str | None, int | None]:
    """Return the bookmaker offering the highest price on ``leg``.

    Only priced books are considered; a leg with no prices keeps its current
    bookmaker and a ``None`` price.
    """

    if not leg.odds:
        return leg.bookmaker, None
    best_book = leg.bookmaker if leg.bookmaker in leg.odds else None
    for book, odds in leg.odds.items():
        if best_book is None or odds > leg.odds[best_book]:
            best_book = book
    return best_book, leg.odds[best_book]


def switch_leg_bookmaker(legs: Sequence[ParlayLeg], leg_id: str, bookmaker: str) -> list[ParlayLeg]:
    """Point ``leg_id`` at ``bookmaker`` when that book prices the leg."""

    return [
        replace(leg, bookmaker=bookmaker) if leg.id == leg_id and leg.price_for(bookmaker) is not None else leg
        for leg in legs
    ]


def remove_leg(legs: Sequence[ParlayLeg], leg_id: str) -> list[ParlayLeg]:
    return [leg for leg in legs if leg.id != leg_id]


def _is_conflicting(leg: ParlayLeg, event: Mapping[str, Any], market: str, selection: str) -> bool:
    if leg.event_id != event.get("id"):
        return False
    if market == MONEYLINE and leg.market == MONEYLINE:
        return leg.selection != selection
    if market == SPREADS and leg.market == SPREADS:
        home, away = event.get("home_team"), event.get("away_team")
        opposite = away if selection == home else home
        return leg.selection == opposite
    if market == TOTALS and leg.market == TOTALS:
        is_over = selection == "Over"
        return leg.selection == ("Under" if is_over else "Over")
    return False


def find_conflicting_legs(
    legs: Sequence[ParlayLeg],
    event: Mapping[str, Any],
    market: str,
    selection: str,
) -> list[ParlayLeg]:
    """Legs that take the other side of ``selection`` on the same event."""

    return [leg for leg in legs if _is_conflicting(leg, event, market, selection)]


def remove_conflicting_legs(
    legs: Sequence[ParlayLeg],
    events: Iterable[Mapping[str, Any]],
    event_id: str,
    market: str,
    selection: str,
) -> list[ParlayLeg]:
    event = next((e for e in events if e.get("id") == event_id), None)
    if event is None:
        return list(legs)
    conflicts = find_conflicting_legs(legs, event, market, selection)
    return [leg for leg in legs if leg not in conflicts]
