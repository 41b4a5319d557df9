"""Line matching across bookmakers.

Books post slightly different lines for the same game (217.5 at one book,
217.0 at another) and often list the line the user wants only in their
alternate market. The matcher finds, per bookmaker, the outcome sitting on a
target point, first in the standard market and then in its alternate
counterpart, so the comparison surface only ever shows like-for-like prices.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from oddslab.config import LINE_TOLERANCE, get_settings
from oddslab.odds.markets import ALTERNATE_MARKETS


@dataclass(frozen=True)
class AlternateLine:
    point: float | None
    price: int
    is_alternate: bool = False


@dataclass(frozen=True)
class NormalizedOdds:
    bookmaker: str
    line: AlternateLine | None
    is_alternate: bool = False


def _field(obj: Any, name: str, default: Any = None) -> Any:
    # Provider payloads arrive either as plain dicts or as parsed schema objects.
    if isinstance(obj, Mapping):
        return obj.get(name, default)
    return getattr(obj, name, default)


def are_similar_lines(point1: float | None, point2: float | None, tolerance: float = LINE_TOLERANCE) -> bool:
    """Return True when two points are within ``tolerance`` of each other."""

    if point1 is None or point2 is None:
        return False
    return abs(point1 - point2) < tolerance


def get_alternate_market_key(market: str) -> str | None:
    """Return the alternate market key for a standard market, if one exists."""

    return ALTERNATE_MARKETS.get(market)


def _find_market(bookmaker: Any, market_key: str) -> Any | None:
    for market in _field(bookmaker, "markets") or []:
        if _field(market, "key") == market_key:
            return market
    return None


def _find_outcome(market: Any, target_point: float, selection: str | None, tolerance: float) -> Any | None:
    for outcome in _field(market, "outcomes") or []:
        if selection and _field(outcome, "name") != selection:
            continue
        if are_similar_lines(_field(outcome, "point"), target_point, tolerance):
            return outcome
    return None


def find_matching_lines(
    target_point: float,
    market: str,
    bookmakers: Iterable[Any] | None,
    selection: str | None = None,
    tolerance: float | None = None,
) -> list[NormalizedOdds]:
    """Find each bookmaker's price on ``target_point`` for ``market``.

    ``selection`` restricts two-sided markets (totals) to the Over or Under
    outcome. Returns one entry per bookmaker, in input order, whose ``line``
    is ``None`` when that book does not cover the point.
    """

    if not bookmakers:
        return []
    tol = tolerance if tolerance is not None else get_settings().line_tolerance
    alternate_key = get_alternate_market_key(market)

    results: list[NormalizedOdds] = []
    for bookie in bookmakers:
        line: AlternateLine | None = None

        standard_market = _find_market(bookie, market)
        if standard_market is not None:
            outcome = _find_outcome(standard_market, target_point, selection, tol)
            if outcome is not None:
                line = AlternateLine(point=_field(outcome, "point"), price=_field(outcome, "price"))

        if line is None and alternate_key:
            alternate_market = _find_market(bookie, alternate_key)
            if alternate_market is not None:
                outcome = _find_outcome(alternate_market, target_point, selection, tol)
                if outcome is not None:
                    line = AlternateLine(
                        point=_field(outcome, "point"),
                        price=_field(outcome, "price"),
                        is_alternate=True,
                    )

        results.append(
            NormalizedOdds(
                bookmaker=_field(bookie, "key"),
                line=line,
                is_alternate=bool(line and line.is_alternate),
            )
        )
    return results


def find_best_odds_for_line(normalized_odds: Iterable[NormalizedOdds]) -> tuple[str, int] | None:
    """Return ``(bookmaker, price)`` for the best price on the matched line."""

    best: tuple[str, int] | None = None
    for odds in normalized_odds:
        if odds.line is None:
            continue
        if best is None or odds.line.price > best[1]:
            best = (odds.bookmaker, odds.line.price)
    return best
