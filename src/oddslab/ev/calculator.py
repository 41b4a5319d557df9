"""Expected value, fair odds, vig and closing-line-value math."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from oddslab.odds.conversion import (
    InvalidOddsError,
    american_to_decimal,
    implied_probability_to_odds,
    odds_to_implied_probability,
)


@dataclass(frozen=True)
class NoVigProbabilities:
    side_a: float
    side_b: float


def potential_profit(bet_amount: float, american_odds: float) -> float:
    if american_odds == 0:
        raise InvalidOddsError("American odds of 0 are not a valid price.")
    if american_odds > 0:
        return bet_amount * american_odds / 100
    return bet_amount * 100 / abs(american_odds)


def calculate_ev(bet_amount: float, american_odds: float, estimated_probability: float) -> float:
    """Expected profit of a ``bet_amount`` wager given your own win probability."""

    win_ev = estimated_probability * potential_profit(bet_amount, american_odds)
    lose_ev = (1 - estimated_probability) * -bet_amount
    return win_ev + lose_ev


def calculate_fair_odds(estimated_probability: float) -> int:
    return implied_probability_to_odds(estimated_probability)


def calculate_no_vig_probabilities(odds_a: float, odds_b: float) -> NoVigProbabilities:
    """De-margin a two-way market by normalizing both implied probabilities."""

    prob_a = odds_to_implied_probability(odds_a)
    prob_b = odds_to_implied_probability(odds_b)
    total = prob_a + prob_b
    if total == 0:
        raise InvalidOddsError("Cannot remove vig from a market priced at 0 on both sides.")
    return NoVigProbabilities(side_a=prob_a / total, side_b=prob_b / total)


def calculate_margin(odds: Iterable[float]) -> float:
    """Bookmaker margin (vig) across every outcome of a market, in percent."""

    return (sum(odds_to_implied_probability(o) for o in odds) - 1) * 100


def calculate_clv(placed_odds: float, closing_odds: float) -> float:
    """Closing line value in percent; positive means you beat the close."""

    placed_prob = odds_to_implied_probability(placed_odds)
    closing_prob = odds_to_implied_probability(closing_odds)
    if closing_prob == 0:
        raise InvalidOddsError("Closing odds of 0 are not a valid price.")
    return (placed_prob - closing_prob) / closing_prob * 100


def ev_percentage(odds: float, reference_odds: float) -> float:
    """EV in percent of stake, treating ``reference_odds`` as the true price."""

    true_probability = odds_to_implied_probability(reference_odds)
    return (true_probability * american_to_decimal(odds) - 1) * 100


def find_best_odds(market: Mapping[str, float], bookmakers: Iterable[str]) -> tuple[str, float] | None:
    """Return ``(bookmaker, odds)`` with the highest price among ``bookmakers``."""

    best: tuple[str, float] | None = None
    for bookmaker in bookmakers:
        odds = market.get(bookmaker)
        if odds is not None and (best is None or odds > best[1]):
            best = (bookmaker, odds)
    return best
