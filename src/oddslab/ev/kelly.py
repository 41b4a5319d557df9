"""Kelly criterion bet sizing."""

from __future__ import annotations

from dataclasses import dataclass

from oddslab.config import get_settings
from oddslab.odds.conversion import american_to_decimal, odds_to_implied_probability


@dataclass(frozen=True)
class WagerRecommendation:
    stake: float
    wager_amount: float
    expected_value: float
    bookmaker_probability: float
    estimated_probability: float


def calculate_kelly_stake(bookmaker_odds: float, estimated_probability: float, kelly_fraction: float = 1.0) -> float:
    """Fraction of bankroll to stake; 0 when there is no edge."""

    b = american_to_decimal(bookmaker_odds) - 1
    kelly_full = (b * estimated_probability - (1 - estimated_probability)) / b
    return max(0.0, kelly_full * kelly_fraction)


def calculate_kelly(probability: float, american_odds: float, bankroll: float, fraction: float = 1.0) -> float:
    """Recommended stake in currency units.

    ``f* = (b p - q) / b`` with ``b`` the net decimal odds, clamped at zero so
    a negative edge never suggests a bet, then scaled by ``fraction`` (e.g.
    0.25 for quarter Kelly) and ``bankroll``.
    """

    return calculate_kelly_stake(american_odds, probability, fraction) * bankroll


def calculate_wager_amount(
    bankroll: float,
    bookmaker_odds: float,
    consensus_odds: float,
    kelly_fraction: float | None = None,
) -> WagerRecommendation:
    """Size a bet at ``bookmaker_odds`` using ``consensus_odds`` as the true price."""

    fraction = kelly_fraction if kelly_fraction is not None else get_settings().kelly_fraction
    bookmaker_probability = odds_to_implied_probability(bookmaker_odds)
    estimated_probability = odds_to_implied_probability(consensus_odds)
    expected_value = (estimated_probability * american_to_decimal(bookmaker_odds) - 1) * 100
    stake = calculate_kelly_stake(bookmaker_odds, estimated_probability, fraction)
    return WagerRecommendation(
        stake=stake,
        wager_amount=bankroll * stake,
        expected_value=expected_value,
        bookmaker_probability=bookmaker_probability,
        estimated_probability=estimated_probability,
    )
