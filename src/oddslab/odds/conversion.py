"""Conversions between American odds, decimal odds and implied probability.

This is the only place these conversions are implemented; the line matcher,
parlay engine and EV tooling all import from here.
"""

from __future__ import annotations


class OddsMathError(ValueError):
    """Raised when an odds-math function is called outside its domain."""


class InvalidOddsError(OddsMathError):
    pass


class InvalidProbabilityError(OddsMathError):
    pass


def american_to_decimal(odds: float) -> float:
    """Convert American odds to decimal odds.

    ``+150`` becomes ``2.5`` and ``-110`` becomes ``1.909``. Zero is not a
    valid American price and raises :class:`InvalidOddsError`.
    """

    if odds == 0:
        raise InvalidOddsError("American odds of 0 are not a valid price.")
    return 1 + (odds / 100) if odds > 0 else 1 + (100 / abs(odds))


def decimal_to_american(decimal_odds: float) -> int:
    """Convert decimal odds back to the nearest whole American price."""

    if decimal_odds <= 1:
        raise InvalidOddsError(f"Decimal odds {decimal_odds!r} must be greater than 1.")
    if decimal_odds >= 2:
        return round((decimal_odds - 1) * 100)
    return round(-100 / (decimal_odds - 1))


def odds_to_implied_probability(odds: float) -> float:
    """Return the win probability encoded by an American price (vig included).

    A price of ``0`` is degenerate and maps to probability ``0``.
    """

    if odds == 0:
        return 0.0
    if odds > 0:
        return 100 / (odds + 100)
    return abs(odds) / (abs(odds) + 100)


def implied_probability_to_odds(probability: float) -> int:
    """Inverse of :func:`odds_to_implied_probability`, rounded to a whole price."""

    if probability <= 0 or probability >= 1:
        raise InvalidProbabilityError("Probability must be between 0 and 1 exclusive.")
    if probability < 0.5:
        return round(100 / probability - 100)
    return round(-(probability * 100) / (1 - probability))


def format_odds(odds: float | None) -> str:
    if not odds:
        return "N/A"
    return f"+{odds:g}" if odds > 0 else f"{odds:g}"
