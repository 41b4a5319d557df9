"""Scheduling entry points."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List

from oddslab.config import get_settings
from oddslab.ev.finder import EVFinder
from oddslab.odds.markets import GAME_MARKETS, SPORTS

logger = logging.getLogger(__name__)

settings = get_settings()


def _scan_sport(finder: EVFinder, sport: str, markets: Sequence[str], threshold: float) -> Dict[str, Any]:
    try:
        result = finder.find_ev_opportunities(sport, markets, threshold)
    except Exception as exc:  # one failing sport must not abort the run
        logger.error("Error scanning %s: %s", sport, exc)
        return {"sport": sport, "opportunities_count": 0, "success": False, "error": str(exc)}
    return {"sport": sport, "opportunities_count": len(result.opportunities), "success": True}


def run_ev_scan(
    sports: Sequence[str] | None = None,
    markets: Sequence[str] = GAME_MARKETS,
    ev_threshold: float | None = None,
    finder: EVFinder | None = None,
) -> Dict[str, Any]:
    """Scan every sport for +EV prices and summarize the counts."""

    sports = list(sports or SPORTS)
    threshold = settings.ev_threshold if ev_threshold is None else ev_threshold
    finder = finder or EVFinder()
    logger.info("Running EV scan for %d sports...", len(sports))

    with ThreadPoolExecutor(max_workers=min(settings.scan_max_workers, max(len(sports), 1))) as pool:
        results: List[Dict[str, Any]] = list(
            pool.map(lambda sport: _scan_sport(finder, sport, markets, threshold), sports)
        )

    total = sum(r["opportunities_count"] for r in results)
    return {
        "success": True,
        "message": f"EV scan completed. Found {total} opportunities across {len(sports)} sports.",
        "total_opportunities": total,
        "results": results,
    }


def main() -> None:  # pragma: no cover - CLI convenience
    logging.basicConfig(level=logging.INFO)
    summary = run_ev_scan()
    logger.info(summary["message"])


if __name__ == "__main__":  # pragma: no cover
    main()
