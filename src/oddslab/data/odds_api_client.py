"""Thin client for The Odds API."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable, Sequence
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import httpx
from tenacity import RetryCallState, retry, retry_if_exception, stop_after_attempt, wait_fixed

from oddslab.config import get_odds_api_key, get_settings
from oddslab.data.schemas import UsageStats

logger = logging.getLogger(__name__)


class OddsApiError(RuntimeError):
    """Raised when the odds provider rejects or fails a request."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code

    @property
    def is_client_error(self) -> bool:
        return self.status_code is not None and 400 <= self.status_code < 500


def _is_retryable(exc: BaseException) -> bool:
    if isinstance(exc, httpx.TransportError):
        return True
    return isinstance(exc, OddsApiError) and not exc.is_client_error


def _retry_log(retry_state: RetryCallState) -> None:  # pragma: no cover - logging helper
    attempt = retry_state.attempt_number
    exception = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning("Odds API retry attempt %s due to %s", attempt, exception)


def _csv(values: Iterable[str] | str) -> str:
    return values if isinstance(values, str) else ",".join(values)


class OddsApiClient:
    """Convenient wrapper for the odds provider's v4 REST API."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        *,
        http_client: httpx.Client | None = None,
        sleep_fn: Callable[[float], None] | None = None,
    ) -> None:
        settings = get_settings()
        self.api_key = api_key or get_odds_api_key()
        self.base_url = (base_url or settings.odds_api_base_url).rstrip("/")
        self._client = http_client or httpx.Client(timeout=settings.http_timeout)
        self._sleep = sleep_fn or time.sleep
        self.last_usage = UsageStats()

    def __enter__(self) -> "OddsApiClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def _record_usage(self, response: httpx.Response) -> None:
        used = response.headers.get("x-requests-used")
        remaining = response.headers.get("x-requests-remaining")
        if used is None and remaining is None:
            return
        self.last_usage = UsageStats(
            requests_used=int(float(used)) if used is not None else None,
            requests_remaining=int(float(remaining)) if remaining is not None else None,
            updated_at=datetime.now(timezone.utc),
        )
        logger.info("Odds API quota: %s used, %s remaining", used, remaining)

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_fixed(1),
        retry=retry_if_exception(_is_retryable),
        after=_retry_log,
        reraise=True,
    )
    def _request(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        url = f"{self.base_url}{path}"
        query = {"apiKey": self.api_key, **(params or {})}
        response = self._client.get(url, params=query)
        self._record_usage(response)
        if response.status_code >= 400:
            raise OddsApiError(
                f"API request failed with status {response.status_code}: {response.text}",
                status_code=response.status_code,
            )
        return response.json()

    def get_sports(self) -> List[Dict[str, Any]]:
        return self._request("/sports")

    def get_events(self, sport: str, date_format: str = "iso") -> List[Dict[str, Any]]:
        """Return upcoming events for a sport."""

        return self._request(f"/sports/{sport}/events", {"dateFormat": date_format})

    def get_odds(
        self,
        sport: str,
        markets: Sequence[str] | str = ("h2h",),
        regions: Sequence[str] | str = ("us",),
        bookmakers: Optional[Sequence[str]] = None,
        odds_format: str = "american",
        date_format: str = "iso",
    ) -> List[Dict[str, Any]]:
        """Fetch odds for every upcoming event of a sport."""

        params: Dict[str, Any] = {
            "markets": _csv(markets),
            "regions": _csv(regions),
            "oddsFormat": odds_format,
            "dateFormat": date_format,
        }
        if bookmakers:
            params["bookmakers"] = _csv(bookmakers)
        payload = self._request(f"/sports/{sport}/odds", params)
        logger.info("Odds API: %d %s events fetched", len(payload), sport)
        return payload

    def get_event_odds(
        self,
        sport: str,
        event_id: str,
        markets: Sequence[str] | str = ("h2h", "spreads", "totals"),
        regions: Sequence[str] | str = ("us",),
        odds_format: str = "american",
    ) -> Dict[str, Any]:
        """Fetch one event, including markets (alternates, props) only offered per event."""

        return self._request(
            f"/sports/{sport}/events/{event_id}/odds",
            {"markets": _csv(markets), "regions": _csv(regions), "oddsFormat": odds_format},
        )

    def get_player_props(
        self,
        sport: str,
        event_id: str,
        markets: Sequence[str] | str,
        regions: Sequence[str] | str = ("us",),
        odds_format: str = "american",
    ) -> Dict[str, Any]:
        return self.get_event_odds(sport, event_id, markets, regions, odds_format)

    def get_player_props_for_events(
        self,
        sport: str,
        event_ids: Sequence[str],
        markets: Sequence[str] | str,
        regions: Sequence[str] | str = ("us",),
        delay_seconds: Optional[float] = None,
    ) -> tuple[List[Dict[str, Any]], List[str]]:
        """Fetch props event by event, pausing between calls to stay under rate limits.

        Returns the payloads that succeeded and an error message per failure.
        """

        delay = get_settings().player_props_delay_seconds if delay_seconds is None else delay_seconds
        results: List[Dict[str, Any]] = []
        errors: List[str] = []
        for idx, event_id in enumerate(event_ids):
            if idx and delay:
                self._sleep(delay)
            try:
                results.append(self.get_player_props(sport, event_id, markets, regions))
            except (OddsApiError, httpx.HTTPError) as exc:
                logger.warning("Failed to fetch props for event %s: %s", event_id, exc)
                errors.append(f"Error fetching props for event {event_id}: {exc}")
        return results, errors


def compare_player_props(
    player_props: Iterable[Dict[str, Any]],
    player_name: str,
    market: str,
) -> Dict[str, Dict[str, Any]]:
    """Map bookmaker -> ``{point, price}`` for one player's prop line."""

    result: Dict[str, Dict[str, Any]] = {}
    for prop in player_props:
        for bookmaker in prop.get("bookmakers", []):
            market_data = next((m for m in bookmaker.get("markets", []) if m.get("key") == market), None)
            if not market_data:
                continue
            outcome = next(
                (
                    o
                    for o in market_data.get("outcomes", [])
                    if player_name in (o.get("description"), o.get("name"))
                ),
                None,
            )
            if not outcome:
                continue
            result[bookmaker["key"]] = {"point": outcome.get("point"), "price": outcome.get("price")}
    return result
