"""FastAPI backend for OddsLab.

Every route answers ``{"data": ..., "source": "api"}`` on success and
``{"error": ...}`` on failure (400 bad input, 404 missing resource, 500
upstream or runtime failure).
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from functools import lru_cache
from typing import Annotated, Any

import httpx
from fastapi import Depends, FastAPI, HTTPException, Query, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from oddslab import __version__
from oddslab.api.schemas import (
    ConflictRequest,
    ConvertRequest,
    EventBatchRequest,
    EVRequest,
    KellyRequest,
    LineMatchRequest,
    NoVigRequest,
    NormalizedParlayRequest,
    ParlayPriceRequest,
    ParlayQuoteOut,
    ScanRequest,
    WagerRequest,
)
from oddslab.config import get_settings
from oddslab.data.odds_api_client import OddsApiClient, OddsApiError, compare_player_props
from oddslab.ev.calculator import (
    calculate_ev,
    calculate_fair_odds,
    calculate_margin,
    calculate_no_vig_probabilities,
)
from oddslab.ev.finder import EVFinder
from oddslab.ev.kelly import calculate_kelly, calculate_wager_amount
from oddslab.odds.conversion import (
    OddsMathError,
    american_to_decimal,
    decimal_to_american,
    implied_probability_to_odds,
    odds_to_implied_probability,
)
from oddslab.odds.lines import find_best_odds_for_line, find_matching_lines, get_alternate_market_key
from oddslab.odds.markets import (
    DEFAULT_BOOKMAKERS,
    GAME_MARKETS,
    NBA,
    REGIONS,
    get_available_player_markets,
    split_csv,
)
from oddslab.parlays.engine import (
    best_parlay_quote,
    calculate_normalized_parlay_odds,
    price_parlay,
    remove_conflicting_legs,
)
from oddslab.parlays.types import ParlayQuote
from oddslab.scheduling.jobs import run_ev_scan

logger = logging.getLogger(__name__)

settings = get_settings()

app = FastAPI(
    title="OddsLab API",
    version=__version__,
    description="Odds comparison, line matching, parlay pricing and EV tooling.",
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(StarletteHTTPException)
async def _http_error(_: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})


@app.exception_handler(RequestValidationError)
async def _validation_error(_: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()]
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": errors})


@app.exception_handler(OddsMathError)
async def _odds_math_error(_: Request, exc: OddsMathError) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": str(exc)})


@app.exception_handler(OddsApiError)
async def _odds_api_error(_: Request, exc: OddsApiError) -> JSONResponse:
    logger.error("Odds provider error: %s", exc)
    code = status.HTTP_400_BAD_REQUEST if exc.is_client_error else status.HTTP_500_INTERNAL_SERVER_ERROR
    return JSONResponse(status_code=code, content={"error": str(exc)})


@app.exception_handler(httpx.HTTPError)
async def _transport_error(_: Request, exc: httpx.HTTPError) -> JSONResponse:
    logger.error("Odds provider unreachable: %s", exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": f"Odds provider unreachable: {exc}"},
    )


@app.exception_handler(Exception)
async def _unhandled_error(_: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error: %s", exc)
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"error": str(exc)})


@lru_cache(maxsize=1)
def get_odds_client() -> OddsApiClient:
    try:
        return OddsApiClient()
    except RuntimeError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc


def _ok(data: Any, **extra: Any) -> dict[str, Any]:
    return {"data": data, "source": "api", **extra}


ClientDep = Annotated[OddsApiClient, Depends(get_odds_client)]
SportQuery = Annotated[str, Query()]
CsvQuery = Annotated[str | None, Query()]


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/version")
def version() -> dict[str, Any]:
    return {"name": "oddslab", "version": __version__}


@app.get("/sports")
def sports(client: ClientDep) -> dict[str, Any]:
    return _ok(client.get_sports())


@app.get("/odds")
def odds(
    client: ClientDep,
    sport: SportQuery = NBA,
    markets: CsvQuery = None,
    regions: CsvQuery = None,
    bookmakers: CsvQuery = None,
    odds_format: Annotated[str, Query(alias="oddsFormat", pattern="^(american|decimal)$")] = "american",
) -> dict[str, Any]:
    region_list = split_csv(regions) or settings.region_list
    unknown = [r for r in region_list if r not in REGIONS]
    if unknown:
        raise HTTPException(status_code=400, detail=f"Unknown regions: {', '.join(unknown)}")
    data = client.get_odds(
        sport,
        split_csv(markets) or ["h2h"],
        region_list,
        split_csv(bookmakers) or None,
        odds_format,
    )
    return _ok(data)


@app.get("/event-odds")
def event_odds(
    client: ClientDep,
    sport: SportQuery = NBA,
    event_id: Annotated[str | None, Query(alias="eventId")] = None,
) -> dict[str, Any]:
    if not event_id:
        raise HTTPException(status_code=400, detail="Event ID is required")
    events = client.get_odds(sport, GAME_MARKETS, settings.region_list)
    event = next((e for e in events if e.get("id") == event_id), None)
    if event is None:
        raise HTTPException(status_code=404, detail="Event not found")
    return _ok(event)


@app.post("/batch-odds")
def batch_odds(payload: EventBatchRequest, client: ClientDep) -> dict[str, Any]:
    events = client.get_odds(payload.sport, payload.markets, settings.region_list)
    wanted = set(payload.event_ids)
    return _ok([e for e in events if e.get("id") in wanted])


def _with_alternates(markets: list[str]) -> list[str]:
    expanded = list(markets)
    for market in markets:
        alternate = get_alternate_market_key(market)
        if alternate and alternate not in expanded:
            expanded.append(alternate)
    return expanded


@app.post("/alternate-lines")
def alternate_lines(payload: EventBatchRequest, client: ClientDep) -> dict[str, Any]:
    markets = _with_alternates(payload.markets)

    def fetch(event_id: str) -> dict[str, Any] | None:
        try:
            return client.get_event_odds(payload.sport, event_id, markets, settings.region_list)
        except (OddsApiError, httpx.HTTPError) as exc:
            logger.warning("Failed to fetch alternate lines for event %s: %s", event_id, exc)
            return None

    with ThreadPoolExecutor(max_workers=min(settings.scan_max_workers, len(payload.event_ids))) as pool:
        results = list(pool.map(fetch, payload.event_ids))
    return _ok([event for event in results if event is not None])


@app.get("/player-props")
def player_props(
    client: ClientDep,
    sport: SportQuery = NBA,
    event_id: Annotated[str | None, Query(alias="eventId")] = None,
    markets: CsvQuery = None,
    player: Annotated[str | None, Query()] = None,
) -> dict[str, Any]:
    market_list = split_csv(markets) or get_available_player_markets(sport)
    if not event_id:
        raise HTTPException(status_code=400, detail="Event ID is required")
    if not market_list:
        raise HTTPException(status_code=400, detail=f"No player markets available for {sport}")
    props = client.get_player_props(sport, event_id, market_list, settings.region_list)
    if player:
        return _ok(compare_player_props([props], player, market_list[0]))
    return _ok(props)


@app.get("/usage-stats")
def usage_stats(client: ClientDep) -> dict[str, Any]:
    return _ok(client.last_usage.model_dump(mode="json"))


@app.get("/ev-opportunities")
def ev_opportunities(
    client: ClientDep,
    sport: SportQuery = NBA,
    markets: CsvQuery = "h2h,spreads,totals",
    threshold: Annotated[float | None, Query()] = None,
    include_live: Annotated[bool, Query(alias="includeLive")] = False,
    regions: CsvQuery = None,
    comparison_method: Annotated[
        str | None, Query(alias="comparisonMethod", pattern="^(consensus|sharp|weighted)$")
    ] = None,
    sharp_bookmakers: Annotated[str | None, Query(alias="sharpBookmakers")] = None,
) -> dict[str, Any]:
    result = EVFinder(client).find_ev_opportunities(
        sport,
        split_csv(markets) or list(GAME_MARKETS),
        threshold,
        include_live_games=include_live,
        regions=split_csv(regions) or None,
        comparison_method=comparison_method,  # type: ignore[arg-type]
        sharp_bookmakers=split_csv(sharp_bookmakers) or None,
    )
    return _ok(
        [opp.to_dict() for opp in result.opportunities],
        lastUpdated=result.last_updated,
    )


@app.post("/lines/match")
def match_lines(payload: LineMatchRequest) -> dict[str, Any]:
    normalized = find_matching_lines(payload.target_point, payload.market, payload.bookmakers, payload.selection)
    best = find_best_odds_for_line(normalized)
    return _ok(
        [
            {
                "bookmaker": n.bookmaker,
                "line": None
                if n.line is None
                else {"point": n.line.point, "price": n.line.price, "isAlternate": n.line.is_alternate},
                "isAlternate": n.is_alternate,
            }
            for n in normalized
        ],
        best=None if best is None else {"bookmaker": best[0], "odds": best[1]},
    )


def _quote_out(quote: ParlayQuote) -> ParlayQuoteOut:
    return ParlayQuoteOut(
        bookmaker=quote.bookmaker,
        american_odds=quote.american_odds,
        decimal_odds=quote.decimal_odds,
        same_game=quote.same_game,
        available=quote.available,
    )


@app.post("/parlays/price")
def parlay_price(payload: ParlayPriceRequest) -> dict[str, Any]:
    legs = [leg.to_leg() for leg in payload.legs]
    bookmakers = payload.bookmakers or sorted({book for leg in legs for book in leg.odds})
    quotes = price_parlay(legs, bookmakers, same_game=payload.same_game)
    best = best_parlay_quote(quotes)
    return _ok(
        [_quote_out(q).model_dump() for q in quotes],
        best=_quote_out(best).model_dump() if best else None,
    )


@app.post("/parlays/normalized")
def parlay_normalized(payload: NormalizedParlayRequest) -> dict[str, Any]:
    legs = [leg.to_leg() for leg in payload.legs]
    event_map = {event["id"]: event for event in payload.events if "id" in event}
    bookmakers = payload.bookmakers or list(DEFAULT_BOOKMAKERS)
    return _ok({book: calculate_normalized_parlay_odds(legs, book, event_map) for book in bookmakers})


@app.post("/parlays/conflicts")
def parlay_conflicts(payload: ConflictRequest) -> dict[str, Any]:
    legs = [leg.to_leg() for leg in payload.legs]
    remaining = remove_conflicting_legs(legs, payload.events, payload.event_id, payload.market, payload.selection)
    kept = {leg.id for leg in remaining}
    return _ok(
        {
            "legs": [leg.id for leg in remaining],
            "removed": [leg.id for leg in legs if leg.id not in kept],
        }
    )


@app.post("/calculators/ev")
def ev_calculator(payload: EVRequest) -> dict[str, Any]:
    ev = calculate_ev(payload.bet_amount, payload.american_odds, payload.estimated_probability)
    fair_odds = None
    if 0 < payload.estimated_probability < 1:
        fair_odds = calculate_fair_odds(payload.estimated_probability)
    return _ok(
        {
            "expectedValue": ev,
            "evPercent": ev / payload.bet_amount * 100,
            "impliedProbability": odds_to_implied_probability(payload.american_odds),
            "fairOdds": fair_odds,
        }
    )


@app.post("/calculators/kelly")
def kelly_calculator(payload: KellyRequest) -> dict[str, Any]:
    stake = calculate_kelly(payload.probability, payload.american_odds, payload.bankroll, payload.fraction)
    return _ok({"stake": stake, "bankrollFraction": stake / payload.bankroll})


@app.post("/calculators/wager")
def wager_calculator(payload: WagerRequest) -> dict[str, Any]:
    rec = calculate_wager_amount(
        payload.bankroll, payload.bookmaker_odds, payload.consensus_odds, payload.kelly_fraction
    )
    return _ok(
        {
            "stake": rec.stake,
            "wagerAmount": rec.wager_amount,
            "expectedValue": rec.expected_value,
            "bookmakerProbability": rec.bookmaker_probability,
            "estimatedProbability": rec.estimated_probability,
        }
    )


@app.post("/calculators/no-vig")
def no_vig_calculator(payload: NoVigRequest) -> dict[str, Any]:
    probs = calculate_no_vig_probabilities(payload.odds_a, payload.odds_b)
    return _ok(
        {
            "sideA": probs.side_a,
            "sideB": probs.side_b,
            "margin": calculate_margin([payload.odds_a, payload.odds_b]),
        }
    )


@app.post("/calculators/convert")
def convert_calculator(payload: ConvertRequest) -> dict[str, Any]:
    if payload.american_odds is not None:
        american = payload.american_odds
    elif payload.decimal_odds is not None:
        american = decimal_to_american(payload.decimal_odds)
    elif payload.probability is not None:
        american = implied_probability_to_odds(payload.probability)
    else:
        raise HTTPException(status_code=400, detail="Provide americanOdds, decimalOdds or probability")
    return _ok(
        {
            "american": american,
            "decimal": american_to_decimal(american),
            "impliedProbability": odds_to_implied_probability(american),
        }
    )


@app.post("/run_ev_scan")
def api_run_ev_scan(payload: ScanRequest, client: ClientDep) -> dict[str, Any]:
    try:
        summary = run_ev_scan(
            sports=payload.sports,
            markets=payload.markets or GAME_MARKETS,
            ev_threshold=payload.threshold,
            finder=EVFinder(client),
        )
    except Exception as exc:  # pragma: no cover
        raise HTTPException(status_code=500, detail=f"EV scan failed: {exc}") from exc
    return _ok(summary)
