"""JSON API endpoints: market list, history, single-market analysis and strategy comparison."""

from __future__ import annotations

import dataclasses
from datetime import datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from pendash.data.history import serialize_history
from pendash.exceptions import ApiUnavailableError, MarketNotFoundError
from pendash.market_data.screener import MarketFilter, SortKey, screen_markets

log = structlog.get_logger(__name__)

router = APIRouter()


def _decimal_to_str(obj: Any) -> Any:
    """Recursively convert Decimal values to strings for JSON serialization.

    Dataclasses become dicts of their fields, enums their values and
    datetimes ISO-8601 strings.
    """
    if isinstance(obj, Decimal):
        return str(obj)
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, datetime):
        return obj.isoformat()
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        return {f.name: _decimal_to_str(getattr(obj, f.name)) for f in dataclasses.fields(obj)}
    if isinstance(obj, dict):
        return {k: _decimal_to_str(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_decimal_to_str(item) for item in obj]
    return obj


def _error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse(content={"error": message}, status_code=status_code)


def _parse_decimal(value: str | None) -> Decimal | None:
    if value is None or value == "":
        return None
    try:
        parsed = Decimal(value)
    except InvalidOperation:
        raise ValueError(f"Invalid number: {value!r}") from None
    if not parsed.is_finite():
        raise ValueError(f"Invalid number: {value!r}")
    return parsed


def _evaluation_to_dict(evaluation: Any) -> dict[str, Any]:
    result = _decimal_to_str(evaluation)
    result["discount"] = str(evaluation.quote.discount)
    return result


@router.get("/markets")
async def get_markets(
    request: Request,
    chain_id: int | None = None,
    search: str = "",
    filter: str = "all",
    sort: str = "tvl",
    direction: str = "desc",
    refresh: bool = False,
) -> JSONResponse:
    """Evaluated markets of a chain after search, filter and sort.

    Query params:
        chain_id: Chain to list (default from settings).
        search: Case-insensitive substring of name or symbol.
        filter: One of the MarketFilter values.
        sort: One of the SortKey values.
        direction: "desc" (largest first, default) or "asc".
        refresh: Re-fetch from the API instead of using the last load.
    """
    service = request.app.state.service
    chain = chain_id or request.app.state.settings.api.default_chain_id
    try:
        market_filter = MarketFilter(filter)
        sort_key = SortKey(sort)
    except ValueError as e:
        return _error(str(e), 400)

    try:
        if refresh:
            evaluations = await service.load_markets(chain)
        else:
            evaluations = await service.markets(chain)
    except ApiUnavailableError as e:
        log.error("markets_unavailable", chain_id=chain, error=str(e))
        return _error("Pendle API unavailable", 502)

    screened = screen_markets(
        evaluations, search, market_filter, sort_key, descending=direction != "asc"
    )
    return JSONResponse(content=[_evaluation_to_dict(e) for e in screened])


@router.get("/history")
async def get_history(
    request: Request, chainId: int | None = None, address: str | None = None
) -> JSONResponse:
    """Cached and merged yield history of one market.

    Query params:
        chainId: Chain of the market.
        address: Market address.

    Returns:
        JSON object with results, cached, dataPoints and lastUpdated.
    """
    if not chainId or not address:
        return _error("Missing chainId or address", 400)

    service = request.app.state.service
    try:
        history = await service.get_history(chainId, address)
    except ApiUnavailableError as e:
        log.error("history_request_failed", chain_id=chainId, address=address, error=str(e))
        return _error("Failed to fetch historical data", 502)

    return JSONResponse(content={
        "results": serialize_history(history.points),
        "cached": history.cached,
        "dataPoints": len(history.points),
        "lastUpdated": history.last_updated.isoformat(),
    })


@router.get("/markets/{address}/analysis")
async def get_market_analysis(
    request: Request, address: str, chain_id: int | None = None
) -> JSONResponse:
    """Full single-market analysis: history analytics, oracle risk and APY verification."""
    service = request.app.state.service
    chain = chain_id or request.app.state.settings.api.default_chain_id
    try:
        analysis = await service.analyze_market(chain, address)
    except MarketNotFoundError as e:
        return _error(str(e), 404)
    except ApiUnavailableError as e:
        log.error("analysis_unavailable", chain_id=chain, address=address, error=str(e))
        return _error("Pendle API unavailable", 502)

    result = _decimal_to_str(analysis)
    result["evaluation"] = _evaluation_to_dict(analysis.evaluation)
    return JSONResponse(content=result)


@router.get("/compare")
async def get_comparison(
    request: Request,
    investment: str = "1000",
    chain_id: int | None = None,
    address: str | None = None,
    days: int | None = None,
    pt_price: str | None = None,
    yt_price: str | None = None,
    future_apy: str | None = None,
    lp_apy: str | None = None,
) -> JSONResponse:
    """Rank PT, YT, LP, hold and loop strategies plus the return curve.

    Either pass ``address`` (and optionally ``chain_id``) to use a live
    market's prices, or pass ``days``, ``pt_price``, ``yt_price`` and
    ``future_apy`` explicitly.
    """
    service = request.app.state.service
    try:
        amount = _parse_decimal(investment)
        future = _parse_decimal(future_apy)
        lp = _parse_decimal(lp_apy)
        pt = _parse_decimal(pt_price)
        yt = _parse_decimal(yt_price)
    except ValueError as e:
        return _error(str(e), 400)
    if amount is None or amount <= 0:
        return _error("investment must be positive", 400)

    if address:
        chain = chain_id or request.app.state.settings.api.default_chain_id
        try:
            result = await service.compare_market(chain, address, amount, future, lp)
        except MarketNotFoundError as e:
            return _error(str(e), 404)
        except ApiUnavailableError as e:
            log.error("compare_unavailable", chain_id=chain, address=address, error=str(e))
            return _error("Pendle API unavailable", 502)
    else:
        if days is None or pt is None or yt is None or future is None:
            return _error("Missing address or days, pt_price, yt_price and future_apy", 400)
        result = service.compare(amount, days, pt, yt, future, lp_apy=lp)

    return JSONResponse(content=_decimal_to_str(result))
