"""Normalize raw Pendle market snapshots into MarketQuote objects.

Raw snapshots carry fractional APYs either under ``details`` or at the top
level. Normalization converts them to percent, derives PT/YT prices from the
implied APY, and annotates incentives and pure-points markets.

CRITICAL: All values use Decimal. Raw numbers are converted with
Decimal(str(x)) at this boundary and nowhere else.
"""

import math
from collections.abc import Iterable, Mapping
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any

from pendash.config import PURE_POINTS_MAX_UNDERLYING, PURE_POINTS_MIN_IMPLIED
from pendash.exceptions import MarketDataError
from pendash.logging import get_logger
from pendash.models import MarketQuote, ZeroYieldKind, ZeroYieldReason
from pendash.pricing import pt_price_from_implied_apy

logger = get_logger(__name__)

_ZERO = Decimal("0")
_ONE = Decimal("1")
_HALF = Decimal("0.5")
_HUNDRED = Decimal("100")
_LP_REWARD_MIN = Decimal("0.1")  # percent
_AGGREGATED_MARGIN = Decimal("0.5")  # pp above implied


def to_decimal(value: Any) -> Decimal:
    """Convert a raw JSON value to Decimal.

    Missing, unparsable and non-finite (NaN, Infinity) values become 0.
    """
    if value is None or isinstance(value, bool):
        return _ZERO
    try:
        parsed = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError):
        return _ZERO
    return parsed if parsed.is_finite() else _ZERO


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp into an aware UTC datetime.

    Naive timestamps are taken as UTC.

    Raises:
        MarketDataError: If the value is not a valid ISO-8601 string.
    """
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError as e:
        raise MarketDataError(f"Invalid timestamp: {value!r}") from e
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def days_until(expiry: str, now: datetime) -> int:
    """Whole days remaining until ``expiry``, rounded up, never negative."""
    seconds = (parse_timestamp(expiry) - now).total_seconds()
    return max(0, math.ceil(seconds / 86400))


def _field(raw: Mapping[str, Any], details: Mapping[str, Any], name: str) -> Any:
    """Value from ``details`` if truthy, else from the top level."""
    return details.get(name) or raw.get(name)


def _percent(raw: Mapping[str, Any], details: Mapping[str, Any], name: str) -> Decimal:
    return to_decimal(_field(raw, details, name)) * _HUNDRED


def _tvl(raw: Mapping[str, Any], details: Mapping[str, Any]) -> Decimal:
    liquidity = raw.get("liquidity")
    liquidity_usd = liquidity.get("usd") if isinstance(liquidity, Mapping) else None
    return to_decimal(
        details.get("liquidity")
        or details.get("totalTvl")
        or liquidity_usd
        or raw.get("totalValueLocked")
    )


def zero_yield_reason(name: str) -> ZeroYieldReason:
    """Explain why a pure-points market shows no underlying yield."""
    upper = name.upper()
    if upper == "USDE":
        return ZeroYieldReason(
            kind=ZeroYieldKind.RAW_TOKEN,
            title="Raw Token - No Native Yield",
            explanation=(
                "Raw USDe does not generate yield. Stake to sUSDe for ~4.5% APY. "
                "Implied APY is from points speculation."
            ),
        )
    if upper == "SENA":
        return ZeroYieldReason(
            kind=ZeroYieldKind.GOVERNANCE,
            title="Governance Token Staking",
            explanation=(
                "sENA yield comes from governance rewards and points, "
                "not direct protocol yield."
            ),
        )
    if "BTC" in upper:
        return ZeroYieldReason(
            kind=ZeroYieldKind.RAW_TOKEN,
            title="Wrapped BTC - No Native Yield",
            explanation=(
                "Wrapped BTC has no native yield. Must be lent or staked in DeFi to earn yield."
            ),
        )
    if "FUSN" in upper or "STH" in upper:
        return ZeroYieldReason(
            kind=ZeroYieldKind.DATA_ISSUE,
            title="Possible Data Issue",
            explanation=(
                "This asset should have underlying yield. "
                "Data may be delayed or incorrectly reported."
            ),
        )
    return ZeroYieldReason(
        kind=ZeroYieldKind.POINTS_ONLY,
        title="Points/Incentive Based",
        explanation=(
            "Yield is entirely from points programs or airdrops - no measurable on-chain yield."
        ),
    )


def incentive_details(
    reward_tokens: list, point_multipliers: list, lp_reward_apy: Decimal
) -> tuple[str, ...]:
    """Short human-readable list of a market's external incentives."""
    details: list[str] = []
    if reward_tokens:
        plural = "s" if len(reward_tokens) > 1 else ""
        details.append(f"{len(reward_tokens)} reward token{plural}")
    if point_multipliers:
        details.append("Points campaign")
    if lp_reward_apy > _LP_REWARD_MIN:
        details.append(f"+{lp_reward_apy:,.2f}% LP rewards")
    return tuple(details)


def quote_from_snapshot(
    raw: Mapping[str, Any],
    chain_id: int,
    now: datetime,
    pure_points_max_underlying: Decimal = PURE_POINTS_MAX_UNDERLYING,
    pure_points_min_implied: Decimal = PURE_POINTS_MIN_IMPLIED,
) -> MarketQuote:
    """Build a MarketQuote from one raw API market record.

    Args:
        raw: Market record as returned by the markets endpoint.
        chain_id: Chain the record was fetched from.
        now: Reference time for days-to-maturity.

    Returns:
        MarketQuote with percent APYs and ``pt_price + yt_price == 1``.

    Raises:
        MarketDataError: If the address or expiry is missing or unparsable.
    """
    address = raw.get("address")
    expiry = raw.get("expiry")
    if not address:
        raise MarketDataError("Market snapshot has no address")
    if not expiry:
        raise MarketDataError(f"Market {address} has no expiry")

    details = raw.get("details") or {}
    days = days_until(expiry, now)

    underlying = _percent(raw, details, "underlyingApy")
    implied = _percent(raw, details, "impliedApy")
    aggregated = _percent(raw, details, "aggregatedApy")
    lp_reward = _percent(raw, details, "lpRewardApy")
    swap_fee = _percent(raw, details, "swapFeeApy")

    pt_price = pt_price_from_implied_apy(implied, days)

    reward_tokens = list(raw.get("rewardTokens") or details.get("rewardTokens") or [])
    point_multipliers = list(raw.get("pointMultipliers") or details.get("pointMultipliers") or [])
    has_incentives = (
        bool(reward_tokens)
        or lp_reward > _LP_REWARD_MIN
        or bool(point_multipliers)
        or aggregated > implied + _AGGREGATED_MARGIN
    )

    name = str(raw.get("name") or raw.get("proName") or "")
    is_pure_points = underlying < pure_points_max_underlying and implied > pure_points_min_implied

    return MarketQuote(
        address=str(address),
        name=name,
        chain_id=chain_id,
        expiry=str(expiry),
        days_to_maturity=days,
        pt_price=pt_price,
        yt_price=_ONE - pt_price,
        underlying_apy=underlying,
        implied_apy=implied,
        tvl_usd=_tvl(raw, details),
        lp_apy=aggregated if aggregated > _ZERO else swap_fee + lp_reward + implied * _HALF,
        swap_fee_apy=swap_fee,
        lp_reward_apy=lp_reward,
        aggregated_apy=aggregated,
        symbol=str(raw.get("symbol") or ""),
        has_incentives=has_incentives,
        incentive_details=incentive_details(reward_tokens, point_multipliers, lp_reward),
        is_pure_points=is_pure_points,
        zero_yield_reason=zero_yield_reason(name) if is_pure_points else None,
    )


def normalize_markets(
    raws: Iterable[Mapping[str, Any]],
    chain_id: int,
    now: datetime,
    pure_points_max_underlying: Decimal = PURE_POINTS_MAX_UNDERLYING,
    pure_points_min_implied: Decimal = PURE_POINTS_MIN_IMPLIED,
) -> list[MarketQuote]:
    """Normalize a batch of raw snapshots, dropping bad and matured markets.

    A snapshot that cannot be normalized is logged and skipped; it never
    aborts the batch.
    """
    quotes: list[MarketQuote] = []
    skipped = 0
    for raw in raws:
        try:
            quote = quote_from_snapshot(
                raw, chain_id, now, pure_points_max_underlying, pure_points_min_implied
            )
        except MarketDataError as e:
            skipped += 1
            logger.debug("market_snapshot_skipped", chain_id=chain_id, error=str(e))
            continue
        if quote.days_to_maturity > 0:
            quotes.append(quote)

    logger.info("markets_normalized", chain_id=chain_id, count=len(quotes), skipped=skipped)
    return quotes
