"""Leveraged PT looping economics.

Looping deposits PT as collateral, borrows against it, buys more PT and
repeats. With loan-to-value ``ltv`` the geometric series converges to a
maximum leverage of 1 / (1 - ltv). Positions are sized at 90% of the leverage
headroom so a small PT price move does not liquidate them.

CRITICAL: All computations use Decimal. Never use float.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal

from pendash.assets import name_matches
from pendash.config import LOOP_MIN_APY_BOOST, LOOP_MIN_FIXED_APY, LOOP_SAFETY_FACTOR
from pendash.loop.pairs import KNOWN_PT_LENDING_PAIRS, LendingPair, OracleInfo

_ZERO = Decimal("0")
_ONE = Decimal("1")


@dataclass(frozen=True)
class LoopMetrics:
    """Leverage economics for one (fixed APY, LTV, borrow rate) combination."""

    ltv: Decimal
    borrow_rate: Decimal
    max_leverage: Decimal
    safe_leverage: Decimal
    effective_apy: Decimal
    apy_boost: Decimal
    liquidation_buffer: Decimal  # percent PT price drop tolerable before liquidation


@dataclass(frozen=True)
class LoopOpportunity:
    """A surfaced loop: a lending pair plus the metrics it produces."""

    platform: str
    collateral_symbol: str
    borrow_symbol: str
    ltv: Decimal
    borrow_rate: Decimal
    max_leverage: Decimal
    safe_leverage: Decimal
    effective_apy: Decimal
    apy_boost: Decimal
    liquidation_buffer: Decimal
    oracle: OracleInfo | None = None
    is_known_pair: bool = True


def loop_metrics(
    pt_fixed_apy: Decimal,
    ltv: Decimal,
    borrow_rate: Decimal,
    safety_factor: Decimal = LOOP_SAFETY_FACTOR,
) -> LoopMetrics | None:
    """Compute safe leverage and leveraged APY for a PT loop.

    Formulas:
        max_leverage       = 1 / (1 - ltv)
        safe_leverage      = 1 + safety_factor * (max_leverage - 1)
        effective_apy      = pt_fixed_apy * safe_leverage - borrow_rate * (safe_leverage - 1)
        apy_boost          = effective_apy - pt_fixed_apy
        liquidation_buffer = (1 - ltv) * 100

    Args:
        pt_fixed_apy: PT fixed APY in percent.
        ltv: Collateral loan-to-value, strictly between 0 and 1.
        borrow_rate: Borrow APR in percent.
        safety_factor: Share of leverage headroom actually used.

    Returns:
        LoopMetrics, or None when ltv is outside (0, 1).
    """
    if ltv <= _ZERO or ltv >= _ONE:
        return None

    max_leverage = _ONE / (_ONE - ltv)
    safe_leverage = _ONE + safety_factor * (max_leverage - _ONE)
    effective_apy = pt_fixed_apy * safe_leverage - borrow_rate * (safe_leverage - _ONE)

    return LoopMetrics(
        ltv=ltv,
        borrow_rate=borrow_rate,
        max_leverage=max_leverage,
        safe_leverage=safe_leverage,
        effective_apy=effective_apy,
        apy_boost=effective_apy - pt_fixed_apy,
        liquidation_buffer=(_ONE - ltv) * Decimal("100"),
    )


def find_loop_opportunity(
    market_name: str,
    pt_fixed_apy: Decimal,
    chain_id: int,
    pairs: Mapping[str, LendingPair] = KNOWN_PT_LENDING_PAIRS,
    min_fixed_apy: Decimal = LOOP_MIN_FIXED_APY,
    min_apy_boost: Decimal = LOOP_MIN_APY_BOOST,
    safety_factor: Decimal = LOOP_SAFETY_FACTOR,
) -> LoopOpportunity | None:
    """Match a market against verified PT lending pairs.

    Pairs are scanned in table order. A pair qualifies when its symbol occurs
    in the market name, it is deployed on ``chain_id`` and the resulting APY
    boost reaches ``min_apy_boost``. The first qualifying pair is returned.

    Returns:
        LoopOpportunity, or None when the fixed APY is below ``min_fixed_apy``
        or no pair qualifies.
    """
    if pt_fixed_apy < min_fixed_apy:
        return None

    for asset, pair in pairs.items():
        if not name_matches(market_name, asset) or chain_id not in pair.chains:
            continue
        metrics = loop_metrics(pt_fixed_apy, pair.ltv, pair.borrow_rate, safety_factor)
        if metrics is None or metrics.apy_boost < min_apy_boost:
            continue
        return LoopOpportunity(
            platform=pair.platform,
            collateral_symbol=f"PT-{asset}",
            borrow_symbol=pair.borrow_asset,
            ltv=metrics.ltv,
            borrow_rate=metrics.borrow_rate,
            max_leverage=metrics.max_leverage,
            safe_leverage=metrics.safe_leverage,
            effective_apy=metrics.effective_apy,
            apy_boost=metrics.apy_boost,
            liquidation_buffer=metrics.liquidation_buffer,
            oracle=pair.oracle,
        )
    return None
