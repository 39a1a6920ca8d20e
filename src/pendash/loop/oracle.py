"""Oracle risk for PT collateral.

Looped positions are liquidated on the lending protocol's view of the PT
price, so the oracle type matters as much as the leverage. TWAP oracles smooth
manipulation; spot oracles do not. The historical PT price path (rebuilt from
implied APY) shows how far the collateral has actually moved relative to the
liquidation buffer.

CRITICAL: All computations use Decimal. Never use float.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from enum import Enum

from pendash.assets import name_matches
from pendash.config import DAYS_PER_YEAR
from pendash.loop.pairs import KNOWN_PT_LENDING_PAIRS, LendingPair, OracleInfo, OracleStability
from pendash.models import YieldPoint

_ZERO = Decimal("0")
_ONE = Decimal("1")
_HUNDRED = Decimal("100")
_SECONDS_PER_DAY = Decimal("86400")
DEFAULT_LIQUIDATION_BUFFER = Decimal("10")


class OracleRiskSummary(str, Enum):
    SAFE = "safe"
    CAUTION = "caution"
    DANGER = "danger"
    UNVERIFIED = "unverified"


class PriceRiskRating(str, Enum):
    """Four-step rating shared by volatility and drawdown."""

    LOW = "low"
    MODERATE = "moderate"
    ELEVATED = "elevated"
    HIGH = "high"


@dataclass(frozen=True)
class OracleAssessment:
    oracle: OracleInfo | None
    is_twap: bool
    summary: OracleRiskSummary
    message: str


@dataclass(frozen=True)
class PtPricePoint:
    timestamp: datetime
    pt_price: Decimal
    implied_apy: Decimal  # percent


@dataclass(frozen=True)
class PricePathRisk:
    current: Decimal
    min: Decimal
    max: Decimal
    volatility: Decimal  # coefficient of variation, percent
    max_drawdown: Decimal  # percent
    volatility_rating: PriceRiskRating
    drawdown_rating: PriceRiskRating


def assess_oracle(
    market_name: str | None,
    pairs: Mapping[str, LendingPair] = KNOWN_PT_LENDING_PAIRS,
) -> OracleAssessment:
    """Summarize the oracle backing the first lending pair matching the market."""
    oracle = next(
        (pair.oracle for asset, pair in pairs.items() if name_matches(market_name, asset)),
        None,
    )
    if oracle is None:
        return OracleAssessment(
            oracle=None,
            is_twap=False,
            summary=OracleRiskSummary.UNVERIFIED,
            message="Unable to verify oracle - proceed with caution",
        )

    is_twap = "TWAP" in oracle.type or oracle.twap_window != "N/A"

    if oracle.stability in (OracleStability.VERY_HIGH, OracleStability.HIGH):
        summary = OracleRiskSummary.SAFE
        message = (
            "TWAP oracle reduces manipulation risk. Price converges to 1 at PT maturity."
            if is_twap
            else "Battle-tested oracle with strong reliability. "
            "Liquidation risk is primarily from position leverage."
        )
    elif oracle.stability == OracleStability.MEDIUM:
        summary = OracleRiskSummary.CAUTION
        message = (
            "Newer oracle with moderate track record. "
            "Monitor position closely for unexpected price movements."
        )
    else:
        summary = OracleRiskSummary.DANGER
        message = (
            "Spot price oracle susceptible to manipulation. "
            "High liquidation risk from flash loan attacks."
        )

    return OracleAssessment(oracle=oracle, is_twap=is_twap, summary=summary, message=message)


def pt_price_path(
    history: Sequence[YieldPoint], days_to_maturity: int, now: datetime
) -> list[PtPricePoint]:
    """Rebuild historical PT prices from implied APY.

    Formula: pt = 1 / (1 + implied * d / 365), clamped to [0, 1], where d is
    the number of days (at least 1) from the point to maturity and maturity is
    ``now + days_to_maturity``.
    """
    maturity = now + timedelta(days=days_to_maturity)
    path: list[PtPricePoint] = []
    for point in history:
        seconds = Decimal(str((maturity - point.timestamp).total_seconds()))
        days_at_point = max(_ONE, seconds / _SECONDS_PER_DAY)
        denominator = _ONE + point.implied_apy * days_at_point / DAYS_PER_YEAR
        price = _ONE / denominator if denominator > _ZERO else _ZERO
        path.append(
            PtPricePoint(
                timestamp=point.timestamp,
                pt_price=min(_ONE, max(_ZERO, price)),
                implied_apy=point.implied_apy * _HUNDRED,
            )
        )
    return path


def _rate_volatility(volatility: Decimal) -> PriceRiskRating:
    if volatility < Decimal("1"):
        return PriceRiskRating.LOW
    if volatility < Decimal("3"):
        return PriceRiskRating.MODERATE
    if volatility < Decimal("5"):
        return PriceRiskRating.ELEVATED
    return PriceRiskRating.HIGH


def _rate_drawdown(drawdown: Decimal, buffer: Decimal) -> PriceRiskRating:
    if drawdown < buffer * Decimal("0.3"):
        return PriceRiskRating.LOW
    if drawdown < buffer * Decimal("0.5"):
        return PriceRiskRating.MODERATE
    if drawdown < buffer * Decimal("0.8"):
        return PriceRiskRating.ELEVATED
    return PriceRiskRating.HIGH


def price_path_risk(
    prices: Sequence[Decimal], liquidation_buffer: Decimal = DEFAULT_LIQUIDATION_BUFFER
) -> PricePathRisk | None:
    """Volatility and drawdown of a PT price path against a liquidation buffer.

    Volatility is the coefficient of variation (std / mean * 100). Drawdown
    is the largest peak-to-trough decline in percent and is rated at 30%,
    50% and 80% of ``liquidation_buffer``.

    Returns:
        PricePathRisk, or None for an empty path.
    """
    if not prices:
        return None

    n = Decimal(len(prices))
    avg = sum(prices, _ZERO) / n
    variance = sum(((p - avg) ** 2 for p in prices), _ZERO) / n
    volatility = variance.sqrt() / avg * _HUNDRED if avg > _ZERO else _ZERO

    peak = prices[0]
    max_drawdown = _ZERO
    for price in prices[1:]:
        peak = max(peak, price)
        if peak > _ZERO:
            max_drawdown = max(max_drawdown, (peak - price) / peak)
    max_drawdown *= _HUNDRED

    return PricePathRisk(
        current=prices[-1],
        min=min(prices),
        max=max(prices),
        volatility=volatility,
        max_drawdown=max_drawdown,
        volatility_rating=_rate_volatility(volatility),
        drawdown_rating=_rate_drawdown(max_drawdown, liquidation_buffer),
    )
