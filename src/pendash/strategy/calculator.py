"""Per-position what-if calculators.

Each calculator projects one position (PT, YT, LP, loop) held for ``days``
given an investment amount and a yield assumption. Yields are simple
(non-compounded) over the period, matching how Pendle quotes them.

Formulas:
    PT:   final = investment / pt_price
    YT:   exposure = investment / yt_price
          net_yield = exposure * apy/100 * days/365 * (1 - fee)
          pnl = net_yield - investment
    LP:   final = investment * (1 + lp_apy/100 * days/365)
    Loop: final = investment * (1 + effective_apy/100 * days/365)
    Hold: yield = investment * apy/100 * days/365

CRITICAL: All computations use Decimal. Never use float.
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from pendash.config import (
    DAYS_PER_YEAR,
    DEFAULT_LP_INCENTIVE_APY,
    DEFAULT_LP_SWAP_FEE_APY,
    RETURN_CURVE_MAX_APY,
    RETURN_CURVE_STEP,
    YT_FEE_RATE,
)
from pendash.loop.calculator import LoopOpportunity
from pendash.pricing import fixed_apy, implied_apy, pt_discount

_ZERO = Decimal("0")
_ONE = Decimal("1")
_HALF = Decimal("0.5")
_HUNDRED = Decimal("100")


class ImpermanentLossRisk(str, Enum):
    LOW = "Low"
    LOW_MEDIUM = "Low-Medium"
    MEDIUM_HIGH = "Medium-High"


@dataclass(frozen=True)
class PtPosition:
    fixed_apy: Decimal
    discount: Decimal
    maturity_value: Decimal
    profit: Decimal


@dataclass(frozen=True)
class YtPosition:
    leverage: Decimal
    exposure: Decimal
    breakeven_apy: Decimal  # implied APY: YT profits only above this
    gross_yield: Decimal
    net_yield: Decimal
    pnl: Decimal


@dataclass(frozen=True)
class LpPosition:
    total_apy: Decimal
    swap_fee_apy: Decimal
    incentive_apy: Decimal
    final_value: Decimal
    profit: Decimal
    il_risk: ImpermanentLossRisk


@dataclass(frozen=True)
class LoopPosition:
    effective_apy: Decimal
    final_value: Decimal
    profit: Decimal
    extra_vs_pt: Decimal


@dataclass(frozen=True)
class ReturnCurvePoint:
    """Period return (percent of investment) of each strategy at one future APY."""

    future_apy: Decimal
    pt: Decimal
    yt: Decimal
    lp: Decimal
    hold: Decimal


def period_fraction(apy: Decimal, days: int | Decimal) -> Decimal:
    """Simple (non-compounded) period return of a percent APY: apy/100 * days/365."""
    return apy / _HUNDRED * Decimal(days) / DAYS_PER_YEAR


def pt_position(investment: Decimal, pt_price: Decimal, days: int) -> PtPosition:
    """Buy PT at ``pt_price`` and redeem at par at maturity.

    A non-positive PT price has no defined payoff; the position is then
    reported flat (maturity value equals the investment).
    """
    maturity_value = investment / pt_price if pt_price > _ZERO else investment
    return PtPosition(
        fixed_apy=fixed_apy(pt_price, days),
        discount=pt_discount(pt_price),
        maturity_value=maturity_value,
        profit=maturity_value - investment,
    )


def yt_position(
    investment: Decimal,
    yt_price: Decimal,
    pt_price: Decimal,
    days: int,
    expected_apy: Decimal,
    fee_rate: Decimal = YT_FEE_RATE,
) -> YtPosition:
    """Buy YT and collect the floating yield on the leveraged exposure.

    The YT principal expires worthless, so the P&L is the net yield minus
    the full investment. A non-positive YT price gives zero leverage.
    """
    leverage = _ONE / yt_price if yt_price > _ZERO else _ZERO
    exposure = investment * leverage
    gross = exposure * period_fraction(expected_apy, days)
    net = gross * (_ONE - fee_rate)
    return YtPosition(
        leverage=leverage,
        exposure=exposure,
        breakeven_apy=implied_apy(yt_price, pt_price, days),
        gross_yield=gross,
        net_yield=net,
        pnl=net - investment,
    )


def lp_apy_estimate(
    pt_fixed_apy: Decimal,
    swap_fee_apy: Decimal = DEFAULT_LP_SWAP_FEE_APY,
    incentive_apy: Decimal = DEFAULT_LP_INCENTIVE_APY,
) -> Decimal:
    """LP APY when the venue reports none: half the PT rate plus fees and incentives.

    An LP position is roughly 50% PT and 50% SY.
    """
    return pt_fixed_apy * _HALF + swap_fee_apy + incentive_apy


def impermanent_loss_risk(implied: Decimal) -> ImpermanentLossRisk:
    """Rough IL risk from how far the implied APY can move."""
    if implied > Decimal("30"):
        return ImpermanentLossRisk.MEDIUM_HIGH
    if implied > Decimal("15"):
        return ImpermanentLossRisk.LOW_MEDIUM
    return ImpermanentLossRisk.LOW


def lp_position(
    investment: Decimal,
    days: int,
    pt_fixed_apy: Decimal,
    implied: Decimal,
    lp_apy: Decimal | None = None,
    swap_fee_apy: Decimal | None = None,
    incentive_apy: Decimal | None = None,
) -> LpPosition:
    """Provide liquidity for the period.

    Missing or zero swap-fee and incentive APYs fall back to the configured
    defaults; a missing or zero ``lp_apy`` is estimated from them.
    """
    swap = swap_fee_apy or DEFAULT_LP_SWAP_FEE_APY
    incentive = incentive_apy or DEFAULT_LP_INCENTIVE_APY
    total = lp_apy or lp_apy_estimate(pt_fixed_apy, swap, incentive)
    final_value = investment * (_ONE + period_fraction(total, days))
    return LpPosition(
        total_apy=total,
        swap_fee_apy=swap,
        incentive_apy=incentive,
        final_value=final_value,
        profit=final_value - investment,
        il_risk=impermanent_loss_risk(implied),
    )


def loop_position(
    investment: Decimal,
    days: int,
    opportunity: LoopOpportunity,
    pt_profit: Decimal = _ZERO,
) -> LoopPosition:
    """Hold a looped PT position at the opportunity's effective APY."""
    final_value = investment * (_ONE + period_fraction(opportunity.effective_apy, days))
    profit = final_value - investment
    return LoopPosition(
        effective_apy=opportunity.effective_apy,
        final_value=final_value,
        profit=profit,
        extra_vs_pt=profit - pt_profit,
    )


def hold_yield(investment: Decimal, expected_apy: Decimal, days: int) -> Decimal:
    """Yield earned by simply holding the underlying."""
    return investment * period_fraction(expected_apy, days)


def vs_hold(profit: Decimal, investment: Decimal, expected_apy: Decimal, days: int) -> Decimal:
    """Profit of a position minus what holding the underlying would have earned."""
    return profit - hold_yield(investment, expected_apy, days)


def return_curve(
    investment: Decimal,
    pt_price: Decimal,
    yt_price: Decimal,
    days: int,
    lp_apy: Decimal,
    max_apy: int = RETURN_CURVE_MAX_APY,
    step: int = RETURN_CURVE_STEP,
    fee_rate: Decimal = YT_FEE_RATE,
) -> list[ReturnCurvePoint]:
    """Sweep the future underlying APY from 0 to ``max_apy`` in ``step`` increments.

    PT and LP returns do not depend on the future APY; YT and hold do.
    Returns are percentages of the investment over the period.
    """
    if investment <= _ZERO or step <= 0:
        return []

    pt_return = pt_position(investment, pt_price, days).profit / investment * _HUNDRED
    lp_return = period_fraction(lp_apy, days) * _HUNDRED

    curve: list[ReturnCurvePoint] = []
    for apy in range(0, max_apy + 1, step):
        future = Decimal(apy)
        yt = yt_position(investment, yt_price, pt_price, days, future, fee_rate)
        curve.append(
            ReturnCurvePoint(
                future_apy=future,
                pt=pt_return,
                yt=yt.pnl / investment * _HUNDRED,
                lp=lp_return,
                hold=period_fraction(future, days) * _HUNDRED,
            )
        )
    return curve
