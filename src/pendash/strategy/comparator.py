"""Rank PT, YT, LP, hold and loop strategies by final value.

All strategies are projected over the same period for the same investment and
future underlying APY assumption. Ranking is a stable descending sort on
final value, so ties keep input order (PT, YT, LP, Hold, Loop).
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from pendash.config import DEFAULT_LP_INCENTIVE_APY, DEFAULT_LP_SWAP_FEE_APY, YT_FEE_RATE
from pendash.loop.calculator import LoopOpportunity
from pendash.pricing import implied_apy
from pendash.strategy.calculator import (
    hold_yield,
    lp_position,
    loop_position,
    pt_position,
    yt_position,
)


class StrategyName(str, Enum):
    PT = "PT"
    YT = "YT"
    LP = "LP"
    HOLD = "Hold"
    LOOP = "Loop"


@dataclass(frozen=True)
class StrategyOutcome:
    name: StrategyName
    final_value: Decimal
    profit: Decimal


@dataclass(frozen=True)
class StrategyComparison:
    ranked: list[StrategyOutcome]
    winner: StrategyOutcome
    runner_up: StrategyOutcome
    advantage: Decimal  # winner final value minus runner-up final value

    def outcome(self, name: StrategyName) -> StrategyOutcome | None:
        return next((o for o in self.ranked if o.name == name), None)


def compare_strategies(
    investment: Decimal,
    days: int,
    pt_price: Decimal,
    yt_price: Decimal,
    future_underlying_apy: Decimal,
    lp_apy: Decimal | None = None,
    loop_opportunity: LoopOpportunity | None = None,
    yt_fee_rate: Decimal = YT_FEE_RATE,
    swap_fee_apy: Decimal = DEFAULT_LP_SWAP_FEE_APY,
    incentive_apy: Decimal = DEFAULT_LP_INCENTIVE_APY,
) -> StrategyComparison:
    """Project every strategy and rank them by final value.

    Args:
        investment: Amount invested in each strategy.
        days: Holding period (days to maturity).
        pt_price: PT price in units of the underlying.
        yt_price: YT price in units of the underlying.
        future_underlying_apy: Assumed underlying APY over the period, percent.
        lp_apy: LP APY in percent; estimated from the PT rate when None.
        loop_opportunity: Included as a fifth strategy when present.
        swap_fee_apy: LP swap-fee APY used when ``lp_apy`` is estimated.
        incentive_apy: LP incentive APY used when ``lp_apy`` is estimated.

    Returns:
        StrategyComparison with the full ranking, winner, runner-up and the
        winner's advantage.
    """
    pt = pt_position(investment, pt_price, days)
    yt = yt_position(investment, yt_price, pt_price, days, future_underlying_apy, yt_fee_rate)
    lp = lp_position(
        investment,
        days,
        pt.fixed_apy,
        implied_apy(yt_price, pt_price, days),
        lp_apy=lp_apy,
        swap_fee_apy=swap_fee_apy,
        incentive_apy=incentive_apy,
    )
    hold_final = investment + hold_yield(investment, future_underlying_apy, days)

    outcomes = [
        StrategyOutcome(StrategyName.PT, pt.maturity_value, pt.profit),
        StrategyOutcome(StrategyName.YT, yt.net_yield, yt.pnl),
        StrategyOutcome(StrategyName.LP, lp.final_value, lp.profit),
        StrategyOutcome(StrategyName.HOLD, hold_final, hold_final - investment),
    ]
    if loop_opportunity is not None:
        loop = loop_position(investment, days, loop_opportunity, pt.profit)
        outcomes.append(StrategyOutcome(StrategyName.LOOP, loop.final_value, loop.profit))

    ranked = sorted(outcomes, key=lambda o: o.final_value, reverse=True)
    return StrategyComparison(
        ranked=ranked,
        winner=ranked[0],
        runner_up=ranked[1],
        advantage=ranked[0].final_value - ranked[1].final_value,
    )
