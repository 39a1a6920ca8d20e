"""Heuristic PT vs YT Sharpe comparison.

This is a rough risk-adjusted comparison, not an options-pricing Sharpe
ratio. PT locks in its rate, so it is modelled as carrying a fifth of the
underlying volatility. YT is a leveraged claim on the floating yield: its
leverage is 1 / (1 - pt_price), capped at 10x, and both its volatility and
expected excess over implied scale with that leverage.

Formulas:
    pt_sharpe = (fixed_apy - rf) / (vol * 0.2)
    yt_sharpe = ((underlying - implied) * lev - rf) / (vol * lev)

CRITICAL: All computations use Decimal. Never use float.
"""

from decimal import Decimal

from pendash.config import PT_VOLATILITY_FACTOR, RISK_FREE_RATE, YT_LEVERAGE_CAP
from pendash.pricing import pt_price_from_implied_apy
from pendash.signals.models import SharpeComparison, SharpeLeg

_ZERO = Decimal("0")
_ONE = Decimal("1")


def yt_leverage(implied_apy: Decimal, days: int, cap: Decimal = YT_LEVERAGE_CAP) -> Decimal:
    """Capped YT leverage implied by the PT price.

    Returns ``cap`` when the PT price is at par (YT worthless, leverage
    unbounded).
    """
    yt_price = _ONE - pt_price_from_implied_apy(implied_apy, days)
    if yt_price <= _ZERO:
        return cap
    return min(_ONE / yt_price, cap)


def sharpe_comparison(
    pt_fixed_apy: Decimal,
    underlying_apy: Decimal,
    implied_apy: Decimal,
    volatility: Decimal,
    days: int,
    risk_free_rate: Decimal = RISK_FREE_RATE,
    pt_volatility_factor: Decimal = PT_VOLATILITY_FACTOR,
    leverage_cap: Decimal = YT_LEVERAGE_CAP,
) -> SharpeComparison:
    """Compare risk-adjusted returns of holding PT and YT.

    Args:
        pt_fixed_apy: PT fixed APY in percent.
        underlying_apy: Current underlying APY in percent.
        implied_apy: Market implied APY in percent.
        volatility: Standard deviation of the underlying APY (pp).
        days: Days to maturity.

    Returns:
        SharpeComparison. A leg's Sharpe is 0 when its volatility is 0.
    """
    pt_volatility = volatility * pt_volatility_factor
    pt_excess = pt_fixed_apy - risk_free_rate
    pt_sharpe = pt_excess / pt_volatility if pt_volatility > _ZERO else _ZERO

    leverage = yt_leverage(implied_apy, days, leverage_cap)
    yt_volatility = volatility * leverage
    yt_expected = (underlying_apy - implied_apy) * leverage
    yt_sharpe = (
        (yt_expected - risk_free_rate) / yt_volatility if yt_volatility > _ZERO else _ZERO
    )

    return SharpeComparison(
        pt=SharpeLeg(sharpe=pt_sharpe, volatility=pt_volatility, excess_return=pt_excess),
        yt=SharpeLeg(sharpe=yt_sharpe, volatility=yt_volatility, excess_return=yt_expected),
    )
