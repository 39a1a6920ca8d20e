"""PT/YT pricing primitives.

Converts a PT/YT price pair and days-to-maturity into annualized yields, and
inverts an implied APY quote back into a PT price. Every function is total:
degenerate inputs fail closed to Decimal("0") instead of raising, so a batch
over many markets never aborts on one bad quote.

CRITICAL: All computations use Decimal. Never use float.
"""

from decimal import Decimal, InvalidOperation, Overflow

from pendash.config import DAYS_PER_YEAR

_ZERO = Decimal("0")
_ONE = Decimal("1")
_HUNDRED = Decimal("100")


def _annualize(growth: Decimal, days: int | Decimal) -> Decimal:
    """Annualize a period growth factor into a percent APY.

    Formula: (growth ^ (365 / days) - 1) * 100

    Growth factors large enough to overflow the Decimal context (PT prices
    within ~1e-3000 of zero) return Decimal("0").
    """
    exponent = DAYS_PER_YEAR / Decimal(days)
    try:
        return (growth**exponent - _ONE) * _HUNDRED
    except (Overflow, InvalidOperation):
        return _ZERO


def fixed_apy(pt_price: Decimal, days_to_maturity: int | Decimal) -> Decimal:
    """Annualized return of buying PT at ``pt_price`` and redeeming at par.

    Formula: ((1 / pt_price) ^ (365 / days) - 1) * 100

    Args:
        pt_price: PT price in units of the underlying, expected in (0, 1).
        days_to_maturity: Days until the PT can be redeemed.

    Returns:
        Fixed APY in percent. Decimal("0") when pt_price <= 0, pt_price >= 1
        or days_to_maturity <= 0.
    """
    if pt_price <= _ZERO or pt_price >= _ONE or days_to_maturity <= 0:
        return _ZERO
    return _annualize(_ONE / pt_price, days_to_maturity)


def implied_apy(
    yt_price: Decimal, pt_price: Decimal, days_to_maturity: int | Decimal
) -> Decimal:
    """Breakeven yield the market is pricing in through the PT/YT split.

    Formula: ((1 + yt_price / pt_price) ^ (365 / days) - 1) * 100

    When ``pt_price + yt_price == 1`` the growth factor equals ``1 / pt_price``
    and the result coincides with fixed_apy.

    Returns:
        Implied APY in percent. Decimal("0") when pt_price <= 0,
        days_to_maturity <= 0 or the growth factor is not positive.
    """
    if pt_price <= _ZERO or days_to_maturity <= 0:
        return _ZERO
    growth = _ONE + yt_price / pt_price
    if growth <= _ZERO:
        return _ZERO
    return _annualize(growth, days_to_maturity)


def pt_price_from_implied_apy(
    implied_apy_percent: Decimal, days: int | Decimal
) -> Decimal:
    """Approximate PT price from an implied APY quote.

    Formula: 1 / (1 + implied / 100) ^ (days / 365)

    Used when the venue only exposes APYs. The result is capped at par so a
    negative implied APY never produces a PT above 1.

    Returns:
        PT price in (0, 1]. Decimal("1") at or past maturity (days <= 0).
        Decimal("0") when the implied APY is at or below -100%.
    """
    growth = _ONE + implied_apy_percent / _HUNDRED
    if growth <= _ZERO:
        return _ZERO
    if days <= 0:
        return _ONE
    try:
        price = _ONE / growth ** (Decimal(days) / DAYS_PER_YEAR)
    except (Overflow, InvalidOperation):
        return _ZERO
    return min(price, _ONE)


def pt_discount(pt_price: Decimal) -> Decimal:
    """PT discount to par in percent: (1 - pt_price) * 100."""
    return (_ONE - pt_price) * _HUNDRED
