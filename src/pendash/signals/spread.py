"""Implied vs underlying spread classification.

The implied APY is the market's expectation of the floating yield; the
underlying APY is what the asset pays today. The spread between them says
which side of the PT/YT split the market is mispricing:

- implied above underlying: market expects yield to fall, lock in with PT
- implied below underlying: market may underprice future yield, YT
- within the deadband: fair value

The 0.5pp deadband keeps the signal from flickering on noise.
"""

from decimal import Decimal

from pendash.config import SPREAD_DEADBAND
from pendash.signals.models import Signal, SignalType


def format_percent(value: Decimal) -> str:
    """Render a percent value with two decimals and thousands separators."""
    return f"{value:,.2f}%"


def classify_signal(
    underlying_apy: Decimal,
    implied_apy: Decimal,
    deadband: Decimal = SPREAD_DEADBAND,
) -> Signal:
    """Classify a market from the spread between implied and underlying APY.

    Args:
        underlying_apy: Current underlying APY in percent.
        implied_apy: Market implied APY in percent.
        deadband: Spread (pp) within which the market counts as fairly priced.

    Returns:
        Signal of type PT, YT or NEUTRAL.
    """
    diff = implied_apy - underlying_apy
    implied = format_percent(implied_apy)
    underlying = format_percent(underlying_apy)

    if diff > deadband:
        return Signal(
            type=SignalType.PT,
            label="PT Opportunity",
            rationale=(
                f"Implied APY ({implied}) > Underlying APY ({underlying}). "
                "Market expects yield to drop. Lock in high fixed rate with PT."
            ),
        )
    if diff < -deadband:
        return Signal(
            type=SignalType.YT,
            label="YT Opportunity",
            rationale=(
                f"Underlying APY ({underlying}) > Implied APY ({implied}). "
                "Market may be underpricing future yield. YT could be attractive."
            ),
        )
    return Signal(
        type=SignalType.NEUTRAL,
        label="Fair Value",
        rationale=(
            f"Implied APY ({implied}) ≈ Underlying APY ({underlying}). "
            "Market seems fairly priced."
        ),
    )
