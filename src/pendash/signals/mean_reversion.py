"""Mean-reversion signal from the z-score of the current yield.

Assumes yields are roughly normally distributed around their historical mean:
a yield far above average is likely to revert down (lock it in with PT), one
far below is likely to revert up (YT benefits).

Formula: z = (current - avg) / std_dev
"""

from decimal import Decimal

from pendash.config import MEAN_REVERSION_MILD_Z, MEAN_REVERSION_STRONG_Z
from pendash.signals.models import MeanReversionBand, MeanReversionSignal

_QUANTIZE = Decimal("0.000000000001")


def mean_reversion_signal(
    current: Decimal,
    avg: Decimal | None,
    std_dev: Decimal | None,
    strong_z: Decimal = MEAN_REVERSION_STRONG_Z,
    mild_z: Decimal = MEAN_REVERSION_MILD_Z,
) -> MeanReversionSignal | None:
    """Band the current yield by its distance from the historical mean.

    Args:
        current: Current APY in percent.
        avg: Historical mean APY in percent.
        std_dev: Historical standard deviation.
        strong_z: |z| above which the signal is strong (PT or YT favored).
        mild_z: |z| above which the signal is mild.

    Returns:
        MeanReversionSignal, or None when avg is missing or zero or std_dev is
        missing or zero.
    """
    if not avg or not std_dev:
        return None

    z = (current - avg) / std_dev
    magnitude = f"{abs(z):.1f}"

    if z > strong_z:
        band = MeanReversionBand.PT_FAVORED
        description = (
            f"Yield is {magnitude}σ above average. "
            "High chance of reversion down → lock in with PT"
        )
    elif z > mild_z:
        band = MeanReversionBand.SLIGHTLY_HIGH
        description = f"Yield is {magnitude}σ above average. May revert down"
    elif z < -strong_z:
        band = MeanReversionBand.YT_FAVORED
        description = (
            f"Yield is {magnitude}σ below average. "
            "High chance of reversion up → YT could benefit"
        )
    elif z < -mild_z:
        band = MeanReversionBand.SLIGHTLY_LOW
        description = f"Yield is {magnitude}σ below average. May revert up"
    else:
        band = MeanReversionBand.NEAR_AVERAGE
        description = "Yield is close to historical average. No strong mean reversion signal"

    return MeanReversionSignal(
        band=band, z_score=z.quantize(_QUANTIZE), description=description
    )
