"""Yield-series statistics.

Pure Decimal analytics over percent-scaled APY series: distribution summaries,
percentile positioning, date-aligned Pearson correlation and a trailing moving
average. No external dependencies (no pandas, numpy).
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum

from pendash.config import (
    CORRELATION_MIN_POINTS,
    MOVING_AVERAGE_WINDOW,
    OUTLIER_LOWER_BOUND,
    OUTLIER_UPPER_BOUND,
)

_QUANTIZE = Decimal("0.000000000001")


@dataclass(frozen=True)
class SeriesStats:
    """Distribution summary of a filtered APY window (percent units)."""

    min: Decimal
    max: Decimal
    avg: Decimal
    std_dev: Decimal  # population standard deviation
    current: Decimal  # last valid value in the window
    count: int


class YieldPosition(str, Enum):
    """Where the current value sits within its historical range."""

    VERY_LOW = "very_low"
    LOW = "low"
    AVERAGE = "average"
    HIGH = "high"
    VERY_HIGH = "very_high"


class CorrelationStrength(str, Enum):
    """Interpretation bands for a Pearson coefficient."""

    STRONG_POSITIVE = "strong_positive"
    MODERATE_POSITIVE = "moderate_positive"
    LOW = "low"
    SLIGHT_NEGATIVE = "slight_negative"
    STRONG_NEGATIVE = "strong_negative"


def filter_outliers(
    values: Iterable[Decimal],
    lower: Decimal = OUTLIER_LOWER_BOUND,
    upper: Decimal = OUTLIER_UPPER_BOUND,
) -> list[Decimal]:
    """Keep only values strictly inside (lower, upper)."""
    return [v for v in values if lower < v < upper]


def series_stats(values: Sequence[Decimal]) -> SeriesStats | None:
    """Summarize a percent-scaled APY series.

    Values outside (0, 1000) are treated as bad data and dropped before
    aggregation.

    Args:
        values: APY values in percent, chronological.

    Returns:
        SeriesStats, or None when no value survives the outlier filter.
    """
    valid = filter_outliers(values)
    if not valid:
        return None

    n = Decimal(len(valid))
    avg = sum(valid, Decimal("0")) / n
    variance = sum(((v - avg) ** 2 for v in valid), Decimal("0")) / n

    return SeriesStats(
        min=min(valid),
        max=max(valid),
        avg=avg,
        std_dev=variance.sqrt(),
        current=valid[-1],
        count=len(valid),
    )


def windowed_stats(
    values: Sequence[Decimal], windows: Sequence[int] = (90, 30, 7)
) -> dict[str, SeriesStats | None]:
    """Compute series_stats over the full series and each trailing window.

    Windows slice the raw series before outlier filtering, so a "7d" window
    with two outliers summarizes five points.

    Returns:
        Dict keyed "all" plus "<n>d" for each window.
    """
    result: dict[str, SeriesStats | None] = {"all": series_stats(values)}
    for days in windows:
        result[f"{days}d"] = series_stats(values[-days:])
    return result


def percentile(current: Decimal, low: Decimal, high: Decimal) -> int:
    """Linear position of ``current`` within [low, high] as an integer 0-100.

    Returns 50 for a degenerate range (low == high). Values outside the range
    are clamped to 0 or 100.
    """
    if high == low:
        return 50
    position = (current - low) / (high - low) * Decimal("100")
    rounded = int(position.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    return max(0, min(100, rounded))


def yield_position(pct: int) -> YieldPosition:
    """Label a percentile from percentile()."""
    if pct <= 10:
        return YieldPosition.VERY_LOW
    if pct <= 30:
        return YieldPosition.LOW
    if pct <= 70:
        return YieldPosition.AVERAGE
    if pct <= 90:
        return YieldPosition.HIGH
    return YieldPosition.VERY_HIGH


def _to_day(stamp: date | datetime | str) -> str:
    """Truncate a timestamp to its ISO calendar date."""
    if isinstance(stamp, datetime):
        return stamp.date().isoformat()
    if isinstance(stamp, date):
        return stamp.isoformat()
    return stamp[:10]


def pearson_correlation(
    series_a: Sequence[tuple[date | datetime | str, Decimal]],
    series_b: Sequence[tuple[date | datetime | str, Decimal]],
    min_points: int = CORRELATION_MIN_POINTS,
) -> Decimal | None:
    """Pearson correlation of two series aligned by calendar day.

    Each series is a sequence of (timestamp, value) pairs. Points of
    ``series_a`` without a same-day point in ``series_b`` are dropped; when
    ``series_b`` holds several points for one day the last one wins.

    Formula: (nΣxy - ΣxΣy) / sqrt((nΣx² - (Σx)²)(nΣy² - (Σy)²))

    Returns:
        Coefficient in [-1, 1], or None with fewer than ``min_points``
        aligned points or a zero denominator (a constant series).
    """
    if len(series_a) < min_points:
        return None

    lookup = {_to_day(stamp): value for stamp, value in series_b}
    aligned = [
        (x, lookup[_to_day(stamp)])
        for stamp, x in series_a
        if _to_day(stamp) in lookup
    ]
    if len(aligned) < min_points:
        return None

    n = Decimal(len(aligned))
    sum_x = sum((x for x, _ in aligned), Decimal("0"))
    sum_y = sum((y for _, y in aligned), Decimal("0"))
    sum_xy = sum((x * y for x, y in aligned), Decimal("0"))
    sum_x2 = sum((x * x for x, _ in aligned), Decimal("0"))
    sum_y2 = sum((y * y for _, y in aligned), Decimal("0"))

    numerator = n * sum_xy - sum_x * sum_y
    radicand = (n * sum_x2 - sum_x * sum_x) * (n * sum_y2 - sum_y * sum_y)
    if radicand <= Decimal("0"):
        return None

    r = numerator / radicand.sqrt()
    # Rounding noise can push |r| a hair past 1
    return max(Decimal("-1"), min(Decimal("1"), r)).quantize(_QUANTIZE)


def interpret_correlation(r: Decimal) -> CorrelationStrength:
    """Band a correlation coefficient."""
    if r > Decimal("0.5"):
        return CorrelationStrength.STRONG_POSITIVE
    if r > Decimal("0.2"):
        return CorrelationStrength.MODERATE_POSITIVE
    if r < Decimal("-0.5"):
        return CorrelationStrength.STRONG_NEGATIVE
    if r < Decimal("-0.2"):
        return CorrelationStrength.SLIGHT_NEGATIVE
    return CorrelationStrength.LOW


def moving_average(
    values: Sequence[Decimal], window: int = MOVING_AVERAGE_WINDOW
) -> list[Decimal]:
    """Trailing moving average, same length as the input.

    For index i < window - 1 the average covers every point seen so far
    (expanding warm-up); afterwards it covers the trailing ``window`` points.
    Results are quantized to 12 decimal places.
    """
    result: list[Decimal] = []
    for i in range(len(values)):
        start = max(0, i - window + 1)
        chunk = values[start : i + 1]
        avg = sum(chunk, Decimal("0")) / Decimal(len(chunk))
        result.append(avg.quantize(_QUANTIZE))
    return result
