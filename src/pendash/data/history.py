"""Historical yield series: parsing, serialization and merge.

CRITICAL: APY values are stored as TEXT (str(Decimal)) and restored as
Decimal on read. Never round-trip them through float.
"""

from collections.abc import Iterable, Mapping
from typing import Any

from pendash.exceptions import MarketDataError
from pendash.market_data.normalize import parse_timestamp, to_decimal
from pendash.models import YieldPoint


def parse_history(results: Iterable[Mapping[str, Any]]) -> list[YieldPoint]:
    """Convert raw historical-data records to chronological YieldPoints.

    Records without a parsable timestamp are dropped. Missing APYs read as 0.
    """
    points: list[YieldPoint] = []
    for record in results:
        stamp = record.get("timestamp")
        if not stamp:
            continue
        try:
            timestamp = parse_timestamp(stamp)
        except MarketDataError:
            continue
        points.append(
            YieldPoint(
                timestamp=timestamp,
                implied_apy=to_decimal(record.get("impliedApy")),
                underlying_apy=to_decimal(record.get("underlyingApy")),
            )
        )
    points.sort(key=lambda p: p.timestamp)
    return points


def serialize_history(points: Iterable[YieldPoint]) -> list[dict[str, str]]:
    """Render YieldPoints as JSON-safe records in the API's field names."""
    return [
        {
            "timestamp": p.timestamp.isoformat(),
            "impliedApy": str(p.implied_apy),
            "underlyingApy": str(p.underlying_apy),
        }
        for p in points
    ]


def merge_history(
    cached: Iterable[YieldPoint],
    fresh: Iterable[YieldPoint],
    max_days: int = 180,
) -> list[YieldPoint]:
    """Merge two series keyed by calendar day.

    Fresh points override cached points of the same day. The result is
    chronological, holds one point per day and keeps only the last
    ``max_days`` points.
    """
    by_day: dict = {}
    for point in cached:
        by_day[point.day] = point
    for point in fresh:
        by_day[point.day] = point
    merged = sorted(by_day.values(), key=lambda p: p.timestamp)
    return merged[-max_days:] if max_days > 0 else []
