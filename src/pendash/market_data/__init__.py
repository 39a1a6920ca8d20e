"""Market data access: Pendle API client, snapshot normalization and screening."""

from pendash.market_data.client import PendleApiClient, extract_results
from pendash.market_data.normalize import (
    days_until,
    normalize_markets,
    parse_timestamp,
    quote_from_snapshot,
    zero_yield_reason,
)
from pendash.market_data.screener import MarketFilter, SortKey, screen_markets

__all__ = [
    "MarketFilter",
    "PendleApiClient",
    "SortKey",
    "days_until",
    "extract_results",
    "normalize_markets",
    "parse_timestamp",
    "quote_from_snapshot",
    "screen_markets",
    "zero_yield_reason",
]
