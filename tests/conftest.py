"""Shared test fixtures for pendash."""

from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from pendash.config import ApiSettings, AppSettings, HistoricalDataSettings
from pendash.data.cache import HistoryCache
from pendash.data.kv import MemoryKeyValueStore
from pendash.models import MarketQuote, YieldPoint
from pendash.service import DashboardService
from pendash.signals.engine import SignalEngine

NOW = datetime(2025, 6, 1, tzinfo=timezone.utc)


@pytest.fixture
def mock_settings() -> AppSettings:
    """Return AppSettings with test defaults (in-memory store, no retry delay)."""
    return AppSettings(
        log_level="DEBUG",
        api=ApiSettings(
            cors_proxies=["https://proxy.test/?url={url}"],
            max_retries=2,
            retry_base_delay=0,
        ),
        historical=HistoricalDataSettings(use_sqlite=False),
    )


@pytest.fixture
def make_quote() -> Callable[..., MarketQuote]:
    """Factory for MarketQuote with sensible defaults; override any field by keyword."""

    def _make(**overrides) -> MarketQuote:
        fields = {
            "address": "0xabc",
            "name": "sUSDe",
            "chain_id": 1,
            "expiry": "2025-08-30T00:00:00.000Z",
            "days_to_maturity": 90,
            "pt_price": Decimal("0.98"),
            "yt_price": Decimal("0.02"),
            "underlying_apy": Decimal("8"),
            "implied_apy": Decimal("8"),
            "tvl_usd": Decimal("1000000"),
            "lp_apy": Decimal("5"),
        }
        fields.update(overrides)
        return MarketQuote(**fields)

    return _make


def make_history(
    implied: list[str],
    underlying: list[str] | None = None,
    start: datetime = NOW - timedelta(days=120),
) -> list[YieldPoint]:
    """Daily YieldPoints from fractional APY strings, one per day from ``start``."""
    underlying = underlying or implied
    return [
        YieldPoint(
            timestamp=start + timedelta(days=i),
            implied_apy=Decimal(imp),
            underlying_apy=Decimal(und),
        )
        for i, (imp, und) in enumerate(zip(implied, underlying))
    ]


RAW_MARKETS = [
    {
        "address": "0xAAA",
        "name": "sUSDe",
        "expiry": "2025-08-30T00:00:00.000Z",
        "details": {
            "underlyingApy": Decimal("0.06"),
            "impliedApy": Decimal("0.10"),
            "liquidity": Decimal("5000000"),
        },
    },
    {
        "address": "0xBBB",
        "name": "wstETH",
        "expiry": "2025-12-25T00:00:00.000Z",
        "details": {
            "underlyingApy": Decimal("0.03"),
            "impliedApy": Decimal("0.029"),
            "liquidity": Decimal("8000000"),
        },
    },
]


def _history_records(days: int = 40) -> list[dict]:
    return [
        {
            "timestamp": (NOW - timedelta(days=days - i)).isoformat(),
            "impliedApy": Decimal("0.09") + Decimal(i % 5) / 1000,
            "underlyingApy": Decimal("0.06"),
        }
        for i in range(days)
    ]


@pytest.fixture
def api_client() -> AsyncMock:
    """Mock PendleApiClient serving RAW_MARKETS and 40 days of history."""
    client = AsyncMock()
    client.fetch_markets.return_value = RAW_MARKETS
    client.fetch_history.return_value = _history_records()
    return client


@pytest.fixture
def dashboard_service(mock_settings, api_client) -> DashboardService:
    """DashboardService over real engine and in-memory cache, clock fixed at NOW."""
    cache = HistoryCache(
        api_client, MemoryKeyValueStore(), mock_settings.historical, clock=lambda: NOW
    )
    engine = SignalEngine(mock_settings.signal, mock_settings.loop, mock_settings.watermark)
    return DashboardService(mock_settings, api_client, cache, engine, clock=lambda: NOW)
