"""Tests for raw snapshot normalization."""

from decimal import Decimal

import pytest

from conftest import NOW
from pendash.exceptions import MarketDataError
from pendash.market_data.normalize import (
    days_until,
    incentive_details,
    normalize_markets,
    parse_timestamp,
    quote_from_snapshot,
    to_decimal,
    zero_yield_reason,
)
from pendash.models import ZeroYieldKind


def _raw(**overrides) -> dict:
    raw = {
        "address": "0xMarket",
        "name": "sUSDe",
        "symbol": "PT-sUSDe-30AUG2025",
        "expiry": "2025-08-30T00:00:00.000Z",
        "details": {
            "underlyingApy": Decimal("0.08"),
            "impliedApy": Decimal("0.1"),
            "liquidity": Decimal("2500000"),
        },
    }
    raw.update(overrides)
    return raw


class TestHelpers:
    """Tests for to_decimal, parse_timestamp and days_until."""

    def test_to_decimal(self) -> None:
        """Numbers and strings convert; junk becomes zero."""
        assert to_decimal(0.1) == Decimal("0.1")
        assert to_decimal("2.5") == Decimal("2.5")
        assert to_decimal(None) == Decimal("0")
        assert to_decimal("abc") == Decimal("0")
        assert to_decimal(True) == Decimal("0")

    def test_to_decimal_non_finite_is_zero(self) -> None:
        """NaN and infinities never reach the math."""
        assert to_decimal(Decimal("NaN")) == Decimal("0")
        assert to_decimal(float("inf")) == Decimal("0")
        assert to_decimal("-Infinity") == Decimal("0")

    def test_parse_timestamp_z_suffix(self) -> None:
        """A trailing Z is read as UTC."""
        assert parse_timestamp("2025-06-01T00:00:00.000Z") == NOW

    def test_parse_timestamp_invalid(self) -> None:
        """Garbage raises MarketDataError."""
        with pytest.raises(MarketDataError):
            parse_timestamp("soon")

    def test_days_until_rounds_up(self) -> None:
        """Partial days count as a whole day; the past is zero."""
        assert days_until("2025-06-02T12:00:00Z", NOW) == 2
        assert days_until("2025-05-01T00:00:00Z", NOW) == 0


class TestQuoteFromSnapshot:
    """Tests for quote_from_snapshot."""

    def test_percent_apys_and_prices(self) -> None:
        """Fractions become percent and PT + YT equals one."""
        quote = quote_from_snapshot(_raw(), chain_id=1, now=NOW)
        assert quote.address == "0xMarket"
        assert quote.days_to_maturity == 90
        assert quote.underlying_apy == Decimal("8")
        assert quote.implied_apy == Decimal("10")
        assert quote.tvl_usd == Decimal("2500000")
        assert quote.pt_price + quote.yt_price == Decimal("1")
        assert Decimal("0.97") < quote.pt_price < Decimal("0.98")

    def test_top_level_fields(self) -> None:
        """APYs fall back to the top level when details are absent."""
        raw = _raw(details=None, impliedApy=0.05, underlyingApy=0.04,
                   liquidity={"usd": 1000})
        quote = quote_from_snapshot(raw, chain_id=42161, now=NOW)
        assert quote.implied_apy == Decimal("5")
        assert quote.tvl_usd == Decimal("1000")
        assert quote.chain_id == 42161

    def test_lp_apy_estimate_without_aggregated(self) -> None:
        """Without an aggregated APY, LP APY is fees + rewards + half the implied APY."""
        raw = _raw()
        raw["details"].update(swapFeeApy=Decimal("0.01"), lpRewardApy=Decimal("0.02"))
        quote = quote_from_snapshot(raw, chain_id=1, now=NOW)
        assert quote.lp_apy == Decimal("8")

    def test_aggregated_apy_used_for_lp(self) -> None:
        """A positive aggregated APY is the LP APY."""
        raw = _raw()
        raw["details"]["aggregatedApy"] = Decimal("0.12")
        quote = quote_from_snapshot(raw, chain_id=1, now=NOW)
        assert quote.lp_apy == Decimal("12")
        assert quote.has_incentives is True

    def test_pure_points(self) -> None:
        """Zero underlying with a high implied APY is pure points."""
        raw = _raw(name="USDe")
        raw["details"]["underlyingApy"] = 0
        quote = quote_from_snapshot(raw, chain_id=1, now=NOW)
        assert quote.is_pure_points is True
        assert quote.zero_yield_reason.kind == ZeroYieldKind.RAW_TOKEN

    def test_missing_address(self) -> None:
        """A snapshot without an address cannot be normalized."""
        with pytest.raises(MarketDataError, match="no address"):
            quote_from_snapshot(_raw(address=None), chain_id=1, now=NOW)


class TestIncentives:
    """Tests for incentive_details and zero_yield_reason."""

    def test_incentive_details(self) -> None:
        """Reward tokens, points and LP rewards are listed."""
        details = incentive_details(["a", "b"], [{"x": 2}], Decimal("1.5"))
        assert details == ("2 reward tokens", "Points campaign", "+1.50% LP rewards")

    def test_no_incentives(self) -> None:
        """Nothing to list for a plain market."""
        assert incentive_details([], [], Decimal("0.05")) == ()

    def test_zero_yield_reasons(self) -> None:
        """Reasons depend on the asset name."""
        assert zero_yield_reason("sENA").kind == ZeroYieldKind.GOVERNANCE
        assert zero_yield_reason("LBTC").kind == ZeroYieldKind.RAW_TOKEN
        assert zero_yield_reason("fUSN").kind == ZeroYieldKind.DATA_ISSUE
        assert zero_yield_reason("Kelp").kind == ZeroYieldKind.POINTS_ONLY


class TestNormalizeMarkets:
    """Tests for normalize_markets."""

    def test_skips_bad_and_matured(self) -> None:
        """Invalid snapshots and expired markets are dropped without aborting."""
        raws = [
            _raw(),
            _raw(address=None),
            _raw(address="0xold", expiry="2025-01-01T00:00:00Z"),
            _raw(address="0xbad", expiry="not-a-date"),
        ]
        quotes = normalize_markets(raws, chain_id=1, now=NOW)
        assert [q.address for q in quotes] == ["0xMarket"]

    def test_custom_pure_points_thresholds(self) -> None:
        """Thresholds passed in override the defaults."""
        raw = _raw()
        raw["details"]["underlyingApy"] = Decimal("0.004")
        default = normalize_markets([raw], chain_id=1, now=NOW)
        assert default[0].is_pure_points is False

        loose = normalize_markets(
            [raw], chain_id=1, now=NOW, pure_points_max_underlying=Decimal("1")
        )
        assert loose[0].is_pure_points is True
