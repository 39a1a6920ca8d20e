"""Tests for protocol APY verification."""

from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from pendash.exceptions import ApiUnavailableError
from pendash.verification import (
    PROTOCOL_APY_SOURCES,
    ProtocolApyClient,
    VerificationStatus,
    compare_apys,
    find_protocol_source,
    parse_protocol_apy,
)


class TestFindProtocolSource:
    """Tests for find_protocol_source."""

    def test_matches_asset_substring(self) -> None:
        """wstETH is covered by the Lido source."""
        source = find_protocol_source("PT-wstETH")
        assert source is not None
        assert source.name == "Lido"

    def test_unknown_asset(self) -> None:
        """Assets without a curated source return None."""
        assert find_protocol_source("PENDLE") is None


class TestParseProtocolApy:
    """Tests for parse_protocol_apy."""

    def test_nested_field(self) -> None:
        """Dotted paths walk into nested objects."""
        source = PROTOCOL_APY_SOURCES["stETH"]
        assert parse_protocol_apy(source, {"data": {"smaApr": Decimal("3.1")}}) == Decimal("3.1")

    def test_fallback_path(self) -> None:
        """The first non-empty path wins."""
        source = PROTOCOL_APY_SOURCES["weETH"]
        assert parse_protocol_apy(source, {"apr": "2.9"}) == Decimal("2.9")

    def test_fraction_scaled_to_percent(self) -> None:
        """Sources reporting fractions are scaled to percent."""
        source = PROTOCOL_APY_SOURCES["cbETH"]
        assert parse_protocol_apy(source, {"apy": Decimal("0.031")}) == Decimal("3.1")

    def test_missing_field_is_zero(self) -> None:
        """A payload without the field reads as zero."""
        source = PROTOCOL_APY_SOURCES["rETH"]
        assert parse_protocol_apy(source, {"unexpected": 1}) == Decimal("0")
        assert parse_protocol_apy(source, ["not", "a", "dict"]) == Decimal("0")


class TestCompareApys:
    """Tests for compare_apys."""

    def test_within_ten_percent_matches(self) -> None:
        """3.2 vs 3.0 is 6.67% apart: a match."""
        result = compare_apys("Lido", Decimal("3.2"), Decimal("3.0"))
        assert result.status == VerificationStatus.MATCHES
        assert result.difference == Decimal("0.2")

    def test_beyond_ten_percent_diverges(self) -> None:
        """4 vs 3 is 33% apart: a divergence."""
        result = compare_apys("Lido", Decimal("4"), Decimal("3"))
        assert result.status == VerificationStatus.DIVERGES
        assert result.percent_diff > Decimal("33")

    def test_zero_protocol_apy(self) -> None:
        """A non-positive protocol APY gives a zero relative difference."""
        result = compare_apys("Lido", Decimal("4"), Decimal("0"))
        assert result.percent_diff == Decimal("0")
        assert result.status == VerificationStatus.MATCHES


class TestProtocolApyClient:
    """Tests for ProtocolApyClient."""

    @pytest.mark.asyncio
    async def test_verify_and_memoize(self) -> None:
        """The protocol endpoint is fetched once per source."""
        api = AsyncMock()
        api.get_json.return_value = {"data": {"smaApr": Decimal("3.0")}}
        client = ProtocolApyClient(api)

        first = await client.verify_underlying_apy("wstETH", Decimal("3.1"))
        second = await client.verify_underlying_apy("stETH", Decimal("5"))

        assert first.status == VerificationStatus.MATCHES
        assert first.source == "Lido"
        assert second.status == VerificationStatus.DIVERGES
        api.get_json.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_no_source_is_unverifiable(self) -> None:
        """Markets without a source are unverifiable without a request."""
        api = AsyncMock()
        result = await ProtocolApyClient(api).verify_underlying_apy("PENDLE", Decimal("3"))
        assert result.status == VerificationStatus.UNVERIFIABLE
        assert result.reason == "No protocol source available"
        api.get_json.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unreachable_source_is_unverifiable(self) -> None:
        """An unreachable protocol is unverifiable, never a match."""
        api = AsyncMock()
        api.get_json.side_effect = ApiUnavailableError("down")
        result = await ProtocolApyClient(api).verify_underlying_apy("rETH", Decimal("3"))
        assert result.status == VerificationStatus.UNVERIFIABLE
        assert result.reason == "Could not fetch Rocket Pool data"
        assert result.source == "Rocket Pool"
