"""Tests for the PT loop calculator."""

from decimal import Decimal

import pytest

from pendash.loop.calculator import find_loop_opportunity, loop_metrics
from pendash.loop.pairs import KNOWN_PT_LENDING_PAIRS


class TestLoopMetrics:
    """Tests for loop_metrics."""

    def test_leverage_economics(self) -> None:
        """80% LTV: 5x max, 4.6x safe, 28% effective APY."""
        metrics = loop_metrics(Decimal("10"), Decimal("0.8"), Decimal("5"), Decimal("0.9"))
        assert metrics is not None
        assert metrics.max_leverage == Decimal("5")
        assert metrics.safe_leverage == Decimal("4.6")
        # 10 * 4.6 - 5 * 3.6
        assert metrics.effective_apy == Decimal("28")
        assert metrics.apy_boost == Decimal("18")
        assert metrics.liquidation_buffer == Decimal("20")

    def test_high_ltv_with_default_safety(self) -> None:
        """90% LTV at the default safety factor: 10x max, 9.1x safe."""
        metrics = loop_metrics(Decimal("20"), Decimal("0.9"), Decimal("5"))
        assert metrics is not None
        assert metrics.max_leverage == Decimal("10")
        assert metrics.safe_leverage == Decimal("9.1")
        # 20 * 9.1 - 5 * 8.1
        assert metrics.effective_apy == Decimal("141.5")
        assert metrics.apy_boost == Decimal("121.5")
        assert metrics.liquidation_buffer == Decimal("10")

    def test_borrow_above_fixed_loses(self) -> None:
        """Borrowing above the PT rate makes looping negative carry."""
        metrics = loop_metrics(Decimal("4"), Decimal("0.8"), Decimal("6"))
        assert metrics is not None
        assert metrics.apy_boost < Decimal("0")

    @pytest.mark.parametrize("ltv", [Decimal("0"), Decimal("1"), Decimal("-0.1"), Decimal("1.2")])
    def test_invalid_ltv(self, ltv: Decimal) -> None:
        """LTV outside (0, 1) has no defined leverage."""
        assert loop_metrics(Decimal("10"), ltv, Decimal("5")) is None


class TestFindLoopOpportunity:
    """Tests for find_loop_opportunity."""

    def test_known_pair(self) -> None:
        """PT-sUSDe on mainnet matches the sUSDe pair."""
        opp = find_loop_opportunity("PT-sUSDe", Decimal("10"), 1)
        assert opp is not None
        assert opp.collateral_symbol == "PT-sUSDe"
        assert opp.borrow_symbol == "USDC"
        assert opp.ltv == Decimal("0.91")
        assert opp.oracle == KNOWN_PT_LENDING_PAIRS["sUSDe"].oracle
        assert opp.is_known_pair is True
        assert opp.liquidation_buffer == Decimal("9")

    def test_longer_symbol_wins(self) -> None:
        """tUSDe is matched before the USDe it embeds."""
        opp = find_loop_opportunity("tUSDe", Decimal("10"), 1)
        assert opp is not None
        assert opp.collateral_symbol == "PT-tUSDe"

    def test_wrong_chain(self) -> None:
        """Pairs are only offered on the chains they are deployed to."""
        assert find_loop_opportunity("sUSDe", Decimal("10"), 146) is None

    def test_fixed_apy_below_minimum(self) -> None:
        """Markets under 3% fixed APY are never looped."""
        assert find_loop_opportunity("sUSDe", Decimal("2.9"), 1) is None

    def test_boost_below_minimum(self) -> None:
        """Pairs whose boost falls short are skipped."""
        assert find_loop_opportunity("tUSDe", Decimal("3.5"), 1) is None

    def test_unknown_asset(self) -> None:
        """Assets without a verified pair have no opportunity."""
        assert find_loop_opportunity("ezETH", Decimal("10"), 1) is None
