"""Tests for the SignalEngine coordinator.

Tests verify:
- Signal precedence (below watermark > loop > LP best > pure points > spread)
- Batch evaluation with watermark statuses keyed by address
- History analytics bundle and graceful degradation on empty history
"""

from datetime import timedelta
from decimal import Decimal

import pytest

from conftest import NOW, make_history
from pendash.analytics.statistics import CorrelationStrength, YieldPosition
from pendash.config import LoopSettings, SignalSettings, WatermarkSettings
from pendash.models import PricePoint
from pendash.signals.engine import SignalEngine, is_lp_best, market_signal
from pendash.signals.models import MeanReversionBand, SignalType
from pendash.signals.spread import classify_signal
from pendash.watermark.analyzer import RiskLevel
from pendash.watermark.status import watermark_status


@pytest.fixture
def engine() -> SignalEngine:
    return SignalEngine(SignalSettings(), LoopSettings(), WatermarkSettings())


class TestMarketSignal:
    """Tests for evaluate and the signal precedence."""

    def test_known_pair_surfaces_loop(self, engine, make_quote) -> None:
        """sUSDe on mainnet with a ~8.5% fixed rate loops profitably."""
        evaluation = engine.evaluate(make_quote(name="sUSDe"))
        assert evaluation.signal.type == SignalType.LOOP
        assert evaluation.loop_opportunity is not None
        assert evaluation.loop_opportunity.collateral_symbol == "PT-sUSDe"
        assert evaluation.loop_opportunity.apy_boost > Decimal("1.5")
        assert Decimal("8.5") < evaluation.fixed_apy < Decimal("8.6")

    def test_below_watermark_beats_loop(self, engine, make_quote) -> None:
        """A market below its watermark shows that first."""
        status = watermark_status(Decimal("1.02"), Decimal("1.00"))
        evaluation = engine.evaluate(make_quote(name="sUSDe"), status)
        assert evaluation.signal.type == SignalType.BELOW_WATERMARK
        assert evaluation.loop_opportunity is not None

    def test_lp_best(self, engine, make_quote) -> None:
        """LP above both underlying and fixed APY wins over the spread signal."""
        evaluation = engine.evaluate(make_quote(name="ezETH", lp_apy=Decimal("20")))
        assert evaluation.signal.type == SignalType.LP_BEST
        assert evaluation.is_lp_best is True

    def test_pure_points(self, engine, make_quote) -> None:
        """Pure-points markets surface the points label when nothing ranks higher."""
        quote = make_quote(
            name="ezETH",
            underlying_apy=Decimal("0"),
            implied_apy=Decimal("5"),
            lp_apy=Decimal("1"),
            is_pure_points=True,
        )
        evaluation = engine.evaluate(quote)
        assert evaluation.signal.type == SignalType.PURE_POINTS
        assert evaluation.spread_signal.type == SignalType.PT

    def test_falls_back_to_spread(self, engine, make_quote) -> None:
        """Without any override the spread signal is shown."""
        quote = make_quote(
            name="ezETH",
            underlying_apy=Decimal("4"),
            implied_apy=Decimal("8"),
            lp_apy=Decimal("1"),
        )
        evaluation = engine.evaluate(quote)
        assert evaluation.signal.type == SignalType.PT
        assert evaluation.signal == evaluation.spread_signal
        assert evaluation.loop_opportunity is None

    def test_market_signal_without_overrides_returns_spread(self, make_quote) -> None:
        """market_signal passes the spread signal through unchanged."""
        quote = make_quote(name="ezETH", lp_apy=Decimal("1"))
        spread = classify_signal(Decimal("8"), Decimal("3"))
        assert market_signal(quote, Decimal("8"), spread) is spread

    def test_is_lp_best_requires_both(self, make_quote) -> None:
        """LP must beat underlying and fixed APY."""
        quote = make_quote(underlying_apy=Decimal("6"), lp_apy=Decimal("7"))
        assert is_lp_best(quote, Decimal("6.5")) is True
        assert is_lp_best(quote, Decimal("7.5")) is False


class TestEvaluateAll:
    """Tests for batch evaluation."""

    def test_statuses_matched_by_lowercase_address(self, engine, make_quote) -> None:
        """Watermark statuses are keyed by lowercase address."""
        quotes = [
            make_quote(address="0xAAA", name="ezETH"),
            make_quote(address="0xBBB", name="ezETH"),
        ]
        status = watermark_status(Decimal("1.1"), Decimal("1"))
        evaluations = engine.evaluate_all(quotes, {"0xaaa": status})
        assert [e.quote.address for e in evaluations] == ["0xAAA", "0xBBB"]
        assert evaluations[0].signal.type == SignalType.BELOW_WATERMARK
        assert evaluations[1].watermark_status is None

    def test_empty_batch(self, engine) -> None:
        """No quotes, no evaluations."""
        assert engine.evaluate_all([]) == []


class TestAnalyzeHistory:
    """Tests for analyze_history."""

    @staticmethod
    def _history():
        underlying = ["0.06" if i % 2 == 0 else "0.10" for i in range(100)]
        return make_history(["0.08"] * 100, underlying)

    def test_empty_history_returns_none(self, engine, make_quote) -> None:
        """No history, no analysis."""
        assert engine.analyze_history(make_quote(), []) is None

    def test_full_bundle(self, engine, make_quote) -> None:
        """Every component is derived from the first trailing window."""
        quote = make_quote(name="ezETH", underlying_apy=Decimal("12"), implied_apy=Decimal("8"))
        analysis = engine.analyze_history(quote, self._history())

        assert analysis is not None
        assert analysis.data_points == 100
        assert set(analysis.underlying_stats) == {"all", "90d", "30d", "7d"}
        window = analysis.underlying_stats["90d"]
        assert window.avg == Decimal("8")
        assert window.std_dev == Decimal("2")

        assert analysis.underlying_range.percentile == 100
        assert analysis.underlying_range.position == YieldPosition.VERY_HIGH
        assert analysis.implied_range.percentile == 50

        assert analysis.spread == Decimal("-4")
        assert analysis.spread_signal.type == SignalType.YT
        assert analysis.mean_reversion.band == MeanReversionBand.PT_FAVORED
        assert analysis.sharpe is not None
        assert analysis.watermark.risk_level == RiskLevel.LOW
        assert analysis.cross_asset is None
        assert analysis.correlation is None
        assert len(analysis.underlying_moving_average) == 100

    def test_correlation_against_reference_prices(self, engine, make_quote) -> None:
        """Reference prices moving with the yield correlate strongly."""
        history = self._history()
        prices = [
            PricePoint(timestamp=p.timestamp, price=p.underlying_apy * 100000)
            for p in history
        ]
        analysis = engine.analyze_history(make_quote(name="ezETH"), history, (), prices)
        assert analysis.correlation is not None
        assert analysis.correlation.coefficient == Decimal("1")
        assert analysis.correlation.strength == CorrelationStrength.STRONG_POSITIVE

    def test_cross_asset_uses_peers(self, engine, make_quote) -> None:
        """Peer quotes feed the cross-asset comparison."""
        quote = make_quote(address="0x1", name="stETH", implied_apy=Decimal("10"))
        peers = [
            quote,
            make_quote(address="0x2", name="rETH", implied_apy=Decimal("5")),
            make_quote(address="0x3", name="weETH", implied_apy=Decimal("5")),
        ]
        analysis = engine.analyze_history(quote, self._history(), peers)
        assert analysis.cross_asset is not None
        assert analysis.cross_asset.peer_count == 2

    def test_single_point_history_degrades(self, engine, make_quote) -> None:
        """One point is enough for stats but not for watermark analysis."""
        history = make_history(["0.08"], ["0.05"], start=NOW - timedelta(days=1))
        analysis = engine.analyze_history(make_quote(name="ezETH"), history)
        assert analysis is not None
        assert analysis.watermark is None
        assert analysis.mean_reversion is None
