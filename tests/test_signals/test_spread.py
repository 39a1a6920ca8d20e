"""Tests for the implied vs underlying spread classifier."""

from decimal import Decimal

from pendash.signals.models import SignalType
from pendash.signals.spread import classify_signal, format_percent


class TestClassifySignal:
    """Tests for classify_signal."""

    def test_implied_above_underlying_is_pt(self) -> None:
        """Market expects yield to drop: lock in with PT."""
        signal = classify_signal(Decimal("5"), Decimal("8"))
        assert signal.type == SignalType.PT
        assert signal.label == "PT Opportunity"
        assert "Implied APY (8.00%) > Underlying APY (5.00%)" in signal.rationale

    def test_implied_below_underlying_is_yt(self) -> None:
        """Market underprices future yield: YT."""
        signal = classify_signal(Decimal("5"), Decimal("3"))
        assert signal.type == SignalType.YT
        assert signal.label == "YT Opportunity"

    def test_within_deadband_is_neutral(self) -> None:
        """A small spread is fair value."""
        signal = classify_signal(Decimal("5"), Decimal("5.3"))
        assert signal.type == SignalType.NEUTRAL
        assert signal.label == "Fair Value"

    def test_deadband_edge_is_neutral(self) -> None:
        """A spread of exactly the deadband does not fire."""
        assert classify_signal(Decimal("5"), Decimal("5.5")).type == SignalType.NEUTRAL
        assert classify_signal(Decimal("5"), Decimal("4.5")).type == SignalType.NEUTRAL

    def test_custom_deadband(self) -> None:
        """A wider deadband suppresses moderate spreads."""
        signal = classify_signal(Decimal("5"), Decimal("7"), deadband=Decimal("3"))
        assert signal.type == SignalType.NEUTRAL


class TestFormatPercent:
    """Tests for format_percent."""

    def test_two_decimals_and_separators(self) -> None:
        """Values render with thousands separators and two decimals."""
        assert format_percent(Decimal("1234.5")) == "1,234.50%"

    def test_negative(self) -> None:
        """Negative values keep their sign."""
        assert format_percent(Decimal("-0.456")) == "-0.46%"
