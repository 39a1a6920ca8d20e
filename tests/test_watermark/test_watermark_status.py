"""Tests for the on-chain watermark status evaluation."""

from decimal import Decimal

from pendash.watermark.status import watermark_status, watermark_status_from_raw


class TestWatermarkStatus:
    """Tests for watermark_status."""

    def test_below_watermark(self) -> None:
        """Exchange rate under the stored index is below the watermark."""
        status = watermark_status(Decimal("1.25"), Decimal("1.2"))
        assert status.below_watermark is True
        assert status.ratio == Decimal("0.96")
        assert status.percent_from_watermark == Decimal("-4")

    def test_above_watermark(self) -> None:
        """Exchange rate above the index accrues normally."""
        status = watermark_status(Decimal("1.0"), Decimal("1.05"))
        assert status.below_watermark is False
        assert status.percent_from_watermark == Decimal("5")

    def test_at_watermark_is_not_below(self) -> None:
        """Equality is not a breach."""
        assert watermark_status(Decimal("1.1"), Decimal("1.1")).below_watermark is False

    def test_zero_index_ratio_is_one(self) -> None:
        """An unset index gives a neutral ratio."""
        status = watermark_status(Decimal("0"), Decimal("1.1"))
        assert status.ratio == Decimal("1")
        assert status.percent_from_watermark == Decimal("0")
        assert status.below_watermark is False

    def test_raw_wad_integers(self) -> None:
        """18-decimal contract integers are scaled before comparison."""
        status = watermark_status_from_raw(1_050_000_000_000_000_000, 1_000_000_000_000_000_000)
        assert status.py_index_stored == Decimal("1.05")
        assert status.exchange_rate == Decimal("1")
        assert status.below_watermark is True
