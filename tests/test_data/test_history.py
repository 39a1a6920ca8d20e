"""Tests for history parsing, serialization and merge."""

from datetime import datetime, timezone
from decimal import Decimal

from pendash.data.history import merge_history, parse_history, serialize_history
from pendash.models import YieldPoint


def _point(day: int, implied: str = "0.05", hour: int = 0) -> YieldPoint:
    return YieldPoint(
        timestamp=datetime(2025, 1, day, hour, tzinfo=timezone.utc),
        implied_apy=Decimal(implied),
        underlying_apy=Decimal("0.04"),
    )


class TestParseHistory:
    """Tests for parse_history."""

    def test_parses_and_sorts(self) -> None:
        """Records become chronological YieldPoints with Decimal APYs."""
        points = parse_history([
            {"timestamp": "2025-01-02T00:00:00.000Z", "impliedApy": Decimal("0.06"),
             "underlyingApy": Decimal("0.05")},
            {"timestamp": "2025-01-01T00:00:00.000Z", "impliedApy": "0.05",
             "underlyingApy": None},
        ])
        assert [p.day.isoformat() for p in points] == ["2025-01-01", "2025-01-02"]
        assert points[0].implied_apy == Decimal("0.05")
        assert points[0].underlying_apy == Decimal("0")
        assert points[1].implied_apy == Decimal("0.06")
        assert points[0].timestamp.tzinfo is not None

    def test_bad_timestamps_dropped(self) -> None:
        """Missing or unparsable timestamps are skipped."""
        points = parse_history([
            {"impliedApy": "0.05"},
            {"timestamp": "not-a-date", "impliedApy": "0.05"},
            {"timestamp": "2025-01-01T00:00:00Z", "impliedApy": "0.05"},
        ])
        assert len(points) == 1


class TestSerializeHistory:
    """Tests for serialize_history."""

    def test_decimals_as_strings(self) -> None:
        """APYs are written as exact strings in the API's field names."""
        [record] = serialize_history([_point(1, "0.0512")])
        assert record == {
            "timestamp": "2025-01-01T00:00:00+00:00",
            "impliedApy": "0.0512",
            "underlyingApy": "0.04",
        }

    def test_parse_restores_serialized(self) -> None:
        """Serialized records parse back to equal points."""
        original = [_point(1, "0.0512"), _point(2, "0.0498")]
        assert parse_history(serialize_history(original)) == original


class TestMergeHistory:
    """Tests for merge_history."""

    def test_fresh_overrides_same_day(self) -> None:
        """A fresh point replaces the cached point of the same calendar day."""
        cached = [_point(1), _point(2), _point(3, "0.01")]
        fresh = [_point(3, "0.09", hour=12), _point(4)]
        merged = merge_history(cached, fresh)
        assert [p.day.day for p in merged] == [1, 2, 3, 4]
        assert merged[2].implied_apy == Decimal("0.09")

    def test_keeps_last_max_days(self) -> None:
        """Only the most recent max_days points are retained."""
        merged = merge_history([_point(d) for d in range(1, 11)], [], max_days=3)
        assert [p.day.day for p in merged] == [8, 9, 10]

    def test_unsorted_input(self) -> None:
        """Output is chronological regardless of input order."""
        merged = merge_history([_point(5), _point(2)], [_point(3)])
        assert [p.day.day for p in merged] == [2, 3, 5]
