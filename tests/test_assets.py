"""Tests for asset-name matching and categorization."""

from pendash.assets import AssetCategory, categorize_asset, first_match, matches_any, name_matches


class TestNameMatching:
    """Tests for name_matches, first_match and matches_any."""

    def test_case_insensitive_substring(self) -> None:
        """Symbols match anywhere in the name, ignoring case."""
        assert name_matches("PT-sUSDe-27MAR2025", "susde") is True
        assert name_matches("PT-sUSDe", "weETH") is False

    def test_missing_name(self) -> None:
        """A missing name matches nothing."""
        assert name_matches(None, "ETH") is False

    def test_first_match_respects_order(self) -> None:
        """The first key in table order wins."""
        table = {"sUSDe": 1, "USDe": 2}
        assert first_match("sUSDe", table) == ("sUSDe", 1)
        assert first_match("USDe", table) == ("USDe", 2)
        assert first_match("DAI", table) is None

    def test_matches_any(self) -> None:
        """True when any symbol matches."""
        assert matches_any("WBTC", ["LBTC", "WBTC"]) is True
        assert matches_any("WBTC", []) is False


class TestCategorizeAsset:
    """Tests for categorize_asset."""

    def test_categories(self) -> None:
        """Known symbols land in their peer group."""
        assert categorize_asset("wstETH") == AssetCategory.ETH_LSD
        assert categorize_asset("LBTC") == AssetCategory.BTC
        assert categorize_asset("sUSDe") == AssetCategory.STABLECOIN

    def test_other(self) -> None:
        """Unknown assets fall into OTHER."""
        assert categorize_asset("PENDLE") == AssetCategory.OTHER
        assert categorize_asset(None) == AssetCategory.OTHER
