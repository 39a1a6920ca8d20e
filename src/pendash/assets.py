"""Asset-name matching against curated tables.

Every curated lookup in pendash (asset categories, lending pairs, protocol APY
sources, known watermark incidents) goes through ``name_matches``: a
case-insensitive substring test of a symbol against a market name. Tables are
scanned in order and the first hit wins.

Substring matching is loose: "ETH" would match "WEETH", "USDe" matches
"sUSDe". Table order is therefore significant; see DESIGN.md.
"""

from collections.abc import Iterable, Mapping
from enum import Enum
from typing import TypeVar

T = TypeVar("T")


class AssetCategory(str, Enum):
    """Peer group used for cross-asset comparison."""

    ETH_LSD = "eth-lsd"
    BTC = "btc"
    STABLECOIN = "stablecoin"
    OTHER = "other"


ASSET_CATEGORIES: dict[AssetCategory, tuple[str, ...]] = {
    AssetCategory.ETH_LSD: (
        "stETH", "wstETH", "rETH", "cbETH", "sfrxETH", "weETH", "eETH", "ezETH",
        "pufETH", "rsETH", "mETH", "swETH", "ETHx", "osETH", "ankrETH", "uniETH",
        "agETH", "hgETH", "strETH", "weETHs", "instETH",
    ),
    AssetCategory.BTC: (
        "WBTC", "tBTC", "cbBTC", "eBTC", "LBTC", "solvBTC", "pumpBTC", "uniBTC",
        "SolvBTC",
    ),
    AssetCategory.STABLECOIN: (
        "USDC", "USDT", "DAI", "FRAX", "crvUSD", "GHO", "LUSD", "sUSD", "USDD",
        "sDAI", "sUSDe", "USDe", "aUSDC", "cUSDO", "USD0", "savUSD", "stcUSD",
        "deUSD", "fUSDC", "lvlUSD", "syrupUSDC",
    ),
}

CATEGORY_LABELS: dict[AssetCategory, str] = {
    AssetCategory.ETH_LSD: "ETH LSDs",
    AssetCategory.BTC: "BTC Assets",
    AssetCategory.STABLECOIN: "Stablecoins",
    AssetCategory.OTHER: "Other",
}


def name_matches(market_name: str | None, symbol: str) -> bool:
    """True when ``symbol`` occurs in ``market_name``, ignoring case."""
    return symbol.upper() in (market_name or "").upper()


def first_match(market_name: str | None, table: Mapping[str, T]) -> tuple[str, T] | None:
    """Return the first (key, value) of ``table`` whose key matches the name."""
    for key, value in table.items():
        if name_matches(market_name, key):
            return key, value
    return None


def matches_any(market_name: str | None, symbols: Iterable[str]) -> bool:
    """True when any of ``symbols`` matches the name."""
    return any(name_matches(market_name, s) for s in symbols)


def categorize_asset(market_name: str | None) -> AssetCategory:
    """Assign a market to its peer category, OTHER when nothing matches."""
    for category, symbols in ASSET_CATEGORIES.items():
        if matches_any(market_name, symbols):
            return category
    return AssetCategory.OTHER
