"""Curated PT collateral integrations on lending protocols.

Only markets where PT-<asset> itself is accepted as collateral are listed (not
the underlying asset). Borrow rates are representative snapshots in percent.
Maintained as configuration data; nothing here is derived at runtime.
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum


class OracleStability(str, Enum):
    """Track-record rating of a collateral price oracle."""

    VERY_HIGH = "very-high"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass(frozen=True)
class OracleInfo:
    """Price oracle backing a PT collateral market."""

    type: str
    provider: str
    description: str
    stability: OracleStability
    twap_window: str
    risk_level: str
    hardcoded: bool = False


@dataclass(frozen=True)
class LendingPair:
    """A verified PT collateral listing."""

    platform: str
    ltv: Decimal
    borrow_rate: Decimal  # percent
    borrow_asset: str
    chains: tuple[int, ...]
    oracle: OracleInfo


def _pendle_twap(description: str) -> OracleInfo:
    return OracleInfo(
        type="PT-TWAP",
        provider="Pendle",
        description=description,
        stability=OracleStability.HIGH,
        twap_window="30 min",
        risk_level="low",
    )


# Order matters: the first key contained in a market name wins, so longer
# symbols that embed shorter ones ("sUSDe" embeds "USDe") must come first.
KNOWN_PT_LENDING_PAIRS: dict[str, LendingPair] = {
    "sUSDe": LendingPair(
        platform="Aave V3 / Morpho / Euler",
        ltv=Decimal("0.91"),
        borrow_rate=Decimal("5.5"),
        borrow_asset="USDC",
        chains=(1,),
        oracle=_pendle_twap(
            "Uses Pendle PT oracle with TWAP pricing. Price converges to 1 at "
            "maturity. Verified on Aave V3 Core."
        ),
    ),
    "eUSDe": LendingPair(
        platform="Aave V3 / Morpho",
        ltv=Decimal("0.86"),
        borrow_rate=Decimal("5.2"),
        borrow_asset="USDC",
        chains=(1,),
        oracle=_pendle_twap("Uses Pendle PT oracle with TWAP pricing. Verified on Aave V3 Core."),
    ),
    "tUSDe": LendingPair(
        platform="Euler",
        ltv=Decimal("0.88"),
        borrow_rate=Decimal("5.0"),
        borrow_asset="USDC",
        chains=(1,),
        oracle=_pendle_twap("Uses Pendle PT oracle for tUSDe (Treehouse USDe). Verified on Euler."),
    ),
    "USDe": LendingPair(
        platform="Morpho / Euler",
        ltv=Decimal("0.77"),
        borrow_rate=Decimal("5.0"),
        borrow_asset="USDC",
        chains=(1,),
        oracle=_pendle_twap("Uses Pendle PT oracle with TWAP pricing. Verified on Euler Yield."),
    ),
    "USD0++": LendingPair(
        platform="Morpho / Euler",
        ltv=Decimal("0.86"),
        borrow_rate=Decimal("5.5"),
        borrow_asset="USDC",
        chains=(1,),
        oracle=_pendle_twap(
            "Uses Pendle PT oracle for USD0++ (Usual Protocol). Verified on Euler Yield."
        ),
    ),
    "lvlUSD": LendingPair(
        platform="Morpho",
        ltv=Decimal("0.80"),
        borrow_rate=Decimal("5.0"),
        borrow_asset="USDC",
        chains=(1,),
        oracle=_pendle_twap("Uses Pendle PT oracle for lvlUSD. TWAP pricing."),
    ),
    "LBTC": LendingPair(
        platform="Morpho",
        ltv=Decimal("0.915"),
        borrow_rate=Decimal("3.0"),
        borrow_asset="LBTC/tBTC/cbBTC",
        chains=(1,),
        oracle=_pendle_twap(
            "Uses Pendle PT oracle for PT-LBTC (Lombard BTC). Multiple Morpho markets verified."
        ),
    ),
    "SolvBTC": LendingPair(
        platform="Morpho",
        ltv=Decimal("0.915"),
        borrow_rate=Decimal("3.5"),
        borrow_asset="SolvBTC",
        chains=(1,),
        oracle=_pendle_twap("Uses Pendle PT oracle for PT-SolvBTC.BBN. Morpho Babylon Vault."),
    ),
    "wstkscUSD": LendingPair(
        platform="Euler Sonic / Silo",
        ltv=Decimal("0.88"),
        borrow_rate=Decimal("5.0"),
        borrow_asset="scUSD",
        chains=(146,),
        oracle=_pendle_twap(
            "Uses Pendle PT oracle for PT-wstkscUSD (Rings staked scUSD). Verified on Euler Sonic."
        ),
    ),
    "wstkscETH": LendingPair(
        platform="Euler Sonic",
        ltv=Decimal("0.80"),
        borrow_rate=Decimal("3.0"),
        borrow_asset="scETH",
        chains=(146,),
        oracle=_pendle_twap(
            "Uses Pendle PT oracle for PT-wstkscETH (Rings staked scETH). Verified on Euler Sonic."
        ),
    ),
    "stS": LendingPair(
        platform="Euler Sonic",
        ltv=Decimal("0.915"),
        borrow_rate=Decimal("4.0"),
        borrow_asset="S",
        chains=(146,),
        oracle=_pendle_twap(
            "Uses Pendle PT oracle for PT-stS (Beets staked Sonic). Verified on Euler Sonic."
        ),
    ),
    "iBGT": LendingPair(
        platform="Dolomite / Timeswap",
        ltv=Decimal("0.75"),
        borrow_rate=Decimal("8.0"),
        borrow_asset="HONEY",
        chains=(9745,),
        oracle=OracleInfo(
            type="Custom",
            provider="Infrared",
            description="Uses Infrared oracle for PT-iBGT. Verified on Pendle Berachain.",
            stability=OracleStability.MEDIUM,
            twap_window="N/A",
            risk_level="medium",
        ),
    ),
}
