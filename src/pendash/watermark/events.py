"""Documented watermark incidents.

Curated from public post-mortems and from manual review of Pendle historical
yield data. Maintained as configuration data; a match against this list marks a
market as high watermark risk regardless of what its own history shows.
"""

from dataclasses import dataclass
from decimal import Decimal

from pendash.assets import name_matches


@dataclass(frozen=True)
class WatermarkEvent:
    """One documented incident affecting an asset's exchange rate or yield."""

    date: str
    asset: str
    event: str
    impact: str
    source: str
    chain: int | None = None  # None matches every chain
    yield_before: Decimal | None = None  # percent
    yield_after: Decimal | None = None  # percent

    def applies_to(self, market_name: str | None, chain_id: int | None) -> bool:
        """True when the asset occurs in the market name and the chain agrees."""
        if not name_matches(market_name, self.asset):
            return False
        return self.chain is None or self.chain == chain_id


KNOWN_WATERMARK_EVENTS: tuple[WatermarkEvent, ...] = (
    WatermarkEvent(
        date="2025-03-12",
        asset="HLP",
        event="Whale liquidation caused $4M loss to HLP vault",
        impact="Exchange rate dropped, potential below-watermark period",
        source=(
            "https://www.coindesk.com/markets/2025/03/12/"
            "hyperliquid-loses-usd4m-after-whale-s-over-usd200m-ether-trade-unwinds"
        ),
    ),
    WatermarkEvent(
        date="2025-12-31",
        asset="HLPe",
        chain=999,
        event="HLPe yield dropped to 0% - 100% yield reduction",
        impact="Near-zero yield period detected, likely below watermark",
        yield_before=Decimal("0.60"),
        yield_after=Decimal("0.00"),
        source="Pendle historical data analysis",
    ),
    WatermarkEvent(
        date="2026-01-26",
        asset="hwHLP",
        chain=999,
        event="hwHLP yield crashed 96% in single day",
        impact="Yield dropped from 13.39% to 0.54%, significant exchange rate impact",
        yield_before=Decimal("13.39"),
        yield_after=Decimal("0.54"),
        source="Pendle historical data analysis",
    ),
    WatermarkEvent(
        date="2026-01-28",
        asset="WHLP",
        chain=999,
        event="WHLP yield crashed 75.7% followed by near-zero period",
        impact="Near-zero yield period Jan 28-30, 2026. Multiple days below watermark threshold",
        yield_before=Decimal("4.89"),
        yield_after=Decimal("1.19"),
        source="Pendle historical data analysis",
    ),
)


def match_known_events(
    market_name: str | None,
    chain_id: int | None,
    events: tuple[WatermarkEvent, ...] = KNOWN_WATERMARK_EVENTS,
) -> list[WatermarkEvent]:
    """Return every documented incident that applies to the market, in table order."""
    return [e for e in events if e.applies_to(market_name, chain_id)]
