"""Cross-asset comparison of implied APY within a peer category.

Markets on similar assets (ETH LSDs, wrapped BTC, stablecoins) should price
similar yields. A market whose implied APY sits well above its peers' average
has a cheap PT; one well below has a cheap YT.
"""

from collections.abc import Iterable
from decimal import Decimal

from pendash.assets import CATEGORY_LABELS, AssetCategory, categorize_asset
from pendash.config import CROSS_ASSET_MIN_PEER_DAYS, CROSS_ASSET_MIN_PEERS, CROSS_ASSET_THRESHOLD
from pendash.models import MarketQuote
from pendash.signals.models import CrossAssetComparison, CrossAssetDirection, PeerQuote
from pendash.signals.spread import format_percent

_MAX_LISTED_PEERS = 5


def cross_asset_comparison(
    market: MarketQuote,
    markets: Iterable[MarketQuote],
    threshold: Decimal = CROSS_ASSET_THRESHOLD,
    min_peers: int = CROSS_ASSET_MIN_PEERS,
    min_peer_days: int = CROSS_ASSET_MIN_PEER_DAYS,
) -> CrossAssetComparison | None:
    """Compare a market's implied APY against the average of its category.

    Peers share the market's category, have a different address and more
    than ``min_peer_days`` to maturity (near-expiry markets price noise).

    Returns:
        CrossAssetComparison, or None for uncategorized markets or when
        fewer than ``min_peers`` peers exist.
    """
    category = categorize_asset(market.name)
    if category == AssetCategory.OTHER:
        return None

    peers = [
        m
        for m in markets
        if m.address != market.address
        and m.days_to_maturity > min_peer_days
        and categorize_asset(m.name) == category
    ]
    if len(peers) < min_peers:
        return None

    avg_implied = sum((p.implied_apy for p in peers), Decimal("0")) / Decimal(len(peers))
    diff = market.implied_apy - avg_implied
    label = CATEGORY_LABELS[category]

    if diff > threshold:
        direction = CrossAssetDirection.ABOVE
        signal = f"Higher than {label} avg (+{format_percent(diff)}) → PT may be cheap"
    elif diff < -threshold:
        direction = CrossAssetDirection.BELOW
        signal = f"Lower than {label} avg ({format_percent(diff)}) → YT may be cheap"
    else:
        direction = CrossAssetDirection.IN_LINE
        signal = f"In line with {label} average"

    return CrossAssetComparison(
        category=label,
        peer_count=len(peers),
        avg_implied=avg_implied,
        diff=diff,
        direction=direction,
        signal=signal,
        peers=tuple(
            PeerQuote(name=p.name, implied_apy=p.implied_apy) for p in peers[:_MAX_LISTED_PEERS]
        ),
    )
