"""Shared data models for pendash.

CRITICAL: All rates, prices and amounts use Decimal. Never use float for yields.
APY fields on MarketQuote are percent units; YieldPoint APYs are fractional
(0.05 == 5%) exactly as delivered by the historical data endpoint.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum


class ZeroYieldKind(str, Enum):
    """Why a market shows no measurable underlying yield."""

    RAW_TOKEN = "raw_token"
    GOVERNANCE = "governance"
    DATA_ISSUE = "data_issue"
    POINTS_ONLY = "points_only"


@dataclass(frozen=True)
class ZeroYieldReason:
    """Explanation attached to pure-points markets."""

    kind: ZeroYieldKind
    title: str
    explanation: str


@dataclass(frozen=True)
class MarketQuote:
    """One yield market at the time of a fetch.

    Immutable; a newer fetch produces a new quote rather than mutating this one.
    ``pt_price + yt_price == 1`` for every quote built by the normalizer.
    """

    address: str
    name: str
    chain_id: int
    expiry: str  # ISO-8601 as delivered by the API
    days_to_maturity: int
    pt_price: Decimal
    yt_price: Decimal
    underlying_apy: Decimal  # percent
    implied_apy: Decimal  # percent
    tvl_usd: Decimal = Decimal("0")
    lp_apy: Decimal = Decimal("0")
    swap_fee_apy: Decimal = Decimal("0")
    lp_reward_apy: Decimal = Decimal("0")
    aggregated_apy: Decimal = Decimal("0")
    symbol: str = ""
    has_incentives: bool = False
    incentive_details: tuple[str, ...] = field(default_factory=tuple)
    is_pure_points: bool = False
    zero_yield_reason: ZeroYieldReason | None = None

    @property
    def discount(self) -> Decimal:
        """PT discount to par in percent."""
        return (Decimal("1") - self.pt_price) * Decimal("100")


@dataclass(frozen=True)
class YieldPoint:
    """A single daily point of a market's historical yield series (fractional APYs)."""

    timestamp: datetime
    implied_apy: Decimal
    underlying_apy: Decimal

    @property
    def day(self) -> date:
        """Calendar day used for deduplication and alignment."""
        return self.timestamp.date()


@dataclass(frozen=True)
class PricePoint:
    """A dated reference price (e.g. ETH/USD) used for correlation analysis."""

    timestamp: datetime
    price: Decimal
