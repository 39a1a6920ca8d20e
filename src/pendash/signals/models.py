"""Signal data models.

Signals are a closed tagged variant (SignalType) carrying a rationale string.
Presentation (colours, icons) is left to the consumer.

CRITICAL: All score and rate values use Decimal. Never use float for signal computations.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum

from pendash.analytics.statistics import CorrelationStrength, SeriesStats, YieldPosition
from pendash.loop.calculator import LoopOpportunity
from pendash.models import MarketQuote
from pendash.watermark.analyzer import WatermarkAnalysis
from pendash.watermark.status import WatermarkStatus


class SignalType(str, Enum):
    """Actionable market classification. Exactly one per market per evaluation."""

    PT = "pt"
    YT = "yt"
    NEUTRAL = "neutral"
    LP_BEST = "lp"
    LOOP = "loop"
    BELOW_WATERMARK = "watermark"
    PURE_POINTS = "pure_points"


@dataclass(frozen=True)
class Signal:
    """A classification plus the human-readable reasoning behind it."""

    type: SignalType
    label: str
    rationale: str


class MeanReversionBand(str, Enum):
    """z-score band of the current yield against its history."""

    PT_FAVORED = "pt_favored"
    SLIGHTLY_HIGH = "slightly_high"
    NEAR_AVERAGE = "near_average"
    SLIGHTLY_LOW = "slightly_low"
    YT_FAVORED = "yt_favored"


@dataclass(frozen=True)
class MeanReversionSignal:
    """Mean-reversion reading for the current yield."""

    band: MeanReversionBand
    z_score: Decimal
    description: str


@dataclass(frozen=True)
class SharpeLeg:
    """Risk-adjusted view of one side (PT or YT)."""

    sharpe: Decimal
    volatility: Decimal
    excess_return: Decimal


@dataclass(frozen=True)
class SharpeComparison:
    """Heuristic PT vs YT Sharpe comparison (not an options-pricing Sharpe)."""

    pt: SharpeLeg
    yt: SharpeLeg

    @property
    def better(self) -> SignalType:
        """Side with the higher Sharpe; YT wins ties."""
        return SignalType.PT if self.pt.sharpe > self.yt.sharpe else SignalType.YT


class CrossAssetDirection(str, Enum):
    """Where a market's implied APY sits relative to its category peers."""

    ABOVE = "above"  # PT may be cheap
    BELOW = "below"  # YT may be cheap
    IN_LINE = "in_line"


@dataclass(frozen=True)
class PeerQuote:
    """Peer market shown alongside a cross-asset comparison."""

    name: str
    implied_apy: Decimal


@dataclass(frozen=True)
class CrossAssetComparison:
    """Implied APY of a market against the average of its category peers."""

    category: str
    peer_count: int
    avg_implied: Decimal
    diff: Decimal
    direction: CrossAssetDirection
    signal: str
    peers: tuple[PeerQuote, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class Correlation:
    """Correlation of underlying yield against a reference asset price."""

    coefficient: Decimal
    strength: CorrelationStrength


@dataclass(frozen=True)
class MarketEvaluation:
    """Everything the engine derives for one market from its current quote."""

    quote: MarketQuote
    fixed_apy: Decimal
    signal: Signal
    spread_signal: Signal
    loop_opportunity: LoopOpportunity | None = None
    watermark_status: WatermarkStatus | None = None
    is_lp_best: bool = False


@dataclass(frozen=True)
class RangePosition:
    """Current value against a historical window."""

    stats: SeriesStats
    percentile: int
    position: YieldPosition


@dataclass(frozen=True)
class HistoryAnalysis:
    """History-driven analytics for a single market."""

    implied_stats: dict[str, SeriesStats | None]
    underlying_stats: dict[str, SeriesStats | None]
    implied_range: RangePosition | None
    underlying_range: RangePosition | None
    spread: Decimal  # implied - underlying, percentage points
    spread_signal: Signal
    mean_reversion: MeanReversionSignal | None
    cross_asset: CrossAssetComparison | None
    sharpe: SharpeComparison | None
    correlation: Correlation | None
    watermark: WatermarkAnalysis | None
    underlying_moving_average: list[Decimal]
    data_points: int
