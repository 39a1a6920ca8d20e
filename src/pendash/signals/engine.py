"""Signal engine combining pricing, statistics and sub-signals per market.

The SignalEngine is the top-level coordinator that:
1. Derives the fixed APY from the quote's PT price
2. Looks up a loop opportunity against the curated lending pairs
3. Applies the signal precedence
   (below watermark > loop > LP best > pure points > PT/YT/neutral)
4. On request, runs the history-driven analytics (window statistics,
   mean reversion, cross-asset, Sharpe, correlation, watermark analysis)
5. Logs a batch summary at INFO level

Graceful degradation: every history-driven component is optional. Missing or
thin history yields None for that component rather than failing the market.

CRITICAL: All computations use Decimal. Never use float for signal values.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Mapping, Sequence
from decimal import Decimal

from pendash.analytics.statistics import (
    SeriesStats,
    interpret_correlation,
    moving_average,
    pearson_correlation,
    percentile,
    windowed_stats,
    yield_position,
)
from pendash.config import (
    LoopSettings,
    SignalSettings,
    WatermarkSettings,
)
from pendash.logging import get_logger
from pendash.loop.calculator import LoopOpportunity, find_loop_opportunity
from pendash.loop.pairs import KNOWN_PT_LENDING_PAIRS, LendingPair
from pendash.models import MarketQuote, PricePoint, YieldPoint
from pendash.pricing import fixed_apy
from pendash.signals.cross_asset import cross_asset_comparison
from pendash.signals.mean_reversion import mean_reversion_signal
from pendash.signals.models import (
    Correlation,
    HistoryAnalysis,
    MarketEvaluation,
    RangePosition,
    Signal,
    SignalType,
)
from pendash.signals.sharpe import sharpe_comparison
from pendash.signals.spread import classify_signal, format_percent
from pendash.watermark.analyzer import analyze_watermark_history
from pendash.watermark.events import KNOWN_WATERMARK_EVENTS, WatermarkEvent
from pendash.watermark.status import WatermarkStatus

logger = get_logger(__name__)

_ZERO = Decimal("0")
_HUNDRED = Decimal("100")


def is_lp_best(quote: MarketQuote, pt_fixed_apy: Decimal) -> bool:
    """LP beats both holding the underlying and locking in the PT rate."""
    return quote.lp_apy > quote.underlying_apy and quote.lp_apy > pt_fixed_apy


def market_signal(
    quote: MarketQuote,
    pt_fixed_apy: Decimal,
    spread_signal: Signal,
    loop_opportunity: LoopOpportunity | None = None,
    watermark_status: WatermarkStatus | None = None,
) -> Signal:
    """Pick the single signal shown for a market.

    Precedence: below watermark > loop > LP best > pure points > the spread
    signal (PT, YT or neutral).
    """
    if watermark_status is not None and watermark_status.below_watermark:
        return Signal(
            type=SignalType.BELOW_WATERMARK,
            label="Below Watermark",
            rationale=(
                f"SY exchange rate is {format_percent(-watermark_status.percent_from_watermark)} "
                "below the stored PY index. YT accrues no yield until the rate recovers."
            ),
        )

    if loop_opportunity is not None:
        return Signal(
            type=SignalType.LOOP,
            label="Loop Opportunity",
            rationale=(
                f"Loop {loop_opportunity.collateral_symbol} on {loop_opportunity.platform} "
                f"at {loop_opportunity.safe_leverage:.1f}x for "
                f"{format_percent(loop_opportunity.effective_apy)} effective APY "
                f"(+{format_percent(loop_opportunity.apy_boost)} over the fixed rate)."
            ),
        )

    if is_lp_best(quote, pt_fixed_apy):
        return Signal(
            type=SignalType.LP_BEST,
            label="LP Best",
            rationale=(
                f"LP APY ({format_percent(quote.lp_apy)}) beats underlying "
                f"({format_percent(quote.underlying_apy)}) and fixed "
                f"({format_percent(pt_fixed_apy)}) yields."
            ),
        )

    if quote.is_pure_points:
        reason = quote.zero_yield_reason
        return Signal(
            type=SignalType.PURE_POINTS,
            label="Pure Points",
            rationale=(
                reason.explanation
                if reason is not None
                else "Implied APY comes from points speculation with no on-chain yield."
            ),
        )

    return spread_signal


class SignalEngine:
    """Evaluates markets and their histories into signals and analytics.

    Args:
        signal_settings: Thresholds for spread, mean reversion, Sharpe and
            cross-asset signals.
        loop_settings: Loop safety factor and surfacing thresholds.
        watermark_settings: Breach and risk-level thresholds.
        stats_windows: Trailing windows (days) summarized besides "all". The
            first window also bounds the watermark and correlation analysis.
        lending_pairs: Curated PT collateral table.
        watermark_events: Curated documented incidents.
    """

    def __init__(
        self,
        signal_settings: SignalSettings,
        loop_settings: LoopSettings,
        watermark_settings: WatermarkSettings,
        stats_windows: Sequence[int] = (90, 30, 7),
        lending_pairs: Mapping[str, LendingPair] = KNOWN_PT_LENDING_PAIRS,
        watermark_events: tuple[WatermarkEvent, ...] = KNOWN_WATERMARK_EVENTS,
    ) -> None:
        self._signal = signal_settings
        self._loop = loop_settings
        self._watermark = watermark_settings
        self._windows = tuple(stats_windows)
        self._pairs = lending_pairs
        self._events = watermark_events

    def evaluate(
        self,
        quote: MarketQuote,
        watermark_status: WatermarkStatus | None = None,
    ) -> MarketEvaluation:
        """Derive the fixed APY, loop opportunity and final signal for one quote."""
        pt_fixed = fixed_apy(quote.pt_price, quote.days_to_maturity)
        spread = classify_signal(
            quote.underlying_apy, quote.implied_apy, self._signal.spread_deadband
        )
        loop = find_loop_opportunity(
            quote.name,
            pt_fixed,
            quote.chain_id,
            pairs=self._pairs,
            min_fixed_apy=self._loop.min_fixed_apy,
            min_apy_boost=self._loop.min_apy_boost,
            safety_factor=self._loop.safety_factor,
        )
        return MarketEvaluation(
            quote=quote,
            fixed_apy=pt_fixed,
            signal=market_signal(quote, pt_fixed, spread, loop, watermark_status),
            spread_signal=spread,
            loop_opportunity=loop,
            watermark_status=watermark_status,
            is_lp_best=is_lp_best(quote, pt_fixed),
        )

    def evaluate_all(
        self,
        quotes: Iterable[MarketQuote],
        watermark_statuses: Mapping[str, WatermarkStatus] | None = None,
    ) -> list[MarketEvaluation]:
        """Evaluate a batch of quotes.

        Args:
            quotes: Normalized market quotes.
            watermark_statuses: Optional live watermark status keyed by
                lowercase market address.

        Returns:
            Evaluations in input order.
        """
        statuses = watermark_statuses or {}
        evaluations = [
            self.evaluate(q, statuses.get(q.address.lower())) for q in quotes
        ]
        counts = Counter(e.signal.type.value for e in evaluations)
        logger.info(
            "markets_evaluated",
            count=len(evaluations),
            loops=counts.get(SignalType.LOOP.value, 0),
            below_watermark=counts.get(SignalType.BELOW_WATERMARK.value, 0),
            pt=counts.get(SignalType.PT.value, 0),
            yt=counts.get(SignalType.YT.value, 0),
            lp=counts.get(SignalType.LP_BEST.value, 0),
            pure_points=counts.get(SignalType.PURE_POINTS.value, 0),
        )
        return evaluations

    def analyze_history(
        self,
        quote: MarketQuote,
        history: Sequence[YieldPoint],
        peers: Iterable[MarketQuote] = (),
        reference_prices: Sequence[PricePoint] | None = None,
    ) -> HistoryAnalysis | None:
        """Run the history-driven analytics for one market.

        Args:
            quote: Current quote of the market.
            history: Chronological, date-deduplicated yield series.
            peers: All current quotes, used for the cross-asset comparison.
            reference_prices: Optional reference asset prices for correlation.

        Returns:
            HistoryAnalysis, or None when the history is empty.
        """
        if not history:
            logger.debug("history_empty", market=quote.address)
            return None

        implied_values = [p.implied_apy * _HUNDRED for p in history]
        underlying_values = [p.underlying_apy * _HUNDRED for p in history]
        implied_stats = windowed_stats(implied_values, self._windows)
        underlying_stats = windowed_stats(underlying_values, self._windows)

        implied_window = self._primary(implied_stats)
        underlying_window = self._primary(underlying_stats)
        volatility = underlying_window.std_dev if underlying_window else _ZERO

        spread_signal = classify_signal(
            quote.underlying_apy, quote.implied_apy, self._signal.spread_deadband
        )

        mean_reversion = None
        sharpe = None
        if underlying_window is not None:
            mean_reversion = mean_reversion_signal(
                quote.underlying_apy,
                underlying_window.avg,
                underlying_window.std_dev,
                strong_z=self._signal.mean_reversion_strong_z,
                mild_z=self._signal.mean_reversion_mild_z,
            )
            sharpe = sharpe_comparison(
                fixed_apy(quote.pt_price, quote.days_to_maturity),
                quote.underlying_apy,
                quote.implied_apy,
                underlying_window.std_dev,
                quote.days_to_maturity,
                risk_free_rate=self._signal.risk_free_rate,
                pt_volatility_factor=self._signal.pt_volatility_factor,
                leverage_cap=self._signal.yt_leverage_cap,
            )

        recent = history[-self._windows[0]:] if self._windows else history
        watermark = analyze_watermark_history(
            recent,
            quote.name,
            quote.chain_id,
            volatility=volatility,
            events=self._events,
            breach_change_pct=self._watermark.breach_change_pct,
            high_severity_change_pct=self._watermark.high_severity_change_pct,
            near_zero_apy=self._watermark.near_zero_apy,
            medium_risk_drawdown_pct=self._watermark.medium_risk_drawdown_pct,
        )

        analysis = HistoryAnalysis(
            implied_stats=implied_stats,
            underlying_stats=underlying_stats,
            implied_range=self._range(quote.implied_apy, implied_window),
            underlying_range=self._range(quote.underlying_apy, underlying_window),
            spread=quote.implied_apy - quote.underlying_apy,
            spread_signal=spread_signal,
            mean_reversion=mean_reversion,
            cross_asset=cross_asset_comparison(
                quote,
                peers,
                threshold=self._signal.cross_asset_threshold,
                min_peers=self._signal.cross_asset_min_peers,
                min_peer_days=self._signal.cross_asset_min_peer_days,
            ),
            sharpe=sharpe,
            correlation=self._correlation(recent, reference_prices),
            watermark=watermark,
            underlying_moving_average=moving_average(
                underlying_values, self._signal.moving_average_window
            ),
            data_points=len(history),
        )

        logger.debug(
            "history_analyzed",
            market=quote.address,
            data_points=analysis.data_points,
            spread=str(analysis.spread),
            mean_reversion=mean_reversion.band.value if mean_reversion else None,
            watermark_risk=watermark.risk_level.value if watermark else None,
        )
        return analysis

    def _primary(self, stats: dict[str, SeriesStats | None]) -> SeriesStats | None:
        """Stats of the first trailing window, falling back to the full series."""
        if self._windows:
            window = stats.get(f"{self._windows[0]}d")
            if window is not None:
                return window
        return stats.get("all")

    @staticmethod
    def _range(current: Decimal, stats: SeriesStats | None) -> RangePosition | None:
        if stats is None:
            return None
        pct = percentile(current, stats.min, stats.max)
        return RangePosition(stats=stats, percentile=pct, position=yield_position(pct))

    def _correlation(
        self,
        history: Sequence[YieldPoint],
        reference_prices: Sequence[PricePoint] | None,
    ) -> Correlation | None:
        """Correlate underlying APY against reference prices.

        Days with a zero underlying APY or a non-positive price carry no
        information and are left out before alignment.
        """
        if not reference_prices:
            return None
        yields = [
            (p.timestamp, p.underlying_apy * _HUNDRED)
            for p in history
            if p.underlying_apy != _ZERO
        ]
        prices = [(p.timestamp, p.price) for p in reference_prices if p.price > _ZERO]
        r = pearson_correlation(yields, prices, self._signal.correlation_min_points)
        if r is None:
            return None
        return Correlation(coefficient=r, strength=interpret_correlation(r))
