"""Dashboard service wiring the API client, history cache and signal engine.

The service owns the only mutable state in pendash: the latest evaluated
market list per chain. Every computation underneath it is a pure function of
what the service passes in.
"""

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal

from pendash.config import AppSettings
from pendash.data.cache import CachedHistory, HistoryCache
from pendash.exceptions import ApiUnavailableError, MarketNotFoundError
from pendash.logging import bind_market_context, clear_market_context, get_logger
from pendash.loop.oracle import (
    DEFAULT_LIQUIDATION_BUFFER,
    OracleAssessment,
    PricePathRisk,
    assess_oracle,
    price_path_risk,
    pt_price_path,
)
from pendash.market_data.client import PendleApiClient
from pendash.market_data.normalize import normalize_markets
from pendash.models import PricePoint
from pendash.signals.engine import SignalEngine
from pendash.signals.models import HistoryAnalysis, MarketEvaluation
from pendash.strategy.calculator import (
    ReturnCurvePoint,
    lp_apy_estimate,
    pt_position,
    return_curve,
)
from pendash.strategy.comparator import StrategyComparison, compare_strategies
from pendash.verification import ProtocolApyClient, VerificationResult
from pendash.watermark.status import WatermarkStatus

logger = get_logger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class MarketAnalysis:
    """Everything shown for a single selected market."""

    evaluation: MarketEvaluation
    history: HistoryAnalysis | None
    history_cached: bool
    oracle: OracleAssessment
    price_risk: PricePathRisk | None
    verification: VerificationResult | None


@dataclass(frozen=True)
class ComparisonResult:
    comparison: StrategyComparison
    curve: list[ReturnCurvePoint]


class DashboardService:
    """Loads, evaluates and analyzes markets on demand.

    Args:
        settings: Application settings.
        client: Pendle API client.
        history_cache: Cached access to market yield histories.
        engine: Signal engine.
        protocol_client: Optional protocol APY verifier.
        clock: Returns the current aware UTC time.
    """

    def __init__(
        self,
        settings: AppSettings,
        client: PendleApiClient,
        history_cache: HistoryCache,
        engine: SignalEngine,
        protocol_client: ProtocolApyClient | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._settings = settings
        self._client = client
        self._history = history_cache
        self._engine = engine
        self._protocol = protocol_client
        self._clock = clock
        self._markets: dict[int, list[MarketEvaluation]] = {}

    async def load_markets(
        self,
        chain_id: int,
        watermark_statuses: Mapping[str, WatermarkStatus] | None = None,
    ) -> list[MarketEvaluation]:
        """Fetch, normalize and evaluate every active market on a chain."""
        raws = await self._client.fetch_markets(chain_id)
        signal = self._settings.signal
        quotes = normalize_markets(
            raws,
            chain_id,
            self._clock(),
            signal.pure_points_max_underlying,
            signal.pure_points_min_implied,
        )
        evaluations = self._engine.evaluate_all(quotes, watermark_statuses)
        self._markets[chain_id] = evaluations
        return evaluations

    async def markets(self, chain_id: int) -> list[MarketEvaluation]:
        """Latest evaluated markets of a chain, loading them on first use."""
        if chain_id not in self._markets:
            return await self.load_markets(chain_id)
        return self._markets[chain_id]

    async def find_market(self, chain_id: int, address: str) -> MarketEvaluation:
        """Look up a market by address (case-insensitive).

        Raises:
            MarketNotFoundError: If the address is not an active market on the chain.
        """
        target = address.lower()
        for evaluation in await self.markets(chain_id):
            if evaluation.quote.address.lower() == target:
                return evaluation
        raise MarketNotFoundError(f"Market {address} not found on chain {chain_id}")

    async def get_history(self, chain_id: int, address: str) -> CachedHistory:
        return await self._history.get_history(chain_id, address)

    async def analyze_market(
        self,
        chain_id: int,
        address: str,
        reference_prices: Sequence[PricePoint] | None = None,
    ) -> MarketAnalysis:
        """Run the full single-market analysis.

        History is optional: when the API is down and nothing is cached the
        history-driven parts are None and the rest is still returned.
        """
        evaluation = await self.find_market(chain_id, address)
        quote = evaluation.quote
        bind_market_context(chain_id, quote.address)
        try:
            try:
                cached = await self._history.get_history(chain_id, quote.address)
            except ApiUnavailableError as e:
                logger.warning("history_unavailable", error=str(e))
                cached = None

            points = cached.points if cached else []
            peers = [e.quote for e in await self.markets(chain_id)]
            history = self._engine.analyze_history(quote, points, peers, reference_prices)

            buffer = (
                evaluation.loop_opportunity.liquidation_buffer
                if evaluation.loop_opportunity
                else DEFAULT_LIQUIDATION_BUFFER
            )
            path = pt_price_path(points, quote.days_to_maturity, self._clock())
            price_risk = price_path_risk([p.pt_price for p in path], buffer)

            verification = None
            if self._protocol is not None:
                verification = await self._protocol.verify_underlying_apy(
                    quote.name, quote.underlying_apy
                )

            logger.info(
                "market_analyzed",
                signal=evaluation.signal.type.value,
                data_points=len(points),
                verification=verification.status.value if verification else None,
            )
            return MarketAnalysis(
                evaluation=evaluation,
                history=history,
                history_cached=bool(cached and cached.cached),
                oracle=assess_oracle(quote.name),
                price_risk=price_risk,
                verification=verification,
            )
        finally:
            clear_market_context()

    def compare(
        self,
        investment: Decimal,
        days: int,
        pt_price: Decimal,
        yt_price: Decimal,
        future_underlying_apy: Decimal,
        lp_apy: Decimal | None = None,
        evaluation: MarketEvaluation | None = None,
    ) -> ComparisonResult:
        """Rank strategies and sweep the return curve for one scenario.

        When an evaluation is given its loop opportunity joins the ranking and
        its LP APY is used unless ``lp_apy`` overrides it.
        """
        strategy = self._settings.strategy
        loop = None
        if evaluation is not None:
            loop = evaluation.loop_opportunity
            lp_apy = lp_apy or evaluation.quote.lp_apy or None

        comparison = compare_strategies(
            investment,
            days,
            pt_price,
            yt_price,
            future_underlying_apy,
            lp_apy=lp_apy,
            loop_opportunity=loop,
            swap_fee_apy=strategy.default_lp_swap_fee_apy,
            incentive_apy=strategy.default_lp_incentive_apy,
        )
        curve_lp_apy = lp_apy or lp_apy_estimate(
            pt_position(investment, pt_price, days).fixed_apy,
            strategy.default_lp_swap_fee_apy,
            strategy.default_lp_incentive_apy,
        )
        curve = return_curve(
            investment,
            pt_price,
            yt_price,
            days,
            curve_lp_apy,
            max_apy=strategy.return_curve_max_apy,
            step=strategy.return_curve_step,
        )
        logger.debug(
            "strategies_compared",
            winner=comparison.winner.name.value,
            advantage=str(comparison.advantage),
        )
        return ComparisonResult(comparison=comparison, curve=curve)

    async def compare_market(
        self,
        chain_id: int,
        address: str,
        investment: Decimal,
        future_underlying_apy: Decimal | None = None,
        lp_apy: Decimal | None = None,
    ) -> ComparisonResult:
        """Compare strategies on a live market's prices and maturity.

        The future underlying APY defaults to the market's current one.
        """
        evaluation = await self.find_market(chain_id, address)
        quote = evaluation.quote
        future = quote.underlying_apy if future_underlying_apy is None else future_underlying_apy
        return self.compare(
            investment,
            quote.days_to_maturity,
            quote.pt_price,
            quote.yt_price,
            future,
            lp_apy=lp_apy,
            evaluation=evaluation,
        )
