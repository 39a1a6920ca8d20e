"""Search, filter and sort evaluated markets for display."""

from collections.abc import Callable, Iterable
from decimal import Decimal
from enum import Enum

from pendash.signals.models import MarketEvaluation, SignalType

_REAL_YIELD_MIN = Decimal("0.5")  # percent underlying APY


class MarketFilter(str, Enum):
    ALL = "all"
    PT_OPPORTUNITY = "pt-opportunity"
    YT_OPPORTUNITY = "yt-opportunity"
    LP_OPPORTUNITY = "lp-opportunity"
    LOOP_OPPORTUNITY = "loop-opportunity"
    BELOW_WATERMARK = "below-watermark"
    PURE_POINTS = "pure-points"
    REAL_YIELD = "real-yield"
    HAS_INCENTIVES = "has-incentives"
    NO_INCENTIVES = "no-incentives"


class SortKey(str, Enum):
    TVL = "tvl"
    LP_APY = "lpApy"
    FIXED_APY = "fixedApy"
    UNDERLYING_APY = "underlyingApy"
    IMPLIED_APY = "impliedApy"
    EXPIRY = "expiry"


_FILTERS: dict[MarketFilter, Callable[[MarketEvaluation], bool]] = {
    MarketFilter.ALL: lambda e: True,
    MarketFilter.PT_OPPORTUNITY: lambda e: e.spread_signal.type == SignalType.PT,
    MarketFilter.YT_OPPORTUNITY: lambda e: e.spread_signal.type == SignalType.YT,
    MarketFilter.LP_OPPORTUNITY: lambda e: e.is_lp_best,
    MarketFilter.LOOP_OPPORTUNITY: lambda e: e.loop_opportunity is not None,
    MarketFilter.BELOW_WATERMARK: lambda e: (
        e.watermark_status is not None and e.watermark_status.below_watermark
    ),
    MarketFilter.PURE_POINTS: lambda e: e.quote.is_pure_points,
    MarketFilter.REAL_YIELD: lambda e: (
        not e.quote.is_pure_points and e.quote.underlying_apy > _REAL_YIELD_MIN
    ),
    MarketFilter.HAS_INCENTIVES: lambda e: e.quote.has_incentives,
    MarketFilter.NO_INCENTIVES: lambda e: not e.quote.has_incentives,
}

_SORT_KEYS: dict[SortKey, Callable[[MarketEvaluation], Decimal | int]] = {
    SortKey.TVL: lambda e: e.quote.tvl_usd,
    SortKey.LP_APY: lambda e: e.quote.lp_apy,
    SortKey.FIXED_APY: lambda e: e.fixed_apy,
    SortKey.UNDERLYING_APY: lambda e: e.quote.underlying_apy,
    SortKey.IMPLIED_APY: lambda e: e.quote.implied_apy,
    SortKey.EXPIRY: lambda e: e.quote.days_to_maturity,
}


def matches_search(evaluation: MarketEvaluation, query: str) -> bool:
    """Case-insensitive substring match on market name or symbol."""
    needle = query.strip().lower()
    if not needle:
        return True
    quote = evaluation.quote
    return needle in quote.name.lower() or needle in quote.symbol.lower()


def screen_markets(
    evaluations: Iterable[MarketEvaluation],
    search: str = "",
    market_filter: MarketFilter = MarketFilter.ALL,
    sort_by: SortKey = SortKey.TVL,
    descending: bool = True,
) -> list[MarketEvaluation]:
    """Apply search, filter and sort.

    Descending puts the largest value first; for EXPIRY that is the
    furthest maturity. The sort is stable.
    """
    keep = _FILTERS[market_filter]
    selected = [e for e in evaluations if matches_search(e, search) and keep(e)]
    return sorted(selected, key=_SORT_KEYS[sort_by], reverse=descending)
