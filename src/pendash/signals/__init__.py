"""Signal derivation for Pendle yield markets.

Provides data models and computation functions for classifying a market into
a single actionable signal. Includes sub-signal modules (spread, mean
reversion, Sharpe, cross-asset) and the SignalEngine that applies the signal
precedence and runs the history-driven analytics.
"""

from pendash.signals.cross_asset import cross_asset_comparison
from pendash.signals.engine import SignalEngine, is_lp_best, market_signal
from pendash.signals.mean_reversion import mean_reversion_signal
from pendash.signals.models import (
    HistoryAnalysis,
    MarketEvaluation,
    MeanReversionBand,
    Signal,
    SignalType,
)
from pendash.signals.sharpe import sharpe_comparison, yt_leverage
from pendash.signals.spread import classify_signal

__all__ = [
    "HistoryAnalysis",
    "MarketEvaluation",
    "MeanReversionBand",
    "Signal",
    "SignalEngine",
    "SignalType",
    "classify_signal",
    "cross_asset_comparison",
    "is_lp_best",
    "market_signal",
    "mean_reversion_signal",
    "sharpe_comparison",
    "yt_leverage",
]
