"""Watermark risk analysis over a historical yield series.

YT holders only accrue yield while the SY exchange rate sits above the stored
PY index (the watermark). A sharp fall in underlying APY is the visible
symptom of an exchange-rate drop, so a single chronological pass over the
series flags:

- breaches: day-over-day change below -50% or a negative APY
- risk periods: the onset of a near-zero (< 0.5%) or negative yield stretch
- drawdown of a cumulative-return proxy compounded daily at apy / 365

Documented incidents from the curated event list override inference: any
match makes the market high risk.

CRITICAL: All computations use Decimal. Never use float.
"""

from collections.abc import Sequence
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum

from pendash.config import (
    BREACH_CHANGE_PCT,
    DAYS_PER_YEAR,
    HIGH_SEVERITY_CHANGE_PCT,
    MEDIUM_RISK_DRAWDOWN_PCT,
    NEAR_ZERO_APY,
)
from pendash.models import YieldPoint
from pendash.watermark.events import KNOWN_WATERMARK_EVENTS, WatermarkEvent, match_known_events

_ZERO = Decimal("0")
_ONE = Decimal("1")
_HUNDRED = Decimal("100")


class BreachSeverity(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"


class RiskPeriodType(str, Enum):
    NEGATIVE_YIELD = "negative_yield"
    NEAR_ZERO_YIELD = "near_zero_yield"


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


@dataclass(frozen=True)
class WatermarkBreach:
    """A day whose underlying APY fell sharply against the previous day."""

    date: str
    previous_apy: Decimal  # percent
    new_apy: Decimal  # percent
    change: Decimal  # relative change in percent
    severity: BreachSeverity


@dataclass(frozen=True)
class RiskPeriod:
    """Start of a near-zero or negative yield stretch."""

    start_date: str
    apy: Decimal
    type: RiskPeriodType


@dataclass(frozen=True)
class WatermarkAnalysis:
    """Result of analyze_watermark_history. Never mutated after computation."""

    potential_breaches: list[WatermarkBreach]
    risk_periods: list[RiskPeriod]
    max_drawdown: Decimal  # percent
    risk_level: RiskLevel
    known_events: list[WatermarkEvent] = field(default_factory=list)
    volatility: Decimal = _ZERO


def _breach_severity(
    apy: Decimal, change_pct: Decimal, high_severity_change_pct: Decimal
) -> BreachSeverity:
    if apy < _ZERO:
        return BreachSeverity.CRITICAL
    if change_pct < high_severity_change_pct:
        return BreachSeverity.HIGH
    return BreachSeverity.MEDIUM


def analyze_watermark_history(
    history: Sequence[YieldPoint],
    market_name: str | None,
    chain_id: int | None = None,
    volatility: Decimal = _ZERO,
    events: tuple[WatermarkEvent, ...] = KNOWN_WATERMARK_EVENTS,
    breach_change_pct: Decimal = BREACH_CHANGE_PCT,
    high_severity_change_pct: Decimal = HIGH_SEVERITY_CHANGE_PCT,
    near_zero_apy: Decimal = NEAR_ZERO_APY,
    medium_risk_drawdown_pct: Decimal = MEDIUM_RISK_DRAWDOWN_PCT,
) -> WatermarkAnalysis | None:
    """Classify a market's watermark risk from its yield history.

    Args:
        history: Chronological, date-deduplicated series (fractional APYs).
        market_name: Market name matched against the known-event list.
        chain_id: Chain of the market; events pinned to another chain are ignored.
        volatility: Underlying APY standard deviation carried into the result.

    Returns:
        WatermarkAnalysis, or None with fewer than two points.
    """
    if len(history) < 2:
        return None

    breaches: list[WatermarkBreach] = []
    periods: list[RiskPeriod] = []
    cumulative = _ONE
    peak = _ONE
    max_drawdown = _ZERO
    prev_apy: Decimal | None = None

    for point in history:
        apy = point.underlying_apy * _HUNDRED
        day = point.day.isoformat()

        cumulative *= _ONE + apy / DAYS_PER_YEAR / _HUNDRED
        peak = max(peak, cumulative)
        if peak > _ZERO:
            max_drawdown = max(max_drawdown, (peak - cumulative) / peak * _HUNDRED)

        if prev_apy is not None:
            change_pct = (apy - prev_apy) / prev_apy * _HUNDRED if prev_apy != _ZERO else _ZERO

            if change_pct < breach_change_pct or apy < _ZERO:
                breaches.append(
                    WatermarkBreach(
                        date=day,
                        previous_apy=prev_apy,
                        new_apy=apy,
                        change=change_pct,
                        severity=_breach_severity(apy, change_pct, high_severity_change_pct),
                    )
                )

            if apy < near_zero_apy <= prev_apy:
                periods.append(
                    RiskPeriod(
                        start_date=day,
                        apy=apy,
                        type=(
                            RiskPeriodType.NEGATIVE_YIELD
                            if apy < _ZERO
                            else RiskPeriodType.NEAR_ZERO_YIELD
                        ),
                    )
                )

        prev_apy = apy

    known = match_known_events(market_name, chain_id, events)

    if known or any(b.severity == BreachSeverity.CRITICAL for b in breaches):
        risk_level = RiskLevel.HIGH
    elif breaches or max_drawdown > medium_risk_drawdown_pct:
        risk_level = RiskLevel.MEDIUM
    else:
        risk_level = RiskLevel.LOW

    return WatermarkAnalysis(
        potential_breaches=breaches,
        risk_periods=periods,
        max_drawdown=max_drawdown,
        risk_level=risk_level,
        known_events=known,
        volatility=volatility,
    )
