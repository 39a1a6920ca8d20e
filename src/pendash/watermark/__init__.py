"""Watermark risk: historical breach analysis, documented incidents and live status."""

from pendash.watermark.analyzer import (
    BreachSeverity,
    RiskLevel,
    RiskPeriod,
    RiskPeriodType,
    WatermarkAnalysis,
    WatermarkBreach,
    analyze_watermark_history,
)
from pendash.watermark.events import KNOWN_WATERMARK_EVENTS, WatermarkEvent, match_known_events
from pendash.watermark.status import WatermarkStatus, watermark_status, watermark_status_from_raw

__all__ = [
    "KNOWN_WATERMARK_EVENTS",
    "BreachSeverity",
    "RiskLevel",
    "RiskPeriod",
    "RiskPeriodType",
    "WatermarkAnalysis",
    "WatermarkBreach",
    "WatermarkEvent",
    "WatermarkStatus",
    "analyze_watermark_history",
    "match_known_events",
    "watermark_status",
    "watermark_status_from_raw",
]
