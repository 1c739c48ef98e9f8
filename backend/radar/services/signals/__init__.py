"""
Signal Service

CONTRACT:
    Input:  instrument id (+ scoring table, timeframe set)
    Output: CachedResponse[AggregateSignal | MTFAnalysis | ...]

RESPONSIBILITIES:
    - Score single timeframes with a fixed weight table
    - Aggregate timeframes into one auditable bias
    - Run timeframe pipelines concurrently behind the staleness-aware cache
    - Label every response cached/stale

The analyzer and aggregator are pure; all I/O lives in SignalService.
"""

from radar.services.signals.aggregator import aggregate, calculate_alignment, classify
from radar.services.signals.timeframe_analyzer import (
    STANDARD,
    ZONED,
    ScoringTable,
    TimeframeAnalyzer,
    get_scoring_table,
)
from radar.services.signals.service import SignalService

__all__ = [
    "aggregate",
    "calculate_alignment",
    "classify",
    "STANDARD",
    "ZONED",
    "ScoringTable",
    "TimeframeAnalyzer",
    "get_scoring_table",
    "SignalService",
]
