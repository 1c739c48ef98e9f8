"""
Bias Radar Schema Contracts

This module defines all JSON contracts between system components.
These are the authoritative interfaces - all modules must conform to these schemas.
"""

from radar.schemas.market import (
    Timeframe,
    Bar,
    Series,
    Quote,
    MacroSnapshot,
)
from radar.schemas.indicators import (
    IndicatorSet,
    PivotLevels,
    PivotAnalysis,
    KeyLevels,
    NearestLevel,
)
from radar.schemas.signals import (
    Bias,
    Trend,
    OverallBias,
    ScoringTableName,
    TimeframeBias,
    MTFAnalysis,
    ContributingFactor,
    PreviousCloseSignal,
    AggregateSignal,
)
from radar.schemas.responses import CachedResponse, CacheStatus

__all__ = [
    # Market
    "Timeframe",
    "Bar",
    "Series",
    "Quote",
    "MacroSnapshot",
    # Indicators
    "IndicatorSet",
    "PivotLevels",
    "PivotAnalysis",
    "KeyLevels",
    "NearestLevel",
    # Signals
    "Bias",
    "Trend",
    "OverallBias",
    "ScoringTableName",
    "TimeframeBias",
    "MTFAnalysis",
    "ContributingFactor",
    "PreviousCloseSignal",
    "AggregateSignal",
    # Responses
    "CachedResponse",
    "CacheStatus",
]
