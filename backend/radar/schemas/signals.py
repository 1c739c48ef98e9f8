"""
CONTRACT 3: Timeframe Analyzer + Signal Aggregator

Input: IndicatorSet per timeframe (+ optional previous-day and RSI context)
Output: TimeframeBias, MTFAnalysis, AggregateSignal

Deterministic, no I/O. An AggregateSignal's score always equals the sum of
its contributing factor scores.
"""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field

from radar.schemas.indicators import IndicatorSet, NearestLevel
from radar.schemas.market import Timeframe


# =============================================================================
# ENUMS
# =============================================================================


class Bias(str, Enum):
    BULLISH = "bullish"
    BEARISH = "bearish"
    NEUTRAL = "neutral"


class Trend(str, Enum):
    UP = "up"
    DOWN = "down"
    SIDEWAYS = "sideways"


class AlignmentDirection(str, Enum):
    BULLISH = "bullish"
    BEARISH = "bearish"
    MIXED = "mixed"


class OverallBias(str, Enum):
    STRONG_BULLISH = "strong_bullish"
    BULLISH = "bullish"
    NEUTRAL = "neutral"
    BEARISH = "bearish"
    STRONG_BEARISH = "strong_bearish"


class ScoringTableName(str, Enum):
    STANDARD = "standard"
    ZONED = "zoned"


# =============================================================================
# OUTPUT: TimeframeBias
# =============================================================================


class TimeframeBias(BaseModel):
    """Directional read of one timeframe. neutral <=> |score| under threshold."""

    timeframe: Timeframe
    label: str
    bias: Bias
    score: int = Field(..., ge=-100, le=100)
    strength: int = Field(..., ge=0, le=100)
    trend: Trend
    table: ScoringTableName
    indicators: IndicatorSet


# =============================================================================
# OUTPUT: Multi-timeframe alignment
# =============================================================================


class MTFAlignment(BaseModel):
    direction: AlignmentDirection
    percentage: float = Field(..., ge=0, le=100)
    weighted_score: float = Field(..., ge=-100, le=100)
    bullish_count: int
    bearish_count: int
    neutral_count: int


class MTFAnalysis(BaseModel):
    instrument: str
    timeframes: list[TimeframeBias]
    alignment: MTFAlignment


# =============================================================================
# OUTPUT: AggregateSignal
# =============================================================================


class ContributingFactor(BaseModel):
    """One line of the auditable score breakdown."""

    factor: str
    value: str
    score: int
    explanation: str


class PreviousCloseSignal(BaseModel):
    """Previous-day-close context for the aggregator."""

    above: bool
    distance_pips: float = Field(default=0.0, ge=0)


class AggregateSignal(BaseModel):
    instrument: str
    overall_bias: OverallBias
    score: int = Field(..., ge=-100, le=100)
    alignment_percentage: float = Field(..., ge=0, le=100)
    contributing_factors: list[ContributingFactor]
    timeframes: list[TimeframeBias]
    table: ScoringTableName
    price: Optional[float] = None
    nearest_level: Optional[NearestLevel] = None
