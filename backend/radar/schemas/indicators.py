"""
CONTRACT 2: Indicator Engine

Input: Series (OHLC bars for one instrument/timeframe)
Output: IndicatorSet, PivotAnalysis, KeyLevels

This module carries ALL derived indicator values. Values keep full
precision; rounding happens only at the presentation boundary.
"""

from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field

from radar.schemas.market import Timeframe


# =============================================================================
# ENUMS
# =============================================================================


class VolatilityLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class PivotZone(str, Enum):
    ABOVE_R2 = "above_r2"
    R1_R2 = "r1_r2"
    PP_R1 = "pp_r1"
    S1_PP = "s1_pp"
    S1_S2 = "s1_s2"
    BELOW_S2 = "below_s2"


class RangeZone(str, Enum):
    ABOVE_PDH = "above_pdh"
    UPPER_HALF = "upper_half"
    LOWER_HALF = "lower_half"
    BELOW_PDL = "below_pdl"


class PricePosition(str, Enum):
    ABOVE = "above"
    BELOW = "below"


# =============================================================================
# OUTPUT: IndicatorSet
# =============================================================================


class IndicatorSet(BaseModel):
    """
    Snapshot derived from exactly one Series at one point in time.
    Pure function of its Series; no independent identity.
    """

    instrument: str
    timeframe: Timeframe
    price: float
    previous_close: Optional[float] = None
    ema_fast: float
    ema_slow: float
    sma_fast: float
    sma_slow: float
    rsi: float = Field(..., ge=0, le=100)
    atr: Optional[float] = Field(default=None, ge=0)
    periods: dict[str, int] = Field(
        default_factory=dict,
        description="Periods used, e.g. {'ema_fast': 20, 'ema_slow': 50}",
    )
    bar_count: int = Field(..., ge=1)
    source: str
    as_of: datetime = Field(..., description="Timestamp of the last bar")


# =============================================================================
# OUTPUT: Pivots
# =============================================================================


class PivotLevels(BaseModel):
    """Classic floor pivots from the prior period's high/low/close."""

    pp: float
    r1: float
    r2: float
    r3: float
    s1: float
    s2: float
    s3: float


class AtrReading(BaseModel):
    value: float = Field(..., ge=0)
    period: int
    percent_of_price: float
    volatility: VolatilityLevel


class PivotPosition(BaseModel):
    nearest_level: str
    nearest_value: float
    distance: float = Field(..., ge=0)
    distance_percent: float = Field(..., ge=0)
    zone: PivotZone


class RangeAnalysis(BaseModel):
    today_high: float
    today_low: float
    current_range: float = Field(..., ge=0)
    atr_percent: float = Field(..., description="Share of the ATR already travelled today, %")
    range_remaining: float = Field(..., ge=0)


class DailyBar(BaseModel):
    date: str
    open: float
    high: float
    low: float
    close: float


class PivotAnalysis(BaseModel):
    instrument: str
    daily: DailyBar
    pivots: PivotLevels
    atr: AtrReading
    position: PivotPosition
    range: RangeAnalysis


# =============================================================================
# OUTPUT: Key levels
# =============================================================================


class PreviousDayLevels(BaseModel):
    date: str
    high: float
    low: float
    close: float


class PriceVsClose(BaseModel):
    """Where price sits relative to the previous day's close."""

    position: PricePosition
    bullish: bool
    distance_pips: float = Field(..., ge=0)
    distance_percent: float = Field(..., ge=0)


class RangePosition(BaseModel):
    within_range: bool
    percent_in_range: float = Field(..., ge=0, le=100)
    zone: RangeZone


class SessionRange(BaseModel):
    name: str
    start_hour: int = Field(..., ge=0, le=23, description="UTC hour")
    end_hour: int = Field(..., ge=0, le=24, description="UTC hour")
    high: Optional[float] = None
    low: Optional[float] = None
    range_pips: Optional[float] = None
    is_active: bool = False


class KeyLevels(BaseModel):
    instrument: str
    current_price: float
    previous_day: PreviousDayLevels
    price_vs_close: PriceVsClose
    range_position: RangePosition
    sessions: list[SessionRange]
    active_session: Optional[str] = None


class NearestLevel(BaseModel):
    label: str = Field(..., description="e.g. 'Support (PDL)' or 'Resistance (EMA 20)'")
    value: float
    distance: float = Field(..., ge=0)
    distance_percent: float = Field(..., ge=0)
