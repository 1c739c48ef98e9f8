"""
CONTRACT 1: Market Data

Input:  (instrument, timeframe, lookback) from the signal service
Output: Series / Quote

Raw upstream data normalized into a standard shape. A Series is produced
by exactly one fetch and replaced wholesale on refresh, never mutated.
"""

from datetime import datetime
from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, model_validator


# =============================================================================
# ENUMS
# =============================================================================


class Timeframe(str, Enum):
    M1 = "1m"
    M5 = "5m"
    M15 = "15m"
    M30 = "30m"
    H1 = "1h"
    H4 = "4h"
    D1 = "1d"
    W1 = "1w"


class AssetClass(str, Enum):
    FOREX = "forex"
    METAL = "metal"
    INDEX = "index"


# =============================================================================
# Bars and Series
# =============================================================================


class Bar(BaseModel):
    """Single OHLC sample."""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    open: float = Field(..., gt=0)
    high: float = Field(..., gt=0)
    low: float = Field(..., gt=0)
    close: float = Field(..., gt=0)


class Series(BaseModel):
    """
    Ordered OHLC bars for one (instrument, timeframe) pair.

    Bars are ascending by time with no duplicate timestamps. Gaps are
    tolerated and never filled.
    """

    model_config = ConfigDict(frozen=True)

    instrument: str
    timeframe: Timeframe
    bars: tuple[Bar, ...]
    source: str = Field(..., description="Provider that produced the bars")
    fetched_at: datetime

    @model_validator(mode="after")
    def _check_ordering(self) -> "Series":
        for prev, curr in zip(self.bars, self.bars[1:]):
            if curr.timestamp <= prev.timestamp:
                raise ValueError(
                    f"Bars must be strictly ascending by timestamp "
                    f"({prev.timestamp.isoformat()} >= {curr.timestamp.isoformat()})"
                )
        return self

    def __len__(self) -> int:
        return len(self.bars)

    @property
    def closes(self) -> list[float]:
        return [b.close for b in self.bars]

    @property
    def last_close(self) -> Optional[float]:
        return self.bars[-1].close if self.bars else None


class Quote(BaseModel):
    """Single-point snapshot, used where a full series is unnecessary."""

    model_config = ConfigDict(frozen=True)

    instrument: str
    price: float = Field(..., gt=0)
    previous_close: Optional[float] = None
    day_high: Optional[float] = None
    day_low: Optional[float] = None
    change: Optional[float] = None
    change_percent: Optional[float] = None
    source: str
    timestamp: datetime


class MacroSnapshot(BaseModel):
    """Low-frequency macro series (updated monthly or daily upstream)."""

    us10y_yield: Optional[float] = Field(default=None, description="US 10Y Treasury yield, %")
    us_cpi_yoy: Optional[float] = Field(default=None, description="US CPI, % year over year")
    japan_cpi_yoy: Optional[float] = Field(default=None, description="Japan CPI, % year over year")
    source: str = "FRED"
