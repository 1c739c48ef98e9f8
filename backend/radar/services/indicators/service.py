"""
Indicator Engine Service Implementation

Calculates the indicator snapshot from OHLC series.
Pure Python/NumPy calculations; values are never rounded here.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

import numpy as np

from radar.core.config import Settings
from radar.schemas.market import Bar, Series
from radar.schemas.indicators import IndicatorSet, KeyLevels, PivotAnalysis
from radar.services.base import InsufficientDataError
from radar.services.indicators.interface import IndicatorServiceInterface
from radar.services.indicators.calculations import sma, ema, rsi, atr
from radar.services.indicators import levels


def _bars_to_arrays(bars: tuple[Bar, ...]) -> tuple:
    """Convert bars to numpy arrays."""
    highs = np.array([b.high for b in bars])
    lows = np.array([b.low for b in bars])
    closes = np.array([b.close for b in bars])
    return highs, lows, closes


@dataclass(frozen=True)
class IndicatorPeriods:
    ema_fast: int = 20
    ema_slow: int = 50
    sma_fast: int = 20
    sma_slow: int = 50
    rsi: int = 14
    atr: int = 14

    @classmethod
    def from_settings(cls, settings: Settings) -> "IndicatorPeriods":
        return cls(
            ema_fast=settings.ema_fast_period,
            ema_slow=settings.ema_slow_period,
            sma_fast=settings.sma_fast_period,
            sma_slow=settings.sma_slow_period,
            rsi=settings.rsi_period,
            atr=settings.atr_period,
        )

    def as_dict(self) -> dict[str, int]:
        return {
            "ema_fast": self.ema_fast,
            "ema_slow": self.ema_slow,
            "sma_fast": self.sma_fast,
            "sma_slow": self.sma_slow,
            "rsi": self.rsi,
            "atr": self.atr,
        }


class IndicatorService(IndicatorServiceInterface):
    """
    Indicator Engine Service.

    Calculates technical indicators for one series at a time.
    All calculations are deterministic and reproducible.
    """

    def __init__(self, periods: Optional[IndicatorPeriods] = None):
        self.periods = periods or IndicatorPeriods()

    @property
    def name(self) -> str:
        return "IndicatorService"

    async def execute(self, input_data: Series) -> IndicatorSet:
        return self.calculate(input_data)

    def calculate(self, series: Series) -> IndicatorSet:
        """Calculate the indicator snapshot for a single series."""
        if len(series) == 0:
            raise InsufficientDataError(
                f"No bars for {series.instrument} {series.timeframe.value}",
                required=1,
                available=0,
            )

        highs, lows, closes = _bars_to_arrays(series.bars)
        p = self.periods

        # ATR has no fallback; omit it rather than fail the whole snapshot
        atr_value = None
        if len(closes) >= p.atr + 1:
            atr_value = atr(highs, lows, closes, p.atr)

        return IndicatorSet(
            instrument=series.instrument,
            timeframe=series.timeframe,
            price=float(closes[-1]),
            previous_close=float(closes[-2]) if len(closes) > 1 else None,
            ema_fast=ema(closes, p.ema_fast),
            ema_slow=ema(closes, p.ema_slow),
            sma_fast=sma(closes, p.sma_fast),
            sma_slow=sma(closes, p.sma_slow),
            rsi=rsi(closes, p.rsi),
            atr=atr_value,
            periods=p.as_dict(),
            bar_count=len(closes),
            source=series.source,
            as_of=series.bars[-1].timestamp,
        )

    def pivot_analysis(self, daily: Series) -> PivotAnalysis:
        return levels.analyze_pivots(daily, self.periods.atr)

    def key_levels(
        self,
        daily: Series,
        intraday: Optional[Series],
        pip_size: float,
        now: datetime,
    ) -> KeyLevels:
        return levels.build_key_levels(daily, intraday, pip_size, now)

    async def health_check(self) -> bool:
        """Indicator service is always healthy (pure computation)."""
        return True
