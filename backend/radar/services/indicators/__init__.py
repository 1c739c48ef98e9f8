"""
Indicator Engine Service

CONTRACT:
    Input:  Series (ascending OHLC bars)
    Output: IndicatorSet, PivotAnalysis, KeyLevels

RESPONSIBILITIES:
    - Calculate EMA, SMA, RSI and ATR
    - Calculate classic pivot levels and ATR range usage
    - Derive previous-day levels and forex session ranges

PURE PYTHON - No I/O.
Uses NumPy for calculations.
All math is deterministic and reproducible.
"""

from radar.services.indicators.interface import IndicatorServiceInterface
from radar.services.indicators.service import IndicatorService, IndicatorPeriods

__all__ = [
    "IndicatorServiceInterface",
    "IndicatorService",
    "IndicatorPeriods",
]
