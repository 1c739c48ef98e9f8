"""
Indicator Engine Service Interface

Defines the contract for the indicator calculation layer.
"""

from abc import abstractmethod
from datetime import datetime
from typing import Optional

from radar.services.base import BaseService
from radar.schemas.market import Series
from radar.schemas.indicators import IndicatorSet, KeyLevels, PivotAnalysis


class IndicatorServiceInterface(BaseService[Series, IndicatorSet]):
    """
    Indicator Engine Service Contract.

    INPUT: Series
        - bars: ascending OHLC bars for one instrument/timeframe

    OUTPUT: IndicatorSet
        - price, EMA/SMA fast and slow, RSI, ATR (when enough bars)
    """

    @property
    def name(self) -> str:
        return "IndicatorService"

    @abstractmethod
    async def execute(self, input_data: Series) -> IndicatorSet:
        """Calculate the indicator snapshot for one series."""
        pass

    @abstractmethod
    def calculate(self, series: Series) -> IndicatorSet:
        """
        Calculate the indicator snapshot synchronously.

        Raises:
            InsufficientDataError: If the series has no bars
        """
        pass

    @abstractmethod
    def pivot_analysis(self, daily: Series) -> PivotAnalysis:
        """Classic pivots, ATR and range analysis from daily bars."""
        pass

    @abstractmethod
    def key_levels(
        self,
        daily: Series,
        intraday: Optional[Series],
        pip_size: float,
        now: datetime,
    ) -> KeyLevels:
        """Previous-day levels and session ranges."""
        pass

    @abstractmethod
    async def health_check(self) -> bool:
        """Indicator service is always healthy (pure computation)."""
        pass
