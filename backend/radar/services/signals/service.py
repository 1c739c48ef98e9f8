"""
Signal Service Implementation

Owns the cache, the upstream fetcher and the macro client for one
process. Every externally triggered computation goes through the
staleness-aware cache; per-timeframe pipelines of an aggregate run
concurrently.
"""

import asyncio
import logging
from dataclasses import replace
from datetime import datetime, timezone
from typing import Awaitable, Callable, Optional, Sequence, TypeVar, Union

from radar.core.config import Settings
from radar.schemas.indicators import IndicatorSet, KeyLevels, NearestLevel, PivotAnalysis
from radar.schemas.market import MacroSnapshot, Quote, Series, Timeframe
from radar.schemas.responses import CachedResponse, CacheStatus
from radar.schemas.signals import (
    AggregateSignal,
    MTFAnalysis,
    PreviousCloseSignal,
    ScoringTableName,
    TimeframeBias,
)
from radar.services.base import (
    BaseService,
    UpstreamFetchError,
    PartialTimeframeError,
    ServiceError,
)
from radar.services.cache import CacheResult, StalenessAwareCache, cache_key
from radar.services.data_ingestion import Instrument, MultiSourceFetcher, get_instrument
from radar.services.indicators import IndicatorPeriods, IndicatorService
from radar.services.indicators.levels import nearest_level
from radar.services.macro import FredClient
from radar.services.signals.aggregator import aggregate, calculate_alignment
from radar.services.signals.timeframe_analyzer import TimeframeAnalyzer, get_scoring_table

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Cache purposes
QUOTE = "quote"
INDICATORS = "indicators"
PIVOTS = "pivots"
KEY_LEVELS = "key_levels"
MACRO = "macro"

MACRO_KEY = cache_key("macro", MACRO)

# Bars needed for levels
PIVOT_DAILY_LOOKBACK = 30
KEY_LEVELS_DAILY_LOOKBACK = 5
SESSION_BARS_LOOKBACK = 96  # 24h of 15m bars

TIMEFRAME_ORDER = list(Timeframe)


def sort_timeframes(timeframes: Sequence[Union[str, Timeframe]]) -> list[Timeframe]:
    """Shortest timeframe first, duplicates removed."""
    unique = {Timeframe(tf) for tf in timeframes}
    return sorted(unique, key=TIMEFRAME_ORDER.index)


class SignalService(BaseService[str, CachedResponse[AggregateSignal]]):
    """
    Signal Service.

    Resolves instruments, fetches through the provider list, computes
    indicators and biases, and wraps every result with cached/stale
    metadata.
    """

    def __init__(
        self,
        settings: Settings,
        fetcher: MultiSourceFetcher,
        fred: Optional[FredClient] = None,
        cache: Optional[StalenessAwareCache] = None,
        indicators: Optional[IndicatorService] = None,
        now: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.settings = settings
        self.fetcher = fetcher
        self.fred = fred
        self.cache = cache if cache is not None else StalenessAwareCache()
        if indicators is None:
            indicators = IndicatorService(IndicatorPeriods.from_settings(settings))
        self.indicators = indicators
        self._now = now

    @property
    def name(self) -> str:
        return "SignalService"

    async def execute(self, input_data: str) -> CachedResponse[AggregateSignal]:
        return await self.signal(input_data)

    async def health_check(self) -> bool:
        return bool(self.fetcher.adapters)

    async def close(self) -> None:
        await self.fetcher.close()
        if self.fred is not None:
            await self.fred.close()

    # =========================================================================
    # Helpers
    # =========================================================================

    def _table(self, table: Optional[Union[str, ScoringTableName]]) -> ScoringTableName:
        return ScoringTableName(table or self.settings.default_scoring_table)

    @staticmethod
    def _respond(
        data: T,
        results: Sequence[CacheResult],
        warnings: Optional[list[str]] = None,
    ) -> CachedResponse[T]:
        """Combine input metadata: cached only if all were, stale if any was."""
        return CachedResponse(
            data=data,
            cached=all(r.cached for r in results),
            stale=any(r.is_stale for r in results),
            last_updated=min(r.last_updated for r in results),
            warnings=warnings or [],
        )

    @staticmethod
    def _stale_warnings(labelled: dict[str, CacheResult]) -> list[str]:
        return [
            f"{label}: serving stale data from {result.last_updated.isoformat()}"
            for label, result in labelled.items()
            if result.is_stale
        ]

    async def _series(self, instrument: Instrument, timeframe: Timeframe, lookback: int) -> Series:
        return await self.fetcher.fetch_series(instrument, timeframe, lookback)

    async def _cached(
        self,
        instrument: str,
        purpose: str,
        ttl: float,
        compute_fn: Callable[[], Awaitable[T]],
        timeframe: Optional[Timeframe] = None,
    ) -> CacheResult[T]:
        key = cache_key(instrument, purpose, timeframe.value if timeframe else None)
        return await self.cache.get_or_compute(key, ttl, compute_fn)

    # =========================================================================
    # Leaf pipelines (fetch + compute, each behind its own cache key)
    # =========================================================================

    async def _indicator_result(self, instrument: Instrument, timeframe: Timeframe) -> CacheResult[IndicatorSet]:
        async def compute() -> IndicatorSet:
            series = await self._series(instrument, timeframe, self.settings.series_lookback)
            return self.indicators.calculate(series)

        return await self._cached(
            instrument.symbol, INDICATORS, self.settings.indicators_ttl, compute, timeframe
        )

    async def _bias_result(
        self,
        instrument: Instrument,
        timeframe: Timeframe,
        table: ScoringTableName,
    ) -> CacheResult[TimeframeBias]:
        """Score the cached indicator snapshot; the bias itself is never cached."""
        result = await self._indicator_result(instrument, timeframe)
        analyzer = TimeframeAnalyzer(get_scoring_table(table))
        return replace(result, value=analyzer.analyze(result.value))

    async def _key_levels_result(self, instrument: Instrument) -> CacheResult[KeyLevels]:
        async def compute() -> KeyLevels:
            daily, intraday = await asyncio.gather(
                self._series(instrument, Timeframe.D1, KEY_LEVELS_DAILY_LOOKBACK),
                self._series(instrument, Timeframe.M15, SESSION_BARS_LOOKBACK),
                return_exceptions=True,
            )
            if isinstance(daily, BaseException):
                raise daily
            if isinstance(intraday, BaseException):
                if not isinstance(intraday, Exception):
                    raise intraday
                logger.warning(f"Session bars unavailable for {instrument.symbol}: {intraday}")
                intraday = None
            return self.indicators.key_levels(daily, intraday, instrument.pip_size, self._now())

        return await self._cached(instrument.symbol, KEY_LEVELS, self.settings.key_levels_ttl, compute)

    # =========================================================================
    # Public queries
    # =========================================================================

    async def quote(self, symbol: str) -> CachedResponse[Quote]:
        instrument = get_instrument(symbol)
        result = await self._cached(
            instrument.symbol, QUOTE, self.settings.quote_ttl,
            lambda: self.fetcher.fetch_quote(instrument),
        )
        return self._respond(result.value, [result], self._stale_warnings({"quote": result}))

    async def indicator_set(self, symbol: str, timeframe: Union[str, Timeframe]) -> CachedResponse[IndicatorSet]:
        instrument = get_instrument(symbol)
        timeframe = Timeframe(timeframe)
        result = await self._indicator_result(instrument, timeframe)
        return self._respond(result.value, [result], self._stale_warnings({timeframe.value: result}))

    async def pivots(self, symbol: str) -> CachedResponse[PivotAnalysis]:
        instrument = get_instrument(symbol)
        lookback = max(PIVOT_DAILY_LOOKBACK, self.settings.atr_period + 2)

        async def compute() -> PivotAnalysis:
            daily = await self._series(instrument, Timeframe.D1, lookback)
            return self.indicators.pivot_analysis(daily)

        result = await self._cached(
            instrument.symbol, PIVOTS, self.settings.pivots_ttl, compute, Timeframe.D1
        )
        return self._respond(result.value, [result], self._stale_warnings({"pivots": result}))

    async def key_levels(self, symbol: str) -> CachedResponse[KeyLevels]:
        instrument = get_instrument(symbol)
        result = await self._key_levels_result(instrument)
        return self._respond(result.value, [result], self._stale_warnings({"key levels": result}))

    async def macro(self) -> CachedResponse[MacroSnapshot]:
        if self.fred is None:
            raise UpstreamFetchError("FRED", "Macro client not configured")
        result = await self.cache.get_or_compute(MACRO_KEY, self.settings.macro_ttl, self.fred.snapshot)
        return self._respond(result.value, [result], self._stale_warnings({"macro": result}))

    def cache_status(self) -> CacheStatus:
        return self.cache.status()

    # =========================================================================
    # Multi-timeframe
    # =========================================================================

    async def _timeframe_biases(
        self,
        instrument: Instrument,
        timeframes: list[Timeframe],
        table: ScoringTableName,
    ) -> dict[Timeframe, CacheResult[TimeframeBias]]:
        """
        Run every timeframe pipeline concurrently.

        Raises:
            PartialTimeframeError: If any timeframe has neither a fresh nor
                a stale value
        """
        outcomes = await asyncio.gather(
            *(self._bias_result(instrument, tf, table) for tf in timeframes),
            return_exceptions=True,
        )

        results: dict[Timeframe, CacheResult[TimeframeBias]] = {}
        failed: dict[str, str] = {}
        for tf, outcome in zip(timeframes, outcomes):
            if isinstance(outcome, BaseException):
                if not isinstance(outcome, Exception):
                    raise outcome
                failed[tf.value] = str(outcome)
            else:
                results[tf] = outcome

        if failed:
            logger.error(f"Timeframes {sorted(failed)} unresolved for {instrument.symbol}: {failed}")
            raise PartialTimeframeError(instrument.symbol, failed)

        return results

    async def mtf(
        self,
        symbol: str,
        table: Optional[Union[str, ScoringTableName]] = None,
        timeframes: Optional[Sequence[Union[str, Timeframe]]] = None,
    ) -> CachedResponse[MTFAnalysis]:
        instrument = get_instrument(symbol)
        table = self._table(table)
        ordered = sort_timeframes(timeframes or self.settings.mtf_timeframes)

        results = await self._timeframe_biases(instrument, ordered, table)
        biases = [results[tf].value for tf in ordered]

        analysis = MTFAnalysis(
            instrument=instrument.symbol,
            timeframes=biases,
            alignment=calculate_alignment(biases),
        )
        warnings = self._stale_warnings({tf.value: r for tf, r in results.items()})
        return self._respond(analysis, list(results.values()), warnings)

    async def signal(
        self,
        symbol: str,
        table: Optional[Union[str, ScoringTableName]] = None,
        timeframes: Optional[Sequence[Union[str, Timeframe]]] = None,
    ) -> CachedResponse[AggregateSignal]:
        """
        Aggregate signal across timeframes plus optional context.

        Key levels (previous-day close) and the momentum-timeframe RSI are
        optional; when unavailable they are left out and reported in
        warnings. Any missing timeframe fails the whole aggregate.
        """
        instrument = get_instrument(symbol)
        table = self._table(table)
        ordered = sort_timeframes(timeframes or self.settings.mtf_timeframes)
        momentum_tf = Timeframe(self.settings.momentum_timeframe)

        async def momentum() -> Optional[CacheResult[IndicatorSet]]:
            if momentum_tf in ordered:
                return None
            return await self._indicator_result(instrument, momentum_tf)

        bias_outcome, levels_outcome, momentum_outcome = await asyncio.gather(
            self._timeframe_biases(instrument, ordered, table),
            self._key_levels_result(instrument),
            momentum(),
            return_exceptions=True,
        )

        if isinstance(bias_outcome, BaseException):
            raise bias_outcome

        results: list[CacheResult] = list(bias_outcome.values())
        labelled: dict[str, CacheResult] = {tf.value: r for tf, r in bias_outcome.items()}
        warnings: list[str] = []

        key_levels: Optional[KeyLevels] = None
        if isinstance(levels_outcome, ServiceError):
            warnings.append(f"Previous-day levels unavailable: {levels_outcome.message}")
        elif isinstance(levels_outcome, BaseException):
            raise levels_outcome
        else:
            key_levels = levels_outcome.value
            results.append(levels_outcome)
            labelled["key levels"] = levels_outcome

        momentum_indicators: Optional[IndicatorSet] = None
        if momentum_tf in bias_outcome:
            momentum_indicators = bias_outcome[momentum_tf].value.indicators
        elif isinstance(momentum_outcome, ServiceError):
            warnings.append(f"RSI momentum ({momentum_tf.value}) unavailable: {momentum_outcome.message}")
        elif isinstance(momentum_outcome, BaseException):
            raise momentum_outcome
        elif momentum_outcome is not None:
            momentum_indicators = momentum_outcome.value
            results.append(momentum_outcome)
            labelled[f"{momentum_tf.value} indicators"] = momentum_outcome

        previous_close = None
        if key_levels is not None:
            previous_close = PreviousCloseSignal(
                above=key_levels.price_vs_close.bullish,
                distance_pips=key_levels.price_vs_close.distance_pips,
            )

        price = None
        if momentum_indicators is not None:
            price = momentum_indicators.price
        elif key_levels is not None:
            price = key_levels.current_price

        signal = aggregate(
            instrument=instrument.symbol,
            timeframes=[bias_outcome[tf].value for tf in ordered],
            previous_close=previous_close,
            rsi=momentum_indicators.rsi if momentum_indicators is not None else None,
            price=price,
            nearest_level=self._nearest_level(price, momentum_indicators, key_levels),
        )

        return self._respond(signal, results, self._stale_warnings(labelled) + warnings)

    @staticmethod
    def _nearest_level(
        price: Optional[float],
        momentum_indicators: Optional[IndicatorSet],
        key_levels: Optional[KeyLevels],
    ) -> Optional[NearestLevel]:
        if price is None:
            return None

        levels: dict[str, float] = {}
        if momentum_indicators is not None:
            fast = momentum_indicators.periods.get("ema_fast", 20)
            slow = momentum_indicators.periods.get("ema_slow", 50)
            levels[f"EMA {fast}"] = momentum_indicators.ema_fast
            levels[f"EMA {slow}"] = momentum_indicators.ema_slow
        if key_levels is not None:
            levels["PDH"] = key_levels.previous_day.high
            levels["PDC"] = key_levels.previous_day.close
            levels["PDL"] = key_levels.previous_day.low

        return nearest_level(price, levels)
