"""
Bias Radar - Test Configuration & Fixtures
Shared fixtures for all test modules. No network access.
"""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional, Sequence, Union

import pytest

from radar.core.config import Settings
from radar.schemas.market import Bar, Quote, Series, Timeframe
from radar.services.base import UpstreamFetchError
from radar.services.cache import StalenessAwareCache
from radar.services.data_ingestion import Instrument, MultiSourceFetcher, UpstreamAdapter
from radar.services.signals import SignalService

BASE_TIME = datetime(2024, 1, 8, 0, 0, tzinfo=timezone.utc)  # Monday

STEP = {
    Timeframe.M1: timedelta(minutes=1),
    Timeframe.M5: timedelta(minutes=5),
    Timeframe.M15: timedelta(minutes=15),
    Timeframe.M30: timedelta(minutes=30),
    Timeframe.H1: timedelta(hours=1),
    Timeframe.H4: timedelta(hours=4),
    Timeframe.D1: timedelta(days=1),
    Timeframe.W1: timedelta(weeks=1),
}


def build_series(
    closes: Sequence[float],
    timeframe: Timeframe = Timeframe.M15,
    instrument: str = "USDJPY",
    spread: float = 0.5,
    start: datetime = BASE_TIME,
    source: str = "scripted",
) -> Series:
    """Series with high/low at close +/- spread and open at the prior close."""
    step = STEP[timeframe]
    bars = []
    for i, close in enumerate(closes):
        open_ = closes[i - 1] if i > 0 else close
        bars.append(Bar(
            timestamp=start + i * step,
            open=open_,
            high=max(open_, close) + spread,
            low=min(open_, close) - spread,
            close=close,
        ))
    return Series(
        instrument=instrument,
        timeframe=timeframe,
        bars=tuple(bars),
        source=source,
        fetched_at=start + len(closes) * step,
    )


class FakeClock:
    """Controllable replacement for time.time."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


Response = Union[Series, Exception, Callable[[], Series]]


class ScriptedAdapter(UpstreamAdapter):
    """
    In-memory provider.

    Series responses are keyed by timeframe; a value may be a Series, an
    exception to raise, or a callable producing either.
    """

    def __init__(
        self,
        name: str = "scripted",
        series: Optional[dict[Timeframe, Response]] = None,
        quote: Optional[Union[Quote, Exception]] = None,
        delay: float = 0.0,
    ):
        self._name = name
        self.series = dict(series or {})
        self.quote = quote
        self.delay = delay
        self.calls: list[tuple[str, Timeframe, int]] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.closed = False

    @property
    def name(self) -> str:
        return self._name

    async def fetch_series(self, instrument: Instrument, timeframe: Timeframe, lookback: int) -> Series:
        self.calls.append((instrument.symbol, timeframe, lookback))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            response = self.series.get(timeframe)
            if response is None:
                raise UpstreamFetchError(self._name, f"no script for {timeframe.value}")
            if callable(response) and not isinstance(response, Series):
                response = response()
            if isinstance(response, Exception):
                raise response
            return response.model_copy(update={"instrument": instrument.symbol, "source": self._name})
        finally:
            self.in_flight -= 1

    async def fetch_quote(self, instrument: Instrument) -> Quote:
        self.calls.append((instrument.symbol, None, 0))
        if self.quote is None:
            raise UpstreamFetchError(self._name, "no quote scripted")
        if isinstance(self.quote, Exception):
            raise self.quote
        return self.quote

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def make_series():
    return build_series


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def settings():
    return Settings(
        twelve_data_api_key=None,
        fred_api_key=None,
        data_source_priority=["yahoo", "twelve_data"],
        mtf_timeframes=["5m", "15m", "1h"],
        momentum_timeframe="15m",
        default_scoring_table="standard",
    )


@pytest.fixture
def rising_closes():
    """Steady uptrend: every timeframe scores fully bullish."""
    return [100 + i * 0.5 for i in range(80)]


@pytest.fixture
def falling_closes():
    return [200 - i * 0.5 for i in range(80)]


@pytest.fixture
def daily_closes():
    return [100 + (i % 5) for i in range(30)]


@pytest.fixture
def bullish_adapter(rising_closes, daily_closes):
    return ScriptedAdapter(
        name="primary",
        series={
            Timeframe.M5: build_series(rising_closes, Timeframe.M5),
            Timeframe.M15: build_series(rising_closes, Timeframe.M15),
            Timeframe.H1: build_series(rising_closes, Timeframe.H1),
            Timeframe.D1: build_series(daily_closes, Timeframe.D1),
        },
    )


@pytest.fixture
def make_service(settings, clock):
    """Build a SignalService over scripted adapters with a fake clock."""

    def _make(*adapters: UpstreamAdapter, now: Optional[datetime] = None) -> SignalService:
        now = now or BASE_TIME + timedelta(days=40)
        return SignalService(
            settings=settings,
            fetcher=MultiSourceFetcher(list(adapters), timeout=1.0),
            cache=StalenessAwareCache(clock=clock),
            now=lambda: now,
        )

    return _make
