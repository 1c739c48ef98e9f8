"""
Multi-Source Data Fetcher

Tries upstream adapters in priority order until one succeeds.
Every attempt is bounded by the upstream timeout; a timeout counts as a
failure and moves on to the next adapter.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Sequence, TypeVar

from radar.core.config import Settings
from radar.schemas.market import Quote, Series, Timeframe
from radar.services.base import AllSourcesFailedError
from radar.services.data_ingestion.instruments import Instrument
from radar.services.data_ingestion.interface import UpstreamAdapter
from radar.services.data_ingestion.twelve_data_adapter import TwelveDataAdapter
from radar.services.data_ingestion.yahoo_adapter import YahooAdapter

logger = logging.getLogger(__name__)

T = TypeVar("T")


class MultiSourceFetcher:
    """
    Ordered provider strategy list.

    An empty-but-valid Series from a provider is a success and is
    returned as-is; callers needing a minimum bar count check it.
    """

    def __init__(self, adapters: Sequence[UpstreamAdapter], timeout: float = 20.0):
        self.adapters = list(adapters)
        self.timeout = timeout

    @property
    def source_names(self) -> list[str]:
        return [a.name for a in self.adapters]

    async def _first_success(
        self,
        what: str,
        call: Callable[[UpstreamAdapter], Awaitable[T]],
    ) -> T:
        errors: dict[str, str] = {}

        for adapter in self.adapters:
            try:
                return await asyncio.wait_for(call(adapter), timeout=self.timeout)
            except asyncio.TimeoutError:
                errors[adapter.name] = f"timed out after {self.timeout:.0f}s"
                logger.warning(f"{adapter.name} timed out for {what}")
            except Exception as e:
                errors[adapter.name] = str(e)
                logger.warning(f"{adapter.name} failed for {what}: {e}")

        logger.error(f"No data available for {what} from any source")
        raise AllSourcesFailedError(what, errors)

    async def fetch_series(
        self,
        instrument: Instrument,
        timeframe: Timeframe,
        lookback: int,
    ) -> Series:
        what = f"{instrument.symbol} {timeframe.value}"
        series = await self._first_success(
            what, lambda a: a.fetch_series(instrument, timeframe, lookback)
        )
        logger.info(f"{series.source}: {what} -> {len(series)} bars")
        return series

    async def fetch_quote(self, instrument: Instrument) -> Quote:
        quote = await self._first_success(
            f"{instrument.symbol} quote", lambda a: a.fetch_quote(instrument)
        )
        logger.info(f"{quote.source}: {instrument.symbol} @ {quote.price}")
        return quote

    async def close(self) -> None:
        for adapter in self.adapters:
            await adapter.close()


def build_adapters(settings: Settings) -> list[UpstreamAdapter]:
    """Instantiate adapters in the configured priority order."""
    factories: dict[str, Callable[[], UpstreamAdapter]] = {
        "yahoo": YahooAdapter,
        "twelve_data": lambda: TwelveDataAdapter(
            api_key=settings.twelve_data_api_key,
            base_url=settings.twelve_data_base_url,
            timeout=settings.upstream_timeout_seconds,
        ),
    }

    adapters = []
    for name in settings.data_source_priority:
        factory = factories.get(name)
        if factory is None:
            logger.warning(f"Unknown data source '{name}' in priority list, skipping")
            continue
        adapters.append(factory())
    return adapters


def build_fetcher(settings: Settings) -> MultiSourceFetcher:
    return MultiSourceFetcher(build_adapters(settings), timeout=settings.upstream_timeout_seconds)
