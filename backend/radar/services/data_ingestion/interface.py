"""
Upstream Adapter Interface

Defines the contract every market data provider implements.
"""

from abc import ABC, abstractmethod

from radar.schemas.market import Quote, Series, Timeframe
from radar.services.data_ingestion.instruments import Instrument


class UpstreamAdapter(ABC):
    """
    Upstream Adapter Contract.

    fetch_series:
        - returns bars ascending by time, possibly fewer than requested
        - an empty Series is a valid result, not a failure

    fetch_quote:
        - single-point snapshot (price, previous close, day high/low)

    Both raise UpstreamFetchError (or a subclass) on network, HTTP,
    rate-limit or malformed-payload failures.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name for logging and Series.source."""
        pass

    @abstractmethod
    async def fetch_series(
        self,
        instrument: Instrument,
        timeframe: Timeframe,
        lookback: int,
    ) -> Series:
        """Fetch up to `lookback` most recent bars."""
        pass

    @abstractmethod
    async def fetch_quote(self, instrument: Instrument) -> Quote:
        """Fetch a single-point quote."""
        pass

    async def close(self) -> None:
        """Release any held connections."""
        return None
