"""
Twelve Data Adapter

Fetches OHLC series and quotes from the Twelve Data REST API.
Requires TWELVE_DATA_API_KEY; free tier is heavily rate limited.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Optional

import aiohttp

from radar.schemas.market import Bar, Quote, Series, Timeframe
from radar.services.base import RateLimitError, UpstreamFetchError
from radar.services.data_ingestion.instruments import Instrument
from radar.services.data_ingestion.interface import UpstreamAdapter

logger = logging.getLogger(__name__)

SERVICE_NAME = "TwelveData"
MAX_OUTPUT_SIZE = 5000

INTERVAL_MAP = {
    Timeframe.M1: "1min",
    Timeframe.M5: "5min",
    Timeframe.M15: "15min",
    Timeframe.M30: "30min",
    Timeframe.H1: "1h",
    Timeframe.H4: "4h",
    Timeframe.D1: "1day",
    Timeframe.W1: "1week",
}


def _parse_timestamp(value: str) -> datetime:
    # "2024-01-05 14:15:00" intraday, "2024-01-05" daily; requested in UTC
    return datetime.fromisoformat(value).replace(tzinfo=timezone.utc)


def _optional_float(payload: dict, key: str) -> Optional[float]:
    value = payload.get(key)
    if value in (None, ""):
        return None
    return float(value)


def parse_time_series(
    payload: dict[str, Any],
    instrument: Instrument,
    timeframe: Timeframe,
    source: str = "twelve_data",
) -> Series:
    """
    Convert a /time_series payload into an ascending Series.

    The API returns newest first; a duplicated timestamp keeps the row
    listed first.
    """
    values = payload.get("values")
    if values is None:
        return Series(
            instrument=instrument.symbol,
            timeframe=timeframe,
            bars=(),
            source=source,
            fetched_at=datetime.now(timezone.utc),
        )
    if not isinstance(values, list):
        raise UpstreamFetchError(SERVICE_NAME, "Malformed time_series payload: 'values' is not a list")

    by_time: dict[datetime, Bar] = {}
    try:
        for row in values:
            bar = Bar(
                timestamp=_parse_timestamp(row["datetime"]),
                open=float(row["open"]),
                high=float(row["high"]),
                low=float(row["low"]),
                close=float(row["close"]),
            )
            by_time.setdefault(bar.timestamp, bar)
    except (KeyError, TypeError, ValueError) as e:
        raise UpstreamFetchError(SERVICE_NAME, f"Malformed time_series row: {e}") from e

    bars = tuple(by_time[ts] for ts in sorted(by_time))
    return Series(
        instrument=instrument.symbol,
        timeframe=timeframe,
        bars=bars,
        source=source,
        fetched_at=datetime.now(timezone.utc),
    )


def parse_quote(payload: dict[str, Any], instrument: Instrument, source: str = "twelve_data") -> Quote:
    try:
        price = float(payload["close"])
        previous_close = _optional_float(payload, "previous_close")
        change = _optional_float(payload, "change")
        change_percent = _optional_float(payload, "percent_change")
        day_high = _optional_float(payload, "high")
        day_low = _optional_float(payload, "low")
    except (KeyError, TypeError, ValueError) as e:
        raise UpstreamFetchError(SERVICE_NAME, f"Malformed quote payload: {e}") from e

    if price <= 0:
        raise UpstreamFetchError(SERVICE_NAME, f"Non-positive price in quote for {instrument.symbol}")

    if change is None and previous_close:
        change = price - previous_close
        change_percent = (change / previous_close) * 100

    timestamp = datetime.now(timezone.utc)
    if payload.get("timestamp"):
        timestamp = datetime.fromtimestamp(int(payload["timestamp"]), tz=timezone.utc)

    return Quote(
        instrument=instrument.symbol,
        price=price,
        previous_close=previous_close,
        day_high=day_high,
        day_low=day_low,
        change=change,
        change_percent=change_percent,
        source=source,
        timestamp=timestamp,
    )


class TwelveDataAdapter(UpstreamAdapter):
    """Twelve Data provider (API key required)."""

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = "https://api.twelvedata.com",
        timeout: float = 20.0,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session: Optional[aiohttp.ClientSession] = None

    @property
    def name(self) -> str:
        return "twelve_data"

    async def _ensure_session(self) -> aiohttp.ClientSession:
        """Ensure we have an active HTTP session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            )
        return self._session

    async def close(self) -> None:
        """Close the HTTP session."""
        if self._session and not self._session.closed:
            await self._session.close()

    async def _get_json(self, path: str, params: dict[str, Any]) -> dict[str, Any]:
        if not self.api_key:
            raise UpstreamFetchError(SERVICE_NAME, "API key not configured")

        session = await self._ensure_session()
        url = f"{self.base_url}/{path}"

        try:
            async with session.get(url, params={**params, "apikey": self.api_key}) as response:
                if response.status == 429:
                    raise RateLimitError(SERVICE_NAME, "Rate limited (HTTP 429)")
                if response.status != 200:
                    raise UpstreamFetchError(SERVICE_NAME, f"{path} returned HTTP {response.status}")
                payload = await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise UpstreamFetchError(SERVICE_NAME, f"{path} request failed: {e!r}") from e

        if not isinstance(payload, dict):
            raise UpstreamFetchError(SERVICE_NAME, f"Malformed {path} payload")

        # Errors come back as HTTP 200 with a status field
        if payload.get("status") == "error":
            message = payload.get("message", "unknown error")
            if payload.get("code") == 429:
                raise RateLimitError(SERVICE_NAME, message)
            raise UpstreamFetchError(SERVICE_NAME, message)

        return payload

    async def fetch_series(
        self,
        instrument: Instrument,
        timeframe: Timeframe,
        lookback: int,
    ) -> Series:
        payload = await self._get_json(
            "time_series",
            {
                "symbol": instrument.twelve_data_symbol,
                "interval": INTERVAL_MAP[timeframe],
                "outputsize": min(lookback, MAX_OUTPUT_SIZE),
                "timezone": "UTC",
            },
        )
        series = parse_time_series(payload, instrument, timeframe, source=self.name)
        logger.info(f"Twelve Data: {instrument.symbol} {timeframe.value} -> {len(series)} bars")
        return series

    async def fetch_quote(self, instrument: Instrument) -> Quote:
        payload = await self._get_json("quote", {"symbol": instrument.twelve_data_symbol})
        return parse_quote(payload, instrument, source=self.name)
