"""
Yahoo Finance Data Adapter

Fetches market data from Yahoo Finance through yfinance.
yfinance is blocking, so every call runs in a worker thread.
"""

import asyncio
import logging
import math
from datetime import datetime, timezone

import yfinance as yf

from radar.schemas.market import Bar, Quote, Series, Timeframe
from radar.services.base import UpstreamFetchError
from radar.services.data_ingestion.instruments import Instrument
from radar.services.data_ingestion.interface import UpstreamAdapter

logger = logging.getLogger(__name__)

OHLC_COLUMNS = ["Open", "High", "Low", "Close"]


# Timeframe mapping for yfinance (no native 4h interval)
TIMEFRAME_MAP = {
    Timeframe.M1: "1m",
    Timeframe.M5: "5m",
    Timeframe.M15: "15m",
    Timeframe.M30: "30m",
    Timeframe.H1: "1h",
    Timeframe.D1: "1d",
    Timeframe.W1: "1wk",
}

# History window per timeframe, inside yfinance's intraday limits
PERIOD_MAP = {
    Timeframe.M1: "5d",
    Timeframe.M5: "5d",
    Timeframe.M15: "10d",
    Timeframe.M30: "1mo",
    Timeframe.H1: "3mo",
    Timeframe.W1: "5y",
}


def _daily_period(lookback: int) -> str:
    # ~252 trading days per year
    if lookback <= 252:
        return "1y"
    elif lookback <= 504:
        return "2y"
    elif lookback <= 1260:
        return "5y"
    return "max"


def _to_utc(ts: datetime) -> datetime:
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def _valid_number(value) -> bool:
    return value is not None and not math.isnan(float(value))


class YahooAdapter(UpstreamAdapter):
    """Yahoo Finance provider (free, no API key)."""

    @property
    def name(self) -> str:
        return "yahoo"

    def _error(self, message: str) -> UpstreamFetchError:
        return UpstreamFetchError("YahooFinance", message)

    async def fetch_series(
        self,
        instrument: Instrument,
        timeframe: Timeframe,
        lookback: int,
    ) -> Series:
        interval = TIMEFRAME_MAP.get(timeframe)
        if interval is None:
            raise self._error(f"Timeframe {timeframe.value} not supported")

        period = _daily_period(lookback) if timeframe == Timeframe.D1 else PERIOD_MAP[timeframe]
        symbol = instrument.yahoo_symbol
        logger.info(f"Fetching {symbol} {interval} ({period}) from Yahoo Finance...")

        try:
            hist = await asyncio.to_thread(
                yf.Ticker(symbol).history, period=period, interval=interval
            )
        except Exception as e:
            raise self._error(f"History request failed for {symbol}: {e}") from e

        if hist is None:
            raise self._error(f"No history payload for {symbol}")

        bars = []
        if not hist.empty:
            missing = [c for c in OHLC_COLUMNS if c not in hist.columns]
            if missing:
                raise self._error(f"Malformed history for {symbol}: missing {missing}")

            hist = hist.dropna(subset=OHLC_COLUMNS)
            hist = hist[(hist[OHLC_COLUMNS] > 0).all(axis=1)]
            hist = hist[~hist.index.duplicated(keep="last")].sort_index()

            # Limit to lookback
            hist = hist.tail(lookback)

            for idx, row in hist.iterrows():
                bars.append(Bar(
                    timestamp=_to_utc(idx.to_pydatetime()),
                    open=float(row["Open"]),
                    high=float(row["High"]),
                    low=float(row["Low"]),
                    close=float(row["Close"]),
                ))

        if not bars:
            logger.warning(f"No data returned for {symbol}")

        return Series(
            instrument=instrument.symbol,
            timeframe=timeframe,
            bars=tuple(bars),
            source=self.name,
            fetched_at=datetime.now(timezone.utc),
        )

    async def fetch_quote(self, instrument: Instrument) -> Quote:
        symbol = instrument.yahoo_symbol

        def _read_fast_info() -> dict:
            info = yf.Ticker(symbol).fast_info
            return {
                "price": info.last_price,
                "previous_close": info.previous_close,
                "day_high": info.day_high,
                "day_low": info.day_low,
            }

        try:
            info = await asyncio.to_thread(_read_fast_info)
        except Exception as e:
            raise self._error(f"Quote request failed for {symbol}: {e}") from e

        price = info["price"]
        if not _valid_number(price) or float(price) <= 0:
            raise self._error(f"No price in quote for {symbol}")
        price = float(price)

        previous_close = float(info["previous_close"]) if _valid_number(info["previous_close"]) else None
        change = change_percent = None
        if previous_close:
            change = price - previous_close
            change_percent = (change / previous_close) * 100

        return Quote(
            instrument=instrument.symbol,
            price=price,
            previous_close=previous_close,
            day_high=float(info["day_high"]) if _valid_number(info["day_high"]) else None,
            day_low=float(info["day_low"]) if _valid_number(info["day_low"]) else None,
            change=change,
            change_percent=change_percent,
            source=self.name,
            timestamp=datetime.now(timezone.utc),
        )
