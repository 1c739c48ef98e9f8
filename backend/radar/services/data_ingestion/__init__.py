"""
Data Ingestion Service

CONTRACT:
    Input:  (Instrument, Timeframe, lookback)
    Output: Series | Quote

RESPONSIBILITIES:
    - Fetch OHLC series and quotes from upstream providers
    - Normalize payloads into ascending, de-duplicated bars
    - Fail over across providers in priority order
    - Resolve canonical instrument ids to provider symbols

Providers: Yahoo Finance (yfinance), Twelve Data (REST).
"""

from radar.services.data_ingestion.instruments import (
    Instrument,
    INSTRUMENTS,
    get_instrument,
    search_instruments,
)
from radar.services.data_ingestion.interface import UpstreamAdapter
from radar.services.data_ingestion.multi_source import MultiSourceFetcher, build_fetcher
from radar.services.data_ingestion.twelve_data_adapter import TwelveDataAdapter
from radar.services.data_ingestion.yahoo_adapter import YahooAdapter

__all__ = [
    "Instrument",
    "INSTRUMENTS",
    "get_instrument",
    "search_instruments",
    "UpstreamAdapter",
    "MultiSourceFetcher",
    "build_fetcher",
    "TwelveDataAdapter",
    "YahooAdapter",
]
