"""
Tests for upstream payload normalization (no network).
"""

import math
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import pandas as pd
import pytest

from radar.schemas.market import Timeframe
from radar.services.base import UpstreamFetchError
from radar.services.data_ingestion import TwelveDataAdapter, YahooAdapter, get_instrument
from radar.services.data_ingestion.twelve_data_adapter import parse_quote, parse_time_series
from radar.services.macro import FredClient
from radar.services.macro.fred_client import numeric_values, year_over_year

EURUSD = get_instrument("EURUSD")
YF_TICKER = "radar.services.data_ingestion.yahoo_adapter.yf.Ticker"


def _row(ts: str, close: float) -> dict:
    return {
        "datetime": ts,
        "open": str(close),
        "high": str(close + 0.001),
        "low": str(close - 0.001),
        "close": str(close),
    }


# =============================================================================
# Twelve Data
# =============================================================================


class TestTwelveDataParsing:
    def test_newest_first_becomes_ascending(self):
        payload = {"values": [
            _row("2024-01-05 14:30:00", 1.0930),
            _row("2024-01-05 14:15:00", 1.0920),
            _row("2024-01-05 14:00:00", 1.0910),
        ]}
        series = parse_time_series(payload, EURUSD, Timeframe.M15)

        assert series.closes == [1.0910, 1.0920, 1.0930]
        assert series.bars[0].timestamp == datetime(2024, 1, 5, 14, 0, tzinfo=timezone.utc)
        assert series.instrument == "EURUSD"
        assert series.source == "twelve_data"

    def test_duplicate_timestamp_keeps_first_listed(self):
        payload = {"values": [
            _row("2024-01-05", 1.0950),
            _row("2024-01-05", 1.0900),
            _row("2024-01-04", 1.0800),
        ]}
        series = parse_time_series(payload, EURUSD, Timeframe.D1)
        assert series.closes == [1.0800, 1.0950]

    def test_missing_values_is_empty_series(self):
        series = parse_time_series({"meta": {}}, EURUSD, Timeframe.H1)
        assert len(series) == 0

    @pytest.mark.parametrize("payload", [
        {"values": "nope"},
        {"values": [{"datetime": "2024-01-05", "open": "1.0"}]},
        {"values": [_row("not a date", 1.0)]},
        {"values": [_row("2024-01-05", -1.0)]},
    ])
    def test_malformed_payload(self, payload):
        with pytest.raises(UpstreamFetchError):
            parse_time_series(payload, EURUSD, Timeframe.D1)

    def test_quote(self):
        quote = parse_quote(
            {
                "close": "1.0950",
                "previous_close": "1.0900",
                "change": "0.0050",
                "percent_change": "0.4587",
                "high": "1.0960",
                "low": "1.0890",
                "timestamp": 1704463200,
            },
            EURUSD,
        )
        assert quote.price == 1.0950
        assert quote.previous_close == 1.0900
        assert quote.change_percent == pytest.approx(0.4587)
        assert quote.timestamp == datetime(2024, 1, 5, 14, 0, tzinfo=timezone.utc)

    def test_quote_derives_change(self):
        quote = parse_quote({"close": "110", "previous_close": "100"}, EURUSD)
        assert quote.change == pytest.approx(10.0)
        assert quote.change_percent == pytest.approx(10.0)

    def test_quote_without_price(self):
        with pytest.raises(UpstreamFetchError):
            parse_quote({"symbol": "EUR/USD"}, EURUSD)

    @pytest.mark.asyncio
    async def test_missing_api_key(self):
        adapter = TwelveDataAdapter(api_key=None)
        with pytest.raises(UpstreamFetchError, match="API key"):
            await adapter.fetch_series(EURUSD, Timeframe.M15, 100)
        await adapter.close()


# =============================================================================
# Yahoo Finance
# =============================================================================


class TestYahooAdapter:
    @pytest.mark.asyncio
    async def test_history_is_cleaned(self):
        index = pd.DatetimeIndex([
            "2024-01-05 14:15",
            "2024-01-05 14:00",
            "2024-01-05 14:30",
            "2024-01-05 14:30",
            "2024-01-05 14:45",
            "2024-01-05 15:00",
        ], tz="UTC")
        frame = pd.DataFrame(
            {
                "Open": [1.092, 1.091, 1.093, 1.093, float("nan"), 0.0],
                "High": [1.093, 1.092, 1.094, 1.095, 1.095, 1.096],
                "Low": [1.091, 1.090, 1.092, 1.092, 1.093, 1.094],
                "Close": [1.0925, 1.0915, 1.0935, 1.0940, 1.094, 1.095],
            },
            index=index,
        )

        with patch(YF_TICKER) as ticker:
            ticker.return_value.history.return_value = frame
            series = await YahooAdapter().fetch_series(EURUSD, Timeframe.M15, 100)

        ticker.assert_called_once_with("EURUSD=X")
        # NaN and zero rows dropped, duplicate keeps the later row, sorted ascending
        assert series.closes == [1.0915, 1.0925, 1.0940]
        assert series.bars[0].timestamp == datetime(2024, 1, 5, 14, 0, tzinfo=timezone.utc)
        assert series.source == "yahoo"

    @pytest.mark.asyncio
    async def test_lookback_keeps_most_recent(self):
        index = pd.date_range("2024-01-01", periods=10, freq="D", tz="UTC")
        closes = [100.0 + i for i in range(10)]
        frame = pd.DataFrame(
            {"Open": closes, "High": closes, "Low": closes, "Close": closes},
            index=index,
        )

        with patch(YF_TICKER) as ticker:
            ticker.return_value.history.return_value = frame
            series = await YahooAdapter().fetch_series(EURUSD, Timeframe.D1, 3)

        assert series.closes == [107.0, 108.0, 109.0]

    @pytest.mark.asyncio
    async def test_empty_history(self):
        with patch(YF_TICKER) as ticker:
            ticker.return_value.history.return_value = pd.DataFrame()
            series = await YahooAdapter().fetch_series(EURUSD, Timeframe.H1, 50)
        assert len(series) == 0

    @pytest.mark.asyncio
    async def test_four_hour_not_supported(self):
        with pytest.raises(UpstreamFetchError, match="not supported"):
            await YahooAdapter().fetch_series(EURUSD, Timeframe.H4, 50)

    @pytest.mark.asyncio
    async def test_library_error_is_wrapped(self):
        with patch(YF_TICKER) as ticker:
            ticker.return_value.history.side_effect = RuntimeError("boom")
            with pytest.raises(UpstreamFetchError):
                await YahooAdapter().fetch_series(EURUSD, Timeframe.M15, 50)

    @pytest.mark.asyncio
    async def test_quote(self):
        info = MagicMock(last_price=1.0950, previous_close=1.0900, day_high=1.0960, day_low=math.nan)
        with patch(YF_TICKER) as ticker:
            ticker.return_value.fast_info = info
            quote = await YahooAdapter().fetch_quote(EURUSD)

        assert quote.price == 1.0950
        assert quote.change == pytest.approx(0.0050)
        assert quote.day_low is None

    @pytest.mark.asyncio
    async def test_quote_without_price(self):
        info = MagicMock(last_price=math.nan, previous_close=1.09, day_high=None, day_low=None)
        with patch(YF_TICKER) as ticker:
            ticker.return_value.fast_info = info
            with pytest.raises(UpstreamFetchError):
                await YahooAdapter().fetch_quote(EURUSD)


# =============================================================================
# FRED
# =============================================================================


class TestFred:
    def test_numeric_values_skip_placeholders(self):
        observations = [{"value": "4.25"}, {"value": "."}, {"value": None}, {"value": "4.10"}]
        assert numeric_values(observations) == [4.25, 4.10]

    def test_year_over_year(self):
        values = [103.0] + [101.0] * 11 + [100.0]
        assert year_over_year(values) == pytest.approx(3.0)

    def test_year_over_year_needs_thirteen_months(self):
        assert year_over_year([103.0] * 12) is None

    def test_year_over_year_zero_base(self):
        assert year_over_year([1.0] * 12 + [0.0]) is None

    @pytest.mark.asyncio
    async def test_missing_api_key(self):
        client = FredClient(api_key=None)
        with pytest.raises(UpstreamFetchError, match="API key"):
            await client.snapshot()
        await client.close()
