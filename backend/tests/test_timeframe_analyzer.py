"""
Tests for per-timeframe scoring.
"""

from datetime import datetime, timezone

import pytest

from radar.schemas.indicators import IndicatorSet
from radar.schemas.market import Timeframe
from radar.schemas.signals import Bias, ScoringTableName, Trend
from radar.services.indicators import IndicatorService
from radar.services.signals import STANDARD, ZONED, TimeframeAnalyzer, get_scoring_table
from radar.services.signals.timeframe_analyzer import zoned_rsi_score


def make_indicators(
    price: float,
    ema_fast: float,
    ema_slow: float,
    rsi: float,
    timeframe: Timeframe = Timeframe.M15,
) -> IndicatorSet:
    return IndicatorSet(
        instrument="EURUSD",
        timeframe=timeframe,
        price=price,
        ema_fast=ema_fast,
        ema_slow=ema_slow,
        sma_fast=ema_fast,
        sma_slow=ema_slow,
        rsi=rsi,
        periods={"ema_fast": 20, "ema_slow": 50},
        bar_count=100,
        source="test",
        as_of=datetime(2024, 1, 8, tzinfo=timezone.utc),
    )


class TestEndToEnd:
    """19 flat closes followed by a 5-step rally."""

    @pytest.fixture
    def indicators(self, make_series):
        closes = [100.0] * 19 + [101.0, 102.0, 103.0, 104.0, 105.0]
        return IndicatorService().calculate(make_series(closes, Timeframe.M15, instrument="EURUSD"))

    def test_indicator_values(self, indicators):
        assert indicators.price == 105.0
        assert indicators.ema_fast == pytest.approx(101.229324, abs=1e-6)
        # 24 closes < 50: slow averages fall back to the mean of all closes
        assert indicators.ema_slow == pytest.approx(100.625)
        assert indicators.sma_slow == pytest.approx(100.625)
        assert indicators.rsi == 100.0

    def test_standard_table(self, indicators):
        result = TimeframeAnalyzer(STANDARD).analyze(indicators)
        assert result.score == 100
        assert result.bias == Bias.BULLISH
        assert result.strength == 100
        assert result.trend == Trend.UP
        assert result.label == "15 Min"
        assert result.table == ScoringTableName.STANDARD

    def test_zoned_table(self, indicators):
        # 30 cross + 30 price vs fast - 10 overbought + 20 trend confirmation
        result = TimeframeAnalyzer(ZONED).analyze(indicators)
        assert result.score == 70
        assert result.bias == Bias.BULLISH
        assert result.trend == Trend.UP


class TestStandardTable:
    def setup_method(self):
        self.analyzer = TimeframeAnalyzer(STANDARD)

    def test_full_bearish(self):
        result = self.analyzer.analyze(make_indicators(90, 95, 100, 30))
        assert result.score == -100
        assert result.bias == Bias.BEARISH
        assert result.trend == Trend.DOWN

    def test_rsi_at_50_contributes_nothing(self):
        # +40 cross +20 fast +20 slow
        assert self.analyzer.score(make_indicators(110, 105, 100, 50.0)) == 80

    def test_below_threshold_is_neutral(self):
        # cross +40, below fast -20, above slow +20, RSI below 50 -20
        result = self.analyzer.analyze(make_indicators(101, 102, 100, 45))
        assert result.score == 20
        assert result.bias == Bias.NEUTRAL
        assert result.trend == Trend.SIDEWAYS

    def test_threshold_is_inclusive(self):
        # cross +40, below fast -20, above slow +20, RSI 50 -> 40
        result = self.analyzer.analyze(make_indicators(101, 102, 100, 50))
        assert result.score == 40
        assert result.bias == Bias.BULLISH

    def test_explicit_price_overrides_indicator_price(self):
        ind = make_indicators(110, 105, 100, 60)
        assert self.analyzer.score(ind, price=99) == 40 - 20 - 20 + 20

    def test_deterministic(self):
        ind = make_indicators(110, 105, 100, 60)
        assert self.analyzer.analyze(ind) == self.analyzer.analyze(ind)


class TestZonedTable:
    def setup_method(self):
        self.analyzer = TimeframeAnalyzer(ZONED)

    def test_full_bullish_momentum(self):
        # 30 + 30 + 20 (RSI 60) + 20 trend
        assert self.analyzer.score(make_indicators(110, 105, 100, 60)) == 100

    def test_oversold_bearish_is_softened(self):
        # -30 - 30 + 10 (oversold) - 20 trend
        result = self.analyzer.analyze(make_indicators(90, 95, 100, 25))
        assert result.score == -70
        assert result.bias == Bias.BEARISH
        assert result.trend == Trend.DOWN

    def test_trend_reflects_structure_not_bias(self):
        # Price dipped under the fast EMA: no structural uptrend
        result = self.analyzer.analyze(make_indicators(104, 105, 100, 60))
        assert result.score == 30 - 30 + 20
        assert result.bias == Bias.NEUTRAL
        assert result.trend == Trend.SIDEWAYS


class TestZonedRsiScore:
    @pytest.mark.parametrize("rsi,expected", [
        (60, 20),
        (70, -10),
        (85, -10),
        (40, -20),
        (30, 10),
        (15, 10),
        (50, 0),
    ])
    def test_zones(self, rsi, expected):
        assert zoned_rsi_score(rsi, 20, 10) == expected


class TestScoringTables:
    def test_lookup_by_name(self):
        assert get_scoring_table("standard") is STANDARD
        assert get_scoring_table(ScoringTableName.ZONED) is ZONED

    def test_unknown_table(self):
        with pytest.raises(ValueError):
            get_scoring_table("aggressive")

    @pytest.mark.parametrize("table", [STANDARD, ZONED])
    def test_scores_stay_in_range(self, table):
        analyzer = TimeframeAnalyzer(table)
        for rsi in (0, 10, 30, 45, 50, 55, 70, 100):
            for ind in (make_indicators(110, 105, 100, rsi), make_indicators(90, 95, 100, rsi)):
                assert -100 <= analyzer.score(ind) <= 100
