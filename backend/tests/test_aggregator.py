"""
Tests for signal aggregation and multi-timeframe alignment.
"""

import random
from datetime import datetime, timezone

import pytest

from radar.schemas.indicators import IndicatorSet
from radar.schemas.market import Timeframe
from radar.schemas.signals import (
    AlignmentDirection,
    Bias,
    OverallBias,
    PreviousCloseSignal,
    ScoringTableName,
    TimeframeBias,
    Trend,
)
from radar.services.signals import aggregate, calculate_alignment, classify

DEFAULT_TIMEFRAMES = (Timeframe.M5, Timeframe.M15, Timeframe.H1)


def make_bias(
    bias: Bias,
    timeframe: Timeframe = Timeframe.M15,
    strength: int = 100,
    table: ScoringTableName = ScoringTableName.STANDARD,
) -> TimeframeBias:
    sign = {Bias.BULLISH: 1, Bias.BEARISH: -1, Bias.NEUTRAL: 0}[bias]
    trend = {Bias.BULLISH: Trend.UP, Bias.BEARISH: Trend.DOWN, Bias.NEUTRAL: Trend.SIDEWAYS}[bias]
    indicators = IndicatorSet(
        instrument="USDJPY",
        timeframe=timeframe,
        price=150.0,
        ema_fast=150.0 + sign,
        ema_slow=150.0,
        sma_fast=150.0,
        sma_slow=150.0,
        rsi=50 + 10 * sign,
        bar_count=60,
        source="test",
        as_of=datetime(2024, 1, 8, tzinfo=timezone.utc),
    )
    return TimeframeBias(
        timeframe=timeframe,
        label=timeframe.value,
        bias=bias,
        score=sign * strength,
        strength=strength if sign else 0,
        trend=trend,
        table=table,
        indicators=indicators,
    )


def biases(*values: Bias) -> list[TimeframeBias]:
    return [make_bias(b, tf) for b, tf in zip(values, DEFAULT_TIMEFRAMES)]


def factor_names(signal) -> list[str]:
    return [f.factor for f in signal.contributing_factors]


class TestAggregate:
    def test_full_alignment_with_context(self):
        signal = aggregate(
            "USDJPY",
            biases(Bias.BULLISH, Bias.BULLISH, Bias.BULLISH),
            previous_close=PreviousCloseSignal(above=True, distance_pips=12.0),
            rsi=60.0,
            price=150.0,
        )
        # 3 * 20 + 15 alignment + 10 PDC + 10 RSI = 95
        assert signal.score == 95
        assert signal.overall_bias == OverallBias.STRONG_BULLISH
        assert signal.alignment_percentage == 100.0
        assert "MTF Alignment" in factor_names(signal)
        assert signal.score == sum(f.score for f in signal.contributing_factors)

    def test_partial_alignment_has_no_bonus(self):
        signal = aggregate("USDJPY", biases(Bias.BULLISH, Bias.BULLISH, Bias.BEARISH))
        assert signal.score == 20
        assert signal.alignment_percentage == pytest.approx(200 / 3)
        assert "MTF Alignment" not in factor_names(signal)
        assert signal.overall_bias == OverallBias.NEUTRAL

    def test_all_neutral_gets_no_bonus(self):
        signal = aggregate("USDJPY", biases(Bias.NEUTRAL, Bias.NEUTRAL, Bias.NEUTRAL))
        assert signal.score == 0
        assert signal.alignment_percentage == 0.0
        assert "MTF Alignment" not in factor_names(signal)

    def test_bearish_mirror(self):
        signal = aggregate(
            "USDJPY",
            biases(Bias.BEARISH, Bias.BEARISH, Bias.BEARISH),
            previous_close=PreviousCloseSignal(above=False, distance_pips=4.0),
            rsi=20.0,
        )
        # -60 - 15 - 10 + 5 (oversold)
        assert signal.score == -80
        assert signal.overall_bias == OverallBias.STRONG_BEARISH

    def test_clamp_is_recorded_as_factor(self):
        timeframes = [make_bias(Bias.BULLISH, tf) for tf in Timeframe]
        signal = aggregate(
            "USDJPY",
            timeframes,
            previous_close=PreviousCloseSignal(above=True),
            rsi=60.0,
        )
        # 8 * 20 + 15 + 10 + 10 = 195 -> clamped
        assert signal.score == 100
        assert factor_names(signal)[-1] == "Score Clamp"
        assert signal.contributing_factors[-1].score == -95
        assert signal.score == sum(f.score for f in signal.contributing_factors)

    def test_score_is_sum_of_factors(self):
        rng = random.Random(20240108)
        all_timeframes = list(Timeframe)
        for _ in range(200):
            count = rng.randint(1, len(all_timeframes))
            timeframes = [
                make_bias(rng.choice(list(Bias)), tf)
                for tf in all_timeframes[:count]
            ]
            previous_close = None
            if rng.random() < 0.5:
                previous_close = PreviousCloseSignal(above=rng.random() < 0.5)
            rsi = rng.uniform(0, 100) if rng.random() < 0.5 else None

            signal = aggregate("USDJPY", timeframes, previous_close=previous_close, rsi=rsi)

            assert signal.score == sum(f.score for f in signal.contributing_factors)
            assert -100 <= signal.score <= 100
            assert signal.overall_bias == classify(signal.score)

    def test_empty_timeframes_rejected(self):
        with pytest.raises(ValueError):
            aggregate("USDJPY", [])

    def test_mixed_tables_rejected(self):
        timeframes = [
            make_bias(Bias.BULLISH, Timeframe.M5, table=ScoringTableName.STANDARD),
            make_bias(Bias.BULLISH, Timeframe.M15, table=ScoringTableName.ZONED),
        ]
        with pytest.raises(ValueError):
            aggregate("USDJPY", timeframes)

    def test_table_carried_through(self):
        timeframes = [make_bias(Bias.BULLISH, tf, table=ScoringTableName.ZONED) for tf in DEFAULT_TIMEFRAMES]
        assert aggregate("USDJPY", timeframes).table == ScoringTableName.ZONED


class TestClassify:
    @pytest.mark.parametrize("score,expected", [
        (100, OverallBias.STRONG_BULLISH),
        (60, OverallBias.STRONG_BULLISH),
        (59, OverallBias.BULLISH),
        (25, OverallBias.BULLISH),
        (24, OverallBias.NEUTRAL),
        (0, OverallBias.NEUTRAL),
        (-24, OverallBias.NEUTRAL),
        (-25, OverallBias.BEARISH),
        (-59, OverallBias.BEARISH),
        (-60, OverallBias.STRONG_BEARISH),
        (-100, OverallBias.STRONG_BEARISH),
    ])
    def test_boundaries(self, score, expected):
        assert classify(score) == expected


class TestAlignment:
    def test_all_bullish(self):
        alignment = calculate_alignment(biases(Bias.BULLISH, Bias.BULLISH, Bias.BULLISH))
        assert alignment.direction == AlignmentDirection.BULLISH
        assert alignment.percentage == 100.0
        assert alignment.weighted_score == pytest.approx(100.0)
        assert alignment.bullish_count == 3

    def test_higher_timeframes_weigh_more(self):
        # 5m bearish (w1), 15m and 1h bullish (w2 + w3): (5 - 1) / 6
        alignment = calculate_alignment(biases(Bias.BEARISH, Bias.BULLISH, Bias.BULLISH))
        assert alignment.direction == AlignmentDirection.BULLISH
        assert alignment.weighted_score == pytest.approx(400 / 6)
        assert alignment.percentage == pytest.approx(200 / 3)

    def test_strength_scales_weighted_score(self):
        timeframes = [make_bias(Bias.BULLISH, Timeframe.H1, strength=50)]
        assert calculate_alignment(timeframes).weighted_score == pytest.approx(50.0)

    def test_tie_is_mixed(self):
        alignment = calculate_alignment(biases(Bias.BULLISH, Bias.BEARISH, Bias.NEUTRAL))
        assert alignment.direction == AlignmentDirection.MIXED
        assert alignment.neutral_count == 1

    def test_empty(self):
        with pytest.raises(ValueError):
            calculate_alignment([])
