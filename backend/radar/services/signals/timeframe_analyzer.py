"""
Timeframe Analyzer

Turns one IndicatorSet plus current price into a TimeframeBias using a
fixed, additive weight table. One table per product surface; the tables
are never mixed within one aggregate.
"""

from dataclasses import dataclass
from typing import Optional, Union

from radar.schemas.indicators import IndicatorSet
from radar.schemas.market import Timeframe
from radar.schemas.signals import Bias, ScoringTableName, TimeframeBias, Trend

SCORE_LIMIT = 100
NEUTRAL_RSI = 50.0

TIMEFRAME_LABELS = {
    Timeframe.M1: "1 Min",
    Timeframe.M5: "5 Min",
    Timeframe.M15: "15 Min",
    Timeframe.M30: "30 Min",
    Timeframe.H1: "1 Hour",
    Timeframe.H4: "4 Hour",
    Timeframe.D1: "Daily",
    Timeframe.W1: "Weekly",
}


def clamp_score(score: int) -> int:
    return max(-SCORE_LIMIT, min(SCORE_LIMIT, score))


def zoned_rsi_score(
    rsi: float,
    momentum: int,
    extreme: int,
    overbought: float = 70.0,
    oversold: float = 30.0,
) -> int:
    """
    Zone-based RSI score.

    Inside (oversold, overbought) momentum is rewarded in its direction.
    At or beyond the extremes the reading is treated as exhausted and
    scored against the move.
    """
    if NEUTRAL_RSI < rsi < overbought:
        return momentum
    if oversold < rsi < NEUTRAL_RSI:
        return -momentum
    if rsi >= overbought:
        return -extreme
    if rsi <= oversold:
        return extreme
    return 0


@dataclass(frozen=True)
class ScoringTable:
    """
    Weights for one scoring variant.

    Linear tables score RSI by its side of 50. Zoned tables use
    `zoned_rsi_score` and add a trend confirmation factor driven by the
    price > fast > slow ordering.
    """

    name: ScoringTableName
    ema_cross: int
    price_vs_fast: int
    price_vs_slow: int
    rsi_momentum: int
    threshold: int
    rsi_extreme: int = 0
    trend_confirmation: int = 0
    zoned_rsi: bool = False

    def rsi_score(self, rsi: float) -> int:
        if self.zoned_rsi:
            return zoned_rsi_score(rsi, self.rsi_momentum, self.rsi_extreme)
        if rsi > NEUTRAL_RSI:
            return self.rsi_momentum
        if rsi < NEUTRAL_RSI:
            return -self.rsi_momentum
        return 0


STANDARD = ScoringTable(
    name=ScoringTableName.STANDARD,
    ema_cross=40,
    price_vs_fast=20,
    price_vs_slow=20,
    rsi_momentum=20,
    threshold=40,
)

ZONED = ScoringTable(
    name=ScoringTableName.ZONED,
    ema_cross=30,
    price_vs_fast=30,
    price_vs_slow=0,
    rsi_momentum=20,
    rsi_extreme=10,
    trend_confirmation=20,
    threshold=30,
    zoned_rsi=True,
)

SCORING_TABLES = {table.name: table for table in (STANDARD, ZONED)}


def get_scoring_table(name: Union[str, ScoringTableName]) -> ScoringTable:
    """Look up a scoring table by name. Raises ValueError if unknown."""
    return SCORING_TABLES[ScoringTableName(name)]


def structural_trend(price: float, ema_fast: float, ema_slow: float) -> Trend:
    if price > ema_fast > ema_slow:
        return Trend.UP
    if price < ema_fast < ema_slow:
        return Trend.DOWN
    return Trend.SIDEWAYS


class TimeframeAnalyzer:
    """
    Pure scorer for a single timeframe.

    Identical inputs always give an identical TimeframeBias.
    """

    def __init__(self, table: ScoringTable = STANDARD):
        self.table = table

    def score(self, indicators: IndicatorSet, price: Optional[float] = None) -> int:
        t = self.table
        price = indicators.price if price is None else price
        ema_fast, ema_slow = indicators.ema_fast, indicators.ema_slow

        score = 0
        score += t.ema_cross if ema_fast > ema_slow else -t.ema_cross
        score += t.price_vs_fast if price > ema_fast else -t.price_vs_fast
        score += t.price_vs_slow if price > ema_slow else -t.price_vs_slow
        score += t.rsi_score(indicators.rsi)

        if t.trend_confirmation:
            trend = structural_trend(price, ema_fast, ema_slow)
            if trend == Trend.UP:
                score += t.trend_confirmation
            elif trend == Trend.DOWN:
                score -= t.trend_confirmation

        return clamp_score(score)

    def analyze(
        self,
        indicators: IndicatorSet,
        price: Optional[float] = None,
    ) -> TimeframeBias:
        price = indicators.price if price is None else price
        score = self.score(indicators, price)
        threshold = self.table.threshold

        if score >= threshold:
            bias = Bias.BULLISH
        elif score <= -threshold:
            bias = Bias.BEARISH
        else:
            bias = Bias.NEUTRAL

        if self.table.trend_confirmation:
            trend = structural_trend(price, indicators.ema_fast, indicators.ema_slow)
        else:
            trend = {
                Bias.BULLISH: Trend.UP,
                Bias.BEARISH: Trend.DOWN,
                Bias.NEUTRAL: Trend.SIDEWAYS,
            }[bias]

        return TimeframeBias(
            timeframe=indicators.timeframe,
            label=TIMEFRAME_LABELS[indicators.timeframe],
            bias=bias,
            score=score,
            strength=abs(score),
            trend=trend,
            table=self.table.name,
            indicators=indicators,
        )
