"""
Signal Aggregator

Combines an ordered list of TimeframeBias (shortest timeframe first) and
optional context into one AggregateSignal with an auditable breakdown.

Pure computation. The emitted score is always the exact sum of the
contributing factor scores; when clamping is needed it is recorded as
its own factor so the breakdown still adds up.
"""

from typing import Optional, Sequence

from radar.schemas.indicators import NearestLevel
from radar.schemas.market import Timeframe
from radar.schemas.signals import (
    AggregateSignal,
    AlignmentDirection,
    Bias,
    ContributingFactor,
    MTFAlignment,
    OverallBias,
    PreviousCloseSignal,
    ScoringTableName,
    TimeframeBias,
)
from radar.services.signals.timeframe_analyzer import clamp_score, zoned_rsi_score

# Factor weights
TIMEFRAME_WEIGHT = 20
ALIGNMENT_BONUS = 15
PREVIOUS_CLOSE_WEIGHT = 10
RSI_MOMENTUM_WEIGHT = 10
RSI_EXTREME_WEIGHT = 5

# Classification thresholds, symmetric around zero
STRONG_THRESHOLD = 60
BIAS_THRESHOLD = 25

# Higher timeframes weigh more in the alignment score
ALIGNMENT_WEIGHTS = {
    Timeframe.M5: 1,
    Timeframe.M15: 2,
    Timeframe.H1: 3,
}


# =============================================================================
# ALIGNMENT
# =============================================================================


def alignment_percentage(timeframes: Sequence[TimeframeBias]) -> float:
    """100 when every timeframe agrees, else the larger directional share."""
    total = len(timeframes)
    bullish = sum(1 for tf in timeframes if tf.bias == Bias.BULLISH)
    bearish = sum(1 for tf in timeframes if tf.bias == Bias.BEARISH)

    if bullish == total or bearish == total:
        return 100.0
    return max(bullish, bearish) / total * 100


def calculate_alignment(timeframes: Sequence[TimeframeBias]) -> MTFAlignment:
    if not timeframes:
        raise ValueError("Alignment needs at least one timeframe")

    total = len(timeframes)
    bullish = sum(1 for tf in timeframes if tf.bias == Bias.BULLISH)
    bearish = sum(1 for tf in timeframes if tf.bias == Bias.BEARISH)

    weighted = 0.0
    total_weight = 0
    for tf in timeframes:
        weight = ALIGNMENT_WEIGHTS.get(tf.timeframe, 1)
        total_weight += weight
        if tf.bias == Bias.BULLISH:
            weighted += weight * (tf.strength / 100)
        elif tf.bias == Bias.BEARISH:
            weighted -= weight * (tf.strength / 100)

    if bullish > bearish:
        direction = AlignmentDirection.BULLISH
    elif bearish > bullish:
        direction = AlignmentDirection.BEARISH
    else:
        direction = AlignmentDirection.MIXED

    return MTFAlignment(
        direction=direction,
        percentage=alignment_percentage(timeframes),
        weighted_score=(weighted / total_weight) * 100,
        bullish_count=bullish,
        bearish_count=bearish,
        neutral_count=total - bullish - bearish,
    )


# =============================================================================
# CLASSIFICATION
# =============================================================================


def classify(score: int) -> OverallBias:
    if score >= STRONG_THRESHOLD:
        return OverallBias.STRONG_BULLISH
    if score >= BIAS_THRESHOLD:
        return OverallBias.BULLISH
    if score <= -STRONG_THRESHOLD:
        return OverallBias.STRONG_BEARISH
    if score <= -BIAS_THRESHOLD:
        return OverallBias.BEARISH
    return OverallBias.NEUTRAL


# =============================================================================
# FACTORS
# =============================================================================


def _timeframe_factor(tf: TimeframeBias) -> ContributingFactor:
    if tf.bias == Bias.BULLISH:
        score = TIMEFRAME_WEIGHT
    elif tf.bias == Bias.BEARISH:
        score = -TIMEFRAME_WEIGHT
    else:
        score = 0

    ind = tf.indicators
    cross = ">" if ind.ema_fast > ind.ema_slow else "<="
    fast_period = ind.periods.get("ema_fast", 20)
    slow_period = ind.periods.get("ema_slow", 50)

    return ContributingFactor(
        factor=f"{tf.label} Timeframe",
        value=f"{tf.bias.value.upper()} (RSI: {ind.rsi:.1f})",
        score=score,
        explanation=(
            f"EMA{fast_period} ({ind.ema_fast:.5f}) {cross} "
            f"EMA{slow_period} ({ind.ema_slow:.5f}), trend: {tf.trend.value}"
        ),
    )


def _alignment_factor(direction: Bias, count: int) -> ContributingFactor:
    score = ALIGNMENT_BONUS if direction == Bias.BULLISH else -ALIGNMENT_BONUS
    return ContributingFactor(
        factor="MTF Alignment",
        value=f"100% aligned {direction.value.upper()}",
        score=score,
        explanation=f"All {count} timeframes {direction.value}",
    )


def _previous_close_factor(signal: PreviousCloseSignal) -> ContributingFactor:
    position = "above" if signal.above else "below"
    return ContributingFactor(
        factor="Price vs PDC",
        value=f"{position.upper()} ({signal.distance_pips:.1f} pips)",
        score=PREVIOUS_CLOSE_WEIGHT if signal.above else -PREVIOUS_CLOSE_WEIGHT,
        explanation=f"Price {position} previous day close",
    )


def _rsi_factor(rsi: float) -> ContributingFactor:
    score = zoned_rsi_score(rsi, RSI_MOMENTUM_WEIGHT, RSI_EXTREME_WEIGHT)

    if 50 < rsi < 70:
        explanation = "RSI between 50 and 70"
    elif rsi >= 70:
        explanation = "RSI at or above 70 (overbought)"
    elif 30 < rsi < 50:
        explanation = "RSI between 30 and 50"
    elif rsi <= 30:
        explanation = "RSI at or below 30 (oversold)"
    else:
        explanation = "RSI at 50"

    return ContributingFactor(
        factor="RSI Momentum",
        value=f"{rsi:.1f}",
        score=score,
        explanation=explanation,
    )


# =============================================================================
# AGGREGATE
# =============================================================================


def aggregate(
    instrument: str,
    timeframes: Sequence[TimeframeBias],
    previous_close: Optional[PreviousCloseSignal] = None,
    rsi: Optional[float] = None,
    price: Optional[float] = None,
    nearest_level: Optional[NearestLevel] = None,
) -> AggregateSignal:
    """
    Build the AggregateSignal.

    Args:
        instrument: Canonical instrument id
        timeframes: TimeframeBias list, shortest timeframe first, all
            scored with the same table
        previous_close: Previous-day-close position, if available
        rsi: Standalone RSI reading for the momentum factor, if available
        price: Current price for display
        nearest_level: Closest support/resistance for display

    Raises:
        ValueError: If no timeframes are given or tables are mixed
    """
    if not timeframes:
        raise ValueError("Aggregation needs at least one timeframe")

    tables = {tf.table for tf in timeframes}
    if len(tables) > 1:
        raise ValueError(f"Timeframes scored with mixed tables: {sorted(t.value for t in tables)}")
    table: ScoringTableName = timeframes[0].table

    factors = [_timeframe_factor(tf) for tf in timeframes]

    biases = {tf.bias for tf in timeframes}
    if len(biases) == 1 and Bias.NEUTRAL not in biases:
        factors.append(_alignment_factor(biases.pop(), len(timeframes)))

    if previous_close is not None:
        factors.append(_previous_close_factor(previous_close))

    if rsi is not None:
        factors.append(_rsi_factor(rsi))

    raw = sum(f.score for f in factors)
    score = clamp_score(raw)
    if score != raw:
        factors.append(ContributingFactor(
            factor="Score Clamp",
            value=f"{raw} -> {score}",
            score=score - raw,
            explanation="Total limited to [-100, 100]",
        ))

    return AggregateSignal(
        instrument=instrument,
        overall_bias=classify(score),
        score=sum(f.score for f in factors),
        alignment_percentage=alignment_percentage(timeframes),
        contributing_factors=factors,
        timeframes=list(timeframes),
        table=table,
        price=price,
        nearest_level=nearest_level,
    )
