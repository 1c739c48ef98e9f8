"""
Technical Indicator Calculations

Pure Python/NumPy implementations of technical indicators.
Stateless and side-effect free. Every edge case is an explicit branch
with a defined output; nothing is left to NaN propagation.
"""

from typing import Sequence, Union

import numpy as np

from radar.services.base import InsufficientDataError

ArrayLike = Union[Sequence[float], np.ndarray]

NEUTRAL_RSI = 50.0


def _as_array(data: ArrayLike) -> np.ndarray:
    return np.asarray(data, dtype=float)


def _check_period(period: int) -> None:
    if period < 1:
        raise ValueError(f"Period must be >= 1, got {period}")


# =============================================================================
# MOVING AVERAGES
# =============================================================================


def sma(data: ArrayLike, period: int) -> float:
    """
    Simple Moving Average of the last `period` values.

    With fewer than `period` values, falls back to the mean of everything
    available instead of failing.
    """
    _check_period(period)
    values = _as_array(data)
    if len(values) == 0:
        raise InsufficientDataError("SMA needs at least one value", required=1, available=0)

    if len(values) < period:
        return float(np.mean(values))
    return float(np.mean(values[-period:]))


def ema(data: ArrayLike, period: int) -> float:
    """
    Exponential Moving Average.

    Seeded with the SMA of the first `period` values, then
    ema = (price - ema) * 2/(period+1) + ema for the rest.
    Same short-input fallback as `sma`.
    """
    _check_period(period)
    values = _as_array(data)
    if len(values) == 0:
        raise InsufficientDataError("EMA needs at least one value", required=1, available=0)

    if len(values) < period:
        return float(np.mean(values))

    multiplier = 2 / (period + 1)

    # Start with SMA
    result = float(np.mean(values[:period]))

    for price in values[period:]:
        result = (price - result) * multiplier + result

    return float(result)


# =============================================================================
# MOMENTUM INDICATORS
# =============================================================================


def rsi(closes: ArrayLike, period: int = 14) -> float:
    """
    Relative Strength Index with Wilder's smoothing.

    Seed averages are simple means over the first `period` changes; every
    later change is folded in with avg = (avg * (period - 1) + value) / period.
    Returns 50 with fewer than period + 1 closes, and 100 when the average
    loss is exactly zero.
    """
    _check_period(period)
    values = _as_array(closes)
    if len(values) < period + 1:
        return NEUTRAL_RSI

    # Calculate price changes
    deltas = np.diff(values)

    # Separate gains and losses
    gains = np.where(deltas > 0, deltas, 0.0)
    losses = np.where(deltas < 0, -deltas, 0.0)

    # First average
    avg_gain = float(np.mean(gains[:period]))
    avg_loss = float(np.mean(losses[:period]))

    # Subsequent values using smoothed averages
    for gain, loss in zip(gains[period:], losses[period:]):
        avg_gain = (avg_gain * (period - 1) + gain) / period
        avg_loss = (avg_loss * (period - 1) + loss) / period

    if avg_loss == 0:
        return 100.0

    rs = avg_gain / avg_loss
    return float(100 - (100 / (1 + rs)))


# =============================================================================
# VOLATILITY INDICATORS
# =============================================================================


def true_ranges(highs: ArrayLike, lows: ArrayLike, closes: ArrayLike) -> np.ndarray:
    """
    True range for every bar after the first:
    max(high - low, |high - prev_close|, |low - prev_close|).
    """
    h, l, c = _as_array(highs), _as_array(lows), _as_array(closes)
    if not (len(h) == len(l) == len(c)):
        raise ValueError("highs, lows and closes must have the same length")
    if len(c) < 2:
        return np.zeros(0)

    prev_close = c[:-1]
    return np.maximum.reduce([
        h[1:] - l[1:],
        np.abs(h[1:] - prev_close),
        np.abs(l[1:] - prev_close),
    ])


def atr(highs: ArrayLike, lows: ArrayLike, closes: ArrayLike, period: int = 14) -> float:
    """
    Average True Range: mean of the last `period` true ranges.

    No degraded fallback. Fewer than period + 1 bars raises
    InsufficientDataError.
    """
    _check_period(period)
    c = _as_array(closes)
    if len(c) < period + 1:
        raise InsufficientDataError(
            f"ATR({period}) needs {period + 1} bars, got {len(c)}",
            required=period + 1,
            available=len(c),
        )

    tr = true_ranges(highs, lows, c)
    return float(np.mean(tr[-period:]))


# =============================================================================
# SUPPORT/RESISTANCE
# =============================================================================


def classic_pivots(high: float, low: float, close: float) -> dict[str, float]:
    """Classic floor pivots from the prior period's high, low and close."""
    pivot = (high + low + close) / 3
    return {
        "pp": pivot,
        "r1": (2 * pivot) - low,
        "r2": pivot + (high - low),
        "r3": high + 2 * (pivot - low),
        "s1": (2 * pivot) - high,
        "s2": pivot - (high - low),
        "s3": low - 2 * (high - pivot),
    }
