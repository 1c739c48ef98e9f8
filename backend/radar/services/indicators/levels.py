"""
Level Analysis

Pivot, ATR-range and previous-day level analysis built on top of the
calculations module. Pure functions over already-fetched Series; no I/O.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional, Sequence

from radar.core.sessions import SESSIONS, get_active_session
from radar.schemas.indicators import (
    AtrReading,
    DailyBar,
    KeyLevels,
    NearestLevel,
    PivotAnalysis,
    PivotLevels,
    PivotPosition,
    PivotZone,
    PreviousDayLevels,
    PricePosition,
    PriceVsClose,
    RangeAnalysis,
    RangePosition,
    RangeZone,
    SessionRange,
    VolatilityLevel,
)
from radar.schemas.market import Bar, Series
from radar.services.base import InsufficientDataError
from radar.services.indicators import calculations as calc

logger = logging.getLogger(__name__)

# ATR as a percent of price
LOW_VOLATILITY_PERCENT = 0.3
MEDIUM_VOLATILITY_PERCENT = 0.6

SESSION_WINDOW = timedelta(hours=24)


# =============================================================================
# PIVOTS + ATR
# =============================================================================


def volatility_level(atr_value: float, price: float) -> VolatilityLevel:
    atr_percent = (atr_value / price) * 100
    if atr_percent < LOW_VOLATILITY_PERCENT:
        return VolatilityLevel.LOW
    if atr_percent < MEDIUM_VOLATILITY_PERCENT:
        return VolatilityLevel.MEDIUM
    return VolatilityLevel.HIGH


def pivot_position(price: float, pivots: PivotLevels) -> PivotPosition:
    """Nearest pivot level and the zone price sits in. Ties go to the higher level."""
    levels = [
        ("R3", pivots.r3),
        ("R2", pivots.r2),
        ("R1", pivots.r1),
        ("PP", pivots.pp),
        ("S1", pivots.s1),
        ("S2", pivots.s2),
        ("S3", pivots.s3),
    ]

    nearest_name, nearest_value = levels[0]
    min_distance = abs(price - nearest_value)
    for name, value in levels[1:]:
        distance = abs(price - value)
        if distance < min_distance:
            nearest_name, nearest_value, min_distance = name, value, distance

    if price >= pivots.r2:
        zone = PivotZone.ABOVE_R2
    elif price >= pivots.r1:
        zone = PivotZone.R1_R2
    elif price >= pivots.pp:
        zone = PivotZone.PP_R1
    elif price >= pivots.s1:
        zone = PivotZone.S1_PP
    elif price >= pivots.s2:
        zone = PivotZone.S1_S2
    else:
        zone = PivotZone.BELOW_S2

    return PivotPosition(
        nearest_level=nearest_name,
        nearest_value=nearest_value,
        distance=min_distance,
        distance_percent=(min_distance / price) * 100,
        zone=zone,
    )


def range_analysis(today: Bar, atr_value: float) -> RangeAnalysis:
    """How much of the expected daily range (one ATR) today has used."""
    current_range = today.high - today.low
    # A zero ATR only comes from identical bars; report nothing consumed
    atr_percent = (current_range / atr_value) * 100 if atr_value > 0 else 0.0

    return RangeAnalysis(
        today_high=today.high,
        today_low=today.low,
        current_range=current_range,
        atr_percent=atr_percent,
        range_remaining=max(0.0, atr_value - current_range),
    )


def analyze_pivots(daily: Series, atr_period: int = 14) -> PivotAnalysis:
    """
    Pivot + ATR analysis from daily bars.

    The last bar is today (possibly still forming); the one before it is
    the previous completed day and feeds the pivot formulas.
    """
    bars = daily.bars
    if len(bars) < 2:
        raise InsufficientDataError(
            f"Pivots need 2 daily bars for {daily.instrument}, got {len(bars)}",
            required=2,
            available=len(bars),
        )

    previous, today = bars[-2], bars[-1]
    pivots = PivotLevels(**calc.classic_pivots(previous.high, previous.low, previous.close))

    atr_value = calc.atr(
        [b.high for b in bars],
        [b.low for b in bars],
        [b.close for b in bars],
        atr_period,
    )
    price = today.close

    return PivotAnalysis(
        instrument=daily.instrument,
        daily=DailyBar(
            date=today.timestamp.date().isoformat(),
            open=today.open,
            high=today.high,
            low=today.low,
            close=today.close,
        ),
        pivots=pivots,
        atr=AtrReading(
            value=atr_value,
            period=atr_period,
            percent_of_price=(atr_value / price) * 100,
            volatility=volatility_level(atr_value, price),
        ),
        position=pivot_position(price, pivots),
        range=range_analysis(today, atr_value),
    )


# =============================================================================
# PREVIOUS-DAY LEVELS
# =============================================================================


def previous_day_levels(daily: Series) -> PreviousDayLevels:
    bars = daily.bars
    if len(bars) < 2:
        raise InsufficientDataError(
            f"Previous-day levels need 2 daily bars for {daily.instrument}, got {len(bars)}",
            required=2,
            available=len(bars),
        )

    previous = bars[-2]
    return PreviousDayLevels(
        date=previous.timestamp.date().isoformat(),
        high=previous.high,
        low=previous.low,
        close=previous.close,
    )


def price_vs_close(price: float, previous_close: float, pip_size: float) -> PriceVsClose:
    distance = price - previous_close
    above = price >= previous_close

    return PriceVsClose(
        position=PricePosition.ABOVE if above else PricePosition.BELOW,
        bullish=above,
        distance_pips=abs(distance) / pip_size,
        distance_percent=abs(distance / previous_close) * 100,
    )


def range_position(price: float, high: float, low: float) -> RangePosition:
    """Where price sits inside the previous day's high-low range."""
    day_range = high - low
    percent_in_range = ((price - low) / day_range) * 100 if day_range > 0 else 50.0

    if price > high:
        zone = RangeZone.ABOVE_PDH
    elif price < low:
        zone = RangeZone.BELOW_PDL
    elif percent_in_range >= 50:
        zone = RangeZone.UPPER_HALF
    else:
        zone = RangeZone.LOWER_HALF

    return RangePosition(
        within_range=low <= price <= high,
        percent_in_range=max(0.0, min(100.0, percent_in_range)),
        zone=zone,
    )


def session_ranges(
    bars: Sequence[Bar],
    pip_size: float,
    now: datetime,
) -> list[SessionRange]:
    """
    High/low per forex session over the 24 hours before `now`.

    A session without bars reports high, low and range as None.
    """
    cutoff = now - SESSION_WINDOW
    recent = [b for b in bars if b.timestamp >= cutoff]
    active = get_active_session(now)

    ranges = []
    for session in SESSIONS:
        session_bars = [b for b in recent if session.contains_hour(b.timestamp.hour)]

        high: Optional[float] = None
        low: Optional[float] = None
        range_pips: Optional[float] = None
        if session_bars:
            high = max(b.high for b in session_bars)
            low = min(b.low for b in session_bars)
            range_pips = (high - low) / pip_size

        ranges.append(SessionRange(
            name=session.name,
            start_hour=session.start_hour,
            end_hour=session.end_hour,
            high=high,
            low=low,
            range_pips=range_pips,
            is_active=session.key == active.key,
        ))

    return ranges


def build_key_levels(
    daily: Series,
    intraday: Optional[Series],
    pip_size: float,
    now: datetime,
) -> KeyLevels:
    """
    PDH/PDL/PDC context plus session ranges.

    Current price is the latest intraday close, falling back to the latest
    daily close when no intraday bars are available.
    """
    previous = previous_day_levels(daily)
    intraday_bars = intraday.bars if intraday is not None else ()

    if intraday_bars:
        current_price = intraday_bars[-1].close
    else:
        logger.info(f"No intraday bars for {daily.instrument}, using daily close")
        current_price = daily.bars[-1].close

    return KeyLevels(
        instrument=daily.instrument,
        current_price=current_price,
        previous_day=previous,
        price_vs_close=price_vs_close(current_price, previous.close, pip_size),
        range_position=range_position(current_price, previous.high, previous.low),
        sessions=session_ranges(intraday_bars, pip_size, now),
        active_session=get_active_session(now).name,
    )


# =============================================================================
# NEAREST LEVEL
# =============================================================================


def nearest_level(price: float, levels: dict[str, float]) -> Optional[NearestLevel]:
    """
    Closest level to price, excluding any level exactly at price.

    Levels below price are labelled support, above it resistance.
    """
    candidates = [(name, value) for name, value in levels.items() if value != price]
    if not candidates:
        return None

    name, value = min(candidates, key=lambda item: abs(price - item[1]))
    distance = abs(price - value)
    kind = "Support" if value < price else "Resistance"

    return NearestLevel(
        label=f"{kind} ({name})",
        value=value,
        distance=distance,
        distance_percent=(distance / price) * 100,
    )
