"""
Trading Session Clock

Handles UTC forex sessions and the weekend market closure.
"""

from dataclasses import dataclass
from datetime import datetime, date, timezone
from enum import Enum
from typing import Optional

# Forex trades from Sunday 22:00 UTC to Friday 22:00 UTC
WEEK_OPEN_HOUR = 22
WEEK_CLOSE_HOUR = 22


class SessionName(str, Enum):
    ASIAN = "asian"
    LONDON = "london"
    NEW_YORK = "new_york"


@dataclass(frozen=True)
class TradingSession:
    key: SessionName
    name: str
    start_hour: int  # UTC, inclusive
    end_hour: int  # UTC, exclusive

    def contains_hour(self, hour: int) -> bool:
        if self.start_hour < self.end_hour:
            return self.start_hour <= hour < self.end_hour
        # Session wraps past midnight
        return hour >= self.start_hour or hour < self.end_hour


# Order matters: overlapping hours resolve to the first match
SESSIONS: tuple[TradingSession, ...] = (
    TradingSession(SessionName.ASIAN, "Asian", 0, 9),
    TradingSession(SessionName.LONDON, "London", 8, 16),
    TradingSession(SessionName.NEW_YORK, "New York", 13, 22),
)


def get_utc_now() -> datetime:
    """Get current time in UTC."""
    return datetime.now(timezone.utc)


def is_weekend(dt: date) -> bool:
    """Check if date is a weekend."""
    return dt.weekday() >= 5  # Saturday = 5, Sunday = 6


def get_active_session(dt: Optional[datetime] = None) -> TradingSession:
    """
    Session owning the given UTC hour.

    Asian takes 00-08, London 09-15 and New York 16-21. Hours 22-23 fall
    outside every window and roll into the next Asian session.
    """
    if dt is None:
        dt = get_utc_now()

    hour = dt.astimezone(timezone.utc).hour
    for session in SESSIONS:
        if session.contains_hour(hour):
            return session
    return SESSIONS[0]


def is_forex_market_open(dt: Optional[datetime] = None) -> bool:
    """Check if the forex market is trading (closed Fri 22:00 to Sun 22:00 UTC)."""
    if dt is None:
        dt = get_utc_now()

    dt = dt.astimezone(timezone.utc)
    weekday = dt.weekday()

    if weekday == 4:  # Friday
        return dt.hour < WEEK_CLOSE_HOUR
    if weekday == 5:  # Saturday
        return False
    if weekday == 6:  # Sunday
        return dt.hour >= WEEK_OPEN_HOUR
    return True


def get_market_status() -> dict:
    """Get comprehensive market status."""
    now = get_utc_now()
    active = get_active_session(now)

    return {
        "is_open": is_forex_market_open(now),
        "active_session": active.name,
        "is_weekend": is_weekend(now.date()),
        "current_time_utc": now.strftime("%H:%M:%S"),
        "current_date": now.date().isoformat(),
    }
