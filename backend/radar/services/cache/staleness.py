"""
Staleness-aware in-memory cache.

Memoizes fetch-and-compute pipelines per key with an independent TTL per
call site. On refresh failure the last good value is served marked stale;
its computed_at is left unchanged so it keeps aging until a refresh
actually succeeds.

Keys:
- {instrument}:{timeframe}:{purpose} (timeframe is "-" when not applicable)
"""

import asyncio
import logging
import time
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Awaitable, Callable, Generic, NamedTuple, Optional, TypeVar

from radar.schemas.responses import CacheEntryStatus, CacheStatus

logger = logging.getLogger(__name__)

T = TypeVar("T")

NO_TIMEFRAME = "-"


class CacheKey(NamedTuple):
    instrument: str
    timeframe: str
    purpose: str

    def __str__(self) -> str:
        return f"{self.instrument}:{self.timeframe}:{self.purpose}"


def cache_key(instrument: str, purpose: str, timeframe: Optional[str] = None) -> CacheKey:
    return CacheKey(instrument.upper(), timeframe or NO_TIMEFRAME, purpose)


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    """Immutable; a refresh replaces the whole entry."""

    value: T
    computed_at: float
    ttl: float
    stale: bool = False

    def age(self, now: float) -> float:
        return now - self.computed_at

    def is_expired(self, now: float) -> bool:
        return self.age(now) > self.ttl


@dataclass(frozen=True)
class CacheResult(Generic[T]):
    value: T
    is_stale: bool
    cached: bool
    computed_at: float

    @property
    def last_updated(self) -> datetime:
        return datetime.fromtimestamp(self.computed_at, tz=timezone.utc)


class StalenessAwareCache:
    """
    Process-lifetime memo with stale fallback.

    At most one refresh per key is in flight; concurrent callers for the
    same key wait for it and share its outcome, a stale fallback or a
    cold-start error included, instead of retrying upstream.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._entries: dict[CacheKey, CacheEntry] = {}
        self._locks: dict[CacheKey, asyncio.Lock] = {}
        self._generations: dict[CacheKey, int] = {}
        self._errors: dict[CacheKey, Exception] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def peek(self, key: CacheKey) -> Optional[CacheEntry]:
        return self._entries.get(key)

    def _live(self, key: CacheKey) -> Optional[CacheEntry]:
        entry = self._entries.get(key)
        if entry is not None and not entry.stale and not entry.is_expired(self._clock()):
            return entry
        return None

    def _finish_attempt(self, key: CacheKey) -> None:
        self._generations[key] = self._generations.get(key, 0) + 1

    async def get_or_compute(
        self,
        key: CacheKey,
        ttl: float,
        compute_fn: Callable[[], Awaitable[T]],
    ) -> CacheResult[T]:
        """
        Return the live entry, or refresh it through compute_fn.

        Raises:
            Exception: Whatever compute_fn raised, only when no prior
                value exists for the key
        """
        entry = self._live(key)
        if entry is not None:
            return CacheResult(entry.value, is_stale=False, cached=True, computed_at=entry.computed_at)

        generation = self._generations.get(key, 0)
        lock = self._locks.setdefault(key, asyncio.Lock())
        async with lock:
            if self._generations.get(key, 0) != generation:
                # A refresh finished while we waited
                entry = self._entries.get(key)
                if entry is not None:
                    return CacheResult(
                        entry.value, is_stale=entry.stale, cached=True, computed_at=entry.computed_at
                    )
                if key in self._errors:
                    raise self._errors[key]

            entry = self._live(key)
            if entry is not None:
                return CacheResult(entry.value, is_stale=False, cached=True, computed_at=entry.computed_at)

            previous = self._entries.get(key)
            try:
                value = await compute_fn()
            except Exception as e:
                self._finish_attempt(key)
                if previous is None:
                    self._errors[key] = e
                    logger.error(f"Cache cold start failed for {key}: {e}")
                    raise

                age = previous.age(self._clock())
                logger.warning(f"Refresh failed for {key}, serving stale value ({age:.0f}s old): {e}")
                self._entries[key] = replace(previous, stale=True)
                self._errors.pop(key, None)
                return CacheResult(
                    previous.value,
                    is_stale=True,
                    cached=True,
                    computed_at=previous.computed_at,
                )

            self._finish_attempt(key)
            fresh = CacheEntry(value=value, computed_at=self._clock(), ttl=ttl)
            self._entries[key] = fresh
            self._errors.pop(key, None)
            return CacheResult(value, is_stale=False, cached=False, computed_at=fresh.computed_at)

    def invalidate(self, key: CacheKey) -> bool:
        self._errors.pop(key, None)
        return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        self._entries.clear()
        self._errors.clear()
        logger.info("Cache cleared")

    def status(self) -> CacheStatus:
        now = self._clock()
        entries = [
            CacheEntryStatus(
                key=str(key),
                age_seconds=entry.age(now),
                ttl_seconds=entry.ttl,
                expired=entry.is_expired(now),
                stale=entry.stale,
                last_updated=datetime.fromtimestamp(entry.computed_at, tz=timezone.utc),
            )
            for key, entry in sorted(self._entries.items(), key=lambda item: str(item[0]))
        ]
        return CacheStatus(entries=entries, size=len(entries))
