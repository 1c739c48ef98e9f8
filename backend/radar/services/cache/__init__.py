"""
Cache module for Bias Radar.

Provides the in-memory staleness-aware cache that fronts every
externally triggered computation.
"""

from radar.services.cache.staleness import (
    CacheEntry,
    CacheKey,
    CacheResult,
    StalenessAwareCache,
    cache_key,
)

__all__ = [
    "CacheEntry",
    "CacheKey",
    "CacheResult",
    "StalenessAwareCache",
    "cache_key",
]
