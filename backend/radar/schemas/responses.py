"""
Response envelope shared by every endpoint.

Consumers render trust indicators from these flags without re-deriving them.
"""

from datetime import datetime
from typing import Generic, TypeVar
from pydantic import BaseModel, Field

T = TypeVar("T")


class CachedResponse(BaseModel, Generic[T]):
    data: T
    cached: bool = Field(..., description="Served from cache without an upstream call")
    stale: bool = Field(
        default=False,
        description="Older than its TTL; served only because a refresh failed",
    )
    last_updated: datetime = Field(..., description="When the value was computed")
    warnings: list[str] = Field(default_factory=list)


class CacheEntryStatus(BaseModel):
    key: str
    age_seconds: float
    ttl_seconds: float
    expired: bool
    stale: bool
    last_updated: datetime


class CacheStatus(BaseModel):
    entries: list[CacheEntryStatus]
    size: int
