"""
Cache API Endpoints
"""

from fastapi import APIRouter, Depends

from radar.api.deps import get_signal_service
from radar.schemas.responses import CacheStatus
from radar.services.signals import SignalService

router = APIRouter()


@router.get("/status", response_model=CacheStatus)
async def cache_status(service: SignalService = Depends(get_signal_service)):
    """Every cache entry with its age, TTL and stale flag."""
    return service.cache_status()
