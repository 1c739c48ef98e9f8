"""
Macro API Endpoints
"""

import logging

from fastapi import APIRouter, Depends

from radar.api.deps import get_signal_service, http_error
from radar.schemas.market import MacroSnapshot
from radar.schemas.responses import CachedResponse
from radar.services.base import ServiceError
from radar.services.signals import SignalService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=CachedResponse[MacroSnapshot])
async def get_macro(service: SignalService = Depends(get_signal_service)):
    """US 10Y yield and US/Japan CPI year over year (cached 24h)."""
    try:
        return await service.macro()
    except ServiceError as e:
        logger.error(f"Macro snapshot failed: {e}")
        raise http_error(e) from e
