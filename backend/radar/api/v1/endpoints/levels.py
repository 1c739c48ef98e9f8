"""
Level API Endpoints

Daily pivots with ATR, and previous-day key levels with session ranges.
"""

import logging

from fastapi import APIRouter, Depends

from radar.api.deps import get_signal_service, http_error
from radar.schemas.indicators import KeyLevels, PivotAnalysis
from radar.schemas.responses import CachedResponse
from radar.services.base import ServiceError
from radar.services.signals import SignalService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/{instrument}/pivots", response_model=CachedResponse[PivotAnalysis])
async def get_pivots(
    instrument: str,
    service: SignalService = Depends(get_signal_service),
):
    """Classic pivots from the previous day, ATR(14) and today's range usage."""
    try:
        return await service.pivots(instrument)
    except ServiceError as e:
        logger.error(f"Pivots failed for {instrument}: {e}")
        raise http_error(e) from e


@router.get("/{instrument}/key-levels", response_model=CachedResponse[KeyLevels])
async def get_key_levels(
    instrument: str,
    service: SignalService = Depends(get_signal_service),
):
    """PDH/PDL/PDC, price vs previous close, and Asian/London/New York ranges."""
    try:
        return await service.key_levels(instrument)
    except ServiceError as e:
        logger.error(f"Key levels failed for {instrument}: {e}")
        raise http_error(e) from e
