"""
Multi-Timeframe API Endpoints
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from radar.api.deps import get_signal_service, http_error
from radar.schemas.responses import CachedResponse
from radar.schemas.signals import MTFAnalysis, ScoringTableName
from radar.services.base import ServiceError
from radar.services.signals import SignalService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/{instrument}", response_model=CachedResponse[MTFAnalysis])
async def get_mtf(
    instrument: str,
    table: Optional[ScoringTableName] = Query(None, description="Scoring table (default from settings)"),
    service: SignalService = Depends(get_signal_service),
):
    """Per-timeframe bias with alignment direction, percentage and weighted score."""
    try:
        return await service.mtf(instrument, table)
    except ServiceError as e:
        logger.error(f"MTF analysis failed for {instrument}: {e}")
        raise http_error(e) from e
