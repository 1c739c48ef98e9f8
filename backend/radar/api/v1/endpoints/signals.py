"""
Signal API Endpoints

Aggregate directional bias with its contributing-factor breakdown.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from radar.api.deps import get_signal_service, http_error
from radar.schemas.responses import CachedResponse
from radar.schemas.signals import AggregateSignal, ScoringTableName
from radar.services.base import ServiceError
from radar.services.signals import SignalService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/{instrument}", response_model=CachedResponse[AggregateSignal])
async def get_signal(
    instrument: str,
    table: Optional[ScoringTableName] = Query(None, description="Scoring table (default from settings)"),
    service: SignalService = Depends(get_signal_service),
):
    """
    Overall bias for an instrument.

    score always equals the sum of contributing_factors[*].score.
    Returns 502 if any timeframe could not be resolved.
    """
    try:
        return await service.signal(instrument, table)
    except ServiceError as e:
        logger.error(f"Signal failed for {instrument}: {e}")
        raise http_error(e) from e
