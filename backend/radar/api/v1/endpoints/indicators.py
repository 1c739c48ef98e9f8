"""
Indicator API Endpoints

Single-timeframe indicator snapshots.
"""

import logging

from fastapi import APIRouter, Depends, Query

from radar.api.deps import get_signal_service, http_error
from radar.schemas.indicators import IndicatorSet
from radar.schemas.market import Timeframe
from radar.schemas.responses import CachedResponse
from radar.services.base import ServiceError
from radar.services.signals import SignalService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/{instrument}", response_model=CachedResponse[IndicatorSet])
async def get_indicators(
    instrument: str,
    timeframe: Timeframe = Query(Timeframe.M15, description="Candle timeframe"),
    service: SignalService = Depends(get_signal_service),
):
    """
    EMA, SMA, RSI and ATR for one instrument and timeframe.

    Values are full precision; ATR is null when there are too few bars.
    """
    try:
        return await service.indicator_set(instrument, timeframe)
    except ServiceError as e:
        logger.error(f"Indicators failed for {instrument} {timeframe.value}: {e}")
        raise http_error(e) from e
