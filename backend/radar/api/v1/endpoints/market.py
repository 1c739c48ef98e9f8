"""
Market Data API Endpoints

Quotes, instrument search and forex session status.
"""

import logging

from fastapi import APIRouter, Depends, Query

from radar.api.deps import get_signal_service, http_error
from radar.core.sessions import get_market_status
from radar.schemas.market import Quote
from radar.schemas.responses import CachedResponse
from radar.services.base import ServiceError
from radar.services.data_ingestion import search_instruments
from radar.services.signals import SignalService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/instruments")
async def list_instruments(
    q: str = Query("", description="Symbol or name, partial match"),
    limit: int = Query(10, ge=1, le=50),
):
    """Search the instrument registry."""
    return [i.to_dict() for i in search_instruments(q, limit)]


@router.get("/status")
async def market_status():
    """Forex market open/closed and the active trading session (UTC)."""
    return get_market_status()


@router.get("/{instrument}/quote", response_model=CachedResponse[Quote])
async def get_quote(
    instrument: str,
    service: SignalService = Depends(get_signal_service),
):
    """
    Get the latest quote for an instrument.

    Served from cache for up to a minute; falls back to the last good
    quote (stale=true) if every provider fails.
    """
    try:
        return await service.quote(instrument)
    except ServiceError as e:
        logger.error(f"Quote failed for {instrument}: {e}")
        raise http_error(e) from e
