"""
API Dependencies

Service access and error-to-HTTP mapping shared by all endpoints.
"""

from fastapi import HTTPException, Request

from radar.services.base import (
    ExternalAPIError,
    InsufficientDataError,
    PartialTimeframeError,
    ServiceError,
    UnknownInstrumentError,
)
from radar.services.signals import SignalService


def get_signal_service(request: Request) -> SignalService:
    """The SignalService created in the application lifespan."""
    return request.app.state.signal_service


def http_error(e: ServiceError) -> HTTPException:
    """
    Map service errors to HTTP status codes.

    - UnknownInstrumentError -> 404
    - InsufficientDataError -> 422
    - PartialTimeframeError -> 502
    - UpstreamFetchError / AllSourcesFailedError -> 503
    """
    if isinstance(e, UnknownInstrumentError):
        return HTTPException(status_code=404, detail=e.message)
    if isinstance(e, InsufficientDataError):
        return HTTPException(status_code=422, detail=e.message)
    if isinstance(e, PartialTimeframeError):
        return HTTPException(status_code=502, detail={"message": e.message, "failed": e.failed})
    if isinstance(e, ExternalAPIError):
        return HTTPException(status_code=503, detail=e.message)
    return HTTPException(status_code=500, detail=e.message)
