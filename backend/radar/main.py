"""
Bias Radar Backend - FastAPI Application

Main entry point for the backend API.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from radar.core.config import Settings, settings as default_settings
from radar.api.v1 import router as api_v1_router
from radar.services.data_ingestion import build_fetcher
from radar.services.macro import FredClient
from radar.services.signals import SignalService

logger = logging.getLogger(__name__)


def build_signal_service(settings: Settings) -> SignalService:
    """Wire the process-lifetime SignalService from settings."""
    fred = FredClient(
        api_key=settings.fred_api_key,
        base_url=settings.fred_base_url,
        timeout=settings.upstream_timeout_seconds,
    )
    return SignalService(settings=settings, fetcher=build_fetcher(settings), fred=fred)


def create_app(
    settings: Optional[Settings] = None,
    signal_service: Optional[SignalService] = None,
) -> FastAPI:
    """
    Build the application.

    A pre-built SignalService can be injected (tests); otherwise one is
    created at startup and closed at shutdown.
    """
    settings = settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan handler."""
        # Startup
        logger.info(f"Starting {settings.app_name} v{settings.app_version}")
        logger.info(f"Environment: {settings.environment}")

        service = signal_service or build_signal_service(settings)
        app.state.signal_service = service
        logger.info(f"Data sources: {service.fetcher.source_names}")

        yield

        # Shutdown
        logger.info("Shutting down...")
        await service.close()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="""
        Bias Radar Market Analytics API

        ## Architecture
        - **Data Ingestion**: Yahoo Finance and Twelve Data, tried in priority order
        - **Indicator Engine**: EMA, SMA, RSI, ATR, pivots (pure Python/NumPy)
        - **Timeframe Analyzer**: Fixed weight tables per timeframe
        - **Signal Aggregator**: One auditable bias across timeframes
        - **Staleness-Aware Cache**: Per-endpoint TTLs with stale fallback

        ## Core Principles
        - Every response is labelled cached/stale
        - Score always equals the sum of its contributing factors
        - Fresh data, labelled stale data, or a clear error; never a blend
        """,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # CORS middleware - dashboard origins
    cors_origins = [settings.frontend_url]
    if settings.allowed_origins:
        cors_origins.extend([o for o in settings.allowed_origins if o not in cors_origins])

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include API routes
    app.include_router(api_v1_router, prefix="/api/v1")

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "app": settings.app_name,
            "version": settings.app_version,
            "environment": settings.environment,
        }

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "message": "Bias Radar Backend API",
            "docs": "/docs",
            "health": "/health",
        }

    return app


app = create_app()
