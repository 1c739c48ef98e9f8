"""
API v1 Router

All API endpoints for the dashboard.
"""

from fastapi import APIRouter

from radar.api.v1.endpoints import market, indicators, mtf, signals, levels, macro, cache

router = APIRouter()

# Include all endpoint routers
router.include_router(market.router, prefix="/market", tags=["Market Data"])
router.include_router(indicators.router, prefix="/indicators", tags=["Indicators"])
router.include_router(mtf.router, prefix="/mtf", tags=["Multi-Timeframe"])
router.include_router(signals.router, prefix="/signals", tags=["Signals"])
router.include_router(levels.router, prefix="/levels", tags=["Levels"])
router.include_router(macro.router, prefix="/macro", tags=["Macro"])
router.include_router(cache.router, prefix="/cache", tags=["Cache"])
