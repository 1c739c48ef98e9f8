"""
Application Configuration

All settings loaded from environment variables.
"""

from functools import lru_cache
from typing import Optional
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings from environment variables."""

    # Application
    app_name: str = "Bias Radar"
    app_version: str = "0.1.0"
    debug: bool = False
    environment: str = "development"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    # CORS (Dashboard URL)
    frontend_url: str = "http://localhost:3000"
    allowed_origins: list[str] = ["http://localhost:3000"]

    # Upstream data providers
    twelve_data_api_key: Optional[str] = None
    twelve_data_base_url: str = "https://api.twelvedata.com"
    fred_api_key: Optional[str] = None
    fred_base_url: str = "https://api.stlouisfed.org/fred"

    # Providers are tried in this order until one succeeds
    data_source_priority: list[str] = ["yahoo", "twelve_data"]

    # Every upstream call is bounded by this timeout
    upstream_timeout_seconds: float = 20.0

    # Indicator periods
    ema_fast_period: int = 20
    ema_slow_period: int = 50
    sma_fast_period: int = 20
    sma_slow_period: int = 50
    rsi_period: int = 14
    atr_period: int = 14

    # Signal aggregation
    default_scoring_table: str = "standard"  # Options: standard, zoned
    mtf_timeframes: list[str] = ["5m", "15m", "1h"]
    momentum_timeframe: str = "15m"  # Supplies the standalone RSI factor
    series_lookback: int = 200

    # Cache TTLs (seconds), one per endpoint purpose
    quote_ttl: int = 60
    indicators_ttl: int = 2 * 60  # Also backs the per-timeframe biases of mtf and signals
    key_levels_ttl: int = 5 * 60
    pivots_ttl: int = 60 * 60
    macro_ttl: int = 24 * 60 * 60

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
