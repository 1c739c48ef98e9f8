"""
FRED Macro Client

Fetches low-frequency macro series from the St. Louis Fed API.

Series:
- DGS10: US 10Y Treasury yield (daily, latest value)
- CPIAUCSL: US CPI (monthly, year-over-year %)
- JPNCPIALLMINMEI: Japan CPI (monthly, year-over-year %)
"""

import asyncio
import logging
from typing import Any, Optional

import aiohttp

from radar.schemas.market import MacroSnapshot
from radar.services.base import RateLimitError, UpstreamFetchError

logger = logging.getLogger(__name__)

SERVICE_NAME = "FRED"

US_10Y_YIELD = "DGS10"
US_CPI = "CPIAUCSL"
JAPAN_CPI = "JPNCPIALLMINMEI"

# Monthly observations back to the same month last year
YOY_LAG = 12


def numeric_values(observations: list[dict[str, Any]]) -> list[float]:
    """Parse observation values, skipping FRED's "." placeholders."""
    values = []
    for obs in observations:
        try:
            values.append(float(obs.get("value")))
        except (TypeError, ValueError):
            continue
    return values


def year_over_year(values_desc: list[float]) -> Optional[float]:
    """YoY % change from newest-first monthly values."""
    if len(values_desc) <= YOY_LAG:
        return None
    latest, year_ago = values_desc[0], values_desc[YOY_LAG]
    if year_ago == 0:
        return None
    return ((latest - year_ago) / year_ago) * 100


class FredClient:
    """Thin async client for FRED series observations."""

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = "https://api.stlouisfed.org/fred",
        timeout: float = 20.0,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session: Optional[aiohttp.ClientSession] = None

    async def _ensure_session(self) -> aiohttp.ClientSession:
        """Ensure we have an active HTTP session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            )
        return self._session

    async def close(self) -> None:
        """Close the HTTP session."""
        if self._session and not self._session.closed:
            await self._session.close()

    async def observations(self, series_id: str, limit: int) -> list[dict[str, Any]]:
        """Newest-first observations for one series."""
        if not self.api_key:
            raise UpstreamFetchError(SERVICE_NAME, "API key not configured")

        session = await self._ensure_session()
        params = {
            "series_id": series_id,
            "api_key": self.api_key,
            "file_type": "json",
            "sort_order": "desc",
            "limit": str(limit),
        }

        try:
            async with session.get(f"{self.base_url}/series/observations", params=params) as response:
                if response.status == 429:
                    raise RateLimitError(SERVICE_NAME, f"{series_id} rate limited")
                if response.status != 200:
                    raise UpstreamFetchError(SERVICE_NAME, f"{series_id} failed: HTTP {response.status}")
                payload = await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise UpstreamFetchError(SERVICE_NAME, f"{series_id} request failed: {e!r}") from e

        observations = payload.get("observations") if isinstance(payload, dict) else None
        if not isinstance(observations, list):
            raise UpstreamFetchError(SERVICE_NAME, f"{series_id}: malformed observations payload")
        return observations

    async def latest_value(self, series_id: str) -> Optional[float]:
        values = numeric_values(await self.observations(series_id, limit=10))
        return values[0] if values else None

    async def yoy_percent(self, series_id: str) -> Optional[float]:
        values = numeric_values(await self.observations(series_id, limit=36))
        return year_over_year(values)

    async def snapshot(self) -> MacroSnapshot:
        """
        Fetch all macro series concurrently.

        Raises:
            UpstreamFetchError: If any series request fails
        """
        us10y, us_cpi, japan_cpi = await asyncio.gather(
            self.latest_value(US_10Y_YIELD),
            self.yoy_percent(US_CPI),
            self.yoy_percent(JAPAN_CPI),
        )
        logger.info(f"FRED snapshot: 10Y={us10y} US CPI={us_cpi} JP CPI={japan_cpi}")

        return MacroSnapshot(
            us10y_yield=us10y,
            us_cpi_yoy=us_cpi,
            japan_cpi_yoy=japan_cpi,
        )
