"""
Macro Data Service

Low-frequency macro series (yields, inflation) from FRED.
"""

from radar.services.macro.fred_client import FredClient

__all__ = ["FredClient"]
