"""
Bias Radar Services

Service layer containing all business logic.
Pure computation (indicators, signals) is kept apart from I/O
(data ingestion, macro) and the cache that fronts it.
"""

from radar.services.base import BaseService

__all__ = ["BaseService"]
