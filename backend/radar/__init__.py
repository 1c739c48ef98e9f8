"""
Bias Radar

Multi-timeframe market bias engine: indicators, staleness-aware caching
and auditable signal aggregation behind a FastAPI service.
"""

__version__ = "0.1.0"
