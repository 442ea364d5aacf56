"""
Benchmark rate services.

FRED adapter plus the fetch-and-store service on top of it.
"""

from ratewatch.services.rates.fred_client import FredRateClient, RatePoint, RateSource
from ratewatch.services.rates.rate_service import RateService, StoredRate

__all__ = [
    "FredRateClient",
    "RatePoint",
    "RateService",
    "RateSource",
    "StoredRate",
]
