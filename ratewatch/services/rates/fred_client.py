"""
FRED rate source adapter.

Fetches the most recent observation of a rate series from the FRED
observations API. Every failure (transport, HTTP status, timeout,
malformed payload, missing value) is reported as None; retries belong
to the caller.
"""

import asyncio
from dataclasses import dataclass
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Protocol

import aiohttp
from loguru import logger

from ratewatch.config.constants import FRED_MISSING_VALUE
from ratewatch.config.settings import settings
from ratewatch.utils.datetime_utils import parse_iso_date


@dataclass(frozen=True)
class RatePoint:
    """One published value of a series."""

    observation_date: date
    value: Decimal


class RateSource(Protocol):
    """Anything that can return the latest point of a series."""

    async def fetch_latest(self, series_id: str) -> RatePoint | None:
        ...


class FredRateClient:
    """
    Client for the FRED series/observations endpoint.

    One aiohttp session is reused across calls; call close() on shutdown.
    """

    def __init__(
        self,
        api_key: str | None = None,
        api_url: str | None = None,
        timeout_seconds: float | None = None,
    ) -> None:
        """
        Initialize FRED client.

        Args:
            api_key: FRED API key (optional, anonymous access is throttled)
            api_url: Observations endpoint
            timeout_seconds: Total timeout for one request
        """
        self.api_key = api_key if api_key is not None else settings.fred_api_key
        self.api_url = api_url or settings.fred_api_url
        self.timeout = aiohttp.ClientTimeout(
            total=timeout_seconds or settings.rate_fetch_timeout_seconds
        )
        self._session: aiohttp.ClientSession | None = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
        return self._session

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    def _build_params(self, series_id: str) -> dict[str, str]:
        params = {
            "series_id": series_id,
            "file_type": "json",
            "sort_order": "desc",
            "limit": "1",
        }
        if self.api_key:
            params["api_key"] = self.api_key
        return params

    async def fetch_latest(self, series_id: str) -> RatePoint | None:
        """
        Fetch the latest observation of a series.

        Args:
            series_id: FRED series code (e.g. OBMMIC30YF)

        Returns:
            RatePoint or None if no value could be obtained
        """
        try:
            session = await self._get_session()
            async with session.get(
                self.api_url,
                params=self._build_params(series_id),
                timeout=self.timeout,
            ) as response:
                if response.status != 200:
                    logger.error(f"FRED API error for {series_id}: HTTP {response.status}")
                    return None
                payload = await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"FRED request failed for {series_id}: {e!r}")
            return None
        except ValueError as e:
            logger.error(f"FRED returned invalid JSON for {series_id}: {e}")
            return None

        point = self.parse_latest(payload)
        if point is None:
            logger.warning(f"No usable observation in FRED response for {series_id}")
        return point

    @staticmethod
    def parse_latest(payload: Any) -> RatePoint | None:
        """
        Extract the first observation from a FRED response body.

        The "." sentinel means the provider has no value for that date.
        """
        if not isinstance(payload, dict):
            return None
        observations = payload.get("observations")
        if not isinstance(observations, list) or not observations:
            return None

        latest = observations[0]
        if not isinstance(latest, dict):
            return None

        raw_value = latest.get("value")
        raw_date = latest.get("date")
        if raw_value is None or raw_value == FRED_MISSING_VALUE or not raw_date:
            return None

        try:
            value = Decimal(str(raw_value))
            observation_date = parse_iso_date(str(raw_date))
        except (InvalidOperation, ValueError):
            return None

        if not value.is_finite():
            return None
        return RatePoint(observation_date=observation_date, value=value)
