"""
Rate service.

Fetch-and-persist of the benchmark series. Persistence is idempotent on
(series, observation_date): the first stored value for a date wins.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from ratewatch.config.constants import RATE_DATA_SOURCE, RATE_SERIES_NAME, RATE_UPDATE_CADENCE
from ratewatch.config.settings import settings
from ratewatch.repositories.rate_observation_repository import RateObservationRepository
from ratewatch.services.base_service import BaseService
from ratewatch.services.rates.fred_client import RateSource


@dataclass(frozen=True)
class StoredRate:
    """Persisted observation returned by a fetch."""

    series: str
    observation_date: date
    value: Decimal
    is_new: bool


class RateService(BaseService):
    """Fetches the latest benchmark rate and keeps the observation history."""

    def __init__(
        self,
        session: AsyncSession,
        rate_source: RateSource,
        series_id: str | None = None,
    ) -> None:
        super().__init__(session)
        self.rate_source = rate_source
        self.series_id = series_id or settings.rate_series_id
        self.repository = RateObservationRepository(session)

    @staticmethod
    def series_info() -> dict[str, str]:
        """Display metadata of the benchmark series."""
        return {
            "name": RATE_SERIES_NAME,
            "source": RATE_DATA_SOURCE,
            "update_frequency": RATE_UPDATE_CADENCE,
        }

    async def fetch_and_store_latest(self) -> StoredRate | None:
        """
        Fetch the latest point and persist it.

        Returns:
            The stored observation (first written value for its date),
            or None if the source returned nothing
        """
        point = await self.rate_source.fetch_latest(self.series_id)
        if point is None:
            return None

        inserted = await self.repository.store(
            self.series_id, point.observation_date, point.value
        )
        await self.commit()

        stored = await self.repository.get(self.series_id, point.observation_date)
        value = stored.value if stored is not None else point.value

        if inserted:
            self.logger.info(
                f"Stored {self.series_id} {point.observation_date}: {value}"
            )
        elif value != point.value:
            self.logger.warning(
                f"{self.series_id} {point.observation_date} already stored as {value}, "
                f"ignoring revised value {point.value}"
            )

        return StoredRate(
            series=self.series_id,
            observation_date=point.observation_date,
            value=Decimal(value),
            is_new=inserted,
        )

