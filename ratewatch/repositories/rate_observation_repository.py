"""
Rate observation repository.

Append-only, idempotent store of fetched rate observations keyed by
(series, observation_date).
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ratewatch.models.rate_observation import RateObservation
from ratewatch.repositories.base import BaseRepository


class RateObservationRepository(BaseRepository[RateObservation]):
    """Repository for rate observations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository."""
        super().__init__(RateObservation, session)

    async def store(self, series: str, observation_date: date, value: Decimal) -> bool:
        """
        Store an observation unless the (series, date) pair already exists.

        The first written value wins; a repeated call is a no-op.

        Args:
            series: Series code
            observation_date: Provider date of the value
            value: Rate in whole percent

        Returns:
            True if a new row was inserted, False if it was already present
        """
        new_id = await self.insert_if_absent(
            ["series", "observation_date"],
            series=series,
            observation_date=observation_date,
            value=value,
        )
        return new_id is not None

    async def get(self, series: str, observation_date: date) -> RateObservation | None:
        """Get the stored observation for one date."""
        return await self.get_by(series=series, observation_date=observation_date)

    async def latest(self, series: str) -> RateObservation | None:
        """Get the observation with the newest provider date."""
        result = await self.session.execute(
            select(RateObservation)
            .where(RateObservation.series == series)
            .order_by(RateObservation.observation_date.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def history(
        self, series: str, since: datetime | None = None
    ) -> Sequence[RateObservation]:
        """
        Get observations of a series in chronological order.

        Args:
            series: Series code
            since: Only rows stored (fetched_at) at or after this time

        Returns:
            Observations ordered by observation date, oldest first
        """
        stmt = select(RateObservation).where(RateObservation.series == series)
        if since is not None:
            # What we observed while monitoring, not what the provider dated it
            stmt = stmt.where(RateObservation.fetched_at >= since)
        stmt = stmt.order_by(RateObservation.observation_date.asc())

        result = await self.session.execute(stmt)
        return result.scalars().all()
