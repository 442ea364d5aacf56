"""
Rate observation model.

Append-only record of fetched benchmark rates. The (series, observation_date)
pair is the natural key; rows are never updated.
"""

from datetime import UTC, date, datetime
from decimal import Decimal

from sqlalchemy import Date, DateTime, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ratewatch.models.base import Base
from ratewatch.models.types import RatePercentType


class RateObservation(Base):
    """One published value of a rate series."""

    __tablename__ = "rate_observations"
    __table_args__ = (
        UniqueConstraint("series", "observation_date", name="uq_rate_observations_series_date"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    series: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    observation_date: Mapped[date] = mapped_column(
        Date, nullable=False, comment="Date the provider assigned to the value"
    )
    value: Mapped[Decimal] = mapped_column(
        RatePercentType, nullable=False, comment="Rate in whole percent"
    )
    fetched_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
        index=True,
        comment="When we stored it",
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<RateObservation(series={self.series}, "
            f"date={self.observation_date}, value={self.value})>"
        )
