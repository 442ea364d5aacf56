"""
Threshold profile model.

Per-user alert configuration: current mortgage rate, trigger thresholds,
email toggle and optional loan parameters for the break-even model.
"""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import Boolean, CheckConstraint, DateTime, ForeignKey, Integer
from sqlalchemy.orm import Mapped, mapped_column

from ratewatch.models.base import Base
from ratewatch.models.types import MoneyType, RatePercentType


class ThresholdProfile(Base):
    """
    Alert thresholds for one user.

    All rates are whole percents (6.5 means 6.5%). Loan fields are optional;
    without them only the benchmark-rate condition can fire.
    """

    __tablename__ = "threshold_profiles"
    __table_args__ = (
        CheckConstraint("current_rate > 0", name="check_profile_current_rate_positive"),
        CheckConstraint(
            "benchmark_rate_threshold IS NOT NULL OR break_even_months_threshold IS NOT NULL",
            name="check_profile_has_threshold",
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True, index=True
    )

    current_rate: Mapped[Decimal] = mapped_column(
        RatePercentType, nullable=False, comment="Borrower's current rate, whole percent"
    )

    # Thresholds
    benchmark_rate_threshold: Mapped[Decimal | None] = mapped_column(
        RatePercentType, nullable=True, comment="Trigger when benchmark <= this value"
    )
    break_even_months_threshold: Mapped[int | None] = mapped_column(
        Integer, nullable=True, comment="Trigger when break-even months <= this value"
    )
    email_alerts_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    # Loan parameters (break-even model)
    loan_balance: Mapped[Decimal | None] = mapped_column(MoneyType, nullable=True)
    remaining_term_months: Mapped[int | None] = mapped_column(Integer, nullable=True)
    closing_cost_dollars: Mapped[Decimal | None] = mapped_column(MoneyType, nullable=True)
    closing_cost_percent: Mapped[Decimal | None] = mapped_column(RatePercentType, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )

    @property
    def has_loan_parameters(self) -> bool:
        """True when balance and term allow an amortization estimate."""
        return (
            self.loan_balance is not None
            and self.loan_balance > 0
            and self.remaining_term_months is not None
            and self.remaining_term_months > 0
        )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<ThresholdProfile(user_id={self.user_id}, "
            f"current_rate={self.current_rate}, "
            f"benchmark_threshold={self.benchmark_rate_threshold}, "
            f"break_even_threshold={self.break_even_months_threshold})>"
        )
