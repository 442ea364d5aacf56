"""
Evaluation run model.

Audit trail: one row per evaluation cycle attempt.
"""

from datetime import UTC, datetime
from typing import Any

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ratewatch.models.base import Base
from ratewatch.models.types import JSONType


class EvaluationOutcome:
    """Evaluation run outcome constants."""

    TRIGGERED = "triggered"
    NOT_TRIGGERED = "not_triggered"
    ERROR = "error"


class EvaluationRun(Base):
    """Outcome of one evaluation cycle."""

    __tablename__ = "evaluation_runs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    session_id: Mapped[int] = mapped_column(
        ForeignKey("monitor_sessions.id", ondelete="CASCADE"), nullable=False, index=True
    )
    ran_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )
    outcome: Mapped[str] = mapped_column(
        String(20), nullable=False, comment="triggered, not_triggered, error"
    )
    computed_metrics: Mapped[dict[str, Any] | None] = mapped_column(JSONType, nullable=True)
    triggered_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    notified_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, comment="Set only if an email went out this cycle"
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<EvaluationRun(id={self.id}, session_id={self.session_id}, "
            f"outcome={self.outcome})>"
        )
