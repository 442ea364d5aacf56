"""
Monitor session model.

One monitoring campaign for one user. Status changes are owned by the
session lifecycle manager; rows are never deleted.
"""

from datetime import UTC, datetime
from typing import Any

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from ratewatch.models.base import Base
from ratewatch.models.types import JSONType


class MonitorSessionStatus:
    """Monitor session status constants."""

    ACTIVE = "active"  # Evaluated by every cycle
    PAUSED = "paused"  # Skipped until resumed
    COMPLETED = "completed"  # Trigger fired (terminal)
    STOPPED = "stopped"  # Stopped by the user (terminal)
    ERROR = "error"  # Rate could not be obtained (can only be stopped)

    ALL = (ACTIVE, PAUSED, COMPLETED, STOPPED, ERROR)


class MonitorSession(Base):
    """Monitor session (one per start / start-over)."""

    __tablename__ = "monitor_sessions"
    __table_args__ = (
        Index("idx_monitor_sessions_user_status", "user_id", "status"),
        # At most one active session per user
        Index(
            "uq_monitor_sessions_user_active",
            "user_id",
            unique=True,
            postgresql_where=text("status = 'active'"),
            sqlite_where=text("status = 'active'"),
        ),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=MonitorSessionStatus.ACTIVE,
        index=True,
        comment="active, paused, completed, stopped, error",
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # Housekeeping, updated by every cycle that obtains a rate
    last_check_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    last_success_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    last_error: Mapped[str | None] = mapped_column(Text, nullable=True)

    threshold_version: Mapped[int] = mapped_column(
        Integer, nullable=False, default=1, comment="Incremented on every profile update"
    )

    # Snapshot of the winning metrics and reason, set when completed
    trigger_metadata: Mapped[dict[str, Any] | None] = mapped_column(JSONType, nullable=True)

    @property
    def is_active(self) -> bool:
        """True if evaluation cycles should run."""
        return self.status == MonitorSessionStatus.ACTIVE

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<MonitorSession(id={self.id}, user_id={self.user_id}, "
            f"status={self.status}, threshold_version={self.threshold_version})>"
        )
