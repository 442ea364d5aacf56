"""
Evaluation run repository.

Append-only evaluation log used for audit and the status dashboard.
"""

from datetime import datetime
from typing import Any, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ratewatch.models.evaluation_run import EvaluationOutcome, EvaluationRun
from ratewatch.repositories.base import BaseRepository


class EvaluationRunRepository(BaseRepository[EvaluationRun]):
    """Repository for evaluation runs."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository."""
        super().__init__(EvaluationRun, session)

    async def record(
        self,
        session_id: int,
        outcome: str,
        computed_metrics: dict[str, Any] | None = None,
        triggered_reason: str | None = None,
        notified_at: datetime | None = None,
    ) -> EvaluationRun:
        """Append one evaluation run."""
        return await self.create(
            session_id=session_id,
            outcome=outcome,
            computed_metrics=computed_metrics,
            triggered_reason=triggered_reason,
            notified_at=notified_at,
        )

    async def list_for_session(self, session_id: int) -> Sequence[EvaluationRun]:
        """Get runs of a session, most recent first."""
        result = await self.session.execute(
            select(EvaluationRun)
            .where(EvaluationRun.session_id == session_id)
            .order_by(EvaluationRun.ran_at.desc(), EvaluationRun.id.desc())
        )
        return result.scalars().all()

    async def last_triggered(self, session_id: int) -> EvaluationRun | None:
        """Get the most recent triggered run of a session."""
        result = await self.session.execute(
            select(EvaluationRun)
            .where(
                EvaluationRun.session_id == session_id,
                EvaluationRun.outcome == EvaluationOutcome.TRIGGERED,
            )
            .order_by(EvaluationRun.ran_at.desc(), EvaluationRun.id.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()
