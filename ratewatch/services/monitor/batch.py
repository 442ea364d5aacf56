"""
Batch evaluation runner.

Runs one evaluation cycle per active session. Every session gets its own
database session, and one session's failure never aborts the batch.
"""

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ratewatch.config.settings import settings
from ratewatch.repositories.monitor_session_repository import MonitorSessionRepository
from ratewatch.services.monitor.lifecycle import (
    CycleOutcome,
    EvaluationCycleResult,
    SessionLifecycleManager,
)

ManagerFactory = Callable[[AsyncSession], SessionLifecycleManager]

# Outcome of a cycle that raised
FAILED = "failed"


@dataclass
class BatchResult:
    """
    Summary of a batch run.

    failed counts cycles that raised plus cycles that ended in error.
    """

    checked: int = 0
    triggered: int = 0
    failed: int = 0
    results: list[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "checked": self.checked,
            "triggered": self.triggered,
            "failed": self.failed,
            "results": self.results,
        }


class BatchEvaluationRunner:
    """Evaluates every active session with continue-on-error semantics."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        manager_factory: ManagerFactory,
        concurrency: int | None = None,
    ) -> None:
        """
        Initialize runner.

        Args:
            session_factory: Creates one AsyncSession per evaluated session
            manager_factory: Builds a lifecycle manager on a given AsyncSession
            concurrency: Max cycles in flight (defaults to settings.batch_concurrency)
        """
        self.session_factory = session_factory
        self.manager_factory = manager_factory
        self.concurrency = concurrency or settings.batch_concurrency

    async def run_all(self) -> BatchResult:
        """Evaluate all sessions that are active when the batch starts."""
        async with self.session_factory() as session:
            session_ids = list(await MonitorSessionRepository(session).get_active_ids())

        logger.info(f"Evaluating {len(session_ids)} active session(s)")

        semaphore = asyncio.Semaphore(self.concurrency)
        outcomes = await asyncio.gather(
            *(self._run_one(session_id, semaphore) for session_id in session_ids)
        )

        batch = BatchResult(checked=len(session_ids))
        for outcome in outcomes:
            batch.results.append(outcome)
            if outcome["triggered"]:
                batch.triggered += 1
            if outcome["outcome"] in (CycleOutcome.ERROR, FAILED):
                batch.failed += 1

        logger.info(
            f"Batch complete: checked={batch.checked} "
            f"triggered={batch.triggered} failed={batch.failed}"
        )
        return batch

    async def _run_one(
        self, session_id: int, semaphore: asyncio.Semaphore
    ) -> dict[str, Any]:
        async with semaphore:
            async with self.session_factory() as session:
                manager = self.manager_factory(session)
                try:
                    cycle: EvaluationCycleResult = await manager.run_evaluation(session_id)
                except Exception as e:
                    await session.rollback()
                    logger.exception(f"Evaluation failed for session {session_id}: {e}")
                    return {
                        "session_id": session_id,
                        "outcome": FAILED,
                        "triggered": False,
                        "notified": False,
                        "skipped_reason": None,
                        "error": str(e),
                    }
                return cycle.to_dict()
