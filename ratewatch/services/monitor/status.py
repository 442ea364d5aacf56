"""
Monitor status read path.

Data for the status dashboard: current session, evaluation history and
the rate observations seen while monitoring. No business logic.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from ratewatch.config.constants import RATE_HISTORY_DEFAULT_DAYS
from ratewatch.config.settings import settings
from ratewatch.models.evaluation_run import EvaluationRun
from ratewatch.models.monitor_session import MonitorSession
from ratewatch.models.rate_observation import RateObservation
from ratewatch.repositories.evaluation_run_repository import EvaluationRunRepository
from ratewatch.repositories.monitor_session_repository import MonitorSessionRepository
from ratewatch.repositories.rate_observation_repository import RateObservationRepository
from ratewatch.services.base_service import BaseService
from ratewatch.services.rates.rate_service import RateService
from ratewatch.utils.datetime_utils import utc_now


@dataclass
class MonitorStatus:
    """Snapshot shown on the status page."""

    session: MonitorSession | None
    runs: Sequence[EvaluationRun] = field(default_factory=list)
    last_triggered_run: EvaluationRun | None = None
    latest_rate: RateObservation | None = None
    series: dict[str, str] = field(default_factory=RateService.series_info)


class MonitorStatusService(BaseService):
    """Read-only queries for the status page."""

    def __init__(self, session: AsyncSession, series_id: str | None = None) -> None:
        super().__init__(session)
        self.series_id = series_id or settings.rate_series_id
        self.sessions = MonitorSessionRepository(session)
        self.runs = EvaluationRunRepository(session)
        self.rates = RateObservationRepository(session)

    async def get_monitor_status(self, user_id: int) -> MonitorStatus:
        """Current session with its runs (most recent first)."""
        latest_rate = await self.rates.latest(self.series_id)
        monitor_session = await self.sessions.get_current_for_user(user_id)
        if monitor_session is None:
            return MonitorStatus(session=None, latest_rate=latest_rate)

        return MonitorStatus(
            session=monitor_session,
            runs=await self.runs.list_for_session(monitor_session.id),
            last_triggered_run=await self.runs.last_triggered(monitor_session.id),
            latest_rate=latest_rate,
        )

    async def get_rate_history(
        self, user_id: int, since: datetime | None = None
    ) -> Sequence[RateObservation]:
        """
        Observations stored since a point in time, oldest first.

        Defaults to the current session's creation, or the last
        RATE_HISTORY_DEFAULT_DAYS days if the user has no session.
        """
        if since is None:
            monitor_session = await self.sessions.get_current_for_user(user_id)
            if monitor_session is not None:
                since = monitor_session.created_at
            else:
                since = utc_now() - timedelta(days=RATE_HISTORY_DEFAULT_DAYS)
        return await self.rates.history(self.series_id, since)
