"""
Session lifecycle manager.

Owns every monitor session status change and runs evaluation cycles.
One cycle: fetch and store the latest rate, evaluate thresholds, notify
at most once, record an evaluation run and move the session to its next
state. A cycle on a non-active session is a no-op.
"""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import timedelta
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from ratewatch.config.settings import settings
from ratewatch.models.evaluation_run import EvaluationOutcome
from ratewatch.models.monitor_session import MonitorSession, MonitorSessionStatus
from ratewatch.repositories.evaluation_run_repository import EvaluationRunRepository
from ratewatch.repositories.monitor_session_repository import MonitorSessionRepository
from ratewatch.repositories.threshold_profile_repository import (
    ThresholdProfileRepository,
)
from ratewatch.repositories.user_repository import UserRepository
from ratewatch.services.base_service import (
    BaseService,
    ServiceResult,
    log_operation,
    transaction,
)
from ratewatch.services.evaluation import evaluate
from ratewatch.services.monitor.state_machine import can_transition, sources_for
from ratewatch.services.notification.email_provider import EmailProvider
from ratewatch.services.notification.notifier import Notifier
from ratewatch.services.notification.templates import AlertEmailData
from ratewatch.services.rates.fred_client import RateSource
from ratewatch.services.rates.rate_service import RateService
from ratewatch.utils.datetime_utils import as_utc, utc_now
from ratewatch.utils.exceptions import (
    ActiveSessionExistsError,
    MissingPreconditionError,
    SessionNotFoundError,
)

RATE_FETCH_ERROR = "Failed to fetch rate data"

# Called with a session id after create, start-over and resume
EvaluationRequester = Callable[[int], Any]


class CycleOutcome:
    """Evaluation cycle outcome constants."""

    TRIGGERED = EvaluationOutcome.TRIGGERED
    NOT_TRIGGERED = EvaluationOutcome.NOT_TRIGGERED
    ERROR = EvaluationOutcome.ERROR
    SKIPPED = "skipped"  # Session not active, or inside the cooldown window


@dataclass
class EvaluationCycleResult:
    """Result of one evaluation cycle."""

    session_id: int
    outcome: str
    triggered: bool = False
    metrics: dict[str, Any] | None = None
    triggered_reason: str | None = None
    skipped_reason: str | None = None
    notified: bool = False
    error: str | None = None

    @property
    def skipped(self) -> bool:
        """True if the cycle did nothing."""
        return self.outcome == CycleOutcome.SKIPPED

    def to_dict(self) -> dict[str, Any]:
        """Per-session summary for batch results and task return values."""
        return {
            "session_id": self.session_id,
            "outcome": self.outcome,
            "triggered": self.triggered,
            "notified": self.notified,
            "skipped_reason": self.skipped_reason,
            "error": self.error,
        }


class SessionLifecycleManager(BaseService):
    """
    Session lifecycle manager.

    Collaborators are injected: the rate source and email provider are
    built once per process, the evaluation requester (usually a task
    enqueue) is optional.
    """

    def __init__(
        self,
        session: AsyncSession,
        rate_source: RateSource,
        email_provider: EmailProvider,
        evaluation_requester: EvaluationRequester | None = None,
        cooldown_hours: int | None = None,
    ) -> None:
        super().__init__(session)
        self.sessions = MonitorSessionRepository(session)
        self.profiles = ThresholdProfileRepository(session)
        self.users = UserRepository(session)
        self.runs = EvaluationRunRepository(session)
        self.rate_service = RateService(session, rate_source)
        self.notifier = Notifier(session, email_provider)
        self.evaluation_requester = evaluation_requester
        self.cooldown_hours = (
            settings.evaluation_cooldown_hours if cooldown_hours is None else cooldown_hours
        )

    def _request_evaluation(self, session_id: int) -> None:
        """Ask the job layer for an evaluation cycle of a session."""
        if self.evaluation_requester is None:
            return
        try:
            self.evaluation_requester(session_id)
        except Exception as e:
            # The session is already committed; the daily batch will pick it up
            self.logger.error(f"Failed to request evaluation for session {session_id}: {e!r}")

    # ------------------------------------------------------------------
    # Session creation
    # ------------------------------------------------------------------

    async def create_session(self, user_id: int) -> MonitorSession:
        """
        Create an active session for a user without an active one.

        Raises:
            ActiveSessionExistsError: If the user already has an active session
        """
        existing = await self.sessions.get_active_for_user(user_id)
        if existing is not None:
            raise ActiveSessionExistsError(user_id, existing.id)

        monitor_session = await self.sessions.create_session(user_id)
        await self.commit()
        self._request_evaluation(monitor_session.id)
        return monitor_session

    async def start_over(self, user_id: int) -> MonitorSession:
        """
        Stop the user's open sessions and create a fresh active one.

        Both writes are committed together.
        """
        stopped = await self.sessions.stop_open_sessions(user_id)
        monitor_session = await self.sessions.create_session(user_id)
        await self.commit()

        self.logger.info(
            f"Start over for user {user_id}: stopped {stopped} session(s), "
            f"new session {monitor_session.id}"
        )
        self._request_evaluation(monitor_session.id)
        return monitor_session

    # ------------------------------------------------------------------
    # User actions
    # ------------------------------------------------------------------

    async def _change_status(
        self,
        session_id: int,
        target: str,
        refusal: str,
    ) -> ServiceResult:
        monitor_session = await self.sessions.get_by_id(session_id)
        if monitor_session is None:
            return ServiceResult(success=False, error="Session not found")
        if not can_transition(monitor_session.status, target):
            return ServiceResult(success=False, error=refusal)

        previous = monitor_session.status
        changed = await self.sessions.transition(session_id, sources_for(target), target)
        if not changed:
            return ServiceResult(success=False, error="Session status changed, try again")

        self.logger.info(f"Session {session_id}: {previous} -> {target}")
        return ServiceResult(success=True, data={"status": target})

    @transaction
    async def pause(self, session_id: int) -> ServiceResult:
        """Pause an active session."""
        return await self._change_status(
            session_id,
            MonitorSessionStatus.PAUSED,
            "Only active sessions can be paused",
        )

    @transaction
    async def stop(self, session_id: int) -> ServiceResult:
        """Stop an active, paused or errored session (terminal)."""
        return await self._change_status(
            session_id,
            MonitorSessionStatus.STOPPED,
            "Session is already finished",
        )

    async def resume(self, session_id: int) -> ServiceResult:
        """
        Resume a paused session and request a fresh evaluation.

        Refused while the user has another active session.
        """
        monitor_session = await self.sessions.get_by_id(session_id)
        if monitor_session is not None:
            other = await self.sessions.get_active_for_user(monitor_session.user_id)
            if other is not None and other.id != session_id:
                return ServiceResult(
                    success=False,
                    error="Another monitoring session is already active",
                )

        result = await self._change_status(
            session_id,
            MonitorSessionStatus.ACTIVE,
            "Only paused sessions can be resumed",
        )
        if not result.success:
            return result

        await self.commit()
        self._request_evaluation(session_id)
        return result

    async def run_now(self, session_id: int) -> EvaluationCycleResult:
        """Run an evaluation cycle immediately, ignoring the cooldown."""
        return await self.run_evaluation(session_id, bypass_cooldown=True)

    # ------------------------------------------------------------------
    # Evaluation cycle
    # ------------------------------------------------------------------

    def _in_cooldown(self, monitor_session: MonitorSession) -> bool:
        if self.cooldown_hours <= 0 or monitor_session.last_check_at is None:
            return False
        elapsed = utc_now() - as_utc(monitor_session.last_check_at)
        return elapsed < timedelta(hours=self.cooldown_hours)

    @log_operation
    async def run_evaluation(
        self, session_id: int, bypass_cooldown: bool = False
    ) -> EvaluationCycleResult:
        """
        Run one evaluation cycle for a session.

        Args:
            session_id: Monitor session ID
            bypass_cooldown: Ignore evaluation_cooldown_hours (run now)

        Returns:
            EvaluationCycleResult

        Raises:
            SessionNotFoundError: Unknown session id
            MissingPreconditionError: Active session without profile or user
        """
        monitor_session = await self.sessions.get_by_id(session_id)
        if monitor_session is None:
            raise SessionNotFoundError(session_id)

        if monitor_session.status != MonitorSessionStatus.ACTIVE:
            return EvaluationCycleResult(
                session_id=session_id,
                outcome=CycleOutcome.SKIPPED,
                skipped_reason=monitor_session.status,
            )

        if not bypass_cooldown and self._in_cooldown(monitor_session):
            return EvaluationCycleResult(
                session_id=session_id,
                outcome=CycleOutcome.SKIPPED,
                skipped_reason="cooldown",
            )

        user_id = monitor_session.user_id
        profile = await self.profiles.get_by_user_id(user_id)
        if profile is None:
            raise MissingPreconditionError(
                f"Threshold profile not found for user {user_id} (session {session_id})"
            )
        user = await self.users.get_by_id(user_id)
        if user is None:
            raise MissingPreconditionError(
                f"User {user_id} not found (session {session_id})"
            )

        stored = await self.rate_service.fetch_and_store_latest()
        if stored is None:
            return await self._record_fetch_error(session_id)

        await self.sessions.record_check(session_id, utc_now())

        evaluation = evaluate(profile, stored.value)
        metrics = evaluation.metrics.to_dict()

        if not evaluation.triggered:
            await self.runs.record(
                session_id,
                EvaluationOutcome.NOT_TRIGGERED,
                computed_metrics=metrics,
            )
            await self.commit()
            return EvaluationCycleResult(
                session_id=session_id,
                outcome=CycleOutcome.NOT_TRIGGERED,
                metrics=metrics,
            )

        # Housekeeping is kept even if the notification event write rolls back
        await self.commit()

        notified_at = None
        if profile.email_alerts_enabled:
            notify_result = await self.notifier.notify(
                session_id,
                user.email,
                AlertEmailData(
                    user_name=user.display_name,
                    current_rate=profile.current_rate,
                    benchmark_rate=stored.value,
                    benchmark_rate_threshold=profile.benchmark_rate_threshold,
                    triggered_reason=evaluation.triggered_reason or "",
                    dashboard_url=settings.dashboard_url,
                    break_even_months=evaluation.metrics.break_even_months,
                    monthly_savings=evaluation.metrics.monthly_savings,
                ),
            )
            if notify_result.sent:
                notified_at = utc_now()

        await self.runs.record(
            session_id,
            EvaluationOutcome.TRIGGERED,
            computed_metrics=metrics,
            triggered_reason=evaluation.triggered_reason,
            notified_at=notified_at,
        )
        completed = await self.sessions.transition(
            session_id,
            sources_for(MonitorSessionStatus.COMPLETED),
            MonitorSessionStatus.COMPLETED,
            completed_at=utc_now(),
            trigger_metadata={
                "benchmark_rate": str(stored.value),
                "observation_date": stored.observation_date.isoformat(),
                "metrics": metrics,
                "triggered_reason": evaluation.triggered_reason,
                "triggered_by_rate": evaluation.triggered_by_rate,
                "triggered_by_break_even": evaluation.triggered_by_break_even,
            },
        )
        await self.commit()

        if completed:
            self.logger.info(f"Session {session_id} completed: {evaluation.triggered_reason}")
        else:
            self.logger.warning(
                f"Session {session_id} triggered but left 'active' during the cycle"
            )

        return EvaluationCycleResult(
            session_id=session_id,
            outcome=CycleOutcome.TRIGGERED,
            triggered=True,
            metrics=metrics,
            triggered_reason=evaluation.triggered_reason,
            notified=notified_at is not None,
        )

    async def _record_fetch_error(self, session_id: int) -> EvaluationCycleResult:
        """Record an error run and move the session to error."""
        metrics = {"error": RATE_FETCH_ERROR}
        await self.runs.record(session_id, EvaluationOutcome.ERROR, computed_metrics=metrics)
        moved = await self.sessions.transition(
            session_id,
            sources_for(MonitorSessionStatus.ERROR),
            MonitorSessionStatus.ERROR,
            last_error=RATE_FETCH_ERROR,
        )
        await self.commit()

        if moved:
            self.logger.warning(f"Session {session_id} -> error: {RATE_FETCH_ERROR}")
        return EvaluationCycleResult(
            session_id=session_id,
            outcome=CycleOutcome.ERROR,
            metrics=metrics,
            error=RATE_FETCH_ERROR,
        )
