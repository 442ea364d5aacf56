"""
Integration tests for the evaluation cycle and session lifecycle.

Real repositories on in-memory SQLite; fake rate source and email provider.
"""

from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from ratewatch.models import EvaluationOutcome, MonitorSessionStatus, User
from ratewatch.repositories.evaluation_run_repository import EvaluationRunRepository
from ratewatch.repositories.notification_event_repository import (
    NotificationEventRepository,
)
from ratewatch.services.monitor import CycleOutcome, SessionLifecycleManager
from ratewatch.services.notification import AlertEmailData
from ratewatch.utils.exceptions import (
    ActiveSessionExistsError,
    MissingPreconditionError,
    SessionNotFoundError,
)


@pytest.fixture
def build_manager(db_session, make_rate_source, fake_email_provider):
    def _build(rate="5.5", email_provider=None, **kwargs) -> SessionLifecycleManager:
        return SessionLifecycleManager(
            db_session,
            rate_source=make_rate_source(rate),
            email_provider=email_provider or fake_email_provider,
            **kwargs,
        )

    return _build


class TestTriggerScenarios:
    """End-to-end cycle outcomes."""

    @pytest.mark.asyncio
    async def test_trigger_fires(self, db_session, seed_user, build_manager, fake_email_provider):
        user = await seed_user()
        manager = build_manager("5.5")
        monitor_session = await manager.create_session(user.id)

        result = await manager.run_evaluation(monitor_session.id)

        assert result.outcome == CycleOutcome.TRIGGERED
        assert result.triggered is True
        assert result.notified is True
        assert "5.500%" in result.triggered_reason

        assert monitor_session.status == MonitorSessionStatus.COMPLETED
        assert monitor_session.completed_at is not None
        assert monitor_session.trigger_metadata["triggered_reason"] == result.triggered_reason
        assert Decimal(monitor_session.trigger_metadata["benchmark_rate"]) == Decimal("5.5")
        assert monitor_session.last_check_at is not None

        runs = await EvaluationRunRepository(db_session).list_for_session(monitor_session.id)
        assert len(runs) == 1
        assert runs[0].outcome == EvaluationOutcome.TRIGGERED
        assert runs[0].notified_at is not None

        assert len(fake_email_provider.sent) == 1
        assert fake_email_provider.sent[0].to == user.email
        events = NotificationEventRepository(db_session)
        assert await events.count(session_id=monitor_session.id) == 1

    @pytest.mark.asyncio
    async def test_no_trigger(self, db_session, seed_user, build_manager, fake_email_provider):
        user = await seed_user()
        manager = build_manager("5.6")
        monitor_session = await manager.create_session(user.id)

        result = await manager.run_evaluation(monitor_session.id)

        assert result.outcome == CycleOutcome.NOT_TRIGGERED
        assert result.triggered is False
        assert monitor_session.status == MonitorSessionStatus.ACTIVE
        assert monitor_session.last_check_at is not None
        assert monitor_session.last_success_at is not None
        assert fake_email_provider.sent == []

        runs = await EvaluationRunRepository(db_session).list_for_session(monitor_session.id)
        assert [run.outcome for run in runs] == [EvaluationOutcome.NOT_TRIGGERED]
        assert runs[0].computed_metrics["benchmark_rate"] == "5.6000"

    @pytest.mark.asyncio
    async def test_break_even_trigger(self, seed_user, build_manager):
        user = await seed_user(
            benchmark_rate_threshold=None,
            break_even_months_threshold=24,
            loan_balance=Decimal("300000"),
            remaining_term_months=300,
            closing_cost_percent=Decimal("2"),
        )
        manager = build_manager("5.0")
        monitor_session = await manager.create_session(user.id)

        result = await manager.run_evaluation(monitor_session.id)

        assert result.triggered is True
        assert result.metrics["break_even_months"] == 23
        assert "23 months" in result.triggered_reason
        assert monitor_session.status == MonitorSessionStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_rate_provider_outage(
        self, db_session, seed_user, build_manager, fake_email_provider
    ):
        user = await seed_user()
        manager = build_manager(None)
        monitor_session = await manager.create_session(user.id)

        result = await manager.run_evaluation(monitor_session.id)

        assert result.outcome == CycleOutcome.ERROR
        assert result.triggered is False
        assert monitor_session.status == MonitorSessionStatus.ERROR
        assert monitor_session.last_error == "Failed to fetch rate data"
        assert monitor_session.last_check_at is None
        assert fake_email_provider.sent == []

        runs = await EvaluationRunRepository(db_session).list_for_session(monitor_session.id)
        assert runs[0].outcome == EvaluationOutcome.ERROR
        assert runs[0].computed_metrics == {"error": "Failed to fetch rate data"}

    @pytest.mark.asyncio
    async def test_email_failure_still_completes(
        self, db_session, seed_user, build_manager, make_email_provider
    ):
        user = await seed_user()
        manager = build_manager("5.5", email_provider=make_email_provider(fail=True))
        monitor_session = await manager.create_session(user.id)

        result = await manager.run_evaluation(monitor_session.id)

        assert result.triggered is True
        assert result.notified is False
        assert monitor_session.status == MonitorSessionStatus.COMPLETED
        runs = await EvaluationRunRepository(db_session).list_for_session(monitor_session.id)
        assert runs[0].notified_at is None
        # No event: the alert stays retryable
        assert await NotificationEventRepository(db_session).count() == 0

    @pytest.mark.asyncio
    async def test_email_disabled(self, seed_user, build_manager, fake_email_provider):
        user = await seed_user(email_alerts_enabled=False)
        manager = build_manager("5.0")
        monitor_session = await manager.create_session(user.id)

        result = await manager.run_evaluation(monitor_session.id)

        assert result.triggered is True
        assert result.notified is False
        assert fake_email_provider.sent == []
        assert monitor_session.status == MonitorSessionStatus.COMPLETED


class TestCycleGuards:
    """Idempotence and preconditions."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "target",
        [
            MonitorSessionStatus.PAUSED,
            MonitorSessionStatus.COMPLETED,
            MonitorSessionStatus.STOPPED,
            MonitorSessionStatus.ERROR,
        ],
    )
    async def test_non_active_session_is_skipped(
        self, db_session, seed_user, build_manager, fake_email_provider, target
    ):
        user = await seed_user()
        manager = build_manager("5.0")
        monitor_session = await manager.create_session(user.id)
        await manager.sessions.transition(
            monitor_session.id, [MonitorSessionStatus.ACTIVE], target
        )
        await db_session.commit()

        result = await manager.run_evaluation(monitor_session.id)

        assert result.skipped is True
        assert result.skipped_reason == target
        assert manager.rate_service.rate_source.calls == []
        assert fake_email_provider.sent == []
        assert await EvaluationRunRepository(db_session).count() == 0

    @pytest.mark.asyncio
    async def test_rerun_after_trigger_sends_nothing(
        self, seed_user, build_manager, fake_email_provider
    ):
        user = await seed_user()
        manager = build_manager("5.0")
        monitor_session = await manager.create_session(user.id)

        await manager.run_evaluation(monitor_session.id)
        second = await manager.run_now(monitor_session.id)

        assert second.skipped is True
        assert len(fake_email_provider.sent) == 1

    @pytest.mark.asyncio
    async def test_notify_twice_sends_once(self, db_session, seed_user, build_manager, fake_email_provider):
        user = await seed_user()
        manager = build_manager("5.0")
        monitor_session = await manager.create_session(user.id)
        await manager.run_evaluation(monitor_session.id)

        repeat = await manager.notifier.notify(
            monitor_session.id,
            user.email,
            AlertEmailData(
                user_name="User",
                current_rate=Decimal("6.5"),
                benchmark_rate=Decimal("5.0"),
                benchmark_rate_threshold=Decimal("5.5"),
                triggered_reason="again",
                dashboard_url="https://ratewatch.test/status",
            ),
        )

        assert repeat.sent is False
        assert repeat.duplicate is True
        assert len(fake_email_provider.sent) == 1
        assert await NotificationEventRepository(db_session).count() == 1

    @pytest.mark.asyncio
    async def test_missing_profile_is_fatal(self, seed_user, build_manager):
        user = await seed_user(with_profile=False)
        manager = build_manager("5.0")
        monitor_session = await manager.create_session(user.id)

        with pytest.raises(MissingPreconditionError):
            await manager.run_evaluation(monitor_session.id)

        assert monitor_session.status == MonitorSessionStatus.ACTIVE
        assert manager.rate_service.rate_source.calls == []

    @pytest.mark.asyncio
    async def test_unknown_session(self, build_manager):
        with pytest.raises(SessionNotFoundError):
            await build_manager().run_evaluation(12345)

    @pytest.mark.asyncio
    async def test_cooldown_skips_scheduled_cycles_only(self, seed_user, build_manager):
        user = await seed_user()
        manager = build_manager("5.6", cooldown_hours=24)
        monitor_session = await manager.create_session(user.id)

        first = await manager.run_evaluation(monitor_session.id)
        second = await manager.run_evaluation(monitor_session.id)
        forced = await manager.run_now(monitor_session.id)

        assert first.outcome == CycleOutcome.NOT_TRIGGERED
        assert second.skipped_reason == "cooldown"
        assert forced.outcome == CycleOutcome.NOT_TRIGGERED


class TestLifecycleActions:
    """Session creation and user actions."""

    @pytest.mark.asyncio
    async def test_create_requests_evaluation(self, seed_user, build_manager):
        user = await seed_user()
        requester = MagicMock()
        manager = build_manager(evaluation_requester=requester)

        monitor_session = await manager.create_session(user.id)

        requester.assert_called_once_with(monitor_session.id)

    @pytest.mark.asyncio
    async def test_create_refuses_second_active(self, seed_user, build_manager):
        user = await seed_user()
        manager = build_manager()
        await manager.create_session(user.id)

        with pytest.raises(ActiveSessionExistsError):
            await manager.create_session(user.id)

    @pytest.mark.asyncio
    async def test_start_over_replaces_open_sessions(self, seed_user, build_manager):
        user = await seed_user()
        requester = MagicMock()
        manager = build_manager(evaluation_requester=requester)
        first = await manager.create_session(user.id)
        await manager.pause(first.id)

        second = await manager.start_over(user.id)

        assert first.status == MonitorSessionStatus.STOPPED
        assert second.status == MonitorSessionStatus.ACTIVE
        assert second.id != first.id
        assert requester.call_args.args == (second.id,)

    @pytest.mark.asyncio
    async def test_start_over_after_completion(self, seed_user, build_manager):
        user = await seed_user()
        manager = build_manager("5.0")
        first = await manager.create_session(user.id)
        await manager.run_evaluation(first.id)

        second = await manager.start_over(user.id)

        assert first.status == MonitorSessionStatus.COMPLETED
        assert second.status == MonitorSessionStatus.ACTIVE

    @pytest.mark.asyncio
    async def test_pause_resume_stop(self, seed_user, build_manager):
        user = await seed_user()
        requester = MagicMock()
        manager = build_manager(evaluation_requester=requester)
        monitor_session = await manager.create_session(user.id)
        requester.reset_mock()

        paused = await manager.pause(monitor_session.id)
        assert paused.success is True
        assert monitor_session.status == MonitorSessionStatus.PAUSED

        assert (await manager.pause(monitor_session.id)).success is False

        resumed = await manager.resume(monitor_session.id)
        assert resumed.success is True
        assert monitor_session.status == MonitorSessionStatus.ACTIVE
        requester.assert_called_once_with(monitor_session.id)

        assert (await manager.resume(monitor_session.id)).success is False

        stopped = await manager.stop(monitor_session.id)
        assert stopped.success is True
        assert monitor_session.status == MonitorSessionStatus.STOPPED
        assert (await manager.stop(monitor_session.id)).success is False

    @pytest.mark.asyncio
    async def test_stop_from_error(self, seed_user, build_manager):
        user = await seed_user()
        manager = build_manager(None)
        monitor_session = await manager.create_session(user.id)
        await manager.run_evaluation(monitor_session.id)

        assert (await manager.resume(monitor_session.id)).success is False
        result = await manager.stop(monitor_session.id)

        assert result.success is True
        assert monitor_session.status == MonitorSessionStatus.STOPPED

    @pytest.mark.asyncio
    async def test_resume_refused_while_another_is_active(self, db_session, seed_user, build_manager):
        user = await seed_user()
        manager = build_manager()
        paused = await manager.create_session(user.id)
        await manager.pause(paused.id)
        await manager.create_session(user.id)

        result = await manager.resume(paused.id)

        assert result.success is False
        assert "already active" in result.error
        assert paused.status == MonitorSessionStatus.PAUSED

    @pytest.mark.asyncio
    async def test_unknown_session_action(self, build_manager):
        result = await build_manager().pause(999)

        assert result.success is False
        assert result.error == "Session not found"

    @pytest.mark.asyncio
    async def test_refused_resume_leaves_caller_session_intact(
        self, db_session, seed_user, build_manager
    ):
        user = await seed_user()
        manager = build_manager()
        monitor_session = await manager.create_session(user.id)
        pending = User(email="pending@example.com")
        db_session.add(pending)

        result = await manager.resume(monitor_session.id)

        assert result.success is False
        assert result.error == "Only paused sessions can be resumed"
        # Loaded objects stay readable and pending work is kept
        assert monitor_session.status == MonitorSessionStatus.ACTIVE
        assert pending in db_session.new
