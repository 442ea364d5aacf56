"""
Integration tests for the batch runner, status queries and profile service.
"""

from decimal import Decimal

import pytest

from ratewatch.config.constants import RATE_SERIES_NAME
from ratewatch.models import EvaluationOutcome, MonitorSession, MonitorSessionStatus
from ratewatch.services.monitor import (
    BatchEvaluationRunner,
    MonitorStatusService,
    SessionLifecycleManager,
)
from ratewatch.services.monitor.batch import FAILED
from ratewatch.services.profile_service import ProfileService


class TestBatchEvaluationRunner:
    """Continue-on-error batch semantics."""

    @pytest.mark.asyncio
    async def test_one_failure_does_not_abort_batch(
        self, db_session, session_maker, seed_user, make_rate_source, fake_email_provider
    ):
        quiet = await seed_user()
        hit = await seed_user(benchmark_rate_threshold=Decimal("5.75"))
        broken = await seed_user(with_profile=False)
        paused = await seed_user()

        setup = SessionLifecycleManager(db_session, make_rate_source("5.6"), fake_email_provider)
        quiet_session = await setup.create_session(quiet.id)
        hit_session = await setup.create_session(hit.id)
        broken_session = await setup.create_session(broken.id)
        paused_session = await setup.create_session(paused.id)
        await setup.pause(paused_session.id)

        runner = BatchEvaluationRunner(
            session_maker,
            lambda session: SessionLifecycleManager(
                session, make_rate_source("5.6"), fake_email_provider
            ),
            concurrency=1,
        )
        result = await runner.run_all()

        assert result.checked == 3
        assert result.triggered == 1
        assert result.failed == 1
        outcomes = {item["session_id"]: item["outcome"] for item in result.results}
        assert outcomes == {
            quiet_session.id: EvaluationOutcome.NOT_TRIGGERED,
            hit_session.id: EvaluationOutcome.TRIGGERED,
            broken_session.id: FAILED,
        }
        assert len(fake_email_provider.sent) == 1
        assert fake_email_provider.sent[0].to == hit.email

        async with session_maker() as fresh:
            statuses = {
                session_id: (await fresh.get(MonitorSession, session_id)).status
                for session_id in outcomes
            }
        assert statuses[quiet_session.id] == MonitorSessionStatus.ACTIVE
        assert statuses[hit_session.id] == MonitorSessionStatus.COMPLETED
        assert statuses[broken_session.id] == MonitorSessionStatus.ACTIVE

    @pytest.mark.asyncio
    async def test_outage_counts_as_failed(
        self, db_session, session_maker, seed_user, make_rate_source, fake_email_provider
    ):
        user = await seed_user()
        setup = SessionLifecycleManager(db_session, make_rate_source(None), fake_email_provider)
        await setup.create_session(user.id)

        runner = BatchEvaluationRunner(
            session_maker,
            lambda session: SessionLifecycleManager(
                session, make_rate_source(None), fake_email_provider
            ),
            concurrency=1,
        )
        result = await runner.run_all()

        assert result.checked == 1
        assert result.failed == 1
        assert result.to_dict()["results"][0]["error"] == "Failed to fetch rate data"

    @pytest.mark.asyncio
    async def test_no_active_sessions(self, session_maker, make_rate_source, fake_email_provider):
        runner = BatchEvaluationRunner(
            session_maker,
            lambda session: SessionLifecycleManager(
                session, make_rate_source("5.0"), fake_email_provider
            ),
        )
        result = await runner.run_all()

        assert result.to_dict() == {"checked": 0, "triggered": 0, "failed": 0, "results": []}


class TestMonitorStatusService:
    """Status page queries."""

    @pytest.mark.asyncio
    async def test_status_without_session(self, db_session, seed_user):
        user = await seed_user()

        status = await MonitorStatusService(db_session).get_monitor_status(user.id)

        assert status.session is None
        assert status.runs == []
        assert status.latest_rate is None
        assert status.series["name"] == RATE_SERIES_NAME

    @pytest.mark.asyncio
    async def test_status_after_trigger(
        self, db_session, seed_user, make_rate_source, fake_email_provider
    ):
        user = await seed_user()
        manager = SessionLifecycleManager(
            db_session, make_rate_source("5.5"), fake_email_provider
        )
        monitor_session = await manager.create_session(user.id)
        await manager.run_evaluation(monitor_session.id)

        service = MonitorStatusService(db_session)
        status = await service.get_monitor_status(user.id)
        history = await service.get_rate_history(user.id)

        assert status.session.id == monitor_session.id
        assert status.session.status == MonitorSessionStatus.COMPLETED
        assert len(status.runs) == 1
        assert status.last_triggered_run.id == status.runs[0].id
        assert status.latest_rate.value == Decimal("5.5")
        assert [obs.value for obs in history] == [Decimal("5.5")]
        assert status.series == {
            "name": RATE_SERIES_NAME,
            "source": "Federal Reserve Economic Data (FRED)",
            "update_frequency": "Daily (weekdays)",
        }


class TestProfileService:
    """Onboarding and settings updates."""

    @pytest.mark.asyncio
    async def test_onboarding_starts_monitoring(
        self, db_session, make_rate_source, fake_email_provider
    ):
        manager = SessionLifecycleManager(
            db_session, make_rate_source("5.6"), fake_email_provider
        )
        profiles = ProfileService(db_session, lifecycle=manager)
        user = await profiles.get_or_create_user("owner@example.com", "Owner")

        result = await profiles.submit_onboarding(
            user.id,
            {"current_rate": "6.5", "benchmark_rate_threshold": "5.5"},
        )

        assert result.success is True
        profile = await profiles.get_profile(user.id)
        assert profile.current_rate == Decimal("6.5")
        assert profile.benchmark_rate_threshold == Decimal("5.5")
        assert profile.email_alerts_enabled is True
        monitor_session = await db_session.get(MonitorSession, result.data["session_id"])
        assert monitor_session.status == MonitorSessionStatus.ACTIVE

    @pytest.mark.asyncio
    async def test_onboarding_again_replaces_session(
        self, db_session, make_rate_source, fake_email_provider
    ):
        manager = SessionLifecycleManager(
            db_session, make_rate_source("5.6"), fake_email_provider
        )
        profiles = ProfileService(db_session, lifecycle=manager)
        user = await profiles.get_or_create_user("owner@example.com")
        data = {"current_rate": "6.5", "benchmark_rate_threshold": "5.5"}

        first = await profiles.submit_onboarding(user.id, data)
        second = await profiles.submit_onboarding(user.id, data)

        old = await db_session.get(MonitorSession, first.data["session_id"])
        new = await db_session.get(MonitorSession, second.data["session_id"])
        assert old.status == MonitorSessionStatus.STOPPED
        assert new.status == MonitorSessionStatus.ACTIVE

    @pytest.mark.asyncio
    async def test_invalid_onboarding_creates_nothing(
        self, db_session, make_rate_source, fake_email_provider
    ):
        manager = SessionLifecycleManager(
            db_session, make_rate_source("5.6"), fake_email_provider
        )
        profiles = ProfileService(db_session, lifecycle=manager)
        user = await profiles.get_or_create_user("owner@example.com")

        result = await profiles.submit_onboarding(user.id, {"current_rate": "6.5"})

        assert result.success is False
        assert "At least one threshold must be set" in result.error
        assert await profiles.get_profile(user.id) is None
        assert await manager.sessions.get_current_for_user(user.id) is None

    @pytest.mark.asyncio
    async def test_get_or_create_user_is_idempotent(self, db_session):
        profiles = ProfileService(db_session)

        first = await profiles.get_or_create_user("owner@example.com")
        second = await profiles.get_or_create_user("owner@example.com")

        assert first.id == second.id

    @pytest.mark.asyncio
    async def test_update_settings_bumps_version(
        self, db_session, seed_user, make_rate_source, fake_email_provider
    ):
        user = await seed_user()
        manager = SessionLifecycleManager(
            db_session, make_rate_source("5.6"), fake_email_provider
        )
        await manager.create_session(user.id)
        profiles = ProfileService(db_session, lifecycle=manager)

        result = await profiles.update_settings(
            user.id, {"current_rate": "6.25", "benchmark_rate_threshold": "5.25"}
        )

        assert result.success is True
        assert result.data["threshold_version"] == 2
        profile = await profiles.get_profile(user.id)
        assert profile.current_rate == Decimal("6.25")

    @pytest.mark.asyncio
    async def test_update_settings_requires_onboarding(self, db_session, seed_user):
        user = await seed_user(with_profile=False)

        result = await ProfileService(db_session).update_settings(
            user.id, {"current_rate": "6.5", "benchmark_rate_threshold": "5.5"}
        )

        assert result.success is False
        assert result.error == "Complete onboarding first"
