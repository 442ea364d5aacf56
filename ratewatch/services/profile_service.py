"""
Profile service.

Settings boundary: thresholds are validated here before any session is
touched. Onboarding replaces the profile and starts a fresh session;
a settings update bumps threshold_version of the active session.
"""

from collections.abc import Mapping
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from ratewatch.models.threshold_profile import ThresholdProfile
from ratewatch.models.user import User
from ratewatch.repositories.monitor_session_repository import MonitorSessionRepository
from ratewatch.repositories.threshold_profile_repository import (
    ThresholdProfileRepository,
)
from ratewatch.repositories.user_repository import UserRepository
from ratewatch.services.base_service import BaseService, ServiceResult, transaction
from ratewatch.services.monitor.lifecycle import SessionLifecycleManager
from ratewatch.utils.exceptions import ProfileValidationError
from ratewatch.validators.profile import validate_email, validate_profile_input


class ProfileService(BaseService):
    """Onboarding and settings updates."""

    def __init__(
        self,
        session: AsyncSession,
        lifecycle: SessionLifecycleManager | None = None,
    ) -> None:
        """
        Initialize profile service.

        Args:
            session: Async database session
            lifecycle: Lifecycle manager on the same session (needed for onboarding)
        """
        super().__init__(session)
        self.lifecycle = lifecycle
        self.users = UserRepository(session)
        self.profiles = ThresholdProfileRepository(session)
        self.sessions = MonitorSessionRepository(session)

    @transaction
    async def get_or_create_user(self, email: str, name: str | None = None) -> User:
        """
        Get a user by email, creating it if missing.

        Raises:
            ProfileValidationError: If the email is invalid
        """
        is_valid, error = validate_email(email)
        if not is_valid:
            raise ProfileValidationError([error or "Invalid email"])

        user = await self.users.get_by_email(email)
        if user is None:
            user = await self.users.create_user(email, name)
            self.logger.info(f"Created user {user.id}")
        return user

    async def get_profile(self, user_id: int) -> ThresholdProfile | None:
        """Get the user's threshold profile."""
        return await self.profiles.get_by_user_id(user_id)

    async def submit_onboarding(self, user_id: int, data: Mapping[str, Any]) -> ServiceResult:
        """
        Save thresholds and start monitoring.

        Any previous open session is stopped and a new active one is
        created, which requests an immediate evaluation.

        Returns:
            ServiceResult with data={"session_id": ...} on success
        """
        try:
            profile_input = validate_profile_input(data)
        except ProfileValidationError as e:
            return ServiceResult(success=False, error=str(e))

        if self.lifecycle is None:
            raise RuntimeError("ProfileService needs a lifecycle manager for onboarding")

        user = await self.users.get_by_id(user_id)
        if user is None:
            return ServiceResult(success=False, error="User not found")

        await self.profiles.upsert(user_id, **profile_input.to_fields())
        monitor_session = await self.lifecycle.start_over(user_id)

        return ServiceResult(success=True, data={"session_id": monitor_session.id})

    @transaction
    async def update_settings(self, user_id: int, data: Mapping[str, Any]) -> ServiceResult:
        """
        Update thresholds of an onboarded user.

        Returns:
            ServiceResult with the new threshold_version when a session is active
        """
        try:
            profile_input = validate_profile_input(data)
        except ProfileValidationError as e:
            return ServiceResult(success=False, error=str(e))

        if await self.profiles.get_by_user_id(user_id) is None:
            return ServiceResult(success=False, error="Complete onboarding first")

        await self.profiles.upsert(user_id, **profile_input.to_fields())

        version = None
        current = await self.sessions.get_current_for_user(user_id)
        if current is not None and current.is_active:
            version = await self.sessions.increment_threshold_version(current.id)
            self.logger.info(f"Session {current.id} threshold_version -> {version}")

        return ServiceResult(success=True, data={"threshold_version": version})
