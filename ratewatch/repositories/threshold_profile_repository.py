"""
Threshold profile repository.

Database operations for ThresholdProfile model.
"""

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from ratewatch.models.threshold_profile import ThresholdProfile
from ratewatch.repositories.base import BaseRepository


class ThresholdProfileRepository(BaseRepository[ThresholdProfile]):
    """Repository for threshold profiles (one per user)."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository."""
        super().__init__(ThresholdProfile, session)

    async def get_by_user_id(self, user_id: int) -> ThresholdProfile | None:
        """Get the profile owned by a user."""
        return await self.get_by(user_id=user_id)

    async def upsert(self, user_id: int, **fields: Any) -> tuple[ThresholdProfile, bool]:
        """
        Create or replace a user's profile.

        Args:
            user_id: Owner
            **fields: Profile columns

        Returns:
            Tuple of (profile, created)
        """
        profile = await self.get_by_user_id(user_id)
        if profile is None:
            return await self.create(user_id=user_id, **fields), True

        return await self.update(profile.id, **fields), False
