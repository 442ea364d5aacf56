"""
User repository.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from ratewatch.models.user import User
from ratewatch.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Repository for users."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository."""
        super().__init__(User, session)

    async def get_by_email(self, email: str) -> User | None:
        """Get user by email address (case-insensitive)."""
        return await self.get_by(email=email.strip().lower())

    async def create_user(self, email: str, name: str | None = None) -> User:
        """Create a user with a normalized email."""
        return await self.create(email=email.strip().lower(), name=name)
