"""
Notification event repository.

The unique dedupe_key makes "insert if absent" the at-most-once primitive.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from ratewatch.models.notification_event import NotificationEvent
from ratewatch.repositories.base import BaseRepository


class NotificationEventRepository(BaseRepository[NotificationEvent]):
    """Repository for delivered notification events."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository."""
        super().__init__(NotificationEvent, session)

    async def exists_for_key(self, dedupe_key: str) -> bool:
        """Check if a notification with this key was already recorded."""
        return await self.exists(dedupe_key=dedupe_key)

    async def record_if_absent(
        self,
        session_id: int,
        dedupe_key: str,
        subject: str,
        body_preview: str | None,
        provider_message_id: str | None,
    ) -> bool:
        """
        Record a delivered notification.

        Returns:
            True if recorded, False if another writer already holds the key
        """
        new_id = await self.insert_if_absent(
            ["dedupe_key"],
            session_id=session_id,
            dedupe_key=dedupe_key,
            subject=subject,
            body_preview=body_preview,
            provider_message_id=provider_message_id,
        )
        return new_id is not None
