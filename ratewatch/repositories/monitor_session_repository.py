"""
Monitor session repository.

Database operations for MonitorSession model. Status changes are
conditional updates so a transition only applies from an expected state.
"""

from collections.abc import Iterable
from datetime import datetime
from typing import Any, Sequence

from loguru import logger
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ratewatch.models.monitor_session import MonitorSession, MonitorSessionStatus
from ratewatch.repositories.base import BaseRepository


class MonitorSessionRepository(BaseRepository[MonitorSession]):
    """Repository for monitor sessions."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository."""
        super().__init__(MonitorSession, session)

    async def _reload(self, session_ids: Sequence[int]) -> None:
        """Refresh already-loaded sessions after a bulk UPDATE."""
        if not session_ids:
            return
        await self.session.execute(
            select(MonitorSession)
            .where(MonitorSession.id.in_(list(session_ids)))
            .execution_options(populate_existing=True)
        )

    async def create_session(self, user_id: int) -> MonitorSession:
        """Create a new active session for a user."""
        monitor_session = await self.create(
            user_id=user_id,
            status=MonitorSessionStatus.ACTIVE,
        )
        logger.info(f"Created monitor session {monitor_session.id} for user {user_id}")
        return monitor_session

    async def get_current_for_user(self, user_id: int) -> MonitorSession | None:
        """Get the most recently created session of a user."""
        result = await self.session.execute(
            select(MonitorSession)
            .where(MonitorSession.user_id == user_id)
            .order_by(MonitorSession.created_at.desc(), MonitorSession.id.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def get_active_for_user(self, user_id: int) -> MonitorSession | None:
        """Get the user's active session, if any."""
        result = await self.session.execute(
            select(MonitorSession)
            .where(
                MonitorSession.user_id == user_id,
                MonitorSession.status == MonitorSessionStatus.ACTIVE,
            )
            .order_by(MonitorSession.id.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def get_active_ids(self) -> Sequence[int]:
        """Get IDs of all active sessions, oldest first."""
        result = await self.session.execute(
            select(MonitorSession.id)
            .where(MonitorSession.status == MonitorSessionStatus.ACTIVE)
            .order_by(MonitorSession.id)
        )
        return result.scalars().all()

    async def transition(
        self,
        session_id: int,
        from_statuses: Iterable[str],
        to_status: str,
        **fields: Any,
    ) -> bool:
        """
        Change status only if the session is currently in one of from_statuses.

        Args:
            session_id: Session ID
            from_statuses: Statuses the change is allowed from
            to_status: New status
            **fields: Columns written together with the status

        Returns:
            True if the row was updated
        """
        result = await self.session.execute(
            update(MonitorSession)
            .where(
                MonitorSession.id == session_id,
                MonitorSession.status.in_(list(from_statuses)),
            )
            .values(status=to_status, **fields)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            return False
        await self._reload([session_id])
        return True

    async def stop_open_sessions(self, user_id: int) -> int:
        """
        Stop every active or paused session of a user.

        Returns:
            Number of sessions stopped
        """
        result = await self.session.execute(
            update(MonitorSession)
            .where(
                MonitorSession.user_id == user_id,
                MonitorSession.status.in_(
                    [MonitorSessionStatus.ACTIVE, MonitorSessionStatus.PAUSED]
                ),
            )
            .values(status=MonitorSessionStatus.STOPPED)
            .returning(MonitorSession.id)
            .execution_options(synchronize_session=False)
        )
        stopped_ids = list(result.scalars().all())
        await self._reload(stopped_ids)
        return len(stopped_ids)

    async def record_check(self, session_id: int, checked_at: datetime) -> None:
        """Update last_check_at and last_success_at after a rate was obtained."""
        await self.session.execute(
            update(MonitorSession)
            .where(MonitorSession.id == session_id)
            .values(last_check_at=checked_at, last_success_at=checked_at)
            .execution_options(synchronize_session=False)
        )
        await self._reload([session_id])

    async def increment_threshold_version(self, session_id: int) -> int | None:
        """
        Bump the threshold change counter.

        Returns:
            New version, or None if the session does not exist
        """
        monitor_session = await self.get_by_id(session_id)
        if monitor_session is None:
            return None
        monitor_session.threshold_version += 1
        await self.session.flush()
        return monitor_session.threshold_version
