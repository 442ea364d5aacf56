"""
Notifier.

At most one alert per monitor session. The dedupe key depends only on the
session id, and the event row is written only after the provider accepted
the email, so a provider failure leaves the alert retryable.
"""

from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ratewatch.config.constants import ALERT_DEDUPE_KEY_PREFIX, BODY_PREVIEW_LENGTH
from ratewatch.repositories.notification_event_repository import (
    NotificationEventRepository,
)
from ratewatch.services.base_service import BaseService, ServiceResult
from ratewatch.services.notification.email_provider import EmailMessage, EmailProvider
from ratewatch.services.notification.templates import (
    AlertEmailData,
    render_alert_email,
    render_test_email,
)


def dedupe_key_for_session(session_id: int) -> str:
    """Deterministic dedupe key: one notification ever per session."""
    return f"{ALERT_DEDUPE_KEY_PREFIX}-{session_id}"


@dataclass
class NotifyResult:
    """
    Outcome of one notify call.

    sent: provider accepted the email during this call
    duplicate: skipped because an event already exists for the session
    recorded: the notification event row was written
    """

    sent: bool
    provider_id: str | None = None
    duplicate: bool = False
    recorded: bool = False
    error: str | None = None


class Notifier(BaseService):
    """Sends trigger alerts through an injected email provider."""

    def __init__(self, session: AsyncSession, email_provider: EmailProvider) -> None:
        super().__init__(session)
        self.email_provider = email_provider
        self.repository = NotificationEventRepository(session)

    async def notify(
        self, session_id: int, recipient: str, payload: AlertEmailData
    ) -> NotifyResult:
        """
        Send the trigger alert for a session, at most once.

        Commits the notification event on success.

        Args:
            session_id: Monitor session the alert belongs to
            recipient: Email address
            payload: Values for the alert template

        Returns:
            NotifyResult
        """
        dedupe_key = dedupe_key_for_session(session_id)

        if await self.repository.exists_for_key(dedupe_key):
            self.logger.info(f"Alert already sent for session {session_id}, skipping")
            return NotifyResult(sent=False, duplicate=True)

        subject, html, text = render_alert_email(payload)
        message = EmailMessage(to=recipient, subject=subject, html=html, text=text)

        try:
            provider_id = await self.email_provider.send(message)
        except Exception as e:
            self.logger.error(f"Email provider raised for session {session_id}: {e!r}")
            return NotifyResult(sent=False, error=str(e))

        if provider_id is None:
            self.logger.error(f"Failed to send alert email for session {session_id}")
            return NotifyResult(sent=False, error="Email provider returned no result")

        try:
            recorded = await self.repository.record_if_absent(
                session_id=session_id,
                dedupe_key=dedupe_key,
                subject=subject,
                body_preview=payload.triggered_reason[:BODY_PREVIEW_LENGTH],
                provider_message_id=provider_id,
            )
            await self.commit()
        except SQLAlchemyError as e:
            await self.rollback()
            self.logger.error(
                f"Alert for session {session_id} was sent (id={provider_id}) but the "
                f"notification event could not be stored; a retry may send it again: {e}"
            )
            return NotifyResult(sent=True, provider_id=provider_id, error=str(e))

        if not recorded:
            self.logger.warning(
                f"Concurrent alert for session {session_id}: event already recorded "
                f"by another writer (this send id={provider_id})"
            )
        else:
            self.logger.info(f"Alert sent for session {session_id} (id={provider_id})")

        return NotifyResult(sent=True, provider_id=provider_id, recorded=recorded)

    async def send_test_email(self, recipient: str, user_name: str) -> ServiceResult:
        """
        Send a configuration test email. Bypasses dedupe and records nothing.
        """
        subject, html, text = render_test_email(user_name)
        message = EmailMessage(to=recipient, subject=subject, html=html, text=text)

        try:
            provider_id = await self.email_provider.send(message)
        except Exception as e:
            self.logger.error(f"Test email error: {e!r}")
            return ServiceResult(success=False, error=str(e))

        if provider_id is None:
            return ServiceResult(success=False, error="Email provider returned no result")
        return ServiceResult(success=True, data={"provider_id": provider_id})
