"""
Notification services.

Email provider abstraction, alert templates and the at-most-once notifier.
"""

from ratewatch.services.notification.email_provider import (
    EmailMessage,
    EmailProvider,
    ResendEmailProvider,
)
from ratewatch.services.notification.notifier import (
    Notifier,
    NotifyResult,
    dedupe_key_for_session,
)
from ratewatch.services.notification.templates import AlertEmailData

__all__ = [
    "AlertEmailData",
    "EmailMessage",
    "EmailProvider",
    "Notifier",
    "NotifyResult",
    "ResendEmailProvider",
    "dedupe_key_for_session",
]
