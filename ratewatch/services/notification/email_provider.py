"""
Email provider.

The notifier depends on the EmailProvider protocol; ResendEmailProvider is
the production implementation over the Resend REST API. It is built once
per process and injected.
"""

import asyncio
from dataclasses import dataclass
from typing import Protocol

import aiohttp
from loguru import logger

from ratewatch.config.constants import RESEND_API_URL
from ratewatch.config.settings import settings


@dataclass(frozen=True)
class EmailMessage:
    """Outbound email."""

    to: str
    subject: str
    html: str
    text: str | None = None


class EmailProvider(Protocol):
    """Sends one email and returns the provider message id, or None on failure."""

    async def send(self, message: EmailMessage) -> str | None:
        ...


class ResendEmailProvider:
    """Resend (https://resend.com) email provider."""

    def __init__(
        self,
        api_key: str | None = None,
        sender: str | None = None,
        api_url: str = RESEND_API_URL,
        timeout_seconds: float | None = None,
    ) -> None:
        """
        Initialize provider.

        Args:
            api_key: Resend API key
            sender: From header
            api_url: Emails endpoint
            timeout_seconds: Total timeout for one send
        """
        self.api_key = api_key if api_key is not None else settings.resend_api_key
        self.sender = sender or settings.email_from
        self.api_url = api_url
        self.timeout = aiohttp.ClientTimeout(
            total=timeout_seconds or settings.email_timeout_seconds
        )
        self._session: aiohttp.ClientSession | None = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession()
        return self._session

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    async def send(self, message: EmailMessage) -> str | None:
        """
        Send an email.

        Returns:
            Provider message id, or None if the provider did not accept it
        """
        if not self.api_key:
            logger.error("RESEND_API_KEY is not configured, email not sent")
            return None

        payload = {
            "from": self.sender,
            "to": [message.to],
            "subject": message.subject,
            "html": message.html,
        }
        if message.text:
            payload["text"] = message.text

        try:
            session = await self._get_session()
            async with session.post(
                self.api_url,
                json=payload,
                headers={"Authorization": f"Bearer {self.api_key}"},
                timeout=self.timeout,
            ) as response:
                if response.status >= 400:
                    body = await response.text()
                    logger.error(f"Resend error: HTTP {response.status} {body[:200]}")
                    return None
                data = await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"Failed to send email: {e!r}")
            return None
        except ValueError as e:
            logger.error(f"Resend returned invalid JSON: {e}")
            return None

        message_id = data.get("id") if isinstance(data, dict) else None
        return str(message_id) if message_id else "unknown"
