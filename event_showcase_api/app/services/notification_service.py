"""
Notification e‑mails.

``Mailer`` sends the single kind of message this backend knows about:
telling an event owner that a new, not yet published application was
submitted to their event.  SMTP is blocking, so the actual exchange
runs in a worker thread.  Delivery problems are raised as
``NotificationError``; callers decide whether to log or ignore them.
"""

import asyncio
import logging
import smtplib
from email.message import EmailMessage
from typing import Optional

from ..core.config import Settings
from ..core.errors import NotificationError


class Mailer:
    """SMTP mailer configured from ``Settings``."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    def build_notification(
        self,
        address: str,
        application_title: Optional[str],
        event_title: Optional[str],
    ) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self.settings.smtp_sender
        message["To"] = address
        message["Subject"] = "New application to your event"
        message.set_content(
            f'A new application "{application_title or "untitled"}" was submitted to '
            f'your event "{event_title or "untitled"}".\n\n'
            "It is not published yet; review it to make it visible.\n"
        )
        return message

    async def send_notification(
        self,
        address: str,
        application_title: Optional[str] = None,
        event_title: Optional[str] = None,
    ) -> bool:
        """Send the notification e‑mail.

        Returns ``False`` without sending when no SMTP host is
        configured, ``True`` once the server accepted the message.
        """
        logger = logging.getLogger(__name__)
        if not self.settings.smtp_host:
            logger.warning("SMTP host not configured, notification to %s not sent", address)
            return False
        message = self.build_notification(address, application_title, event_title)
        try:
            await asyncio.to_thread(self._send, message)
        except (smtplib.SMTPException, OSError) as e:
            raise NotificationError(f"Could not send notification to {address}: {e}") from e
        logger.info("Sent notification to %s", address)
        return True

    def _send(self, message: EmailMessage) -> None:
        with smtplib.SMTP(self.settings.smtp_host, self.settings.smtp_port, timeout=30) as smtp:
            if self.settings.smtp_starttls:
                smtp.starttls()
            if self.settings.smtp_user:
                smtp.login(self.settings.smtp_user, self.settings.smtp_password)
            smtp.send_message(message)
