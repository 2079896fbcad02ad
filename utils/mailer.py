"""
Outgoing email.

``Mailer.send`` builds a plain-text ``EmailMessage`` and hands it to SMTP
on a worker thread.  With ``MAIL_TRANSPORT=log`` the message is written
to the log instead, which is handy for local development.
"""

from __future__ import annotations

import asyncio
import logging
import smtplib
import ssl
from dataclasses import dataclass
from email.message import EmailMessage
from typing import Optional

from config.settings import Settings

logger = logging.getLogger(__name__)


@dataclass
class MailMessage:
    to: str
    subject: str
    text: str
    sender: Optional[str] = None


class Mailer:
    """SMTP mail sender configured from ``Settings``."""

    def __init__(self, settings: Settings) -> None:
        self._settings = settings

    @property
    def default_sender(self) -> str:
        return self._settings.mail_from or self._settings.smtp_user

    def _build(self, message: MailMessage) -> EmailMessage:
        msg = EmailMessage()
        msg["Subject"] = message.subject
        msg["From"] = message.sender or self.default_sender
        msg["To"] = message.to
        msg.set_content(message.text)
        return msg

    def _send_via_smtp(self, msg: EmailMessage) -> None:
        s = self._settings
        if not (s.smtp_host and s.smtp_user and s.smtp_password):
            raise RuntimeError(
                "SMTP is not configured. Set SMTP_HOST, SMTP_USER and SMTP_PASSWORD."
            )

        if s.smtp_use_ssl:
            context = ssl.create_default_context()
            with smtplib.SMTP_SSL(
                s.smtp_host, s.smtp_port, context=context, timeout=s.smtp_timeout_seconds
            ) as server:
                server.login(s.smtp_user, s.smtp_password)
                server.send_message(msg)
        else:
            with smtplib.SMTP(s.smtp_host, s.smtp_port, timeout=s.smtp_timeout_seconds) as server:
                server.starttls(context=ssl.create_default_context())
                server.login(s.smtp_user, s.smtp_password)
                server.send_message(msg)

    async def send(self, message: MailMessage) -> None:
        msg = self._build(message)
        if self._settings.mail_transport == "log":
            logger.info("Mail (log transport) → to=%s subject=%r", message.to, message.subject)
            return
        await asyncio.to_thread(self._send_via_smtp, msg)
        logger.info("Mail sent → to=%s subject=%r", message.to, message.subject)
