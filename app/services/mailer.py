"""SMTP mail delivery for OTP codes and inquiry replies."""

import asyncio
import html
import logging
import smtplib
import socket
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr
from typing import Optional

from app.config import Settings

logger = logging.getLogger("AISolutions.mail")

MAIL_NOT_CONFIGURED = "MAIL_NOT_CONFIGURED"
MAIL_SEND_FAILED = "MAIL_SEND_FAILED"

TRANSIENT_ERRORS = (
    smtplib.SMTPServerDisconnected,
    smtplib.SMTPConnectError,
    socket.timeout,
    ConnectionError,
)


@dataclass
class MailResult:
    ok: bool
    error: Optional[str] = None


class Mailer:
    """
    Sends mail through SMTP in a worker thread.

    Transient connection failures are retried ``retries`` times with
    exponential backoff; every outcome is reported as a ``MailResult``
    rather than raised, so callers decide whether a failure matters.
    """

    def __init__(self, settings: Settings, backoff: float = 0.5):
        self.host = settings.email_host
        self.port = settings.email_port
        self.secure = settings.email_secure
        self.user = settings.email_user
        self.password = settings.email_pass
        self.sender = settings.email_from or settings.email_user or "no-reply@example.com"
        self.timeout = settings.email_timeout
        self.retries = settings.mail_retries
        self.backoff = backoff
        if not self.configured:
            logger.warning("EMAIL_USER/EMAIL_PASS missing, email disabled")

    @property
    def configured(self) -> bool:
        return bool(self.user and self.password)

    def build_message(self, to: str, subject: str, text_body: str, html_body: str) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = formataddr(("AI-Solutions", self.sender))
        msg["To"] = to
        msg.attach(MIMEText(text_body, "plain"))
        msg.attach(MIMEText(html_body, "html"))
        return msg

    def _deliver(self, msg: MIMEMultipart) -> None:
        smtp_class = smtplib.SMTP_SSL if self.secure else smtplib.SMTP
        with smtp_class(self.host, self.port, timeout=self.timeout) as server:
            if not self.secure:
                server.starttls()
            server.login(self.user, self.password)
            server.sendmail(self.sender, [msg["To"]], msg.as_string())

    async def send(self, to: str, subject: str, text_body: str, html_body: str) -> MailResult:
        if not self.configured:
            logger.warning(f"Email not configured; skipping '{subject}' to {to}")
            return MailResult(ok=False, error=MAIL_NOT_CONFIGURED)

        msg = self.build_message(to, subject, text_body, html_body)
        attempt = 0
        while True:
            try:
                await asyncio.to_thread(self._deliver, msg)
                logger.info(f"Email sent: '{subject}' to {to}")
                return MailResult(ok=True)
            except TRANSIENT_ERRORS as e:
                if attempt >= self.retries:
                    logger.error(f"Email send failed after {attempt + 1} attempts: {e}")
                    return MailResult(ok=False, error=MAIL_SEND_FAILED)
                delay = self.backoff * (2 ** attempt)
                attempt += 1
                logger.warning(f"Transient mail error ({e}), retry {attempt} in {delay:.1f}s")
                await asyncio.sleep(delay)
            except (smtplib.SMTPException, OSError) as e:
                logger.error(f"Email send failed: {e}")
                return MailResult(ok=False, error=MAIL_SEND_FAILED)

    async def send_otp(self, email: str, otp: str, ttl_minutes: int = 10) -> MailResult:
        logger.debug(f"Sending OTP to {email} (expires in {ttl_minutes} minutes)")
        return await self.send(
            to=email,
            subject="Your Admin Login OTP",
            text_body=f"Your OTP code is: {otp}. It expires in {ttl_minutes} minutes.",
            html_body=f"<p>Your OTP code is: <b>{otp}</b>. It expires in {ttl_minutes} minutes.</p>",
        )

    async def send_reply(self, email: str, name: str, message: str) -> MailResult:
        text_body = f"Dear {name},\n\n{message}\n\nBest regards,\nAI-Solutions Team"
        html_body = (
            f"<p>Dear {html.escape(name)},</p>"
            f"<p>{html.escape(message).replace(chr(10), '<br>')}</p>"
            "<p>Best regards,<br>AI-Solutions Team</p>"
        )
        return await self.send(
            to=email,
            subject=f"Re: Your Inquiry - {name}",
            text_body=text_body,
            html_body=html_body,
        )
