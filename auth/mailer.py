"""
auth/mailer.py -- Outbound delivery of one-time codes.

Two dispatchers share the same send_code(email, code) contract:

  SmtpMailer    -- opens an SMTP connection per message (STARTTLS + login when
                   credentials are configured). Any transport failure is raised
                   as MailDeliveryError; nothing is queued or retried, so the
                   calling lifecycle operation fails with it.
  ConsoleMailer -- logs the code instead of sending it. For local development
                   (MAIL_BACKEND=console).

build_mailer() picks one from Settings. The app keeps the instance on
app.state.mailer so tests can swap in a recording fake.
"""

from __future__ import annotations

import logging
import smtplib
from email.message import EmailMessage
from typing import Protocol

from auth.errors import MailDeliveryError
from core.config import Settings

logger = logging.getLogger("wedaccounts.mail")

_TEXT_BODY = """Welcome to Wed App!

Your OTP code is: {code}

This code will expire in 10 minutes.
If you didn't request this code, please ignore this email.
"""

_HTML_BODY = """\
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <h2 style="color: #333;">Welcome to Wed App!</h2>
  <p>Your OTP code is:</p>
  <div style="background-color: #f4f4f4; padding: 20px; text-align: center; font-size: 32px;
              font-weight: bold; letter-spacing: 5px; margin: 20px 0;">
    {code}
  </div>
  <p>This code will expire in 10 minutes.</p>
  <p style="color: #666; font-size: 12px;">If you didn't request this code, please ignore this email.</p>
</div>
"""


class Mailer(Protocol):
    def send_code(self, email: str, code: str) -> None: ...


class SmtpMailer:
    """Sends OTP emails through an SMTP relay."""

    def __init__(
        self,
        host: str,
        port: int,
        sender: str,
        subject: str,
        username: str = "",
        password: str = "",
        use_tls: bool = True,
        timeout: float = 10.0,
    ) -> None:
        self._host = host
        self._port = port
        self._sender = sender
        self._subject = subject
        self._username = username
        self._password = password
        self._use_tls = use_tls
        self._timeout = timeout

    def build_message(self, email: str, code: str) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self._sender
        message["To"] = email
        message["Subject"] = self._subject
        message.set_content(_TEXT_BODY.format(code=code))
        message.add_alternative(_HTML_BODY.format(code=code), subtype="html")
        return message

    def send_code(self, email: str, code: str) -> None:
        message = self.build_message(email, code)
        try:
            with smtplib.SMTP(self._host, self._port, timeout=self._timeout) as conn:
                if self._use_tls:
                    conn.starttls()
                if self._username:
                    conn.login(self._username, self._password)
                conn.send_message(message)
        except (smtplib.SMTPException, OSError) as exc:
            logger.error("Error sending OTP email to %s: %s", email, exc)
            raise MailDeliveryError(detail="Failed to send OTP email") from exc
        logger.info("OTP email sent to %s", email)


class ConsoleMailer:
    """Writes the code to the log instead of sending mail."""

    def send_code(self, email: str, code: str) -> None:
        logger.warning("MAIL_BACKEND=console -- OTP for %s is %s", email, code)


def build_mailer(settings: Settings) -> Mailer:
    """Return the dispatcher configured by MAIL_BACKEND."""
    if settings.mail_backend == "console":
        return ConsoleMailer()
    if settings.mail_backend != "smtp":
        raise ValueError(f"Unknown MAIL_BACKEND: {settings.mail_backend!r}")
    return SmtpMailer(
        host=settings.smtp_host,
        port=settings.smtp_port,
        sender=settings.mail_from,
        subject=settings.mail_subject,
        username=settings.smtp_username,
        password=settings.smtp_password,
        use_tls=settings.smtp_use_tls,
    )
