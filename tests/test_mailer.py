"""Unit tests for auth/mailer.py -- OTP email construction and delivery failures."""

import smtplib
from unittest.mock import MagicMock, patch

import pytest

from auth.errors import MailDeliveryError
from auth.mailer import ConsoleMailer, SmtpMailer, build_mailer
from core.config import get_settings


def _mailer(**overrides) -> SmtpMailer:
    options = {
        "host": "smtp.wed.test",
        "port": 587,
        "sender": "no-reply@wed.test",
        "subject": "Your OTP Code for Wed App",
        "username": "mailer",
        "password": "pw",
    }
    options.update(overrides)
    return SmtpMailer(**options)


def test_build_message_carries_code_in_both_parts() -> None:
    message = _mailer().build_message("bride@wed.test", "4821")
    assert message["To"] == "bride@wed.test"
    assert message["From"] == "no-reply@wed.test"
    assert message["Subject"] == "Your OTP Code for Wed App"
    bodies = [part.get_content() for part in message.iter_parts()]
    assert len(bodies) == 2
    assert all("4821" in body for body in bodies)


def test_send_code_uses_starttls_and_login() -> None:
    with patch("auth.mailer.smtplib.SMTP") as smtp_cls:
        conn = smtp_cls.return_value.__enter__.return_value
        _mailer().send_code("bride@wed.test", "4821")

    smtp_cls.assert_called_once_with("smtp.wed.test", 587, timeout=10.0)
    conn.starttls.assert_called_once()
    conn.login.assert_called_once_with("mailer", "pw")
    conn.send_message.assert_called_once()


def test_send_code_skips_login_without_credentials() -> None:
    with patch("auth.mailer.smtplib.SMTP") as smtp_cls:
        conn = smtp_cls.return_value.__enter__.return_value
        _mailer(username="", use_tls=False).send_code("bride@wed.test", "4821")

    conn.starttls.assert_not_called()
    conn.login.assert_not_called()


@pytest.mark.parametrize("error", [smtplib.SMTPRecipientsRefused({}), ConnectionRefusedError()])
def test_transport_failure_raises_mail_delivery_error(error) -> None:
    with patch("auth.mailer.smtplib.SMTP") as smtp_cls:
        smtp_cls.return_value.__enter__.return_value.send_message.side_effect = error
        with pytest.raises(MailDeliveryError):
            _mailer().send_code("bride@wed.test", "4821")


def test_build_mailer_selects_backend() -> None:
    settings = get_settings()
    assert isinstance(build_mailer(settings.model_copy(update={"mail_backend": "console"})), ConsoleMailer)
    assert isinstance(build_mailer(settings.model_copy(update={"mail_backend": "smtp"})), SmtpMailer)
    with pytest.raises(ValueError):
        build_mailer(settings.model_copy(update={"mail_backend": "pigeon"}))


def test_console_mailer_does_not_touch_smtp() -> None:
    with patch("auth.mailer.smtplib.SMTP", MagicMock()) as smtp_cls:
        ConsoleMailer().send_code("bride@wed.test", "4821")
    smtp_cls.assert_not_called()
