"""Unit tests for core/config.py -- the SECRET_KEY policy and derived defaults."""

import pytest
from pydantic import ValidationError

from core.config import Settings


def test_debug_generates_random_key() -> None:
    first = Settings(_env_file=None, debug=True, secret_key="")
    second = Settings(_env_file=None, debug=True, secret_key="")
    assert len(first.secret_key) >= 32
    assert first.secret_key != second.secret_key


def test_production_requires_key() -> None:
    with pytest.raises(ValidationError, match="SECRET_KEY is required"):
        Settings(_env_file=None, debug=False, secret_key="")


def test_short_key_rejected() -> None:
    with pytest.raises(ValidationError, match="at least 32 characters"):
        Settings(_env_file=None, debug=False, secret_key="too-short")


def test_mail_backend_follows_debug_unless_set() -> None:
    key = "k" * 40
    assert Settings(_env_file=None, debug=True, secret_key=key, mail_backend="").mail_backend == "console"
    assert Settings(_env_file=None, debug=False, secret_key=key, mail_backend="").mail_backend == "smtp"
    assert Settings(_env_file=None, debug=True, secret_key=key, mail_backend="smtp").mail_backend == "smtp"


def test_defaults() -> None:
    settings = Settings(_env_file=None, debug=True, secret_key="k" * 40)
    assert settings.token_expire_seconds == 7 * 24 * 3600
    assert settings.otp_ttl_seconds == 600
    assert settings.password_min_length == 8
    assert settings.default_language == "en"
