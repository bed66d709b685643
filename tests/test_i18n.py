"""Unit tests for core/i18n.py -- language negotiation and message lookup."""

import pytest

from core.i18n import SUPPORTED_LANGUAGES, TRANSLATIONS, negotiate_language, translate


@pytest.mark.parametrize(
    "header, expected",
    [
        (None, "en"),
        ("", "en"),
        ("ar", "ar"),
        ("ar-EG", "ar"),
        ("AR", "ar"),
        ("ar,en;q=0.9", "ar"),
        ("en-US,ar;q=0.8", "en"),
        ("fr-FR", "en"),
        ("fr,ar;q=0.9", "en"),
    ],
)
def test_negotiate_language(header, expected) -> None:
    assert negotiate_language(header) == expected


def test_negotiate_language_custom_default() -> None:
    assert negotiate_language("de", default="ar") == "ar"


def test_translate_known_key() -> None:
    assert translate("auth.invalidOTP", "en") == "Invalid or expired OTP"
    assert translate("auth.invalidOTP", "ar") == "رمز التحقق غير صحيح أو منتهي الصلاحية"


def test_translate_falls_back_to_english_then_key() -> None:
    table = {"en": {"only.en": "English only"}, "ar": {}}
    assert translate("only.en", "ar", table) == "English only"
    assert translate("only.en", "xx", table) == "English only"
    assert translate("missing.key", "ar", table) == "missing.key"


def test_every_language_has_every_key() -> None:
    english = set(TRANSLATIONS["en"])
    for lang in SUPPORTED_LANGUAGES:
        assert set(TRANSLATIONS[lang]) == english, f"{lang} is missing keys"
