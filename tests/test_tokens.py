"""Unit tests for auth/tokens.py -- password hashing and bearer tokens.

Covers:
- hash_password() / verify_password() round trip and malformed hashes
- create_access_token() claims and the configured default lifetime
- decode_access_token() distinguishes expired from invalid tokens
- authenticate_account() returns None identically for unknown email and bad password
"""

import pytest
from jose import jwt

from auth.errors import TokenExpiredError, TokenInvalidError
from auth.models import Account
from auth.store import AccountStore
from auth.tokens import (
    authenticate_account,
    create_access_token,
    decode_access_token,
    hash_password,
    verify_password,
)
from core.config import get_settings


class TestPasswords:
    def test_hash_is_not_plaintext(self) -> None:
        hashed = hash_password("s3cret-pass")
        assert hashed != "s3cret-pass"
        assert hashed.startswith("$2")

    def test_verify_accepts_correct_password(self) -> None:
        assert verify_password("s3cret-pass", hash_password("s3cret-pass")) is True

    def test_verify_rejects_wrong_password(self) -> None:
        assert verify_password("wrong-pass", hash_password("s3cret-pass")) is False

    def test_verify_malformed_hash_is_false(self) -> None:
        assert verify_password("anything", "not-a-bcrypt-hash") is False


class TestAccessTokens:
    def test_fresh_token_round_trips_subject(self) -> None:
        payload = decode_access_token(create_access_token("abc123"))
        assert payload["sub"] == "abc123"
        assert "iat" in payload

    def test_default_lifetime_is_configured_value(self) -> None:
        payload = decode_access_token(create_access_token("abc123"))
        assert payload["exp"] - payload["iat"] == get_settings().token_expire_seconds

    def test_custom_lifetime(self) -> None:
        payload = decode_access_token(create_access_token("abc123", expire_seconds=60))
        assert payload["exp"] - payload["iat"] == 60

    def test_expired_token_raises_expired_not_invalid(self) -> None:
        token = create_access_token("abc123", expire_seconds=-10)
        with pytest.raises(TokenExpiredError):
            decode_access_token(token)

    def test_garbage_token_is_invalid(self) -> None:
        with pytest.raises(TokenInvalidError):
            decode_access_token("not.a.jwt")

    def test_wrong_signature_is_invalid(self) -> None:
        token = jwt.encode({"sub": "abc123"}, "x" * 40, algorithm="HS256")
        with pytest.raises(TokenInvalidError):
            decode_access_token(token)

    def test_missing_subject_is_invalid(self) -> None:
        token = jwt.encode({"iat": 0}, get_settings().secret_key, algorithm="HS256")
        with pytest.raises(TokenInvalidError):
            decode_access_token(token)


class TestAuthenticateAccount:
    def test_success_returns_account(self, store: AccountStore) -> None:
        store.create_account(Account(email="ok@wed.test", hashed_password=hash_password("good-password")))
        account = authenticate_account(store, "ok@wed.test", "good-password")
        assert account is not None
        assert account.email == "ok@wed.test"

    def test_unknown_email_and_wrong_password_look_the_same(self, store: AccountStore) -> None:
        store.create_account(Account(email="ok@wed.test", hashed_password=hash_password("good-password")))
        assert authenticate_account(store, "ghost@wed.test", "good-password") is None
        assert authenticate_account(store, "ok@wed.test", "bad-password") is None
