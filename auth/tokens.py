"""
auth/tokens.py -- JWT issuing/verification and password hashing.

Security design decisions:
  JWT: python-jose with HS256. Tokens are signed with SECRET_KEY and carry
       only the account id (sub), issued-at and expiry. Role and flags are
       re-read from the store on every request, never trusted from the token.
       Verification raises TokenExpiredError for a genuine-but-expired token
       and TokenInvalidError for everything else, so clients can tell
       "log in again" apart from "this token was tampered with".

  Passwords: bcrypt directly (no passlib wrapper). Bcrypt's cost factor makes
       brute-forcing low-entropy secrets expensive. The _DUMMY_HASH constant
       enables timing equalization in authenticate_account() so response time
       does not reveal whether an email is registered [C1].

  SECRET_KEY: sourced from core.config.get_settings(). The Settings class
       validates the key at startup: dev mode (DEBUG=true) auto-generates a
       random key with a warning; production mode refuses to start without one.

Layer rule: no imports from api/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

import bcrypt
from jose import ExpiredSignatureError, JWTError, jwt

from auth.errors import TokenExpiredError, TokenInvalidError
from core.config import get_settings

if TYPE_CHECKING:
    from auth.models import Account
    from auth.store import AccountStore

logger = logging.getLogger("wedaccounts.auth")

# ---------------------------------------------------------------------------
# Config -- read once at module load via the lru_cache singleton [M6]
# ---------------------------------------------------------------------------

_settings = get_settings()

_ALGORITHM = "HS256"

# bcrypt only looks at the first 72 bytes; newer releases refuse longer input.
PASSWORD_MAX_BYTES = 72

# ---------------------------------------------------------------------------
# Password hashing (bcrypt -- direct usage, no passlib wrapper)
# ---------------------------------------------------------------------------


def hash_password(plain: str) -> str:
    """Return a bcrypt hash of the given plaintext password.

    Callers must reject passwords over PASSWORD_MAX_BYTES first; bcrypt
    raises ValueError for longer input.
    """
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash."""
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Malformed stored hash; treat as a mismatch.
        return False


# Timing equalization dummy hash [C1].
# Computed once at module load so the first login attempt is not measurably
# slower than subsequent ones.
_DUMMY_HASH: str = hash_password("wedaccounts_timing_dummy")


def burn_password_check(plain: str) -> None:
    """Run one bcrypt comparison against the dummy hash and discard the result."""
    verify_password(plain, _DUMMY_HASH)


# ---------------------------------------------------------------------------
# JWT encode / decode
# ---------------------------------------------------------------------------


def create_access_token(account_id: str, expire_seconds: int = 0) -> str:
    """Encode a signed JWT for account_id.

    Args:
        account_id:     Opaque account id stored as the JWT subject claim.
        expire_seconds: Token lifetime in seconds. 0 uses
                        Settings.token_expire_seconds (7 days by default).
    """
    duration = expire_seconds or _settings.token_expire_seconds
    now = datetime.now(timezone.utc)
    payload = {
        "sub": account_id,
        "iat": now,
        "exp": now + timedelta(seconds=duration),
    }
    return jwt.encode(payload, _settings.secret_key, algorithm=_ALGORITHM)


def decode_access_token(token: str) -> dict:
    """Decode and verify a JWT. Returns the payload dict.

    Raises:
        TokenExpiredError: signature valid, exp in the past.
        TokenInvalidError: anything else (bad signature, garbage, missing sub).
    """
    try:
        payload = jwt.decode(token, _settings.secret_key, algorithms=[_ALGORITHM])
    except ExpiredSignatureError as exc:
        raise TokenExpiredError() from exc
    except JWTError as exc:
        raise TokenInvalidError(detail=str(exc)) from exc
    if not payload.get("sub"):
        raise TokenInvalidError(detail="Token has no subject")
    return payload


# ---------------------------------------------------------------------------
# Account authentication (constant-time) [C1]
# ---------------------------------------------------------------------------


def authenticate_account(store: AccountStore, email: str, password: str) -> Account | None:
    """Check an email/password pair with timing equalization.

    Always runs bcrypt whether or not the account exists:
    - Unknown email: bcrypt runs against _DUMMY_HASH (same cost as real check)
    - Wrong password: bcrypt runs against the real hash (same cost)

    Returns the Account on success, None on any failure.
    """
    account = store.get_by_email(email)
    if account is None or account.hashed_password is None:
        burn_password_check(password)
        return None
    if not verify_password(password, account.hashed_password):
        return None
    return account
