"""One-time email confirmation codes."""

from __future__ import annotations

import secrets

OTP_MIN = 1000
OTP_MAX = 9999


def generate_otp() -> str:
    """Return a 4-digit code drawn uniformly from [1000, 9999].

    Codes are short for human entry. They are not unique: two emails, or two
    requests for the same email, can receive the same value.
    """
    return str(OTP_MIN + secrets.randbelow(OTP_MAX - OTP_MIN + 1))
