"""Unit tests for auth/otp.py -- one-time code generation."""

from unittest.mock import patch

from auth.otp import OTP_MAX, OTP_MIN, generate_otp


def test_codes_are_four_digit_strings() -> None:
    for _ in range(200):
        code = generate_otp()
        assert isinstance(code, str)
        assert len(code) == 4
        assert code.isdigit()
        assert OTP_MIN <= int(code) <= OTP_MAX


def test_range_bounds() -> None:
    with patch("auth.otp.secrets.randbelow", return_value=0):
        assert generate_otp() == "1000"
    with patch("auth.otp.secrets.randbelow", return_value=8999):
        assert generate_otp() == "9999"
