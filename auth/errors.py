"""
auth/errors.py -- Error taxonomy for the account lifecycle and access gate.

Every failure the auth layer can report is one of these classes. Each carries
the HTTP status it maps to, a stable machine-readable code, and the
translation key of its user-facing message. The API layer owns the single
translator that turns them into responses (api/main.py); nothing in auth/
builds HTTP responses or localized strings itself.

Layer rule: stdlib only.
"""

from __future__ import annotations


class AccountError(Exception):
    """Base class for all expected auth-layer failures."""

    status_code: int = 400
    code: str = "error"
    message_key: str = "error.internalServer"

    def __init__(self, message_key: str | None = None, detail: str | None = None) -> None:
        if message_key is not None:
            self.message_key = message_key
        self.detail = detail
        super().__init__(detail or self.message_key)


class ValidationError(AccountError):
    """Missing or malformed input. The caller can fix and resubmit."""

    status_code = 400
    code = "validation_error"
    message_key = "auth.emailRequired"


class ConflictError(AccountError):
    """An account with this email already exists."""

    status_code = 409
    code = "conflict"
    message_key = "auth.userExists"


class InvalidCredentials(AccountError):
    """Login failed.

    Deliberately the same for an unknown email and a wrong password so the
    response cannot be used to enumerate accounts.
    """

    status_code = 401
    code = "invalid_credentials"
    message_key = "auth.invalidCredentials"


AuthError = InvalidCredentials


class InvalidCode(AccountError):
    """No live OTP matches. Wrong, consumed and expired look identical."""

    status_code = 400
    code = "invalid_code"
    message_key = "auth.invalidOTP"


class NotFoundError(AccountError):
    status_code = 404
    code = "not_found"
    message_key = "auth.userNotFound"


class TokenRequiredError(AccountError):
    status_code = 401
    code = "token_required"
    message_key = "auth.tokenRequired"


class TokenInvalidError(AccountError):
    """Bearer token failed structural or signature checks."""

    status_code = 401
    code = "token_invalid"
    message_key = "auth.tokenInvalid"


class TokenExpiredError(AccountError):
    """Bearer token was genuine but its exp claim has passed."""

    status_code = 401
    code = "token_expired"
    message_key = "auth.tokenExpired"


class ForbiddenError(AccountError):
    """Role insufficient, or a guarded self-action (e.g. admin self-delete)."""

    status_code = 403
    code = "forbidden"
    message_key = "auth.unauthorized"


class MailDeliveryError(AccountError):
    """The mail transport refused or failed to deliver a code."""

    status_code = 502
    code = "mail_delivery_failed"
    message_key = "error.mailDelivery"
