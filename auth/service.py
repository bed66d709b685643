"""
auth/service.py -- Account lifecycle state machine and admin account management.

AccountService holds no per-request state. Every operation re-reads the
store, performs its steps strictly in order (persist, then dispatch, then
mint), and reports failure by raising one of the auth.errors classes. The API
layer translates those into responses.

Account states:
  registered      -- is_email_confirmed=False, is_profile_complete=False
  confirmed       -- a live OTP for the email was redeemed
  profile-complete -- name + date of birth supplied via update_profile()
Neither flag gates login; both are informational for clients.

Security:
  [C1] login() uses authenticate_account() for timing equalization. Do not
       inline get_by_email() + verify_password() there.
  admin_login() checks the role BEFORE the password. A non-admin therefore
       gets ForbiddenError whatever password was sent, while an unknown email
       gets the generic InvalidCredentials. This ordering is intentional and
       must be kept until product decides otherwise.
  Registration rolls back the new account and its codes if the code cannot
       be delivered, so no login-capable account exists without a code.

Layer rule: no imports from api/.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError

from auth.errors import (
    ConflictError,
    ForbiddenError,
    InvalidCode,
    InvalidCredentials,
    NotFoundError,
    ValidationError,
)
from auth.mailer import Mailer
from auth.models import RELATIONSHIP_TYPES, ROLE_RANK, ROLE_SUPER_ADMIN, Account
from auth.otp import generate_otp
from auth.store import AccountStore
from auth.tokens import (
    PASSWORD_MAX_BYTES,
    authenticate_account,
    burn_password_check,
    create_access_token,
    hash_password,
    verify_password,
)

logger = logging.getLogger("wedaccounts.auth")

_MAX_PAGE_SIZE = 100


@dataclass
class AuthSession:
    """A freshly minted bearer token and the account it was issued for."""

    token: str
    account: Account


@dataclass
class AccountPage:
    """One page of an admin account listing."""

    accounts: list[Account]
    page: int
    limit: int
    total: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0


class AccountService:
    """Registration, confirmation, login, profile and admin account operations."""

    def __init__(self, store: AccountStore, mailer: Mailer, password_min_length: int = 8) -> None:
        self._store = store
        self._mailer = mailer
        self._password_min_length = password_min_length

    # ------------------------------------------------------------------
    # Public lifecycle
    # ------------------------------------------------------------------

    def register(self, email: str, password: str) -> AuthSession:
        """Create an unconfirmed account, send it a code and issue a token."""
        if not email or not password:
            raise ValidationError("auth.emailRequired")
        self._check_password_length(password)
        if self._store.get_by_email(email) is not None:
            raise ConflictError()

        try:
            account_id = self._store.create_account(Account(email=email, hashed_password=hash_password(password)))
        except IntegrityError as exc:
            # Lost a race with a concurrent registration for the same email.
            raise ConflictError() from exc

        code = generate_otp()
        self._store.create_otp(email, code)
        try:
            self._mailer.send_code(email, code)
        except Exception:
            logger.warning("OTP delivery failed for %s; rolling back registration", email)
            self._store.delete_otps_for_email(email)
            self._store.delete_account(account_id)
            raise

        logger.info("Account registered: %s", account_id)
        return AuthSession(token=create_access_token(account_id), account=self._require(account_id))

    def resend_otp(self, email: str) -> None:
        """Replace every outstanding code for email with a fresh one and send it."""
        if not email:
            raise ValidationError("auth.emailRequired")
        if self._store.get_by_email(email) is None:
            raise NotFoundError()
        code = generate_otp()
        self._store.replace_otps_for_email(email, code)
        self._mailer.send_code(email, code)

    def confirm_otp(self, email: str, code: str) -> AuthSession:
        """Redeem a code: mark the email confirmed, consume the code, issue a token."""
        if not email or not code:
            raise ValidationError("auth.emailRequired")

        record = self._store.find_otp(email, code)
        if record is None:
            raise InvalidCode()

        if not self._store.update_account_by_email(email, is_email_confirmed=True):
            raise NotFoundError()

        # Only the redeemed record goes; sibling codes expire on their own.
        self._store.delete_otp(record.id)

        account = self._store.get_by_email(email)
        if account is None:
            raise NotFoundError()
        logger.info("Email confirmed for account %s", account.id)
        return AuthSession(token=create_access_token(account.id), account=account)

    def login(self, email: str, password: str) -> AuthSession:
        if not email or not password:
            raise ValidationError("auth.emailRequired")
        account = authenticate_account(self._store, email, password)
        if account is None:
            raise InvalidCredentials()
        return AuthSession(token=create_access_token(account.id), account=account)

    def admin_login(self, email: str, password: str) -> AuthSession:
        """Log in an admin or superAdmin. Order: find, role, password."""
        if not email or not password:
            raise ValidationError("auth.emailRequired")
        account = self._store.get_by_email(email)
        if account is None or account.hashed_password is None:
            burn_password_check(password)
            raise InvalidCredentials()
        if not account.is_admin:
            logger.warning("Admin login refused for non-admin account %s", account.id)
            raise ForbiddenError()
        if not verify_password(password, account.hashed_password):
            raise InvalidCredentials()
        return AuthSession(token=create_access_token(account.id), account=account)

    # ------------------------------------------------------------------
    # Authenticated self-service
    # ------------------------------------------------------------------

    def update_profile(
        self,
        account_id: str,
        name: str | None,
        date_of_birth: str | None,
        relationship_type: str | None = None,
        number_of_children: int | None = None,
    ) -> Account:
        """Fill in the profile and mark it complete.

        Completion is set unconditionally once name and date of birth are
        present; the optional fields are not checked.
        """
        if not name or not date_of_birth:
            raise ValidationError("auth.profileFieldsRequired")
        if relationship_type is not None and relationship_type not in RELATIONSHIP_TYPES:
            raise ValidationError("error.validationFailed")
        updated = self._store.update_account(
            account_id,
            name=name,
            relationship_type=relationship_type,
            date_of_birth=date_of_birth,
            number_of_children=number_of_children or 0,
            is_profile_complete=True,
        )
        if not updated:
            raise NotFoundError()
        return self._require(account_id)

    def get_current_account(self, account_id: str) -> Account:
        """Fresh read; the account may have been deleted since authentication."""
        return self._require(account_id)

    def delete_account(self, account_id: str) -> None:
        """Delete the account and every code issued to its email."""
        account = self._require(account_id)
        self._store.delete_account(account_id)
        self._store.delete_otps_for_email(account.email)
        logger.info("Account deleted: %s", account_id)

    def logout(self) -> None:
        """Acknowledge a logout.

        Tokens are stateless and there is no denylist: the caller's token stays
        valid until it expires. Clients are expected to discard it.
        """
        return None

    # ------------------------------------------------------------------
    # Admin account management
    # ------------------------------------------------------------------

    def list_accounts(
        self,
        page: int = 1,
        limit: int = 10,
        search: str = "",
        is_email_confirmed: bool | None = None,
        is_profile_complete: bool | None = None,
        role: str | None = None,
    ) -> AccountPage:
        page = max(page, 1)
        limit = min(max(limit, 1), _MAX_PAGE_SIZE)
        filters = {
            "search": search,
            "is_email_confirmed": is_email_confirmed,
            "is_profile_complete": is_profile_complete,
            "role": role,
        }
        accounts = self._store.list_accounts(offset=(page - 1) * limit, limit=limit, **filters)
        total = self._store.count_accounts(**filters)
        return AccountPage(accounts=accounts, page=page, limit=limit, total=total)

    def get_account(self, account_id: str) -> Account:
        return self._require(account_id)

    def admin_update_account(self, account_id: str, **fields) -> Account:
        """Apply the provided (non-None) fields to an account.

        Accepted: name, relationship_type, date_of_birth, number_of_children,
        role, is_email_confirmed, is_profile_complete.
        """
        changes = {k: v for k, v in fields.items() if v is not None}
        if "role" in changes and changes["role"] not in ROLE_RANK:
            raise ValidationError("error.validationFailed")
        if "relationship_type" in changes and changes["relationship_type"] not in RELATIONSHIP_TYPES:
            raise ValidationError("error.validationFailed")
        if "hashed_password" in changes:
            raise ValidationError("error.validationFailed")

        self._require(account_id)
        if changes:
            self._store.update_account(account_id, **changes)
            logger.info("Account %s updated by admin: %s", account_id, sorted(changes))
        return self._require(account_id)

    def admin_delete_account(self, actor_id: str, account_id: str) -> None:
        """Delete another account. Admins cannot delete themselves."""
        if actor_id == account_id:
            raise ForbiddenError("auth.cannotDeleteSelf")
        target = self._require(account_id)
        self._store.delete_account(account_id)
        self._store.delete_otps_for_email(target.email)
        logger.info("Account %s deleted by admin %s", account_id, actor_id)

    def bootstrap_super_admin(self, email: str, password: str, name: str = "Super Admin") -> tuple[Account, bool]:
        """Ensure a superAdmin exists for email. Returns (account, created)."""
        existing = self._store.get_by_email(email)
        if existing is not None:
            return existing, False
        self._check_password_length(password)
        account_id = self._store.create_account(
            Account(
                email=email,
                hashed_password=hash_password(password),
                name=name,
                role=ROLE_SUPER_ADMIN,
                is_email_confirmed=True,
                is_profile_complete=True,
            )
        )
        return self._require(account_id), True

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _check_password_length(self, password: str) -> None:
        if len(password) < self._password_min_length:
            raise ValidationError("auth.passwordMinLength")
        if len(password.encode("utf-8")) > PASSWORD_MAX_BYTES:
            raise ValidationError("auth.passwordMaxLength")

    def _require(self, account_id: str) -> Account:
        account = self._store.get_by_id(account_id)
        if account is None:
            raise NotFoundError()
        return account
