"""
api/routes/v1/auth.py -- Account lifecycle REST endpoints.

Routes:
  POST   /api/v1/auth/register      -- create account, email an OTP, return token (201)
  POST   /api/v1/auth/resend-otp    -- replace outstanding OTPs with a fresh one
  POST   /api/v1/auth/confirm-otp   -- redeem OTP, mark email confirmed, return token
  POST   /api/v1/auth/login         -- password login, return token
  POST   /api/v1/auth/admin/login   -- password login restricted to admin/superAdmin
  PUT    /api/v1/auth/profile       -- complete own profile (requires auth)
  GET    /api/v1/auth/me            -- current account, re-read from store (requires auth)
  POST   /api/v1/auth/logout        -- acknowledgement only (requires auth)
  DELETE /api/v1/auth/account       -- delete own account and its OTPs (requires auth)

Security:
  [C1] Login goes through AccountService.login(), which uses the timing-
       equalized authenticate_account(). Do not inline a store lookup here.
  [M5] Cache-Control: no-store on every response that carries a token.

Handlers are plain `def` so FastAPI runs them in its threadpool: store calls,
bcrypt and SMTP delivery all block, and each step finishes before the next
starts. Errors are raised as auth.errors classes and translated in api/main.py.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.locale import localize
from api.models import (
    AccountData,
    AccountOut,
    AccountResponse,
    AdminOut,
    AdminSessionData,
    AdminSessionResponse,
    ConfirmOtpRequest,
    CredentialsRequest,
    EmailRequest,
    MessageResponse,
    ProfileUpdate,
    SessionData,
    SessionResponse,
)
from auth.dependencies import authenticate
from auth.models import Account
from auth.service import AccountService, AuthSession

# Auth policy:
# - POST   /auth/register, /auth/resend-otp, /auth/confirm-otp: public
# - POST   /auth/login, /auth/admin/login:                        public
# - PUT    /auth/profile, GET /auth/me:                           requires auth (authenticate)
# - POST   /auth/logout, DELETE /auth/account:                    requires auth (authenticate)
router = APIRouter()


def _service(request: Request) -> AccountService:
    return request.app.state.account_service


def _session_response(request: Request, session: AuthSession, message_key: str, status_code: int = 200) -> JSONResponse:
    resp = JSONResponse(
        status_code=status_code,
        content=SessionResponse(
            message=localize(request, message_key),
            data=SessionData(token=session.token, user=AccountOut.from_account(session.account)),
        ).model_dump(by_alias=True),
    )
    resp.headers["Cache-Control"] = "no-store"  # [M5]
    return resp


# ---------------------------------------------------------------------------
# Public endpoints
# ---------------------------------------------------------------------------


@router.post("/auth/register", response_model=SessionResponse, status_code=201)
def register(request: Request, body: CredentialsRequest) -> JSONResponse:
    """Create an unconfirmed account and email it a one-time code.

    The response is sent only after the code has been persisted and handed to
    the mail transport. If delivery fails the account is rolled back and the
    caller gets a 502.
    """
    session = _service(request).register(body.email, body.password)
    return _session_response(request, session, "auth.registerSuccess", status_code=201)


@router.post("/auth/resend-otp", response_model=MessageResponse)
def resend_otp(request: Request, body: EmailRequest) -> MessageResponse:
    """Invalidate outstanding codes for the email and send a new one."""
    _service(request).resend_otp(body.email)
    return MessageResponse(message=localize(request, "auth.otpResent"))


@router.post("/auth/confirm-otp", response_model=SessionResponse)
def confirm_otp(request: Request, body: ConfirmOtpRequest) -> JSONResponse:
    """Redeem a code. Wrong, consumed and expired codes all return the same 400."""
    session = _service(request).confirm_otp(body.email, body.otp)
    return _session_response(request, session, "auth.emailConfirmed")


@router.post("/auth/login", response_model=SessionResponse)
def login(request: Request, body: CredentialsRequest) -> JSONResponse:
    """Authenticate with email and password.

    Unknown email and wrong password produce the same 401 so the endpoint
    cannot be used to discover registered addresses.
    """
    session = _service(request).login(body.email, body.password)
    return _session_response(request, session, "auth.loginSuccess")


@router.post("/auth/admin/login", response_model=AdminSessionResponse)
def admin_login(request: Request, body: CredentialsRequest) -> JSONResponse:
    """Authenticate an admin or superAdmin. Non-admin accounts get 403."""
    session = _service(request).admin_login(body.email, body.password)
    account = session.account
    resp = JSONResponse(
        content=AdminSessionResponse(
            message=localize(request, "auth.loginSuccess"),
            data=AdminSessionData(
                token=session.token,
                admin=AdminOut(id=account.id, email=account.email, name=account.name, role=account.role),
            ),
        ).model_dump(by_alias=True),
    )
    resp.headers["Cache-Control"] = "no-store"  # [M5]
    return resp


# ---------------------------------------------------------------------------
# Authenticated endpoints
# ---------------------------------------------------------------------------


@router.put("/auth/profile", response_model=AccountResponse)
def update_profile(
    request: Request,
    body: ProfileUpdate,
    current: Account = Depends(authenticate),
) -> JSONResponse:
    """Fill in name, date of birth and family details; marks the profile complete."""
    account = _service(request).update_profile(
        current.id,
        name=body.name,
        date_of_birth=body.date_of_birth,
        relationship_type=body.relationship_type.value if body.relationship_type else None,
        number_of_children=body.number_of_children,
    )
    return JSONResponse(
        content=AccountResponse(
            message=localize(request, "auth.profileUpdated"),
            data=AccountData(user=AccountOut.from_account(account)),
        ).model_dump(by_alias=True)
    )


@router.get("/auth/me", response_model=AccountResponse)
def me(request: Request, current: Account = Depends(authenticate)) -> JSONResponse:
    """Return the caller's account, read fresh from the store."""
    account = _service(request).get_current_account(current.id)
    return JSONResponse(
        content=AccountResponse(data=AccountData(user=AccountOut.from_account(account))).model_dump(by_alias=True)
    )


@router.post("/auth/logout", response_model=MessageResponse)
def logout(request: Request, current: Account = Depends(authenticate)) -> MessageResponse:
    """Acknowledge logout. The token itself stays valid until it expires."""
    _service(request).logout()
    return MessageResponse(message=localize(request, "auth.logoutSuccess"))


@router.delete("/auth/account", response_model=MessageResponse)
def delete_account(request: Request, current: Account = Depends(authenticate)) -> MessageResponse:
    """Delete the caller's account and every OTP issued to its email."""
    _service(request).delete_account(current.id)
    return MessageResponse(message=localize(request, "auth.accountDeleted"))
