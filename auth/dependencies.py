"""
auth/dependencies.py -- FastAPI Depends() helpers for the access gate.

Two independent checks, applied in request order:

  1. authenticate()  -- Authorization: Bearer <token> header -> verified JWT ->
                        fresh account from the store -> request.state.account.
  2. require_role()  -- dependency factory; reads request.state.account and
                        rejects identities ranked below the minimum role.

Routers compose them explicitly, authenticate first:

    router = APIRouter(dependencies=[Depends(authenticate), Depends(require_admin)])

FastAPI caches a dependency per request, so a handler that also declares
Depends(authenticate) receives the same Account without a second lookup.

Every failure raises an auth.errors class; the API layer's exception handler
turns it into the localized 401/403/404 response.

Layer rule: auth/dependencies.py may import from fastapi (for Request) because
this module is part of the FastAPI dependency injection system. No api/ imports.
"""

from __future__ import annotations

from fastapi import Request

from auth.errors import ForbiddenError, NotFoundError, TokenRequiredError
from auth.models import ROLE_ADMIN, ROLE_RANK, Account
from auth.store import AccountStore
from auth.tokens import decode_access_token


def bearer_token(request: Request) -> str | None:
    """Return the token from an "Authorization: Bearer <token>" header, or None."""
    scheme, _, token = request.headers.get("Authorization", "").partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def authenticate(request: Request) -> Account:
    """Resolve the bearer token to a live account and attach it to the request.

    Raises TokenRequiredError (no token), TokenInvalidError / TokenExpiredError
    (verification), NotFoundError (account deleted after the token was issued).

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(account: Account = Depends(authenticate)): ...
    """
    token = bearer_token(request)
    if token is None:
        raise TokenRequiredError()
    payload = decode_access_token(token)

    account_store: AccountStore = request.app.state.account_store
    account = account_store.get_by_id(payload["sub"])
    if account is None:
        raise NotFoundError()

    request.state.account = account
    return account


def require_role(minimum: str = ROLE_ADMIN):
    """Build a dependency that admits identities ranked at or above minimum.

    Must run after authenticate(). A missing identity means the dependencies
    were declared in the wrong order; it is reported as TokenRequiredError
    rather than letting the request through.
    """
    minimum_rank = ROLE_RANK[minimum]

    def dependency(request: Request) -> Account:
        account: Account | None = getattr(request.state, "account", None)
        if account is None:
            raise TokenRequiredError()
        if ROLE_RANK.get(account.role, 0) < minimum_rank:
            raise ForbiddenError()
        return account

    return dependency


require_admin = require_role(ROLE_ADMIN)
