"""
api/routes/v1/users.py -- Admin account management endpoints.

Routes:
  GET    /api/v1/users        -- paginated list with search and flag filters
  GET    /api/v1/users/{id}   -- single account
  PUT    /api/v1/users/{id}   -- update profile fields, role or flags
  DELETE /api/v1/users/{id}   -- delete another account (self-delete blocked)

Every route requires a bearer token AND admin or superAdmin role. The gate is
declared once on the router, authenticate first, so no handler can forget it.

Listing rules:
  superAdmin accounts never appear. role=superAdmin is treated as no role
  filter. search matches email or name, case-insensitively.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse

from api.locale import localize
from api.models import (
    AccountData,
    AccountListData,
    AccountListResponse,
    AccountOut,
    AccountPatch,
    AccountResponse,
    MessageResponse,
    Pagination,
    RoleEnum,
)
from auth.dependencies import authenticate, require_admin
from auth.models import Account
from auth.service import AccountService

router = APIRouter(dependencies=[Depends(authenticate), Depends(require_admin)])


def _service(request: Request) -> AccountService:
    return request.app.state.account_service


@router.get("/users", response_model=AccountListResponse)
def list_users(
    request: Request,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    search: str = Query(default="", max_length=255),
    is_email_confirmed: Optional[bool] = Query(default=None, alias="isEmailConfirmed"),
    is_profile_complete: Optional[bool] = Query(default=None, alias="isProfileComplete"),
    role: Optional[RoleEnum] = Query(default=None),
) -> JSONResponse:
    """List accounts, newest first. Admin only."""
    result = _service(request).list_accounts(
        page=page,
        limit=limit,
        search=search,
        is_email_confirmed=is_email_confirmed,
        is_profile_complete=is_profile_complete,
        role=role.value if role else None,
    )
    return JSONResponse(
        content=AccountListResponse(
            data=AccountListData(
                data=[AccountOut.from_account(a) for a in result.accounts],
                pagination=Pagination(
                    page=result.page,
                    limit=result.limit,
                    total=result.total,
                    total_pages=result.total_pages,
                ),
            )
        ).model_dump(by_alias=True)
    )


@router.get("/users/{account_id}", response_model=AccountResponse)
def get_user(request: Request, account_id: str) -> JSONResponse:
    """Return one account. Admin only."""
    account = _service(request).get_account(account_id)
    return JSONResponse(
        content=AccountResponse(data=AccountData(user=AccountOut.from_account(account))).model_dump(by_alias=True)
    )


@router.put("/users/{account_id}", response_model=AccountResponse)
def update_user(request: Request, account_id: str, body: AccountPatch) -> JSONResponse:
    """Update the provided fields of an account. Admin only."""
    account = _service(request).admin_update_account(
        account_id,
        name=body.name,
        relationship_type=body.relationship_type.value if body.relationship_type else None,
        date_of_birth=body.date_of_birth,
        number_of_children=body.number_of_children,
        role=body.role.value if body.role else None,
        is_email_confirmed=body.is_email_confirmed,
        is_profile_complete=body.is_profile_complete,
    )
    return JSONResponse(
        content=AccountResponse(
            message=localize(request, "auth.userUpdated"),
            data=AccountData(user=AccountOut.from_account(account)),
        ).model_dump(by_alias=True)
    )


@router.delete("/users/{account_id}", response_model=MessageResponse)
def delete_user(
    request: Request,
    account_id: str,
    current: Account = Depends(authenticate),
) -> MessageResponse:
    """Delete an account. Admins cannot delete themselves (403)."""
    _service(request).admin_delete_account(current.id, account_id)
    return MessageResponse(message=localize(request, "auth.userDeleted"))
