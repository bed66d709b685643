"""
API request and response models for Wed Accounts REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py, which
own the internal domain representation. Route handlers map between the two.

Wire names are camelCase (isEmailConfirmed, dateOfBirth, ...) to match the
mobile clients; Python attribute names stay snake_case via aliases.

Every response uses the same envelope:
    {"status": "success" | "error", "message": "...", "data": {...}}
"""

from enum import Enum
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from auth.models import Account

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class RoleEnum(str, Enum):
    user = "user"
    admin = "admin"
    superAdmin = "superAdmin"


class RelationshipEnum(str, Enum):
    husband = "husband"
    wife = "wife"


_CAMEL = ConfigDict(alias_generator=to_camel, populate_by_name=True, str_strip_whitespace=True)


def _normalize_email(value: Any) -> Any:
    return value.strip().lower() if isinstance(value, str) else value


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class CredentialsRequest(BaseModel):
    """Body for register, login and admin login.

    Both fields default to "" so a missing value reaches the service and is
    reported as the localized "email and password are required" error rather
    than a generic schema error.
    """

    email: str = Field(default="", max_length=255)
    password: str = Field(default="", max_length=128)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value: Any) -> Any:
        """Strip and lower-case so lookups match the stored form."""
        return _normalize_email(value)


class EmailRequest(BaseModel):
    """Body for POST /auth/resend-otp."""

    email: str = Field(default="", max_length=255)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value: Any) -> Any:
        return _normalize_email(value)


class ConfirmOtpRequest(BaseModel):
    """Body for POST /auth/confirm-otp. The code is compared exactly."""

    email: str = Field(default="", max_length=255)
    otp: str = Field(default="", max_length=8)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value: Any) -> Any:
        return _normalize_email(value)

    @field_validator("otp", mode="before")
    @classmethod
    def stringify_otp(cls, value: Any) -> Any:
        """Accept a numeric code (1234) as well as a string ("1234")."""
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value


class ProfileUpdate(BaseModel):
    """Body for PUT /auth/profile."""

    model_config = _CAMEL

    name: Optional[str] = Field(default=None, max_length=255)
    relationship_type: Optional[RelationshipEnum] = None
    date_of_birth: Optional[str] = Field(default=None, max_length=32)
    number_of_children: Optional[int] = Field(default=None, ge=0, le=50)


class AccountPatch(BaseModel):
    """Body for PUT /users/{id}. Only provided fields change."""

    model_config = _CAMEL

    name: Optional[str] = Field(default=None, max_length=255)
    relationship_type: Optional[RelationshipEnum] = None
    date_of_birth: Optional[str] = Field(default=None, max_length=32)
    number_of_children: Optional[int] = Field(default=None, ge=0, le=50)
    role: Optional[RoleEnum] = None
    is_email_confirmed: Optional[bool] = None
    is_profile_complete: Optional[bool] = None


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class AccountOut(BaseModel):
    """Sanitized account -- never carries the password hash."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str
    email: str
    role: str
    name: Optional[str] = None
    relationship_type: Optional[str] = None
    date_of_birth: Optional[str] = None
    number_of_children: Optional[int] = None
    is_email_confirmed: bool
    is_profile_complete: bool
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @classmethod
    def from_account(cls, account: Account) -> "AccountOut":
        """Build from the domain dataclass via its sanitized dict."""
        return cls(**account.to_public())


class AdminOut(BaseModel):
    """Compact identity returned by admin login."""

    model_config = ConfigDict(frozen=True)

    id: str
    email: str
    name: Optional[str] = None
    role: str


class SessionData(BaseModel):
    model_config = ConfigDict(frozen=True)

    token: str
    user: AccountOut


class AdminSessionData(BaseModel):
    model_config = ConfigDict(frozen=True)

    token: str
    admin: AdminOut


class AccountData(BaseModel):
    model_config = ConfigDict(frozen=True)

    user: AccountOut


class Pagination(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    page: int
    limit: int
    total: int
    total_pages: int


class AccountListData(BaseModel):
    model_config = ConfigDict(frozen=True)

    data: list[AccountOut]
    pagination: Pagination


class MessageResponse(BaseModel):
    """Acknowledgement with no payload."""

    model_config = ConfigDict(frozen=True)

    status: Literal["success"] = "success"
    message: str


class SessionResponse(MessageResponse):
    data: SessionData


class AdminSessionResponse(MessageResponse):
    data: AdminSessionData


class AccountResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: Literal["success"] = "success"
    message: Optional[str] = None
    data: AccountData


class AccountListResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: Literal["success"] = "success"
    data: AccountListData


class ErrorResponse(BaseModel):
    """Error envelope returned on every 4xx/5xx response.

    stack is only populated when DEBUG=true.
    """

    model_config = ConfigDict(frozen=True)

    status: Literal["error"] = "error"
    code: str
    message: str
    stack: Optional[str] = None


class HealthResponse(BaseModel):
    """Response for GET /api/v1/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "ok"
    version: str
    components: dict[str, str] = Field(default_factory=dict)
