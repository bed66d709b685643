"""
auth/models.py -- Domain dataclasses for account and one-time-code entities.

Pattern: Data class (pure data container, near-zero logic). Dataclasses own
domain shape; the store and the service do the work.

Layer rule: no imports from api/.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any

ROLE_USER = "user"
ROLE_ADMIN = "admin"
ROLE_SUPER_ADMIN = "superAdmin"

# Privilege ordering for the admin gate. admin and superAdmin share a rank:
# no operation distinguishes them.
ROLE_RANK: dict[str, int] = {
    ROLE_USER: 0,
    ROLE_ADMIN: 1,
    ROLE_SUPER_ADMIN: 1,
}

RELATIONSHIP_TYPES = ("husband", "wife")


@dataclass
class Account:
    """A registered identity.

    hashed_password is the bcrypt hash. It is set on create and only ever
    replaced wholesale; to_public() drops it so it never leaves the service.

    Profile fields stay None until the owner completes the profile.
    id and the timestamps are None before the record is written.
    """

    email: str
    hashed_password: str | None = None
    role: str = ROLE_USER  # "user" | "admin" | "superAdmin"
    id: str | None = None
    name: str | None = None
    relationship_type: str | None = None  # "husband" | "wife"
    date_of_birth: str | None = None  # ISO 8601 date
    number_of_children: int | None = None
    is_email_confirmed: bool = False
    is_profile_complete: bool = False
    created_at: str | None = None
    updated_at: str | None = None

    @property
    def is_admin(self) -> bool:
        return ROLE_RANK.get(self.role, 0) >= ROLE_RANK[ROLE_ADMIN]

    def to_public(self) -> dict[str, Any]:
        """Return the sanitized record (hashed secret removed)."""
        data = asdict(self)
        data.pop("hashed_password", None)
        return data


@dataclass
class OtpRecord:
    """A pending email-confirmation code.

    Keyed by email value, not by account id. Several records for the same
    email may coexist until one is consumed or the set is purged.
    """

    email: str
    code: str
    id: int | None = None
    created_at: float | None = None  # epoch seconds, set by store on insert
