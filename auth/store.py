"""
auth/store.py -- SQLAlchemy Core persistence layer for accounts and OTP codes.

Pattern: Repository + Data Mapper.
AccountStore is the repository; _row_to_account / _row_to_otp are the mappers.
Service and route code never touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.

OTP expiry:
  Codes expire otp_ttl_seconds after creation regardless of explicit deletion.
  find_otp() only matches rows younger than the TTL, so an expired code can
  never be redeemed even before purge_expired_otps() has physically removed
  it. created_at is stored as epoch seconds (REAL) so the cutoff comparison is
  numeric rather than string-based.

OTP replace:
  replace_otps_for_email() deletes every code for an email and inserts the new
  one inside a single transaction, so two concurrent resends cannot leave the
  email with zero live codes.

DB path: auth/wed_accounts.db unless DATABASE_URL is set.

Layer rule: no imports from api/.
"""

from __future__ import annotations

import time
import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import (
    Column,
    Float,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    and_,
    create_engine,
    event,
    func,
    or_,
    select,
    text,
)
from sqlalchemy.engine import Engine

from auth.models import ROLE_SUPER_ADMIN, ROLE_USER, Account, OtpRecord

_DEFAULT_OTP_TTL = 600  # 10 minutes in seconds

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_accounts = Table(
    "accounts",
    _metadata,
    Column("id", String(32), primary_key=True),
    Column("email", String(255), nullable=False, unique=True),
    Column("hashed_password", Text, nullable=False),
    Column("role", String(20), nullable=False, server_default=ROLE_USER),
    Column("name", String(255)),
    Column("relationship_type", String(20)),  # "husband" | "wife"
    Column("date_of_birth", String(32)),
    Column("number_of_children", Integer),
    Column("is_email_confirmed", Integer, nullable=False, server_default="0"),
    Column("is_profile_complete", Integer, nullable=False, server_default="0"),
    Column("created_at", String(40), nullable=False),
    Column("updated_at", String(40), nullable=False),
)

_otp_codes = Table(
    "otp_codes",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("email", String(255), nullable=False, index=True),
    Column("code", String(8), nullable=False),
    Column("created_at", Float, nullable=False),
)

# Fields update_account() accepts. id, email and the timestamps are owned by
# the store; anything else is a caller bug.
_MUTABLE_FIELDS = frozenset(
    {
        "hashed_password",
        "role",
        "name",
        "relationship_type",
        "date_of_birth",
        "number_of_children",
        "is_email_confirmed",
        "is_profile_complete",
    }
)
_BOOL_FIELDS = ("is_email_confirmed", "is_profile_complete")


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="microseconds")


def _prepare_fields(fields: dict[str, Any]) -> dict[str, Any]:
    unknown = set(fields) - _MUTABLE_FIELDS
    if unknown:
        raise ValueError(f"Unknown account fields: {unknown!r}")
    values = dict(fields)
    for name in _BOOL_FIELDS:
        if name in values:
            values[name] = 1 if values[name] else 0
    values["updated_at"] = _now_iso()
    return values


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class AccountStore:
    """Repository for Account and OtpRecord entities.

    Usage:
        store = AccountStore("sqlite:///accounts.db")
        account_id = store.create_account(Account(email="a@x.com", hashed_password=hash_password("secret")))
        account = store.get_by_email("a@x.com")
        store.close()
    """

    def __init__(self, db_url: str, otp_ttl_seconds: int = _DEFAULT_OTP_TTL) -> None:
        self.otp_ttl_seconds = otp_ttl_seconds
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Account queries
    # ------------------------------------------------------------------

    def create_account(self, account: Account) -> str:
        """Insert a new account and return its generated id.

        Raises sqlalchemy.exc.IntegrityError if the email already exists.
        The service maps that to a conflict, which also covers the race where
        two registrations pass the existence check at the same time.
        """
        account_id = uuid.uuid4().hex
        now = _now_iso()
        with self.engine.connect() as conn:
            conn.execute(
                _accounts.insert().values(
                    id=account_id,
                    email=account.email,
                    hashed_password=account.hashed_password,
                    role=account.role,
                    name=account.name,
                    relationship_type=account.relationship_type,
                    date_of_birth=account.date_of_birth,
                    number_of_children=account.number_of_children,
                    is_email_confirmed=1 if account.is_email_confirmed else 0,
                    is_profile_complete=1 if account.is_profile_complete else 0,
                    created_at=now,
                    updated_at=now,
                )
            )
            conn.commit()
        return account_id

    def get_by_email(self, email: str) -> Account | None:
        """Look up an account by exact email (case-sensitive). Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_accounts.select().where(_accounts.c.email == email)).fetchone()
        return _row_to_account(row) if row is not None else None

    def get_by_id(self, account_id: str) -> Account | None:
        """Look up an account by primary key. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_accounts.select().where(_accounts.c.id == account_id)).fetchone()
        return _row_to_account(row) if row is not None else None

    def update_account(self, account_id: str, **fields) -> bool:
        """Update mutable fields on an existing account.

        Boolean flags are passed as bool; this method converts to int for SQLite.
        Unknown field names raise ValueError rather than being silently ignored.

        Returns True if a row was updated, False if account_id was not found.
        """
        values = _prepare_fields(fields)
        with self.engine.connect() as conn:
            result = conn.execute(_accounts.update().where(_accounts.c.id == account_id).values(**values))
            conn.commit()
        return result.rowcount > 0

    def update_account_by_email(self, email: str, **fields) -> bool:
        """Same as update_account() but keyed by email. Single UPDATE statement."""
        values = _prepare_fields(fields)
        with self.engine.connect() as conn:
            result = conn.execute(_accounts.update().where(_accounts.c.email == email).values(**values))
            conn.commit()
        return result.rowcount > 0

    def delete_account(self, account_id: str) -> bool:
        """Permanently delete an account. Returns True if deleted, False if not found.

        OTP rows are keyed by email, not id, so callers purge them separately
        with delete_otps_for_email().
        """
        with self.engine.connect() as conn:
            result = conn.execute(_accounts.delete().where(_accounts.c.id == account_id))
            conn.commit()
        return result.rowcount > 0

    def list_accounts(
        self,
        offset: int = 0,
        limit: int = 10,
        search: str = "",
        is_email_confirmed: bool | None = None,
        is_profile_complete: bool | None = None,
        role: str | None = None,
    ) -> list[Account]:
        """Return one page of accounts, newest first. superAdmin accounts are never listed."""
        where = _account_filters(search, is_email_confirmed, is_profile_complete, role)
        with self.engine.connect() as conn:
            rows = conn.execute(
                _accounts.select()
                .where(where)
                .order_by(_accounts.c.created_at.desc(), _accounts.c.email)
                .offset(offset)
                .limit(limit)
            ).fetchall()
        return [_row_to_account(r) for r in rows]

    def count_accounts(
        self,
        search: str = "",
        is_email_confirmed: bool | None = None,
        is_profile_complete: bool | None = None,
        role: str | None = None,
    ) -> int:
        """Return the number of accounts list_accounts() would page over."""
        where = _account_filters(search, is_email_confirmed, is_profile_complete, role)
        with self.engine.connect() as conn:
            result = conn.execute(select(func.count()).select_from(_accounts).where(where)).scalar()
        return result or 0

    # ------------------------------------------------------------------
    # OTP queries
    # ------------------------------------------------------------------

    def create_otp(self, email: str, code: str) -> int:
        """Insert a new code for email and return its id. Existing codes are left alone."""
        with self.engine.connect() as conn:
            result = conn.execute(_otp_codes.insert().values(email=email, code=code, created_at=time.time()))
            conn.commit()
            return result.inserted_primary_key[0]

    def find_otp(self, email: str, code: str) -> OtpRecord | None:
        """Return a live code matching the exact (email, code) pair, or None.

        Rows older than the TTL are treated as absent even if not yet purged.
        """
        cutoff = time.time() - self.otp_ttl_seconds
        with self.engine.connect() as conn:
            row = conn.execute(
                _otp_codes.select()
                .where(
                    (_otp_codes.c.email == email) & (_otp_codes.c.code == code) & (_otp_codes.c.created_at >= cutoff)
                )
                .order_by(_otp_codes.c.created_at.desc())
            ).fetchone()
        return _row_to_otp(row) if row is not None else None

    def delete_otp(self, otp_id: int) -> bool:
        """Delete a single code by id. Sibling codes for the same email survive."""
        with self.engine.connect() as conn:
            result = conn.execute(_otp_codes.delete().where(_otp_codes.c.id == otp_id))
            conn.commit()
        return result.rowcount > 0

    def delete_otps_for_email(self, email: str) -> int:
        """Delete every code for email. Returns number of rows removed."""
        with self.engine.connect() as conn:
            result = conn.execute(_otp_codes.delete().where(_otp_codes.c.email == email))
            conn.commit()
        return result.rowcount

    def replace_otps_for_email(self, email: str, code: str) -> int:
        """Atomically swap all codes for email with a single new one. Returns the new id."""
        with self.engine.begin() as conn:
            conn.execute(_otp_codes.delete().where(_otp_codes.c.email == email))
            result = conn.execute(_otp_codes.insert().values(email=email, code=code, created_at=time.time()))
            return result.inserted_primary_key[0]

    def purge_expired_otps(self) -> int:
        """Delete all codes older than the TTL. Returns number of rows removed."""
        cutoff = time.time() - self.otp_ttl_seconds
        with self.engine.connect() as conn:
            result = conn.execute(_otp_codes.delete().where(_otp_codes.c.created_at < cutoff))
            conn.commit()
        return result.rowcount

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def ping(self) -> bool:
        """Return True if the database answers a trivial query."""
        with self.engine.connect() as conn:
            return conn.execute(text("SELECT 1")).scalar() == 1

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Query builders
# ---------------------------------------------------------------------------


def _account_filters(
    search: str,
    is_email_confirmed: bool | None,
    is_profile_complete: bool | None,
    role: str | None,
):
    # superAdmin accounts are hidden from listings; asking for them by role
    # falls back to the default exclusion.
    if role and role != ROLE_SUPER_ADMIN:
        clauses = [_accounts.c.role == role]
    else:
        clauses = [_accounts.c.role != ROLE_SUPER_ADMIN]
    if search:
        needle = search.lower()
        clauses.append(
            or_(
                func.lower(_accounts.c.email).contains(needle, autoescape=True),
                func.lower(func.coalesce(_accounts.c.name, "")).contains(needle, autoescape=True),
            )
        )
    if is_email_confirmed is not None:
        clauses.append(_accounts.c.is_email_confirmed == (1 if is_email_confirmed else 0))
    if is_profile_complete is not None:
        clauses.append(_accounts.c.is_profile_complete == (1 if is_profile_complete else 0))
    return and_(*clauses)


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_account(row) -> Account:
    return Account(
        id=row.id,
        email=row.email,
        hashed_password=row.hashed_password,
        role=row.role,
        name=row.name,
        relationship_type=row.relationship_type,
        date_of_birth=row.date_of_birth,
        number_of_children=row.number_of_children,
        is_email_confirmed=bool(row.is_email_confirmed),
        is_profile_complete=bool(row.is_profile_complete),
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _row_to_otp(row) -> OtpRecord:
    return OtpRecord(
        id=row.id,
        email=row.email,
        code=row.code,
        created_at=row.created_at,
    )
