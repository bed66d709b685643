"""
tests/conftest.py -- Shared test fixtures for Wed Accounts.

This module provides:
  - RecordingMailer: in-memory Mailer that records (email, code) pairs
  - store / mailer / service: function-scoped unit fixtures on :memory: SQLite
  - _patch_lifespan(): wires test objects into app.state, bypassing real startup
  - api_client: TestClient plus pre-seeded user, admin and superAdmin tokens

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
for the API fixture because TestClient runs route handlers in a thread pool.
Plain :memory: DBs are per-connection and would present a blank schema to
each worker thread. The named URI format
(file:name?mode=memory&cache=shared&uri=true) shares one in-memory instance
across all connections in the same process.

DEBUG and ALLOWED_HOSTS must be set before any app import: get_settings()
auto-generates SECRET_KEY in dev mode rather than raising ValueError, and
TrustedHostMiddleware has to accept TestClient's "testserver" Host header.
"""

from __future__ import annotations

import asyncio
import os
from collections.abc import Generator
from contextlib import asynccontextmanager, suppress
from typing import NamedTuple

# CRITICAL: Set env before any auth/core import so get_settings() sees it.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("ALLOWED_HOSTS", '["testserver"]')

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.errors import MailDeliveryError
from auth.models import ROLE_ADMIN, ROLE_SUPER_ADMIN, ROLE_USER, Account
from auth.service import AccountService
from auth.store import AccountStore
from auth.tokens import create_access_token, hash_password

PASSWORD = "correct-horse-battery"


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------


class RecordingMailer:
    """Mailer that keeps every code it was asked to send.

    Set fail=True to make the next deliveries raise MailDeliveryError, the
    same error SmtpMailer raises when the relay refuses.
    """

    def __init__(self) -> None:
        self.sent: list[tuple[str, str]] = []
        self.fail = False

    def send_code(self, email: str, code: str) -> None:
        if self.fail:
            raise MailDeliveryError(detail="relay refused")
        self.sent.append((email, code))

    def last_code(self, email: str) -> str | None:
        for sent_to, code in reversed(self.sent):
            if sent_to == email:
                return code
        return None


# ---------------------------------------------------------------------------
# Unit fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def store() -> Generator[AccountStore, None, None]:
    s = AccountStore("sqlite:///:memory:")
    yield s
    s.close()


@pytest.fixture
def mailer() -> RecordingMailer:
    return RecordingMailer()


@pytest.fixture
def service(store: AccountStore, mailer: RecordingMailer) -> AccountService:
    return AccountService(store, mailer)


def seed_account(store: AccountStore, email: str, role: str = ROLE_USER, **fields) -> str:
    """Insert an account with PASSWORD directly, skipping registration."""
    return store.create_account(Account(email=email, hashed_password=hash_password(PASSWORD), role=role, **fields))


# ---------------------------------------------------------------------------
# API fixture
# ---------------------------------------------------------------------------


class ApiHarness(NamedTuple):
    client: TestClient
    store: AccountStore
    mailer: RecordingMailer
    user_id: str
    user_token: str
    admin_id: str
    admin_token: str
    super_admin_id: str
    super_admin_token: str


def _patch_lifespan(store: AccountStore, mailer: RecordingMailer):
    """Return an async context manager that replaces the real lifespan.

    Wires the test store and mailer into app.state so TestClient routes see
    an isolated database and never open an SMTP connection.

    The purge_task is a long-sleeping coroutine that keeps asyncio happy
    (a real asyncio.Task is required; MagicMock would fail on .cancel()).
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.account_store = store
        app.state.mailer = mailer
        app.state.account_service = AccountService(store, mailer)
        app.state.purge_task = asyncio.create_task(asyncio.sleep(99999))
        yield
        app.state.purge_task.cancel()
        with suppress(asyncio.CancelledError):
            await app.state.purge_task

    return test_lifespan


@pytest.fixture(scope="module")
def api_client(request) -> Generator[ApiHarness, None, None]:
    """Yield an ApiHarness for API integration tests.

    One harness per test module: the database name carries the module name so
    modules never see each other's accounts. Tests inside a module share it,
    so each test registers its own unique email.
    """
    db_name = request.module.__name__.rsplit(".", 1)[-1]
    store = AccountStore(f"sqlite:///file:{db_name}?mode=memory&cache=shared&uri=true")
    mailer = RecordingMailer()

    user_id = seed_account(store, "member@wed.test", name="Member")
    admin_id = seed_account(store, "admin@wed.test", role=ROLE_ADMIN, name="Admin")
    super_admin_id = seed_account(store, "root@wed.test", role=ROLE_SUPER_ADMIN, name="Root")

    app.router.lifespan_context = _patch_lifespan(store, mailer)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield ApiHarness(
            client=client,
            store=store,
            mailer=mailer,
            user_id=user_id,
            user_token=create_access_token(user_id, expire_seconds=3600),
            admin_id=admin_id,
            admin_token=create_access_token(admin_id, expire_seconds=3600),
            super_admin_id=super_admin_id,
            super_admin_token=create_access_token(super_admin_id, expire_seconds=3600),
        )

    store.close()


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
