"""Tests for main.py -- the operator command line."""

from unittest.mock import patch

import pytest

import main
from auth.models import ROLE_SUPER_ADMIN
from auth.store import AccountStore
from conftest import PASSWORD


@pytest.fixture
def db_url(tmp_path) -> str:
    return f"sqlite:///{tmp_path / 'cli.db'}"


def _run(db_url: str, *argv: str) -> int:
    with patch("main._open_store", side_effect=lambda: AccountStore(db_url)):
        return main.main(list(argv))


def test_create_superadmin(db_url: str) -> None:
    assert _run(db_url, "create-superadmin", "--email", "Root@Wed.Test", "--password", PASSWORD) == 0

    store = AccountStore(db_url)
    account = store.get_by_email("root@wed.test")
    store.close()
    assert account is not None
    assert account.role == ROLE_SUPER_ADMIN
    assert account.name == "Super Admin"


def test_create_superadmin_twice_is_harmless(db_url: str) -> None:
    assert _run(db_url, "create-superadmin", "--email", "root@wed.test", "--password", PASSWORD) == 0
    assert _run(db_url, "create-superadmin", "--email", "root@wed.test", "--password", PASSWORD) == 0


def test_create_superadmin_short_password(db_url: str, capsys) -> None:
    assert _run(db_url, "create-superadmin", "--email", "root@wed.test", "--password", "short") == 1
    assert "Password must be at least 8 characters" in capsys.readouterr().err


def test_purge_otps(db_url: str) -> None:
    store = AccountStore(db_url)
    with patch("auth.store.time.time", return_value=0.0):
        store.create_otp("old@wed.test", "1234")
    store.create_otp("new@wed.test", "5678")
    store.close()

    assert _run(db_url, "purge-otps") == 0

    store = AccountStore(db_url)
    assert store.find_otp("new@wed.test", "5678") is not None
    assert store.delete_otps_for_email("old@wed.test") == 0
    store.close()


def test_no_command_prints_help(capsys) -> None:
    assert main.main([]) == 0
    assert "create-superadmin" in capsys.readouterr().out
