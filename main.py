#!/usr/bin/env python3
"""
Wed Accounts -- operator command line.

Usage:
  python main.py create-superadmin --email root@wed.app --password 'long-secret'
  python main.py create-superadmin --email root@wed.app --password 'long-secret' --name "Ops"
  python main.py purge-otps

Environment variables:
  DATABASE_URL  Database to operate on (default: auth/wed_accounts.db).
  SECRET_KEY    Required unless DEBUG=true; see core/config.py.
"""

import argparse
import logging
import sys

from auth.errors import AccountError
from auth.mailer import ConsoleMailer
from auth.service import AccountService
from auth.store import AccountStore
from core.config import get_settings
from core.i18n import translate

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("wedaccounts.cli")


def _open_store() -> AccountStore:
    settings = get_settings()
    return AccountStore(settings.database_url, otp_ttl_seconds=settings.otp_ttl_seconds)


def create_superadmin(email: str, password: str, name: str) -> int:
    """Create the superAdmin account if the email is not already registered.

    Running it twice is harmless: an existing account is reported and left
    untouched, whatever its role.
    """
    settings = get_settings()
    store = _open_store()
    # No code is ever sent for a bootstrapped account; the mailer is inert.
    service = AccountService(store, ConsoleMailer(), password_min_length=settings.password_min_length)
    try:
        account, created = service.bootstrap_super_admin(email.strip().lower(), password, name)
    except AccountError as exc:
        print(f"  [!] {translate(exc.message_key, settings.default_language)}", file=sys.stderr)
        return 1
    finally:
        store.close()

    if created:
        logger.info("Super admin created: %s (%s)", account.email, account.id)
    else:
        logger.info("Account already exists: %s (role=%s); nothing to do", account.email, account.role)
    return 0


def purge_otps() -> int:
    """Delete every expired one-time code."""
    store = _open_store()
    try:
        removed = store.purge_expired_otps()
    finally:
        store.close()
    logger.info("Purged %d expired OTP codes", removed)
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="wed-accounts",
        description="Operator commands for the Wed Accounts service.",
    )
    sub = parser.add_subparsers(dest="command", metavar="COMMAND")

    p_admin = sub.add_parser("create-superadmin", help="Create the initial superAdmin account")
    p_admin.add_argument("--email", required=True, help="Login email for the super admin")
    p_admin.add_argument("--password", required=True, help="Initial password (min length from PASSWORD_MIN_LENGTH)")
    p_admin.add_argument("--name", default="Super Admin", help="Display name (default: Super Admin)")

    sub.add_parser("purge-otps", help="Delete expired one-time codes")

    args = parser.parse_args(argv)

    if args.command == "create-superadmin":
        return create_superadmin(args.email, args.password, args.name)
    if args.command == "purge-otps":
        return purge_otps()

    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
