#!/usr/bin/env python3
"""
WOJP Admin -- maintenance commands for admin accounts.

Usage:
  python main.py create-admin admin@example.com --name "Site Admin"
  python main.py create-admin owner@example.com --name Owner --role super_admin
  python main.py reset-password admin@example.com
  python main.py deactivate-admin former@example.com
  python main.py activate-admin former@example.com

Passwords are prompted for (twice) unless --password is given. Commands talk
to the database named by DATABASE_URL, the same one the API serves.

Environment variables:
  DATABASE_URL  SQLAlchemy URL. Defaults to wojp_admin.db next to this file.
"""

import argparse
import getpass
import sys
from typing import Optional

from pydantic import ValidationError

from auth.models import ADMIN_ROLES, Admin
from auth.store import AdminStore
from auth.tokens import hash_password
from core.errors import ConstraintViolationError, StorageError

_MIN_PASSWORD_LENGTH = 8


def _read_password(given: Optional[str]) -> Optional[str]:
    """Return the --password value, or prompt twice. None if the entries differ."""
    if given is not None:
        return given
    first = getpass.getpass("  New password: ")
    second = getpass.getpass("  Confirm password: ")
    if first != second:
        print("  [!] Passwords do not match.")
        return None
    return first


def _check_password(password: Optional[str]) -> bool:
    if password is None:
        return False
    if len(password) < _MIN_PASSWORD_LENGTH:
        print(f"  [!] Password must be at least {_MIN_PASSWORD_LENGTH} characters.")
        return False
    return True


def create_admin(store: AdminStore, email: str, name: str, role: str, password: Optional[str]) -> int:
    """Insert a new admin. Returns a process exit code."""
    if store.find_admin_by_email(email) is not None:
        print(f"  [!] An admin with email '{email}' already exists.")
        return 1
    password = _read_password(password)
    if not _check_password(password):
        return 1
    try:
        admin_id = store.insert_admin(Admin(email=email, password_hash=hash_password(password), name=name, role=role))
    except ConstraintViolationError:
        print(f"  [!] An admin with email '{email}' already exists.")
        return 1
    print(f"  Created {role} '{email}' (id={admin_id}).")
    return 0


def reset_password(store: AdminStore, email: str, password: Optional[str]) -> int:
    admin = store.find_admin_by_email(email)
    if admin is None:
        print(f"  [!] No admin with email '{email}'.")
        return 1
    password = _read_password(password)
    if not _check_password(password):
        return 1
    store.update_admin_password(admin.id, hash_password(password))
    print(f"  Password reset for '{email}'.")
    return 0


def set_active(store: AdminStore, email: str, is_active: bool) -> int:
    """Activate or deactivate an admin. Deactivation revokes live sessions on their next request."""
    admin = store.find_admin_by_email(email)
    if admin is None:
        print(f"  [!] No admin with email '{email}'.")
        return 1
    store.set_admin_active(admin.id, is_active)
    print(f"  '{email}' is now {'active' if is_active else 'inactive'}.")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="main.py",
        description="WOJP Admin maintenance commands.",
        epilog=__doc__,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p_create = sub.add_parser("create-admin", help="Create an admin account")
    p_create.add_argument("email", help="Login email address")
    p_create.add_argument("--name", required=True, help="Display name")
    p_create.add_argument("--role", choices=ADMIN_ROLES, default="admin", help="Role (default: admin)")
    p_create.add_argument("--password", help="Password (prompted for when omitted)")

    p_reset = sub.add_parser("reset-password", help="Set a new password for an admin")
    p_reset.add_argument("email")
    p_reset.add_argument("--password", help="New password (prompted for when omitted)")

    p_off = sub.add_parser("deactivate-admin", help="Block an admin from signing in")
    p_off.add_argument("email")

    p_on = sub.add_parser("activate-admin", help="Re-enable a deactivated admin")
    p_on.add_argument("email")

    parser.add_argument("--database-url", help="Override DATABASE_URL for this run")
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        store = AdminStore(args.database_url)
    except ValidationError as e:
        # Settings are only loaded when --database-url is absent.
        print(f"  [!] Configuration error: {e.errors()[0]['msg']}")
        print("      Set JWT_SECRET (or DEBUG=true), or pass --database-url.")
        return 2
    except StorageError as e:
        print(f"  [!] Database unavailable: {e}")
        return 2

    try:
        if args.command == "create-admin":
            return create_admin(store, args.email, args.name, args.role, args.password)
        if args.command == "reset-password":
            return reset_password(store, args.email, args.password)
        if args.command == "deactivate-admin":
            return set_active(store, args.email, False)
        return set_active(store, args.email, True)
    except StorageError as e:
        print(f"  [!] Database error: {e}")
        return 2
    finally:
        store.close()


if __name__ == "__main__":
    sys.exit(main())
