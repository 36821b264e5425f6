#!/usr/bin/env python3
"""
Create the default admin account.

Usage:
  python -m scripts.seed_admin
  python -m scripts.seed_admin --username root --email root@example.com
  python -m scripts.seed_admin --database-url sqlite:///dashboard.db

Values not given on the command line come from Settings
(DEFAULT_ADMIN_USERNAME, DEFAULT_ADMIN_EMAIL, DEFAULT_ADMIN_PASSWORD,
DATABASE_URL). Running it twice is harmless: when an account with the admin
email already exists nothing is written and the script exits 0.
"""

import argparse
import sys
from typing import Optional

from auth.models import ROLE_ADMIN, Account
from auth.store import AccountStore
from auth.tokens import hash_password
from core.config import Settings, load_settings


def seed_admin(
    store: AccountStore,
    settings: Settings,
    username: Optional[str] = None,
    email: Optional[str] = None,
    password: Optional[str] = None,
) -> Optional[Account]:
    """Create the admin account unless its email is taken.

    Returns the new Account, or None when one already existed.
    """
    email = (email or settings.default_admin_email).strip().lower()
    if store.get_by_email(email) is not None:
        return None
    account = Account(
        username=username or settings.default_admin_username,
        email=email,
        hashed_password=hash_password(password or settings.default_admin_password, rounds=settings.bcrypt_rounds),
        role=ROLE_ADMIN,
        profile={"firstName": "Admin", "lastName": "User", "department": "Management"},
    )
    account_id = store.create_account(account)
    return store.get_by_id(account_id)


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="seed_admin",
        description="Create the default admin account for the dashboard.",
    )
    parser.add_argument("--username", help="admin username (default: DEFAULT_ADMIN_USERNAME)")
    parser.add_argument("--email", help="admin email (default: DEFAULT_ADMIN_EMAIL)")
    parser.add_argument("--password", help="admin password (default: DEFAULT_ADMIN_PASSWORD)")
    parser.add_argument("--database-url", help="SQLAlchemy URL (default: DATABASE_URL)")
    args = parser.parse_args(argv)

    settings = load_settings()
    store = AccountStore(args.database_url or settings.database_url)
    try:
        admin = seed_admin(store, settings, username=args.username, email=args.email, password=args.password)
    finally:
        store.close()

    if admin is None:
        print("  [!] Default admin user already exists. Nothing to do.")
        return 0

    print("\nDefault admin user created")
    print("─" * 40)
    print(f"  Username: {admin.username}")
    print(f"  Email:    {admin.email}")
    if args.password is None:
        print("  Password: the configured DEFAULT_ADMIN_PASSWORD")
    print("\n  Change this password on first login.\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
