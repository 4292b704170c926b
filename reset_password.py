#!/usr/bin/env python3
"""
Reset a user's password in the Passport Posts SQLite database.

This is the recovery path for the admin account, whose password cannot
be reset through the API.  The script never reads or reveals existing
passwords; it stores a new PBKDF2-HMAC-SHA256 hash ("salthex$hashhex")
for the user with the given e-mail.

Usage:
    python reset_password.py --email admin@example.com --password "NewStrongPass!234"
    python reset_password.py --db ./data/passport_posts.db --email admin@example.com

If --password is omitted, you will be prompted to enter it securely.
"""

import argparse
import getpass
import os
import sqlite3
import sys

from passport_posts_api.app.core.db import get_database_path, utc_now
from passport_posts_api.app.core.security import hash_password
from passport_posts_api.app.services.user_service import MIN_PASSWORD_LENGTH


def main(argv=None) -> int:
    ap = argparse.ArgumentParser(description="Reset a Passport Posts user password (SQLite).")
    ap.add_argument("--db", default=None, help="Path to the SQLite DB file (defaults to DATABASE_URL)")
    ap.add_argument("--email", required=True, help="User email to update")
    ap.add_argument("--password", help="New password. If omitted, you'll be prompted securely.")
    args = ap.parse_args(argv)

    db_path = args.db or get_database_path()
    if not os.path.exists(db_path):
        print(f"[!] DB not found: {db_path}", file=sys.stderr)
        return 1

    new_password = args.password or getpass.getpass("Enter NEW password: ")
    if len(new_password) < MIN_PASSWORD_LENGTH:
        print(f"[!] Password must be at least {MIN_PASSWORD_LENGTH} characters long.", file=sys.stderr)
        return 1

    email = args.email.strip().lower()
    conn = sqlite3.connect(db_path)
    try:
        cur = conn.cursor()
        cur.execute("SELECT id FROM users WHERE email = ?", (email,))
        if not cur.fetchone():
            print(f"[!] No user found with email: {email}", file=sys.stderr)
            return 2
        cur.execute(
            "UPDATE users SET password = ?, updated_at = ? WHERE email = ?",
            (hash_password(new_password), utc_now(), email),
        )
        conn.commit()
        print(f"[+] Password updated for user: {email}")
    finally:
        conn.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
