# scripts/create_church_admin.py
"""
Create a church with its first admin, or rotate an existing user's key.
- Uses DATABASE_URL and API_KEY_PEPPER from the environment (.env is read).
- Prints the NEW plaintext API key exactly once.

Usage (from backend/):
  python scripts/create_church_admin.py --church "Grace Chapel" --email admin@grace.local
  python scripts/create_church_admin.py --rotate --email admin@grace.local
"""
from __future__ import annotations

import argparse
import os
import sys

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from sqlalchemy import func, select  # noqa: E402
from sqlalchemy.exc import IntegrityError  # noqa: E402

from app.api.rbac import hash_api_key, new_api_key  # noqa: E402
from app.db import SessionLocal  # noqa: E402
import app.models  # noqa: E402,F401
from app.models.church import Church, ChurchUser  # noqa: E402


def _print_key(email: str, key: str) -> None:
    print(f"   email: {email}")
    print("\nSAVE THIS API KEY NOW (shown only once):")
    print(f"   API KEY: {key}\n")


def rotate(db, email: str) -> int:
    user = db.execute(select(ChurchUser).where(func.lower(ChurchUser.email) == email)).scalars().first()
    if not user:
        print(f"ERROR: user '{email}' not found.", file=sys.stderr)
        return 1
    key = new_api_key()
    user.api_key_hash = hash_api_key(key)
    user.is_active = True
    db.commit()
    print("\nAPI key rotated.")
    _print_key(email, key)
    return 0


def create(db, church_name: str, subdomain: str | None, email: str, display_name: str | None) -> int:
    church = Church(name=church_name, subdomain=subdomain)
    key = new_api_key()
    db.add(church)
    db.flush()
    db.add(
        ChurchUser(
            church_id=church.id,
            email=email,
            display_name=display_name,
            role="admin",
            api_key_hash=hash_api_key(key),
        )
    )
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        print("ERROR: email or subdomain already in use.", file=sys.stderr)
        return 1
    print(f"\nChurch created (id={church.id}).")
    _print_key(email, key)
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Bootstrap a church admin or rotate an API key")
    parser.add_argument("--email", required=True, help="Admin email")
    parser.add_argument("--rotate", action="store_true", help="Rotate the key of an existing user")
    parser.add_argument("--church", help="Church name (required unless --rotate)")
    parser.add_argument("--subdomain", help="Optional unique subdomain")
    parser.add_argument("--name", help="Admin display name")
    args = parser.parse_args()

    email = args.email.strip().lower()
    db = SessionLocal()
    try:
        if args.rotate:
            return rotate(db, email)
        if not args.church:
            print("ERROR: --church is required when creating.", file=sys.stderr)
            return 2
        return create(db, args.church.strip(), args.subdomain, email, args.name)
    finally:
        db.close()


if __name__ == "__main__":
    raise SystemExit(main())
