# src/parlor/scripts/tokens.py
"""Mint a bearer credential for an existing user.

Development aid: registration and login live outside this service, so this
script lets an operator obtain a token for manual testing of the REST and
WebSocket surfaces.
"""

from __future__ import annotations

import argparse
import sys

from sqlalchemy import select
from sqlalchemy.orm import Session

from parlor.core.security import create_access_token
from parlor.db.session import SessionLocal
from parlor.models import User


def find_user(db: Session, ident: str) -> User | None:
    """Look a user up by id, falling back to username."""
    user = db.get(User, ident)
    if user is None:
        user = db.scalar(select(User).where(User.username == ident))
    return user


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Print a bearer token for a user")
    parser.add_argument("user", help="User id or username")
    args = parser.parse_args(argv)

    db = SessionLocal()
    try:
        user = find_user(db, args.user)
    finally:
        db.close()

    if user is None:
        print(f"[tokens] ERROR: no user matches {args.user!r}", file=sys.stderr)
        return 1
    print(create_access_token(user.id))
    return 0


if __name__ == "__main__":
    sys.exit(main())
