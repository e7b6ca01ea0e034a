from __future__ import annotations

import argparse

from dotenv import load_dotenv

load_dotenv()

from sqlalchemy import select

from taskshare.db import get_sessionmaker, init_engine
from taskshare.models import User


def main() -> None:
    parser = argparse.ArgumentParser(description="Grant admin rights to an existing user.")
    parser.add_argument("email")
    parser.add_argument("--revoke", action="store_true", help="remove admin rights instead")
    args = parser.parse_args()

    init_engine()
    db = get_sessionmaker()()
    try:
        user = db.scalars(select(User).where(User.email == args.email.strip().lower())).first()
        if user is None:
            raise SystemExit(f"No user with email {args.email}")
        user.is_admin = not args.revoke
        db.commit()
        state = "revoked" if args.revoke else "granted"
        print(f"Admin rights {state} for {user.email} (id {user.id})")
    finally:
        db.close()


if __name__ == "__main__":
    main()
