#!/usr/bin/env python3
"""Grant (or with --revoke, remove) admin rights for an existing user. There is no API for this.
Run from backend: python scripts/make_admin.py <username> [--revoke]
"""
import argparse
import sys
from pathlib import Path

# Ensure backend is on path when run as script
backend_dir = Path(__file__).resolve().parent.parent
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))

from app.core.errors import StudyRoomError
from app.db.session import SessionLocal, init_db
from app.services.user_service import set_admin


def main():
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("username")
    parser.add_argument("--revoke", action="store_true", help="remove admin instead of granting it")
    args = parser.parse_args()

    init_db()
    db = SessionLocal()
    try:
        user = set_admin(db, args.username, not args.revoke)
        print(f"{user.username}: is_admin={user.is_admin}")
    except StudyRoomError as e:
        db.rollback()
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        db.close()


if __name__ == "__main__":
    main()
