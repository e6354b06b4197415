"""CLI utility to seed the default quick reply templates for a user.

Usage:
  python -m replydesk.app.scripts.seed_templates --user-id 1

Safe to run repeatedly; existing templates with the same name are updated.
"""
import argparse
import os

from ..db.database import SessionLocal, ensure_schema
from ..security.auth import UserContext
from ..services.quick_reply_service import create_default_templates


def main(argv=None):
    parser = argparse.ArgumentParser(description="Seed default quick reply templates")
    parser.add_argument("--user-id", dest="user_id", type=int, default=int(os.getenv("DEFAULT_USER_ID", "1")), help="Owner of the seeded templates")
    args = parser.parse_args(argv)

    ensure_schema()
    session = SessionLocal()
    try:
        seeded = create_default_templates(session, UserContext(user_id=args.user_id))
        print(f"Seeded {len(seeded)} templates for user {args.user_id}:")
        for t in seeded:
            print(f"  [{t.sort_order}] {t.name}")
    finally:
        session.close()


if __name__ == "__main__":  # pragma: no cover
    main()
