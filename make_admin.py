"""Promote an existing user to admin.

Usage: python make_admin.py someone@example.com
"""

import sys

from marzan_loyalty.db import SessionLocal
from marzan_loyalty.models.user import User


def make_admin(email: str) -> bool:
    db = SessionLocal()
    try:
        user = db.query(User).filter(User.email == email.strip().lower()).first()
        if not user:
            print(f"No user with email {email}")
            return False
        user.is_admin = True
        db.commit()
        print(f"{user.email} is now an admin")
        return True
    finally:
        db.close()


if __name__ == "__main__":
    if len(sys.argv) != 2:
        print("Usage: python make_admin.py <email>")
        sys.exit(2)
    sys.exit(0 if make_admin(sys.argv[1]) else 1)
