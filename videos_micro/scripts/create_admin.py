"""
Admin Seeding Script

Creates the first admin account. Credentials come from the environment
(ADMIN_NAME, ADMIN_EMAIL, ADMIN_PASSWORD, DATABASE_URL, optionally via .env).
Does nothing if an admin already exists.
"""

import os
import sys
from pathlib import Path
from typing import Tuple

# Add parent directory to path
sys.path.append(str(Path(__file__).parent.parent))

from dotenv import load_dotenv
from sqlalchemy.orm import Session

from db.database import SessionLocal, engine, Base
from models.users_models import User, Role
import models.video_models  # noqa: F401
from Endpoints.auth import hash_password, normalize_email


def create_admin(db: Session, name: str, email: str, password: str) -> Tuple[User, bool]:
    """
    Create an admin unless one exists.

    Returns:
        (admin user, whether it was created now)
    """
    email = normalize_email(email)

    existing_admin = db.query(User).filter(User.role == Role.admin).first()
    if existing_admin:
        return existing_admin, False

    if db.query(User).filter(User.email == email).first():
        raise ValueError(f"A non-admin account already uses {email}")

    admin = User(
        name=name,
        email=email,
        password_hash=hash_password(password),
        role=Role.admin,
    )
    db.add(admin)
    db.commit()
    db.refresh(admin)
    return admin, True


def main() -> int:
    load_dotenv()

    name = os.getenv("ADMIN_NAME", "Admin")
    email = os.getenv("ADMIN_EMAIL")
    password = os.getenv("ADMIN_PASSWORD")

    if not email or not password:
        print("❌ ADMIN_EMAIL and ADMIN_PASSWORD must be set")
        return 1

    Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        admin, created = create_admin(db, name, email, password)
        if created:
            print(f"✅ Admin created successfully ({admin.email})")
        else:
            print(f"ℹ️  Admin already exists ({admin.email})")
        return 0
    except Exception as e:
        db.rollback()
        print(f"❌ Error creating admin: {e}")
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
