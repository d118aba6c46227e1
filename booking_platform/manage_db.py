"""
Create database tables and seed the first admin profile.
Usage: python -m booking_platform.manage_db

The admin is created from ADMIN_EMAIL / ADMIN_PASSWORD (and optional
ADMIN_NAME) when both are set and no profile with that email exists.
"""
import os

from .database import engine, Base, SessionLocal
from .models import Profile
from .profiles import create_profile
from Security.authentication import normalize_email
from Security.encryption import Encryptor
from Security.key_management import load_encryption_key
from Security.rbac import Role


def seed_admin(db, encryptor: Encryptor) -> Profile | None:
    email = normalize_email(os.getenv("ADMIN_EMAIL"))
    password = os.getenv("ADMIN_PASSWORD") or ""
    if not email or not password:
        return None
    if db.query(Profile).filter(Profile.email == email).first():
        return None
    return create_profile(
        db,
        encryptor,
        email=email,
        full_name=os.getenv("ADMIN_NAME") or "Administrator",
        role=Role.ADMIN,
        password=password,
    )


def main():
    encryptor = Encryptor(load_encryption_key())
    print("Creating tables (if missing)...")
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        admin = seed_admin(db, encryptor)
        if admin:
            print(f"Seeded admin profile: {admin.email}")
        else:
            print("Admin seed skipped.")
    finally:
        db.close()
    print("All DB management tasks complete.")


if __name__ == "__main__":
    main()
