"""
SECURE USER AUTHENTICATION
==========================
Authenticate profiles using hashed credentials.

FLOW:
- Query profile by email.
- Verify password hash.
- Return profile on success.

WHY:
- Ensures only valid users can access the system.

HOW:
- Uses Argon2 hashes to verify passwords without storing raw secrets.
"""

from passlib.context import CryptContext
from passlib.exc import UnknownHashError
from sqlalchemy.orm import Session
from booking_platform.models import Profile


pwd_context = CryptContext(
    schemes=["argon2"],
    deprecated="auto",
)


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


def hash_password(password: str) -> str:
    """
    Hash a plain text password using Argon2.
    """
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a plain text password against a stored hash.
    """
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except (UnknownHashError, ValueError):
        return False


def authenticate(db: Session, email: str, password: str):
    """Return the profile for ``email`` if ``password`` matches, else None."""
    email = normalize_email(email)
    if not email:
        return None
    profile = db.query(Profile).filter(Profile.email == email).first()
    if profile and verify_password(password, profile.password_hash):
        return profile
    return None
