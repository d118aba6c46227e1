from sqlalchemy.orm import Session

from .models import Profile
from Security.audit_trail import AuditAction, audit
from Security.authentication import hash_password, normalize_email
from Security.encryption import Encryptor
from Security.rbac import Role


def create_profile(
    db: Session,
    encryptor: Encryptor,
    email: str,
    full_name: str,
    role: Role,
    password: str,
    phone: str | None = None,
    created_by: str | None = None,
) -> Profile:
    email = normalize_email(email)
    if not email:
        raise ValueError("Email is required")
    if db.query(Profile).filter(Profile.email == email).first():
        raise ValueError(f"Email '{email}' already exists")

    profile = Profile(
        email=email,
        full_name=full_name.strip(),
        role=Role(role).value,
        phone=encryptor.encrypt_optional(phone),
        password_hash=hash_password(password),
    )
    db.add(profile)
    db.commit()
    db.refresh(profile)

    _ = audit(
        AuditAction.USER_CREATED,
        "profile",
        user_id=created_by or profile.id,
        resource_id=profile.id,
        details={"role": profile.role},
    )
    return profile


def profile_to_dict(profile: Profile, encryptor: Encryptor) -> dict:
    return {
        "id": profile.id,
        "email": profile.email,
        "full_name": profile.full_name,
        "role": profile.role,
        "phone": encryptor.decrypt_optional(profile.phone),
        "avatar_url": profile.avatar_url,
        "is_active": bool(profile.is_active),
        "is_available": bool(profile.is_available),
        "last_login": profile.last_login.isoformat() if profile.last_login else None,
    }
