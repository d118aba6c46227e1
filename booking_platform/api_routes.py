from fastapi import Depends, HTTPException, File, UploadFile, Query
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session
from pathlib import Path
import logging

from .database import get_db
from .models import AuditLog, Profile
from .app_context import get_current_profile, get_encryptor
from .profiles import profile_to_dict
from Security.audit_trail import AuditAction, audit
from Security.encryption import Encryptor, generate_secure_filename
from Security.metrics import get_metrics_snapshot
from Security.rbac import Role, require_roles

logger = logging.getLogger("booking_platform.api")

MAX_AVATAR_BYTES = 5 * 1024 * 1024
UPLOAD_CHUNK_BYTES = 64 * 1024
AVATAR_EXTENSIONS = {"png", "jpg", "jpeg", "gif", "webp"}
AVATAR_CONTENT_TYPES = {"image/png", "image/jpeg", "image/gif", "image/webp"}


class ProfileUpdate(BaseModel):
    full_name: str | None = Field(default=None, min_length=1, max_length=120)
    phone: str | None = Field(default=None, max_length=40)


class RoleChange(BaseModel):
    role: Role


def _audit_row(row: AuditLog) -> dict:
    return {
        "id": row.id,
        "user_id": row.user_id,
        "action": row.action,
        "resource_type": row.resource_type,
        "resource_id": row.resource_id,
        "details": row.details,
        "ip_address": row.ip_address,
        "user_agent": row.user_agent,
        "created_at": row.created_at.isoformat() if row.created_at else None,
    }


def register_api_routes(app):

    @app.get("/api/profile")
    def read_profile(
        profile: Profile = Depends(get_current_profile),
        encryptor: Encryptor = Depends(get_encryptor),
    ):
        return profile_to_dict(profile, encryptor)

    @app.patch("/api/profile")
    def update_profile(
        payload: ProfileUpdate,
        profile: Profile = Depends(get_current_profile),
        encryptor: Encryptor = Depends(get_encryptor),
        db: Session = Depends(get_db),
    ):
        changed = []
        if payload.full_name is not None:
            profile.full_name = payload.full_name.strip()
            changed.append("full_name")
        if payload.phone is not None:
            # Empty string clears the stored number
            profile.phone = encryptor.encrypt(payload.phone) if payload.phone else None
            changed.append("phone")
        db.commit()
        if changed:
            _ = audit(AuditAction.USER_UPDATED, "profile", user_id=profile.id,
                      resource_id=profile.id, details={"fields": changed})
        return profile_to_dict(profile, encryptor)

    @app.post("/api/profile/avatar")
    async def upload_avatar(
        file: UploadFile = File(...),
        profile: Profile = Depends(get_current_profile),
        db: Session = Depends(get_db),
    ):
        _, dot, extension = (file.filename or "").rpartition(".")
        if not dot or extension.lower() not in AVATAR_EXTENSIONS:
            raise HTTPException(status_code=400, detail="Avatar must be a png, jpg, gif or webp image")
        if (file.content_type or "").lower() not in AVATAR_CONTENT_TYPES:
            raise HTTPException(status_code=400, detail="Unsupported avatar content type")

        data = bytearray()
        while True:
            chunk = await file.read(UPLOAD_CHUNK_BYTES)
            if not chunk:
                break
            data.extend(chunk)
            if len(data) > MAX_AVATAR_BYTES:
                raise HTTPException(status_code=413, detail="Avatar is too large")
        if not data:
            raise HTTPException(status_code=400, detail="Empty upload")

        relative_path = generate_secure_filename(file.filename, profile.id)
        target = Path(app.state.upload_dir) / relative_path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(bytes(data))

        profile.avatar_url = f"/uploads/{relative_path}"
        db.commit()
        _ = audit(AuditAction.USER_UPDATED, "profile", user_id=profile.id,
                  resource_id=profile.id, details={"fields": ["avatar_url"]})
        return {"avatar_url": profile.avatar_url}

    @app.get("/api/admin/audit-log")
    def list_audit_log(
        limit: int = Query(50, ge=1, le=500),
        admin: Profile = Depends(require_roles(Role.ADMIN)),
        db: Session = Depends(get_db),
    ):
        rows = (
            db.query(AuditLog)
            .order_by(AuditLog.created_at.desc())
            .limit(limit)
            .all()
        )
        return [_audit_row(row) for row in rows]

    @app.get("/api/admin/metrics")
    def security_metrics(admin: Profile = Depends(require_roles(Role.ADMIN))):
        return get_metrics_snapshot()

    @app.post("/api/admin/users/{user_id}/role")
    def change_role(
        user_id: str,
        payload: RoleChange,
        admin: Profile = Depends(require_roles(Role.ADMIN)),
        db: Session = Depends(get_db),
    ):
        target = db.get(Profile, user_id)
        if not target:
            raise HTTPException(status_code=404, detail="Profile not found")
        old_role = target.role
        target.role = payload.role.value
        db.commit()
        logger.info("Role changed for %s: %s -> %s by %s", user_id, old_role, target.role, admin.id)
        _ = audit(AuditAction.USER_ROLE_CHANGED, "profile", user_id=admin.id, resource_id=user_id,
                  details={"old_role": old_role, "new_role": target.role})
        return {"id": target.id, "role": target.role}
