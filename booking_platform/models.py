from sqlalchemy import Column, String, DateTime, Boolean, Text, JSON, Index
from .database import Base
import datetime
import uuid


def _utcnow():
    return datetime.datetime.now(datetime.timezone.utc).replace(tzinfo=None)


def _new_id():
    return str(uuid.uuid4())


# --- PROFILES ---

class Profile(Base):
    __tablename__ = "profiles"

    id = Column(String(36), primary_key=True, default=_new_id)
    email = Column(String(255), unique=True, index=True, nullable=False)
    full_name = Column(String(120), nullable=False)

    # Roles: 'admin', 'performer', 'client'
    role = Column(String(20), nullable=False, default="client")

    # Encrypted token ("enc::..."), never plaintext
    phone = Column(Text, nullable=True)
    avatar_url = Column(String(512), nullable=True)
    password_hash = Column(String(255), nullable=False)
    is_active = Column(Boolean, default=True)
    is_available = Column(Boolean, default=True)

    created_at = Column(DateTime, default=_utcnow)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)
    last_login = Column(DateTime, nullable=True)


# --- AUDIT ---

class AuditLog(Base):
    # Append-only; rows are never updated or deleted by the application
    __tablename__ = "audit_log"

    id = Column(String(36), primary_key=True, default=_new_id)
    user_id = Column(String(36), nullable=True)
    action = Column(String(64), nullable=False)
    resource_type = Column(String(64), nullable=False)
    resource_id = Column(String(64), nullable=True)
    details = Column(JSON, nullable=True)
    ip_address = Column(String(64), nullable=True)
    user_agent = Column(String(512), nullable=True)
    created_at = Column(DateTime, default=_utcnow, index=True)

    __table_args__ = (
        Index("ix_audit_log_user_action", "user_id", "action"),
    )
