"""
AUDIT TRAIL
===========
Best-effort, append-only audit logging.
"""

# FLOW:
# - Call log_action() on sensitive actions to insert an audit_log row.
# - Middleware binds request metadata so entries pick up ip/user agent.
# WHY:
# - Provides accountability for critical actions without ever breaking
#   the operation being audited.
# HOW:
# - Inserts through its own DB session, emits a structured log line,
#   and turns any failure into an AuditResult instead of an exception.

from __future__ import annotations

import contextvars
import enum
import logging
import os
from dataclasses import dataclass
from logging.handlers import RotatingFileHandler
from typing import Any, Mapping

from pydantic import BaseModel, Field, field_validator

from booking_platform.database import SessionLocal
from booking_platform.models import AuditLog
from Security.metrics import increment_audit_event
from Security.security_config import SECURITY_SETTINGS, feature_enabled


logger = logging.getLogger("security.audit")
if not logger.handlers:
    log_dir = SECURITY_SETTINGS["AUDIT_LOG_DIR"]
    os.makedirs(log_dir, exist_ok=True)
    handler = RotatingFileHandler(os.path.join(log_dir, "audit.log"), maxBytes=2_000_000, backupCount=3)
    formatter = logging.Formatter("%(asctime)s %(levelname)s %(message)s")
    handler.setFormatter(formatter)
    logger.setLevel(logging.INFO)
    logger.addHandler(handler)

_audit_ctx: contextvars.ContextVar[dict[str, str] | None] = contextvars.ContextVar("audit_ctx", default=None)


class AuditAction(str, enum.Enum):
    # Booking
    BOOKING_CREATED = "booking_created"
    BOOKING_ACCEPTED = "booking_accepted"
    BOOKING_DECLINED = "booking_declined"
    BOOKING_CANCELLED = "booking_cancelled"
    BOOKING_COMPLETED = "booking_completed"
    ETA_SUBMITTED = "eta_submitted"

    # Payment
    PAYMENT_UPLOADED = "payment_uploaded"
    PAYMENT_VERIFIED = "payment_verified"
    PAYMENT_REJECTED = "payment_rejected"

    # Vetting
    VETTING_SUBMITTED = "vetting_submitted"
    VETTING_APPROVED = "vetting_approved"
    VETTING_REJECTED = "vetting_rejected"

    # Blacklist
    BLACKLIST_ADDED = "blacklist_added"
    BLACKLIST_REMOVED = "blacklist_removed"

    # User
    USER_LOGIN = "user_login"
    USER_LOGOUT = "user_logout"
    USER_CREATED = "user_created"
    USER_UPDATED = "user_updated"
    USER_ROLE_CHANGED = "user_role_changed"


class AuditEntry(BaseModel):
    action: str = Field(min_length=1)
    resource_type: str = Field(min_length=1)
    user_id: str | None = None
    resource_id: str | None = None
    details: dict[str, Any] | None = None
    ip_address: str | None = None
    user_agent: str | None = None

    @field_validator("action", mode="before")
    @classmethod
    def _action_value(cls, value):
        if isinstance(value, AuditAction):
            return value.value
        return value


@dataclass(frozen=True)
class AuditResult:
    ok: bool
    error: str | None = None
    skipped: bool = False


@dataclass(frozen=True)
class RequestMetadata:
    ip_address: str | None
    user_agent: str | None


def get_request_metadata(headers: Mapping[str, str]) -> RequestMetadata:
    """Client IP (first x-forwarded-for hop, then x-real-ip) and user agent."""
    ip_address = None
    xff = (headers.get("x-forwarded-for") or "").strip()
    if xff:
        ip_address = xff.split(",")[0].strip() or None
    if not ip_address:
        ip_address = (headers.get("x-real-ip") or "").strip() or None
    user_agent = (headers.get("user-agent") or "").strip() or None
    return RequestMetadata(ip_address=ip_address, user_agent=user_agent)


def set_audit_request_context(request):
    metadata = get_request_metadata(request.headers)
    ip_address = metadata.ip_address
    if not ip_address and request.client and request.client.host:
        ip_address = request.client.host
    payload = {
        "ip": ip_address or "",
        "user_agent": metadata.user_agent or "",
        "request_id": request.headers.get("x-request-id", "").strip(),
        "path": str(request.url.path or "").strip(),
        "method": str(request.method or "").strip(),
    }
    return _audit_ctx.set(payload)


def clear_audit_request_context(token) -> None:
    _audit_ctx.reset(token)


def log_action(entry: AuditEntry, session_factory=None) -> AuditResult:
    """Insert one audit row. Never raises; failures come back as ``ok=False``."""
    if not feature_enabled("audit-trail", True):
        return AuditResult(ok=True, skipped=True)

    ctx = _audit_ctx.get() or {}
    ip_address = entry.ip_address or ctx.get("ip") or None
    user_agent = entry.user_agent or ctx.get("user_agent") or None
    logger.info(
        "event=%s user_id=%s resource=%s:%s ip=%s request_id=%s method=%s path=%s details=%s",
        entry.action,
        entry.user_id,
        entry.resource_type,
        entry.resource_id or "",
        ip_address or "-",
        ctx.get("request_id", ""),
        ctx.get("method", ""),
        ctx.get("path", ""),
        entry.details or "",
    )

    factory = session_factory or SessionLocal
    db = None
    try:
        db = factory()
        db.add(AuditLog(
            user_id=entry.user_id,
            action=entry.action,
            resource_type=entry.resource_type,
            resource_id=entry.resource_id,
            details=entry.details,
            ip_address=ip_address,
            user_agent=user_agent,
        ))
        db.commit()
    except Exception as exc:
        logger.error("Audit log error: event=%s error=%s", entry.action, exc)
        if db is not None:
            try:
                db.rollback()
            except Exception as rollback_exc:
                logger.error("Audit log rollback failed: %s", rollback_exc)
        increment_audit_event("failed")
        return AuditResult(ok=False, error=str(exc))
    finally:
        if db is not None:
            db.close()

    increment_audit_event("ok")
    return AuditResult(ok=True)


def audit(action: AuditAction, resource_type: str, user_id: str | None = None,
          resource_id: str | None = None, details: dict[str, Any] | None = None) -> AuditResult:
    """Shorthand for log_action() with request metadata taken from context."""
    return log_action(AuditEntry(
        action=action,
        resource_type=resource_type,
        user_id=user_id,
        resource_id=resource_id,
        details=details,
    ))
