"""
SECURITY CONFIG
===============
Centralized settings loaded from environment.
"""

# FLOW:
# - Load the active .env file once and expose SECURITY_SETTINGS.
# WHY:
# - Centralizes tuning per environment.
# HOW:
# - Reads env vars and stores them in a dict.

from __future__ import annotations

import logging
import os
import secrets

import dotenv


logger = logging.getLogger("security.env")


def get_bool(name: str, default: bool = False) -> bool:
    return os.getenv(name, str(default)).lower() == "true"


def get_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except ValueError:
        return default


def get_list(name: str, default: list[str]) -> list[str]:
    raw = os.getenv(name)
    if not raw:
        return default
    return [item.strip() for item in raw.split(",") if item.strip()]


def _env_name() -> str:
    env = os.getenv("APP_ENV", "").strip().lower()
    if env in {"prod", "production"}:
        return ".env.production"
    return ".env.local"


def env_path() -> str:
    root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
    return os.path.join(root, _env_name())


dotenv.load_dotenv(env_path())

if get_bool("APP_ENV_LOG", False):
    logger.info("Active env file: %s", env_path())

SECURITY_SETTINGS = {
    "SESSION_MAX_AGE": get_int("SESSION_MAX_AGE", 60 * 60 * 8),
    "SESSION_HTTPS_ONLY": get_bool("SESSION_HTTPS_ONLY", False),
    "CORS_ORIGINS": get_list("CORS_ORIGINS", ["http://localhost", "http://127.0.0.1"]),
    "UPLOAD_DIR": os.getenv("UPLOAD_DIR", "uploads"),
    "AUDIT_LOG_DIR": os.getenv("AUDIT_LOG_DIR", "logs"),
}


def feature_enabled(feature: str, default: bool = True) -> bool:
    """FEATURE_AUDIT_TRAIL=false switches off the "audit-trail" feature, etc."""
    env_name = "FEATURE_" + feature.upper().replace("-", "_")
    return get_bool(env_name, default)


def session_secret(env_name: str = "SESSION_SECRET_KEY") -> str:
    """Return the session signing secret, or a per-process one when unset."""
    value = (os.getenv(env_name) or os.getenv("SECRET_KEY") or "").strip()
    placeholders = {"", "change-this-secret", "AUTO_GENERATE"}
    if value not in placeholders:
        return value
    logger.warning("%s is not set; sessions will not survive a restart", env_name)
    return secrets.token_urlsafe(64)
