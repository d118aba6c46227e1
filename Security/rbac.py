"""
ROLE-BASED ACCESS CONTROL (RBAC)
================================
Roles and access rules for dashboards and admin endpoints.
"""

# WHY:
# - Limits access to actions based on profile role.
# HOW:
# - Role is a closed enum; enforce_rbac() checks path prefixes against
#   role rules and require_roles() guards individual routes.

# FLOW:
# - parse_role() turns a stored role string into a Role (or None).
# - enforce_rbac() checks role against route prefix.

from __future__ import annotations

import enum

from fastapi import Depends, HTTPException, Request, status

from booking_platform.app_context import get_current_profile


class Role(str, enum.Enum):
    ADMIN = "admin"
    PERFORMER = "performer"
    CLIENT = "client"


ROLE_PATH_RULES = [
    ("/api/admin", {Role.ADMIN}),
]


def parse_role(value) -> Role | None:
    if isinstance(value, Role):
        return value
    try:
        return Role(value)
    except ValueError:
        return None


def enforce_rbac(profile, path: str) -> None:
    """Raise 403 if profile role does not satisfy path-based access rules."""
    role = parse_role(profile.role)
    for prefix, roles in ROLE_PATH_RULES:
        if path.startswith(prefix):
            if role not in roles:
                raise HTTPException(
                    status_code=status.HTTP_403_FORBIDDEN,
                    detail="Access denied",
                )
            return


def require_roles(*roles: Role):
    """Build a dependency that rejects profiles outside ``roles`` with 403."""
    allowed = set(roles)

    def dependency(request: Request, profile=Depends(get_current_profile)):
        enforce_rbac(profile, request.url.path)
        if parse_role(profile.role) not in allowed:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")
        return profile

    return dependency
