from dataclasses import dataclass
from fastapi import Depends, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.orm import Session
import logging

from .database import get_db
from .models import Profile
from .app_context import templates, get_session_user_id
from Security.rbac import Role, parse_role

logger = logging.getLogger("booking_platform.dashboard")

LOGIN_PATH = "/login"

DASHBOARD_TEMPLATES = {
    Role.ADMIN: "dashboard/admin.html",
    Role.PERFORMER: "dashboard/performer.html",
    Role.CLIENT: "dashboard/client.html",
}

_missing = set(Role) - set(DASHBOARD_TEMPLATES)
if _missing:
    raise RuntimeError(f"No dashboard template for roles: {sorted(r.value for r in _missing)}")


@dataclass(frozen=True)
class DashboardDecision:
    redirect_to: str | None = None
    profile: Profile | None = None
    role: Role | None = None

    @property
    def template(self) -> str | None:
        if self.role is None:
            return None
        return DASHBOARD_TEMPLATES[self.role]


def resolve_dashboard(user_id: str | None, db: Session) -> DashboardDecision:
    """Session -> profile -> role variant. Redirects are terminal."""
    if not user_id:
        return DashboardDecision(redirect_to=LOGIN_PATH)

    profile = db.get(Profile, user_id)
    if profile is None or not profile.is_active:
        return DashboardDecision(redirect_to=LOGIN_PATH)

    role = parse_role(profile.role)
    if role is None:
        # No variant for this role; the shell renders empty.
        logger.warning("Profile %s has unrecognized role %r", profile.id, profile.role)
    return DashboardDecision(profile=profile, role=role)


def register_dashboard_routes(app):
    @app.get("/")
    def root_redirect():
        return RedirectResponse("/dashboard", status_code=303)

    @app.get("/dashboard", response_class=HTMLResponse)
    def dashboard(request: Request, db: Session = Depends(get_db)):
        decision = resolve_dashboard(get_session_user_id(request), db)
        if decision.redirect_to:
            return RedirectResponse(decision.redirect_to, status_code=303)
        return templates.TemplateResponse(
            request,
            "dashboard/page.html",
            {
                "profile": decision.profile,
                "variant_template": decision.template,
            },
        )
