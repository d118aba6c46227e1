from fastapi import Depends, Request, Form, HTTPException
from fastapi.responses import HTMLResponse, RedirectResponse
from sqlalchemy.orm import Session
import datetime

from .database import get_db
from .app_context import templates, get_session_user_id
from Security.audit_trail import AuditAction, audit
from Security.authentication import authenticate, normalize_email


def register_web_auth_routes(app):
    @app.get("/login", response_class=HTMLResponse)
    async def login_page(request: Request):
        return templates.TemplateResponse(request, "auth/login.html", {})

    @app.post("/login")
    def login_submit(
        request: Request,
        email: str = Form(...),
        password: str = Form(...),
        db: Session = Depends(get_db)
    ):
        profile = authenticate(db, email, password)
        if not profile:
            return templates.TemplateResponse(
                request,
                "auth/login.html",
                {"error": "Invalid credentials", "email": normalize_email(email)},
                status_code=401
            )

        if not profile.is_active:
            raise HTTPException(status_code=403, detail="Account is inactive")

        profile.last_login = datetime.datetime.now(datetime.timezone.utc).replace(tzinfo=None)
        db.commit()

        request.session.clear()
        # Role is never cached here; it is read from the profile per request
        request.session["user_id"] = profile.id
        _ = audit(AuditAction.USER_LOGIN, "profile", user_id=profile.id, resource_id=profile.id)
        return RedirectResponse("/dashboard", status_code=303)

    @app.get("/logout")
    async def logout(request: Request):
        existing_user_id = get_session_user_id(request)
        if existing_user_id:
            _ = audit(AuditAction.USER_LOGOUT, "profile", user_id=existing_user_id, resource_id=existing_user_id)
        request.session.clear()
        return RedirectResponse("/login", status_code=303)
