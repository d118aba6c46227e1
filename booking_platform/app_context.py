from fastapi import Depends, HTTPException, Request
from fastapi.templating import Jinja2Templates
from sqlalchemy.orm import Session
from pathlib import Path
from .database import get_db
from .models import Profile

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"
templates = Jinja2Templates(directory=str(TEMPLATES_DIR))


def get_session_user_id(request: Request) -> str | None:
    if "session" not in request.scope:
        return None
    return request.session.get("user_id") or None


def get_encryptor(request: Request):
    return request.app.state.encryptor


def get_current_profile(request: Request, db: Session = Depends(get_db)) -> Profile:
    user_id = get_session_user_id(request)
    if not user_id:
        raise HTTPException(status_code=401, detail="Not authenticated")
    profile = db.get(Profile, user_id)
    if not profile:
        raise HTTPException(status_code=401, detail="Profile not found")
    if not profile.is_active:
        raise HTTPException(status_code=403, detail="Account is inactive")
    return profile
