from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from starlette.middleware.sessions import SessionMiddleware
from prometheus_client import make_asgi_app
from pathlib import Path
import logging
import time

from Security.security_config import SECURITY_SETTINGS, get_bool, session_secret
from Security.key_management import EncryptionKey, load_encryption_key
from Security.encryption import Encryptor
from Security.audit_trail import set_audit_request_context, clear_audit_request_context

from .database import Base, engine
from .dashboard_routes import register_dashboard_routes
from .web_auth_routes import register_web_auth_routes
from .api_routes import register_api_routes
from .error_handlers import register_error_handlers

logger = logging.getLogger("booking_platform")

NO_CACHE_PREFIXES = ("/dashboard", "/api")


def create_app(encryption_key: EncryptionKey | None = None, upload_dir: str | None = None) -> FastAPI:
    """Build the application. A missing or malformed ENCRYPTION_KEY fails here."""
    key = encryption_key or load_encryption_key()

    app = FastAPI(title="Booking Platform")
    app.state.encryptor = Encryptor(key)
    app.state.upload_dir = upload_dir or SECURITY_SETTINGS["UPLOAD_DIR"]
    Path(app.state.upload_dir).mkdir(parents=True, exist_ok=True)
    app.mount("/uploads", StaticFiles(directory=app.state.upload_dir), name="uploads")
    if get_bool("PROMETHEUS_ENABLED", True):
        app.mount("/metrics", make_asgi_app())

    register_dashboard_routes(app)
    register_web_auth_routes(app)
    register_api_routes(app)
    register_error_handlers(app)

    # Request timing
    @app.middleware("http")
    async def timing_middleware(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        duration = (time.perf_counter() - start) * 1000
        logger.info("[TIMING] %s %s took %.2f ms", request.method, request.url.path, duration)
        return response

    @app.middleware("http")
    async def add_no_cache_headers(request: Request, call_next):
        response = await call_next(request)
        if request.url.path.startswith(NO_CACHE_PREFIXES):
            response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate, max-age=0"
            response.headers["Pragma"] = "no-cache"
            response.headers["Expires"] = "0"
        if request.url.path.startswith("/uploads"):
            response.headers["X-Content-Type-Options"] = "nosniff"
        return response

    @app.middleware("http")
    async def bind_audit_context(request: Request, call_next):
        token = set_audit_request_context(request)
        try:
            return await call_next(request)
        finally:
            clear_audit_request_context(token)

    app.add_middleware(
        SessionMiddleware,
        secret_key=session_secret(),
        max_age=SECURITY_SETTINGS["SESSION_MAX_AGE"],
        https_only=SECURITY_SETTINGS["SESSION_HTTPS_ONLY"],
        same_site="lax",
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=SECURITY_SETTINGS["CORS_ORIGINS"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.on_event("startup")
    def startup_event():
        Base.metadata.create_all(bind=engine, checkfirst=True)

    return app


app = create_app()
