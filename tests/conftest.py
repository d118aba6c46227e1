"""Pytest configuration for the booking platform test suite."""

import os
import tempfile
from pathlib import Path

TEST_ENCRYPTION_KEY = "0123456789abcdef0123456789abcdef"
_TMP_ROOT = Path(tempfile.mkdtemp(prefix="booking-platform-tests-"))


def _ensure_test_env() -> None:
    """Seed required environment variables before application modules load."""
    os.environ["DATABASE_URL"] = f"sqlite:///{_TMP_ROOT / 'test.db'}"
    os.environ["ENCRYPTION_KEY"] = TEST_ENCRYPTION_KEY
    os.environ.setdefault("SESSION_SECRET_KEY", "test-session-secret")
    os.environ.setdefault("AUDIT_LOG_DIR", str(_TMP_ROOT / "logs"))
    os.environ.setdefault("UPLOAD_DIR", str(_TMP_ROOT / "uploads"))
    os.environ.setdefault("PROMETHEUS_ENABLED", "true")


_ensure_test_env()

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from booking_platform.database import Base, SessionLocal, engine  # noqa: E402
from booking_platform.main import create_app  # noqa: E402
from booking_platform.profiles import create_profile  # noqa: E402
from Security.encryption import Encryptor  # noqa: E402
from Security.key_management import EncryptionKey  # noqa: E402
from Security.rbac import Role  # noqa: E402

PASSWORD = "correct horse battery staple"


@pytest.fixture(autouse=True)
def fresh_schema():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def encryptor() -> Encryptor:
    return Encryptor(EncryptionKey(TEST_ENCRYPTION_KEY))


@pytest.fixture
def app(tmp_path):
    return create_app(EncryptionKey(TEST_ENCRYPTION_KEY), upload_dir=str(tmp_path / "uploads"))


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def make_profile(db, encryptor):
    def _make(role=Role.CLIENT, email=None, full_name="Test User", phone=None, password=PASSWORD):
        email = email or f"{Role(role).value}@example.com"
        return create_profile(
            db,
            encryptor,
            email=email,
            full_name=full_name,
            role=role,
            password=password,
            phone=phone,
        )

    return _make


@pytest.fixture
def login(client):
    def _login(email, password=PASSWORD, **kwargs):
        return client.post(
            "/login",
            data={"email": email, "password": password},
            follow_redirects=False,
            **kwargs,
        )

    return _login
