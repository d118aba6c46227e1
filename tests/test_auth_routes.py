from booking_platform.database import SessionLocal
from booking_platform.models import AuditLog, Profile
from Security.rbac import Role


def _audit_actions():
    session = SessionLocal()
    try:
        return [row.action for row in session.query(AuditLog).order_by(AuditLog.created_at).all()]
    finally:
        session.close()


def test_login_page_renders(client) -> None:
    response = client.get("/login")

    assert response.status_code == 200
    assert 'name="email"' in response.text


def test_login_success_sets_session_and_audits(client, make_profile, login) -> None:
    profile = make_profile(role=Role.PERFORMER, email="Performer@Example.com")

    response = login(
        "performer@example.com",
        headers={"x-forwarded-for": "203.0.113.5, 10.0.0.1", "user-agent": "pytest-agent"},
    )

    assert response.status_code == 303
    assert response.headers["location"] == "/dashboard"

    session = SessionLocal()
    try:
        stored = session.get(Profile, profile.id)
        assert stored.last_login is not None
        login_row = session.query(AuditLog).filter(AuditLog.action == "user_login").one()
    finally:
        session.close()
    assert login_row.user_id == profile.id
    assert login_row.ip_address == "203.0.113.5"
    assert login_row.user_agent == "pytest-agent"


def test_login_with_wrong_password(client, make_profile, login) -> None:
    make_profile(role=Role.CLIENT)

    response = login("client@example.com", password="wrong")

    assert response.status_code == 401
    assert "Invalid credentials" in response.text
    assert "user_login" not in _audit_actions()


def test_login_unknown_email(client, login) -> None:
    response = login("nobody@example.com")

    assert response.status_code == 401


def test_inactive_profile_cannot_log_in(client, db, make_profile, login) -> None:
    profile = make_profile(role=Role.CLIENT)
    db.get(Profile, profile.id).is_active = False
    db.commit()

    response = login(profile.email)

    assert response.status_code == 403
    assert client.get("/dashboard", follow_redirects=False).status_code == 303


def test_logout_clears_session_and_audits(client, make_profile, login) -> None:
    profile = make_profile(role=Role.ADMIN)
    login(profile.email)

    response = client.get("/logout", follow_redirects=False)

    assert response.status_code == 303
    assert response.headers["location"] == "/login"
    assert client.get("/dashboard", follow_redirects=False).headers["location"] == "/login"
    assert _audit_actions() == ["user_created", "user_login", "user_logout"]


def test_logout_without_session_does_not_audit(client) -> None:
    response = client.get("/logout", follow_redirects=False)

    assert response.status_code == 303
    assert _audit_actions() == []


def test_role_change_applies_to_existing_session(client, db, make_profile, login) -> None:
    profile = make_profile(role=Role.CLIENT)
    login(profile.email)
    assert client.get("/api/admin/metrics").status_code == 403

    db.get(Profile, profile.id).role = Role.ADMIN.value
    db.commit()

    assert client.get("/api/admin/metrics").status_code == 200
    assert 'data-dashboard="admin"' in client.get("/dashboard").text
