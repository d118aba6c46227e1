from types import SimpleNamespace

import pytest
from pydantic import ValidationError

from booking_platform.database import SessionLocal
from booking_platform.models import AuditLog
from Security import audit_trail
from Security.audit_trail import (
    AuditAction,
    AuditEntry,
    AuditResult,
    get_request_metadata,
    log_action,
)
from Security.metrics import get_metrics_snapshot


class _ExplodingSession:
    def __init__(self):
        self.rolled_back = False
        self.closed = False

    def add(self, row):
        pass

    def commit(self):
        raise RuntimeError("insert failed: connection reset")

    def rollback(self):
        self.rolled_back = True

    def close(self):
        self.closed = True


def _rows():
    session = SessionLocal()
    try:
        return session.query(AuditLog).all()
    finally:
        session.close()


def test_log_action_inserts_one_row() -> None:
    result = log_action(AuditEntry(
        action=AuditAction.BOOKING_CREATED,
        resource_type="booking",
        user_id="user-1",
        resource_id="booking-9",
        details={"amount": 250},
        ip_address="198.51.100.7",
        user_agent="pytest",
    ))

    assert result == AuditResult(ok=True)
    rows = _rows()
    assert len(rows) == 1
    row = rows[0]
    assert row.action == "booking_created"
    assert row.resource_type == "booking"
    assert row.user_id == "user-1"
    assert row.resource_id == "booking-9"
    assert row.details == {"amount": 250}
    assert row.ip_address == "198.51.100.7"
    assert row.user_agent == "pytest"
    assert row.created_at is not None


def test_log_action_accepts_free_form_action_names() -> None:
    result = log_action(AuditEntry(action="custom_event", resource_type="system"))

    assert result.ok is True
    assert _rows()[0].action == "custom_event"


def test_log_action_never_raises_when_store_fails(caplog) -> None:
    session = _ExplodingSession()

    with caplog.at_level("ERROR", logger="security.audit"):
        result = log_action(
            AuditEntry(action=AuditAction.PAYMENT_VERIFIED, resource_type="payment"),
            session_factory=lambda: session,
        )

    assert result.ok is False
    assert "connection reset" in result.error
    assert session.rolled_back is True
    assert session.closed is True
    assert "Audit log error" in caplog.text


def test_log_action_never_raises_when_session_cannot_open() -> None:
    def factory():
        raise ConnectionError("database unreachable")

    result = log_action(
        AuditEntry(action=AuditAction.USER_LOGIN, resource_type="profile"),
        session_factory=factory,
    )

    assert result.ok is False
    assert "unreachable" in result.error


def test_failed_writes_are_counted() -> None:
    before = get_metrics_snapshot()["audit"].get("failed", 0)

    log_action(
        AuditEntry(action=AuditAction.USER_LOGIN, resource_type="profile"),
        session_factory=_ExplodingSession,
    )

    assert get_metrics_snapshot()["audit"]["failed"] == before + 1


def test_log_action_can_be_switched_off(monkeypatch) -> None:
    monkeypatch.setenv("FEATURE_AUDIT_TRAIL", "false")

    result = log_action(AuditEntry(action=AuditAction.USER_LOGOUT, resource_type="profile"))

    assert result.skipped is True
    assert _rows() == []


def test_request_context_fills_missing_metadata() -> None:
    request = SimpleNamespace(
        headers={"x-real-ip": "192.0.2.44", "user-agent": "Mozilla/5.0", "x-request-id": "req-1"},
        client=SimpleNamespace(host="10.0.0.1"),
        url=SimpleNamespace(path="/api/profile"),
        method="PATCH",
    )
    token = audit_trail.set_audit_request_context(request)
    try:
        log_action(AuditEntry(action=AuditAction.USER_UPDATED, resource_type="profile"))
    finally:
        audit_trail.clear_audit_request_context(token)

    row = _rows()[0]
    assert row.ip_address == "192.0.2.44"
    assert row.user_agent == "Mozilla/5.0"


def test_explicit_metadata_wins_over_request_context() -> None:
    request = SimpleNamespace(
        headers={},
        client=SimpleNamespace(host="10.0.0.1"),
        url=SimpleNamespace(path="/login"),
        method="POST",
    )
    token = audit_trail.set_audit_request_context(request)
    try:
        log_action(AuditEntry(action=AuditAction.USER_LOGIN, resource_type="profile", ip_address="203.0.113.9"))
    finally:
        audit_trail.clear_audit_request_context(token)

    row = _rows()[0]
    assert row.ip_address == "203.0.113.9"
    assert row.user_agent is None


@pytest.mark.parametrize("field", ["action", "resource_type"])
def test_entry_requires_action_and_resource_type(field) -> None:
    values = {"action": "booking_created", "resource_type": "booking", field: ""}

    with pytest.raises(ValidationError):
        AuditEntry(**values)


def test_entry_stores_enum_value() -> None:
    entry = AuditEntry(action=AuditAction.BLACKLIST_ADDED, resource_type="blacklist")

    assert entry.action == "blacklist_added"
    assert type(entry.action) is str


def test_action_catalog() -> None:
    assert {a.value for a in AuditAction} == {
        "booking_created", "booking_accepted", "booking_declined", "booking_cancelled",
        "booking_completed", "eta_submitted",
        "payment_uploaded", "payment_verified", "payment_rejected",
        "vetting_submitted", "vetting_approved", "vetting_rejected",
        "blacklist_added", "blacklist_removed",
        "user_login", "user_logout", "user_created", "user_updated", "user_role_changed",
    }


def test_request_metadata_prefers_forwarded_for() -> None:
    metadata = get_request_metadata({
        "x-forwarded-for": "203.0.113.5, 10.0.0.1",
        "x-real-ip": "192.0.2.1",
        "user-agent": "curl/8.0",
    })

    assert metadata.ip_address == "203.0.113.5"
    assert metadata.user_agent == "curl/8.0"


def test_request_metadata_falls_back_to_real_ip() -> None:
    metadata = get_request_metadata({"x-real-ip": "192.0.2.1"})

    assert metadata.ip_address == "192.0.2.1"
    assert metadata.user_agent is None


def test_request_metadata_empty_headers() -> None:
    metadata = get_request_metadata({})

    assert metadata.ip_address is None
    assert metadata.user_agent is None
