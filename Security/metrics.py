"""
SECURITY METRICS
================
Prometheus-backed counters for audit and crypto events.
"""

from __future__ import annotations

import os
from typing import Dict

from prometheus_client import Counter


_AUDIT_EVENTS = None
_CRYPTO_FAILURES = None


def _enabled() -> bool:
    return os.getenv("PROMETHEUS_ENABLED", "true").lower() == "true"


def _init_metrics() -> None:
    global _AUDIT_EVENTS, _CRYPTO_FAILURES
    if _AUDIT_EVENTS is not None or not _enabled():
        return
    _AUDIT_EVENTS = Counter(
        "audit_events_total",
        "Count of audit log writes by outcome",
        ["outcome"],
    )
    _CRYPTO_FAILURES = Counter(
        "crypto_failures_total",
        "Count of encryption helper failures",
        ["operation"],
    )


def increment_audit_event(outcome: str) -> None:
    _init_metrics()
    if _AUDIT_EVENTS is None:
        return
    _AUDIT_EVENTS.labels(outcome=outcome).inc()


def increment_crypto_failure(operation: str) -> None:
    _init_metrics()
    if _CRYPTO_FAILURES is None:
        return
    _CRYPTO_FAILURES.labels(operation=operation).inc()


def _counter_value(counter, **labels) -> int:
    try:
        return int(counter.labels(**labels)._value.get())
    except Exception:
        return 0


def get_metrics_snapshot() -> Dict[str, Dict[str, int]]:
    _init_metrics()
    snapshot: Dict[str, Dict[str, int]] = {"audit": {}, "crypto": {}}
    if _AUDIT_EVENTS is not None:
        for outcome in ("ok", "failed"):
            snapshot["audit"][outcome] = _counter_value(_AUDIT_EVENTS, outcome=outcome)
    if _CRYPTO_FAILURES is not None:
        for operation in ("encrypt", "decrypt"):
            snapshot["crypto"][operation] = _counter_value(_CRYPTO_FAILURES, operation=operation)
    return snapshot
