"""Prometheus counters for outbound integration calls."""

from __future__ import annotations

import httpx
from prometheus_client import REGISTRY, Counter

INTEGRATION_ERRORS = Counter(
    "helpdesk_bridge_integration_errors_total",
    "Swallowed failures of outbound integration calls",
    ["module", "method", "exception", "code"],
    registry=REGISTRY,
)
HOOK_EVENTS = Counter(
    "helpdesk_bridge_hook_events_total",
    "Conversation events handled per trigger",
    ["trigger", "status"],
    registry=REGISTRY,
)


def _status_code(exc: BaseException) -> str:
    if isinstance(exc, httpx.HTTPStatusError):
        return str(exc.response.status_code)
    return "none"


def record_failure(module: str, method: str, exc: BaseException) -> None:
    """Count one failed integration call."""
    INTEGRATION_ERRORS.labels(
        module=module,
        method=method,
        exception=type(exc).__name__,
        code=_status_code(exc),
    ).inc()
