"""FastAPI application entrypoint."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from uuid import uuid4

from fastapi import FastAPI, Request, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware

from helpdesk_bridge.config import Settings, get_settings
from helpdesk_bridge.hooks import IntegrationOrchestrator
from helpdesk_bridge.logging import clear_request_id, configure_logging, set_request_id
from helpdesk_bridge.middleware.signature import SignatureMiddleware
from helpdesk_bridge.schemas import ConversationCreatedEvent, HealthResponse, IntegrationReport

LOGGER = logging.getLogger(__name__)


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Attach request id to logging context and response headers."""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or uuid4().hex
        token = set_request_id(request_id)
        try:
            response = await call_next(request)
        finally:
            clear_request_id(token)
        response.headers["X-Request-ID"] = request_id
        return response


def _warn_on_missing_settings(settings: Settings) -> None:
    if not settings.webhook_secret:
        LOGGER.warning(
            "hook signature verification disabled",
            extra={
                "event": "security_degraded",
                "context": {"reason": "WEBHOOK_SECRET not set - inbound signature verification skipped"},
            },
        )
    if not settings.leantime_project_key:
        LOGGER.warning(
            "leantime project key missing",
            extra={"event": "config_incomplete", "context": {"setting": "LEANTIME_PROJECT_KEY"}},
        )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize runtime dependencies on startup."""
    settings = get_settings()
    configure_logging(settings.log_level)
    _warn_on_missing_settings(settings)

    app.state.settings = settings
    app.state.orchestrator = IntegrationOrchestrator(settings)
    yield


app = FastAPI(title="helpdesk-bridge", lifespan=lifespan)
_middleware_settings = Settings()

# Starlette adds latest middleware first, so add reverse of desired runtime order.
app.add_middleware(SignatureMiddleware, settings=_middleware_settings)
app.add_middleware(RequestIDMiddleware)


@app.get("/health", response_model=HealthResponse)
def health() -> HealthResponse:
    """Service health endpoint."""
    return HealthResponse(app=app.state.settings.app_name)


@app.get("/metrics")
def metrics() -> Response:
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


@app.post("/hooks/conversation-created-by-customer", response_model=IntegrationReport)
def conversation_created_by_customer(payload: ConversationCreatedEvent) -> IntegrationReport:
    """A customer opened a conversation."""
    return app.state.orchestrator.conversation_created_by_customer(
        payload.conversation,
        payload.thread,
        payload.customer,
    )


@app.post("/hooks/conversation-created-by-user", response_model=IntegrationReport)
def conversation_created_by_user(payload: ConversationCreatedEvent) -> IntegrationReport:
    """An agent opened a conversation on a customer's behalf."""
    return app.state.orchestrator.conversation_created_by_user(payload.conversation, payload.thread)
