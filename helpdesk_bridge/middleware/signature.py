"""HMAC signature verification for inbound hook calls."""

from __future__ import annotations

import hashlib
import hmac

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from helpdesk_bridge.config import Settings

HOOK_PATH_PREFIX = "/hooks/"
SIGNATURE_HEADER = "X-Webhook-Signature"


def sign(secret: str, body: bytes) -> str:
    return "sha256=" + hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()


class SignatureMiddleware(BaseHTTPMiddleware):
    """Validates hook signatures when WEBHOOK_SECRET is set."""

    def __init__(self, app, settings: Settings):
        super().__init__(app)
        self.settings = settings

    async def dispatch(self, request: Request, call_next):
        if not self.settings.webhook_secret:
            return await call_next(request)
        if not request.url.path.startswith(HOOK_PATH_PREFIX):
            return await call_next(request)

        body = await request.body()

        async def _receive():
            return {"type": "http.request", "body": body, "more_body": False}

        request._receive = _receive  # type: ignore[attr-defined]
        expected = sign(self.settings.webhook_secret, body)
        received = request.headers.get(SIGNATURE_HEADER, "")
        if not hmac.compare_digest(expected, received):
            return JSONResponse({"detail": "Invalid signature"}, status_code=401)
        return await call_next(request)
