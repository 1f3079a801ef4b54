"""Signature middleware tests."""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.testclient import TestClient

from helpdesk_bridge.config import Settings
from helpdesk_bridge.middleware.signature import SignatureMiddleware, sign


def _build_app(secret: str | None = None) -> FastAPI:
    app = FastAPI()
    app.add_middleware(SignatureMiddleware, settings=Settings(webhook_secret=secret))

    @app.post("/hooks/conversation-created-by-customer")
    async def hook(payload: dict):
        return {"ok": True, "id": payload.get("id")}

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    return app


def test_missing_signature_rejected_when_secret_set() -> None:
    client = TestClient(_build_app(secret="secret"))
    res = client.post("/hooks/conversation-created-by-customer", json={"id": 1})
    assert res.status_code == 401


def test_correct_signature_passes() -> None:
    client = TestClient(_build_app(secret="secret"))
    body = b'{"id":1}'
    res = client.post(
        "/hooks/conversation-created-by-customer",
        content=body,
        headers={"X-Webhook-Signature": sign("secret", body), "Content-Type": "application/json"},
    )
    assert res.status_code == 200
    assert res.json()["id"] == 1


def test_tampered_body_with_old_signature_rejected() -> None:
    client = TestClient(_build_app(secret="secret"))
    original = b'{"id":1}'
    tampered = b'{"id":2}'
    res = client.post(
        "/hooks/conversation-created-by-customer",
        content=tampered,
        headers={"X-Webhook-Signature": sign("secret", original), "Content-Type": "application/json"},
    )
    assert res.status_code == 401


def test_signature_skipped_when_secret_missing() -> None:
    client = TestClient(_build_app(secret=None))
    res = client.post("/hooks/conversation-created-by-customer", json={"id": 1})
    assert res.status_code == 200


def test_non_hook_paths_not_checked() -> None:
    client = TestClient(_build_app(secret="secret"))
    assert client.get("/health").status_code == 200
