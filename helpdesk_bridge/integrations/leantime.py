"""Leantime JSON-RPC integration."""

from __future__ import annotations

import logging
from typing import Any
from uuid import uuid4

import httpx

from helpdesk_bridge.config import Settings
from helpdesk_bridge.metrics import record_failure
from helpdesk_bridge.schemas import (
    TicketCreated,
    TicketCreationRequest,
    TicketFailed,
    TicketReference,
    TicketResult,
)

LOGGER = logging.getLogger(__name__)

API_PATH_JSONRPC = "/api/jsonrpc/"
TICKET_PATH = "/tickets/showKanban#/tickets/showTicket/"
ADD_TICKET_METHOD = "leantime.rpc.tickets.addTicket"


class LeantimeRPCError(RuntimeError):
    """Leantime answered, but not with a usable JSON-RPC result."""


class LeantimeClient:
    """Creates tickets in Leantime through its JSON-RPC endpoint."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    @property
    def enabled(self) -> bool:
        return bool(self.settings.leantime_url and self.settings.leantime_api_key)

    def ticket_url(self, ticket_id: str) -> str:
        """Browser URL of a ticket on the kanban board."""
        return f"{self.settings.leantime_url}{TICKET_PATH}{ticket_id}"

    def create_ticket(self, headline: str, description: str, project_id: str | None) -> TicketResult:
        """Create a ticket and return its reference, or the reason it failed."""
        if not self.enabled:
            LOGGER.warning("leantime disabled", extra={"event": "leantime_disabled", "context": {}})
            return TicketFailed(error="leantime not configured")

        request = TicketCreationRequest(headline=headline, description=description, project_id=project_id)
        try:
            ticket_id = self.add_ticket(request)
        except Exception as exc:
            record_failure("leantime", "add_ticket", exc)
            LOGGER.warning(
                "leantime ticket creation failed",
                exc_info=True,
                extra={
                    "event": "leantime_ticket_failed",
                    "context": {"error": type(exc).__name__, "project_id": project_id},
                },
            )
            return TicketFailed(error=f"{type(exc).__name__}: {exc}")

        reference = TicketReference(ticket_id=ticket_id, url=self.ticket_url(ticket_id))
        LOGGER.info(
            "leantime ticket created",
            extra={"event": "leantime_ticket_created", "context": {"ticket_id": ticket_id}},
        )
        return TicketCreated(reference=reference)

    def add_ticket(self, request: TicketCreationRequest) -> str:
        """Call addTicket and return the new ticket id."""
        result = self._call(ADD_TICKET_METHOD, {"values": request.model_dump(by_alias=True)})
        if not isinstance(result, list) or not result or result[0] in (None, "", False):
            raise LeantimeRPCError(f"no ticket id in result: {result!r}")
        return str(result[0])

    def _call(self, method: str, params: dict[str, Any]) -> Any:
        headers = {"x-api-key": self.settings.leantime_api_key or "", "Content-Type": "application/json"}
        body = {
            "jsonrpc": "2.0",
            "method": method,
            "id": uuid4().hex,
            "params": params,
        }
        with httpx.Client(**self.settings.http_options()) as client:
            response = client.post(
                f"{self.settings.leantime_url}{API_PATH_JSONRPC}",
                json=body,
                headers=headers,
            )
        response.raise_for_status()

        try:
            payload = response.json()
        except ValueError as exc:
            raise LeantimeRPCError("response is not JSON") from exc
        if not isinstance(payload, dict):
            raise LeantimeRPCError("response is not a JSON-RPC object")
        if payload.get("error"):
            error = payload["error"]
            message = error.get("message") if isinstance(error, dict) else error
            raise LeantimeRPCError(f"{method} failed: {message}")
        return payload.get("result")
