"""Write Leantime references back onto FreeScout conversations."""

from __future__ import annotations

import logging

from helpdesk_bridge.config import Settings
from helpdesk_bridge.integrations.freescout import CustomFieldNotFoundError, FreescoutClient
from helpdesk_bridge.metrics import record_failure
from helpdesk_bridge.schemas import Conversation, StepOutcome, TicketCreated, TicketResult
from helpdesk_bridge.templates import render_note

LOGGER = logging.getLogger(__name__)


class ReferenceAnnotator:
    """Adds the note first, then the custom field; each step stands alone."""

    def __init__(self, settings: Settings, client: FreescoutClient | None = None) -> None:
        self.settings = settings
        self.client = client or FreescoutClient(settings)

    def annotate(self, conversation: Conversation, ticket: TicketResult) -> list[StepOutcome]:
        return [self.add_note(conversation, ticket), self.add_custom_field(conversation, ticket)]

    def add_note(self, conversation: Conversation, ticket: TicketResult) -> StepOutcome:
        ticket_url = ticket.reference.url if isinstance(ticket, TicketCreated) else None
        try:
            self.client.create_note(conversation.id, render_note(conversation, ticket_url))
        except Exception as exc:
            record_failure("freescout", "create_note", exc)
            LOGGER.warning(
                "note creation failed",
                exc_info=True,
                extra={"event": "note_create_failed", "context": {"error": type(exc).__name__}},
            )
            return StepOutcome(step="note", status="failed", detail=f"{type(exc).__name__}: {exc}")
        return StepOutcome(step="note", status="ok")

    def add_custom_field(self, conversation: Conversation, ticket: TicketResult) -> StepOutcome:
        if not isinstance(ticket, TicketCreated):
            return StepOutcome(step="custom_field", status="skipped", detail="no ticket id")

        field_name = self.settings.leantime_custom_field
        method = "find_custom_field_id"
        try:
            if conversation.mailbox_id is None:
                raise CustomFieldNotFoundError(f"conversation {conversation.id} has no mailbox")
            field_id = self.client.find_custom_field_id(conversation.mailbox_id, field_name)
            method = "set_custom_field"
            self.client.set_custom_field(conversation.id, field_id, ticket.reference.ticket_id)
        except Exception as exc:
            record_failure("freescout", method, exc)
            LOGGER.warning(
                "custom field update failed",
                exc_info=True,
                extra={
                    "event": "custom_field_failed",
                    "context": {"field": field_name, "method": method, "error": type(exc).__name__},
                },
            )
            return StepOutcome(step="custom_field", status="failed", detail=f"{type(exc).__name__}: {exc}")
        return StepOutcome(step="custom_field", status="ok")
