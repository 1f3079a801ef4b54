"""Pydantic schemas for hook payloads and integration results."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Literal

from pydantic import BaseModel, Field, computed_field

LEANTIME_TICKET_STATUS = "3"

Trigger = Literal["created_by_customer", "created_by_user"]
StepName = Literal["leantime", "teams", "note", "custom_field"]
StepStatus = Literal["ok", "skipped", "failed"]


class Conversation(BaseModel):
    """FreeScout conversation as delivered with the created event."""

    id: int
    number: int | None = None
    mailbox_id: int | None = None
    subject: str = ""
    customer_email: str | None = None
    created_at: datetime
    preview: str = ""


class Customer(BaseModel):
    """Customer who opened the conversation."""

    first_name: str = ""
    last_name: str | None = None
    exists: bool = True

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name or ''}".strip()


class Thread(BaseModel):
    """First thread of a new conversation."""

    id: int | None = None
    body: str = ""


class ConversationCreatedEvent(BaseModel):
    """Incoming hook payload."""

    conversation: Conversation
    thread: Thread = Field(default_factory=Thread)
    customer: Customer | None = None


class TicketCreationRequest(BaseModel):
    """The ``values`` object of a Leantime addTicket call."""

    headline: str
    description: str
    status: str = LEANTIME_TICKET_STATUS
    project_id: str | None = Field(default=None, serialization_alias="projectId")


class TicketReference(BaseModel):
    """Identifier and browser URL of a Leantime ticket."""

    ticket_id: str
    url: str


class TicketCreated(BaseModel):
    status: Literal["created"] = "created"
    reference: TicketReference


class TicketFailed(BaseModel):
    status: Literal["failed"] = "failed"
    error: str


TicketResult = Annotated[TicketCreated | TicketFailed, Field(discriminator="status")]


class StepOutcome(BaseModel):
    """Result of one side effect in the integration sequence."""

    step: StepName
    status: StepStatus
    detail: str | None = None


class IntegrationReport(BaseModel):
    """Everything that happened for one conversation event."""

    trigger: Trigger
    conversation_id: int
    status: Literal["processed", "ignored"] = "processed"
    ticket: TicketResult | None = None
    steps: list[StepOutcome] = Field(default_factory=list)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def failures(self) -> list[StepName]:
        return [step.step for step in self.steps if step.status == "failed"]

    @property
    def ticket_url(self) -> str | None:
        if isinstance(self.ticket, TicketCreated):
            return self.ticket.reference.url
        return None


class HealthResponse(BaseModel):
    """Healthcheck response model."""

    status: Literal["ok"] = "ok"
    app: str
