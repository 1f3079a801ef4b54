"""Conversation-created hooks: Leantime ticket, Teams card, FreeScout note."""

from __future__ import annotations

import logging

from helpdesk_bridge.annotator import ReferenceAnnotator
from helpdesk_bridge.config import Settings
from helpdesk_bridge.integrations.leantime import LeantimeClient
from helpdesk_bridge.integrations.teams import TeamsNotifier
from helpdesk_bridge.logging import bind_conversation, unbind_conversation
from helpdesk_bridge.metrics import HOOK_EVENTS
from helpdesk_bridge.schemas import (
    Conversation,
    Customer,
    IntegrationReport,
    StepOutcome,
    Thread,
    TicketCreated,
    TicketResult,
    Trigger,
)
from helpdesk_bridge.templates import render_ticket_description

LOGGER = logging.getLogger(__name__)


class IntegrationOrchestrator:
    """Runs the integration sequence for new conversations.

    Steps run in order and never abort each other: a failed Leantime call
    still produces a fallback Teams card and a "no reference" note.
    """

    def __init__(
        self,
        settings: Settings,
        leantime: LeantimeClient | None = None,
        teams: TeamsNotifier | None = None,
        annotator: ReferenceAnnotator | None = None,
    ) -> None:
        self.settings = settings
        self.leantime = leantime or LeantimeClient(settings)
        self.teams = teams or TeamsNotifier(settings)
        self.annotator = annotator or ReferenceAnnotator(settings)

    def conversation_created_by_customer(
        self,
        conversation: Conversation,
        thread: Thread,
        customer: Customer | None,
    ) -> IntegrationReport:
        """Customer wrote in: ticket, Teams card, then note and custom field."""
        if customer is None or not customer.exists:
            HOOK_EVENTS.labels(trigger="created_by_customer", status="ignored").inc()
            LOGGER.info(
                "customer missing, skipping",
                extra={"event": "hook_ignored", "context": {"conversation_id": conversation.id}},
            )
            return IntegrationReport(
                trigger="created_by_customer",
                conversation_id=conversation.id,
                status="ignored",
            )

        return self._run("created_by_customer", conversation, thread, customer.display_name, notify=True)

    def conversation_created_by_user(self, conversation: Conversation, thread: Thread) -> IntegrationReport:
        """Agent opened the conversation: ticket and note only, no Teams card."""
        return self._run(
            "created_by_user",
            conversation,
            thread,
            self.settings.support_originator_name,
            notify=False,
        )

    def _run(
        self,
        trigger: Trigger,
        conversation: Conversation,
        thread: Thread,
        originator_name: str,
        notify: bool,
    ) -> IntegrationReport:
        token = bind_conversation(conversation.id)
        try:
            ticket = self._create_ticket(conversation, thread, originator_name)
            ticket_url = ticket.reference.url if isinstance(ticket, TicketCreated) else None

            steps = [self._ticket_outcome(ticket)]
            if notify:
                steps.append(self.teams.notify(conversation, originator_name, ticket_url))
            steps.extend(self.annotator.annotate(conversation, ticket))

            report = IntegrationReport(
                trigger=trigger,
                conversation_id=conversation.id,
                ticket=ticket,
                steps=steps,
            )
            self._report(report)
            return report
        finally:
            unbind_conversation(token)

    def _create_ticket(self, conversation: Conversation, thread: Thread, originator_name: str) -> TicketResult:
        description = render_ticket_description(conversation, thread, originator_name, self.settings.helpdesk_url)
        return self.leantime.create_ticket(
            headline=conversation.subject,
            description=description,
            project_id=self.settings.leantime_project_key,
        )

    @staticmethod
    def _ticket_outcome(ticket: TicketResult) -> StepOutcome:
        if isinstance(ticket, TicketCreated):
            return StepOutcome(step="leantime", status="ok", detail=ticket.reference.ticket_id)
        return StepOutcome(step="leantime", status="failed", detail=ticket.error)

    def _report(self, report: IntegrationReport) -> None:
        context = {
            "trigger": report.trigger,
            "ticket_url": report.ticket_url,
            "steps": {step.step: step.status for step in report.steps},
        }
        failures = report.failures
        HOOK_EVENTS.labels(trigger=report.trigger, status="degraded" if failures else "processed").inc()
        if failures:
            context["failures"] = {step.step: step.detail for step in report.steps if step.status == "failed"}
            LOGGER.warning(
                "integration completed with failures",
                extra={"event": "integration_degraded", "context": context},
            )
            return
        LOGGER.info("integration completed", extra={"event": "integration_completed", "context": context})
