"""Microsoft Teams incoming-webhook integration."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from helpdesk_bridge.config import Settings
from helpdesk_bridge.metrics import record_failure
from helpdesk_bridge.schemas import Conversation, StepOutcome
from helpdesk_bridge.templates import conversation_url, format_created, is_valid_url

LOGGER = logging.getLogger(__name__)

ADAPTIVE_CARD_CONTENT_TYPE = "application/vnd.microsoft.card.adaptive"
FALLBACK_TEXT = "Could not create Leantime URL"


def _text_block(text: str, **options: Any) -> dict[str, Any]:
    return {"type": "TextBlock", "text": text, **options}


def _open_url(title: str, url: str) -> dict[str, Any]:
    return {"type": "ActionSet", "actions": [{"type": "Action.OpenUrl", "title": title, "url": url}]}


def build_card(
    conversation: Conversation,
    originator_name: str,
    ticket_url: str | None,
    helpdesk_url: str,
) -> dict[str, Any]:
    """Build the Teams message envelope around an Adaptive Card."""
    if is_valid_url(ticket_url):
        right_col = _open_url("Open in Leantime", str(ticket_url))
    else:
        right_col = _text_block(FALLBACK_TEXT, wrap=True, spacing="None")

    identity = [
        _text_block(originator_name, weight="Bolder", wrap=True, spacing="None", size="Small"),
        _text_block(conversation.customer_email or "", weight="Bolder", wrap=True, spacing="None", size="Small"),
        _text_block(format_created(conversation), spacing="None", isSubtle=True, wrap=True, size="Small"),
    ]
    actions = [
        {
            "type": "Column",
            "width": "stretch",
            "items": [_open_url("Open in FreeScout", conversation_url(helpdesk_url, conversation.id))],
        },
        {"type": "Column", "width": "stretch", "items": [right_col]},
    ]
    return {
        "type": "message",
        "attachments": [
            {
                "contentType": ADAPTIVE_CARD_CONTENT_TYPE,
                "content": {
                    "type": "AdaptiveCard",
                    "version": "1.4",
                    "body": [
                        _text_block(conversation.subject, size="Medium", weight="Bolder"),
                        {
                            "type": "ColumnSet",
                            "columns": [{"type": "Column", "items": identity, "width": "stretch"}],
                        },
                        _text_block(conversation.preview, wrap=True),
                        {"type": "ColumnSet", "columns": actions},
                    ],
                },
            }
        ],
    }


class TeamsNotifier:
    """Posts new-conversation cards to a Teams channel."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    def notify(self, conversation: Conversation, originator_name: str, ticket_url: str | None) -> StepOutcome:
        """Send one card; failures are logged and reported, never raised."""
        webhook = self.settings.teams_webhook
        if not webhook:
            return StepOutcome(step="teams", status="skipped", detail="no webhook configured")

        card = build_card(conversation, originator_name, ticket_url, self.settings.helpdesk_url)
        try:
            with httpx.Client(**self.settings.http_options()) as client:
                response = client.post(webhook, json=card)
            response.raise_for_status()
        except Exception as exc:
            record_failure("teams", "notify", exc)
            LOGGER.warning(
                "teams notification failed",
                exc_info=True,
                extra={"event": "teams_notify_failed", "context": {"error": type(exc).__name__}},
            )
            return StepOutcome(step="teams", status="failed", detail=f"{type(exc).__name__}: {exc}")
        return StepOutcome(step="teams", status="ok")
