"""HTML fragments for Leantime descriptions and FreeScout notes.

Both renderers take already-parsed records and return a string. Every value
that originates from the helpdesk is HTML-escaped; URLs are only rendered as
links after passing :func:`is_valid_url`.
"""

from __future__ import annotations

import html

from pydantic import AnyUrl, TypeAdapter, ValidationError

from helpdesk_bridge.schemas import Conversation, Thread

DATE_FORMAT = "%d-%m-%Y %H:%M"
NO_REFERENCE_TEXT = "Could not create a Leantime reference"

_URL_ADAPTER = TypeAdapter(AnyUrl)


def is_valid_url(value: str | None) -> bool:
    """Return True for a well-formed absolute URL."""
    if not value or value.strip() != value:
        return False
    try:
        parsed = _URL_ADAPTER.validate_python(value)
    except ValidationError:
        return False
    return bool(parsed.host)


def conversation_url(helpdesk_url: str, conversation_id: int) -> str:
    return f"{helpdesk_url}/conversation/{conversation_id}"


def format_created(conversation: Conversation) -> str:
    return conversation.created_at.strftime(DATE_FORMAT)


def _escape(text: str | None) -> str:
    if not text:
        return ""
    return html.escape(text, quote=True)


def render_ticket_description(
    conversation: Conversation,
    thread: Thread,
    originator_name: str,
    helpdesk_url: str,
) -> str:
    """Render the HTML description of a new Leantime ticket.

    The thread body is already HTML produced by the helpdesk editor and is
    embedded as is.
    """
    link = _escape(conversation_url(helpdesk_url, conversation.id))
    return (
        "<p>"
        f"<strong>{_escape(originator_name)}</strong><br>"
        f"{_escape(conversation.customer_email)}<br>"
        f"{format_created(conversation)}"
        "</p>"
        f"<div>{thread.body}</div>"
        f'<p><a href="{link}">Open conversation #{conversation.id} in FreeScout</a></p>'
    )


def render_note(conversation: Conversation, ticket_url: str | None) -> str:
    """Render the internal FreeScout note pointing at the Leantime ticket."""
    if is_valid_url(ticket_url):
        safe_url = _escape(ticket_url)
        reference = f'<p>Leantime ticket: <a href="{safe_url}">{safe_url}</a></p>'
    else:
        reference = f"<p><em>{NO_REFERENCE_TEXT}</em></p>"

    return (
        f"{reference}"
        "<p>"
        f"<strong>{_escape(conversation.subject)}</strong><br>"
        f"{_escape(conversation.customer_email)}<br>"
        f"{format_created(conversation)}"
        "</p>"
        f"<blockquote>{_escape(conversation.preview)}</blockquote>"
    )
