"""Reference annotator tests."""

from __future__ import annotations

import logging
from datetime import datetime
from unittest.mock import Mock

import httpx
from prometheus_client import REGISTRY

from helpdesk_bridge.annotator import ReferenceAnnotator
from helpdesk_bridge.config import Settings
from helpdesk_bridge.integrations.freescout import CustomFieldNotFoundError
from helpdesk_bridge.schemas import Conversation, TicketCreated, TicketFailed, TicketReference
from helpdesk_bridge.templates import NO_REFERENCE_TEXT

TICKET_URL = "https://pm.example.org/tickets/showKanban#/tickets/showTicket/42"


def _conversation(mailbox_id: int | None = 1) -> Conversation:
    return Conversation(
        id=101,
        mailbox_id=mailbox_id,
        subject="Printer broken",
        customer_email="jane@example.org",
        created_at=datetime(2026, 3, 4, 9, 5),
        preview="Jammed again",
    )


def _created() -> TicketCreated:
    return TicketCreated(reference=TicketReference(ticket_id="42", url=TICKET_URL))


def _annotator(client: Mock) -> ReferenceAnnotator:
    return ReferenceAnnotator(Settings(), client=client)


def test_note_then_custom_field_on_success() -> None:
    client = Mock()
    client.find_custom_field_id.return_value = 9

    outcomes = _annotator(client).annotate(_conversation(), _created())

    assert [(o.step, o.status) for o in outcomes] == [("note", "ok"), ("custom_field", "ok")]
    conversation_id, html = client.create_note.call_args.args
    assert conversation_id == 101
    assert TICKET_URL in html
    client.find_custom_field_id.assert_called_once_with(1, "Leantime issue")
    client.set_custom_field.assert_called_once_with(101, 9, "42")


def test_failed_ticket_writes_no_reference_note_and_skips_field() -> None:
    client = Mock()

    outcomes = _annotator(client).annotate(_conversation(), TicketFailed(error="ConnectError"))

    html = client.create_note.call_args.args[1]
    assert NO_REFERENCE_TEXT in html
    assert "href" not in html
    assert outcomes[1].status == "skipped"
    client.set_custom_field.assert_not_called()


def test_missing_custom_field_does_not_block_note(caplog) -> None:
    client = Mock()
    client.find_custom_field_id.side_effect = CustomFieldNotFoundError("Leantime issue")

    with caplog.at_level(logging.WARNING):
        outcomes = _annotator(client).annotate(_conversation(), _created())

    assert outcomes[0].status == "ok"
    assert outcomes[1].status == "failed"
    client.create_note.assert_called_once()
    record = next(r for r in caplog.records if r.msg == "custom field update failed")
    assert record.exc_info is not None


def test_note_failure_does_not_block_custom_field() -> None:
    client = Mock()
    client.create_note.side_effect = httpx.ConnectError("down")
    client.find_custom_field_id.return_value = 9

    outcomes = _annotator(client).annotate(_conversation(), _created())

    assert [o.status for o in outcomes] == ["failed", "ok"]
    client.set_custom_field.assert_called_once_with(101, 9, "42")


def test_conversation_without_mailbox_fails_field_step_only() -> None:
    client = Mock()

    outcomes = _annotator(client).annotate(_conversation(mailbox_id=None), _created())

    assert [o.status for o in outcomes] == ["ok", "failed"]
    client.find_custom_field_id.assert_not_called()


def _error_count(method: str, exception: str) -> float:
    labels = {"module": "freescout", "method": method, "exception": exception, "code": "none"}
    return REGISTRY.get_sample_value("helpdesk_bridge_integration_errors_total", labels) or 0.0


def test_field_lookup_failure_counted_against_lookup() -> None:
    client = Mock()
    client.find_custom_field_id.side_effect = CustomFieldNotFoundError("Leantime issue")
    lookup_before = _error_count("find_custom_field_id", "CustomFieldNotFoundError")
    update_before = _error_count("set_custom_field", "CustomFieldNotFoundError")

    _annotator(client).annotate(_conversation(), _created())

    assert _error_count("find_custom_field_id", "CustomFieldNotFoundError") == lookup_before + 1
    assert _error_count("set_custom_field", "CustomFieldNotFoundError") == update_before


def test_unexpected_update_error_is_swallowed_and_counted() -> None:
    client = Mock()
    client.find_custom_field_id.return_value = 9
    client.set_custom_field.side_effect = RuntimeError("database locked")
    before = _error_count("set_custom_field", "RuntimeError")

    outcomes = _annotator(client).annotate(_conversation(), _created())

    assert [o.status for o in outcomes] == ["ok", "failed"]
    assert "database locked" in outcomes[1].detail
    assert _error_count("set_custom_field", "RuntimeError") == before + 1
