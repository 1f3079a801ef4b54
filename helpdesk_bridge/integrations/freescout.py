"""FreeScout REST API integration."""

from __future__ import annotations

from typing import Any

import httpx

from helpdesk_bridge.config import Settings

NOTE_THREAD_TYPE = "note"


class FreescoutNotConfiguredError(RuntimeError):
    """No API base URL or key for FreeScout."""


class CustomFieldNotFoundError(LookupError):
    """The mailbox has no custom field with the requested name."""


class FreescoutClient:
    """Minimal client for the FreeScout API module."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    def _request(self, method: str, path: str, json: dict[str, Any] | None = None) -> httpx.Response:
        base_url = self.settings.freescout_base_url
        if not base_url or not self.settings.freescout_api_key:
            raise FreescoutNotConfiguredError("freescout api not configured")
        headers = {"X-FreeScout-API-Key": self.settings.freescout_api_key, "Accept": "application/json"}
        with httpx.Client(**self.settings.http_options()) as client:
            response = client.request(method, f"{base_url}/api{path}", json=json, headers=headers)
        response.raise_for_status()
        return response

    def create_note(self, conversation_id: int, text: str) -> None:
        """Append an internal note thread to a conversation."""
        body: dict[str, Any] = {"type": NOTE_THREAD_TYPE, "text": text}
        if self.settings.freescout_note_user_id is not None:
            body["user"] = self.settings.freescout_note_user_id
        self._request("POST", f"/conversations/{conversation_id}/threads", json=body)

    def list_custom_fields(self, mailbox_id: int) -> list[dict[str, Any]]:
        """Custom field definitions of a mailbox; an empty map comes back as ``[]``."""
        response = self._request("GET", f"/mailboxes/{mailbox_id}/custom_fields")
        payload = response.json()
        embedded = payload.get("_embedded") if isinstance(payload, dict) else None
        fields = embedded.get("custom_fields") if isinstance(embedded, dict) else None
        if not isinstance(fields, list):
            return []
        return [field for field in fields if isinstance(field, dict)]

    def find_custom_field_id(self, mailbox_id: int, name: str) -> int:
        """Resolve a custom field id by its display name."""
        for field in self.list_custom_fields(mailbox_id):
            if field.get("name") != name:
                continue
            try:
                return int(field["id"])
            except (KeyError, TypeError, ValueError) as exc:
                raise CustomFieldNotFoundError(f"custom field {name!r} has no usable id") from exc
        raise CustomFieldNotFoundError(f"custom field {name!r} not found in mailbox {mailbox_id}")

    def set_custom_field(self, conversation_id: int, field_id: int, value: str) -> None:
        self._request(
            "PUT",
            f"/conversations/{conversation_id}/custom_fields",
            json={"customFields": [{"id": field_id, "value": value}]},
        )
