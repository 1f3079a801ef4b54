"""Settings parsing tests."""

from __future__ import annotations

from helpdesk_bridge.config import Settings


def test_base_urls_lose_trailing_slash() -> None:
    settings = Settings(leantime_url="https://pm.example.org/", helpdesk_url="https://help.example.org/")
    assert settings.leantime_url == "https://pm.example.org"
    assert settings.helpdesk_url == "https://help.example.org"


def test_freescout_base_url_falls_back_to_helpdesk_url() -> None:
    assert Settings(helpdesk_url="https://help.example.org").freescout_base_url == "https://help.example.org"
    overridden = Settings(helpdesk_url="https://help.example.org", freescout_api_url="http://fs:8080/")
    assert overridden.freescout_base_url == "http://fs:8080"


def test_blank_webhook_and_proxy_are_unset(monkeypatch) -> None:
    monkeypatch.setenv("TEAMS_WEBHOOK", " ")
    monkeypatch.setenv("HTTP_PROXY", "")
    settings = Settings()
    assert settings.teams_webhook is None
    assert settings.http_options() == {"timeout": 10.0, "proxy": None}


def test_defaults() -> None:
    settings = Settings()
    assert settings.leantime_custom_field == "Leantime issue"
    assert settings.support_originator_name == "ITK Support"
