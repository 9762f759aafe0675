"""
Pytest configuration and shared fixtures for the Google Meet MCP tests.
"""

import json
import logging
from typing import Any

import pytest

from google_meet_mcp.app.config import config
from google_meet_mcp.auth.token_store import TokenStore
from google_meet_mcp.infrastructure.data_models import (
    ClientRegistration,
    CredentialBundle,
    now_ms,
)
from google_meet_mcp.infrastructure.platform_manager import ROOT_LOGGER_NAME

ENV_VARS = [
    "GOOGLE_OAUTH_CREDENTIALS",
    "GOOGLE_MEET_CREDENTIALS_PATH",
    "GOOGLE_CALENDAR_MCP_TOKEN_PATH",
    "GOOGLE_MEET_TOKEN_PATH",
    "GOOGLE_MEET_TOKEN_ENCRYPTION_KEY",
    "GOOGLE_MEET_AUTH_PORT_START",
    "GOOGLE_MEET_AUTH_PORT_END",
    "GOOGLE_MEET_AUTH_TIMEOUT",
    "GOOGLE_MEET_DISPLAY_TZ",
    "GOOGLE_MEET_LOG_LEVEL",
    "GOOGLE_MEET_LOGS_DIR",
]


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Start every test without service environment variables or cached settings."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    config.reset()
    yield
    config.reset()
    # main() attaches handlers bound to this test's captured stderr
    service_logger = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(service_logger.handlers):
        service_logger.removeHandler(handler)
        handler.close()


@pytest.fixture
def client_config():
    return {
        "client_id": "test-client-id.apps.googleusercontent.com",
        "client_secret": "test-client-secret",
        "redirect_uris": ["http://localhost"],
        "auth_uri": "https://accounts.google.com/o/oauth2/auth",
        "token_uri": "https://oauth2.googleapis.com/token",
    }


@pytest.fixture
def credentials_file(tmp_path, client_config):
    """An "installed" (Desktop app) credentials file."""
    path = tmp_path / "credentials.json"
    path.write_text(json.dumps({"installed": client_config}))
    return path


@pytest.fixture
def registration(client_config):
    return ClientRegistration(
        client_id=client_config["client_id"],
        client_secret=client_config["client_secret"],
        redirect_uris=tuple(client_config["redirect_uris"]),
    )


@pytest.fixture
def token_path(tmp_path):
    return tmp_path / "tokens" / "token.json"


@pytest.fixture
def token_store(token_path):
    return TokenStore(token_path)


@pytest.fixture
def valid_bundle():
    return CredentialBundle(
        access_token="ya29.valid-access-token",
        refresh_token="1//valid-refresh-token",
        expiry_date=now_ms() + 3600 * 1000,
        scope="https://www.googleapis.com/auth/calendar",
        token_type="Bearer",
    )


@pytest.fixture
def expired_bundle():
    return CredentialBundle(
        access_token="ya29.expired-access-token",
        refresh_token="1//valid-refresh-token",
        expiry_date=now_ms() - 60 * 1000,
        scope="https://www.googleapis.com/auth/calendar",
        token_type="Bearer",
    )


@pytest.fixture
def make_event():
    """Factory for Calendar API event resources."""

    def _make_event(
        event_id: str = "evt1",
        summary: str = "Team sync",
        start: str = "2025-10-13T10:00:00Z",
        end: str = "2025-10-13T11:00:00Z",
        conference: bool = True,
        **extra: Any,
    ) -> dict[str, Any]:
        event: dict[str, Any] = {
            "id": event_id,
            "summary": summary,
            "start": {"dateTime": start},
            "end": {"dateTime": end},
            "status": "confirmed",
            "created": "2025-10-01T08:00:00Z",
            "updated": "2025-10-02T08:00:00Z",
            "attendees": [{"email": "alice@example.com", "responseStatus": "accepted"}],
        }
        if conference:
            event["conferenceData"] = {
                "conferenceId": "abc-defg-hij",
                "entryPoints": [
                    {"entryPointType": "video", "uri": "https://meet.google.com/abc-defg-hij"},
                    {"entryPointType": "phone", "uri": "tel:+1-555-0100", "label": "+1 555-0100"},
                ],
            }
        event.update(extra)
        return event

    return _make_event


@pytest.fixture
def calendar_service(mocker):
    """A fake Calendar v3 service; configure `.events().<method>().execute` per test."""
    return mocker.MagicMock()
