from pathlib import Path

import pytest

from google_meet_mcp.app.config import Config, default_token_path, get_settings
from google_meet_mcp.errors import ConfigError
from google_meet_mcp.infrastructure.platform_manager import first_parameter, get_parameters


def test_missing_credentials_path_is_a_config_error():
    with pytest.raises(ConfigError, match="GOOGLE_OAUTH_CREDENTIALS"):
        get_settings()


def test_defaults(monkeypatch):
    monkeypatch.setenv("GOOGLE_OAUTH_CREDENTIALS", "/tmp/credentials.json")

    settings = get_settings()

    assert settings.credentials_path == Path("/tmp/credentials.json")
    assert settings.token_path == default_token_path()
    assert settings.token_encryption_key is None
    assert (settings.auth_port_start, settings.auth_port_end) == (3000, 3010)
    assert settings.auth_timeout == 300.0
    assert settings.display_timezone == "UTC"
    assert settings.log_level == "INFO"
    assert settings.logs_dir is None


def test_primary_names_win_over_fallbacks(monkeypatch):
    monkeypatch.setenv("GOOGLE_OAUTH_CREDENTIALS", "/primary/credentials.json")
    monkeypatch.setenv("GOOGLE_MEET_CREDENTIALS_PATH", "/fallback/credentials.json")
    monkeypatch.setenv("GOOGLE_CALENDAR_MCP_TOKEN_PATH", "/primary/token.json")
    monkeypatch.setenv("GOOGLE_MEET_TOKEN_PATH", "/fallback/token.json")

    settings = get_settings()

    assert settings.credentials_path == Path("/primary/credentials.json")
    assert settings.token_path == Path("/primary/token.json")


def test_fallback_names_are_used(monkeypatch):
    monkeypatch.setenv("GOOGLE_MEET_CREDENTIALS_PATH", "/fallback/credentials.json")
    monkeypatch.setenv("GOOGLE_MEET_TOKEN_PATH", "/fallback/token.json")

    settings = get_settings()

    assert settings.credentials_path == Path("/fallback/credentials.json")
    assert settings.token_path == Path("/fallback/token.json")


def test_settings_are_cached_until_reset(monkeypatch):
    monkeypatch.setenv("GOOGLE_OAUTH_CREDENTIALS", "/a/credentials.json")
    first = get_settings()
    monkeypatch.setenv("GOOGLE_OAUTH_CREDENTIALS", "/b/credentials.json")

    assert get_settings() is first
    Config().reset()
    assert get_settings().credentials_path == Path("/b/credentials.json")


@pytest.mark.parametrize(
    "name, value",
    [
        ("GOOGLE_MEET_AUTH_PORT_START", "not-a-port"),
        ("GOOGLE_MEET_AUTH_PORT_END", "2999"),
        ("GOOGLE_MEET_AUTH_TIMEOUT", "0"),
        ("GOOGLE_MEET_DISPLAY_TZ", "Mars/Olympus_Mons"),
    ],
)
def test_invalid_settings_are_rejected(monkeypatch, name, value):
    monkeypatch.setenv("GOOGLE_OAUTH_CREDENTIALS", "/tmp/credentials.json")
    monkeypatch.setenv(name, value)

    with pytest.raises(ConfigError):
        get_settings()


def test_default_token_path_per_platform(monkeypatch):
    monkeypatch.setenv("HOME", "/home/tester")

    monkeypatch.setattr("sys.platform", "linux")
    assert default_token_path() == Path("/home/tester/.config/google-meet-mcp/token.json")

    monkeypatch.setattr("sys.platform", "darwin")
    assert default_token_path() == Path(
        "/home/tester/Library/Application Support/google-meet-mcp/token.json"
    )

    monkeypatch.setattr("sys.platform", "win32")
    assert default_token_path() == Path("/home/tester/AppData/Local/google-meet-mcp/token.json")


def test_get_parameters_lowercases_keys_and_drops_empty_values(monkeypatch):
    monkeypatch.setenv("GOOGLE_MEET_LOG_LEVEL", "debug")
    monkeypatch.setenv("GOOGLE_MEET_LOGS_DIR", "")

    params = get_parameters(["google_meet_log_level", "GOOGLE_MEET_LOGS_DIR"])

    assert params == {"google_meet_log_level": "debug", "google_meet_logs_dir": None}


def test_first_parameter_returns_first_set_value(monkeypatch):
    monkeypatch.setenv("GOOGLE_MEET_TOKEN_PATH", "/fallback/token.json")

    assert first_parameter(["google_calendar_mcp_token_path", "google_meet_token_path"]) == (
        "/fallback/token.json"
    )
    assert first_parameter(["google_calendar_mcp_token_path"]) is None
