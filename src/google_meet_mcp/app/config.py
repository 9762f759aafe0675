import os
import sys
from dataclasses import dataclass
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from google_meet_mcp.errors import ConfigError
from google_meet_mcp.infrastructure.platform_manager import first_parameter, get_parameters

# Constants
APP_NAME = "google-meet-mcp"
APP_VERSION = "1.0.0"
GOOGLE_SCOPES = [
    "https://www.googleapis.com/auth/calendar",
    "https://www.googleapis.com/auth/calendar.events",
    "https://www.googleapis.com/auth/calendar.readonly",
]
OAUTH_CALLBACK_PATH = "/oauth2callback"
AUTH_SHUTDOWN_GRACE = 2.0  # seconds

# Primary name first, fallback second
CREDENTIALS_PATH_PARAMS = ["google_oauth_credentials", "google_meet_credentials_path"]
TOKEN_PATH_PARAMS = ["google_calendar_mcp_token_path", "google_meet_token_path"]


def default_token_path() -> Path:
    """Per-OS default location of token.json."""
    home = Path(os.getenv("HOME") or os.getenv("USERPROFILE") or Path.home())
    if sys.platform == "win32":
        return home / "AppData" / "Local" / APP_NAME / "token.json"
    if sys.platform == "darwin":
        return home / "Library" / "Application Support" / APP_NAME / "token.json"
    return home / ".config" / APP_NAME / "token.json"


@dataclass
class Settings:
    """Service settings loaded from the environment.

    Attributes:
        credentials_path: Google OAuth client credentials file (web or installed)
        token_path: Where the credential bundle is persisted
        token_encryption_key: Optional Fernet key for encrypting tokens at rest
        auth_port_start: First port tried for the local OAuth callback listener
        auth_port_end: Last port tried (inclusive)
        auth_timeout: Seconds to wait for the user to finish consent
        display_timezone: IANA timezone used when rendering times
        log_level: Logging level name
        logs_dir: Optional directory for a log file
    """

    credentials_path: Path
    token_path: Path
    token_encryption_key: str | None = None
    auth_port_start: int = 3000
    auth_port_end: int = 3010
    auth_timeout: float = 300.0
    display_timezone: str = "UTC"
    log_level: str = "INFO"
    logs_dir: Path | None = None


def _int_param(params: dict[str, str | None], name: str, default: int) -> int:
    value = params.get(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError as e:
        raise ConfigError(f"Configuration value is invalid: {name.upper()}={value!r}") from e


class Config:
    """Singleton configuration manager for the Google Meet MCP."""

    _instance = None
    _settings = None

    def __new__(cls) -> "Config":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def get_settings(self) -> Settings:
        """Get settings, loading from the environment if not already cached."""
        if self._settings is None:
            self._settings = self._load_settings()
        return self._settings

    def reset(self) -> None:
        """Drop cached settings so the next access reloads them."""
        self._settings = None

    def _load_settings(self) -> Settings:
        """Load settings from environment parameters."""
        credentials_path = first_parameter(CREDENTIALS_PATH_PARAMS)
        if not credentials_path:
            raise ConfigError(
                "Missing required environment variable: set GOOGLE_OAUTH_CREDENTIALS or "
                "GOOGLE_MEET_CREDENTIALS_PATH to the path of your OAuth credentials file "
                "(e.g. GOOGLE_OAUTH_CREDENTIALS=/path/to/your/credentials.json)"
            )
        token_path = first_parameter(TOKEN_PATH_PARAMS)

        params = get_parameters([
            "google_meet_token_encryption_key",
            "google_meet_auth_port_start",
            "google_meet_auth_port_end",
            "google_meet_auth_timeout",
            "google_meet_display_tz",
            "google_meet_log_level",
            "google_meet_logs_dir",
        ])

        logs_dir = params.get("google_meet_logs_dir")
        settings = Settings(
            credentials_path=Path(credentials_path).expanduser(),
            token_path=Path(token_path).expanduser() if token_path else default_token_path(),
            token_encryption_key=params.get("google_meet_token_encryption_key"),
            auth_port_start=_int_param(params, "google_meet_auth_port_start", 3000),
            auth_port_end=_int_param(params, "google_meet_auth_port_end", 3010),
            auth_timeout=float(_int_param(params, "google_meet_auth_timeout", 300)),
            display_timezone=params.get("google_meet_display_tz") or "UTC",
            log_level=(params.get("google_meet_log_level") or "INFO").upper(),
            logs_dir=Path(logs_dir).expanduser() if logs_dir else None,
        )

        self._validate_settings(settings)
        return settings

    def _validate_settings(self, settings: Settings) -> None:
        """Validate that the settings are usable."""
        if not 0 < settings.auth_port_start <= settings.auth_port_end <= 65535:
            raise ConfigError(
                "Invalid auth port range: "
                f"{settings.auth_port_start}-{settings.auth_port_end}"
            )
        if settings.auth_timeout <= 0:
            raise ConfigError("GOOGLE_MEET_AUTH_TIMEOUT must be a positive number of seconds")
        try:
            ZoneInfo(settings.display_timezone)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ConfigError(f"Unknown timezone: {settings.display_timezone}") from e


# Create singleton instance
config = Config()


def get_settings() -> Settings:
    """Get settings from the singleton config."""
    return config.get_settings()
