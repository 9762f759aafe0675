"""
Exception hierarchy for the Google Meet MCP service.

ConfigError is fatal at startup. AuthFlowError and TokenError are absorbed by the
auth layer and turned into boolean/optional outcomes. ProviderError is the only
family that reaches the tool boundary.
"""


class ConfigError(Exception):
    """Missing or malformed configuration (credentials file, paths, settings)."""


# -----------------------------
# Authorization flow
# -----------------------------
class AuthFlowError(Exception):
    """The interactive authorization flow could not complete."""


class NoPortAvailable(AuthFlowError):
    def __init__(self, start_port: int, end_port: int) -> None:
        super().__init__(f"No available port in range {start_port}-{end_port}")
        self.start_port = start_port
        self.end_port = end_port


class AuthTimedOut(AuthFlowError):
    def __init__(self, timeout: float) -> None:
        super().__init__(f"Authorization not completed within {timeout:g} seconds")
        self.timeout = timeout


class CallbackError(AuthFlowError):
    """The provider redirected back with an error parameter."""


class TokenExchangeFailed(AuthFlowError):
    """The authorization code could not be exchanged or the tokens not saved."""


# -----------------------------
# Token store
# -----------------------------
class TokenError(Exception):
    """Stored tokens are unusable; a fresh authorization flow is required."""


class TokenNotFound(TokenError):
    pass


class TokenParseError(TokenError):
    pass


class RefreshFailed(TokenError):
    pass


# -----------------------------
# Calendar provider
# -----------------------------
class ProviderError(Exception):
    """A Google Calendar API call failed."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class MeetingNotFound(ProviderError):
    pass


class NotConferenced(ProviderError):
    """The event exists but carries no conference data."""
