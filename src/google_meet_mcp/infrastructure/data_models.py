"""
Shared data models.
"""

from __future__ import annotations

import time
from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from typing import Any

GOOGLE_AUTH_URI = "https://accounts.google.com/o/oauth2/auth"
GOOGLE_TOKEN_URI = "https://oauth2.googleapis.com/token"

_BUNDLE_FIELDS = ("access_token", "refresh_token", "expiry_date", "scope", "token_type")


def now_ms() -> int:
    return int(time.time() * 1000)


def datetime_to_epoch_ms(dt: datetime) -> int:
    """Convert a datetime to epoch milliseconds. Naive values are taken as UTC."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return int(dt.timestamp() * 1000)


def epoch_ms_to_datetime(ms: int) -> datetime:
    """Convert epoch milliseconds to a naive UTC datetime, as google-auth expects."""
    return datetime.fromtimestamp(ms / 1000, tz=UTC).replace(tzinfo=None)


@dataclass
class CredentialBundle:
    """The persisted OAuth token set (token.json)."""

    access_token: str | None = None
    refresh_token: str | None = None
    expiry_date: int | None = None  # epoch milliseconds
    scope: str | None = None
    token_type: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CredentialBundle:
        """
        Build a bundle from the JSON document stored on disk.

        Raises:
            ValueError: If `expiry_date` is present but not an integer timestamp.
        """
        expiry = data.get("expiry_date")
        return cls(
            access_token=data.get("access_token") or None,
            refresh_token=data.get("refresh_token") or None,
            expiry_date=int(expiry) if expiry is not None else None,
            scope=data.get("scope"),
            token_type=data.get("token_type"),
            extra={k: v for k, v in data.items() if k not in _BUNDLE_FIELDS},
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = dict(self.extra)
        data.update({
            "access_token": self.access_token,
            "refresh_token": self.refresh_token,
            "scope": self.scope,
            "token_type": self.token_type,
            "expiry_date": self.expiry_date,
        })
        return {k: v for k, v in data.items() if v is not None}

    @property
    def scopes(self) -> list[str]:
        return self.scope.split() if self.scope else []

    def has_tokens(self) -> bool:
        return bool(self.access_token and self.refresh_token)

    def is_expired(self, at_ms: int | None = None) -> bool:
        if self.expiry_date is None:
            return False
        return self.expiry_date < (at_ms if at_ms is not None else now_ms())


@dataclass(frozen=True)
class ClientRegistration:
    """OAuth client registration read from the Google credentials file."""

    client_id: str
    client_secret: str
    redirect_uris: tuple[str, ...] = ()
    client_type: str = "installed"  # "web" | "installed"
    auth_uri: str = GOOGLE_AUTH_URI
    token_uri: str = GOOGLE_TOKEN_URI

    def to_client_config(self, redirect_uri: str | None = None) -> dict[str, dict[str, Any]]:
        """Return the client config in the shape google-auth-oauthlib expects."""
        redirect_uris = [redirect_uri] if redirect_uri else list(self.redirect_uris)
        return {
            self.client_type: {
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "auth_uri": self.auth_uri,
                "token_uri": self.token_uri,
                "redirect_uris": redirect_uris,
            }
        }


@dataclass(frozen=True)
class Attendee:
    email: str
    status: str = "needsAction"
    optional: bool = False


@dataclass
class MeetingRecord:
    """A calendar event that carries Google Meet conference data."""

    id: str
    summary: str
    start_time: str
    end_time: str
    description: str = ""
    meet_link: str = ""
    phone_info: str = ""
    attendees: list[Attendee] = field(default_factory=list)
    created: str | None = None
    updated: str | None = None
    creator: dict[str, Any] | None = None
    organizer: dict[str, Any] | None = None
    status: str | None = None
    html_link: str | None = None
    conference_id: str = ""
    location: str = ""

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
