import json
import os
from pathlib import Path
from typing import Any

from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import Flow
from googleapiclient.discovery import build

from google_meet_mcp.app.config import GOOGLE_SCOPES
from google_meet_mcp.errors import ConfigError
from google_meet_mcp.infrastructure.data_models import (
    GOOGLE_AUTH_URI,
    GOOGLE_TOKEN_URI,
    ClientRegistration,
    CredentialBundle,
    datetime_to_epoch_ms,
    epoch_ms_to_datetime,
)

# Google may grant the requested scopes in a different order or as a superset
os.environ.setdefault("OAUTHLIB_RELAX_TOKEN_SCOPE", "1")


def load_client_registration(credentials_path: str | Path) -> ClientRegistration:
    """
    Load the OAuth client registration from a Google credentials file.

    Both the "web" and the "installed" (Desktop app) shapes are accepted.

    Raises:
        ConfigError: If the file is missing, is not JSON, or has neither shape.
    """
    path = Path(credentials_path)
    try:
        credentials = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise ConfigError(
            f"Credentials file not found: {path}\n"
            "Set GOOGLE_OAUTH_CREDENTIALS to the path of the OAuth client file "
            "downloaded from Google Cloud Console."
        ) from e
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"Failed to load credentials file {path}: {e}") from e

    if not isinstance(credentials, dict):
        raise ConfigError(f"Invalid credentials file format: {path}")

    for client_type in ("web", "installed"):
        client_config = credentials.get(client_type)
        if isinstance(client_config, dict):
            break
    else:
        raise ConfigError(
            'Invalid credentials file format. Expected a "web" or "installed" OAuth '
            "client configuration; make sure you downloaded Desktop App credentials."
        )

    client_id = client_config.get("client_id")
    client_secret = client_config.get("client_secret")
    if not client_id or not client_secret:
        raise ConfigError(
            f'Credentials file is missing client_id/client_secret under "{client_type}"'
        )

    return ClientRegistration(
        client_id=str(client_id),
        client_secret=str(client_secret),
        redirect_uris=tuple(client_config.get("redirect_uris") or ()),
        client_type=client_type,
        auth_uri=client_config.get("auth_uri") or GOOGLE_AUTH_URI,
        token_uri=client_config.get("token_uri") or GOOGLE_TOKEN_URI,
    )


def oauth_flow(registration: ClientRegistration, redirect_uri: str) -> Flow:
    flow = Flow.from_client_config(
        registration.to_client_config(redirect_uri), scopes=GOOGLE_SCOPES
    )
    flow.redirect_uri = redirect_uri
    return flow


def start_auth_url(flow: Flow) -> str:
    url, _ = flow.authorization_url(access_type="offline", prompt="consent")
    # Type assertion: authorization_url returns a string URL
    assert isinstance(url, str)
    return url


def credentials_to_bundle(
    creds: Credentials, previous: CredentialBundle | None = None
) -> CredentialBundle:
    """Project google-auth credentials onto the persisted bundle shape."""
    previous = previous or CredentialBundle()
    scopes = creds.scopes or previous.scopes
    return CredentialBundle(
        access_token=creds.token,
        # Google only issues a refresh token on consent; keep the one we have
        refresh_token=creds.refresh_token or previous.refresh_token,
        expiry_date=datetime_to_epoch_ms(creds.expiry) if creds.expiry else None,
        scope=" ".join(scopes) if scopes else previous.scope,
        token_type="Bearer",
        extra=dict(previous.extra),
    )


def finish_auth(flow: Flow, code: str) -> CredentialBundle:
    """Exchange an authorization code for tokens on the flow that issued the URL."""
    token = flow.fetch_token(code=code)
    bundle = credentials_to_bundle(flow.credentials)
    if isinstance(token, dict) and token.get("id_token"):
        bundle.extra["id_token"] = token["id_token"]
    return bundle


def credentials_from_bundle(
    bundle: CredentialBundle, registration: ClientRegistration
) -> Credentials:
    return Credentials(
        bundle.access_token,
        refresh_token=bundle.refresh_token,
        token_uri=registration.token_uri,
        client_id=registration.client_id,
        client_secret=registration.client_secret,
        scopes=bundle.scopes or GOOGLE_SCOPES,
        expiry=epoch_ms_to_datetime(bundle.expiry_date) if bundle.expiry_date else None,
    )


def calendar_service(creds: Credentials) -> Any:
    return build("calendar", "v3", credentials=creds, cache_discovery=False)
