import json
import logging
import os
import tempfile
from pathlib import Path

from cryptography.fernet import Fernet
from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request

from google_meet_mcp.auth.google_oauth import credentials_from_bundle, credentials_to_bundle
from google_meet_mcp.errors import RefreshFailed, TokenError, TokenNotFound, TokenParseError
from google_meet_mcp.infrastructure.cryptography_manager import (
    decrypt_sensitive_fields,
    encrypt_sensitive_fields,
)
from google_meet_mcp.infrastructure.data_models import (
    ClientRegistration,
    CredentialBundle,
    now_ms,
)

logger = logging.getLogger("google-meet-mcp.tokens")


class TokenStore:
    """
    File-backed storage for the OAuth credential bundle.

    Args:
        token_path (str | Path): Location of token.json.
        fernet (Fernet | None): When given, access and refresh tokens are
            encrypted at rest.
    """

    def __init__(self, token_path: str | Path, *, fernet: Fernet | None = None) -> None:
        self.token_path = Path(token_path)
        self._fernet = fernet

    def load(self) -> CredentialBundle:
        """
        Read and parse the persisted bundle.

        Raises:
            TokenNotFound: If the token file does not exist.
            TokenParseError: If the file is not a valid bundle.
        """
        try:
            raw = self.token_path.read_text(encoding="utf-8")
        except FileNotFoundError as e:
            raise TokenNotFound(f"No token file at {self.token_path}") from e
        except OSError as e:
            raise TokenParseError(f"Cannot read token file {self.token_path}: {e}") from e

        try:
            data = json.loads(raw)
            if not isinstance(data, dict):
                raise ValueError("token file must contain a JSON object")
            if self._fernet is not None:
                data = decrypt_sensitive_fields(self._fernet, data)
            return CredentialBundle.from_dict(data)
        except (ValueError, TypeError) as e:
            raise TokenParseError(f"Malformed token file {self.token_path}: {e}") from e

    def save(self, bundle: CredentialBundle) -> None:
        """Write the bundle, replacing the previous file atomically."""
        self.token_path.parent.mkdir(parents=True, exist_ok=True)

        data = bundle.to_dict()
        if self._fernet is not None:
            data = encrypt_sensitive_fields(self._fernet, data)

        fd, tmp_name = tempfile.mkstemp(
            dir=self.token_path.parent, prefix=f".{self.token_path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            os.replace(tmp_name, self.token_path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        logger.info(f"Tokens saved to {self.token_path}")

    def is_valid(self, bundle: CredentialBundle) -> bool:
        """Both tokens present and the access token not yet expired."""
        return bundle.has_tokens() and not bundle.is_expired(now_ms())

    def refresh(
        self, bundle: CredentialBundle, registration: ClientRegistration
    ) -> CredentialBundle:
        """
        Exchange the refresh token for a new access token and persist the result.

        Raises:
            RefreshFailed: If there is no refresh token or the token endpoint
                rejects it. The token file is left untouched.
        """
        if not bundle.refresh_token:
            raise RefreshFailed("No refresh token available")

        creds = credentials_from_bundle(bundle, registration)
        try:
            creds.refresh(Request())
        except GoogleAuthError as e:
            raise RefreshFailed(f"Failed to refresh token: {e}") from e

        refreshed = credentials_to_bundle(creds, previous=bundle)
        try:
            self.save(refreshed)
        except OSError as e:
            raise RefreshFailed(f"Failed to save refreshed token: {e}") from e
        logger.info("Access token refreshed")
        return refreshed

    def ensure_valid(self, registration: ClientRegistration) -> CredentialBundle | None:
        """
        Return a usable bundle, refreshing it if expired, or None when a fresh
        authorization is required.
        """
        try:
            bundle = self.load()
            if not bundle.has_tokens():
                logger.info("Stored tokens are incomplete")
                return None
            if bundle.is_expired(now_ms()):
                logger.info("Access token expired, refreshing")
                bundle = self.refresh(bundle, registration)
            return bundle
        except TokenError as e:
            logger.info(f"No usable tokens: {e}")
            return None
