import logging

from cryptography.fernet import Fernet, InvalidToken

logger = logging.getLogger("google-meet-mcp.crypto")

# Fields of the credential bundle that are encrypted at rest
SENSITIVE_FIELDS = ("access_token", "refresh_token")


def get_fernet(encryption_key: bytes) -> Fernet:
    """
    Create a Fernet cipher using the configured encryption key.

    Returns:
        Fernet: Configured Fernet instance.

    Raises:
        ValueError: If the encryption key is not configured.
    """
    if not encryption_key:
        raise ValueError("Token encryption key is not configured")
    return Fernet(encryption_key)


def encrypt_sensitive_fields(fernet: Fernet, tokens: dict) -> dict:
    """
    Encrypt sensitive token fields before writing them to disk.

    Sensitive fields: access_token, refresh_token
    """
    encrypted_tokens = tokens.copy()
    for field in SENSITIVE_FIELDS:
        if tokens.get(field):
            encrypted_tokens[field] = fernet.encrypt(str(tokens[field]).encode()).decode()
    return encrypted_tokens


def decrypt_sensitive_fields(fernet: Fernet, tokens: dict) -> dict:
    """
    Decrypt sensitive token fields after reading them from disk.

    Values that do not decrypt are kept as stored: they may have been written
    before an encryption key was configured.
    """
    decrypted_tokens = tokens.copy()
    for field in SENSITIVE_FIELDS:
        if tokens.get(field):
            try:
                decrypted_tokens[field] = fernet.decrypt(str(tokens[field]).encode()).decode()
            except InvalidToken:
                logger.warning(f"Could not decrypt {field}; using stored value")
    return decrypted_tokens
