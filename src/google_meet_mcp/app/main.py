import argparse
import sys

import anyio
from cryptography.fernet import Fernet

from google_meet_mcp.app.config import APP_NAME, APP_VERSION, Settings, get_settings
from google_meet_mcp.auth.authorization_flow import AuthorizationFlow
from google_meet_mcp.auth.google_oauth import load_client_registration
from google_meet_mcp.auth.token_store import TokenStore
from google_meet_mcp.errors import ConfigError
from google_meet_mcp.infrastructure.cryptography_manager import get_fernet
from google_meet_mcp.infrastructure.platform_manager import create_logger
from google_meet_mcp.mcp.server import GoogleMeetMcpServer


def build_token_store(settings: Settings) -> TokenStore:
    fernet: Fernet | None = None
    if settings.token_encryption_key:
        try:
            fernet = get_fernet(settings.token_encryption_key.encode())
        except ValueError as e:
            raise ConfigError(f"Invalid GOOGLE_MEET_TOKEN_ENCRYPTION_KEY: {e}") from e
    return TokenStore(settings.token_path, fernet=fernet)


def run_auth(settings: Settings, token_store: TokenStore) -> int:
    """Run only the authorization flow; 0 on success, 1 on failure."""
    flow = AuthorizationFlow(
        settings.credentials_path,
        token_store,
        port_start=settings.auth_port_start,
        port_end=settings.auth_port_end,
        timeout=settings.auth_timeout,
    )
    return 0 if flow.start() else 1


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog=APP_NAME, description="Google Meet MCP server with automatic OAuth authorization"
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {APP_VERSION}")
    subparsers = parser.add_subparsers(dest="command")
    subparsers.add_parser("serve", help="Run the MCP server over stdio (default)")
    subparsers.add_parser("auth", help="Run the OAuth authorization flow and exit")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)

    try:
        settings = get_settings()
    except ConfigError as e:
        create_logger().error(f"Configuration error: {e}")
        return 1

    logger = create_logger(log_level=settings.log_level, logs_dir=settings.logs_dir)
    logger.info(f"Starting {APP_NAME} {APP_VERSION}")
    try:
        token_store = build_token_store(settings)

        if args.command == "auth":
            return run_auth(settings, token_store)

        registration = load_client_registration(settings.credentials_path)
    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        return 1

    server = GoogleMeetMcpServer(settings, registration, token_store)
    try:
        anyio.run(server.run)
    except KeyboardInterrupt:
        logger.info("Shutting down")
    return 0


if __name__ == "__main__":
    sys.exit(main())
