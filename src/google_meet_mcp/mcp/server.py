"""
MCP tool server for Google Meet.

Serves the tool table over stdio and makes sure every tool call runs with valid
Google credentials, running the automatic authorization flow when needed.
"""

from __future__ import annotations

import functools
import logging
from typing import Any

import anyio
import anyio.to_thread
from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.shared.exceptions import McpError
from mcp.types import (
    INTERNAL_ERROR,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    ErrorData,
    TextContent,
    Tool,
)

from google_meet_mcp.app.config import APP_NAME, APP_VERSION, Settings
from google_meet_mcp.auth.authorization_flow import AuthorizationFlow
from google_meet_mcp.auth.google_oauth import calendar_service, credentials_from_bundle
from google_meet_mcp.auth.token_store import TokenStore
from google_meet_mcp.errors import ProviderError
from google_meet_mcp.infrastructure.data_models import ClientRegistration
from google_meet_mcp.mcp import router
from google_meet_mcp.mcp.schemas import LIST
from google_meet_mcp.tools.calendar import CalendarGateway

logger = logging.getLogger("google-meet-mcp.server")

AUTH_FAILED_MESSAGE = (
    "Authentication failed. Check your credentials settings and restart the service."
)
CREDENTIALS_HINT = (
    "\n\n💡 Suggestions:\n"
    "1. Make sure GOOGLE_OAUTH_CREDENTIALS is set correctly\n"
    "2. Check that the credentials file exists\n"
    "3. Restart the service to trigger automatic authorization"
)
TOKEN_HINT = (
    "\n\n💡 Suggestions:\n"
    "1. Restart the service to trigger automatic authorization\n"
    "2. Check your network connection\n"
    "3. Make sure the Google Cloud project is set up correctly"
)


def provider_error_message(e: ProviderError) -> str:
    message = str(e)
    if "credentials" in message:
        message += CREDENTIALS_HINT
    elif "token" in message:
        message += TOKEN_HINT
    return f"Error running tool: {message}"


class GoogleMeetMcpServer:
    """
    Google Meet MCP server.

    Args:
        settings: Loaded service settings.
        registration: The OAuth client registration read from the credentials file.
        token_store: Persistent storage for the credential bundle.
    """

    def __init__(
        self,
        settings: Settings,
        registration: ClientRegistration,
        token_store: TokenStore,
    ) -> None:
        self.settings = settings
        self.registration = registration
        self.token_store = token_store
        self.gateway: CalendarGateway | None = None
        self.auth_flow: AuthorizationFlow | None = None
        self._auth_lock: anyio.Lock | None = None

        self.server = Server(APP_NAME, version=APP_VERSION)
        self._setup_handlers()

    @property
    def is_authenticated(self) -> bool:
        return self.gateway is not None

    def _setup_handlers(self) -> None:
        @self.server.list_tools()
        async def list_tools() -> list[Tool]:
            return [
                Tool(name=t["name"], description=t["description"], inputSchema=t["input_schema"])
                for t in router.list_tools()
            ]

        @self.server.call_tool()
        async def call_tool(name: str, arguments: dict[str, Any] | None) -> list[TextContent]:
            text = await self.handle_call_tool(name, arguments or {})
            return [TextContent(type="text", text=text)]

    def create_auth_flow(self) -> AuthorizationFlow:
        return AuthorizationFlow(
            self.settings.credentials_path,
            self.token_store,
            port_start=self.settings.auth_port_start,
            port_end=self.settings.auth_port_end,
            timeout=self.settings.auth_timeout,
        )

    async def initialize_authentication(self) -> bool:
        """
        Load valid tokens, or run the authorization flow to obtain them.

        Only one attempt runs at a time; callers arriving during a flow wait for
        its outcome.
        """
        if self._auth_lock is None:
            self._auth_lock = anyio.Lock()

        async with self._auth_lock:
            if self.gateway is not None:
                return True

            bundle = await anyio.to_thread.run_sync(
                self.token_store.ensure_valid, self.registration
            )
            if bundle is not None:
                logger.info("Valid tokens found, no authorization needed")
            else:
                logger.info("No valid tokens found, starting automatic authorization")
                flow = self.create_auth_flow()
                self.auth_flow = flow
                try:
                    succeeded = await anyio.to_thread.run_sync(
                        functools.partial(flow.start, check_tokens=False)
                    )
                finally:
                    self.auth_flow = None
                if not succeeded:
                    logger.error("Automatic authorization failed")
                    return False

                bundle = await anyio.to_thread.run_sync(
                    self.token_store.ensure_valid, self.registration
                )
                if bundle is None:
                    logger.error("Tokens could not be loaded after authorization")
                    return False
                logger.info("Automatic authorization succeeded")

            creds = credentials_from_bundle(bundle, self.registration)
            self.gateway = CalendarGateway(calendar_service(creds))
            return True

    async def ensure_authenticated(self) -> CalendarGateway:
        """
        Raises:
            McpError: INVALID_REQUEST if no valid credentials could be obtained.
        """
        if self.gateway is None and not await self.initialize_authentication():
            raise McpError(ErrorData(code=INVALID_REQUEST, message=AUTH_FAILED_MESSAGE))
        assert self.gateway is not None
        return self.gateway

    async def handle_call_tool(self, name: str, arguments: dict[str, Any]) -> str:
        logger.info(f"Tool call: {name}")
        if name not in LIST:
            raise McpError(ErrorData(code=METHOD_NOT_FOUND, message=f"Unknown tool: {name}"))

        gateway = await self.ensure_authenticated()
        try:
            return await anyio.to_thread.run_sync(
                router.call_tool, gateway, name, arguments, self.settings.display_timezone
            )
        except ProviderError as e:
            logger.error(f"{name} failed: {e}")
            raise McpError(
                ErrorData(code=INTERNAL_ERROR, message=provider_error_message(e))
            ) from e

    def cleanup(self) -> None:
        """Stop a running authorization flow, if any."""
        if self.auth_flow is not None:
            self.auth_flow.stop()

    async def run(self) -> None:
        logger.info("Google Meet MCP Server starting")
        if not await self.initialize_authentication():
            logger.warning("Authorization not completed; retrying on the first tool call")

        try:
            async with stdio_server() as (read_stream, write_stream):
                logger.info("Google Meet MCP Server running on stdio")
                await self.server.run(
                    read_stream, write_stream, self.server.create_initialization_options()
                )
        finally:
            self.cleanup()
