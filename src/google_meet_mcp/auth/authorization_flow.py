"""
Automatic OAuth authorization for the Google Meet MCP.

When stored tokens are missing or cannot be refreshed, AuthorizationFlow binds a
loopback listener, sends the user to the Google consent page, waits for the
redirect carrying the authorization code, stores the resulting tokens and shuts
the listener down again.
"""

from __future__ import annotations

import errno
import logging
import math
import socket
import sys
import threading
import webbrowser
from collections.abc import Callable
from pathlib import Path

import uvicorn

from google_meet_mcp.app.config import AUTH_SHUTDOWN_GRACE, OAUTH_CALLBACK_PATH
from google_meet_mcp.auth.callback_server import create_callback_app
from google_meet_mcp.auth.google_oauth import (
    finish_auth,
    load_client_registration,
    oauth_flow,
    start_auth_url,
)
from google_meet_mcp.auth.session import AuthorizationSession, SessionStatus
from google_meet_mcp.auth.token_store import TokenStore
from google_meet_mcp.errors import AuthTimedOut, ConfigError, NoPortAvailable

logger = logging.getLogger("google-meet-mcp.auth")

# The redirect names the bound address; "localhost" may resolve to ::1 first
LISTEN_HOST = "127.0.0.1"


def bind_socket(port: int, host: str = LISTEN_HOST) -> socket.socket:
    """Bind and listen on `host:port`, raising OSError if the port is taken."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    try:
        if sys.platform == "win32":
            # SO_REUSEADDR on Windows would let us share a port already in use
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_EXCLUSIVEADDRUSE, 1)
        else:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.bind((host, port))
        sock.listen(16)
    except OSError:
        sock.close()
        raise
    return sock


def find_available_port(
    start_port: int,
    end_port: int,
    bind: Callable[[int], socket.socket] = bind_socket,
) -> tuple[int, socket.socket]:
    """
    Bind the first free port in the inclusive range `start_port..end_port`.

    Only "address in use" moves on to the next port; any other socket error
    is raised as is.

    Returns:
        tuple[int, socket.socket]: The port and its bound, listening socket.

    Raises:
        NoPortAvailable: If every port in the range is in use.
    """
    for port in range(start_port, end_port + 1):
        try:
            return port, bind(port)
        except OSError as e:
            if e.errno != errno.EADDRINUSE:
                raise
            logger.debug(f"Port {port} is in use")
    raise NoPortAvailable(start_port, end_port)


class AuthorizationFlow:
    """
    One-shot local-loopback OAuth authorization-code flow.

    Args:
        credentials_path: Google OAuth client credentials file.
        token_store: Where the obtained tokens are persisted.
        port_start / port_end: Inclusive port range for the callback listener.
        timeout: Seconds to wait for the user to finish consent.
        shutdown_grace: Seconds to wait for the listener to close before
            abandoning it.
        browser_opener: Callable used to open the consent URL.
    """

    def __init__(
        self,
        credentials_path: str | Path,
        token_store: TokenStore,
        *,
        port_start: int = 3000,
        port_end: int = 3010,
        timeout: float = 300.0,
        shutdown_grace: float = AUTH_SHUTDOWN_GRACE,
        browser_opener: Callable[[str], bool] = webbrowser.open,
        bind: Callable[[int], socket.socket] = bind_socket,
    ) -> None:
        self.credentials_path = Path(credentials_path)
        self.token_store = token_store
        self.port_start = port_start
        self.port_end = port_end
        self.timeout = timeout
        self.shutdown_grace = shutdown_grace
        self._browser_opener = browser_opener
        self._bind = bind
        self.session: AuthorizationSession | None = None
        self._server_thread: threading.Thread | None = None

    def start(self, open_browser: bool = True, check_tokens: bool = True) -> bool:
        """
        Run the flow to completion.

        With `check_tokens` false the stored tokens are not consulted first, for
        callers that have already found them unusable.

        Returns:
            bool: True if valid tokens exist afterwards. Every failure (bad
            credentials file, no free port, callback error, timeout) is logged
            and reported as False.
        """
        try:
            registration = load_client_registration(self.credentials_path)
        except ConfigError as e:
            logger.error(f"Failed to start authorization server: {e}")
            return False

        if check_tokens and self.token_store.ensure_valid(registration) is not None:
            logger.info("Valid tokens found, no authorization needed")
            return True

        try:
            port, sock = find_available_port(self.port_start, self.port_end, self._bind)
        except (NoPortAvailable, OSError) as e:
            logger.error(f"Failed to start authorization server: {e}")
            return False

        try:
            redirect_uri = f"http://{LISTEN_HOST}:{port}{OAUTH_CALLBACK_PATH}"
            flow = oauth_flow(registration, redirect_uri)
            session = AuthorizationSession(auth_url=start_auth_url(flow), port=port, flow=flow)
            self.session = session
            self._serve(session, sock)
        except Exception as e:
            sock.close()
            logger.error(f"Failed to start authorization server: {e}")
            return False

        try:
            logger.info(f"Authorization server listening on http://{LISTEN_HOST}:{port}")
            logger.info(f"Authorization URL: {session.auth_url}")
            if open_browser:
                self._open_browser(session.auth_url)

            if not session.wait(self.timeout):
                session.fail(AuthTimedOut(self.timeout))
        finally:
            self.stop()

        if session.status is SessionStatus.SUCCEEDED:
            logger.info("Authorization completed")
            return True
        logger.error(f"Authorization failed: {session.error}")
        return False

    def stop(self) -> None:
        """
        Shut the callback listener down.

        Open client connections are closed without waiting for the browser, and
        the server thread is abandoned if it does not finish within the grace
        period.
        """
        session = self.session
        thread = self._server_thread
        if session is None or session.server is None:
            return

        server = session.server
        open_connections = len(session.open_connections)
        if open_connections:
            logger.debug(f"Closing {open_connections} open connection(s)")
        server.force_exit = True
        server.should_exit = True

        if thread is not None:
            thread.join(self.shutdown_grace)
            if thread.is_alive():
                logger.warning("Authorization server did not close in time; abandoning it")
        session.server = None
        self._server_thread = None

    def _exchange_code(self, session: AuthorizationSession, code: str) -> None:
        bundle = finish_auth(session.flow, code)
        self.token_store.save(bundle)

    def _serve(self, session: AuthorizationSession, sock: socket.socket) -> None:
        app = create_callback_app(
            session,
            lambda code: self._exchange_code(session, code),
            str(self.token_store.token_path),
        )
        # stdout belongs to the MCP transport: no uvicorn log config, no access log
        config = uvicorn.Config(
            app,
            log_config=None,
            access_log=False,
            lifespan="off",
            timeout_graceful_shutdown=math.ceil(self.shutdown_grace),
        )
        server = uvicorn.Server(config)
        session.server = server

        def run() -> None:
            try:
                server.run(sockets=[sock])
            finally:
                sock.close()

        thread = threading.Thread(target=run, name="oauth-callback-server", daemon=True)
        self._server_thread = thread
        thread.start()

    def _open_browser(self, url: str) -> None:
        try:
            if self._browser_opener(url):
                logger.info("Browser opened, please complete the authorization")
                return
            logger.warning("Could not open a browser; visit the authorization URL above")
        except Exception as e:
            logger.warning(f"Could not open a browser ({e}); visit the authorization URL above")


