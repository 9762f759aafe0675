# auth/callback_server.py
#
# Loopback web app that receives the Google OAuth redirect. It is served by
# uvicorn from AuthorizationFlow on a port picked at runtime.

from __future__ import annotations

import logging
from collections.abc import Callable
from html import escape

from fastapi import FastAPI
from fastapi.responses import HTMLResponse, PlainTextResponse, Response
from starlette.background import BackgroundTask

from google_meet_mcp.app.config import OAUTH_CALLBACK_PATH
from google_meet_mcp.auth.session import AuthorizationSession, SessionStatus
from google_meet_mcp.errors import CallbackError, TokenExchangeFailed

logger = logging.getLogger("google-meet-mcp.auth")

_BASE_STYLE = """
    body { font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Arial, sans-serif;
           display: flex; justify-content: center; align-items: center; min-height: 100vh;
           margin: 0; padding: 20px; background: %(background)s; }
    .container { text-align: center; padding: 3em; background-color: #fff; border-radius: 12px;
                 box-shadow: 0 8px 32px rgba(0,0,0,0.1); max-width: 500px; width: 100%%; }
    h1 { color: %(accent)s; }
    .button { display: inline-block; background: #4285f4; color: white; padding: 12px 24px;
              text-decoration: none; border-radius: 6px; font-weight: 500; margin: 1em 0; }
    .button:hover { background: #3367d6; }
    .detail { background: #f5f5f5; padding: 1em; border-radius: 6px; font-family: monospace;
              word-break: break-all; margin: 1em 0; }
    .muted { color: #666; font-size: 0.9em; }
"""


def _page(title: str, body: str, *, background: str, accent: str) -> str:
    style = _BASE_STYLE % {"background": background, "accent": accent}
    return (
        "<!DOCTYPE html>\n<html>\n<head>\n"
        f'<meta charset="utf-8">\n<title>{escape(title)}</title>\n<style>{style}</style>\n'
        f'</head>\n<body>\n<div class="container">\n{body}\n</div>\n</body>\n</html>\n'
    )


def consent_page(auth_url: str) -> str:
    body = (
        "<h1>Google Meet MCP Authorization</h1>\n"
        "<p><strong>Automatic authorization has started.</strong></p>\n"
        "<p>Click the button below to grant access to your Google Calendar.</p>\n"
        f'<a class="button" href="{escape(auth_url, quote=True)}">Authorize with Google</a>\n'
        '<p class="muted">You can close this window once authorization is complete.<br>'
        "The server will continue starting automatically.</p>"
    )
    return _page(
        "Google Meet MCP Authorization",
        body,
        background="linear-gradient(135deg, #667eea 0%, #764ba2 100%)",
        accent="#333",
    )


def success_page(token_path: str) -> str:
    body = (
        "<h1>Authorization successful</h1>\n"
        "<p>Your tokens have been saved to:</p>\n"
        f'<div class="detail">{escape(token_path)}</div>\n'
        '<p class="muted">You can close this window now.<br>'
        "Google Meet MCP Server will finish starting automatically.</p>"
    )
    return _page(
        "Authorization successful",
        body,
        background="linear-gradient(135deg, #4caf50 0%, #45a049 100%)",
        accent="#4caf50",
    )


def failure_page(reason: str) -> str:
    body = (
        "<h1>Authorization failed</h1>\n"
        f'<div class="detail">{escape(reason)}</div>\n'
        '<p class="muted">Close this window, check the server log, and try again.</p>'
    )
    return _page("Authorization failed", body, background="#f5f5f5", accent="#d32f2f")


def create_callback_app(
    session: AuthorizationSession,
    exchange_code: Callable[[str], None],
    token_path: str,
) -> FastAPI:
    """
    Build the callback app for one authorization session.

    Args:
        session: The session the callback resolves.
        exchange_code: Exchanges an authorization code for tokens and persists
            them; raises on failure.
        token_path: Shown on the success page.
    """
    app = FastAPI(title="Google Meet MCP OAuth Callback", docs_url=None, redoc_url=None)

    def _resolved_response() -> Response:
        notify = BackgroundTask(session.notify)
        if session.status is SessionStatus.SUCCEEDED:
            return HTMLResponse(success_page(token_path), background=notify)
        return HTMLResponse(
            failure_page(str(session.error)), status_code=400, background=notify
        )

    @app.get("/")
    def consent() -> HTMLResponse:
        return HTMLResponse(consent_page(session.auth_url))

    @app.get(OAUTH_CALLBACK_PATH)
    def oauth_callback(code: str | None = None, error: str | None = None) -> Response:
        logger.info("OAuth callback received")
        # The waiter is notified only after the page has been sent
        notify = BackgroundTask(session.notify)
        if session.resolved:
            return _resolved_response()

        if error:
            logger.error(f"OAuth error: {error}")
            session.fail(CallbackError(f"Authorization denied: {error}"), notify=False)
            return HTMLResponse(
                failure_page(f"Error: {error}"), status_code=400, background=notify
            )

        if not code:
            logger.error("Missing OAuth code")
            return PlainTextResponse("Missing authorization code", status_code=400)

        with session.exchange_lock:
            if session.resolved:
                return _resolved_response()
            try:
                exchange_code(code)
            except Exception as e:
                logger.error(f"Token exchange failed: {e}")
                session.fail(TokenExchangeFailed(str(e)), notify=False)
                return HTMLResponse(
                    failure_page(f"Failed to save credentials: {e}"),
                    status_code=500,
                    background=notify,
                )
            session.succeed(notify=False)

        logger.info("OAuth authentication completed successfully")
        return HTMLResponse(success_page(token_path), background=notify)

    return app
