import pytest
from fastapi.testclient import TestClient

from google_meet_mcp.auth.callback_server import create_callback_app
from google_meet_mcp.auth.session import AuthorizationSession, SessionStatus
from google_meet_mcp.errors import CallbackError, TokenExchangeFailed

AUTH_URL = "https://accounts.google.com/o/oauth2/auth?client_id=abc&state=xyz"


@pytest.fixture
def session(mocker):
    return AuthorizationSession(auth_url=AUTH_URL, port=3000, flow=mocker.Mock())


@pytest.fixture
def exchange_code(mocker):
    return mocker.Mock()


@pytest.fixture
def client(session, exchange_code):
    return TestClient(create_callback_app(session, exchange_code, "/home/me/token.json"))


def test_root_renders_consent_link(client):
    response = client.get("/")

    assert response.status_code == 200
    assert "Authorize with Google" in response.text
    assert "client_id=abc&amp;state=xyz" in response.text


def test_successful_callback(client, session, exchange_code):
    response = client.get("/oauth2callback", params={"code": "4/auth-code"})

    assert response.status_code == 200
    assert "Authorization successful" in response.text
    assert "/home/me/token.json" in response.text
    exchange_code.assert_called_once_with("4/auth-code")
    assert session.status is SessionStatus.SUCCEEDED
    assert session.wait(0)


def test_error_callback_fails_the_session(client, session, exchange_code):
    response = client.get("/oauth2callback", params={"error": "access_denied"})

    assert response.status_code == 400
    assert "access_denied" in response.text
    exchange_code.assert_not_called()
    assert session.status is SessionStatus.FAILED
    assert isinstance(session.error, CallbackError)
    assert session.wait(0)


def test_missing_code_keeps_the_session_pending(client, session, exchange_code):
    response = client.get("/oauth2callback")

    assert response.status_code == 400
    assert response.text == "Missing authorization code"
    exchange_code.assert_not_called()
    assert session.status is SessionStatus.PENDING
    assert not session.wait(0)


def test_failed_exchange(client, session, exchange_code):
    exchange_code.side_effect = RuntimeError("invalid_grant")

    response = client.get("/oauth2callback", params={"code": "bad-code"})

    assert response.status_code == 500
    assert "invalid_grant" in response.text
    assert isinstance(session.error, TokenExchangeFailed)
    assert session.wait(0)


def test_second_callback_does_not_exchange_again(client, session, exchange_code):
    client.get("/oauth2callback", params={"code": "first"})

    response = client.get("/oauth2callback", params={"code": "second"})

    assert response.status_code == 200
    exchange_code.assert_called_once_with("first")


def test_callback_after_failure_reports_the_failure(client, session, exchange_code):
    client.get("/oauth2callback", params={"error": "access_denied"})

    response = client.get("/oauth2callback", params={"code": "late"})

    assert response.status_code == 400
    exchange_code.assert_not_called()
    assert session.status is SessionStatus.FAILED


def test_unknown_path(client):
    assert client.get("/favicon.ico").status_code == 404
