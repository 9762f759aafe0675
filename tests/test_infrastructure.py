import logging

import pytest
from cryptography.fernet import Fernet

from google_meet_mcp.auth.session import AuthorizationSession, SessionStatus
from google_meet_mcp.errors import AuthTimedOut, CallbackError
from google_meet_mcp.infrastructure.cryptography_manager import (
    decrypt_sensitive_fields,
    encrypt_sensitive_fields,
    get_fernet,
)
from google_meet_mcp.infrastructure.data_models import CredentialBundle
from google_meet_mcp.infrastructure.platform_manager import create_logger


def test_create_logger_does_not_duplicate_handlers(tmp_path):
    name = "google-meet-mcp-test-logger"
    try:
        logger = create_logger(log_level="DEBUG", logger_name=name, logs_dir=tmp_path)
        again = create_logger(log_level="DEBUG", logger_name=name, logs_dir=tmp_path)

        assert logger is again
        assert len(logger.handlers) == 2
        assert logger.level == logging.DEBUG
        logger.info("hello")
        assert "hello" in (tmp_path / f"{name}.log").read_text()
    finally:
        for handler in list(logging.getLogger(name).handlers):
            handler.close()
            logging.getLogger(name).removeHandler(handler)


def test_console_handler_writes_to_stderr(capsys):
    name = "google-meet-mcp-test-console"
    logger = create_logger(logger_name=name)
    try:
        logger.warning("to stderr")
        captured = capsys.readouterr()
    finally:
        for handler in list(logger.handlers):
            logger.removeHandler(handler)

    assert captured.out == ""


def test_fernet_round_trip_of_sensitive_fields():
    fernet = get_fernet(Fernet.generate_key())
    tokens = {"access_token": "a", "refresh_token": "r", "scope": "s"}

    encrypted = encrypt_sensitive_fields(fernet, tokens)

    assert encrypted["scope"] == "s"
    assert encrypted["access_token"] != "a"
    assert decrypt_sensitive_fields(fernet, encrypted) == tokens


def test_get_fernet_requires_a_key():
    with pytest.raises(ValueError):
        get_fernet(b"")


def test_bundle_from_dict_keeps_unknown_fields():
    bundle = CredentialBundle.from_dict(
        {"access_token": "a", "refresh_token": "r", "expiry_date": "123", "id_token": "i"}
    )

    assert bundle.expiry_date == 123
    assert bundle.extra == {"id_token": "i"}
    assert bundle.to_dict()["id_token"] == "i"


def test_bundle_from_dict_rejects_bad_expiry():
    with pytest.raises(ValueError):
        CredentialBundle.from_dict({"expiry_date": "soon"})


def test_session_first_outcome_wins(mocker):
    session = AuthorizationSession(auth_url="https://example", port=3000, flow=mocker.Mock())

    assert session.fail(CallbackError("denied"))
    assert not session.succeed()

    assert session.status is SessionStatus.FAILED
    assert isinstance(session.error, CallbackError)
    assert session.wait(0)


def test_session_notify_waits_for_an_outcome(mocker):
    session = AuthorizationSession(auth_url="https://example", port=3000, flow=mocker.Mock())

    session.notify()
    assert not session.wait(0)

    session.fail(AuthTimedOut(1), notify=False)
    assert not session.wait(0)
    session.notify()
    assert session.wait(0)
