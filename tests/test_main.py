import pytest
from cryptography.fernet import Fernet

from google_meet_mcp.app import main as main_module
from google_meet_mcp.app.config import Settings
from google_meet_mcp.errors import ConfigError


@pytest.fixture
def configured(monkeypatch, credentials_file, token_path):
    monkeypatch.setenv("GOOGLE_OAUTH_CREDENTIALS", str(credentials_file))
    monkeypatch.setenv("GOOGLE_CALENDAR_MCP_TOKEN_PATH", str(token_path))


def test_missing_configuration_exits_with_1():
    assert main_module.main([]) == 1


def test_invalid_credentials_file_exits_with_1(monkeypatch, tmp_path):
    monkeypatch.setenv("GOOGLE_OAUTH_CREDENTIALS", str(tmp_path / "missing.json"))

    assert main_module.main([]) == 1


def test_serve_runs_the_server(mocker, configured):
    run = mocker.patch("google_meet_mcp.app.main.anyio.run")

    assert main_module.main([]) == 0

    server_run = run.call_args.args[0]
    assert server_run.__self__.settings.credentials_path.name == "credentials.json"


@pytest.mark.parametrize("succeeded, exit_code", [(True, 0), (False, 1)])
def test_auth_command(mocker, configured, succeeded, exit_code):
    flow_cls = mocker.patch("google_meet_mcp.app.main.AuthorizationFlow")
    flow_cls.return_value.start.return_value = succeeded
    run = mocker.patch("google_meet_mcp.app.main.anyio.run")

    assert main_module.main(["auth"]) == exit_code

    flow_cls.return_value.start.assert_called_once_with()
    run.assert_not_called()


def test_build_token_store_with_encryption_key(token_path):
    settings = Settings(
        credentials_path=token_path.parent / "credentials.json",
        token_path=token_path,
        token_encryption_key=Fernet.generate_key().decode(),
    )

    store = main_module.build_token_store(settings)

    assert store.token_path == token_path
    assert store._fernet is not None


def test_build_token_store_with_invalid_key(token_path):
    settings = Settings(
        credentials_path=token_path.parent / "credentials.json",
        token_path=token_path,
        token_encryption_key="not-a-fernet-key",
    )

    with pytest.raises(ConfigError):
        main_module.build_token_store(settings)
