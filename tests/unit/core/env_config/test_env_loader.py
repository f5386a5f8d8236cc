"""
Tests for configuration loader.
"""

import os
from pathlib import Path

import pytest
from pydantic import ValidationError

from api_client.core.config import ApiClientConfig
from api_client.core.credentials import AuthScheme, DefaultIdentity, ImpersonatedCredential
from api_client.core.env_config import (
    credentials_from_env,
    load_from_env,
    load_settings,
)
from api_client.core.logging import LogFormat, LogLevel


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    for key in list(os.environ):
        if key.upper().startswith("API_CLIENT_"):
            monkeypatch.delenv(key)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def env_file(tmp_path):
    path = tmp_path / "qa.env"
    path.write_text(
        "API_CLIENT_BASE_URL=https://qa.example.com\n"
        "API_CLIENT_TIMEOUT_TOTAL=15\n"
        "API_CLIENT_TIMEOUT_CONNECT=3\n"
        "API_CLIENT_DIAGNOSTICS_ENABLED=true\n"
        f"API_CLIENT_DIAGNOSTICS_DIR={tmp_path / 'artifacts'}\n",
        encoding="utf-8",
    )
    return str(path)


class TestLoadFromEnv:
    """Test load_from_env function."""

    def test_defaults(self):
        config = load_from_env()
        assert isinstance(config, ApiClientConfig)
        assert config.base_url is None
        assert config.timeout.total == 100
        assert config.security.max_response_size == 50 * 1024 * 1024
        assert config.headers["Accept"] == "application/json"
        assert config.diagnostics.enabled is False
        assert config.logging is None

    def test_from_env_file(self, env_file, tmp_path):
        config = load_from_env(env_file=env_file)
        assert config.base_url == "https://qa.example.com"
        assert config.timeout.as_tuple() == (3, 15)
        assert config.diagnostics.enabled is True
        assert config.diagnostics.resolve_dir() == Path(tmp_path / "artifacts")

    def test_overrides_take_priority(self, env_file, monkeypatch):
        monkeypatch.setenv("API_CLIENT_TIMEOUT_TOTAL", "20")
        config = load_from_env(env_file=env_file, timeout_total=45, diagnostics_enabled=False)
        assert config.timeout.total == 45
        assert config.diagnostics.enabled is False
        assert config.base_url == "https://qa.example.com"

    def test_environment_beats_file(self, env_file, monkeypatch):
        monkeypatch.setenv("API_CLIENT_TIMEOUT_TOTAL", "20")
        assert load_from_env(env_file=env_file).timeout.total == 20

    def test_security_and_pool(self, monkeypatch):
        monkeypatch.setenv("API_CLIENT_SECURITY_VERIFY_SSL", "false")
        monkeypatch.setenv("API_CLIENT_SECURITY_MAX_RESPONSE_SIZE", "1024")
        monkeypatch.setenv("API_CLIENT_POOL_MAXSIZE", "25")

        config = load_from_env()
        assert config.security.verify_ssl is False
        assert config.security.max_response_size == 1024
        assert config.pool.pool_maxsize == 25

    def test_logging_config(self, tmp_path):
        log_file = tmp_path / "logs" / "run.log"
        config = load_from_env(
            log_level="debug",
            log_format="json",
            log_enable_file=True,
            log_file_path=str(log_file),
        )
        assert config.logging is not None
        assert config.logging.level == LogLevel.DEBUG
        assert config.logging.format == LogFormat.JSON
        assert config.logging.enable_console is False
        assert config.logging.file_path == str(log_file)

    def test_invalid_value(self, monkeypatch):
        monkeypatch.setenv("API_CLIENT_TIMEOUT_TOTAL", "soon")
        with pytest.raises(ValidationError):
            load_from_env()


class TestCredentialsFromEnv:
    """Credential strategy from API_CLIENT_USERNAME / PASSWORD."""

    def test_default_identity(self):
        assert isinstance(credentials_from_env(), DefaultIdentity)

    def test_impersonated(self, monkeypatch):
        monkeypatch.setenv("API_CLIENT_USERNAME", "qa-bot")
        monkeypatch.setenv("API_CLIENT_PASSWORD", "s3cret")
        monkeypatch.setenv("API_CLIENT_DOMAIN", "CORP")
        monkeypatch.setenv("API_CLIENT_AUTH_SCHEME", "digest")

        strategy = credentials_from_env()
        assert isinstance(strategy, ImpersonatedCredential)
        assert strategy.scheme is AuthScheme.DIGEST
        assert strategy.credential.qualified_username == "CORP\\qa-bot"
        assert strategy.credential.password == "s3cret"

    def test_from_settings(self):
        settings = load_settings(username="svc", password="pw")
        strategy = credentials_from_env(settings)
        assert strategy.credential.username == "svc"
        assert strategy.scheme is AuthScheme.BASIC
