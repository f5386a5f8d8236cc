"""
Pytest configuration and fixtures for api-client-core tests.
"""

from pathlib import Path
from typing import List

import pytest
import responses as responses_lib

from api_client.core.api_client import ApiClient
from api_client.core.config import ApiClientConfig
from api_client.core.diagnostics import DiagnosticsSink
from api_client.core.logging.config import LoggingConfig


class RecordingSink(DiagnosticsSink):
    """Diagnostics sink that keeps everything in memory."""

    def __init__(self):
        self.lines: List[str] = []
        self.artifacts: List[Path] = []

    def write_line(self, message: str) -> None:
        self.lines.append(message)

    def record_artifact(self, path: Path) -> None:
        self.artifacts.append(path)


@pytest.fixture
def base_url():
    """Base URL for testing."""
    return "https://api.example.com"


@pytest.fixture
def mock_responses():
    """Mock HTTP responses using responses library."""
    with responses_lib.RequestsMock() as rsps:
        yield rsps


@pytest.fixture
def sink():
    """In-memory diagnostics sink."""
    return RecordingSink()


@pytest.fixture
def client(base_url, sink):
    """ApiClient with diagnostics disabled."""
    client = ApiClient(base_url, diagnostics_sink=sink)
    yield client
    client.close()


@pytest.fixture
def debug_client(base_url, sink, tmp_path):
    """ApiClient with diagnostic artifacts written to tmp_path."""
    config = ApiClientConfig().with_diagnostics(artifact_dir=tmp_path)
    client = ApiClient(base_url, config=config, diagnostics_sink=sink)
    yield client
    client.close()


@pytest.fixture
def logging_config():
    """Console logging at DEBUG level."""
    return LoggingConfig.create(
        level="DEBUG",
        enable_console=True,
        enable_file=False
    )


@pytest.fixture
def logging_config_with_file(tmp_path):
    """
    LoggingConfig fixture with file logging enabled.

    Uses temporary directory for log files to avoid cleanup issues.
    """
    log_file = tmp_path / "test.log"
    return LoggingConfig.create(
        level="DEBUG",
        enable_console=False,
        enable_file=True,
        file_path=str(log_file)
    )
