"""
Tests for diagnostics helpers: artifact naming, sinks, fault chains.
"""

import logging
from pathlib import Path

import pytest

from api_client.core.diagnostics import (
    LoggingDiagnosticsSink,
    artifact_path,
    describe_fault_chain,
    format_response_headers,
    sanitize_path,
    write_artifact,
)
from api_client.core.exceptions import TimeoutFault
from api_client.core.response import ApiResponse


class TestSanitizePath:
    """Test sanitize_path."""

    @pytest.mark.parametrize("path,expected", [
        ("/api/users/7", "api_users_7"),
        ("/users", "users"),
        ("/", ""),
        ("/a:b*c?d", "a_b_c_d"),
        ('/x<y>z|"q"', "x_y_z__q_"),
        ("/tab\there", "tab_here"),
    ])
    def test_sanitize(self, path, expected):
        assert sanitize_path(path) == expected

    def test_custom_safe_character(self):
        assert sanitize_path("/a/b", "-") == "a-b"


class TestArtifactPath:
    """Test artifact_path."""

    def test_json_extension(self, tmp_path):
        path = artifact_path(tmp_path, "get", "https://api.example.com/users/7?page=2", 200, "application/json; charset=utf-8")
        assert path == tmp_path / "GET_users_7_200.json"

    def test_html_extension(self, tmp_path):
        path = artifact_path(tmp_path, "POST", "https://api.example.com/login", 201, "text/html")
        assert path == tmp_path / "POST_login_201.html"

    def test_root_path(self, tmp_path):
        assert artifact_path(tmp_path, "GET", "https://api.example.com/", 200).name == "GET_root_200.html"

    def test_same_call_same_path(self, tmp_path):
        first = artifact_path(tmp_path, "GET", "https://api.example.com/a", 200)
        second = artifact_path(tmp_path, "GET", "https://api.example.com/a", 200)
        assert first == second


class TestWriteArtifact:
    """Test write_artifact."""

    def test_creates_directories(self, tmp_path):
        path = tmp_path / "nested" / "dir" / "GET_x_200.json"
        assert write_artifact(path, b"{}") == path
        assert path.read_bytes() == b"{}"

    def test_last_write_wins(self, tmp_path):
        path = tmp_path / "GET_x_200.json"
        write_artifact(path, b"first")
        write_artifact(path, b"second")
        assert path.read_bytes() == b"second"


class TestLoggingDiagnosticsSink:
    """Test the default sink."""

    def test_write_line_logs(self, caplog):
        sink = LoggingDiagnosticsSink()
        with caplog.at_level(logging.INFO, logger="api_client.diagnostics"):
            sink.write_line("GET https://api.example.com/x -> 404 Not Found: not found")
        assert "404 Not Found: not found" in caplog.text

    def test_record_artifact(self, caplog):
        sink = LoggingDiagnosticsSink()
        with caplog.at_level(logging.INFO, logger="api_client.diagnostics"):
            sink.record_artifact(Path("GET_x_200.json"))
        assert sink.artifacts == [Path("GET_x_200.json")]
        assert "GET_x_200.json" in caplog.text

    def test_custom_logger(self):
        logger = logging.getLogger("suite.diagnostics")
        assert LoggingDiagnosticsSink(logger).logger is logger


class TestDescribeFaultChain:
    """Test describe_fault_chain."""

    def test_single(self):
        assert describe_fault_chain(ValueError("boom")) == ["HTTP EXCEPTION: ValueError: boom"]

    def test_explicit_cause(self):
        inner = OSError("connection reset")
        try:
            try:
                raise inner
            except OSError as exc:
                raise TimeoutFault("Request timeout") from exc
        except TimeoutFault as fault:
            lines = describe_fault_chain(fault)

        assert lines == [
            "HTTP EXCEPTION: TimeoutFault: Request timeout",
            "INNER EXCEPTION: OSError: connection reset",
        ]

    def test_implicit_context(self):
        try:
            try:
                raise KeyError("a")
            except KeyError:
                raise RuntimeError("b")
        except RuntimeError as exc:
            lines = describe_fault_chain(exc)
        assert len(lines) == 2
        assert lines[1].startswith("INNER EXCEPTION: KeyError")


class TestFormatResponseHeaders:
    """Test format_response_headers."""

    def test_format(self):
        response = ApiResponse(
            404,
            b"not found",
            {"Content-Type": "text/plain", "Content-Length": "9"},
            reason="Not Found",
        )
        assert format_response_headers(response) == (
            "RESPONSE STATUS: Not Found (404)\n"
            "Content-Type: text/plain\n"
            "Content-Length: 9"
        )
