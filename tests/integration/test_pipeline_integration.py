"""
Интеграционные тесты: конфиг из окружения, транспорт, пайплайн,
диагностика и структурный лог вместе.
"""

import base64
import json
import os
from concurrent.futures import ThreadPoolExecutor

import pytest
import requests
import responses
from pydantic import BaseModel

from api_client import ApiClient, ApiRequest
from api_client.core.credentials import CredentialCache, NetworkCredential
from api_client.core.env_config import credentials_from_env, load_from_env, load_settings
from api_client.core.exceptions import ConnectionFault, NotFoundError
from api_client.core.pipeline import CORRELATION_HEADER

BASE = "https://api.example.com"


class User(BaseModel):
    id: int
    name: str


def _basic(username, password):
    token = base64.b64encode(f"{username}:{password}".encode()).decode()
    return f"Basic {token}"


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    for key in list(os.environ):
        if key.upper().startswith("API_CLIENT_"):
            monkeypatch.delenv(key)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def env_file(clean_env, tmp_path):
    path = tmp_path / "qa.env"
    path.write_text(
        f"API_CLIENT_BASE_URL={BASE}\n"
        "API_CLIENT_USERNAME=qa-bot\n"
        "API_CLIENT_PASSWORD=s3cret\n"
        "API_CLIENT_DIAGNOSTICS_ENABLED=true\n"
        f"API_CLIENT_DIAGNOSTICS_DIR={tmp_path / 'artifacts'}\n"
        "API_CLIENT_LOG_FORMAT=json\n"
        "API_CLIENT_LOG_ENABLE_FILE=true\n"
        f"API_CLIENT_LOG_FILE_PATH={tmp_path / 'logs' / 'api.log'}\n",
        encoding="utf-8",
    )
    return str(path)


@pytest.mark.integration
class TestConfiguredClient:
    """Клиент, целиком собранный из .env файла."""

    @responses.activate
    def test_env_configured_run(self, env_file, tmp_path, sink):
        responses.add(responses.GET, f"{BASE}/users/7", json={"id": 7, "name": "x"})

        config = load_from_env(env_file=env_file)
        credentials = credentials_from_env(load_settings(env_file))

        with ApiClient(config=config, credentials=credentials, diagnostics_sink=sink) as client:
            user = client.execute(ApiRequest.get("/users/7"), User)

        assert user == User(id=7, name="x")

        sent = responses.calls[0].request
        assert sent.headers["Authorization"] == _basic("qa-bot", "s3cret")
        assert sent.headers["Accept"] == "application/json"

        artifact = tmp_path / "artifacts" / "GET_users_7_200.json"
        assert sink.artifacts == [artifact]
        assert json.loads(artifact.read_text(encoding="utf-8")) == {"id": 7, "name": "x"}

        log_text = (tmp_path / "logs" / "api.log").read_text(encoding="utf-8")
        records = [json.loads(line) for line in log_text.splitlines()]
        assert [record["message"] for record in records] == ["Request started", "Request completed"]
        assert {record["correlation_id"] for record in records} == {sent.headers[CORRELATION_HEADER]}
        assert "s3cret" not in log_text

    @responses.activate
    def test_failure_sequence(self, env_file, tmp_path, sink):
        responses.add(responses.GET, f"{BASE}/users/1", json={"id": 1, "name": "a"})
        responses.add(responses.GET, f"{BASE}/users/2", status=404, body="no such user")
        responses.add(responses.DELETE, f"{BASE}/users/3", status=500, json={"error": "boom"})
        responses.add(responses.GET, f"{BASE}/users/4", body=requests.exceptions.ConnectionError("refused"))

        requests_made = [
            ApiRequest.get("/users/1"),
            ApiRequest.get("/users/2"),
            ApiRequest.delete("/users/3"),
            ApiRequest.get("/users/4"),
        ]

        with ApiClient(config=load_from_env(env_file=env_file), diagnostics_sink=sink) as client:
            assert client.execute(requests_made[0], User).id == 1

            with pytest.raises(NotFoundError) as exc_info:
                client.execute(requests_made[1], User)
            assert exc_info.value.body == "no such user"

            with client.execute_raw(requests_made[2]) as response:
                assert response.status_code == 500
                assert response.json() == {"error": "boom"}

            with pytest.raises(ConnectionFault):
                client.execute(requests_made[3], User)

        assert all(request.released for request in requests_made)

        status_lines = [line for line in sink.lines if "->" in line]
        assert status_lines == [
            f"GET {BASE}/users/2 -> 404 Not Found: no such user",
            f'DELETE {BASE}/users/3 -> 500 Internal Server Error: {{"error": "boom"}}',
        ]
        assert any(line.startswith("HTTP EXCEPTION: ConnectionError") for line in sink.lines)

        artifacts = sorted(path.name for path in (tmp_path / "artifacts").iterdir())
        assert artifacts == ["DELETE_users_3_500.json", "GET_users_1_200.json"]


@pytest.mark.integration
class TestCredentialCache:
    """Выбор учётной записи по самому длинному префиксу."""

    @responses.activate
    def test_longest_prefix_wins(self, sink):
        responses.add(responses.GET, f"{BASE}/reports", json=[])
        responses.add(responses.GET, f"{BASE}/admin/users", json=[])
        responses.add(responses.GET, f"{BASE}/administrator", json=[])

        cache = CredentialCache({
            (BASE, "basic"): NetworkCredential("reader", "r-pw"),
            (f"{BASE}/admin", "basic"): NetworkCredential("admin", "a-pw", domain="CORP"),
        })

        with ApiClient(BASE, cache, diagnostics_sink=sink) as client:
            for path in ("/reports", "/admin/users", "/administrator"):
                assert client.execute(ApiRequest.get(path), list) == []

        sent = [call.request.headers["Authorization"] for call in responses.calls]
        assert sent == [
            _basic("reader", "r-pw"),
            _basic("CORP\\admin", "a-pw"),
            _basic("reader", "r-pw"),
        ]


@pytest.mark.integration
class TestSharedTransport:
    """Один транспорт обслуживает параллельные вызовы из потоков."""

    @responses.activate
    def test_threads(self, sink):
        for user_id in range(8):
            responses.add(responses.GET, f"{BASE}/users/{user_id}", json={"id": user_id, "name": f"u{user_id}"})

        with ApiClient(BASE, diagnostics_sink=sink) as client:
            with ThreadPoolExecutor(max_workers=4) as pool:
                users = list(pool.map(
                    lambda user_id: client.execute(ApiRequest.get(f"/users/{user_id}"), User),
                    range(8),
                ))

            assert client.transport._session_manager.get_active_sessions_count() <= 4

        assert [user.id for user in users] == list(range(8))
        correlation_ids = {call.request.headers[CORRELATION_HEADER] for call in responses.calls}
        assert len(correlation_ids) == 8
        assert sink.lines == []
