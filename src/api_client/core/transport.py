# src/api_client/core/transport.py
"""
Transport Provisioner.

provision() / provision_async() создают долгоживущий транспорт: базовый
адрес, стратегия аутентификации, таймаут по умолчанию, потолок
буферизации и заголовок Accept: application/json. Транспорт создаётся
один раз на клиент и разделяется всеми вызовами: пересоздание на каждый
запрос убивает переиспользование соединений из пула.
"""

import io
from typing import Any, Dict, Optional

import httpx
import requests
from requests.adapters import HTTPAdapter

from .config import ApiClientConfig
from .credentials import (
    CredentialStrategy,
    DefaultIdentity,
    build_httpx_auth,
    build_requests_auth,
)
from .exceptions import TransportClosedError
from .request import ApiRequest
from .session_manager import ThreadSafeSessionManager
from ..utils.uri import join_url, validate_base_url


class Transport:
    """
    Синхронный транспорт на базе requests.

    Thread-safe: каждый поток получает собственную requests.Session
    (с одинаковыми адаптером, заголовками и auth).
    """

    def __init__(
        self,
        base_url: str,
        credentials: CredentialStrategy,
        config: ApiClientConfig,
    ):
        self._base_url = validate_base_url(base_url)
        self._credentials = credentials
        self._config = config
        self._auth = build_requests_auth(credentials)
        self._session_manager = ThreadSafeSessionManager(session_factory=self._create_session)

    def _create_session(self) -> requests.Session:
        """Create configured session."""
        session = requests.Session()

        adapter = HTTPAdapter(
            pool_connections=self._config.pool.pool_connections,
            pool_maxsize=self._config.pool.pool_maxsize,
            pool_block=self._config.pool.pool_block,
            max_retries=0,  # Пайплайн не ретраит
        )
        session.mount('http://', adapter)
        session.mount('https://', adapter)

        session.headers.update(self._config.headers)

        # DefaultIdentity: auth не задан, requests подхватит ~/.netrc (trust_env)
        if self._auth is not None:
            session.auth = self._auth

        return session

    # ==================== Свойства ====================

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def credentials(self) -> CredentialStrategy:
        return self._credentials

    @property
    def config(self) -> ApiClientConfig:
        return self._config

    @property
    def pre_authenticate(self) -> bool:
        """Учётные данные прикладываются к первому запросу."""
        return self._auth is not None

    @property
    def session(self) -> requests.Session:
        """Thread-local сессия текущего потока."""
        return self._session_manager.get_session()

    @property
    def closed(self) -> bool:
        return self._session_manager.closed

    def build_url(self, path: str) -> str:
        return join_url(self._base_url, path)

    # ==================== Отправка ====================

    def send(self, request: ApiRequest, timeout: Optional[float] = None) -> requests.Response:
        """
        Отправить запрос, дождавшись только заголовков (stream=True).

        Тело ответа читает пайплайн; он же закрывает ответ.

        Raises:
            requests.RequestException: Сетевые ошибки (классифицирует пайплайн)
            RequestReleasedError: Запрос уже освобождён
            TransportClosedError: Транспорт закрыт
        """
        if self.closed:
            raise TransportClosedError(self._base_url)
        kwargs = request.send_kwargs()
        return self.session.request(
            method=request.method,
            url=self.build_url(request.path),
            headers=request.headers or None,
            timeout=self._config.timeout.as_tuple(timeout),
            verify=self._config.security.verify_ssl,
            allow_redirects=self._config.security.allow_redirects,
            stream=True,
            **kwargs
        )

    def close(self) -> None:
        """Закрыть сессии всех потоков."""
        self._session_manager.close_all()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


class AsyncTransport:
    """
    Асинхронный транспорт на базе одного httpx.AsyncClient.

    httpx.AsyncClient рассчитан на конкурентное использование из многих
    задач, поэтому клиент один на транспорт.
    """

    def __init__(
        self,
        base_url: str,
        credentials: CredentialStrategy,
        config: ApiClientConfig,
    ):
        self._base_url = validate_base_url(base_url)
        self._credentials = credentials
        self._config = config
        self._auth = build_httpx_auth(credentials)

        self._client = httpx.AsyncClient(
            auth=self._auth,
            headers=dict(config.headers),
            timeout=self._timeout(),
            limits=httpx.Limits(
                max_connections=config.pool.pool_maxsize,
                max_keepalive_connections=config.pool.pool_maxsize,
            ),
            verify=config.security.verify_ssl,
            follow_redirects=config.security.allow_redirects,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def credentials(self) -> CredentialStrategy:
        return self._credentials

    @property
    def config(self) -> ApiClientConfig:
        return self._config

    @property
    def pre_authenticate(self) -> bool:
        return self._auth is not None

    @property
    def client(self) -> httpx.AsyncClient:
        return self._client

    @property
    def closed(self) -> bool:
        return self._client.is_closed

    def _timeout(self, override: Optional[float] = None) -> httpx.Timeout:
        connect, read = self._config.timeout.as_tuple(override)
        return httpx.Timeout(read, connect=connect)

    def build_url(self, path: str) -> str:
        return join_url(self._base_url, path)

    async def send(self, request: ApiRequest, timeout: Optional[float] = None) -> httpx.Response:
        """
        Отправить запрос, дождавшись только заголовков (stream=True).

        Raises:
            httpx.HTTPError: Сетевые ошибки (классифицирует пайплайн)
            RequestReleasedError: Запрос уже освобождён
            TransportClosedError: Транспорт закрыт
        """
        if self.closed:
            raise TransportClosedError(self._base_url)
        kwargs = _httpx_body_kwargs(request.send_kwargs())
        if timeout is not None:
            kwargs["timeout"] = self._timeout(timeout)

        http_request = self._client.build_request(
            request.method,
            self.build_url(request.path),
            headers=request.headers or None,
            **kwargs
        )
        return await self._client.send(http_request, stream=True)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()
        return False


def _httpx_body_kwargs(kwargs: Dict[str, Any]) -> Dict[str, Any]:
    """httpx принимает сырое тело через content=, а формы через data=."""
    data = kwargs.pop("data", None)
    if data is None:
        return kwargs
    if isinstance(data, (bytes, str)):
        kwargs["content"] = data
    elif isinstance(data, io.IOBase):
        kwargs["content"] = data.read()
    else:
        kwargs["data"] = data
    return kwargs


def provision(
    base_url: str,
    credentials: Optional[CredentialStrategy] = None,
    config: Optional[ApiClientConfig] = None,
) -> Transport:
    """
    Создать синхронный транспорт.

    Args:
        base_url: Абсолютный http/https адрес
        credentials: Стратегия аутентификации (None = DefaultIdentity)
        config: Конфигурация (None = значения по умолчанию)

    Raises:
        InvalidAddressError: Адрес не является абсолютным http/https URI
        ConfigurationError: Неподдерживаемая стратегия или схема

    Example:
        >>> transport = provision("https://api.example.com")
        >>> transport.config.timeout.total
        100.0
    """
    return Transport(base_url, credentials or DefaultIdentity(), config or ApiClientConfig())


def provision_async(
    base_url: str,
    credentials: Optional[CredentialStrategy] = None,
    config: Optional[ApiClientConfig] = None,
) -> AsyncTransport:
    """Создать асинхронный транспорт (та же политика, что и у provision)."""
    return AsyncTransport(base_url, credentials or DefaultIdentity(), config or ApiClientConfig())
