# src/api_client/core/api_client.py
import warnings
from typing import Optional, Type, TypeVar, TYPE_CHECKING
from urllib.parse import urlsplit

from .config import ApiClientConfig
from .credentials import CredentialStrategy
from .decoding import FieldConverters
from .diagnostics import DiagnosticsSink
from .exceptions import ConfigurationError
from .pipeline import RequestPipeline
from .request import ApiRequest
from .response import ApiResponse
from .transport import Transport, provision

if TYPE_CHECKING:
    from .logging import ApiClientLogger

T = TypeVar("T")


def _create_logger(config: ApiClientConfig, base_url: str) -> Optional['ApiClientLogger']:
    if not config.logging:
        return None

    from .logging import ApiClientLogger
    # Имя логгера по домену сервиса
    netloc = urlsplit(base_url).netloc or "unknown"
    return ApiClientLogger(config=config.logging, name=f"api_client.{netloc}")


class ApiClient:
    """
    Синхронный клиент JSON API.

    Создаёт транспорт один раз и использует его для всех вызовов.
    Предназначен и для прямого использования, и как базовый класс
    обёрток конкретных API в тестовом наборе.

    Example:
        >>> class UsersApi(ApiClient):
        ...     def get_user(self, user_id: int) -> User:
        ...         return self.execute(ApiRequest.get(f"/users/{user_id}"), User)
        >>>
        >>> with UsersApi("https://api.example.com",
        ...               ImpersonatedCredential(NetworkCredential("qa", "pw"))) as api:
        ...     user = api.get_user(7)
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        credentials: Optional[CredentialStrategy] = None,
        *,
        config: Optional[ApiClientConfig] = None,
        diagnostics_sink: Optional[DiagnosticsSink] = None,
    ):
        """
        Args:
            base_url: Абсолютный http/https адрес (иначе config.base_url)
            credentials: Стратегия аутентификации (None = DefaultIdentity)
            config: Конфигурация
            diagnostics_sink: Приёмник диагностики (None = лог api_client.diagnostics)

        Raises:
            InvalidAddressError: Невалидный базовый адрес (до любой сетевой активности)
            ConfigurationError: Адрес не задан или неподдерживаемая схема аутентификации
        """
        config = config or ApiClientConfig()
        address = base_url if base_url is not None else config.base_url
        if address is None:
            raise ConfigurationError("base_url is required (argument or config.base_url)")

        self._config = config
        self._transport: Transport = provision(address, credentials, config)
        self._logger = _create_logger(config, self._transport.base_url)
        self._pipeline = RequestPipeline(
            self._transport,
            diagnostics_sink=diagnostics_sink,
            client_logger=self._logger,
        )

    # ==================== Вызовы ====================

    def execute(
        self,
        request: ApiRequest,
        target_type: Type[T],
        converters: Optional[FieldConverters] = None,
        timeout: Optional[float] = None,
    ) -> T:
        """
        Отправить запрос и десериализовать JSON ответа в target_type.

        Raises:
            TransportFault, NonSuccessStatusError, DecodeFailure
        """
        return self._pipeline.execute(request, target_type, converters=converters, timeout=timeout)

    def execute_raw(self, request: ApiRequest, timeout: Optional[float] = None) -> ApiResponse:
        """
        Отправить запрос и вернуть ответ. Вызывающий код закрывает ответ.

        Raises:
            TransportFault
        """
        return self._pipeline.execute_raw(request, timeout=timeout)

    # ==================== Свойства ====================

    @property
    def base_url(self) -> str:
        return self._transport.base_url

    @property
    def config(self) -> ApiClientConfig:
        return self._config

    @property
    def transport(self) -> Transport:
        return self._transport

    @property
    def credentials(self) -> CredentialStrategy:
        return self._transport.credentials

    @property
    def diagnostics_sink(self) -> DiagnosticsSink:
        return self._pipeline.diagnostics_sink

    @property
    def closed(self) -> bool:
        return self._transport.closed

    # ==================== Жизненный цикл ====================

    def close(self) -> None:
        """
        Закрыть транспорт (сессии всех потоков) и handlers логгера.

        Cleanup order:
            1. Logger handlers (flush and close file descriptors)
            2. Transport sessions
        """
        if self._logger is not None:
            self._logger.close()
        self._transport.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def __del__(self):
        """
        Предупреждение о незакрытом клиенте.

        Автоматически вызывает close() при garbage collection, но выдаёт
        ResourceWarning: клиент нужно закрывать явно или через with.
        """
        transport = self.__dict__.get("_transport")
        if transport is None or transport.closed:
            return
        warnings.warn(
            f"{type(self).__name__} garbage collected without close(). "
            "Use 'with ApiClient(...) as client:' or call client.close() explicitly.",
            ResourceWarning,
            stacklevel=2
        )
        self.close()
