"""
Система конфигурации для API Client.

Все конфиги immutable (frozen dataclasses): транспорт создаётся один раз
на клиент и разделяется между потоками и задачами.
"""

from dataclasses import dataclass, field, replace
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple, Union, TYPE_CHECKING

if TYPE_CHECKING:
    from .logging import LoggingConfig

DEFAULT_TIMEOUT = 100.0  # секунд
MAX_BUFFER_SIZE = 50 * 1024 * 1024  # 50MB
JSON_MEDIA_TYPE = "application/json"

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# TIMEOUT CONFIG
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@dataclass(frozen=True)
class TimeoutConfig:
    """
    Конфигурация таймаутов транспорта.

    Args:
        total: Таймаут запроса по умолчанию (сек). Отдельный вызов может
               задать собственный дедлайн через параметр timeout.
        connect: Таймаут подключения (сек), по умолчанию равен total

    Examples:
        >>> TimeoutConfig()                      # 100 секунд
        >>> TimeoutConfig(total=30, connect=5)
    """
    total: float = DEFAULT_TIMEOUT
    connect: Optional[float] = None

    def __post_init__(self):
        """Валидация."""
        if self.total <= 0:
            raise ValueError("total timeout must be positive")
        if self.connect is not None and self.connect <= 0:
            raise ValueError("connect timeout must be positive")

    def as_tuple(self, override: Optional[float] = None) -> Tuple[float, float]:
        """Вернуть как (connect, read) для requests."""
        read = override if override is not None else self.total
        connect = self.connect if self.connect is not None else read
        return (min(connect, read), read)

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# CONNECTION POOL CONFIG
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@dataclass(frozen=True)
class ConnectionPoolConfig:
    """
    Конфигурация connection pool (фиксированный потолок размера).

    Args:
        pool_connections: Количество connection pools для кеширования (по хостам)
        pool_maxsize: Максимум соединений в пуле
        pool_block: Блокировать при достижении лимита

    Examples:
        >>> ConnectionPoolConfig(pool_maxsize=20)
    """
    pool_connections: int = 10
    pool_maxsize: int = 10
    pool_block: bool = False

    def __post_init__(self):
        """Валидация."""
        if self.pool_connections <= 0:
            raise ValueError("pool_connections must be positive")
        if self.pool_maxsize <= 0:
            raise ValueError("pool_maxsize must be positive")

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# SECURITY CONFIG
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@dataclass(frozen=True)
class SecurityConfig:
    """
    Конфигурация безопасности.

    Args:
        max_response_size: Потолок буферизации тела ответа (байты)
        verify_ssl: Проверять SSL сертификаты
        allow_redirects: Разрешать редиректы

    Examples:
        >>> SecurityConfig(max_response_size=10*1024*1024)  # 10MB
        >>> SecurityConfig(verify_ssl=False)  # Для тестовых стендов
    """
    max_response_size: int = MAX_BUFFER_SIZE
    verify_ssl: bool = True
    allow_redirects: bool = True

    def __post_init__(self):
        """Валидация."""
        if self.max_response_size <= 0:
            raise ValueError("max_response_size must be positive")

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# DIAGNOSTICS CONFIG
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@dataclass(frozen=True)
class DiagnosticsConfig:
    """
    Режим диагностики: сохранение тел ответов на диск.

    Args:
        enabled: Сохранять тела успешных ответов как артефакты
        artifact_dir: Каталог для артефактов (None = текущий рабочий каталог
                      тестового прогона на момент записи)

    Examples:
        >>> DiagnosticsConfig(enabled=True, artifact_dir="/tmp/run-42")
    """
    enabled: bool = False
    artifact_dir: Optional[Union[str, Path]] = None

    def resolve_dir(self) -> Path:
        """Каталог артефактов."""
        if self.artifact_dir is None:
            return Path.cwd()
        return Path(self.artifact_dir)

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# MAIN CONFIG
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

def _default_headers() -> Mapping[str, str]:
    return MappingProxyType({"Accept": JSON_MEDIA_TYPE})

@dataclass(frozen=True)
class ApiClientConfig:
    """
    Главная конфигурация ApiClient.

    Args:
        base_url: Базовый URL (может быть передан и в конструктор клиента)
        headers: Дефолтные заголовки (Accept: application/json всегда добавляется)
        timeout: Конфигурация таймаутов
        pool: Конфигурация connection pool
        security: Конфигурация безопасности
        diagnostics: Режим диагностики
        logging: Конфигурация логирования (None = без структурного лога)

    Examples:
        >>> config = ApiClientConfig(base_url="https://api.example.com")
        >>> config = ApiClientConfig.create(timeout=30, diagnostics=True)
    """
    base_url: Optional[str] = None
    headers: Mapping[str, str] = field(default_factory=_default_headers)

    timeout: TimeoutConfig = field(default_factory=TimeoutConfig)
    pool: ConnectionPoolConfig = field(default_factory=ConnectionPoolConfig)
    security: SecurityConfig = field(default_factory=SecurityConfig)
    diagnostics: DiagnosticsConfig = field(default_factory=DiagnosticsConfig)
    logging: Optional['LoggingConfig'] = None

    def __post_init__(self):
        """Freeze headers and force the JSON Accept header."""
        headers = dict(self.headers)
        if not any(key.lower() == "accept" for key in headers):
            headers["Accept"] = JSON_MEDIA_TYPE
        object.__setattr__(self, 'headers', MappingProxyType(headers))

        if self.base_url:
            object.__setattr__(self, 'base_url', self.base_url.strip())

    @classmethod
    def create(
        cls,
        base_url: Optional[str] = None,
        timeout: Union[float, TimeoutConfig] = DEFAULT_TIMEOUT,
        connect_timeout: Optional[float] = None,
        max_response_size: int = MAX_BUFFER_SIZE,
        verify_ssl: bool = True,
        headers: Optional[Dict[str, str]] = None,
        pool_maxsize: Optional[int] = None,
        diagnostics: Union[bool, DiagnosticsConfig] = False,
        artifact_dir: Optional[Union[str, Path]] = None,
        logging: Optional['LoggingConfig'] = None,
    ) -> 'ApiClientConfig':
        """
        Удобный конструктор конфигурации.

        Args:
            base_url: Базовый URL
            timeout: Таймаут (секунды или TimeoutConfig)
            connect_timeout: Таймаут подключения
            max_response_size: Потолок буферизации ответа
            verify_ssl: Проверять SSL
            headers: Дополнительные заголовки
            pool_maxsize: Максимальный размер connection pool
            diagnostics: Включить режим диагностики (bool или DiagnosticsConfig)
            artifact_dir: Каталог для артефактов диагностики
            logging: Конфигурация логирования

        Examples:
            >>> config = ApiClientConfig.create(timeout=30)
            >>> config = ApiClientConfig.create(diagnostics=True, artifact_dir="out")
        """
        if isinstance(timeout, TimeoutConfig):
            timeout_cfg = timeout
        else:
            timeout_cfg = TimeoutConfig(total=timeout, connect=connect_timeout)

        if isinstance(diagnostics, DiagnosticsConfig):
            diagnostics_cfg = diagnostics
        else:
            diagnostics_cfg = DiagnosticsConfig(enabled=diagnostics, artifact_dir=artifact_dir)

        pool_cfg = ConnectionPoolConfig(pool_maxsize=pool_maxsize) if pool_maxsize else ConnectionPoolConfig()

        return cls(
            base_url=base_url,
            headers=headers or {},
            timeout=timeout_cfg,
            pool=pool_cfg,
            security=SecurityConfig(max_response_size=max_response_size, verify_ssl=verify_ssl),
            diagnostics=diagnostics_cfg,
            logging=logging,
        )

    def with_timeout(self, timeout: Union[float, TimeoutConfig]) -> 'ApiClientConfig':
        """
        Создать новый конфиг с изменённым timeout.

        Example:
            >>> new_config = config.with_timeout(30)
        """
        if not isinstance(timeout, TimeoutConfig):
            timeout = TimeoutConfig(total=timeout, connect=self.timeout.connect)
        return replace(self, timeout=timeout)

    def with_headers(self, headers: Dict[str, str]) -> 'ApiClientConfig':
        """
        Создать новый конфиг с дополнительными заголовками.

        Example:
            >>> new_config = config.with_headers({"X-Tenant": "qa"})
        """
        merged = dict(self.headers)
        merged.update(headers)
        return replace(self, headers=merged)

    def with_diagnostics(self, enabled: bool = True, artifact_dir: Optional[Union[str, Path]] = None) -> 'ApiClientConfig':
        """
        Создать новый конфиг с включённым (или выключенным) режимом диагностики.

        Example:
            >>> debug_config = config.with_diagnostics(artifact_dir=tmp_path)
        """
        return replace(
            self,
            diagnostics=DiagnosticsConfig(
                enabled=enabled,
                artifact_dir=artifact_dir if artifact_dir is not None else self.diagnostics.artifact_dir,
            ),
        )
