"""
Иерархия исключений API Client.

Классификация:
- InvalidAddressError / ConfigurationError - ошибки при создании клиента
- RequestReleasedError / TransportClosedError - вызов с освобождённым запросом
  или на закрытом клиенте
- TransportFault - сеть, таймауты, битый ответ (на этапе отправки/чтения)
- NonSuccessStatusError - сервер ответил не 2xx
- DecodeFailure - тело ответа не разбирается в нужный тип

Пайплайн никогда не ретраит. Атрибут retryable - только подсказка
для вызывающего кода.
"""

from typing import Any, Optional

import httpx
import requests

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# BASE
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class ApiClientException(Exception):
    """Базовое исключение API Client."""

    retryable: bool = False

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# КОНСТРУИРОВАНИЕ
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class InvalidAddressError(ApiClientException, ValueError):
    """
    Базовый адрес не является абсолютным http/https URI.

    Args:
        address: Переданная строка адреса
    """

    def __init__(self, address: Any):
        self.address = address
        super().__init__(f"Invalid base URI string: {address!r}")

class ConfigurationError(ApiClientException):
    """Ошибка конфигурации (например, неподдерживаемая схема аутентификации)."""
    pass

class RequestReleasedError(ApiClientException):
    """Запрос уже был освобождён пайплайном и не может быть отправлен повторно."""

    def __init__(self, method: str, path: str):
        self.method = method
        self.path = path
        super().__init__(f"Request {method} {path} has already been released")

class TransportClosedError(ApiClientException):
    """Транспорт (и клиент поверх него) уже закрыт."""

    def __init__(self, base_url: Optional[str] = None):
        self.base_url = base_url
        message = "Transport is closed"
        if base_url:
            message += f" (base_url: {base_url})"
        super().__init__(message)

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# ТРАНСПОРТ
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class TransportFault(ApiClientException):
    """
    Ошибка транспортного уровня.

    Исходное исключение библиотеки доступно через __cause__.
    """

    def __init__(self, message: str, url: Optional[str] = None):
        self.url = url
        full_message = message
        if url:
            full_message += f" (url: {url})"
        super().__init__(full_message)

class TimeoutFault(TransportFault):
    """
    Таймаут запроса (дефолтный таймаут транспорта или дедлайн вызова).

    Args:
        message: Сообщение об ошибке
        url: URL запроса
        timeout: Значение таймаута (сек)
    """
    retryable = True

    def __init__(self, message: str, url: Optional[str] = None, timeout: Optional[float] = None):
        self.timeout = timeout
        if timeout is not None:
            message += f" (timeout: {timeout}s)"
        super().__init__(message, url)

class ConnectionFault(TransportFault):
    """
    Ошибка подключения.

    Примеры:
    - Connection refused
    - DNS resolution failed
    - Proxy error
    """
    retryable = True

class ProtocolFault(TransportFault):
    """
    Некорректный ответ на уровне HTTP.

    Примеры:
    - Оборванный chunked encoding
    - Ошибка распаковки Content-Encoding
    - Невалидные заголовки
    """
    pass

class ResponseTooLargeError(TransportFault):
    """
    Тело ответа превышает потолок буферизации транспорта.

    Args:
        size: Размер ответа (байты, может быть частичным)
        max_size: Максимально допустимый размер
        url: URL
    """

    def __init__(self, size: int, max_size: int, url: Optional[str] = None):
        self.size = size
        self.max_size = max_size
        super().__init__(f"Response too large: {size} bytes (max: {max_size})", url)

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# СТАТУС ОТВЕТА
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class NonSuccessStatusError(ApiClientException):
    """
    Сервер ответил статусом вне диапазона 2xx.

    Тело ответа сохраняется целиком, без обрезки.

    Args:
        status_code: HTTP статус
        body: Текст тела ответа
        reason: Reason phrase
        url: URL
    """

    def __init__(self, status_code: int, body: str = "", reason: str = "", url: Optional[str] = None):
        self.status_code = status_code
        self.body = body
        self.reason = reason
        self.url = url

        msg = f"HTTP {status_code}"
        if reason:
            msg += f" {reason}"
        if url:
            msg += f" for {url}"
        super().__init__(msg)

    @property
    def retryable(self) -> bool:
        return self.status_code == 429 or self.status_code >= 500

class BadRequestError(NonSuccessStatusError):
    """400 Bad Request."""

class UnauthorizedError(NonSuccessStatusError):
    """401 Unauthorized."""

class ForbiddenError(NonSuccessStatusError):
    """403 Forbidden."""

class NotFoundError(NonSuccessStatusError):
    """404 Not Found."""

class ServerError(NonSuccessStatusError):
    """5xx ошибка сервера."""

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# ДЕСЕРИАЛИЗАЦИЯ
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class DecodeFailure(ApiClientException):
    """
    Тело ответа не удалось разобрать в запрошенный тип.

    Исходная ошибка парсера (json / pydantic) доступна через __cause__.

    Args:
        target: Целевой тип
        body: Текст, который не удалось разобрать
        detail: Описание ошибки парсера
    """

    def __init__(self, target: Any, body: str, detail: str = ""):
        self.target = target
        self.body = body
        self.detail = detail

        name = getattr(target, "__name__", repr(target))
        msg = f"Failed to decode response body into {name}"
        if detail:
            msg += f": {detail}"
        super().__init__(msg)

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# УТИЛИТЫ
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

_STATUS_ERRORS = {
    400: BadRequestError,
    401: UnauthorizedError,
    403: ForbiddenError,
    404: NotFoundError,
}

def classify_status(
    status_code: int,
    body: str = "",
    reason: str = "",
    url: Optional[str] = None
) -> NonSuccessStatusError:
    """
    Подобрать исключение по статус коду.

    Examples:
        >>> exc = classify_status(404, "not found")
        >>> assert isinstance(exc, NotFoundError)
        >>> assert exc.body == "not found"
    """
    if status_code in _STATUS_ERRORS:
        error_class = _STATUS_ERRORS[status_code]
    elif 500 <= status_code < 600:
        error_class = ServerError
    else:
        error_class = NonSuccessStatusError
    return error_class(status_code, body=body, reason=reason, url=url)

def classify_requests_exception(
    exc: Exception,
    url: str,
    timeout: Optional[float] = None
) -> TransportFault:
    """
    Конвертировать requests.exceptions в TransportFault.

    Args:
        exc: Исключение из requests
        url: URL запроса
        timeout: Действовавший таймаут (для сообщения)

    Returns:
        TransportFault нужного подкласса (без установки __cause__,
        вызывающий код делает raise ... from exc)
    """
    if isinstance(exc, requests.exceptions.Timeout):
        return TimeoutFault("Request timeout", url, timeout)

    elif isinstance(exc, requests.exceptions.ConnectionError):
        # ProxyError и SSLError - подклассы ConnectionError
        return ConnectionFault(f"Connection error: {exc}", url)

    elif isinstance(exc, (
        requests.exceptions.ChunkedEncodingError,
        requests.exceptions.ContentDecodingError,
        requests.exceptions.InvalidHeader,
        requests.exceptions.TooManyRedirects,
    )):
        return ProtocolFault(f"Malformed response: {exc}", url)

    else:
        return TransportFault(f"Request failed: {exc}", url)

def classify_httpx_exception(
    exc: Exception,
    url: str,
    timeout: Optional[float] = None
) -> TransportFault:
    """Конвертировать httpx исключения в TransportFault."""
    if isinstance(exc, httpx.TimeoutException):
        return TimeoutFault("Request timeout", url, timeout)

    elif isinstance(exc, (httpx.NetworkError, httpx.ProxyError)):
        return ConnectionFault(f"Connection error: {exc}", url)

    elif isinstance(exc, (
        httpx.RemoteProtocolError,
        httpx.LocalProtocolError,
        httpx.DecodingError,
        httpx.TooManyRedirects,
    )):
        return ProtocolFault(f"Malformed response: {exc}", url)

    else:
        return TransportFault(f"Request failed: {exc}", url)
