# src/api_client/core/response.py
"""
Материализованный ответ (Response Handle).

Тело читается из сети один раз (с ограничением по размеру), после этого
status, headers, content и text можно читать сколько угодно раз без
повторного сетевого чтения.
"""

import json
from datetime import timedelta
from typing import Any, AsyncIterator, Callable, Iterable, Mapping, Optional

import httpx
import requests
from requests.structures import CaseInsensitiveDict

from .exceptions import ResponseTooLargeError

CHUNK_SIZE = 64 * 1024


def charset_from_content_type(content_type: str) -> Optional[str]:
    """
    Параметр charset из Content-Type или None (тогда тело читается как UTF-8).
    """
    for param in content_type.split(";")[1:]:
        key, _, value = param.partition("=")
        if key.strip().lower() == "charset":
            return value.strip().strip("\"'") or None
    return None


def _check_declared_size(headers: Mapping[str, str], max_size: int, url: str) -> None:
    declared = headers.get("Content-Length")
    if declared and declared.isdigit() and int(declared) > max_size:
        raise ResponseTooLargeError(int(declared), max_size, url)


def read_limited(chunks: Iterable[bytes], headers: Mapping[str, str], max_size: int, url: str) -> bytes:
    """
    Прочитать тело целиком, но не больше max_size байт.

    Raises:
        ResponseTooLargeError: Content-Length или фактический размер больше потолка
    """
    _check_declared_size(headers, max_size, url)

    buffer = bytearray()
    for chunk in chunks:
        buffer += chunk
        if len(buffer) > max_size:
            raise ResponseTooLargeError(len(buffer), max_size, url)
    return bytes(buffer)


async def aread_limited(chunks: AsyncIterator[bytes], headers: Mapping[str, str], max_size: int, url: str) -> bytes:
    """Асинхронный вариант read_limited."""
    _check_declared_size(headers, max_size, url)

    buffer = bytearray()
    async for chunk in chunks:
        buffer += chunk
        if len(buffer) > max_size:
            raise ResponseTooLargeError(len(buffer), max_size, url)
    return bytes(buffer)


class ApiResponse:
    """
    Ответ с полностью буферизованным телом.

    Если ответ возвращён из execute_raw, владельцем становится вызывающий
    код и он же должен вызвать close() (или использовать with).

    Example:
        >>> with client.execute_raw(ApiRequest.delete("/users/7")) as response:
        ...     assert response.status_code == 204
    """

    def __init__(
        self,
        status_code: int,
        content: bytes,
        headers: Optional[Mapping[str, str]] = None,
        reason: str = "",
        url: str = "",
        method: str = "GET",
        encoding: Optional[str] = None,
        elapsed: Optional[timedelta] = None,
        on_close: Optional[Callable[[], None]] = None,
    ):
        self.status_code = status_code
        self.content = content
        self.headers = CaseInsensitiveDict(headers or {})
        self.reason = reason or ""
        self.url = url
        self.method = method
        self.encoding = encoding
        self.elapsed = elapsed or timedelta(0)
        self._on_close = on_close
        self._text: Optional[str] = None
        self._closed = False

    @classmethod
    def from_requests(cls, response: requests.Response, content: bytes, method: str) -> "ApiResponse":
        """Собрать из requests.Response; close() закроет исходный ответ."""
        return cls(
            status_code=response.status_code,
            content=content,
            headers=response.headers,
            reason=response.reason or "",
            url=response.url,
            method=method,
            encoding=charset_from_content_type(response.headers.get("Content-Type", "")),
            elapsed=response.elapsed,
            on_close=response.close,
        )

    @classmethod
    def from_httpx(cls, response: httpx.Response, content: bytes, method: str) -> "ApiResponse":
        """
        Собрать из httpx.Response.

        Исходный поток httpx закрывается пайплайном сразу после чтения
        (aclose() асинхронный), поэтому здесь on_close не нужен.
        """
        charset = response.charset_encoding
        try:
            elapsed = response.elapsed
        except RuntimeError:
            elapsed = None
        return cls(
            status_code=response.status_code,
            content=content,
            headers=dict(response.headers),
            reason=response.reason_phrase,
            url=str(response.url),
            method=method,
            encoding=charset,
            elapsed=elapsed,
        )

    # ==================== Тело ====================

    @property
    def text(self) -> str:
        """Тело как строка (кодировка из Content-Type, иначе UTF-8)."""
        if self._text is None:
            encoding = self.encoding or "utf-8"
            try:
                self._text = self.content.decode(encoding, errors="replace")
            except LookupError:
                # Неизвестная кодировка в Content-Type
                self._text = self.content.decode("utf-8", errors="replace")
        return self._text

    def json(self, **kwargs: Any) -> Any:
        """Разобрать тело как JSON (без приведения к типу)."""
        return json.loads(self.text, **kwargs)

    @property
    def content_type(self) -> str:
        return self.headers.get("Content-Type", "")

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300

    # ==================== Жизненный цикл ====================

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Освободить исходный сетевой ответ. Повторный вызов ничего не делает."""
        if self._closed:
            return
        self._closed = True
        if self._on_close is not None:
            on_close, self._on_close = self._on_close, None
            on_close()

    def __enter__(self) -> "ApiResponse":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def __repr__(self) -> str:
        return f"<ApiResponse [{self.status_code}] {self.method} {self.url}>"
