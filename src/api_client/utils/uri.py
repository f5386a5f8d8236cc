# src/api_client/utils/uri.py
"""
Утилиты для работы с URI.

Проверка базового адреса, склейка base_url + endpoint и замена
query string.
"""

from typing import Any, Optional
from urllib.parse import urlsplit

from ..core.exceptions import InvalidAddressError


ALLOWED_SCHEMES = ("http", "https")


def try_parse_base_url(address: Any) -> Optional[str]:
    """
    Проверяет, что строка является абсолютным http/https URI.

    Args:
        address: Строка адреса (пробелы по краям игнорируются)

    Returns:
        Нормализованный адрес или None, если адрес невалиден

    Examples:
        >>> try_parse_base_url(" https://api.example.com/v1 ")
        'https://api.example.com/v1'
        >>> try_parse_base_url("not-a-url") is None
        True
        >>> try_parse_base_url("ftp://files.example.com") is None
        True
    """
    if not isinstance(address, str):
        return None

    candidate = address.strip()
    if not candidate:
        return None

    try:
        parts = urlsplit(candidate)
        # Обращение к .port валидирует номер порта
        parts.port
    except ValueError:
        return None

    if parts.scheme.lower() not in ALLOWED_SCHEMES or not parts.hostname:
        return None

    return candidate


def validate_base_url(address: Any) -> str:
    """
    Как try_parse_base_url, но выбрасывает InvalidAddressError.

    Raises:
        InvalidAddressError: Адрес не является абсолютным http/https URI
    """
    parsed = try_parse_base_url(address)
    if parsed is None:
        raise InvalidAddressError(address)
    return parsed


def join_url(base_url: Optional[str], endpoint: str) -> str:
    """
    Строит полный URL из base_url и endpoint.

    Абсолютный endpoint (http:// или https://) используется как есть.

    Examples:
        >>> join_url("https://api.example.com/v1/", "/users/7")
        'https://api.example.com/v1/users/7'
        >>> join_url("https://api.example.com", "https://other.example.com/x")
        'https://other.example.com/x'
    """
    if endpoint.startswith(("http://", "https://")):
        return endpoint

    endpoint = endpoint.lstrip("/")
    if not base_url:
        return endpoint

    base = base_url.rstrip("/")
    if not endpoint:
        return base
    return f"{base}/{endpoint}"


def replace_query_string(resource: str, new_query_string: str) -> str:
    """
    Заменяет существующую query string на новую.

    Всё, начиная с первого '?', отбрасывается; new_query_string
    дописывается как есть (вместе со своим '?', если он нужен).

    Examples:
        >>> replace_query_string("/users?page=1", "?page=2")
        '/users?page=2'
        >>> replace_query_string("/users", "?page=2")
        '/users?page=2'
        >>> replace_query_string("/users?page=1", "")
        '/users'
    """
    index = resource.find("?")
    if index != -1:
        resource = resource[:index]
    return resource + new_query_string
